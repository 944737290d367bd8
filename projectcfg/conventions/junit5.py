"""JUnit 5 test wiring."""

from __future__ import annotations

from ..host import TaskSpec
from ..models import ProjectContext, ProjectLanguage
from .base import ConventionModule, ConventionRun


class JUnit5Convention(ConventionModule):
    """Declares JUnit Jupiter and configures every ``Test`` task to run on it."""

    name = "junit5"

    def is_applicable(self, context: ProjectContext) -> bool:
        return True

    def apply(self, run: ConventionRun) -> None:
        version = run.versions.junit5
        self.add_dependency(run, "testImplementation", f"org.junit.jupiter:junit-jupiter-api:{version}")
        self.add_dependency(run, "testImplementation", f"org.junit.jupiter:junit-jupiter-params:{version}")
        self.add_dependency(run, "testRuntimeOnly", f"org.junit.jupiter:junit-jupiter-engine:{version}")

        if run.context.is_language(ProjectLanguage.KOTLIN):
            self.add_dependency(
                run, "testImplementation", f"org.jetbrains.kotlin:kotlin-test:{run.versions.kotlin}"
            )

        run.host.configure_tasks("Test", self._configure_test_task)

    def _configure_test_task(self, task: TaskSpec) -> None:
        settings = {
            "useJUnitPlatform": True,
            "testLogging.showExceptions": True,
            "testLogging.showStandardStreams": True,
            "testLogging.exceptionFormat": "FULL",
            # projects without tests must still build
            "filter.failOnNoMatchingTests": False,
        }
        for key, value in settings.items():
            self.log.debug("setting [%s.%s] to [%s]", task.name, key, value)
            task.set(key, value)
        # rerun every test, even without changes
        task.depend_on("cleanTest")

"""Spring Boot dependency, plugin and property defaults."""

from __future__ import annotations

from typing import Dict

from ..host import TaskSpec
from ..models import ProjectContext, ProjectFramework, ProjectType
from .base import ConventionModule, ConventionRun

SPRING_BOOT_GROUP = "org.springframework.boot"
WEB_STARTER = f"{SPRING_BOOT_GROUP}:spring-boot-starter-web"
ACTUATOR_STARTER = f"{SPRING_BOOT_GROUP}:spring-boot-starter-actuator"
SPRING_RELEASE_REPOSITORY = "https://repo.spring.io/release"
PROPERTIES_FILE = "src/main/resources/application-default.properties"


class SpringBootConvention(ConventionModule):
    """Configures Spring Boot libraries and applications.

    Applications get the boot plugin, log4j2 instead of logback, optional
    metrics and native-image support, and a managed
    ``application-default.properties`` block. Libraries only get the starter
    dependencies; the BOM constraint is registered for every project so any
    explicit Spring Boot dependency resolves consistently.
    """

    name = "spring-boot"

    def init(self, run: ConventionRun) -> None:
        self.add_platform(run, f"{SPRING_BOOT_GROUP}:spring-boot-dependencies:{run.versions.spring_boot}")

    def is_applicable(self, context: ProjectContext) -> bool:
        return context.is_framework(ProjectFramework.SPRING_BOOT)

    def apply(self, run: ConventionRun) -> None:
        if run.context.is_type(ProjectType.LIBRARY):
            self._configure_starters(run)
        elif run.context.is_type(ProjectType.APPLICATION):
            self._configure_application(run)
            self._configure_defaults(run)

    def _configure_starters(self, run: ConventionRun) -> None:
        version = run.versions.spring_boot
        self.add_dependency(run, "implementation", f"{SPRING_BOOT_GROUP}:spring-boot-starter:{version}")
        self.add_dependency(run, "testImplementation", f"{SPRING_BOOT_GROUP}:spring-boot-starter-test:{version}")

    def _configure_application(self, run: ConventionRun) -> None:
        version = run.versions.spring_boot
        self.apply_plugin(run, SPRING_BOOT_GROUP)
        self._configure_starters(run)

        # bootJar replaces the plain jar
        run.host.disable_task("jar")

        # log4j2 instead of logback
        run.ledger.exclude_transitive("implementation", SPRING_BOOT_GROUP, "spring-boot-starter-logging")
        self.add_dependency(run, "implementation", f"{SPRING_BOOT_GROUP}:spring-boot-starter-log4j2:{version}")
        self.add_dependency(run, "implementation", f"com.lmax:disruptor:{run.versions.disruptor}")

        if run.context.flag("framework_metrics"):
            self.add_dependency(run, "implementation", f"io.micrometer:micrometer-core:{run.versions.micrometer}")
            self.add_dependency(
                run, "implementation", f"io.micrometer:micrometer-registry-prometheus:{run.versions.micrometer}"
            )
            if run.ledger.has_dependency(["implementation"], WEB_STARTER):
                self.add_dependency(run, "implementation", f"{ACTUATOR_STARTER}:{version}")

        if run.context.flag("native"):
            self.apply_plugin(run, "org.springframework.experimental.aot")
            run.host.add_repository(SPRING_RELEASE_REPOSITORY)
            self.add_dependency(
                run,
                "implementation",
                f"org.springframework.experimental:spring-native:{run.versions.spring_native}",
            )
            run.host.configure_tasks("BootBuildImage", self._configure_native_image)

    @staticmethod
    def _configure_native_image(task: TaskSpec) -> None:
        task.set("builder", "paketobuildpacks/builder:tiny")
        task.set("buildpacks", ["gcr.io/paketo-buildpacks/java-native-image:7.4.0"])
        task.set("environment", {"BP_NATIVE_IMAGE": "true"})

    def _configure_defaults(self, run: ConventionRun) -> None:
        # see https://docs.spring.io/spring-boot/docs/current/reference/html/application-properties.html
        properties: Dict[str, str] = {}
        properties.update(logging_properties())
        properties.update(web_properties())
        properties.update(graceful_shutdown_properties())

        db_migrate = bool(run.context.flag("framework_db_migrate"))
        if run.ledger.has_dependency(["implementation"], ACTUATOR_STARTER):
            properties.update(actuator_properties(db_migrate=db_migrate))
        if db_migrate:
            properties.update(db_migration_properties())

        run.files.reconcile(run.project_file(PROPERTIES_FILE), properties, owner=self.name)


def logging_properties() -> Dict[str, str]:
    return {
        "spring.main.banner-mode": "off",
        "logging.level.root": "INFO",
        "logging.pattern.console": "%d{yyyy-MM-dd HH:mm:ss} %highlight(%-5level) %logger{36} : %msg%n",
        "logging.pattern.file": "%d{yyyy-MM-dd HH:mm:ss} %-5level %logger{36} : %msg%n",
        "logging.charset.console": "UTF-8",
        "logging.charset.file": "UTF-8",
    }


def web_properties() -> Dict[str, str]:
    return {
        "server.port": "8080",
        # no default error page
        "server.error.whitelabel.enabled": "false",
        "server.http2.enabled": "true",
        "server.tomcat.uri-encoding": "UTF-8",
        "server.tomcat.relaxed-query-chars": "[,]",
        "server.compression.enabled": "true",
        "server.compression.mime-types": (
            "text/html,text/xml,text/plain,text/css,text/javascript,application/javascript,application/json"
        ),
        "server.compression.min-response-size": "1024",
        "spring.web.resources.cache.cachecontrol.max-age": "120",
        "spring.web.resources.cache.cachecontrol.must-revalidate": "true",
        "spring.main.allow-bean-definition-overriding": "true",
    }


def graceful_shutdown_properties() -> Dict[str, str]:
    return {
        "server.shutdown": "graceful",
        "spring.lifecycle.timeout-per-shutdown-phase": "1m",
    }


def actuator_properties(*, db_migrate: bool = False) -> Dict[str, str]:
    endpoints = ["health", "heapdump", "prometheus"]
    if db_migrate:
        endpoints.append("flyway")
    return {
        "management.endpoints.web.discovery.enabled": "false",
        # management endpoints live on their own port
        "management.server.port": "8081",
        "management.endpoints.web.exposure.include": ",".join(endpoints),
        # /livez and /readyz
        "management.endpoint.health.probes.add-additional-paths": "true",
        "management.endpoint.health.show-details": "always",
    }


def db_migration_properties() -> Dict[str, str]:
    return {
        "spring.flyway.baselineOnMigrate": "true",
        "spring.flyway.baselineVersion": "0",
        "spring.flyway.locations": "classpath:db/migration",
    }

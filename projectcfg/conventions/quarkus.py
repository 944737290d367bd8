"""Quarkus dependency, plugin and property defaults."""

from __future__ import annotations

from typing import Dict

from ..models import ProjectContext, ProjectFramework, ProjectType
from .base import ConventionModule, ConventionRun

QUARKUS_GROUP = "io.quarkus"
PROPERTIES_FILE = "src/main/resources/application.properties"


class QuarkusConvention(ConventionModule):
    name = "quarkus"

    def init(self, run: ConventionRun) -> None:
        self.add_platform(run, f"{QUARKUS_GROUP}:quarkus-bom:{run.versions.quarkus}")

    def is_applicable(self, context: ProjectContext) -> bool:
        return context.is_framework(ProjectFramework.QUARKUS)

    def apply(self, run: ConventionRun) -> None:
        version = run.versions.quarkus
        self.add_dependency(run, "implementation", f"{QUARKUS_GROUP}:quarkus-arc:{version}")
        self.add_dependency(run, "testImplementation", f"{QUARKUS_GROUP}:quarkus-junit5:{version}")
        if not run.context.is_type(ProjectType.APPLICATION):
            return

        self.apply_plugin(run, QUARKUS_GROUP)
        if run.context.flag("framework_metrics"):
            self.add_dependency(
                run, "implementation", f"{QUARKUS_GROUP}:quarkus-micrometer-registry-prometheus:{version}"
            )
        if run.context.flag("framework_db_migrate"):
            self.add_dependency(run, "implementation", f"{QUARKUS_GROUP}:quarkus-flyway:{version}")

        properties: Dict[str, str] = {
            "quarkus.banner.enabled": "false",
            "quarkus.log.level": "INFO",
            "quarkus.log.console.format": "%d{yyyy-MM-dd HH:mm:ss} %-5p %c{3.} : %s%e%n",
            "quarkus.http.port": "8080",
            "quarkus.http.enable-compression": "true",
            "quarkus.shutdown.timeout": "60s",
        }
        if run.context.flag("framework_metrics"):
            properties["quarkus.micrometer.export.prometheus.enabled"] = "true"
        if run.context.flag("framework_db_migrate"):
            properties["quarkus.flyway.migrate-at-start"] = "true"
            properties["quarkus.flyway.baseline-on-migrate"] = "true"
            properties["quarkus.flyway.locations"] = "db/migration"
        run.files.reconcile(run.project_file(PROPERTIES_FILE), properties, owner=self.name)

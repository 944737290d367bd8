"""Tests for the Quarkus convention."""

from __future__ import annotations

import pytest

from projectcfg.conventions import QuarkusConvention, SpringBootConvention
from projectcfg.errors import ReconciliationError
from projectcfg.models import ProjectFramework, ProjectType
from projectcfg.orchestrator import Orchestrator
from tests._fixtures.project_builder import ProjectBuilder

PROPERTIES = "src/main/resources/application.properties"


def test_application_gets_plugin_dependencies_and_properties(project_builder: ProjectBuilder) -> None:
    host = project_builder.host()
    context = project_builder.context(
        framework=ProjectFramework.QUARKUS, flags={"framework_db_migrate": True}
    )

    report = Orchestrator().run(context, [SpringBootConvention(), QuarkusConvention()], host)

    assert report.applied == ["quarkus"]
    assert host.is_plugin_applied("io.quarkus")
    assert host.platform_dependencies() == [
        "org.springframework.boot:spring-boot-dependencies:2.6.3",
        "io.quarkus:quarkus-bom:2.6.3.Final",
    ]
    assert host.dependencies("implementation") == [
        "io.quarkus:quarkus-arc:2.6.3.Final",
        "io.quarkus:quarkus-micrometer-registry-prometheus:2.6.3.Final",
        "io.quarkus:quarkus-flyway:2.6.3.Final",
    ]
    content = project_builder.read(PROPERTIES)
    assert "quarkus.http.port=8080" in content
    assert "quarkus.flyway.migrate-at-start=true" in content


def test_library_skips_plugin_and_properties(project_builder: ProjectBuilder) -> None:
    host = project_builder.host(plugins=["java-library"])
    context = project_builder.context(framework=ProjectFramework.QUARKUS, type=ProjectType.LIBRARY)

    Orchestrator().run(context, [QuarkusConvention()], host)

    assert not host.is_plugin_applied("io.quarkus")
    assert host.dependencies("testImplementation") == ["io.quarkus:quarkus-junit5:2.6.3.Final"]
    assert not (project_builder.root / PROPERTIES).exists()


def test_hand_written_duplicate_of_managed_key_is_reported(project_builder: ProjectBuilder) -> None:
    project_builder.write({PROPERTIES: "quarkus.http.port=9000\n"})
    host = project_builder.host()
    context = project_builder.context(framework=ProjectFramework.QUARKUS)

    with pytest.raises(ReconciliationError) as excinfo:
        Orchestrator().run(context, [QuarkusConvention()], host)

    assert excinfo.value.module == "quarkus"
    assert "quarkus.http.port" in str(excinfo.value)

"""Tests for the FastAPI service mode."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from projectcfg.errors import ConfigurationError
from projectcfg.service import create_app
from tests._fixtures.project_builder import ProjectBuilder


class _FailingRunner:
    def __init__(self) -> None:
        self.calls: list[dict[str, object]] = []

    def __call__(self, path: str, *, dry_run: bool = False):
        self.calls.append({"path": path, "dry_run": dry_run})
        raise ConfigurationError(
            "checkstyle ruleset 'nope' is not supported",
            module="checkstyle",
            operation="resolve ruleset",
            resource="checkstyle/nope.xml",
        )


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_apply_endpoint_without_config(client: TestClient, project_builder: ProjectBuilder) -> None:
    response = client.post("/apply", json={"path": str(project_builder.root)})

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "unchanged"
    assert data["dry_run"] is False
    project = data["projects"][0]
    assert project["applied"] == ["junit5"]
    assert project["skipped"] == ["checkstyle", "spring-boot", "quarkus"]


def test_apply_endpoint_reports_changed_files(
    client: TestClient, project_builder: ProjectBuilder
) -> None:
    project_builder.config("framework: spring-boot\n")

    response = client.post("/apply", json={"path": str(project_builder.root), "dry_run": True})

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "changed"
    change = data["projects"][0]["changed_files"][0]
    assert change["path"].endswith("application-default.properties")
    assert change["created"] is True
    assert "+server.port=8080" in change["diff"]
    assert not (project_builder.root / "src").exists()


def test_apply_endpoint_missing_path(client: TestClient, tmp_path: Path) -> None:
    response = client.post("/apply", json={"path": str(tmp_path / "missing")})
    assert response.status_code == 404


def test_apply_endpoint_maps_convention_errors(tmp_path: Path) -> None:
    runner = _FailingRunner()
    client = TestClient(create_app(lambda: runner))

    response = client.post("/apply", json={"path": str(tmp_path), "dry_run": True})

    assert response.status_code == 400
    data = response.json()
    assert data["module"] == "checkstyle"
    assert data["operation"] == "resolve ruleset"
    assert "nope" in data["detail"]
    assert runner.calls == [{"path": str(tmp_path), "dry_run": True}]


def test_apply_endpoint_maps_config_errors(client: TestClient, project_builder: ProjectBuilder) -> None:
    project_builder.config("- not\n- a mapping\n")

    response = client.post("/apply", json={"path": str(project_builder.root)})

    assert response.status_code == 400
    assert "mapping" in response.json()["detail"]


def test_apply_endpoint_rejects_unknown_conventions(
    client: TestClient, project_builder: ProjectBuilder
) -> None:
    project_builder.config(
        """
        conventions:
          enabled: [junit5, nope]
        """
    )

    response = client.post("/apply", json={"path": str(project_builder.root)})

    assert response.status_code == 400
    assert "nope" in response.json()["detail"]

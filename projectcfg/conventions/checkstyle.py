"""Checkstyle static-analysis wiring for the root project."""

from __future__ import annotations

import os
import re
from importlib import resources
from pathlib import Path
from typing import List

from ..errors import ConfigurationError
from ..files import write_if_changed
from ..host import TaskSpec
from ..models import ProjectContext
from .base import ConventionModule, ConventionRun

_JAVA_PLUGINS = ("java", "java-library")
_RULESET_NAME = re.compile(r"[A-Za-z0-9][A-Za-z0-9_.-]*")


def ruleset_text(name: str) -> str | None:
    """Return a packaged checkstyle ruleset, or None when there is no such ruleset."""
    if not _RULESET_NAME.fullmatch(name):
        return None
    resource = (
        resources.files("projectcfg").joinpath("resources").joinpath("checkstyle").joinpath(f"{name}.xml")
    )
    if not resource.is_file():
        return None
    return resource.read_text(encoding="utf-8")


class CheckstyleConvention(ConventionModule):
    """Applies checkstyle and a ``checkstyleAll`` task covering every subproject."""

    name = "checkstyle"

    def is_applicable(self, context: ProjectContext) -> bool:
        if not context.is_root:
            return False
        return (context.root_dir / "checkstyle.xml").exists() or bool(
            context.flag("checkstyle_rule_set")
        )

    def apply(self, run: ConventionRun) -> None:
        config_file = self._resolve_config_file(run)

        self.log.info("applying plugin [checkstyle]")
        self.apply_plugin(run, "checkstyle")

        sources = self._collect_sources(run)
        run.host.register_task(
            "checkstyleAll", "Checkstyle", lambda task: self._configure_aggregate(task, sources)
        )

        self.log.info("using checkstyle config [%s]", config_file)
        run.host.configure_extension(
            "checkstyle",
            {
                "toolVersion": run.context.flag("checkstyle_tool_version"),
                "configFile": str(config_file),
                "maxWarnings": 0,
                "maxErrors": 0,
            },
        )
        run.host.configure_tasks("Checkstyle", self._configure_reports)

    def _resolve_config_file(self, run: ConventionRun) -> Path:
        local = run.context.root_dir / "checkstyle.xml"
        if local.exists():
            return local

        rule_set = str(run.context.flag("checkstyle_rule_set"))
        text = ruleset_text(rule_set)
        if text is None:
            raise ConfigurationError(
                f"checkstyle ruleset '{rule_set}' is not supported",
                module=self.name,
                operation="resolve ruleset",
                resource=f"checkstyle/{rule_set}.xml",
            )
        self.log.info("using checkstyle ruleset [%s]", rule_set)
        target = run.project_file("build/tmp/checkstyle.xml")
        if not run.files.dry_run:
            write_if_changed(target, text)
        return target

    def _collect_sources(self, run: ConventionRun) -> List[str]:
        sources = list(run.host.source_dirs("main") or [])
        for project in run.host.subprojects:
            if not any(project.is_plugin_applied(plugin) for plugin in _JAVA_PLUGINS):
                continue
            dirs = project.source_dirs("main")
            if dirs is None:
                continue
            prefix = Path(os.path.relpath(project.project_dir, run.context.project_dir)).as_posix()
            sources.extend(f"{prefix}/{directory}" for directory in dirs)
        return sources

    @staticmethod
    def _configure_aggregate(task: TaskSpec, sources: List[str]) -> None:
        task.group = "verification"
        task.set("source", list(sources))
        task.set("classpath", list(sources))
        task.set("exclude", ["**/generated/**", "**/internal/**"])

    @staticmethod
    def _configure_reports(task: TaskSpec) -> None:
        task.set("reports.xml.required", False)
        task.set("reports.html.required", True)

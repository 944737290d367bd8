"""Core data models shared across projectcfg components."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional


class _ParsableEnum(Enum):
    """Enum that parses loosely spelled config values (``spring-boot``, ``SPRING_BOOT``)."""

    @classmethod
    def parse(cls, value: object) -> "_ParsableEnum":
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"{cls.__name__} expects a string, got {value!r}")
        normalised = value.strip().upper().replace("-", "_").replace(" ", "_")
        for member in cls:
            if normalised in (member.name, member.name.replace("_", "")):
                return member
        choices = ", ".join(member.value for member in cls)
        raise ValueError(f"Unknown {cls.__name__} '{value}' (expected one of: {choices})")


class ProjectLanguage(_ParsableEnum):
    JAVA = "java"
    KOTLIN = "kotlin"


class ProjectType(_ParsableEnum):
    APPLICATION = "application"
    LIBRARY = "library"


class ProjectFramework(_ParsableEnum):
    NONE = "none"
    SPRING_BOOT = "spring-boot"
    QUARKUS = "quarkus"


FLAG_DEFAULTS: Mapping[str, bool | str] = MappingProxyType(
    {
        "framework_metrics": True,
        "framework_db_migrate": False,
        "native": False,
        "checkstyle_rule_set": "",
        "checkstyle_tool_version": "9.2.1",
    }
)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def normalise_flag_name(name: str) -> str:
    """Return the snake_case spelling of a flag (``frameworkMetrics`` -> ``framework_metrics``)."""
    return _CAMEL_BOUNDARY.sub("_", name.strip()).lower().replace("-", "_")


def resolve_flags(
    values: Mapping[str, Any], base: Mapping[str, Any] = FLAG_DEFAULTS
) -> Dict[str, bool | str]:
    """Overlay ``values`` on ``base``, rejecting unknown flags and mistyped values."""
    resolved: Dict[str, bool | str] = dict(base)
    for raw_name, value in values.items():
        name = normalise_flag_name(raw_name)
        if name not in FLAG_DEFAULTS:
            known = ", ".join(sorted(FLAG_DEFAULTS))
            raise ValueError(f"Unknown flag '{raw_name}' (known flags: {known})")
        expected = type(FLAG_DEFAULTS[name])
        if not isinstance(value, expected):
            raise ValueError(
                f"Flag '{raw_name}' expects a {expected.__name__} value, got {value!r}"
            )
        resolved[name] = value
    return resolved


@dataclass(frozen=True)
class ProjectContext:
    """Immutable declaration of what a single project unit is.

    One instance exists per project unit (the root or a subproject) for the
    duration of a run. ``flags`` always holds every known flag; missing entries
    are filled from :data:`FLAG_DEFAULTS` (or from the root, see :meth:`child`).
    """

    name: str
    project_dir: Path
    root_dir: Path
    language: ProjectLanguage = ProjectLanguage.JAVA
    type: ProjectType = ProjectType.APPLICATION
    framework: ProjectFramework = ProjectFramework.NONE
    flags: Mapping[str, bool | str] = field(default_factory=dict)
    is_root: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "flags", MappingProxyType(resolve_flags(self.flags)))

    def flag(self, name: str) -> bool | str:
        return self.flags[normalise_flag_name(name)]

    def is_language(self, language: ProjectLanguage) -> bool:
        return self.language is language

    def is_type(self, project_type: ProjectType) -> bool:
        return self.type is project_type

    def is_framework(self, framework: ProjectFramework) -> bool:
        return self.framework is framework

    def child(
        self,
        name: str,
        project_dir: Path,
        *,
        language: ProjectLanguage | None = None,
        type: ProjectType | None = None,
        framework: ProjectFramework | None = None,
        flags: Mapping[str, Any] | None = None,
    ) -> "ProjectContext":
        """Derive a subproject context inheriting every unset value from this one."""
        return ProjectContext(
            name=name,
            project_dir=project_dir,
            root_dir=self.root_dir,
            language=language or self.language,
            type=type or self.type,
            framework=framework or self.framework,
            flags=resolve_flags(flags or {}, base=self.flags),
            is_root=False,
        )


@dataclass(frozen=True)
class VersionPolicy:
    """Pinned versions used when conventions declare dependencies."""

    kotlin: str = "1.6.10"
    junit5: str = "5.8.2"
    spring_boot: str = "2.6.3"
    spring_native: str = "0.11.1"
    quarkus: str = "2.6.3.Final"
    disruptor: str = "3.4.4"
    micrometer: str = "1.8.1"

    def with_overrides(self, overrides: Mapping[str, Any]) -> "VersionPolicy":
        known = {item.name for item in fields(self)}
        changes: Dict[str, str] = {}
        for raw_name, value in overrides.items():
            name = normalise_flag_name(raw_name)
            if name not in known:
                raise ValueError(f"Unknown version key '{raw_name}'")
            if not isinstance(value, (str, int, float)) or isinstance(value, bool):
                raise ValueError(f"Version '{raw_name}' must be a string, got {value!r}")
            changes[name] = str(value)
        return replace(self, **changes)


class ModuleState(Enum):
    CREATED = "created"
    INITIALIZED = "initialized"
    SKIPPED = "skipped"
    APPLIED = "applied"


@dataclass
class ModuleOutcome:
    """Lifecycle state a convention module reached during one run."""

    name: str
    state: ModuleState = ModuleState.CREATED


@dataclass
class ReconcileResult:
    """Outcome of reconciling one managed file."""

    path: Path
    created: bool
    changed: bool
    diff: str = ""
    dry_run: bool = False


@dataclass
class RunReport:
    """Observable result of one orchestration pass over a project unit."""

    project: str
    outcomes: List[ModuleOutcome] = field(default_factory=list)
    files: List[ReconcileResult] = field(default_factory=list)
    host: Optional[Dict[str, Any]] = None

    @property
    def applied(self) -> List[str]:
        return [item.name for item in self.outcomes if item.state is ModuleState.APPLIED]

    @property
    def skipped(self) -> List[str]:
        return [item.name for item in self.outcomes if item.state is ModuleState.SKIPPED]

    @property
    def changed_files(self) -> List[Path]:
        return [item.path for item in self.files if item.changed]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project": self.project,
            "modules": {item.name: item.state.value for item in self.outcomes},
            "files": [
                {
                    "path": str(item.path),
                    "created": item.created,
                    "changed": item.changed,
                    "diff": item.diff,
                }
                for item in self.files
            ],
            "host": self.host,
        }

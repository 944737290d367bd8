"""Configuration loading for projectcfg (.projectcfg.yml)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .models import (
    ProjectContext,
    ProjectFramework,
    ProjectLanguage,
    ProjectType,
    VersionPolicy,
    resolve_flags,
)

CONFIG_FILE_NAME = ".projectcfg.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class DeclaredBuild:
    """What the build script already declares, before any convention runs."""

    plugins: List[str] = field(default_factory=list)
    dependencies: Dict[str, List[str]] = field(default_factory=dict)
    source_sets: Dict[str, List[str]] = field(default_factory=dict)


@dataclass
class ConventionsConfig:
    """Convention selection; ``None`` keeps the default registry and order."""

    enabled: Optional[List[str]] = None


@dataclass
class SubprojectConfig:
    """A subproject declared under ``subprojects:``; unset values inherit from the root."""

    name: str
    path: Path
    language: Optional[ProjectLanguage] = None
    type: Optional[ProjectType] = None
    framework: Optional[ProjectFramework] = None
    flags: Dict[str, Any] = field(default_factory=dict)
    declared: DeclaredBuild = field(default_factory=DeclaredBuild)


@dataclass
class ProjectCfgConfig:
    """Represents the settings defined in .projectcfg.yml."""

    root: Path
    name: Optional[str] = None
    language: ProjectLanguage = ProjectLanguage.JAVA
    type: ProjectType = ProjectType.APPLICATION
    framework: ProjectFramework = ProjectFramework.NONE
    flags: Dict[str, Any] = field(default_factory=dict)
    versions: VersionPolicy = field(default_factory=VersionPolicy)
    conventions: ConventionsConfig = field(default_factory=ConventionsConfig)
    log_level: Optional[int] = None
    declared: DeclaredBuild = field(default_factory=DeclaredBuild)
    subprojects: List[SubprojectConfig] = field(default_factory=list)

    @property
    def project_name(self) -> str:
        return self.name or self.root.name or "root"

    def root_context(self) -> ProjectContext:
        return ProjectContext(
            name=self.project_name,
            project_dir=self.root,
            root_dir=self.root,
            language=self.language,
            type=self.type,
            framework=self.framework,
            flags=self.flags,
            is_root=True,
        )

    def subproject_context(self, root: ProjectContext, subproject: SubprojectConfig) -> ProjectContext:
        return root.child(
            subproject.name,
            subproject.path,
            language=subproject.language,
            type=subproject.type,
            framework=subproject.framework,
            flags=subproject.flags,
        )


def load_config(config_path: Path) -> ProjectCfgConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return ProjectCfgConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILE_NAME} must contain a mapping at the root")

    versions = VersionPolicy()
    versions_data = _as_dict(data.get("versions"))
    if versions_data:
        versions = _checked(lambda: versions.with_overrides(versions_data))

    conventions = ConventionsConfig()
    conventions_data = _as_dict(data.get("conventions"))
    if "enabled" in conventions_data:
        conventions.enabled = _as_str_list(conventions_data.get("enabled"))

    flags = _as_dict(data.get("flags"))
    _checked(lambda: resolve_flags(flags))

    subprojects = [
        _parse_subproject(root, str(name), _as_dict(raw))
        for name, raw in _as_dict(data.get("subprojects")).items()
    ]

    return ProjectCfgConfig(
        root=root,
        name=_as_str(data.get("name")),
        language=_parse_enum(ProjectLanguage, data.get("language")) or ProjectLanguage.JAVA,
        type=_parse_enum(ProjectType, data.get("type")) or ProjectType.APPLICATION,
        framework=_parse_enum(ProjectFramework, data.get("framework")) or ProjectFramework.NONE,
        flags=flags,
        versions=versions,
        conventions=conventions,
        log_level=_parse_log_level(data.get("log_level")),
        declared=_parse_declared(_as_dict(data.get("declared"))),
        subprojects=subprojects,
    )


def _parse_subproject(root: Path, name: str, data: Dict[str, Any]) -> SubprojectConfig:
    path_value = _as_str(data.get("path")) or name
    flags = _as_dict(data.get("flags"))
    _checked(lambda: resolve_flags(flags))
    return SubprojectConfig(
        name=name,
        path=(root / path_value).resolve(),
        language=_parse_enum(ProjectLanguage, data.get("language")),
        type=_parse_enum(ProjectType, data.get("type")),
        framework=_parse_enum(ProjectFramework, data.get("framework")),
        flags=flags,
        declared=_parse_declared(_as_dict(data.get("declared"))),
    )


def _parse_declared(data: Dict[str, Any]) -> DeclaredBuild:
    return DeclaredBuild(
        plugins=_as_str_list(data.get("plugins")),
        dependencies={
            str(bucket): _as_str_list(values)
            for bucket, values in _as_dict(data.get("dependencies")).items()
        },
        source_sets={
            str(name): _as_str_list(values)
            for name, values in _as_dict(data.get("source_sets")).items()
        },
    )


def _parse_enum(enum_type: Any, value: Any) -> Any:
    if value is None:
        return None
    return _checked(lambda: enum_type.parse(value))


def _parse_log_level(value: Any) -> Optional[int]:
    if value is None:
        return None
    level = logging.getLevelName(str(value).upper())
    if not isinstance(level, int):
        raise ConfigError(f"Unknown log_level '{value}'")
    return level


def _checked(build: Any) -> Any:
    try:
        return build()
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


def _resolve_config_path(config_path: Path) -> Path:
    config_path = Path(config_path).expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILE_NAME).resolve()
    if config_path.name != CONFIG_FILE_NAME:
        return (config_path.parent / CONFIG_FILE_NAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []

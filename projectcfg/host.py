"""Host build model the conventions mutate.

The real build tool is an external collaborator. :class:`HostProject` is the
narrow surface conventions talk to; :class:`InMemoryHostProject` implements it
with plain data so runs can be planned, inspected and tested without a build
tool. It is seeded from what the user already declared in the build script.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
)


@dataclass
class TaskSpec:
    """A registered build task and the settings applied to it."""

    name: str
    type: str
    enabled: bool = True
    group: Optional[str] = None
    properties: Dict[str, Any] = field(default_factory=dict)
    depends_on: List[str] = field(default_factory=list)

    def set(self, key: str, value: Any) -> None:
        self.properties[key] = value

    def depend_on(self, task_name: str) -> None:
        if task_name not in self.depends_on:
            self.depends_on.append(task_name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "enabled": self.enabled,
            "group": self.group,
            "properties": dict(sorted(self.properties.items())),
            "depends_on": list(self.depends_on),
        }


TaskConfigurer = Callable[[TaskSpec], None]


class HostProject(Protocol):
    """Operations the convention engine needs from the host build model."""

    name: str
    project_dir: Path

    @property
    def subprojects(self) -> Sequence["HostProject"]: ...

    def apply_plugin(self, plugin_id: str) -> None: ...

    def is_plugin_applied(self, plugin_id: str) -> bool: ...

    def dependencies(self, bucket: str) -> List[str]: ...

    def add_dependency(self, bucket: str, coordinate: str) -> None: ...

    def add_platform_dependency(self, coordinate: str) -> None: ...

    def platform_dependencies(self) -> List[str]: ...

    def exclude_transitive(self, bucket: str, group: str, module: str) -> None: ...

    def has_dependency(self, buckets: Iterable[str], coordinate_prefix: str) -> bool: ...

    def register_task(self, name: str, task_type: str, configure: TaskConfigurer) -> TaskSpec: ...

    def configure_tasks(self, task_type: str, configure: TaskConfigurer) -> None: ...

    def find_task(self, name: str) -> Optional[TaskSpec]: ...

    def disable_task(self, name: str) -> bool: ...

    def configure_extension(self, name: str, settings: Mapping[str, Any]) -> None: ...

    def add_repository(self, url: str) -> None: ...

    def source_dirs(self, source_set: str) -> Optional[List[str]]: ...


# Tasks a plugin contributes when it is applied.
_PLUGIN_TASKS: Dict[str, Tuple[Tuple[str, str], ...]] = {
    "java": (("jar", "Jar"), ("test", "Test"), ("cleanTest", "Delete")),
    "java-library": (("jar", "Jar"), ("test", "Test"), ("cleanTest", "Delete")),
    "checkstyle": (("checkstyleMain", "Checkstyle"), ("checkstyleTest", "Checkstyle")),
    "org.springframework.boot": (("bootJar", "BootJar"), ("bootBuildImage", "BootBuildImage")),
    "io.quarkus": (("quarkusBuild", "QuarkusBuild"), ("quarkusDev", "QuarkusDev")),
}

_JAVA_PLUGINS = ("java", "java-library", "org.jetbrains.kotlin.jvm")


class InMemoryHostProject:
    """Plain-data host model; every mutation is idempotent."""

    def __init__(
        self,
        name: str,
        project_dir: Path,
        *,
        plugins: Iterable[str] = (),
        dependencies: Mapping[str, Iterable[str]] | None = None,
        source_sets: Mapping[str, Iterable[str]] | None = None,
        subprojects: Iterable["InMemoryHostProject"] = (),
    ) -> None:
        self.name = name
        self.project_dir = Path(project_dir)
        self._plugins: List[str] = []
        self._dependencies: Dict[str, List[str]] = {}
        self._platforms: List[str] = []
        self._exclusions: List[Tuple[str, str, str]] = []
        self._tasks: Dict[str, TaskSpec] = {}
        self._type_configurers: List[Tuple[str, TaskConfigurer]] = []
        self._extensions: Dict[str, Dict[str, Any]] = {}
        self._repositories: List[str] = []
        self._source_sets: Dict[str, List[str]] = {
            key: list(values) for key, values in (source_sets or {}).items()
        }
        self._subprojects: List[InMemoryHostProject] = list(subprojects)

        for plugin_id in plugins:
            if not self.is_plugin_applied(plugin_id):
                self.apply_plugin(plugin_id)
        for bucket, coordinates in (dependencies or {}).items():
            for coordinate in coordinates:
                self.add_dependency(bucket, coordinate)

    # ------------------------------------------------------------------
    # Plugins

    @property
    def plugins(self) -> List[str]:
        return list(self._plugins)

    def is_plugin_applied(self, plugin_id: str) -> bool:
        return plugin_id in self._plugins

    def apply_plugin(self, plugin_id: str) -> None:
        if plugin_id in self._plugins:
            raise RuntimeError(f"Plugin '{plugin_id}' is already applied to {self.name}")
        self._plugins.append(plugin_id)
        for task_name, task_type in _PLUGIN_TASKS.get(plugin_id, ()):
            if task_name not in self._tasks:
                self._add_task(TaskSpec(name=task_name, type=task_type))

    # ------------------------------------------------------------------
    # Dependencies

    def dependencies(self, bucket: str) -> List[str]:
        return list(self._dependencies.get(bucket, []))

    def add_dependency(self, bucket: str, coordinate: str) -> None:
        entries = self._dependencies.setdefault(bucket, [])
        if coordinate not in entries:
            entries.append(coordinate)

    def add_platform_dependency(self, coordinate: str) -> None:
        if coordinate not in self._platforms:
            self._platforms.append(coordinate)

    def platform_dependencies(self) -> List[str]:
        return list(self._platforms)

    def exclude_transitive(self, bucket: str, group: str, module: str) -> None:
        rule = (bucket, group, module)
        if rule not in self._exclusions:
            self._exclusions.append(rule)

    def exclusions(self, bucket: str) -> List[Tuple[str, str]]:
        return [(group, module) for rule_bucket, group, module in self._exclusions if rule_bucket == bucket]

    def has_dependency(self, buckets: Iterable[str], coordinate_prefix: str) -> bool:
        for bucket in buckets:
            for coordinate in self._dependencies.get(bucket, []):
                if coordinate.startswith(coordinate_prefix):
                    return True
        return False

    # ------------------------------------------------------------------
    # Tasks

    def register_task(self, name: str, task_type: str, configure: TaskConfigurer) -> TaskSpec:
        task = self._tasks.get(name)
        if task is None:
            task = self._add_task(TaskSpec(name=name, type=task_type))
        elif task.type != task_type:
            raise RuntimeError(
                f"Task '{name}' is already registered with type {task.type}, not {task_type}"
            )
        configure(task)
        return task

    def configure_tasks(self, task_type: str, configure: TaskConfigurer) -> None:
        self._type_configurers.append((task_type, configure))
        for task in list(self._tasks.values()):
            if task.type == task_type:
                configure(task)

    def find_task(self, name: str) -> Optional[TaskSpec]:
        return self._tasks.get(name)

    def disable_task(self, name: str) -> bool:
        task = self._tasks.get(name)
        if task is None:
            return False
        task.enabled = False
        return True

    def tasks(self) -> Dict[str, TaskSpec]:
        return dict(self._tasks)

    def _add_task(self, task: TaskSpec) -> TaskSpec:
        self._tasks[task.name] = task
        for task_type, configure in self._type_configurers:
            if task.type == task_type:
                configure(task)
        return task

    # ------------------------------------------------------------------
    # Extensions, repositories and source sets

    def configure_extension(self, name: str, settings: Mapping[str, Any]) -> None:
        self._extensions.setdefault(name, {}).update(settings)

    def extension(self, name: str) -> Dict[str, Any]:
        return dict(self._extensions.get(name, {}))

    def add_repository(self, url: str) -> None:
        if url not in self._repositories:
            self._repositories.append(url)

    @property
    def repositories(self) -> List[str]:
        return list(self._repositories)

    def source_dirs(self, source_set: str) -> Optional[List[str]]:
        """Return source directories for ``source_set`` or ``None`` when absent."""
        if source_set in self._source_sets:
            return list(self._source_sets[source_set])
        if not any(plugin in self._plugins for plugin in _JAVA_PLUGINS):
            return None
        if source_set not in ("main", "test"):
            return None
        dirs = [f"src/{source_set}/java"]
        if "org.jetbrains.kotlin.jvm" in self._plugins:
            dirs.append(f"src/{source_set}/kotlin")
        return dirs

    @property
    def subprojects(self) -> List["InMemoryHostProject"]:
        return list(self._subprojects)

    def add_subproject(self, project: "InMemoryHostProject") -> None:
        if project not in self._subprojects:
            self._subprojects.append(project)

    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """Return the model state as JSON-serialisable data."""
        return {
            "name": self.name,
            "plugins": list(self._plugins),
            "dependencies": {bucket: list(items) for bucket, items in self._dependencies.items()},
            "platforms": list(self._platforms),
            "exclusions": [
                {"bucket": bucket, "group": group, "module": module}
                for bucket, group, module in self._exclusions
            ],
            "tasks": {name: task.to_dict() for name, task in self._tasks.items()},
            "extensions": {name: dict(values) for name, values in self._extensions.items()},
            "repositories": list(self._repositories),
            "subprojects": [project.name for project in self._subprojects],
        }


__all__ = ["HostProject", "InMemoryHostProject", "TaskConfigurer", "TaskSpec"]

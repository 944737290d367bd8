"""Convention module implementations and discovery utilities."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Dict, Iterable, List, Sequence

from .base import ConventionModule, ConventionRun
from .checkstyle import CheckstyleConvention
from .junit5 import JUnit5Convention
from .quarkus import QuarkusConvention
from .spring_boot import SpringBootConvention

_ENTRY_POINT_GROUP = "projectcfg.conventions"

# Default registration order; modules that query earlier declarations come later.
_BUILTIN_FACTORIES: dict[str, Callable[[], ConventionModule]] = {
    "junit5": JUnit5Convention,
    "checkstyle": CheckstyleConvention,
    "spring-boot": SpringBootConvention,
    "quarkus": QuarkusConvention,
}


def available_conventions() -> Dict[str, Callable[[], ConventionModule]]:
    """Return convention factories by name: built-ins first, then entry points."""
    factories: Dict[str, Callable[[], ConventionModule]] = dict(_BUILTIN_FACTORIES)
    for entry in _iter_entry_points():
        key = entry.name.lower()
        if key in factories:
            continue
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover
            raise RuntimeError(f"Failed to load convention entry point '{entry.name}': {exc}") from exc

        def _factory(obj: object = loaded) -> ConventionModule:
            return _coerce_convention(obj)

        factories[key] = _factory
    return factories


def discover_conventions(enabled: Sequence[str] | None = None) -> List[ConventionModule]:
    """Return fresh convention instances.

    Without ``enabled`` every available convention is returned in registration
    order. With ``enabled`` only those are returned, in the order given.
    """
    factories = available_conventions()
    if enabled is None:
        names = list(factories)
    else:
        names = []
        for name in enabled:
            key = name.lower()
            if key not in names:
                names.append(key)
        missing = [name for name in names if name not in factories]
        if missing:
            raise ValueError(f"Unknown conventions requested: {', '.join(sorted(missing))}")

    modules: List[ConventionModule] = []
    for name in names:
        instance = factories[name]()
        if not isinstance(instance, ConventionModule):
            raise TypeError(f"Convention factory for '{name}' did not return a ConventionModule instance")
        if not instance.name:
            instance.name = name
        modules.append(instance)
    return modules


def _coerce_convention(obj: object) -> ConventionModule:
    if isinstance(obj, ConventionModule):
        return obj
    if isinstance(obj, type) and issubclass(obj, ConventionModule):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, ConventionModule):
            return instance
    raise TypeError("Convention entry point must be a ConventionModule subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "CheckstyleConvention",
    "ConventionModule",
    "ConventionRun",
    "JUnit5Convention",
    "QuarkusConvention",
    "SpringBootConvention",
    "available_conventions",
    "discover_conventions",
]

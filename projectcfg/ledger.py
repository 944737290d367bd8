"""Dependency declarations made by conventions during a run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .errors import ConfigurationError, DependencyConflictError
from .host import HostProject
from .logging import get_logger


@dataclass(frozen=True)
class Coordinate:
    """A ``group:artifact[:version]`` dependency coordinate."""

    group: str
    artifact: str
    version: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "Coordinate":
        parts = text.strip().split(":")
        if len(parts) not in (2, 3) or not all(parts):
            raise ValueError(f"Invalid dependency coordinate '{text}' (expected group:artifact[:version])")
        version = parts[2] if len(parts) == 3 else None
        return cls(group=parts[0], artifact=parts[1], version=version)

    @property
    def key(self) -> str:
        return f"{self.group}:{self.artifact}"

    def __str__(self) -> str:
        return f"{self.key}:{self.version}" if self.version else self.key


def _parse(coordinate: str, operation: str) -> Coordinate:
    try:
        return Coordinate.parse(coordinate)
    except ValueError as exc:
        raise ConfigurationError(str(exc), operation=operation, resource=coordinate) from exc


class DependencyLedger:
    """Tracks declared coordinates per bucket and forwards new ones to the host.

    A ``group:artifact`` key appears at most once per bucket. The first
    declaration wins, including declarations the user already made in the
    build script. Platform constraints are stricter: pinning the same BOM at
    two different versions raises :class:`DependencyConflictError`.
    """

    def __init__(self, host: HostProject) -> None:
        self._host = host
        self._buckets: Dict[str, Dict[str, Coordinate]] = {}
        self._owners: Dict[Tuple[str, str], Optional[str]] = {}
        self._platforms: Dict[str, Coordinate] = {}
        self._platform_owners: Dict[str, Optional[str]] = {}
        self._exclusions: List[Tuple[str, str, str]] = []
        self.logger = get_logger("ledger")

    def ensure_dependency(self, bucket: str, coordinate: str, *, owner: str | None = None) -> bool:
        """Declare ``coordinate`` in ``bucket`` unless its key is already present.

        Returns True when the coordinate was added.
        """
        parsed = _parse(coordinate, "ensure_dependency")
        entries = self._buckets.setdefault(bucket, {})
        existing = entries.get(parsed.key) or self._host_entry(bucket, parsed.key)
        if existing is not None:
            if existing.version != parsed.version:
                self.logger.debug(
                    "Keeping %s in %s; ignoring %s requested by %s",
                    existing,
                    bucket,
                    parsed,
                    owner or "unknown module",
                )
            entries.setdefault(parsed.key, existing)
            return False
        entries[parsed.key] = parsed
        self._owners[(bucket, parsed.key)] = owner
        self._host.add_dependency(bucket, str(parsed))
        self.logger.debug("Declared %s in %s", parsed, bucket)
        return True

    def ensure_platform_constraint(self, coordinate: str, *, owner: str | None = None) -> bool:
        """Register a BOM constraint aligning versions across every bucket."""
        parsed = _parse(coordinate, "ensure_platform_constraint")
        existing = self._platforms.get(parsed.key)
        if existing is None:
            for declared in self._host.platform_dependencies():
                try:
                    candidate = Coordinate.parse(declared)
                except ValueError:
                    continue
                if candidate.key == parsed.key:
                    existing = candidate
                    break
        if existing is not None:
            if existing.version != parsed.version:
                first = self._platform_owners.get(parsed.key) or "the build script"
                raise DependencyConflictError(
                    f"platform {parsed.key} pinned to {existing.version} by {first} "
                    f"and to {parsed.version} by {owner or 'another module'}",
                    module=owner,
                    operation="ensure_platform_constraint",
                )
            self._platforms.setdefault(parsed.key, existing)
            return False
        self._platforms[parsed.key] = parsed
        self._platform_owners[parsed.key] = owner
        self._host.add_platform_dependency(str(parsed))
        self.logger.debug("Registered platform constraint %s", parsed)
        return True

    def exclude_transitive(self, bucket: str, group: str, module: str) -> bool:
        rule = (bucket, group, module)
        if rule in self._exclusions:
            return False
        self._exclusions.append(rule)
        self._host.exclude_transitive(bucket, group, module)
        self.logger.debug("Excluded %s:%s from %s", group, module, bucket)
        return True

    def has_dependency(self, buckets: Iterable[str], coordinate_prefix: str) -> bool:
        """Return True when any bucket holds a coordinate starting with the prefix.

        Reflects declarations made earlier in the same run as well as those the
        host already had.
        """
        buckets = list(buckets)
        for bucket in buckets:
            for declared in self._buckets.get(bucket, {}).values():
                if str(declared).startswith(coordinate_prefix):
                    return True
        return self._host.has_dependency(buckets, coordinate_prefix)

    def declared(self, bucket: str) -> List[str]:
        return [str(item) for item in self._buckets.get(bucket, {}).values()]

    @property
    def platforms(self) -> List[str]:
        return [str(item) for item in self._platforms.values()]

    @property
    def exclusions(self) -> List[Tuple[str, str, str]]:
        return list(self._exclusions)

    def _host_entry(self, bucket: str, key: str) -> Optional[Coordinate]:
        for declared in self._host.dependencies(bucket):
            try:
                candidate = Coordinate.parse(declared)
            except ValueError:
                continue
            if candidate.key == key:
                return candidate
        return None


__all__ = ["Coordinate", "DependencyLedger"]

"""Merges generated properties into files that may also hold hand-written content."""

from __future__ import annotations

import difflib
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..errors import ConventionIOError, ReconciliationError
from ..logging import get_logger
from ..models import ReconcileResult
from .atomic import atomic_write_text, read_text_if_exists
from .markers import MarkerManager, entry_problem, logical_lines, parse_property_line

Properties = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


class ManagedFileReconciler:
    """Converges each target file's managed block toward the generated properties.

    Lines outside the block are preserved verbatim and in place. A file without
    a block gets one appended. One instance serves one orchestration pass: when
    several modules write the same file their keys are merged in call order,
    and :meth:`flush` writes each file once with the merged result. Nothing is
    written when the reconciled content equals what was on disk.
    """

    def __init__(self, *, dry_run: bool = False, markers: MarkerManager | None = None) -> None:
        self.dry_run = dry_run
        self.markers = markers or MarkerManager()
        self.results: List[ReconcileResult] = []
        self._values: Dict[Path, Dict[str, str]] = {}
        # claimant per key; an unnamed caller gets a fresh token on every call
        self._owners: Dict[Path, Dict[str, object]] = {}
        self._originals: Dict[Path, Optional[str]] = {}
        self._pending: Dict[Path, str] = {}
        self.logger = get_logger("files")

    def reconcile(
        self, path: Path, properties: Properties, *, owner: str | None = None
    ) -> ReconcileResult:
        """Stage the reconciled content of ``path``; :meth:`flush` writes it."""
        path = Path(path)
        entries = self._validated(path, properties, owner)
        existing = self._read(path, owner)
        merged = self._merge(path, entries, owner)

        if existing is None:
            newline = "\n"
            lines = self.markers.wrap(merged)
        else:
            newline = "\r\n" if "\r\n" in existing else "\n"
            lines = self._reconciled_lines(path, existing, newline, merged, owner)

        content = newline.join(lines) + newline
        changed = content != existing
        diff = ""
        if changed:
            diff = "".join(
                difflib.unified_diff(
                    (existing or "").splitlines(keepends=True),
                    content.splitlines(keepends=True),
                    fromfile=f"a/{path.name}",
                    tofile=f"b/{path.name}",
                )
            )
            self._pending[path] = content
        else:
            self._pending.pop(path, None)
            self.logger.debug("Managed block in %s already up to date", path)

        result = ReconcileResult(
            path=path,
            created=existing is None,
            changed=changed,
            diff=diff,
            dry_run=self.dry_run,
        )
        self.results = [item for item in self.results if item.path != path]
        self.results.append(result)
        return result

    def flush(self) -> List[Path]:
        """Write every staged file that differs from disk and return the written paths."""
        pending, self._pending = self._pending, {}
        self._originals.clear()
        written: List[Path] = []
        for path, content in pending.items():
            if self.dry_run:
                self.logger.info("Would update managed block in %s", path)
                continue
            try:
                atomic_write_text(path, content)
            except OSError as exc:
                raise ConventionIOError(
                    exc, module=self._owner_names(path), operation="write managed file"
                ) from exc
            self.logger.info("Updated managed block in %s", path)
            written.append(path)
        return written

    # ------------------------------------------------------------------
    # Internal helpers

    def _read(self, path: Path, owner: str | None) -> Optional[str]:
        if path not in self._originals:
            try:
                self._originals[path] = read_text_if_exists(path)
            except UnicodeDecodeError as exc:
                raise ReconciliationError(
                    f"file is not valid UTF-8 (byte {exc.start}: {exc.reason})",
                    path=path,
                    module=owner,
                ) from exc
        return self._originals[path]

    def _owner_names(self, path: Path) -> str | None:
        claimants = self._owners.get(path, {}).values()
        names = sorted({claimant for claimant in claimants if isinstance(claimant, str)})
        return ", ".join(names) or None

    def _validated(
        self, path: Path, properties: Properties, owner: str | None
    ) -> List[Tuple[str, str]]:
        items = properties.items() if isinstance(properties, Mapping) else properties
        entries: List[Tuple[str, str]] = []
        seen = set()
        for key, value in items:
            problem = entry_problem(key, value)
            if problem is not None:
                raise ReconciliationError(problem, path=path, module=owner)
            if key in seen:
                raise ReconciliationError(
                    f"property '{key}' is generated more than once", path=path, module=owner
                )
            seen.add(key)
            entries.append((key, value))
        return entries

    def _merge(
        self, path: Path, entries: List[Tuple[str, str]], owner: str | None
    ) -> Dict[str, str]:
        claimant: object = owner if owner is not None else object()
        owners = self._owners.setdefault(path, {})
        previous = self._values.get(path, {})
        merged = {key: value for key, value in previous.items() if owners.get(key) != claimant}
        for key, value in entries:
            if key in merged:
                holder = owners.get(key)
                name = holder if isinstance(holder, str) else "another caller"
                raise ReconciliationError(
                    f"property '{key}' is already managed by {name}",
                    path=path,
                    module=owner,
                )
            merged[key] = value
        for key in [key for key, claimed in owners.items() if claimed == claimant]:
            del owners[key]
        for key, _ in entries:
            owners[key] = claimant
        self._values[path] = merged
        return dict(merged)

    def _reconciled_lines(
        self,
        path: Path,
        existing: str,
        newline: str,
        merged: Mapping[str, str],
        owner: str | None,
    ) -> List[str]:
        body = existing[: -len(newline)] if existing.endswith(newline) else existing
        lines = body.split(newline) if body else []
        try:
            split = self.markers.split(lines)
        except ValueError as exc:
            raise ReconciliationError(str(exc), path=path, module=owner) from exc

        # continuation lines belong to the logical line they extend
        unmanaged = logical_lines(split.before) + logical_lines(split.after)
        shadowed = sorted(
            {
                entry[0]
                for entry in map(parse_property_line, unmanaged)
                if entry is not None and entry[0] in merged
            }
        )
        if shadowed:
            raise ReconciliationError(
                "unmanaged lines redefine managed properties: " + ", ".join(shadowed),
                path=path,
                module=owner,
            )

        block = self.markers.wrap(merged)
        if split.block is None:
            before = list(lines)
            if before and before[-1].strip():
                before.append("")
            return before + block
        return split.before + block + split.after


__all__ = ["ManagedFileReconciler", "Properties"]

"""Managed block markers for generated property files."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

DELIMITER = "projectcfg:"


@dataclass
class SplitFile:
    """A property file cut around its managed block."""

    before: List[str] = field(default_factory=list)
    block: Optional[List[str]] = None
    after: List[str] = field(default_factory=list)

    @property
    def unmanaged(self) -> List[str]:
        return self.before + self.after


class MarkerManager:
    """Renders and locates the single managed block in a property file."""

    BEGIN = f"# {DELIMITER}begin:managed"
    END = f"# {DELIMITER}end:managed"
    HEADER = "# Generated by projectcfg. Edits inside this block are overwritten."

    def wrap(self, properties: Mapping[str, str]) -> List[str]:
        """Render ``properties`` as ``key=value`` lines between the markers."""
        lines = [self.BEGIN, self.HEADER]
        lines.extend(f"{key}={value}" for key, value in properties.items())
        lines.append(self.END)
        return lines

    def split(self, lines: Sequence[str]) -> SplitFile:
        """Partition ``lines`` into content before, inside and after the block.

        Raises ValueError for an unterminated block, a stray end marker or more
        than one block.
        """
        begin_index: Optional[int] = None
        end_index: Optional[int] = None
        for index, line in enumerate(lines):
            stripped = line.strip()
            if stripped == self.BEGIN:
                if begin_index is not None:
                    raise ValueError(f"more than one managed block (line {index + 1})")
                begin_index = index
            elif stripped == self.END:
                if begin_index is None or end_index is not None:
                    raise ValueError(f"end marker without matching begin marker (line {index + 1})")
                end_index = index
        if begin_index is None:
            return SplitFile(before=list(lines))
        if end_index is None:
            raise ValueError(f"managed block starting at line {begin_index + 1} is not terminated")
        return SplitFile(
            before=list(lines[:begin_index]),
            block=list(lines[begin_index + 1 : end_index]),
            after=list(lines[end_index + 1 :]),
        )

    def extract(self, lines: Sequence[str]) -> Dict[str, str]:
        """Return the properties currently inside the managed block."""
        block = self.split(lines).block or []
        entries = map(parse_property_line, logical_lines(block))
        return dict(entry for entry in entries if entry is not None)


def parse_property_line(line: str) -> Optional[Tuple[str, str]]:
    """Parse a ``key=value`` / ``key: value`` / ``key value`` line; None for comments."""
    stripped = line.strip()
    if not stripped or stripped.startswith(("#", "!")):
        return None
    for index, char in enumerate(stripped):
        if char in "=:":
            return stripped[:index].strip(), stripped[index + 1 :].strip()
        if char.isspace():
            rest = stripped[index:].lstrip()
            if rest[:1] in ("=", ":"):
                rest = rest[1:]
            return stripped[:index], rest.strip()
    return stripped, ""


def logical_lines(lines: Iterable[str]) -> List[str]:
    """Join backslash-continued lines into one line, as ``java.util.Properties`` reads them."""
    joined: List[str] = []
    pending: Optional[str] = None
    for line in lines:
        text = line if pending is None else pending + line.lstrip()
        # comment lines never continue
        is_comment = pending is None and text.lstrip().startswith(("#", "!"))
        if not is_comment and _continues(text):
            pending = text[:-1]
            continue
        joined.append(text)
        pending = None
    if pending is not None:
        joined.append(pending)
    return joined


def _continues(line: str) -> bool:
    # an even run of trailing backslashes is escaped backslashes, not a continuation
    trailing = len(line) - len(line.rstrip("\\"))
    return trailing % 2 == 1


def entry_problem(key: str, value: str) -> Optional[str]:
    """Describe why ``key=value`` cannot be written into a managed block."""
    if not isinstance(key, str) or not key:
        return "empty property key"
    if not isinstance(value, str):
        return f"value for '{key}' must be a string, got {type(value).__name__}"
    if DELIMITER in key or DELIMITER in value:
        return f"property '{key}' contains the block delimiter '{DELIMITER}'"
    if any(char in key for char in "=:") or any(char.isspace() for char in key):
        return f"property key '{key}' contains '=', ':' or whitespace"
    if "\n" in value or "\r" in value:
        return f"value for '{key}' contains a line break"
    if _continues(value):
        return f"value for '{key}' ends with a line continuation"
    return None


__all__ = [
    "DELIMITER",
    "MarkerManager",
    "SplitFile",
    "entry_problem",
    "logical_lines",
    "parse_property_line",
]

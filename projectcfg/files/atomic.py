"""Filesystem helpers: read-or-absent and crash-safe full-content writes."""

from __future__ import annotations

import os
import stat
import tempfile
from pathlib import Path
from typing import Optional


def read_text_if_exists(path: Path) -> Optional[str]:
    """Return the file's text with line endings untouched, or None when missing."""
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        return None
    return data.decode("utf-8")


def fsync_dir(path: Path) -> None:
    try:
        fd = os.open(str(path), os.O_RDONLY)
    except OSError:
        return
    try:
        os.fsync(fd)
    except OSError:
        pass
    finally:
        os.close(fd)


def atomic_write_text(path: Path, text: str) -> None:
    """Write ``text`` to a sibling temp file, then move it over ``path``.

    The replacement keeps the permission bits of an existing file; a new file
    gets the default mode for the current umask.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    mode = _target_mode(path)
    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            newline="",
            dir=str(path.parent),
            prefix=path.name + ".",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            temp_path = Path(tmp.name)
            os.chmod(tmp.name, mode)
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(str(temp_path), str(path))
        fsync_dir(path.parent)
    finally:
        if temp_path is not None and temp_path.exists():
            temp_path.unlink(missing_ok=True)


def _target_mode(path: Path) -> int:
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_if_changed(path: Path, text: str) -> bool:
    """Atomically write ``text`` unless the file already holds exactly that."""
    if read_text_if_exists(path) == text:
        return False
    atomic_write_text(path, text)
    return True


__all__ = ["atomic_write_text", "fsync_dir", "read_text_if_exists", "write_if_changed"]

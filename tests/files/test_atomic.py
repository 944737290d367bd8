"""Tests for atomic file helpers."""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from projectcfg.files import atomic_write_text, read_text_if_exists, write_if_changed


def test_read_text_if_exists_returns_none_for_missing_file(tmp_path: Path) -> None:
    assert read_text_if_exists(tmp_path / "missing.properties") is None


def test_atomic_write_creates_parents_and_leaves_no_temp_files(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "dir" / "file.properties"

    atomic_write_text(target, "a=b\r\n")

    assert target.read_bytes() == b"a=b\r\n"
    assert [item.name for item in target.parent.iterdir()] == ["file.properties"]


def test_write_if_changed_skips_identical_content(tmp_path: Path) -> None:
    target = tmp_path / "checkstyle.xml"

    assert write_if_changed(target, "<module/>\n") is True
    assert write_if_changed(target, "<module/>\n") is False
    assert write_if_changed(target, "<module name='x'/>\n") is True
    assert target.read_text(encoding="utf-8") == "<module name='x'/>\n"


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_atomic_write_keeps_existing_permissions(tmp_path: Path) -> None:
    target = tmp_path / "application.properties"
    target.write_text("a=b\n", encoding="utf-8")
    target.chmod(0o644)

    atomic_write_text(target, "a=c\n")

    assert stat.S_IMODE(target.stat().st_mode) == 0o644
    assert target.read_text(encoding="utf-8") == "a=c\n"


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_atomic_write_uses_umask_for_new_files(tmp_path: Path) -> None:
    target = tmp_path / "new.properties"
    umask = os.umask(0o022)
    try:
        atomic_write_text(target, "a=b\n")
    finally:
        os.umask(umask)

    assert stat.S_IMODE(target.stat().st_mode) == 0o644

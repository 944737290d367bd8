"""Tests for projectcfg.files.reconciler."""

from __future__ import annotations

from pathlib import Path

import pytest

import projectcfg.files.reconciler as reconciler_module
from projectcfg.errors import ConventionIOError, ReconciliationError
from projectcfg.files import ManagedFileReconciler, MarkerManager
from projectcfg.models import ReconcileResult

BEGIN = MarkerManager.BEGIN
END = MarkerManager.END
HEADER = MarkerManager.HEADER


@pytest.fixture
def target(tmp_path: Path) -> Path:
    return tmp_path / "src" / "main" / "resources" / "application.properties"


@pytest.fixture
def writes(monkeypatch) -> list[Path]:
    recorded: list[Path] = []
    original = reconciler_module.atomic_write_text

    def _recording_write(path: Path, text: str) -> None:
        recorded.append(path)
        original(path, text)

    monkeypatch.setattr(reconciler_module, "atomic_write_text", _recording_write)
    return recorded


def _block(*lines: str) -> str:
    return "\n".join([BEGIN, HEADER, *lines, END]) + "\n"


def _apply(target: Path, properties, **kwargs) -> ReconcileResult:
    reconciler = ManagedFileReconciler()
    result = reconciler.reconcile(target, properties, **kwargs)
    reconciler.flush()
    return result


def test_creates_missing_file_with_managed_block_only(target: Path) -> None:
    result = _apply(target, {"server.port": "8080", "a.b": "c"})

    assert result.created is True
    assert result.changed is True
    assert target.read_text(encoding="utf-8") == _block("server.port=8080", "a.b=c")


def test_nothing_is_written_before_flush(target: Path) -> None:
    reconciler = ManagedFileReconciler()
    reconciler.reconcile(target, {"a": "b"})

    assert not target.exists()
    assert reconciler.flush() == [target]
    assert target.exists()


def test_second_run_does_not_write(target: Path, writes: list[Path]) -> None:
    _apply(target, {"server.port": "8080"})
    writes.clear()

    result = _apply(target, {"server.port": "8080"})

    assert result.changed is False
    assert result.diff == ""
    assert writes == []


def test_appends_block_to_hand_written_file(target: Path) -> None:
    target.parent.mkdir(parents=True)
    target.write_text("# mine\nfoo=bar\n\nbaz=qux\n", encoding="utf-8")

    _apply(target, {"server.port": "8080"})
    first = target.read_text(encoding="utf-8")
    _apply(target, {"server.port": "8080"})

    assert first == "# mine\nfoo=bar\n\nbaz=qux\n\n" + _block("server.port=8080")
    assert target.read_text(encoding="utf-8") == first


def test_stale_block_converges_to_generated_map(target: Path) -> None:
    target.parent.mkdir(parents=True)
    target.write_text(
        "top=1\n" + _block("old.key=x", "server.port=9090") + "bottom=2\n",
        encoding="utf-8",
    )

    result = _apply(target, {"server.port": "8080", "new.key": "y"})

    assert result.changed is True
    assert "-server.port=9090" in result.diff
    assert "+server.port=8080" in result.diff
    assert target.read_text(encoding="utf-8") == (
        "top=1\n" + _block("server.port=8080", "new.key=y") + "bottom=2\n"
    )


def test_manual_edit_survives_rerun(target: Path) -> None:
    _apply(target, {"server.port": "8080"})
    content = target.read_text(encoding="utf-8")
    target.write_text("custom.flag=true\n" + content, encoding="utf-8")

    _apply(target, {"server.port": "8081"})

    text = target.read_text(encoding="utf-8")
    assert text.startswith("custom.flag=true\n")
    assert "server.port=8081" in text
    assert "server.port=8080" not in text


def test_preserves_windows_line_endings(target: Path) -> None:
    target.parent.mkdir(parents=True)
    target.write_bytes(b"foo=bar\r\n")

    _apply(target, {"a": "b"})

    data = target.read_bytes()
    assert data.startswith(b"foo=bar\r\n\r\n")
    assert b"\na=b\r\n" in data
    assert b"\n" not in data.replace(b"\r\n", b"")


def test_dry_run_reports_diff_without_writing(target: Path) -> None:
    reconciler = ManagedFileReconciler(dry_run=True)
    result = reconciler.reconcile(target, {"a": "b"})

    assert reconciler.flush() == []
    assert result.changed is True
    assert result.dry_run is True
    assert "+a=b" in result.diff
    assert not target.exists()


def test_duplicate_generated_keys_are_rejected(target: Path) -> None:
    with pytest.raises(ReconciliationError, match="more than once"):
        _apply(target, [("a", "1"), ("a", "2")])
    assert not target.exists()


@pytest.mark.parametrize(
    "key, value",
    [
        ("projectcfg:begin", "x"),
        ("a", "# projectcfg:end:managed"),
        ("has space", "x"),
        ("a=b", "x"),
        ("", "x"),
        ("a", "line\nbreak"),
        ("a", "trailing\\"),
    ],
)
def test_invalid_entries_are_rejected(target: Path, key: str, value: str) -> None:
    with pytest.raises(ReconciliationError):
        _apply(target, {key: value})


def test_unmanaged_line_shadowing_managed_key_is_rejected(target: Path) -> None:
    target.parent.mkdir(parents=True)
    target.write_text("server.port = 9000\n", encoding="utf-8")

    with pytest.raises(ReconciliationError, match="server.port") as excinfo:
        _apply(target, {"server.port": "8080"}, owner="spring-boot")

    assert excinfo.value.module == "spring-boot"
    assert excinfo.value.path == target
    assert target.read_text(encoding="utf-8") == "server.port = 9000\n"


def test_continued_value_is_not_mistaken_for_a_managed_key(target: Path) -> None:
    target.parent.mkdir(parents=True)
    target.write_text("greeting=hello \\\n    server.port\n", encoding="utf-8")

    result = _apply(target, {"server.port": "8080"})

    assert result.changed is True
    assert target.read_text(encoding="utf-8").startswith("greeting=hello \\\n    server.port\n\n")


def test_escaped_backslash_does_not_continue_the_line(target: Path) -> None:
    target.parent.mkdir(parents=True)
    target.write_text("path=C:\\\\\nserver.port=9000\n", encoding="utf-8")

    with pytest.raises(ReconciliationError, match="server.port"):
        _apply(target, {"server.port": "8080"})


def test_file_that_is_not_utf8_is_reported_with_path_and_owner(target: Path) -> None:
    target.parent.mkdir(parents=True)
    target.write_bytes(b"name=caf\xe9\n")

    with pytest.raises(ReconciliationError, match="not valid UTF-8") as excinfo:
        _apply(target, {"a": "b"}, owner="quarkus")

    assert excinfo.value.module == "quarkus"
    assert excinfo.value.path == target
    assert target.read_bytes() == b"name=caf\xe9\n"


def test_unterminated_block_is_rejected(target: Path) -> None:
    target.parent.mkdir(parents=True)
    target.write_text(f"{BEGIN}\na=b\n", encoding="utf-8")

    with pytest.raises(ReconciliationError, match="not terminated"):
        _apply(target, {"a": "b"})


def test_modules_sharing_a_file_are_merged_in_order(target: Path, writes: list[Path]) -> None:
    reconciler = ManagedFileReconciler()
    reconciler.reconcile(target, {"a": "1"}, owner="first")
    result = reconciler.reconcile(target, {"b": "2"}, owner="second")
    reconciler.flush()

    assert target.read_text(encoding="utf-8") == _block("a=1", "b=2")
    assert reconciler.results == [result]
    assert writes == [target]


def test_shared_file_rerun_writes_nothing(target: Path, writes: list[Path]) -> None:
    for _ in range(2):
        reconciler = ManagedFileReconciler()
        reconciler.reconcile(target, {"a": "1"}, owner="first")
        result = reconciler.reconcile(target, {"b": "2"}, owner="second")
        reconciler.flush()

    assert writes == [target]
    assert result.changed is False


def test_key_claimed_by_two_modules_is_rejected(target: Path) -> None:
    reconciler = ManagedFileReconciler()
    reconciler.reconcile(target, {"a": "1"}, owner="first")

    with pytest.raises(ReconciliationError, match="already managed by first"):
        reconciler.reconcile(target, {"a": "2"}, owner="second")


def test_unnamed_callers_are_distinct_claimants(target: Path) -> None:
    reconciler = ManagedFileReconciler()
    reconciler.reconcile(target, {"a": "1"})

    with pytest.raises(ReconciliationError, match="already managed by another caller"):
        reconciler.reconcile(target, {"a": "2"})


def test_same_owner_replaces_its_earlier_keys(target: Path) -> None:
    reconciler = ManagedFileReconciler()
    reconciler.reconcile(target, {"a": "1", "old": "x"}, owner="first")
    reconciler.reconcile(target, {"a": "2"}, owner="first")
    reconciler.flush()

    assert target.read_text(encoding="utf-8") == _block("a=2")


def test_write_failure_names_the_owning_modules(target: Path, monkeypatch) -> None:
    def _failing_write(path: Path, text: str) -> None:
        raise PermissionError("denied")

    monkeypatch.setattr(reconciler_module, "atomic_write_text", _failing_write)
    reconciler = ManagedFileReconciler()
    reconciler.reconcile(target, {"a": "1"}, owner="spring-boot")

    with pytest.raises(ConventionIOError) as excinfo:
        reconciler.flush()

    assert excinfo.value.module == "spring-boot"
    assert excinfo.value.operation == "write managed file"

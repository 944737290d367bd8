"""Tests for projectcfg.logging."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

import pytest

from projectcfg.logging import configure_logging, convention_logger, get_logger


class _ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.records: List[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def records():
    logger = configure_logging(verbose=True)
    handler = _ListHandler()
    logger.addHandler(handler)
    yield handler.records
    logger.removeHandler(handler)


def test_get_logger_is_namespaced() -> None:
    assert get_logger().name == "projectcfg"
    assert get_logger("ledger").name == "projectcfg.ledger"


def test_convention_logger_prefixes_module(records: List[logging.LogRecord]) -> None:
    convention_logger("junit5").info("setting [%s]", "test")

    assert len(records) == 1
    record = records[0]
    assert record.name == "projectcfg.conventions.junit5"
    assert record.getMessage() == "[junit5] setting [test]"
    assert record.convention == "junit5"


def test_configure_logging_resets_handlers() -> None:
    configure_logging()
    logger = configure_logging(level=logging.WARNING)

    assert logger.level == logging.WARNING
    assert len(logger.handlers) == 1
    assert logger.propagate is False


def test_configure_logging_writes_log_file(tmp_path: Path) -> None:
    log_file = tmp_path / "projectcfg.log"
    logger = configure_logging(verbose=True, log_file=log_file)

    get_logger("orchestrator").debug("hello file")
    for handler in logger.handlers:
        handler.flush()

    assert "hello file" in log_file.read_text(encoding="utf-8")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

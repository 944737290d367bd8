"""Logging utilities for projectcfg runs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, MutableMapping

_LOGGER_NAME = "projectcfg"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the projectcfg hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


class ConventionLogger(logging.LoggerAdapter):
    """Prefixes every message with the convention module that emitted it."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("convention", self.extra["convention"])
        kwargs["extra"] = extra
        return f"[{self.extra['convention']}] {msg}", kwargs


def convention_logger(module_name: str) -> ConventionLogger:
    """Return the `(level, module, message)` log sink for a convention module."""
    logger = get_logger(f"conventions.{module_name}")
    return ConventionLogger(logger, {"convention": module_name})


def configure_logging(
    *,
    verbose: bool = False,
    log_file: Path | None = None,
    level: int | None = None,
) -> logging.Logger:
    """Configure the projectcfg logger with console output and optional file sink."""
    if level is None:
        level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers to avoid duplicate output when the CLI is invoked repeatedly.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("[projectcfg] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


__all__ = ["ConventionLogger", "configure_logging", "convention_logger", "get_logger"]

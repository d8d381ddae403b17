"""Logging helpers for the parseme pipeline."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from .models import Diagnostic

_LOGGER_NAME = "parseme"
# Marks handlers installed by configure_logging so a reconfigure leaves others alone.
_OWNED_ATTR = "_parseme_owned"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class DiagnosticFormatter(logging.Formatter):
    """Prefixes records emitted by :func:`log_diagnostics` with the diagnostic code and path."""

    def format(self, record: logging.LogRecord) -> str:
        code = getattr(record, "diagnostic_code", None)
        if code is None:
            return super().format(record)
        path = getattr(record, "diagnostic_path", None)
        label = f"{code} ({path})" if path else code
        original = record.msg, record.args
        record.msg, record.args = f"{label}: {record.getMessage()}", None
        try:
            return super().format(record)
        finally:
            record.msg, record.args = original


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger nested under the ``parseme`` hierarchy."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME)


def configure_logging(*, verbose: bool = False, log_file: Path | None = None) -> logging.Logger:
    """Route parseme records and diagnostics to stderr and, optionally, ``log_file``.

    Verbose runs include debug records and the emitting module in the console
    output. Calling this again swaps the handlers it installed earlier; any
    handler attached by an embedding application stays in place.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        if getattr(handler, _OWNED_ATTR, False):
            logger.removeHandler(handler)
            handler.close()

    console_format = "[parseme] %(levelname)s %(message)s"
    if verbose:
        console_format = "[parseme] %(levelname)s %(name)s: %(message)s"
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    formatters = [DiagnosticFormatter(console_format)]
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
        formatters.append(DiagnosticFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))

    for handler, formatter in zip(handlers, formatters):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        setattr(handler, _OWNED_ATTR, True)
        logger.addHandler(handler)
    return logger


def log_diagnostics(logger: logging.Logger, diagnostics: Iterable[Diagnostic]) -> None:
    """Emit collected pipeline diagnostics through ``logger``."""
    for diagnostic in diagnostics:
        logger.log(
            _LEVELS.get(diagnostic.level, logging.WARNING),
            diagnostic.message,
            extra={"diagnostic_code": diagnostic.code, "diagnostic_path": diagnostic.path},
        )


__all__ = ["DiagnosticFormatter", "configure_logging", "get_logger", "log_diagnostics"]

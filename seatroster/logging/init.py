from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Console logging for the seatroster CLI.

Each line is ``LABEL message`` with LABEL one of DEBUG|INFO|WARN|ERROR|SUMMARY.
Module loggers (``seatroster.services.importer`` ...) propagate into the
``seatroster`` logger, which owns the single console handler. Row and batch
errors are also collected as JSON Lines by :mod:`seatroster.logging.error_log`.
"""

__all__ = [
    "setup_logging",
    "get_logger",
    "log_summary",
    "reset_logging",
    "LabeledFormatter",
    "SUMMARY_LEVEL",
]

LOGGER_NAME = "seatroster"

SUMMARY_LEVEL = 25  # INFO と WARNING の間
SUMMARY_LABEL = "SUMMARY"

_LABELS: dict[int, str] = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    SUMMARY_LEVEL: SUMMARY_LABEL,
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "CRITICAL",
}

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """``LABEL message``; a traceback, when attached, follows on indented lines."""

    def format(self, record: logging.LogRecord) -> str:
        line = f"{_LABELS.get(record.levelno, record.levelname)} {record.getMessage()}"
        if record.exc_info:
            trace = self.formatException(record.exc_info)
            line += "\n" + "\n".join("  " + t for t in trace.splitlines())
        return line


def _apply_level(logger: logging.Logger, debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(level)
    for h in logger.handlers:
        h.setLevel(level)
    if debug:
        logger.debug("debug mode enabled")


def setup_logging(debug: bool = False, stream: TextIO | None = None) -> logging.Logger:
    """Attach the labelled console handler to the ``seatroster`` logger.

    Calling it again returns the same logger; ``debug=True`` on a later call
    still lowers the level. ``stream`` defaults to the current ``sys.stdout``.
    """
    global _logger

    if _logger is None:
        logging.addLevelName(SUMMARY_LEVEL, SUMMARY_LABEL)
        logger = logging.getLogger(LOGGER_NAME)
        for old in list(logger.handlers):
            logger.removeHandler(old)
        handler = logging.StreamHandler(stream or sys.stdout)
        handler.setFormatter(LabeledFormatter())
        logger.addHandler(handler)
        logger.propagate = False
        _logger = logger
        _apply_level(logger, debug)
    elif debug:
        _apply_level(_logger, True)
    return _logger


def get_logger() -> logging.Logger:
    return _logger if _logger is not None else setup_logging()


def log_summary(line: str) -> None:
    """Emit a SUMMARY line.

    Accepts either the rendered ``SUMMARY key=value ...`` line or just its
    key/value part; the label is never doubled.
    """
    prefix = SUMMARY_LABEL + " "
    if line.startswith(prefix):
        line = line[len(prefix):]
    get_logger().log(SUMMARY_LEVEL, line)


def reset_logging() -> None:
    """Forget the configured logger and detach its handler (tests)."""
    global _logger
    if _logger is not None:
        for h in list(_logger.handlers):
            _logger.removeHandler(h)
    _logger = None

from __future__ import annotations

import logging
import sys

"""Logging initialization with labeled prefixes.

All output goes through the "stocksync" logger with one-word labels
(INFO|WARN|ERROR|SUMMARY) in front of each message. Module loggers created with
``logging.getLogger(__name__)`` inside the package are children of it, so they
share its handler.
"""

__all__ = [
    "APP_LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "setup_logging",
    "get_logger",
    "log_summary",
    "set_debug",
    "reset_logging",
]

APP_LOGGER_NAME = "stocksync"

# Custom SUMMARY level (between INFO=20 and WARNING=30)
SUMMARY_LEVEL = 25

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """Formatter producing "<LABEL> <message>" lines."""

    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
        SUMMARY_LEVEL: "SUMMARY",
    }

    def format(self, record: logging.LogRecord) -> str:
        level_label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        return f"{level_label} {record.getMessage()}"


def setup_logging() -> logging.Logger:
    """Configure the application logger (idempotent).

    Returns:
        The "stocksync" logger writing labeled lines to stdout.
    """
    global _logger

    if _logger is not None:
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")

    logger = logging.getLogger(APP_LOGGER_NAME)
    logger.setLevel(logging.INFO)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.INFO)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)

    # Prevent propagation to root logger to avoid duplicate output
    logger.propagate = False

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    if _logger is None:
        return setup_logging()
    return _logger


def log_summary(message: str) -> None:
    """Log a message at SUMMARY level."""
    get_logger().log(SUMMARY_LEVEL, message)


def set_debug(enabled: bool = True) -> None:
    """Switch the application logger and its handlers to DEBUG (or back to INFO)."""
    logger = get_logger()
    level = logging.DEBUG if enabled else logging.INFO
    for h in logger.handlers:
        h.setLevel(level)
    logger.setLevel(level)


def reset_logging() -> None:
    """Reset the global logger state. Mainly for testing purposes."""
    global _logger
    _logger = None

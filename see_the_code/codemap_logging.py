"""Centralized logging configuration for see-the-code.

Provides:
- Console logging on stderr with a compact format
- Optional rotating file log (text or structured JSON)
- Category loggers for the generator, validator and overlay
"""

import json
import logging
import logging.handlers
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path

ROOT_LOGGER_NAME = "see_the_code"


class LogCategory(Enum):
    """Log categories for the cooperating components."""

    GENERATE = "generate"
    VALIDATE = "validate"
    OVERLAY = "overlay"
    RUNTIME = "runtime"


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Produces one JSON object per record with a fixed set of fields plus
    the extras the generator attaches (file path, selector counts, timing).
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON.

        Args:
            record: The log record to format.

        Returns:
            JSON string representation of the log entry.
        """
        log_entry: dict = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        extra_fields = ["duration_ms", "file_path", "selector_count", "selector"]
        for field in extra_fields:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


def setup_logging(
    level: str = "INFO",
    quiet: bool = False,
    verbose: bool = False,
    log_file: Path | None = None,
    log_format: str = "text",
    rotation_count: int = 3,
    max_bytes: int = 10485760,
) -> logging.Logger:
    """Setup logging for the see_the_code logger tree.

    Args:
        level: Base log level (DEBUG, INFO, WARNING, ERROR).
        quiet: Suppress console output below ERROR.
        verbose: Enable debug-level console output.
        log_file: Optional log file path; enables the rotating file handler.
        log_format: File output format ("text" or "json").
        rotation_count: Number of backup files (default 3).
        max_bytes: Max file size before rotation (default 10MB).

    Returns:
        Configured root logger for the package.
    """
    import logging.config

    if quiet:
        effective_level = "ERROR"
    elif verbose:
        effective_level = "DEBUG"
    else:
        effective_level = level

    config: dict = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "detailed": {
                "format": "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "simple": {"format": "%(levelname)s | %(message)s"},
            "json": {
                "()": JSONFormatter,
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "simple",
                "level": effective_level,
                "stream": "ext://sys.stderr",
            }
        },
        "loggers": {
            ROOT_LOGGER_NAME: {
                "handlers": ["console"],
                "level": "DEBUG",
                "propagate": False,
            }
        },
    }

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "json" if log_format == "json" else "detailed",
            "level": "DEBUG",
            "filename": str(log_file),
            "maxBytes": max_bytes,
            "backupCount": rotation_count,
        }
        config["loggers"][ROOT_LOGGER_NAME]["handlers"].append("file")

    logging.config.dictConfig(config)
    return logging.getLogger(ROOT_LOGGER_NAME)


def get_logger() -> logging.Logger:
    """Get the package logger instance."""
    return logging.getLogger(ROOT_LOGGER_NAME)


def get_category_logger(category: LogCategory) -> logging.Logger:
    """Get a logger for a specific category.

    Args:
        category: The log category (GENERATE, VALIDATE, OVERLAY, RUNTIME).

    Returns:
        Logger instance for the category.

    Example:
        >>> from see_the_code.codemap_logging import get_category_logger, LogCategory
        >>> logger = get_category_logger(LogCategory.OVERLAY)
        >>> logger.info("Overlay initialized")
    """
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{category.value}")

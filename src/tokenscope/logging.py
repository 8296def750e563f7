"""
Logging Configuration for Tokenscope.

Centralized logging setup shared by the scanner, the git change detector
and the CLI:
- Rich console output (or plain structured lines when Rich is disabled)
- Optional daily log file under ~/.tokenscope/logs
- Structured ``extra={...}`` fields rendered as ``key=value`` pairs
- Timing helpers for long operations (repository scans, history walks)

Usage:
    from tokenscope.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Repository scanned", extra={"repository": "marketing-website", "tokens": 42})

Configuration:
    LOG_LEVEL           DEBUG, INFO (default), WARNING, ERROR, CRITICAL
    TOKENSCOPE_LOG_FILE set to "1" to also write a daily log file
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler

from .constants import DEFAULT_LOG_DIRECTORY


DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
ROOT_LOGGER_NAME = "tokenscope"

# Attributes every LogRecord has; anything else came in through ``extra``
_RESERVED_RECORD_KEYS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "message", "asctime", "taskName",
})


class StructuredFormatter(logging.Formatter):
    """
    Formatter that appends ``extra`` fields as ``key=value`` pairs.

    Example output:
        2026-10-19 10:30:45 | INFO     | tokenscope.services.scanner |
        Repository scanned | repository=marketing-website | tokens=42
    """

    def format(self, record: logging.LogRecord) -> str:
        base_message = super().format(record)

        extra_fields = [
            f"{key}={value}"
            for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_KEYS
        ]

        if extra_fields:
            return f"{base_message} | {' | '.join(extra_fields)}"
        return base_message


_loggers_initialized = False


def setup_logging(
    log_level: Optional[str] = None,
    log_to_file: Optional[bool] = None,
    log_dir: Optional[Path] = None,
    use_rich_console: bool = True,
) -> None:
    """
    Configure the ``tokenscope`` logger hierarchy.

    Only the first call has an effect; use ``reset_logging`` to reconfigure.

    Args:
        log_level: Logging level name. Defaults to the LOG_LEVEL environment
                   variable or INFO.
        log_to_file: Write a daily log file. Defaults to the
                     TOKENSCOPE_LOG_FILE environment variable.
        log_dir: Directory for log files. Defaults to ~/.tokenscope/logs/
        use_rich_console: Use Rich for console output.
    """
    global _loggers_initialized

    if _loggers_initialized:
        return

    level_str = log_level or os.environ.get("LOG_LEVEL", DEFAULT_LOG_LEVEL)
    level = getattr(logging, level_str.upper(), logging.INFO)

    if log_to_file is None:
        log_to_file = os.environ.get("TOKENSCOPE_LOG_FILE", "") == "1"

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if use_rich_console:
        console_handler: logging.Handler = RichHandler(
            console=Console(stderr=True),
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
        )
        console_handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(StructuredFormatter(LOG_FORMAT, LOG_DATE_FORMAT))

    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    if log_to_file:
        log_directory = log_dir or DEFAULT_LOG_DIRECTORY
        log_directory.mkdir(parents=True, exist_ok=True)

        log_file = log_directory / f"tokenscope-{datetime.now():%Y-%m-%d}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(StructuredFormatter(LOG_FORMAT, LOG_DATE_FORMAT))
        file_handler.setLevel(level)
        root_logger.addHandler(file_handler)

    _loggers_initialized = True

    root_logger.debug(
        "Tokenscope logging initialized",
        extra={"log_level": level_str, "log_to_file": log_to_file},
    )


def reset_logging() -> None:
    """Remove configured handlers so ``setup_logging`` can run again."""
    global _loggers_initialized

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    _loggers_initialized = False


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module, configuring logging on first use.

    Args:
        name: Logger name, typically ``__name__`` of the calling module.

    Returns:
        A configured Logger instance.
    """
    if not _loggers_initialized:
        setup_logging()

    return logging.getLogger(name)


def log_operation_start(
    logger: logging.Logger,
    operation: str,
    **context: Any
) -> datetime:
    """
    Log the start of an operation and return the start time.

    Example:
        start = log_operation_start(logger, "repository scan", repository="web")
        ...
        log_operation_end(logger, "repository scan", start, tokens=42)
    """
    logger.info(f"{operation} started", extra=context)
    return datetime.now()


def log_operation_end(
    logger: logging.Logger,
    operation: str,
    start_time: datetime,
    success: bool = True,
    **context: Any
) -> float:
    """
    Log the end of an operation with its duration in seconds.

    Failures are logged at ERROR level. Returns the duration.
    """
    duration = (datetime.now() - start_time).total_seconds()
    status = "completed" if success else "failed"

    log_method = logger.info if success else logger.error
    log_method(
        f"{operation} {status}",
        extra={"duration_seconds": round(duration, 3), **context}
    )

    return duration

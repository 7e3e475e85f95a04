"""Logging utilities for gitmeta.

This module provides standalone structlog logger factories that write
JSON-formatted or text-formatted logs to stderr or to a log file. Each logger
is self-contained and does not modify global structlog configuration, so an
application embedding gitmeta keeps full control of its own logging setup.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Literal, cast

import structlog

from gitmeta.config import LoggingConfig

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger


LogFormatType = Literal["json", "text"]


def _log_level_from_string(level: str, *, respect_env: bool = True) -> int:
    """Convert a log level string to a logging level integer.

    Args:
        level: Log level string (debug, info, warning, error).
        respect_env: If True, GITMETA_DEBUG overrides to DEBUG level.

    Returns:
        The logging level as an integer.
    """
    if respect_env and getenv("GITMETA_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(level.upper(), logging.WARNING)


def _create_logger(
    log_file_path: str | None,
    *,
    log_level: int,
    log_format: LogFormatType = "json",
    max_bytes: int | None = None,
    backup_count: int | None = None,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a standalone structlog logger.

    Args:
        log_file_path: Path to the log file (opened in append mode), or None
            to write to stderr.
        log_level: Minimum level that is emitted.
        log_format: Output format, either "json" or "text".
        max_bytes: Maximum size in bytes before rotation. Must be set with
            backup_count for rotation to be enabled.
        backup_count: Number of rotated log files to keep. Must be set with
            max_bytes for rotation to be enabled.

    Returns:
        A configured FilteringBoundLogger instance.
    """
    raw_logger: object
    if log_file_path is None:
        raw_logger = structlog.PrintLoggerFactory(file=sys.stderr)()
    else:
        log_path = Path(log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        if max_bytes is not None and backup_count is not None:
            # stdlib logger so RotatingFileHandler can own the file
            stdlib_logger = logging.getLogger(f"gitmeta.{log_path.stem}.{id(log_path)}")
            stdlib_logger.handlers.clear()
            stdlib_logger.propagate = False
            stdlib_logger.setLevel(log_level)

            handler = RotatingFileHandler(
                log_path,
                maxBytes=max_bytes,
                backupCount=backup_count,
            )
            handler.setLevel(log_level)
            handler.setFormatter(logging.Formatter("%(message)s"))
            stdlib_logger.addHandler(handler)
            raw_logger = stdlib_logger
        else:
            raw_logger = structlog.WriteLoggerFactory(file=log_path.open("a"))()

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        # "timestamp [level] event key=value ..."
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            raw_logger,
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(log_level),
            context_class=dict,
        ),
    )


def create_logger(
    config: LoggingConfig | None = None,
    *,
    max_bytes: int | None = None,
    backup_count: int | None = None,
    **context: object,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a logger from the logging configuration section.

    The log level is determined by (in order of precedence):
    1. GITMETA_DEBUG environment variable (if set, enables DEBUG level)
    2. config.level
    3. Default: WARNING

    Args:
        config: Logging configuration. Defaults to LoggingConfig().
        max_bytes: Rotate the log file at this size (file logging only).
        backup_count: Number of rotated files to keep (file logging only).
        **context: Key/value pairs bound to every log entry.

    Returns:
        A FilteringBoundLogger instance.
    """
    effective = config if config is not None else LoggingConfig()
    logger = _create_logger(
        effective.file or None,
        log_level=_log_level_from_string(effective.level.value),
        log_format=cast("LogFormatType", effective.format.value),
        max_bytes=max_bytes,
        backup_count=backup_count,
    )

    if context:
        return logger.bind(**context)
    return logger

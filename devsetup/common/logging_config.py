# devsetup/common/logging_config.py
# -*- coding: utf-8 -*-
"""
Centralized logging configuration for the toolchain setup.

Console output uses one line per record: a colored level tag, a timestamp
and the message, e.g. ``[SUCCESS] 2024-05-01 10:00:00 - pyenv installed``.
An optional file handler writes the same records as JSON lines for later
inspection.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

import click

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

DEFAULT_LOGGER_NAME = "devsetup"
CONSOLE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LEVEL_COLORS: Dict[str, str] = {
    "DEBUG": "white",
    "INFO": "blue",
    "SUCCESS": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red",
}

# Attributes every LogRecord carries; anything else came in via `extra`.
_STANDARD_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}


class ConsoleFormatter(logging.Formatter):
    """Formats records as ``[LEVEL] timestamp - message`` with a colored tag."""

    def __init__(self, use_color: bool = True):
        super().__init__(datefmt=CONSOLE_DATE_FORMAT)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        tag = f"[{record.levelname}]"
        if self.use_color:
            tag = click.style(
                tag,
                fg=LEVEL_COLORS.get(record.levelname, "white"),
                bold=record.levelno >= logging.ERROR,
            )
        line = f"{tag} {self.formatTime(record, self.datefmt)} - {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for the optional log file.

    Each record becomes one JSON object with timestamp, level, logger,
    message, source location and any fields passed through ``extra``.
    """

    def __init__(self, service_name: str = DEFAULT_LOGGER_NAME):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_RECORD_ATTRS
        }
        if extra_fields:
            log_entry["extra"] = extra_fields

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class StatusLogger(logging.LoggerAdapter):
    """Logger adapter adding ``success()`` next to info/warning/error."""

    def success(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(SUCCESS, msg, *args, **kwargs)


def setup_logging(
    log_level: Union[str, int] = "INFO",
    log_file_path: Optional[Union[str, Path]] = None,
    use_color: bool = True,
    logger_name: str = DEFAULT_LOGGER_NAME,
) -> StatusLogger:
    """
    Set up logging for a setup run.

    Handlers are attached to the package logger rather than the root logger
    and replaced on every call, so repeated calls never duplicate lines.

    Args:
        log_level: Logging level name or number.
        log_file_path: Optional path for a JSON log file.
        use_color: Color level tags on the console.
        logger_name: Name of the logger to configure.

    Returns:
        A StatusLogger wrapping the configured logger.
    """
    if isinstance(log_level, str):
        numeric_level = logging.getLevelName(log_level.upper())
        if not isinstance(numeric_level, int):
            numeric_level = logging.INFO
    else:
        numeric_level = log_level

    logger = logging.getLogger(logger_name)
    logger.setLevel(numeric_level)
    logger.propagate = False

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(
        ConsoleFormatter(use_color=use_color and sys.stdout.isatty())
    )
    logger.addHandler(console_handler)

    if log_file_path:
        log_path = Path(log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter(logger_name))
        logger.addHandler(file_handler)

    logger.debug(
        "Logging initialized",
        extra={
            "log_level": logging.getLevelName(numeric_level),
            "file_enabled": bool(log_file_path),
        },
    )
    return StatusLogger(logger, {})


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger below the package logger.

    This should be used after setup_logging() has been called.
    """
    if name == DEFAULT_LOGGER_NAME or name.startswith(f"{DEFAULT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{DEFAULT_LOGGER_NAME}.{name}")

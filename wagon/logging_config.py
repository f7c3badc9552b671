"""Logging configuration for cloud-storage-wagon.

Library modules only create loggers; the ``wagon-transfer`` command line (or
an embedding host) calls ``setup_logging`` once.

Environment variables:
    WAGON_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL (fallback LOG_LEVEL)
    WAGON_LOG_FORMAT: json, human, simple
    WAGON_LOG_FILE: Path of a rotating JSON log file
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

# Attributes every LogRecord carries; anything else came in via ``extra``
_RECORD_ATTRIBUTES = {
    "name",
    "msg",
    "args",
    "created",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "thread",
    "threadName",
    "exc_info",
    "exc_text",
    "stack_info",
    "taskName",
}


class JSONFormatter(logging.Formatter):
    """Format log records as JSON for structured logging."""

    def __init__(self, include_context: bool = True):
        super().__init__()
        self.include_context = include_context

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_context:
            log_data["module"] = record.module
            log_data["function"] = record.funcName
            log_data["line"] = record.lineno

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Format log records in human-readable format with optional colors."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",
    }

    def __init__(self, use_colors: bool = False, include_context: bool = False):
        if include_context:
            fmt = "[%(levelname)s] %(asctime)s - %(name)s - %(module)s.%(funcName)s:%(lineno)d - %(message)s"
        else:
            fmt = "[%(levelname)s] %(asctime)s - %(name)s - %(message)s"

        super().__init__(fmt=fmt, datefmt="%Y-%m-%d %H:%M:%S")
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        if self.use_colors:
            color = self.COLORS.get(record.levelname, "")
            return f"{color}{formatted}{self.COLORS['RESET']}"
        return formatted


def get_log_level_from_env() -> int:
    """Return the level named by WAGON_LOG_LEVEL or LOG_LEVEL (default INFO)."""
    level_name = os.environ.get("WAGON_LOG_LEVEL") or os.environ.get("LOG_LEVEL", "INFO")
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "WARN": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return level_map.get(level_name.upper(), logging.INFO)


def get_log_format_from_env() -> str:
    return os.environ.get("WAGON_LOG_FORMAT", "human").lower()


def setup_logging(
    level: Optional[int] = None,
    format_type: Optional[str] = None,
    log_file: Optional[Path] = None,
    use_colors: bool = False,
    include_context: bool = False,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Logging level (defaults to WAGON_LOG_LEVEL or INFO)
        format_type: Format type ('json', 'human', 'simple')
        log_file: Optional path to a rotating log file (always JSON)
        use_colors: Use ANSI colors in console output
        include_context: Include module/function context in logs

    Examples:
        >>> setup_logging(level=logging.DEBUG, format_type='json')
    """
    if level is None:
        level = get_log_level_from_env()

    if format_type is None:
        format_type = get_log_format_from_env()

    if log_file is None:
        log_file_env = os.environ.get("WAGON_LOG_FILE")
        if log_file_env:
            log_file = Path(log_file_env)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter: logging.Formatter
    if format_type == "json":
        formatter = JSONFormatter(include_context=include_context)
    elif format_type == "simple":
        formatter = logging.Formatter("%(levelname)s: %(message)s")
    else:
        formatter = HumanReadableFormatter(
            use_colors=use_colors, include_context=include_context
        )

    # stdout carries command output, so logs go to stderr
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(JSONFormatter(include_context=True))
        root_logger.addHandler(file_handler)

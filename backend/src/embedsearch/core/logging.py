"""Logging configuration for the embedsearch backend.

Sets up structured logging with a readable, color-coded text format for
development and a JSON format for production/monitoring.
"""

import json
import logging
import os
import socket
import sys
import traceback
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, ClassVar

from .config import get_settings_instance

# Guard against double configuration when setup_logging() runs both at
# import-time and again during lifespan startup
_LOGGING_CONFIGURED = False

# Standard LogRecord attributes; anything else on a record came from ``extra=``
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


class ColoredFormatter(logging.Formatter):
    """Custom colored formatter for human-readable logs."""

    COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",
    }

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors and extra fields."""
        level_color = self.COLORS.get(record.levelname, "") if self.use_colors else ""
        reset_color = self.COLORS["RESET"] if self.use_colors else ""

        timestamp = datetime.fromtimestamp(record.created, UTC).strftime("%Y-%m-%d %H:%M:%S")
        message = record.getMessage()

        # Only include short scalar extras to keep lines readable
        extra_fields = []
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or value is None:
                continue
            if isinstance(value, (str, int, float, bool)) and len(str(value)) < 100:
                extra_fields.append(f"{key}={value}")

        log_line = f"{timestamp} - {level_color}{record.levelname}{reset_color} - {record.name} - {message}"
        if extra_fields:
            log_line += f" | {' '.join(extra_fields)}"

        if record.exc_info:
            exc_info = traceback.format_exception(*record.exc_info)
            log_line += f"\n{level_color}Exception:{reset_color}\n" + "".join(exc_info)

        return log_line


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging (production/monitoring)."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            exc_type = record.exc_info[0]
            log_data["exception"] = {
                "type": exc_type.__name__ if exc_type is not None else "Unknown",
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_logging() -> None:
    """Configure root, application and third-party loggers once per process."""
    global _LOGGING_CONFIGURED  # noqa: PLW0603
    if _LOGGING_CONFIGURED:
        return

    settings = get_settings_instance()
    level = getattr(logging, settings.log_level)

    use_colors = settings.environment == "development" and sys.stdout.isatty()
    formatter = JSONFormatter() if settings.log_format == "json" else ColoredFormatter(use_colors=use_colors)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [console_handler]

    # Optional file output; hostname in the filename keeps replicas apart
    if settings.log_dir:
        log_dir = Path(settings.log_dir)
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / f"embedsearch_{socket.gethostname()}.log", encoding="utf-8")
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)
    for handler in handlers:
        root_logger.addHandler(handler)

    # SQLAlchemy logs SQL at INFO; keep it quiet unless something breaks
    for logger_name in ("sqlalchemy", "sqlalchemy.engine", "sqlalchemy.pool", "sqlalchemy.orm"):
        logging.getLogger(logger_name).setLevel(logging.ERROR)

    # HTTP client noise is capped at WARNING
    for logger_name in ("httpx", "httpcore"):
        logging.getLogger(logger_name).setLevel(max(level, logging.WARNING))

    # Uvicorn uses our handlers so every line shares one format
    for logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        uvicorn_log = logging.getLogger(logger_name)
        uvicorn_log.setLevel(level)
        uvicorn_log.handlers.clear()
        for handler in handlers:
            uvicorn_log.addHandler(handler)
        uvicorn_log.propagate = False

    logging.getLogger("embedsearch").setLevel(level)
    logging.getLogger("embedsearch").info(
        "Logging configured",
        extra={
            "log_level": settings.log_level,
            "log_format": settings.log_format,
            "environment": settings.environment,
            "use_colors": use_colors,
        },
    )
    _LOGGING_CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``embedsearch`` namespace."""
    if name == "embedsearch" or name.startswith("embedsearch."):
        return logging.getLogger(name)
    return logging.getLogger(f"embedsearch.{name}")


class LoggerMixin:
    """Mixin class to add logging capabilities to any class."""

    @property
    def logger(self) -> logging.Logger:
        """Get logger for this class."""
        return get_logger(self.__class__.__name__)

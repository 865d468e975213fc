"""Logging setup for applications and tools built on the SDK.

The SDK itself only creates module loggers through ``get_logger``; handlers
are installed by ``setup_logging``, which the CLI calls with
``ClientConfig.logging``.
"""

import json
import logging
import logging.handlers
import sys
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_RECORD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "msecs",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "message",
        "asctime",
    }
)

# httpx logs every request at INFO; only let that through when debugging.
_HTTP_LIBRARY_LOGGERS = ("httpx", "httpcore")


class LogLevel(str, Enum):
    """Level names accepted in configuration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LoggingConfig(BaseModel):
    """Where SDK and CLI log records go and how they are rendered.

    Set through the environment as ``CONSUL_CLIENT_LOGGING__<FIELD>``.
    """

    level: LogLevel = Field(default=LogLevel.INFO, description="Root log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Text format used when json_format is off",
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S", description="strftime format for asctime"
    )
    console_enabled: bool = Field(default=True, description="Write records to stderr")
    file_enabled: bool = Field(default=False, description="Also write records to file_path")
    file_path: Path | None = Field(default=None, description="Rotating log file location")
    max_bytes: int = Field(
        default=10_485_760,
        ge=1_048_576,
        description="Size at which the log file is rotated",
    )
    backup_count: int = Field(default=5, ge=1, description="Rotated files kept")
    json_format: bool = Field(
        default=False,
        description="Emit one JSON object per record, including request extras",
    )

    @field_validator("file_path")
    @classmethod
    def validate_file_path(cls, v: Path | None) -> Path | None:
        """Create the log directory so the handler can open the file."""
        if v is not None:
            v.parent.mkdir(parents=True, exist_ok=True)
        return v


class StructuredFormatter(logging.Formatter):
    """Render a record as JSON, keeping fields passed through ``extra``.

    Request logs carry ``method``, ``url``, ``status_code`` and ``last_index``
    this way.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Install root handlers according to ``config``.

    Existing root handlers are replaced, so calling this twice does not
    duplicate output. Console output goes to stderr to keep stdout free for
    command results.

    Args:
        config: Logging settings; defaults apply when None
    """
    if config is None:
        config = LoggingConfig()

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(config.level.value)

    library_level = logging.DEBUG if config.level == LogLevel.DEBUG else logging.WARNING
    for name in _HTTP_LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    if config.json_format:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(config.format, datefmt=config.date_format)

    if config.console_enabled:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if config.file_enabled and config.file_path:
        file_handler = logging.handlers.RotatingFileHandler(
            filename=config.file_path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logging.getLogger(__name__).debug(
        "Logging configured", extra={"config": config.model_dump(mode="json")}
    )


def get_logger(name: str) -> logging.Logger:
    """Return the logger for an SDK module (pass ``__name__``)."""
    return logging.getLogger(name)

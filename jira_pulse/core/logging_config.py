"""
Centralized logging configuration with structured JSON output.

Provides:
- JSON structured logging for production
- Human-readable console logging for development
- Automatic context injection (timestamp, module, level)
- Fields passed through ``extra={...}`` merged into JSON records

Usage:
    from jira_pulse.core.logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("Project aggregated", extra={
        "project_key": "CB",
        "issue_count": 42
    })
"""

import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

# Attributes every LogRecord carries; anything else came from ``extra``
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys() | {"message", "asctime"}
)


class JSONFormatter(logging.Formatter):
    """
    Format log records as JSON for structured logging.

    Produces machine-readable logs suitable for log aggregation tools
    (Datadog, Splunk, CloudWatch, etc.)
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON string"""
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Context from log_with_context()
        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            log_data.update(extra_fields)

        # Context from logger.info("msg", extra={...})
        for key, value in vars(record).items():
            if key in _RESERVED_ATTRS or key == "extra_fields" or key in log_data:
                continue
            log_data[key] = value

        return json.dumps(log_data, default=str)


class ContextFormatter(logging.Formatter):
    """
    Human-readable formatter for console output.

    Includes color coding for log levels (when supported).
    """

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with color coding"""
        if sys.stderr.isatty():
            levelname = record.levelname
            color = self.COLORS.get(levelname, "")
            record = logging.makeLogRecord(vars(record))
            record.levelname = f"{color}{levelname}{self.RESET}"

        return super().format(record)


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    json_output: bool = False,
) -> None:
    """
    Configure application-wide logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for log output
        json_output: If True, use JSON formatter; if False, use human-readable format

    Example:
        # Development (human-readable console)
        setup_logging(level="DEBUG")

        # Production (JSON to file)
        setup_logging(
            level="INFO",
            log_file=Path(".tmp/logs/jira_pulse.log"),
            json_output=True
        )
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    if json_output:
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(
            ContextFormatter(
                fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)

        # Always use JSON for file output
        file_handler.setFormatter(JSONFormatter())

        root_logger.addHandler(file_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for the specified module.

    Args:
        name: Module name (use __name__ in calling module)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


def log_with_context(logger: logging.Logger, level: str, message: str, **context: Any) -> None:
    """
    Log message with additional context fields.

    Args:
        logger: Logger instance
        level: Log level (debug, info, warning, error, critical)
        message: Log message
        **context: Additional context fields (key-value pairs)

    Example:
        log_with_context(
            logger,
            "info",
            "Dashboard assembled",
            project_count=12,
            duration_ms=1234
        )
    """
    log_func = getattr(logger, level.lower())
    log_func(message, extra={"extra_fields": context})

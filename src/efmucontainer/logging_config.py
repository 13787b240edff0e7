"""
Logging configuration for the container manager.

Console output is human-readable by default; JSON lines can be selected for
machine consumption. Components never configure logging themselves, they
receive a logger and only emit records.

Usage:
    from efmucontainer.logging_config import setup_logging, get_logger

    setup_logging(verbose=True)  # Call once at startup
    logger = get_logger(__name__)
    logger.info("message", extra={"container": "demo.fmu"})
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from pathlib import PurePath
from typing import Any

import orjson

# Attributes every LogRecord carries; anything else was passed via extra=
_RECORD_ATTRIBUTES: frozenset[str] = frozenset(
    {
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
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "message",
        "taskName",
    }
)

# Lists longer than this are summarised instead of dumped
MAX_LIST_ITEMS = 10


def _normalize_value(value: Any) -> Any:
    """Make an extra field value printable and JSON-safe."""
    if isinstance(value, (int, float, bool, str, type(None))):
        return value
    if isinstance(value, PurePath):
        return value.as_posix()
    if isinstance(value, (list, tuple)):
        if len(value) <= MAX_LIST_ITEMS:
            return [_normalize_value(v) for v in value]
        return f"[list:{len(value)} items]"
    if isinstance(value, dict):
        return {str(k): _normalize_value(v) for k, v in value.items()}
    return str(value)


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Collect fields passed through ``extra=``."""
    return {
        key: _normalize_value(value)
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRIBUTES
    }


class JsonFormatter(logging.Formatter):
    """JSON log formatter, one object per line.

    Output format:
    {"ts":"2024-01-01T00:00:00.000+00:00","level":"INFO","logger":"module","msg":"...", ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_dict: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        if record.levelno >= logging.WARNING:
            log_dict["file"] = record.filename
            log_dict["line"] = record.lineno

        if record.exc_info:
            log_dict["exc"] = self.formatException(record.exc_info)

        log_dict.update(_extra_fields(record))

        return orjson.dumps(log_dict, default=str).decode()


class SimpleFormatter(logging.Formatter):
    """Human-readable formatter for console use."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as a single line (plus traceback, if any)."""
        base = f"{record.levelname:8s} {record.getMessage()}"
        if record.levelno <= logging.DEBUG:
            base = f"{record.levelname:8s} {record.name}: {record.getMessage()}"

        extra = _extra_fields(record)
        if extra:
            extra_str = " ".join(f"{k}={v}" for k, v in extra.items())
            base = f"{base} | {extra_str}"

        if record.exc_info:
            base = f"{base}\n{self.formatException(record.exc_info)}"

        return base


def setup_logging(
    *,
    level: int | str | None = None,
    verbose: bool = False,
    json_format: bool = False,
    stream: Any = None,
) -> None:
    """Configure logging for the application.

    Call once at application startup.

    Args:
        level: Explicit log level (overrides ``verbose``).
        verbose: Use DEBUG instead of INFO.
        json_format: Use the JSON formatter instead of the console one.
        stream: Output stream (default stderr).
    """
    if stream is None:
        stream = sys.stderr
    if level is None:
        level = logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler(stream)
    formatter = JsonFormatter() if json_format else SimpleFormatter()
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)

    # Remove existing handlers to avoid duplicates
    root.handlers.clear()
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)

"""Structured logging with automatic request context injection.

Log output always goes to stderr: stdout is reserved for the MCP stdio
transport and any stray write there corrupts the protocol stream.

Usage:
    from pact_broker_mcp.core.logging_config import configure_logging

    configure_logging(level="DEBUG", format="human")
"""

from __future__ import annotations

import json
import logging
import sys
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO, Union

from pact_broker_mcp.core.context import (
    get_correlation_id,
    get_start_time,
    get_tool_name,
)

__all__ = [
    "ROOT_LOGGER_NAME",
    "ContextFilter",
    "StructuredFormatter",
    "HumanReadableFormatter",
    "configure_logging",
]

ROOT_LOGGER_NAME = "pact_broker_mcp"


class ContextFilter(logging.Filter):
    """Logging filter that adds correlation_id, tool and elapsed_ms to records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "-"
        record.tool = get_tool_name() or "-"

        start_time = get_start_time()
        if start_time > 0:
            record.elapsed_ms = round((time.time() - start_time) * 1000, 2)
        else:
            record.elapsed_ms = 0.0

        return True


class StructuredFormatter(logging.Formatter):
    """JSON-lines log formatter.

    Example output:
        {"timestamp":"2024-01-15T10:30:45.123000+00:00","level":"INFO",
         "logger":"pact_broker_mcp.tools.dispatcher","message":"Tool call",
         "correlation_id":"req_a1b2c3d4e5f6","tool":"get_pact","elapsed_ms":42.5}
    """

    _STANDARD_ATTRS = frozenset(
        {
            "name",
            "msg",
            "args",
            "levelname",
            "levelno",
            "pathname",
            "filename",
            "module",
            "lineno",
            "funcName",
            "created",
            "msecs",
            "relativeCreated",
            "thread",
            "threadName",
            "processName",
            "process",
            "taskName",
            "message",
            "exc_info",
            "exc_text",
            "stack_info",
            "correlation_id",
            "tool",
            "elapsed_ms",
        }
    )

    def __init__(self, *, include_extra: bool = True):
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", "-"),
            "tool": getattr(record, "tool", "-"),
            "elapsed_ms": getattr(record, "elapsed_ms", 0.0),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if self.include_extra:
            extra = {}
            for key, value in record.__dict__.items():
                if key in self._STANDARD_ATTRS:
                    continue
                try:
                    json.dumps(value)
                    extra[key] = value
                except (TypeError, ValueError):
                    extra[key] = str(value)
            if extra:
                log_entry["extra"] = extra

        return json.dumps(log_entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Formats records as ``timestamp [LEVEL] [correlation_id] logger: message``."""

    def format(self, record: logging.LogRecord) -> str:
        parts = [
            datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S"),
            f"[{record.levelname}]",
        ]

        corr_id = getattr(record, "correlation_id", "-")
        if corr_id and corr_id != "-":
            parts.append(f"[{corr_id}]")

        logger_name = record.name
        if logger_name.startswith(f"{ROOT_LOGGER_NAME}."):
            logger_name = logger_name[len(ROOT_LOGGER_NAME) + 1 :]
        parts.append(f"{logger_name}:")
        parts.append(record.getMessage())

        result = " ".join(parts)
        if record.exc_info:
            result += "\n" + self.formatException(record.exc_info)
        return result


def configure_logging(
    *,
    level: Union[int, str] = logging.INFO,
    format: str = "structured",
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Configure the package root logger.

    Args:
        level: Log level (default: INFO)
        format: "structured" for JSON lines, "human" for readable text
        stream: Output stream (default: stderr)

    Returns:
        The configured ``pact_broker_mcp`` logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    if format == "structured":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(HumanReadableFormatter())
    handler.addFilter(ContextFilter())

    logger.addHandler(handler)
    return logger

"""Request context for tool invocations.

Each tool call runs inside a request context that carries a correlation ID
and a start time. Both live in ``contextvars`` so they follow the call across
``await`` points and are picked up by the logging filter.

Usage:
    from pact_broker_mcp.core.context import request_context, get_correlation_id

    with request_context(tool="get_pact") as ctx:
        logger.info("Fetching pact")  # record carries ctx.correlation_id
"""

from __future__ import annotations

import secrets
import time
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Dict, Generator, Optional

__all__ = [
    "correlation_id_var",
    "tool_name_var",
    "start_time_var",
    "RequestContext",
    "generate_correlation_id",
    "request_context",
    "get_correlation_id",
    "get_tool_name",
    "get_start_time",
]

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")
"""Correlation ID of the tool invocation in progress."""

tool_name_var: ContextVar[str] = ContextVar("tool_name", default="")
"""Name of the tool being invoked."""

start_time_var: ContextVar[float] = ContextVar("start_time", default=0.0)
"""Invocation start time as Unix timestamp."""


def generate_correlation_id(prefix: str = "req") -> str:
    """Generate a unique correlation ID.

    Format: {prefix}_{12_hex_chars}, e.g. "req_a1b2c3d4e5f6".
    """
    return f"{prefix}_{secrets.token_hex(6)}"


@dataclass
class RequestContext:
    """Snapshot of the context of one tool invocation."""

    correlation_id: str = ""
    tool: str = ""
    start_time: float = field(default_factory=time.time)

    @property
    def elapsed_ms(self) -> float:
        if self.start_time <= 0:
            return 0.0
        return (time.time() - self.start_time) * 1000

    def to_dict(self) -> Dict[str, Any]:
        return {
            "correlation_id": self.correlation_id,
            "tool": self.tool,
            "elapsed_ms": round(self.elapsed_ms, 2),
        }


@contextmanager
def request_context(
    *,
    tool: str = "",
    correlation_id: Optional[str] = None,
) -> Generator[RequestContext, None, None]:
    """Set the request context variables for the duration of the block.

    Args:
        tool: Name of the tool being invoked
        correlation_id: Request ID (auto-generated if None)

    Yields:
        RequestContext snapshot
    """
    corr_id = correlation_id or generate_correlation_id()
    start = time.time()

    token_corr = correlation_id_var.set(corr_id)
    token_tool = tool_name_var.set(tool)
    token_start = start_time_var.set(start)

    try:
        yield RequestContext(correlation_id=corr_id, tool=tool, start_time=start)
    finally:
        correlation_id_var.reset(token_corr)
        tool_name_var.reset(token_tool)
        start_time_var.reset(token_start)


def get_correlation_id() -> str:
    """Return the current correlation ID, or an empty string outside a request."""
    return correlation_id_var.get()


def get_tool_name() -> str:
    return tool_name_var.get()


def get_start_time() -> float:
    return start_time_var.get()

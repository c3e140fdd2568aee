"""Tool registry, projections and dispatcher."""

from pact_broker_mcp.tools.dispatcher import ToolDispatcher
from pact_broker_mcp.tools.registry import (
    TOOL_DEFINITIONS,
    FieldSpec,
    ToolDefinition,
    get_tool_definition,
)

__all__ = [
    "FieldSpec",
    "TOOL_DEFINITIONS",
    "ToolDefinition",
    "ToolDispatcher",
    "get_tool_definition",
]

"""
Response envelope for tool invocations.

Every tool call, successful or not, produces exactly one envelope:

    {
        "content": [{"type": "text", "text": "..."}],
        "isError": true          # present only on failure
    }

Successful results carry either a fixed human-readable sentence or a
pretty-printed JSON document (2-space indent). Failures carry
``Error: <message>``, except unknown tool names which carry the bare
``Unknown tool: "<name>"`` text.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from pact_broker_mcp.core.errors import ErrorCode


def format_json(payload: Any) -> str:
    """Serialize a payload as 2-space indented JSON, keeping non-ASCII text."""
    return json.dumps(payload, indent=2, ensure_ascii=False)


@dataclass
class ToolEnvelope:
    """
    Result of one tool invocation.

    Attributes:
        text: The single text content item
        is_error: Whether the invocation failed
        error_code: Machine-readable code for failures (not serialized)
    """

    text: str
    is_error: bool = False
    error_code: Optional[str] = field(default=None, compare=False)

    @property
    def content(self) -> List[Dict[str, str]]:
        return [{"type": "text", "text": self.text}]

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"content": self.content}
        if self.is_error:
            result["isError"] = True
        return result


def text_response(text: str) -> ToolEnvelope:
    """Create a success envelope carrying plain text."""
    return ToolEnvelope(text=text)


def json_response(payload: Any) -> ToolEnvelope:
    """Create a success envelope carrying pretty-printed JSON."""
    return ToolEnvelope(text=format_json(payload))


def error_response(
    message: str,
    *,
    error_code: Optional[Union[ErrorCode, str]] = None,
    prefix: bool = True,
) -> ToolEnvelope:
    """Create an error envelope.

    Args:
        message: Human-readable description of the failure.
        error_code: Canonical error code (defaults to INTERNAL_ERROR).
        prefix: Prepend ``"Error: "`` to the message.
    """
    code = error_code if error_code is not None else ErrorCode.INTERNAL_ERROR
    return ToolEnvelope(
        text=f"Error: {message}" if prefix else message,
        is_error=True,
        error_code=code.value if isinstance(code, ErrorCode) else code,
    )


__all__ = [
    "ToolEnvelope",
    "error_response",
    "format_json",
    "json_response",
    "text_response",
]

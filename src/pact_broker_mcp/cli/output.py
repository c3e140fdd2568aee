"""Output helpers for the pact-broker CLI.

Structured output (tool listings, errors) is JSON so it can be piped
through ``jq``; tool results are printed as the tool's own text payload.
"""

import json
import sys
from typing import Any, Mapping, NoReturn, Optional

from pact_broker_mcp.core.context import get_correlation_id


def emit(data: Any) -> None:
    """Emit indented JSON to stdout."""
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def emit_text(text: str) -> None:
    print(text)


def emit_error(
    message: str,
    code: str = "INTERNAL_ERROR",
    *,
    details: Optional[Mapping[str, Any]] = None,
) -> NoReturn:
    """Emit an error object to stderr and exit with code 1.

    Raises:
        SystemExit: Always exits with code 1.
    """
    payload: dict = {"success": False, "error": message, "error_code": code}
    if details:
        payload["details"] = dict(details)
    request_id = get_correlation_id()
    if request_id:
        payload["request_id"] = request_id
    print(json.dumps(payload, ensure_ascii=False, default=str), file=sys.stderr)
    sys.exit(1)

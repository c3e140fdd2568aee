"""Exception taxonomy for Pact Broker tool operations.

Every exception raised below the tool dispatcher derives from
``PactBrokerMCPError``. The dispatcher turns each one into an error envelope
using ``str(exc)`` as the message, so messages are written for the end user.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence, Tuple


class ErrorCode(str, Enum):
    """Machine-readable error codes, used in log records and CLI output."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNKNOWN_TOOL = "UNKNOWN_TOOL"
    MISSING_CONFIGURATION = "MISSING_CONFIGURATION"
    REMOTE_REQUEST_FAILED = "REMOTE_REQUEST_FAILED"
    TRANSPORT_FAILURE = "TRANSPORT_FAILURE"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class PactBrokerMCPError(Exception):
    """Base exception for all tool failures.

    Attributes:
        error_code: Machine-readable error code
    """

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArguments(PactBrokerMCPError):
    """Tool arguments do not match the tool's declared fields.

    Attributes:
        violations: (field path, reason) pairs, in field declaration order
    """

    error_code = ErrorCode.VALIDATION_ERROR

    def __init__(self, violations: Sequence[Tuple[str, str]]):
        self.violations = list(violations)
        details = ", ".join(f"{path}: {reason}" for path, reason in self.violations)
        super().__init__(f"Invalid arguments: {details}")


class UnknownOperation(PactBrokerMCPError):
    """No tool is registered under the requested name."""

    error_code = ErrorCode.UNKNOWN_TOOL

    def __init__(self, name: str):
        self.name = name
        super().__init__(f'Unknown tool: "{name}"')


class MissingConfiguration(PactBrokerMCPError):
    """A mandatory configuration value (the broker base URL) is not set."""

    error_code = ErrorCode.MISSING_CONFIGURATION


class RemoteRequestFailed(PactBrokerMCPError):
    """The broker answered with a non-2xx status.

    Attributes:
        status: HTTP status code
        status_text: HTTP reason phrase
        body: Response body text (may be empty)
        url: Requested URL
    """

    error_code = ErrorCode.REMOTE_REQUEST_FAILED

    def __init__(
        self,
        status: int,
        status_text: str = "",
        body: str = "",
        *,
        url: Optional[str] = None,
    ):
        self.status = status
        self.status_text = status_text
        self.body = body
        self.url = url
        message = f"Pact Broker request failed: {status} {status_text}".rstrip()
        if body:
            message = f"{message} - {body}"
        super().__init__(message)


class TransportFailure(PactBrokerMCPError):
    """The request never produced a usable response (network or parse error)."""

    error_code = ErrorCode.TRANSPORT_FAILURE

    def __init__(self, message: str, *, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error


class EnvironmentNotFound(PactBrokerMCPError):
    """No broker environment matches the given name or UUID."""

    error_code = ErrorCode.NOT_FOUND

    def __init__(self, environment: str, available: Sequence[str] = ()):
        self.environment = environment
        self.available = list(available)
        message = f'Environment "{environment}" not found in the Pact Broker'
        if self.available:
            message = f"{message}. Available environments: {', '.join(self.available)}"
        super().__init__(message)


__all__ = [
    "ErrorCode",
    "PactBrokerMCPError",
    "InvalidArguments",
    "UnknownOperation",
    "MissingConfiguration",
    "RemoteRequestFailed",
    "TransportFailure",
    "EnvironmentNotFound",
]

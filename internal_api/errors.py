"""
Error taxonomy for tool dispatch.

Expected outcomes (unknown tool, invalid arguments, bad signature) are
reported as stable machine-readable codes. Exceptions are reserved for
tool failures raised inside handlers and for transport failures between
the services.
"""

from typing import Optional


class ErrorCode:
    """Stable error codes returned in {"error": <code>} bodies."""

    # Authentication
    INVALID_SIGNATURE = "invalid_signature"
    UNAUTHORIZED = "unauthorized"

    # Caller errors
    UNKNOWN_TOOL = "unknown_tool"
    INVALID_ARGS = "invalid_args"
    INVALID_PAYLOAD = "invalid_payload"

    # Handler failure without a usable message
    TOOL_FAILED = "tool_failed"

    # Transport
    TOOL_GATEWAY_UNREACHABLE = "tool_gateway_unreachable"
    REALTIME_SESSION_FAILED = "realtime_session_failed"


class ToolError(Exception):
    """
    Raised by a tool handler for an expected failure.

    The message is a short code (e.g. "host_not_allowed") and is returned
    to the caller as-is.
    """


class InvalidSignature(Exception):
    """Raised by the gateway when an internal request fails verification."""


class ToolGatewayUnreachable(Exception):
    """
    The tool gateway could not be reached or answered outside the contract.

    Covers timeouts, refused connections, every non-2xx status and malformed
    bodies.
    Callers may retry with backoff.
    """

    code = ErrorCode.TOOL_GATEWAY_UNREACHABLE

    def __init__(self, reason: str, status: Optional[int] = None):
        super().__init__(reason)
        self.reason = reason
        self.status = status


class ToolDispatchFailed(Exception):
    """The gateway answered 2xx but reported an application-level failure."""

    def __init__(self, code: str, status_code: int = 400):
        super().__init__(code)
        self.code = code
        self.status_code = status_code


class RealtimeSessionError(Exception):
    """Creating a realtime session with the upstream API failed."""

    code = ErrorCode.REALTIME_SESSION_FAILED

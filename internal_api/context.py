"""
Request correlation context.

Three identifiers travel with every tool dispatch so that log lines and
outcome events from both services can be joined:
- x-request-id: one per inbound call
- x-session-id: one per realtime session
- x-user-id: the caller, when known
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Mapping, Optional

REQUEST_ID_HEADER = "x-request-id"
SESSION_ID_HEADER = "x-session-id"
USER_ID_HEADER = "x-user-id"

UNKNOWN = "unknown"


@dataclass(frozen=True)
class RequestContext:
    """Correlation identifiers for one dispatch. Never persisted."""

    request_id: str = UNKNOWN
    session_id: str = UNKNOWN
    user_id: str = UNKNOWN

    def to_headers(self) -> dict[str, str]:
        return {
            REQUEST_ID_HEADER: self.request_id,
            SESSION_ID_HEADER: self.session_id,
            USER_ID_HEADER: self.user_id,
        }

    def as_log_fields(self) -> dict[str, str]:
        return {
            "request_id": self.request_id,
            "session_id": self.session_id,
            "user_id": self.user_id,
        }


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    value = headers.get(name)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def context_from_headers(headers: Mapping[str, str]) -> RequestContext:
    """
    Read correlation headers, defaulting each missing one to "unknown".

    Used by the gateway, which never invents identifiers.
    """
    return RequestContext(
        request_id=_header(headers, REQUEST_ID_HEADER) or UNKNOWN,
        session_id=_header(headers, SESSION_ID_HEADER) or UNKNOWN,
        user_id=_header(headers, USER_ID_HEADER) or UNKNOWN,
    )


def assign_context(headers: Mapping[str, str]) -> RequestContext:
    """
    Read correlation headers, generating request/session ids when absent.

    Used by the orchestrator at the edge, so every relayed call is correlatable.
    """
    return RequestContext(
        request_id=_header(headers, REQUEST_ID_HEADER) or str(uuid.uuid4()),
        session_id=_header(headers, SESSION_ID_HEADER) or str(uuid.uuid4()),
        user_id=_header(headers, USER_ID_HEADER) or UNKNOWN,
    )

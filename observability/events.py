"""
Structured JSON event emission (shared).

This module is shared by the Orchestrator and the Tool Gateway.
It implements the event envelope and the small tool-dispatch taxonomy:

- tool.outcome         one record per terminal dispatch in the gateway
- tool.disabled        a tool left out of the catalog at startup
- tool.dispatch        one record per relayed call in the orchestrator
- tool_cache.fallback  the tool list cache served stale data (or nothing)
"""

from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from .event_store import event_store


class Component(str, Enum):
    """Event-emitting components."""

    ORCHESTRATOR = "orchestrator"
    TOOL_GATEWAY = "tool_gateway"


class Severity(str, Enum):
    """Event severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


DEFAULT_PII = {"contains_pii": False, "fields": [], "handling": "none"}

# session_id used for events that are not tied to a caller session
SYSTEM_SESSION = "system"


class EventEmitter:
    """Emits structured JSON events to stdout and the in-memory event store."""

    def __init__(self, component: Component):
        self.component = component

    def emit(
        self,
        event_type: str,
        session_id: str,
        severity: Severity = Severity.INFO,
        correlation_id: Optional[str] = None,
        pii: Optional[Dict[str, Any]] = None,
        **fields: Any,
    ) -> None:
        """Write one JSON line to stdout and keep a copy in the event store."""
        event = dict(
            ts=datetime.now(timezone.utc).isoformat(),
            session_id=session_id,
            component=self.component.value,
            event_type=event_type,
            severity=severity.value,
            correlation_id=correlation_id or session_id,
            pii=dict(pii or DEFAULT_PII),
            **fields,
        )
        print(json.dumps(event, ensure_ascii=False, default=str), file=sys.stdout, flush=True)

        event_store.store(event)

    def tool_outcome(
        self,
        tool: str,
        outcome: str,
        duration_ms: int,
        session_id: str,
        request_id: str,
        user_id: str,
        error: Optional[str] = None,
    ) -> None:
        """Emit tool.outcome for a finished dispatch."""
        self.emit(
            "tool.outcome",
            session_id,
            severity=Severity.INFO if outcome == "succeeded" else Severity.WARN,
            correlation_id=request_id,
            pii={"contains_pii": True, "fields": ["user_id"], "handling": "restricted"},
            tool=tool,
            outcome=outcome,
            duration_ms=duration_ms,
            request_id=request_id,
            user_id=user_id,
            error=error,
        )

    def tool_disabled(self, tool: str, reason: str) -> None:
        """Emit tool.disabled when a tool is left out at startup."""
        self.emit(
            "tool.disabled",
            SYSTEM_SESSION,
            tool=tool,
            reason=reason,
        )

    def tool_dispatch(
        self,
        tool: str,
        result: str,
        duration_ms: int,
        session_id: str,
        request_id: str,
        error: Optional[str] = None,
    ) -> None:
        """Emit tool.dispatch for a call relayed to the gateway."""
        self.emit(
            "tool.dispatch",
            session_id,
            severity=Severity.INFO if result == "ok" else Severity.ERROR,
            correlation_id=request_id,
            tool=tool,
            result=result,
            duration_ms=duration_ms,
            error=error,
        )

    def cache_fallback(self, stale_tools: int, age_ms: Optional[int], error: str) -> None:
        """Emit tool_cache.fallback when a refresh failed."""
        self.emit(
            "tool_cache.fallback",
            SYSTEM_SESSION,
            severity=Severity.WARN,
            stale_tools=stale_tools,
            age_ms=age_ms,
            error=error,
        )

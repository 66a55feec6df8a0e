"""
Tool invoker: one dispatch from name + raw args to a classified outcome.

    RECEIVED -> RESOLVED -> VALIDATED -> EXECUTING -> SUCCEEDED | FAILED

Unknown names and invalid arguments end in FAILED before any handler runs.
Handler exceptions are caught here and only here. Every dispatch emits
exactly one tool.outcome event. The invoker never retries.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from internal_api.context import RequestContext
from internal_api.errors import ErrorCode, ToolError
from logging_setup import get_logger, redact, Component
from observability.events import Component as ObsComponent, EventEmitter

from .registry import InvalidArgs, ToolRegistry

logger = get_logger(Component.TOOL_INVOKER)


class DispatchState(str, Enum):
    RECEIVED = "received"
    RESOLVED = "resolved"
    VALIDATED = "validated"
    EXECUTING = "executing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class InvocationOutcome:
    """Terminal result of a dispatch."""

    tool: str
    state: DispatchState
    result: Any = None
    error: Optional[str] = None
    # State the dispatch was in when it failed
    failed_at: Optional[DispatchState] = None
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.state == DispatchState.SUCCEEDED

    @property
    def status_code(self) -> int:
        return 200 if self.ok else 400

    def to_response(self) -> Dict[str, Any]:
        if self.ok:
            return {"result": self.result}
        return {"error": self.error}


def _failure_message(error: Exception) -> str:
    if isinstance(error, ToolError):
        return str(error) or ErrorCode.TOOL_FAILED
    return redact(str(error)) or ErrorCode.TOOL_FAILED


class ToolInvoker:
    """Resolves, validates and executes tool calls against a registry."""

    def __init__(
        self,
        registry: ToolRegistry,
        emitter: Optional[EventEmitter] = None,
        now: Callable[[], float] = time.perf_counter,
    ):
        self.registry = registry
        self.emitter = emitter or EventEmitter(ObsComponent.TOOL_GATEWAY)
        self._now = now

    async def dispatch(
        self,
        tool_name: str,
        raw_args: Any,
        context: RequestContext,
    ) -> InvocationOutcome:
        start = self._now()
        log = logger.with_session(context.session_id)

        definition = self.registry.resolve(tool_name) if tool_name else None
        if definition is None:
            log.warning("Unknown tool requested", tool=tool_name, request_id=context.request_id)
            return self._finish(
                tool_name, DispatchState.FAILED, start, context,
                error=ErrorCode.UNKNOWN_TOOL, failed_at=DispatchState.RECEIVED,
            )

        validated = self.registry.validate_args(definition, raw_args)
        if isinstance(validated, InvalidArgs):
            log.warning(
                "Tool arguments rejected",
                tool=definition.name,
                request_id=context.request_id,
                fields=[".".join(str(p) for p in err.get("loc", ())) for err in validated.errors],
            )
            return self._finish(
                definition.name, DispatchState.FAILED, start, context,
                error=ErrorCode.INVALID_ARGS, failed_at=DispatchState.RESOLVED,
            )

        try:
            result = await definition.execute(validated)
        except ToolError as e:
            log.warning("Tool failed", tool=definition.name, request_id=context.request_id, error=str(e))
            return self._finish(
                definition.name, DispatchState.FAILED, start, context,
                error=_failure_message(e), failed_at=DispatchState.EXECUTING,
            )
        except Exception as e:
            log.error(
                "Tool raised unexpectedly",
                tool=definition.name,
                request_id=context.request_id,
                error_type=type(e).__name__,
                exc_info=True,
            )
            return self._finish(
                definition.name, DispatchState.FAILED, start, context,
                error=_failure_message(e), failed_at=DispatchState.EXECUTING,
            )

        return self._finish(definition.name, DispatchState.SUCCEEDED, start, context, result=result)

    def _finish(
        self,
        tool: str,
        state: DispatchState,
        start: float,
        context: RequestContext,
        result: Any = None,
        error: Optional[str] = None,
        failed_at: Optional[DispatchState] = None,
    ) -> InvocationOutcome:
        duration_ms = int((self._now() - start) * 1000)
        outcome = InvocationOutcome(
            tool=tool,
            state=state,
            result=result,
            error=error,
            failed_at=failed_at,
            duration_ms=duration_ms,
        )
        self.emitter.tool_outcome(
            tool=tool,
            outcome=state.value,
            duration_ms=duration_ms,
            session_id=context.session_id,
            request_id=context.request_id,
            user_id=context.user_id,
            error=error,
        )
        return outcome

"""
Structured JSON logging shared by the Orchestrator and the Tool Gateway.

Every line is one JSON object carrying the emitting component and, when
bound, the caller's session_id, so a dispatch can be followed across both
services. Messages, extra fields and tracebacks pass through redact()
before they are written: the services handle API keys, bearer tokens and
the internal signing secret, none of which may reach a log sink.

Usage:
    setup_logging(level="INFO")          # once, in __main__
    logger = get_logger(Component.TOOL_GATEWAY)
    logger.with_session(ctx.session_id).info("Tool invoked", tool="http_fetch")
"""

import json
import logging
import re
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class Component(str, Enum):
    """Log source tags."""
    ORCHESTRATOR = "orchestrator"
    TOOL_GATEWAY = "tool_gateway"
    SIGNATURE_VERIFIER = "signature_verifier"
    TOOL_REGISTRY = "tool_registry"
    TOOL_INVOKER = "tool_invoker"
    TOOL_CACHE = "tool_cache"
    DISPATCH_RELAY = "dispatch_relay"
    REALTIME = "realtime"


# (pattern, replacement) pairs applied in order by redact()
REDACTION_RULES = [
    (re.compile(r"sk-[A-Za-z0-9_-]{32,}"), "[REDACTED_API_KEY]"),
    (re.compile(r"pk-[A-Za-z0-9_-]{24,}"), "[REDACTED_PUBLISHABLE_KEY]"),
    (re.compile(r"(?i)bearer\s+[A-Za-z0-9._~+/=-]+"), "Bearer [REDACTED]"),
    (
        re.compile(r"[A-Za-z0-9_-]{20,}\.[A-Za-z0-9._-]{10,}\.[A-Za-z0-9._-]{10,}"),
        "[REDACTED_JWT]",
    ),
]

# LogRecord attributes that are not caller-supplied fields
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "component", "session_id"}


def redact(text: str) -> str:
    """Replace API keys, bearer tokens and JWT-looking strings in text."""
    for pattern, replacement in REDACTION_RULES:
        text = pattern.sub(replacement, text)
    return text


def _redact_value(value: Any) -> Any:
    if isinstance(value, str):
        return redact(value)
    if isinstance(value, dict):
        return {k: _redact_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_redact_value(v) for v in value]
    return value


class JSONFormatter(logging.Formatter):
    """One redacted JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "severity": record.levelname.lower(),
            "component": getattr(record, "component", "unknown"),
            "message": redact(record.getMessage()),
        }
        session_id = getattr(record, "session_id", None)
        if session_id:
            entry["session_id"] = session_id

        entry.update(
            (key, _redact_value(value))
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS
        )

        if record.exc_info:
            entry["exception"] = redact(self.formatException(record.exc_info))

        return json.dumps(entry, ensure_ascii=False, default=str)


class StructuredLogger:
    """
    Component-tagged logger; keyword arguments become JSON fields.

    exc_info / stack_info keywords are passed through to logging.
    """

    def __init__(self, component: str | Component, session_id: Optional[str] = None):
        self.component = component.value if isinstance(component, Component) else component
        self.session_id = session_id
        self.logger = logging.getLogger(self.component)

    def log(self, level: int, message: str, **fields: Any) -> None:
        exc_info = fields.pop("exc_info", None)
        stack_info = fields.pop("stack_info", False)
        extra = {"component": self.component, **fields}
        if self.session_id:
            extra["session_id"] = self.session_id
        self.logger.log(level, message, exc_info=exc_info, stack_info=stack_info, extra=extra)

    def debug(self, message: str, **fields: Any) -> None:
        self.log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self.log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self.log(logging.WARNING, message, **fields)

    def error(self, message: str, **fields: Any) -> None:
        self.log(logging.ERROR, message, **fields)

    def critical(self, message: str, **fields: Any) -> None:
        self.log(logging.CRITICAL, message, **fields)

    def exception(self, message: str, **fields: Any) -> None:
        """Error with the active exception attached (mirrors logging.Logger.exception)."""
        fields.setdefault("exc_info", True)
        self.log(logging.ERROR, message, **fields)

    def with_session(self, session_id: str) -> "StructuredLogger":
        return StructuredLogger(self.component, session_id=session_id)


def setup_logging(level: str = "INFO", use_json: bool = True) -> None:
    """
    Route the root logger to stdout. Call once at service startup.

    use_json=False gives plain text lines for local debugging.
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        JSONFormatter() if use_json
        else logging.Formatter(
            "%(asctime)s %(levelname)s [%(component)s] %(message)s",
            defaults={"component": "-"},
        )
    )
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))


def get_logger(component: str | Component, session_id: Optional[str] = None) -> StructuredLogger:
    return StructuredLogger(component, session_id=session_id)

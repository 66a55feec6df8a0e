"""
In-memory ring buffer of structured events.

Holds the most recent tool outcomes, dispatches and cache fallbacks for
in-process inspection (and for tests). stdout remains the durable sink.
"""

from __future__ import annotations

import copy
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional

Event = Dict[str, Any]


class EventStore:
    """Bounded FIFO; the oldest event is dropped once max_events is reached."""

    def __init__(self, max_events: int = 5000):
        self._events: Deque[Event] = deque(maxlen=max_events)

    @property
    def max_events(self) -> int:
        return self._events.maxlen or 0

    def store(self, event: Event) -> None:
        # Stored by value
        event = copy.deepcopy(event)
        event.setdefault("ts", datetime.now(timezone.utc).isoformat())
        self._events.append(event)

    def query(
        self,
        session_id: Optional[str] = None,
        event_type: Optional[str] = None,
        tool: Optional[str] = None,
        correlation_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Event]:
        """
        Matching events, oldest first. Every given filter must match;
        `tool` compares against the event's "tool" field.
        """
        wanted = {
            "session_id": session_id,
            "event_type": event_type,
            "tool": tool,
            "correlation_id": correlation_id,
        }
        wanted = {k: v for k, v in wanted.items() if v is not None}

        matches: List[Event] = []
        for event in self._events:
            if all(event.get(k) == v for k, v in wanted.items()):
                matches.append(event)
                if limit is not None and len(matches) >= limit:
                    break
        return matches

    def clear(self) -> None:
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)


# Process-wide store fed by EventEmitter
event_store = EventStore()

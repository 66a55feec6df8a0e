"""
Time-bounded cache of the Tool Gateway's catalog.

- Within the TTL, get() answers from memory without touching the network.
- After the TTL, get() refreshes. Concurrent callers share one refresh.
- If a refresh fails, the last good catalog is served (stale fallback); with
  no prior catalog the answer is an empty list. get() never raises.

Freshness is checked lazily on each call; there is no background refresh.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple

from internal_api.models import ToolCatalogEntry
from logging_setup import get_logger, Component
from observability.events import Component as ObsComponent, EventEmitter

logger = get_logger(Component.TOOL_CACHE)

DEFAULT_TTL_MS = 60_000

CatalogFetcher = Callable[..., Awaitable[Sequence[ToolCatalogEntry]]]


@dataclass(frozen=True)
class CacheEntry:
    tools: Tuple[ToolCatalogEntry, ...]
    fetched_at: float  # reading of the cache's clock, in seconds


class ToolListCache:
    """
    Catalog cache with single-flight refresh and stale fallback.

    Args:
        fetch: Coroutine function returning the current catalog; may raise.
            Receives the arguments of the get() call that started the refresh
        ttl_ms: How long a fetched catalog counts as fresh
        now: Monotonic clock in seconds (injectable for tests)
        emitter: Receives tool_cache.fallback events
    """

    def __init__(
        self,
        fetch: CatalogFetcher,
        ttl_ms: int = DEFAULT_TTL_MS,
        now: Callable[[], float] = time.monotonic,
        emitter: Optional[EventEmitter] = None,
    ):
        self._fetch = fetch
        self._ttl_ms = ttl_ms
        self._now = now
        self._emitter = emitter or EventEmitter(ObsComponent.ORCHESTRATOR)
        self._entry: Optional[CacheEntry] = None
        self._refresh: Optional[asyncio.Future] = None

    @property
    def entry(self) -> Optional[CacheEntry]:
        return self._entry

    def _age_ms(self, entry: CacheEntry) -> int:
        return int((self._now() - entry.fetched_at) * 1000)

    def is_fresh(self) -> bool:
        entry = self._entry
        return entry is not None and self._age_ms(entry) < self._ttl_ms

    async def get(self, *fetch_args: Any) -> List[ToolCatalogEntry]:
        """
        Current catalog. fetch_args are passed to fetch only when this call
        starts the refresh; callers joining an in-flight refresh share it.
        """
        if self.is_fresh():
            return list(self._entry.tools)

        # No await between the check and the assignment, so at most one
        # refresh is ever outstanding.
        if self._refresh is None:
            self._refresh = asyncio.ensure_future(self._run_refresh(fetch_args))
        tools = await asyncio.shield(self._refresh)
        return list(tools)

    async def _run_refresh(self, fetch_args: Tuple[Any, ...]) -> Tuple[ToolCatalogEntry, ...]:
        try:
            tools = tuple(await self._fetch(*fetch_args))
        except Exception as e:
            return self._fallback(e)
        else:
            self._entry = CacheEntry(tools=tools, fetched_at=self._now())
            logger.debug("Tool catalog refreshed", tools=len(tools))
            return tools
        finally:
            self._refresh = None

    def _fallback(self, error: Exception) -> Tuple[ToolCatalogEntry, ...]:
        stale = self._entry
        age_ms = self._age_ms(stale) if stale is not None else None
        logger.warning(
            "Tool catalog refresh failed, serving stale catalog" if stale
            else "Tool catalog refresh failed, no catalog to serve",
            error=str(error),
            error_type=type(error).__name__,
            age_ms=age_ms,
        )
        self._emitter.cache_fallback(
            stale_tools=len(stale.tools) if stale else 0,
            age_ms=age_ms,
            error=type(error).__name__,
        )
        return stale.tools if stale is not None else ()

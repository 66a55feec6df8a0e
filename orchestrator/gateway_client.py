"""
Orchestrator -> Tool Gateway client (dispatch relay).

Every request is signed over the exact bytes sent. Outcomes are classified:
- 2xx with {"result": ...}: the tool's result is returned
- 2xx with {"error": <code>}: an application-level failure reported inside
  a successful response, raised as ToolDispatchFailed
- anything else (timeout, refused connection, any non-2xx status, a
  malformed body): raised as ToolGatewayUnreachable

Catalog lookups go through a ToolListCache so a slow or down gateway does
not take the orchestrator's tool list with it.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import aiohttp
from pydantic import ValidationError

from internal_api.context import RequestContext
from internal_api.errors import ToolDispatchFailed, ToolGatewayUnreachable
from internal_api.models import EMPTY_BODY, INVOKE_PATH, LIST_PATH, ToolCatalogEntry, ToolListResponse
from internal_api.signing import sign
from logging_setup import get_logger, Component
from observability.events import Component as ObsComponent, EventEmitter

from .tool_cache import DEFAULT_TTL_MS, ToolListCache

logger = get_logger(Component.DISPATCH_RELAY)

INVOKE_TIMEOUT_SECONDS = 10.0
LIST_TIMEOUT_SECONDS = 5.0

# (method, url, body, headers, timeout_seconds) -> (status, decoded JSON or None)
Transport = Callable[[str, str, Optional[bytes], Dict[str, str], float], Awaitable[Tuple[int, Any]]]

TRANSPORT_ERRORS = (asyncio.TimeoutError, aiohttp.ClientError, OSError)


async def aiohttp_transport(
    method: str,
    url: str,
    body: Optional[bytes],
    headers: Dict[str, str],
    timeout: float,
) -> Tuple[int, Any]:
    async with aiohttp.ClientSession() as s:
        async with s.request(
            method,
            url,
            data=body,
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=timeout),
        ) as resp:
            try:
                data = await resp.json(content_type=None)
            except ValueError:
                data = None
            return resp.status, data


def encode_invoke_body(tool: str, args: Any) -> bytes:
    """Compact JSON body for /v1/tools/invoke; these exact bytes are signed."""
    return json.dumps({"tool": tool, "args": args}, separators=(",", ":")).encode("utf-8")


class ToolGatewayClient:
    """Signs and relays tool calls to the Tool Gateway."""

    def __init__(
        self,
        base_url: str,
        secret: str,
        transport: Transport = aiohttp_transport,
        cache_ttl_ms: int = DEFAULT_TTL_MS,
        now: Callable[[], float] = time.monotonic,
        emitter: Optional[EventEmitter] = None,
        invoke_timeout: float = INVOKE_TIMEOUT_SECONDS,
        list_timeout: float = LIST_TIMEOUT_SECONDS,
    ):
        self.base_url = base_url.rstrip("/")
        self._secret = secret
        self._transport = transport
        self.emitter = emitter or EventEmitter(ObsComponent.ORCHESTRATOR)
        self.invoke_timeout = invoke_timeout
        self.list_timeout = list_timeout
        self.cache = ToolListCache(self.fetch_catalog, ttl_ms=cache_ttl_ms, now=now, emitter=self.emitter)

    def _signed_headers(self, body: bytes, context: RequestContext) -> Dict[str, str]:
        return {
            "content-type": "application/json",
            **sign(self._secret, body).to_headers(),
            **context.to_headers(),
        }

    async def invoke(self, tool: str, args: Any, context: RequestContext) -> Any:
        """
        Run a tool on the gateway and return its result.

        Raises:
            ToolDispatchFailed: a 2xx answer reported a failure instead of a result
            ToolGatewayUnreachable: transport failure or non-2xx status
        """
        body = encode_invoke_body(tool, args)
        url = f"{self.base_url}{INVOKE_PATH}"
        start = time.perf_counter()
        log = logger.with_session(context.session_id)

        try:
            status, data = await self._transport(
                "POST", url, body, self._signed_headers(body, context), self.invoke_timeout
            )
        except TRANSPORT_ERRORS as e:
            self._record(tool, context, start, "unreachable", type(e).__name__)
            log.error(
                "Tool gateway request failed",
                tool=tool,
                request_id=context.request_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ToolGatewayUnreachable(type(e).__name__) from e

        error = data.get("error") if isinstance(data, dict) else None

        if not 200 <= status < 300:
            self._record(tool, context, start, "unreachable", f"status_{status}")
            log.error(
                "Tool gateway returned non-2xx status",
                tool=tool,
                request_id=context.request_id,
                status=status,
                gateway_error=error,
            )
            raise ToolGatewayUnreachable(f"status_{status}", status)

        if isinstance(data, dict) and "result" in data:
            self._record(tool, context, start, "ok")
            log.info("Tool dispatched", tool=tool, request_id=context.request_id, status=status)
            return data["result"]

        if isinstance(error, str):
            self._record(tool, context, start, "failed", error)
            log.warning("Tool call failed on gateway", tool=tool, request_id=context.request_id, error=error)
            raise ToolDispatchFailed(error, status)

        self._record(tool, context, start, "unreachable", "malformed_response")
        raise ToolGatewayUnreachable("malformed_response", status)

    async def fetch_catalog(self, context: Optional[RequestContext] = None) -> List[ToolCatalogEntry]:
        """
        Fetch the catalog directly (bypassing the cache).

        Raises ToolGatewayUnreachable on any failure.
        """
        context = context or RequestContext()
        body = EMPTY_BODY.encode("utf-8")
        url = f"{self.base_url}{LIST_PATH}"
        try:
            status, data = await self._transport(
                "GET", url, None, self._signed_headers(body, context), self.list_timeout
            )
        except TRANSPORT_ERRORS as e:
            raise ToolGatewayUnreachable(type(e).__name__) from e

        if not 200 <= status < 300:
            raise ToolGatewayUnreachable(f"status_{status}", status)
        try:
            return ToolListResponse.model_validate(data).tools
        except ValidationError as e:
            raise ToolGatewayUnreachable("malformed_response", status) from e

    async def list_tools(self, context: Optional[RequestContext] = None) -> List[ToolCatalogEntry]:
        """
        Catalog from the cache; empty when the gateway has never answered.

        When this call starts a refresh, the fetch carries its context.
        """
        return await self.cache.get(context)

    def _record(
        self,
        tool: str,
        context: RequestContext,
        start: float,
        result: str,
        error: Optional[str] = None,
    ) -> None:
        self.emitter.tool_dispatch(
            tool=tool,
            result=result,
            duration_ms=int((time.perf_counter() - start) * 1000),
            session_id=context.session_id,
            request_id=context.request_id,
            error=error,
        )

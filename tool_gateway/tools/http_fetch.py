"""
http_fetch: HTTPS GET against an allowlisted host.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Iterable

import aiohttp
from pydantic import Field

from internal_api.errors import ToolError

from ..registry import ToolArgs, ToolDefinition

FETCH_TIMEOUT_SECONDS = 3.0

# (url, timeout_seconds) -> {"status": int, "data": Any}
HttpGetter = Callable[[str, float], Awaitable[Dict[str, Any]]]


class HttpFetchArgs(ToolArgs):
    host: str = Field(..., min_length=1)
    path: str = "/"


HTTP_FETCH_PARAMETERS = {
    "type": "object",
    "properties": {
        "host": {"type": "string", "description": "Allowlisted host name, e.g. example.com"},
        "path": {"type": "string", "description": "Request path, defaults to /"},
    },
    "required": ["host"],
    "additionalProperties": False,
}


async def aiohttp_get(url: str, timeout: float) -> Dict[str, Any]:
    """GET url and decode JSON when the server says it is JSON."""
    async with aiohttp.ClientSession() as s:
        async with s.get(url, timeout=aiohttp.ClientTimeout(total=timeout)) as resp:
            if resp.content_type == "application/json":
                data = await resp.json()
            else:
                data = await resp.text()
            return {"status": resp.status, "data": data}


def build_url(host: str, path: str) -> str:
    return f"https://{host}{path if path.startswith('/') else '/' + path}"


def create_http_fetch_tool(
    allowlist: Iterable[str],
    get: HttpGetter = aiohttp_get,
) -> ToolDefinition:
    allowed = frozenset(h.lower() for h in allowlist)

    async def handler(args: HttpFetchArgs) -> Dict[str, Any]:
        if args.host.lower() not in allowed:
            raise ToolError("host_not_allowed")
        response = await get(build_url(args.host, args.path), FETCH_TIMEOUT_SECONDS)
        return {"status": response["status"], "data": response["data"]}

    return ToolDefinition(
        name="http_fetch",
        description="Performs a GET request to an allowlisted host",
        input_model=HttpFetchArgs,
        handler=handler,
        parameters=HTTP_FETCH_PARAMETERS,
        requires=("network",),
    )

"""
home_assistant_sensor: read-only state lookup in Home Assistant.

Only built when both the base URL and a long-lived access token are configured.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict
from urllib.parse import quote

import aiohttp
from pydantic import Field

from internal_api.errors import ToolError

from ..registry import ToolArgs, ToolDefinition

REQUEST_TIMEOUT_SECONDS = 3.0

# (url, headers, timeout_seconds) -> (status, json body or None)
StateGetter = Callable[[str, Dict[str, str], float], Awaitable[tuple]]


class SensorArgs(ToolArgs):
    entity_id: str = Field(..., min_length=1)


SENSOR_PARAMETERS = {
    "type": "object",
    "properties": {
        "entity_id": {"type": "string", "description": "Home Assistant entity id"},
    },
    "required": ["entity_id"],
    "additionalProperties": False,
}


async def aiohttp_get_state(url: str, headers: Dict[str, str], timeout: float) -> tuple:
    async with aiohttp.ClientSession() as s:
        async with s.get(url, headers=headers, timeout=aiohttp.ClientTimeout(total=timeout)) as resp:
            body = await resp.json() if resp.content_type == "application/json" else None
            return resp.status, body


def create_home_assistant_tool(
    base_url: str,
    token: str,
    get_state: StateGetter = aiohttp_get_state,
) -> ToolDefinition:
    base = base_url.rstrip("/")
    headers = {"Authorization": f"Bearer {token}"}

    async def handler(args: SensorArgs) -> Dict[str, Any]:
        url = f"{base}/api/states/{quote(args.entity_id, safe='')}"
        status, body = await get_state(url, headers, REQUEST_TIMEOUT_SECONDS)
        if status == 404:
            raise ToolError("entity_not_found")
        if not 200 <= status < 300 or not isinstance(body, dict):
            raise ToolError("home_assistant_error")
        return {
            "entity_id": args.entity_id,
            "state": body.get("state"),
            "last_changed": body.get("last_changed"),
        }

    return ToolDefinition(
        name="home_assistant_sensor",
        description="Reads a sensor value from Home Assistant (read-only)",
        input_model=SensorArgs,
        handler=handler,
        parameters=SENSOR_PARAMETERS,
        requires=("network", "home_assistant_credentials"),
    )

"""
Generic webhook tools: POST a JSON payload to a fixed URL.

Used for the n8n webhook and for every tool declared in the YAML tool config.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Optional

import aiohttp
from pydantic import Field

from internal_api.errors import ToolError

from ..registry import ToolArgs, ToolDefinition

DEFAULT_TIMEOUT_SECONDS = 5.0
DEFAULT_DESCRIPTION = "Calls a configured webhook with a JSON payload."

# (url, payload, headers, timeout_seconds) -> {"status": int, "data": Any}
WebhookPoster = Callable[[str, Dict[str, Any], Dict[str, str], float], Awaitable[Dict[str, Any]]]


class WebhookArgs(ToolArgs):
    payload: Dict[str, Any] = Field(default_factory=dict)


WEBHOOK_PARAMETERS = {
    "type": "object",
    "properties": {
        "payload": {
            "type": "object",
            "description": "JSON payload to send to the webhook",
            "additionalProperties": True,
        },
    },
    "required": [],
    "additionalProperties": False,
}


async def aiohttp_post(url: str, payload: Dict[str, Any], headers: Dict[str, str], timeout: float) -> Dict[str, Any]:
    async with aiohttp.ClientSession() as s:
        async with s.post(
            url,
            json=payload,
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=timeout),
        ) as resp:
            if resp.status >= 400:
                raise ToolError("webhook_error")
            if resp.content_type == "application/json":
                data = await resp.json()
            else:
                data = await resp.text()
            return {"status": resp.status, "data": data}


def create_webhook_tool(
    name: str,
    url: str,
    description: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    post: WebhookPoster = aiohttp_post,
) -> ToolDefinition:
    fixed_headers = dict(headers or {})

    async def handler(args: WebhookArgs) -> Dict[str, Any]:
        return await post(url, args.payload, fixed_headers, timeout)

    return ToolDefinition(
        name=name,
        description=description or DEFAULT_DESCRIPTION,
        input_model=WebhookArgs,
        handler=handler,
        parameters=WEBHOOK_PARAMETERS,
        requires=("network",),
    )


def create_n8n_webhook_tool(webhook_url: str, post: WebhookPoster = aiohttp_post) -> ToolDefinition:
    return create_webhook_tool(
        name="n8n_webhook",
        url=webhook_url,
        description="Calls a configured n8n webhook with a JSON payload.",
        post=post,
    )

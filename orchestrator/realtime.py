"""
Realtime API session creation.

Mints a short-lived client secret for the browser. The session is created
with the current tool catalog so the model can emit function calls, which
the browser then relays back through /api/tools/dispatch.
"""

from __future__ import annotations

import time
from typing import Any, Awaitable, Callable, Dict, List, Sequence, Tuple

import aiohttp

from internal_api.errors import RealtimeSessionError
from internal_api.models import ToolCatalogEntry
from logging_setup import get_logger, Component

from .config import OrchestratorConfig

logger = get_logger(Component.REALTIME)

REALTIME_SESSIONS_URL = "https://api.openai.com/v1/realtime/sessions"
SESSION_TIMEOUT_SECONDS = 5.0
SESSION_EXPIRES_IN_SECONDS = 90

INSTRUCTIONS = " ".join([
    "You are a home network assistant. Use tools only when needed and explain briefly when you do.",
    "Do not expose secrets or attempt unknown commands.",
    "All tool calls are audited.",
])

# (url, payload, headers, timeout_seconds) -> (status, decoded JSON or None)
JsonPoster = Callable[[str, Dict[str, Any], Dict[str, str], float], Awaitable[Tuple[int, Any]]]


async def aiohttp_post_json(
    url: str,
    payload: Dict[str, Any],
    headers: Dict[str, str],
    timeout: float,
) -> Tuple[int, Any]:
    async with aiohttp.ClientSession() as s:
        async with s.post(url, json=payload, headers=headers, timeout=aiohttp.ClientTimeout(total=timeout)) as resp:
            try:
                data = await resp.json(content_type=None)
            except ValueError:
                data = None
            return resp.status, data


def function_tools(tools: Sequence[ToolCatalogEntry]) -> List[Dict[str, Any]]:
    """Describe catalog entries in the realtime API's function-tool format."""
    return [
        {
            "type": "function",
            "name": t.name,
            "description": t.description,
            "parameters": t.parameters,
        }
        for t in tools
    ]


def session_payload(config: OrchestratorConfig, tools: Sequence[ToolCatalogEntry]) -> Dict[str, Any]:
    return {
        "model": config.openai_realtime_model,
        "expires_in": SESSION_EXPIRES_IN_SECONDS,
        "modalities": ["audio", "text"],
        "instructions": INSTRUCTIONS,
        "tool_choice": "auto",
        "tools": function_tools(tools),
    }


async def create_ephemeral_token(
    config: OrchestratorConfig,
    tools: Sequence[ToolCatalogEntry],
    post: JsonPoster = aiohttp_post_json,
) -> Dict[str, Any]:
    """
    Create a realtime session and return its client_secret object
    ({"value": ..., "expires_at": ...}).

    Raises RealtimeSessionError if the key is missing, the upstream call
    fails, or the answer carries no client_secret.
    """
    if not config.openai_api_key:
        raise RealtimeSessionError("OPENAI_API_KEY not set")

    headers = {
        "Authorization": f"Bearer {config.openai_api_key}",
        "Content-Type": "application/json",
    }
    start_ts = time.time()
    try:
        status, data = await post(
            REALTIME_SESSIONS_URL,
            session_payload(config, tools),
            headers,
            SESSION_TIMEOUT_SECONDS,
        )
    except Exception as e:
        logger.error(
            "Realtime session request failed",
            error=str(e),
            error_type=type(e).__name__,
            latency_ms=int((time.time() - start_ts) * 1000),
        )
        raise RealtimeSessionError(type(e).__name__) from e

    secret = data.get("client_secret") if isinstance(data, dict) else None
    if not 200 <= status < 300 or not isinstance(secret, dict):
        logger.error(
            "Realtime session rejected",
            status=status,
            latency_ms=int((time.time() - start_ts) * 1000),
        )
        raise RealtimeSessionError(f"status_{status}")

    logger.info(
        "Realtime session created",
        model=config.openai_realtime_model,
        tools=len(tools),
        latency_ms=int((time.time() - start_ts) * 1000),
    )
    return secret

"""
Built-in tools and registry assembly.

build_registry registers tools in a fixed order: built-ins first, then the
YAML-configured webhooks, so a configured tool can never shadow a built-in.
Tools whose prerequisites are missing are reported through on_skip and left
out of the catalog.
"""

from pathlib import Path
from typing import Optional

from ..config import GatewayConfig
from ..registry import SkipCallback, ToolRegistry
from .configured import load_configured_tools
from .home_assistant import create_home_assistant_tool
from .http_fetch import HttpGetter, aiohttp_get, create_http_fetch_tool
from .note_writer import NoteStore, create_note_writer_tool
from .router_ping import PingRunner, create_router_ping_tool, subprocess_ping
from .webhook import WebhookPoster, aiohttp_post, create_n8n_webhook_tool

CREDENTIALS_REQUIRED = "credentials required"
WEBHOOK_URL_REQUIRED = "webhook url required"


def build_registry(
    config: GatewayConfig,
    on_skip: Optional[SkipCallback] = None,
    *,
    http_get: HttpGetter = aiohttp_get,
    ping_runner: PingRunner = subprocess_ping,
    webhook_post: WebhookPoster = aiohttp_post,
) -> ToolRegistry:
    """Assemble and seal the registry for this deployment."""
    registry = ToolRegistry(on_skip=on_skip)

    registry.register(create_http_fetch_tool(config.allowlist_http_hosts, get=http_get))

    if config.home_assistant_url and config.home_assistant_token:
        registry.register(
            create_home_assistant_tool(config.home_assistant_url, config.home_assistant_token)
        )
    else:
        registry.skip("home_assistant_sensor", CREDENTIALS_REQUIRED)

    registry.register(create_note_writer_tool(NoteStore(Path(config.notes_db_path))))
    registry.register(create_router_ping_tool(config.router_host, runner=ping_runner))

    if config.n8n_webhook_url:
        registry.register(create_n8n_webhook_tool(config.n8n_webhook_url, post=webhook_post))
    else:
        registry.skip("n8n_webhook", WEBHOOK_URL_REQUIRED)

    # Configured tools go last; register() skips any name already taken
    for tool in load_configured_tools(config.tool_config_path, registry.skip, post=webhook_post):
        registry.register(tool)

    registry.seal()
    return registry

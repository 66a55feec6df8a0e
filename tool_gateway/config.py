"""
Tool Gateway configuration.

Loads the shared secret and optional tool prerequisites from environment
variables. Optional tools (Home Assistant, n8n) are enabled only when their
variables are set; see tool_gateway.tools.build_registry.
"""
import os
from dataclasses import dataclass, field
from typing import List, Optional

from internal_api.env import optional_env, parse_host_list, parse_int_env, require_secret


@dataclass
class GatewayConfig:
    """Tool Gateway configuration."""

    internal_hmac_secret: str
    port: int = 4001

    # http_fetch
    allowlist_http_hosts: List[str] = field(default_factory=list)

    # home_assistant_sensor (both required)
    home_assistant_url: Optional[str] = None
    home_assistant_token: Optional[str] = None

    # n8n_webhook
    n8n_webhook_url: Optional[str] = None

    # YAML file with additional webhook tools
    tool_config_path: Optional[str] = None

    # note_writer
    notes_db_path: str = "data/notes.db"

    # router_reachable
    router_host: str = "192.168.1.1"

    log_level: str = "INFO"

    def __post_init__(self):
        require_secret("INTERNAL_HMAC_SECRET", self.internal_hmac_secret)

    @classmethod
    def from_env(cls) -> "GatewayConfig":
        """Load configuration from environment variables."""
        return cls(
            internal_hmac_secret=os.environ.get("INTERNAL_HMAC_SECRET", ""),
            port=parse_int_env("TOOL_GATEWAY_PORT", default=4001),
            allowlist_http_hosts=parse_host_list(os.environ.get("ALLOWLIST_HTTP_HOSTS", "")),
            home_assistant_url=optional_env("HOME_ASSISTANT_URL"),
            home_assistant_token=optional_env("HOME_ASSISTANT_TOKEN"),
            n8n_webhook_url=optional_env("N8N_WEBHOOK_URL"),
            tool_config_path=optional_env("TOOL_CONFIG_PATH"),
            notes_db_path=os.environ.get("NOTES_DB_PATH", "data/notes.db"),
            router_host=os.environ.get("ROUTER_HOST", "192.168.1.1"),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )


def get_config() -> GatewayConfig:
    """Get or create global config instance."""
    global _config
    if _config is None:
        _config = GatewayConfig.from_env()
    return _config


# Global config instance (lazy loaded)
_config: Optional[GatewayConfig] = None

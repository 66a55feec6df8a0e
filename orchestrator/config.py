"""
Orchestrator configuration.

Loads secrets and upstream URLs from environment variables.
"""
import os
from dataclasses import dataclass
from typing import Optional

from internal_api.env import parse_int_env, require_secret


@dataclass
class OrchestratorConfig:
    """Orchestrator configuration."""

    # Tool Gateway
    tool_gateway_url: str
    internal_hmac_secret: str

    # Browser/front-end clients (x-shared-secret)
    auth_shared_secret: str

    # Realtime API
    openai_api_key: str = ""
    openai_realtime_model: str = "gpt-4o-realtime-preview"

    port: int = 3001

    # Tool list cache freshness
    tool_cache_ttl_ms: int = 60_000

    log_level: str = "INFO"

    def __post_init__(self):
        if not self.tool_gateway_url:
            raise ValueError("TOOL_GATEWAY_URL is required")
        require_secret("INTERNAL_HMAC_SECRET", self.internal_hmac_secret)
        require_secret("AUTH_SHARED_SECRET", self.auth_shared_secret)
        self.tool_gateway_url = self.tool_gateway_url.rstrip("/")

    @classmethod
    def from_env(cls) -> "OrchestratorConfig":
        """Load configuration from environment variables."""
        return cls(
            tool_gateway_url=os.environ.get("TOOL_GATEWAY_URL", ""),
            internal_hmac_secret=os.environ.get("INTERNAL_HMAC_SECRET", ""),
            auth_shared_secret=os.environ.get("AUTH_SHARED_SECRET", ""),
            openai_api_key=os.environ.get("OPENAI_API_KEY", ""),
            openai_realtime_model=os.environ.get("OPENAI_REALTIME_MODEL", "gpt-4o-realtime-preview"),
            port=parse_int_env("ORCHESTRATOR_PORT", default=3001),
            tool_cache_ttl_ms=parse_int_env("TOOL_CACHE_TTL_MS", default=60_000),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )


def get_config() -> OrchestratorConfig:
    """Get or create global config instance."""
    global _config
    if _config is None:
        _config = OrchestratorConfig.from_env()
    return _config


# Global config instance (lazy loaded)
_config: Optional[OrchestratorConfig] = None

"""
Tests for service configuration loaded from the environment.
"""
import pytest

from internal_api.env import parse_host_list, parse_int_env
from orchestrator.config import OrchestratorConfig
from tool_gateway.config import GatewayConfig

SECRET = "0123456789abcdef0123"


@pytest.fixture
def clean_env(monkeypatch):
    for key in [
        "INTERNAL_HMAC_SECRET",
        "AUTH_SHARED_SECRET",
        "TOOL_GATEWAY_URL",
        "TOOL_GATEWAY_PORT",
        "ORCHESTRATOR_PORT",
        "ALLOWLIST_HTTP_HOSTS",
        "HOME_ASSISTANT_URL",
        "HOME_ASSISTANT_TOKEN",
        "N8N_WEBHOOK_URL",
        "TOOL_CONFIG_PATH",
        "NOTES_DB_PATH",
        "ROUTER_HOST",
        "TOOL_CACHE_TTL_MS",
        "OPENAI_API_KEY",
        "OPENAI_REALTIME_MODEL",
        "LOG_LEVEL",
    ]:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_gateway_defaults(clean_env):
    clean_env.setenv("INTERNAL_HMAC_SECRET", SECRET)

    config = GatewayConfig.from_env()

    assert config.port == 4001
    assert config.allowlist_http_hosts == []
    assert config.home_assistant_url is None
    assert config.n8n_webhook_url is None
    assert config.notes_db_path == "data/notes.db"
    assert config.router_host == "192.168.1.1"
    assert config.log_level == "INFO"


def test_gateway_from_env(clean_env):
    clean_env.setenv("INTERNAL_HMAC_SECRET", SECRET)
    clean_env.setenv("TOOL_GATEWAY_PORT", "4100  # local override")
    clean_env.setenv("ALLOWLIST_HTTP_HOSTS", "example.com, api.example.org ,,")
    clean_env.setenv("HOME_ASSISTANT_URL", "http://ha.local:8123")
    clean_env.setenv("HOME_ASSISTANT_TOKEN", "   ")
    clean_env.setenv("LOG_LEVEL", "debug")

    config = GatewayConfig.from_env()

    assert config.port == 4100
    assert config.allowlist_http_hosts == ["example.com", "api.example.org"]
    assert config.home_assistant_url == "http://ha.local:8123"
    # Blank counts as unset
    assert config.home_assistant_token is None
    assert config.log_level == "DEBUG"


@pytest.mark.parametrize("secret", ["", "too-short"])
def test_gateway_requires_long_secret(clean_env, secret):
    clean_env.setenv("INTERNAL_HMAC_SECRET", secret)
    with pytest.raises(ValueError, match="INTERNAL_HMAC_SECRET"):
        GatewayConfig.from_env()


def test_orchestrator_from_env(clean_env):
    clean_env.setenv("TOOL_GATEWAY_URL", "http://localhost:4001/")
    clean_env.setenv("INTERNAL_HMAC_SECRET", SECRET)
    clean_env.setenv("AUTH_SHARED_SECRET", "front-end-shared-secret")
    clean_env.setenv("TOOL_CACHE_TTL_MS", "5000")

    config = OrchestratorConfig.from_env()

    assert config.tool_gateway_url == "http://localhost:4001"
    assert config.port == 3001
    assert config.tool_cache_ttl_ms == 5000
    assert config.openai_realtime_model == "gpt-4o-realtime-preview"


def test_orchestrator_requires_gateway_url(clean_env):
    clean_env.setenv("INTERNAL_HMAC_SECRET", SECRET)
    clean_env.setenv("AUTH_SHARED_SECRET", "front-end-shared-secret")
    with pytest.raises(ValueError, match="TOOL_GATEWAY_URL"):
        OrchestratorConfig.from_env()


def test_orchestrator_requires_shared_secret(clean_env):
    clean_env.setenv("TOOL_GATEWAY_URL", "http://localhost:4001")
    clean_env.setenv("INTERNAL_HMAC_SECRET", SECRET)
    with pytest.raises(ValueError, match="AUTH_SHARED_SECRET"):
        OrchestratorConfig.from_env()


def test_parse_int_env(clean_env):
    clean_env.setenv("TOOL_GATEWAY_PORT", "abc")
    assert parse_int_env("TOOL_GATEWAY_PORT", 7) == 7
    clean_env.setenv("TOOL_GATEWAY_PORT", "# only a comment")
    assert parse_int_env("TOOL_GATEWAY_PORT", 7) == 7
    assert parse_int_env("ORCHESTRATOR_PORT", 3001) == 3001


def test_parse_host_list():
    assert parse_host_list("") == []
    assert parse_host_list("a.com,b.com") == ["a.com", "b.com"]

"""
Tests for the Orchestrator HTTP API.

The gateway client runs against a fake transport and the realtime API
against a fake poster.
"""
import uuid

import pytest
from fastapi.testclient import TestClient

from internal_api.models import ToolCatalogEntry
from observability.event_store import event_store
from orchestrator.config import OrchestratorConfig
from orchestrator.gateway_client import ToolGatewayClient
from orchestrator.realtime import REALTIME_SESSIONS_URL
from orchestrator.server import create_app

INTERNAL_SECRET = "0123456789abcdef0123"
SHARED_SECRET = "front-end-shared-secret"
AUTH = {"x-shared-secret": SHARED_SECRET}

CATALOG = {
    "tools": [
        {
            "name": "http_fetch",
            "description": "Performs a GET request to an allowlisted host",
            "parameters": {"type": "object", "properties": {"host": {"type": "string"}}},
        }
    ]
}


class FakeTransport:
    def __init__(self, *answers):
        self.answers = list(answers)
        self.requests = []

    async def __call__(self, method, url, body, headers, timeout):
        self.requests.append({"method": method, "url": url, "body": body, "headers": headers})
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


class FakeRealtime:
    def __init__(self, answer=(200, {"client_secret": {"value": "ek_123", "expires_at": 1700000090}})):
        self.answer = answer
        self.requests = []

    async def __call__(self, url, payload, headers, timeout):
        self.requests.append({"url": url, "payload": payload, "headers": headers, "timeout": timeout})
        if isinstance(self.answer, Exception):
            raise self.answer
        return self.answer


@pytest.fixture(autouse=True)
def cleanup():
    event_store.clear()
    yield
    event_store.clear()


@pytest.fixture
def config():
    return OrchestratorConfig(
        tool_gateway_url="http://gateway.local:4001",
        internal_hmac_secret=INTERNAL_SECRET,
        auth_shared_secret=SHARED_SECRET,
        openai_api_key="sk-test",
    )


def _app(config, transport, realtime=None):
    gateway = ToolGatewayClient(config.tool_gateway_url, config.internal_hmac_secret, transport=transport)
    return TestClient(create_app(config=config, client=gateway, realtime_post=realtime or FakeRealtime()))


def test_health_needs_no_auth(config):
    client = _app(config, FakeTransport())
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": "0.1.0"}


@pytest.mark.parametrize("headers", [{}, {"x-shared-secret": "wrong"}, {"x-shared-secret": ""}])
def test_shared_secret_required(config, headers):
    transport = FakeTransport()
    client = _app(config, transport)

    for method, path in [("post", "/api/tools/dispatch"), ("get", "/api/tools/list"), ("post", "/api/realtime/token")]:
        response = getattr(client, method)(path, headers=headers)
        assert response.status_code == 401
        assert response.json() == {"error": "unauthorized"}

    assert transport.requests == []


def test_dispatch_success_assigns_correlation_ids(config):
    transport = FakeTransport((200, {"result": {"reachable": True}}))
    client = _app(config, transport)

    response = client.post("/api/tools/dispatch", json={"tool": "router_reachable", "args": {}}, headers=AUTH)

    assert response.status_code == 200
    assert response.json() == {"result": {"reachable": True}}
    forwarded = transport.requests[0]["headers"]
    uuid.UUID(forwarded["x-request-id"])
    uuid.UUID(forwarded["x-session-id"])
    assert forwarded["x-user-id"] == "unknown"


def test_dispatch_forwards_caller_ids(config):
    transport = FakeTransport((200, {"result": None}))
    client = _app(config, transport)

    client.post(
        "/api/tools/dispatch",
        json={"tool": "router_reachable"},
        headers={**AUTH, "x-request-id": "req-5", "x-session-id": "sess-5", "x-user-id": "user-5"},
    )

    forwarded = transport.requests[0]["headers"]
    assert (forwarded["x-request-id"], forwarded["x-session-id"], forwarded["x-user-id"]) == ("req-5", "sess-5", "user-5")


def test_dispatch_gateway_4xx_is_bad_gateway(config):
    client = _app(config, FakeTransport((400, {"error": "unknown_tool"})))

    response = client.post("/api/tools/dispatch", json={"tool": "does_not_exist", "args": {}}, headers=AUTH)

    assert response.status_code == 502
    assert response.json() == {"error": "tool_gateway_unreachable"}


def test_dispatch_relays_failure_inside_2xx(config):
    client = _app(config, FakeTransport((200, {"error": "tool_failed"})))

    response = client.post("/api/tools/dispatch", json={"tool": "note_writer", "args": {}}, headers=AUTH)

    assert response.status_code == 200
    assert response.json() == {"error": "tool_failed"}


def test_dispatch_gateway_down(config):
    client = _app(config, FakeTransport(ConnectionRefusedError()))

    response = client.post("/api/tools/dispatch", json={"tool": "http_fetch", "args": {}}, headers=AUTH)

    assert response.status_code == 502
    assert response.json() == {"error": "tool_gateway_unreachable"}


def test_dispatch_gateway_rejects_signature(config):
    """A secret mismatch between the services is a deployment fault, not a tool failure."""
    client = _app(config, FakeTransport((401, {"error": "invalid_signature"})))

    response = client.post("/api/tools/dispatch", json={"tool": "http_fetch", "args": {}}, headers=AUTH)

    assert response.status_code == 502
    assert response.json() == {"error": "tool_gateway_unreachable"}


@pytest.mark.parametrize("body", ["not json", "[]", '{"args": {}}', '{"tool": ""}'])
def test_dispatch_invalid_payload(config, body):
    transport = FakeTransport()
    client = _app(config, transport)

    response = client.post(
        "/api/tools/dispatch",
        content=body,
        headers={**AUTH, "content-type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "invalid_payload"}
    assert transport.requests == []


def test_list_tools_from_cache(config):
    transport = FakeTransport((200, CATALOG))
    client = _app(config, transport)

    first = client.get("/api/tools/list", headers=AUTH)
    second = client.get("/api/tools/list", headers=AUTH)

    assert first.status_code == 200
    assert first.json() == CATALOG
    assert second.json() == CATALOG
    assert len(transport.requests) == 1


def test_list_tools_gateway_down_is_empty(config):
    client = _app(config, FakeTransport(ConnectionRefusedError()))

    response = client.get("/api/tools/list", headers=AUTH)

    assert response.status_code == 200
    assert response.json() == {"tools": []}
    assert len(event_store.query(event_type="tool_cache.fallback")) == 1


def test_realtime_token_includes_catalog(config):
    realtime = FakeRealtime()
    client = _app(config, FakeTransport((200, CATALOG)), realtime=realtime)

    response = client.post("/api/realtime/token", headers=AUTH)

    assert response.status_code == 200
    assert response.json() == {"value": "ek_123", "expires_at": 1700000090}

    request = realtime.requests[0]
    assert request["url"] == REALTIME_SESSIONS_URL
    assert request["headers"]["Authorization"] == "Bearer sk-test"
    payload = request["payload"]
    assert payload["model"] == "gpt-4o-realtime-preview"
    assert payload["expires_in"] == 90
    assert payload["tool_choice"] == "auto"
    assert payload["tools"] == [
        {
            "type": "function",
            "name": "http_fetch",
            "description": "Performs a GET request to an allowlisted host",
            "parameters": {"type": "object", "properties": {"host": {"type": "string"}}},
        }
    ]


@pytest.mark.parametrize(
    "answer",
    [(401, {"error": {"message": "bad key"}}), (200, {"id": "sess"}), ConnectionResetError()],
)
def test_realtime_token_upstream_failure(config, answer):
    client = _app(config, FakeTransport((200, CATALOG)), realtime=FakeRealtime(answer))

    response = client.post("/api/realtime/token", headers=AUTH)

    assert response.status_code == 502
    assert response.json() == {"error": "realtime_session_failed"}


def test_realtime_token_without_api_key(config):
    config.openai_api_key = ""
    realtime = FakeRealtime()
    client = _app(config, FakeTransport((200, CATALOG)), realtime=realtime)

    response = client.post("/api/realtime/token", headers=AUTH)

    assert response.status_code == 502
    assert realtime.requests == []


def test_catalog_entry_defaults():
    entry = ToolCatalogEntry(name="router_reachable")
    assert entry.description == ""
    assert entry.parameters == {"type": "object", "properties": {}, "additionalProperties": False}

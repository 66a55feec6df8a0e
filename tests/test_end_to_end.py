"""
Orchestrator relay against a real in-process Tool Gateway.

The relay's transport is routed to the gateway ASGI app through httpx, so
signing, verification, dispatch and status mapping run end to end.
"""
import httpx
import pytest

from internal_api.context import RequestContext
from internal_api.errors import ToolGatewayUnreachable
from observability.event_store import event_store
from orchestrator.gateway_client import ToolGatewayClient
from tool_gateway.config import GatewayConfig
from tool_gateway.server import create_app
from tool_gateway.tools import build_registry
from tool_gateway.tools.router_ping import PingResult

SECRET = "0123456789abcdef0123"
CTX = RequestContext(request_id="req-e2e", session_id="sess-e2e", user_id="user-e2e")


async def fake_ping(host):
    return PingResult(code=0, stdout="64 bytes from 192.168.1.1: icmp_seq=1 ttl=64 time=2.34 ms", stderr="")


def asgi_transport(app):
    async def transport(method, url, body, headers, timeout):
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), timeout=timeout) as client:
            response = await client.request(method, url, content=body, headers=headers)
        try:
            return response.status_code, response.json()
        except ValueError:
            return response.status_code, None

    return transport


@pytest.fixture(autouse=True)
def cleanup():
    event_store.clear()
    yield
    event_store.clear()


@pytest.fixture
def gateway_app(tmp_path):
    config = GatewayConfig(
        internal_hmac_secret=SECRET,
        allowlist_http_hosts=[],
        notes_db_path=str(tmp_path / "notes.db"),
    )
    return create_app(config=config, registry=build_registry(config, ping_runner=fake_ping))


@pytest.mark.asyncio
async def test_router_ping_round_trip(gateway_app):
    client = ToolGatewayClient("http://gateway", SECRET, transport=asgi_transport(gateway_app))

    result = await client.invoke("router_reachable", {}, CTX)

    assert result == {"host": "192.168.1.1", "reachable": True, "latency_ms": 2.34}
    outcome = event_store.query(event_type="tool.outcome")[0]
    assert outcome["session_id"] == "sess-e2e"
    assert outcome["user_id"] == "user-e2e"


@pytest.mark.asyncio
async def test_note_writer_round_trip(gateway_app):
    client = ToolGatewayClient("http://gateway", SECRET, transport=asgi_transport(gateway_app))

    result = await client.invoke("note_writer", {"title": "Groceries", "content": "Milk, eggs"}, CTX)

    assert result["id"] == 1


@pytest.mark.asyncio
async def test_unknown_tool_round_trip(gateway_app):
    client = ToolGatewayClient("http://gateway", SECRET, transport=asgi_transport(gateway_app))

    with pytest.raises(ToolGatewayUnreachable) as exc_info:
        await client.invoke("does_not_exist", {}, CTX)

    assert exc_info.value.status == 400
    outcome = event_store.query(event_type="tool.outcome")[0]
    assert outcome["error"] == "unknown_tool"


@pytest.mark.asyncio
async def test_host_not_allowed_round_trip(gateway_app):
    client = ToolGatewayClient("http://gateway", SECRET, transport=asgi_transport(gateway_app))

    with pytest.raises(ToolGatewayUnreachable) as exc_info:
        await client.invoke("http_fetch", {"host": "example.com", "path": "/"}, CTX)

    assert exc_info.value.status == 400
    outcome = event_store.query(event_type="tool.outcome")[0]
    assert outcome["error"] == "host_not_allowed"


@pytest.mark.asyncio
async def test_mismatched_secret_is_unreachable(gateway_app):
    client = ToolGatewayClient("http://gateway", "a-different-secret-value", transport=asgi_transport(gateway_app))

    with pytest.raises(ToolGatewayUnreachable) as exc_info:
        await client.invoke("router_reachable", {}, CTX)

    assert exc_info.value.status == 401


@pytest.mark.asyncio
async def test_catalog_round_trip(gateway_app):
    client = ToolGatewayClient("http://gateway", SECRET, transport=asgi_transport(gateway_app))

    tools = await client.list_tools(CTX)

    assert [t.name for t in tools] == ["http_fetch", "note_writer", "router_reachable"]
    assert tools[0].parameters["required"] == ["host"]

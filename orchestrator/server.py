"""
Orchestrator HTTP server.

Endpoints (all but /health require x-shared-secret):
- POST /api/realtime/token   mint a realtime session secret
- POST /api/tools/dispatch   relay one tool call to the gateway
- GET  /api/tools/list       cached tool catalog
- GET  /health
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError

from internal_api.context import assign_context
from internal_api.errors import (
    ErrorCode,
    RealtimeSessionError,
    ToolDispatchFailed,
    ToolGatewayUnreachable,
)
from internal_api.models import ToolListResponse
from logging_setup import get_logger, Component

from .auth import Unauthorized, require_shared_secret, unauthorized_handler
from .config import OrchestratorConfig, get_config
from .gateway_client import ToolGatewayClient
from .realtime import JsonPoster, aiohttp_post_json, create_ephemeral_token

logger = get_logger(Component.ORCHESTRATOR)
router = APIRouter(prefix="/api", dependencies=[Depends(require_shared_secret)])

VERSION = "0.1.0"


class DispatchRequest(BaseModel):
    tool: str = Field(..., min_length=1)
    args: Any = None


@router.post("/realtime/token")
async def realtime_token(request: Request) -> JSONResponse:
    context = assign_context(request.headers)
    client: ToolGatewayClient = request.app.state.client
    tools = await client.list_tools(context)
    try:
        secret = await create_ephemeral_token(
            request.app.state.config, tools, post=request.app.state.realtime_post
        )
    except RealtimeSessionError as e:
        logger.with_session(context.session_id).error(
            "Realtime token request failed", reason=str(e), request_id=context.request_id
        )
        return JSONResponse(status_code=502, content={"error": e.code})
    return JSONResponse(content=secret)


@router.post("/tools/dispatch")
async def dispatch_tool(request: Request) -> JSONResponse:
    """Relay one tool call; any relay failure, including a gateway 4xx, is a 502."""
    context = assign_context(request.headers)
    body = await request.body()
    try:
        payload = DispatchRequest.model_validate_json(body or b"{}")
    except ValidationError:
        logger.warning("Invalid dispatch payload", body_size=len(body), request_id=context.request_id)
        return JSONResponse(status_code=400, content={"error": ErrorCode.INVALID_PAYLOAD})

    client: ToolGatewayClient = request.app.state.client
    try:
        result = await client.invoke(payload.tool, payload.args, context)
    except ToolDispatchFailed as e:
        return JSONResponse(status_code=e.status_code, content={"error": e.code})
    except ToolGatewayUnreachable as e:
        return JSONResponse(status_code=502, content={"error": e.code})
    return JSONResponse(content={"result": result})


@router.get("/tools/list", response_model=ToolListResponse)
async def list_tools(request: Request) -> ToolListResponse:
    client: ToolGatewayClient = request.app.state.client
    return ToolListResponse(tools=await client.list_tools(assign_context(request.headers)))


health_router = APIRouter()


@health_router.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok", "version": VERSION}


def create_app(
    config: Optional[OrchestratorConfig] = None,
    client: Optional[ToolGatewayClient] = None,
    realtime_post: JsonPoster = aiohttp_post_json,
) -> FastAPI:
    """
    Build the orchestrator app.

    With no arguments, configuration comes from the environment and a
    gateway client is built from it; tests pass their own.
    """
    config = config or get_config()
    if client is None:
        client = ToolGatewayClient(
            config.tool_gateway_url,
            config.internal_hmac_secret,
            cache_ttl_ms=config.tool_cache_ttl_ms,
        )

    app = FastAPI(title="Orchestrator", version=VERSION)
    app.state.config = config
    app.state.client = client
    app.state.realtime_post = realtime_post
    app.add_exception_handler(Unauthorized, unauthorized_handler)
    app.include_router(health_router)
    app.include_router(router)

    logger.info("Orchestrator ready", tool_gateway_url=config.tool_gateway_url)
    return app

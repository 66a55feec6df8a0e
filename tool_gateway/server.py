"""
Tool Gateway HTTP server.

Endpoints:
- POST /v1/tools/invoke  signed; runs one tool
- GET  /v1/tools/list    signed; returns the catalog
- GET  /health
"""
import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from internal_api.context import context_from_headers
from internal_api.errors import ErrorCode, InvalidSignature
from internal_api.models import EMPTY_BODY, INVOKE_PATH, LIST_PATH, ToolInvokeRequest, ToolListResponse
from logging_setup import get_logger, Component
from observability.events import Component as ObsComponent, EventEmitter

from .auth import invalid_signature_handler, require_signature
from .config import GatewayConfig, get_config
from .invoker import ToolInvoker
from .registry import ToolRegistry
from .tools import build_registry

logger = get_logger(Component.TOOL_GATEWAY)
router = APIRouter()


@router.post(INVOKE_PATH)
async def invoke_tool(request: Request, body: bytes = Depends(require_signature)) -> JSONResponse:
    """Run one tool call and map its outcome to a status code."""
    context = context_from_headers(request.headers)

    try:
        payload = ToolInvokeRequest.model_validate_json(body or EMPTY_BODY)
    except ValidationError:
        logger.warning("Invalid invoke payload", body_size=len(body), request_id=context.request_id)
        return JSONResponse(status_code=400, content={"error": ErrorCode.INVALID_PAYLOAD})

    invoker: ToolInvoker = request.app.state.invoker
    # Shielded: the handler runs to completion even if the caller goes away
    outcome = await asyncio.shield(invoker.dispatch(payload.tool, payload.args, context))

    logger.info(
        "Tool invoke handled",
        tool=outcome.tool,
        state=outcome.state.value,
        duration_ms=outcome.duration_ms,
        **context.as_log_fields(),
    )
    return JSONResponse(status_code=outcome.status_code, content=outcome.to_response())


@router.get(LIST_PATH, response_model=ToolListResponse)
async def list_tools(request: Request, _: bytes = Depends(require_signature)) -> ToolListResponse:
    registry: ToolRegistry = request.app.state.registry
    return ToolListResponse(tools=registry.catalog())


@router.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok", "component": "tool_gateway"}


def create_app(
    config: Optional[GatewayConfig] = None,
    registry: Optional[ToolRegistry] = None,
) -> FastAPI:
    """
    Build the gateway app.

    With no arguments, configuration comes from the environment and the
    registry from build_registry; tests pass their own.
    """
    config = config or get_config()
    emitter = EventEmitter(ObsComponent.TOOL_GATEWAY)
    if registry is None:
        registry = build_registry(config, on_skip=emitter.tool_disabled)

    app = FastAPI(title="Tool Gateway")
    app.state.config = config
    app.state.registry = registry
    app.state.invoker = ToolInvoker(registry, emitter=emitter)
    app.add_exception_handler(InvalidSignature, invalid_signature_handler)
    app.include_router(router)

    logger.info("Tool gateway ready", tools=registry.names(), skipped=[s.name for s in registry.skipped])
    return app

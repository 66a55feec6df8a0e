"""
Shared-secret authentication for front-end callers.
"""
import hmac

from fastapi import Request
from fastapi.responses import JSONResponse

from internal_api.errors import ErrorCode
from logging_setup import get_logger, Component

logger = get_logger(Component.ORCHESTRATOR)

AUTH_HEADER = "x-shared-secret"


class Unauthorized(Exception):
    """Missing or wrong x-shared-secret."""


async def require_shared_secret(request: Request) -> None:
    provided = request.headers.get(AUTH_HEADER, "")
    expected = request.app.state.config.auth_shared_secret
    if not provided or not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Rejected unauthenticated request", path=request.url.path, has_secret=bool(provided))
        raise Unauthorized()


async def unauthorized_handler(request: Request, exc: Unauthorized) -> JSONResponse:
    return JSONResponse(status_code=401, content={"error": ErrorCode.UNAUTHORIZED})

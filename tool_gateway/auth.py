"""
Signature verification for inbound internal requests.

require_signature runs as a FastAPI dependency, so it completes (and must
pass) before an endpoint body, and therefore any tool lookup, runs.
"""
from fastapi import Request
from fastapi.responses import JSONResponse

from internal_api.errors import ErrorCode, InvalidSignature
from internal_api.models import EMPTY_BODY
from internal_api.signing import SIGNATURE_HEADER, TIMESTAMP_HEADER, verify
from logging_setup import get_logger, Component

logger = get_logger(Component.SIGNATURE_VERIFIER)


async def require_signature(request: Request) -> bytes:
    """
    Verify x-internal-signature / x-internal-timestamp over the raw body.

    An empty body (GET /v1/tools/list) is verified as "{}".
    Returns the raw body for the endpoint to parse.
    """
    body = await request.body()
    header = {
        "signature": request.headers.get(SIGNATURE_HEADER, ""),
        "timestamp": request.headers.get(TIMESTAMP_HEADER, ""),
    }
    secret = request.app.state.config.internal_hmac_secret
    if not verify(secret, body or EMPTY_BODY.encode("utf-8"), header):
        logger.warning(
            "Rejected internal request",
            path=request.url.path,
            has_signature=bool(header["signature"]),
            has_timestamp=bool(header["timestamp"]),
        )
        raise InvalidSignature()
    return body


async def invalid_signature_handler(request: Request, exc: InvalidSignature) -> JSONResponse:
    return JSONResponse(status_code=401, content={"error": ErrorCode.INVALID_SIGNATURE})

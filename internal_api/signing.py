"""
Timestamped HMAC signing for service-to-service requests.

The signature covers "<timestamp>.<body>" where timestamp is milliseconds
since the epoch in decimal and body is the exact byte sequence sent:

    signature = hex(HMAC_SHA256(secret, b"<timestamp>." + body))

Both services must compute this identically to interoperate. Verification
never raises; any failure is reported as False.
"""

from __future__ import annotations

import hashlib
import hmac
import time
from typing import Any, Mapping, NamedTuple, Optional, Union

from pydantic import BaseModel, Field, ValidationError

SIGNATURE_HEADER = "x-internal-signature"
TIMESTAMP_HEADER = "x-internal-timestamp"

DEFAULT_TOLERANCE_MS = 5 * 60 * 1000

Body = Union[str, bytes]


class Signature(NamedTuple):
    """Hex signature and the decimal timestamp string it was computed for."""

    signature: str
    timestamp: str

    def to_headers(self) -> dict[str, str]:
        return {SIGNATURE_HEADER: self.signature, TIMESTAMP_HEADER: self.timestamp}


class SignatureHeader(BaseModel):
    """Structural shape of an incoming signature/timestamp pair."""

    signature: str = Field(pattern=r"^[0-9a-f]{64}$")
    timestamp: str = Field(pattern=r"^[0-9]{1,16}$")


def _now_ms() -> int:
    return int(time.time() * 1000)


def _as_bytes(body: Body) -> bytes:
    return body.encode("utf-8") if isinstance(body, str) else body


def _digest(secret: str, body: bytes, timestamp: str) -> str:
    mac = hmac.new(secret.encode("utf-8"), digestmod=hashlib.sha256)
    mac.update(timestamp.encode("ascii") + b"." + body)
    return mac.hexdigest()


def sign(secret: str, body: Body, timestamp: Optional[int] = None) -> Signature:
    """
    Sign a request body.

    Args:
        secret: Shared secret for this service pair
        body: Exact body that will be sent (str is encoded as UTF-8)
        timestamp: Milliseconds since epoch; defaults to now

    Returns:
        Signature(signature, timestamp), both strings
    """
    ts = str(_now_ms() if timestamp is None else int(timestamp))
    return Signature(_digest(secret, _as_bytes(body), ts), ts)


def verify(
    secret: str,
    body: Body,
    header: Mapping[str, Any],
    tolerance_ms: int = DEFAULT_TOLERANCE_MS,
    now_ms: Optional[int] = None,
) -> bool:
    """
    Check a signature/timestamp pair against a body.

    Returns True only if the header is well-formed, the timestamp is within
    tolerance_ms of now (either direction) and the signature matches.
    """
    try:
        parsed = SignatureHeader.model_validate(dict(header))
    except (ValidationError, TypeError, ValueError):
        return False

    ts = int(parsed.timestamp)
    now = _now_ms() if now_ms is None else now_ms
    if abs(now - ts) > tolerance_ms:
        return False

    expected = _digest(secret, _as_bytes(body), parsed.timestamp)
    return hmac.compare_digest(parsed.signature, expected)

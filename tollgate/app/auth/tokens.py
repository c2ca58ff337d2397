"""HS256 JSON Web Tokens.

A token is ``base64url(header).base64url(payload).base64url(signature)``
where the signature is HMAC-SHA256 over the first two segments joined by
a dot. Verification never raises for bad tokens; it returns InvalidToken
with a message the caller can branch on or log.
"""

import hashlib
import hmac
import json
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Union

from jose import jwt
from jose.utils import base64url_decode as _b64decode, base64url_encode as _b64encode

from tollgate.app.core.utils import now_seconds

ALGORITHM = "HS256"

# Error messages returned in InvalidToken.error
ERROR_FORMAT = "Invalid token format"
ERROR_SIGNATURE = "Invalid signature"
ERROR_TAMPERED = "Signature mismatch - token tampered"
ERROR_ALGORITHM = "Unsupported token algorithm"
ERROR_EXPIRED = "Token expired"

# Values of the "type" claim
TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"

Secret = Union[str, bytes]


@dataclass(frozen=True)
class ValidToken:
    """Signature and expiry checks passed."""
    payload: dict[str, Any]
    valid: bool = field(default=True, init=False)


@dataclass(frozen=True)
class InvalidToken:
    """Verification failed.

    Attributes:
        error: Reason, one of the ERROR_* messages
        expired_at: Expiry as an aware UTC datetime when error is ERROR_EXPIRED
    """
    error: str
    expired_at: Optional[datetime] = None
    valid: bool = field(default=False, init=False)


VerifyResult = Union[ValidToken, InvalidToken]


def base64url_encode(data: bytes) -> str:
    """Encode bytes as unpadded URL-safe base64."""
    return _b64encode(data).decode("ascii")


def base64url_decode(segment: str) -> bytes:
    """Decode unpadded URL-safe base64.

    Raises:
        ValueError: If the segment is not valid base64
    """
    return _b64decode(segment.encode("ascii"))


def _decode_segment(segment: str) -> Any:
    return json.loads(base64url_decode(segment).decode("utf-8"))


def _sign(signing_input: str, secret: Secret) -> str:
    key = secret.encode("utf-8") if isinstance(secret, str) else secret
    digest = hmac.new(key, signing_input.encode("utf-8"), hashlib.sha256).digest()
    return base64url_encode(digest)


def create_jwt(payload: dict[str, Any], secret: Secret) -> str:
    """Create a signed HS256 token.

    Args:
        payload: JSON-serializable claims
        secret: HMAC key

    Returns:
        The compact ``header.payload.signature`` token
    """
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def verify_jwt(token: str, secret: Secret, now: Optional[int] = None) -> VerifyResult:
    """Verify a token's signature and expiry.

    The signature is checked before anything in the token is decoded, so
    altered claims are never parsed.

    Args:
        token: Compact token string
        secret: HMAC key the token was signed with
        now: Current unix time in seconds (defaults to the wall clock)

    Returns:
        ValidToken with the decoded payload, or InvalidToken
    """
    parts = token.split(".")
    if len(parts) != 3:
        return InvalidToken(ERROR_FORMAT)

    header_b64, payload_b64, signature_b64 = parts

    provided = signature_b64.encode("utf-8")
    expected = _sign(f"{header_b64}.{payload_b64}", secret).encode("ascii")

    if len(provided) != len(expected):
        return InvalidToken(ERROR_SIGNATURE)

    # Constant-time comparison to prevent timing attacks
    if not hmac.compare_digest(provided, expected):
        return InvalidToken(ERROR_TAMPERED)

    try:
        header = _decode_segment(header_b64)
        payload = _decode_segment(payload_b64)
    except ValueError:
        return InvalidToken(ERROR_FORMAT)

    if not isinstance(header, dict) or not isinstance(payload, dict):
        return InvalidToken(ERROR_FORMAT)

    if header.get("alg") != ALGORITHM:
        return InvalidToken(ERROR_ALGORITHM)

    exp = payload.get("exp")
    if exp is not None:
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            return InvalidToken(ERROR_FORMAT)
        # NaN and infinities parse from JSON but are not timestamps
        if isinstance(exp, float) and not math.isfinite(exp):
            return InvalidToken(ERROR_FORMAT)
        current = now if now is not None else now_seconds()
        if exp < current:
            try:
                expired_at = datetime.fromtimestamp(exp, tz=timezone.utc)
            except (OverflowError, OSError, ValueError):
                expired_at = None
            return InvalidToken(ERROR_EXPIRED, expired_at=expired_at)

    return ValidToken(payload)

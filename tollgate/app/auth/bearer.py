"""Authorization header authentication.

Parses ``Authorization: Bearer <jwt>`` and verifies the token. Only access
tokens authenticate a request; a refresh token presented here is refused.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from tollgate.app.auth.tokens import TOKEN_TYPE_ACCESS, Secret, verify_jwt

ERROR_NO_HEADER = "No Authorization header"
ERROR_BAD_FORMAT = "Invalid Authorization format (need: Bearer <token>)"
ERROR_NOT_ACCESS = "Not an access token"


@dataclass(frozen=True)
class Authenticated:
    user: dict[str, Any]
    authenticated: bool = field(default=True, init=False)


@dataclass(frozen=True)
class Unauthenticated:
    error: str
    authenticated: bool = field(default=False, init=False)


AuthResult = Union[Authenticated, Unauthenticated]


def parse_bearer(header: Optional[str]) -> Optional[str]:
    """Extract the token from an Authorization header value.

    Returns:
        The token, or None when the header is not ``Bearer <token>``
    """
    if not header:
        return None
    parts = header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        return None
    return parts[1]


def authenticate_authorization(
    header: Optional[str],
    secret: Secret,
    now: Optional[int] = None,
) -> AuthResult:
    """Authenticate a request from its Authorization header.

    Args:
        header: Raw Authorization header value, or None if absent
        secret: HMAC key access tokens are signed with
        now: Current unix time in seconds (defaults to the wall clock)

    Returns:
        Authenticated with the token claims, or Unauthenticated
    """
    if not header:
        return Unauthenticated(ERROR_NO_HEADER)

    token = parse_bearer(header)
    if token is None:
        return Unauthenticated(ERROR_BAD_FORMAT)

    result = verify_jwt(token, secret, now=now)
    if not result.valid:
        return Unauthenticated(result.error)

    if result.payload.get("type") != TOKEN_TYPE_ACCESS:
        return Unauthenticated(ERROR_NOT_ACCESS)

    return Authenticated(result.payload)

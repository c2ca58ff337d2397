import hmac
from typing import Any

from fastapi import Request

from tollgate.app.auth import TokenService, parse_bearer
from tollgate.app.core.config import Settings
from tollgate.app.core.logging import get_log_context, get_logger
from tollgate.app.exceptions import AuthenticationError
from tollgate.app.middleware.request_id import get_request_id

logger = get_logger(__name__)


def get_bearer_token(request: Request) -> str | None:
    """Extract Bearer token from Authorization header.

    Args:
        request: The incoming request

    Returns:
        The token, or None unless the header is exactly ``Bearer <token>``
    """
    return parse_bearer(request.headers.get("Authorization"))


def get_token_service(request: Request) -> TokenService:
    """Token service attached to the application by create_app."""
    return request.app.state.token_service


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def require_access_token(request: Request) -> dict[str, Any]:
    """Validate the bearer access token and return its claims.

    Raises:
        AuthenticationError: 401 if the header is missing, malformed, or the
            token is invalid, expired or not an access token
    """
    result = get_token_service(request).authenticate(request.headers.get("Authorization"))
    if not result.authenticated:
        logger.info(
            f"Authentication failed: {result.error}",
            extra=get_log_context(
                request_id=get_request_id(request),
                path=request.url.path,
                method=request.method,
                status_code=401,
            ),
        )
        raise AuthenticationError(result.error)
    return result.user


def require_admin(request: Request) -> str:
    """Validate admin token for protected endpoints.

    Args:
        request: The incoming request

    Returns:
        Admin identifier if valid

    Raises:
        AuthenticationError: 401 if admin token is missing, invalid or not configured
    """
    expected_token = get_app_settings(request).admin_token
    token = get_bearer_token(request) or ""

    if not expected_token:
        logger.warning("Admin endpoint called but ADMIN_TOKEN is not configured")
        raise AuthenticationError("Invalid or missing admin token")

    # Use constant-time comparison to prevent timing attacks
    if not hmac.compare_digest(token.encode(), expected_token.encode()):
        # Use consistent error message to prevent token enumeration
        raise AuthenticationError("Invalid or missing admin token")

    return "admin"

"""Token endpoints: issuance, refresh, revocation and identity."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from tollgate.app.auth import TokenService
from tollgate.app.exceptions import AuthenticationError
from tollgate.app.middleware.auth import get_token_service, require_access_token, require_admin
from tollgate.app.middleware.rate_limit import RouteRateLimit

router = APIRouter(tags=["auth"])


class TokenRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=256)
    role: Optional[str] = Field(default=None, max_length=64)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1, max_length=4096)


class RevokeRequest(BaseModel):
    jti: str = Field(min_length=1, max_length=128)


def limit_credential_exchange(request: Request) -> None:
    """Apply the stricter credential-exchange limiter configured on the app."""
    RouteRateLimit(request.app.state.auth_limiter)(request)


@router.post("/auth/token")
def issue_tokens(
    body: TokenRequest,
    _admin: str = Depends(require_admin),
    service: TokenService = Depends(get_token_service),
) -> dict[str, Any]:
    """Issue an access/refresh token pair for a user (admin only)."""
    pair = service.issue_token_pair(body.user_id, body.role)
    return {
        "access_token": pair.access_token,
        "refresh_token": pair.refresh_token,
        "refresh_jti": pair.refresh_jti,
        "token_type": "bearer",
        "expires_in": service.access_ttl,
    }


@router.post("/auth/refresh", dependencies=[Depends(limit_credential_exchange)])
def refresh_tokens(
    body: RefreshRequest,
    service: TokenService = Depends(get_token_service),
) -> dict[str, Any]:
    """Exchange a refresh token for a new access token."""
    result = service.refresh_access_token(body.refresh_token)
    if not result.success:
        raise AuthenticationError(result.error)
    return {
        "access_token": result.access_token,
        "token_type": "bearer",
        "expires_in": service.access_ttl,
    }


@router.post("/auth/revoke")
def revoke_refresh_token(
    body: RevokeRequest,
    _admin: str = Depends(require_admin),
    service: TokenService = Depends(get_token_service),
) -> dict[str, bool]:
    """Revoke a refresh token by jti (admin only)."""
    return {"revoked": service.revoke(body.jti)}


@router.get("/me")
def whoami(user: dict[str, Any] = Depends(require_access_token)) -> dict[str, Any]:
    """Return the claims of the authenticated access token."""
    return {"user": user}

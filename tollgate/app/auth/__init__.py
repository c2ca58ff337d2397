"""JWT issuance, verification and refresh token revocation."""

from tollgate.app.auth.bearer import (
    AuthResult,
    Authenticated,
    Unauthenticated,
    authenticate_authorization,
    parse_bearer,
)
from tollgate.app.auth.service import (
    ACCESS_TOKEN_TTL,
    REFRESH_TOKEN_TTL,
    RefreshFailed,
    RefreshResult,
    RefreshSucceeded,
    TokenPair,
    TokenService,
    get_token_service,
    issue_token_pair,
    refresh_access_token,
    reset_token_service,
)
from tollgate.app.auth.store import (
    InMemoryRefreshTokenStore,
    RedisRefreshTokenStore,
    RefreshRecord,
    RefreshTokenStore,
    get_refresh_token_store,
    reset_refresh_token_store,
)
from tollgate.app.auth.tokens import (
    InvalidToken,
    ValidToken,
    VerifyResult,
    base64url_decode,
    base64url_encode,
    create_jwt,
    verify_jwt,
)

__all__ = [
    # Bearer authentication
    "Authenticated",
    "Unauthenticated",
    "AuthResult",
    "authenticate_authorization",
    "parse_bearer",
    # Tokens
    "create_jwt",
    "verify_jwt",
    "base64url_encode",
    "base64url_decode",
    "ValidToken",
    "InvalidToken",
    "VerifyResult",
    # Stores
    "RefreshRecord",
    "RefreshTokenStore",
    "InMemoryRefreshTokenStore",
    "RedisRefreshTokenStore",
    "get_refresh_token_store",
    "reset_refresh_token_store",
    # Service
    "ACCESS_TOKEN_TTL",
    "REFRESH_TOKEN_TTL",
    "TokenPair",
    "TokenService",
    "RefreshSucceeded",
    "RefreshFailed",
    "RefreshResult",
    "issue_token_pair",
    "refresh_access_token",
    "get_token_service",
    "reset_token_service",
]

"""Access/refresh token issuance, refresh and revocation.

Access tokens are short lived and stateless. Refresh tokens carry a random
``jti`` recorded in a RefreshTokenStore; flipping the record inactive makes
every later refresh with that token fail, even though its signature stays
valid until ``exp``. An access token already issued stays usable until it
expires.
"""

import secrets
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from tollgate.app.auth.bearer import AuthResult, authenticate_authorization
from tollgate.app.auth.store import (
    RefreshRecord,
    RefreshTokenStore,
    get_refresh_token_store,
)
from tollgate.app.auth.tokens import (
    TOKEN_TYPE_ACCESS,
    TOKEN_TYPE_REFRESH,
    Secret,
    VerifyResult,
    create_jwt,
    verify_jwt,
)
from tollgate.app.core.config import Settings, settings as default_settings
from tollgate.app.core.logging import get_log_context, get_logger
from tollgate.app.core.utils import now_seconds

logger = get_logger(__name__)

ACCESS_TOKEN_TTL = 900  # 15 minutes
REFRESH_TOKEN_TTL = 604800  # 7 days

ERROR_NOT_REFRESH = "Not a refresh token"
ERROR_REVOKED = "Refresh token revoked"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    refresh_jti: str


@dataclass(frozen=True)
class RefreshSucceeded:
    access_token: str
    success: bool = field(default=True, init=False)


@dataclass(frozen=True)
class RefreshFailed:
    error: str
    success: bool = field(default=False, init=False)


RefreshResult = Union[RefreshSucceeded, RefreshFailed]


class TokenService:
    """Issues and refreshes tokens signed with one secret."""

    def __init__(
        self,
        secret: Secret,
        store: Optional[RefreshTokenStore] = None,
        access_ttl: int = ACCESS_TOKEN_TTL,
        refresh_ttl: int = REFRESH_TOKEN_TTL,
        clock: Optional[Callable[[], int]] = None,
    ):
        """Initialize the token service.

        Args:
            secret: HMAC signing key, must not be empty
            store: Refresh token store (defaults to the global store)
            access_ttl: Access token lifetime in seconds
            refresh_ttl: Refresh token lifetime in seconds
            clock: Callable returning unix time in seconds
        """
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        if access_ttl < 1 or refresh_ttl < 1:
            raise ValueError("Token lifetimes must be at least 1 second")
        self._secret = secret
        self._store = store if store is not None else get_refresh_token_store()
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self._clock = clock or now_seconds

    @property
    def store(self) -> RefreshTokenStore:
        return self._store

    def create_access_token(self, user_id: str, role: Optional[str]) -> str:
        now = self._clock()
        return create_jwt(
            {
                "sub": user_id,
                "role": role,
                "type": TOKEN_TYPE_ACCESS,
                "iat": now,
                "exp": now + self.access_ttl,
            },
            self._secret,
        )

    def issue_token_pair(self, user_id: str, role: Optional[str]) -> TokenPair:
        """Issue an access token and a revocable refresh token.

        Args:
            user_id: Subject of both tokens
            role: Role claim carried by access tokens

        Returns:
            TokenPair including the refresh token's jti
        """
        now = self._clock()
        jti = secrets.token_hex(16)
        refresh_token = create_jwt(
            {
                "sub": user_id,
                "type": TOKEN_TYPE_REFRESH,
                "jti": jti,
                "iat": now,
                "exp": now + self.refresh_ttl,
            },
            self._secret,
        )
        access_token = self.create_access_token(user_id, role)

        self._store.set(jti, RefreshRecord(user_id=user_id, active=True, role=role), ttl=self.refresh_ttl)
        logger.info("Issued token pair", extra=get_log_context(subject=user_id, jti=jti))

        return TokenPair(access_token=access_token, refresh_token=refresh_token, refresh_jti=jti)

    def verify(self, token: str) -> VerifyResult:
        """Verify a token against this service's secret and clock."""
        return verify_jwt(token, self._secret, now=self._clock())

    def authenticate(self, authorization: Optional[str]) -> AuthResult:
        """Authenticate an Authorization header value with an access token."""
        return authenticate_authorization(authorization, self._secret, now=self._clock())

    def refresh_access_token(self, refresh_token: str) -> RefreshResult:
        """Mint a new access token from a valid, unrevoked refresh token."""
        result = self.verify(refresh_token)
        if not result.valid:
            logger.warning(f"Refresh rejected: {result.error}")
            return RefreshFailed(result.error)

        payload: dict[str, Any] = result.payload
        if payload.get("type") != TOKEN_TYPE_REFRESH:
            logger.warning(ERROR_NOT_REFRESH, extra=get_log_context(subject=payload.get("sub")))
            return RefreshFailed(ERROR_NOT_REFRESH)

        jti = payload.get("jti")
        stored = self._store.get(jti) if isinstance(jti, str) else None
        if stored is None or not stored.active:
            logger.warning(
                "Refresh rejected: token revoked",
                extra=get_log_context(subject=payload.get("sub"), jti=jti if isinstance(jti, str) else None),
            )
            return RefreshFailed(ERROR_REVOKED)

        return RefreshSucceeded(self.create_access_token(payload.get("sub"), stored.role))

    def revoke(self, jti: str) -> bool:
        """Revoke a refresh token by its jti.

        Returns:
            True if the token was known
        """
        revoked = self._store.revoke(jti)
        if revoked:
            logger.info("Refresh token revoked", extra=get_log_context(jti=jti))
        return revoked


def issue_token_pair(
    user_id: str,
    role: Optional[str],
    secret: Secret,
    store: Optional[RefreshTokenStore] = None,
) -> TokenPair:
    """Issue a token pair, recording the refresh token in store (or the global store)."""
    return TokenService(secret, store).issue_token_pair(user_id, role)


def refresh_access_token(
    refresh_token: str,
    secret: Secret,
    store: Optional[RefreshTokenStore] = None,
) -> RefreshResult:
    """Exchange a refresh token for a new access token."""
    return TokenService(secret, store).refresh_access_token(refresh_token)


# Global service instance (singleton pattern)
_service_instance: Optional[TokenService] = None


def get_token_service(config: Optional[Settings] = None, force_new: bool = False) -> TokenService:
    """Get or create the global token service from settings.

    force_new also rebuilds the refresh token store from config.

    Without a configured jwt_secret a random per-process secret is used and
    a warning is logged; tokens then stop verifying after a restart.
    """
    global _service_instance

    if _service_instance is not None and not force_new:
        return _service_instance

    config = config or default_settings
    secret = config.jwt_secret
    if not secret:
        logger.warning(
            "JWT_SECRET is not set; using a random per-process secret. "
            "Set JWT_SECRET before running in production."
        )
        secret = secrets.token_hex(32)

    _service_instance = TokenService(
        secret,
        store=get_refresh_token_store(config, force_new=force_new),
        access_ttl=config.access_token_ttl_seconds,
        refresh_ttl=config.refresh_token_ttl_seconds,
    )
    return _service_instance


def reset_token_service() -> None:
    """Drop the global service instance (used by tests)."""
    global _service_instance
    _service_instance = None

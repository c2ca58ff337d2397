"""Rate limiting middleware.

Applies a RateLimiter per client and returns 429 with the standard
RateLimit headers once the client's allowance is used up.
"""

import hashlib
from typing import Iterable, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from tollgate.app.core.logging import get_log_context, get_logger
from tollgate.app.exceptions import InvalidRequestError, RateLimitExceededError
from tollgate.app.middleware.request_id import get_request_id
from tollgate.app.ratelimit import RateLimiter, create_limiter, headers_for

logger = get_logger(__name__)

MAX_BEARER_LENGTH = 4096


def get_client_key(request: Request) -> str:
    """Get rate limit key for the request.

    Uses the bearer token if available, otherwise falls back to IP address.
    Both are hashed using SHA-256 so raw credentials and addresses are
    never kept in limiter state.

    Raises:
        InvalidRequestError: If the bearer token is unreasonably long
    """
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        token = auth[7:].strip()
        # Reject before hashing to avoid CPU exhaustion on huge inputs
        if len(token) > MAX_BEARER_LENGTH:
            raise InvalidRequestError(f"Bearer token too long (max {MAX_BEARER_LENGTH} characters)")
        if token:
            key_hash = hashlib.sha256(token.encode()).hexdigest()[:32]
            return f"ratelimit:token:{key_hash}"

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        client_ip = forwarded.split(",")[0].strip()
    else:
        client_ip = request.client.host if request.client else "unknown"

    ip_hash = hashlib.sha256(client_ip.encode()).hexdigest()[:32]
    return f"ratelimit:ip:{ip_hash}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Middleware to enforce rate limits on requests.

    Rate limits are applied per bearer token if available, otherwise per IP.
    """

    def __init__(
        self,
        app,
        limiter: Optional[RateLimiter] = None,
        exempt_paths: Iterable[str] = ("/health",),
    ):
        super().__init__(app)
        self.limiter = limiter or create_limiter()
        self.exempt_paths = frozenset(exempt_paths)

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint
    ) -> Response:
        """Process request with rate limiting."""
        if request.url.path in self.exempt_paths:
            return await call_next(request)

        try:
            key = get_client_key(request)
        except InvalidRequestError as e:
            return JSONResponse(
                status_code=e.status_code,
                content={"error": "invalid_request", "message": e.detail},
            )

        result = self.limiter.is_allowed(key)
        headers = headers_for(result)

        if not result.allowed:
            logger.info(
                "Rate limit exceeded",
                extra=get_log_context(
                    request_id=get_request_id(request),
                    client_key=key,
                    path=request.url.path,
                    method=request.method,
                    status_code=429,
                ),
            )
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": "Rate limit exceeded. Please try again later.",
                    "retry_after": result.retry_after,
                },
                headers=headers,
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response


class RouteRateLimit:
    """FastAPI dependency applying a dedicated limiter to selected routes.

    Used for endpoints that need a stricter allowance than the global
    middleware, such as credential exchange.
    """

    def __init__(self, limiter: RateLimiter):
        self.limiter = limiter

    def __call__(self, request: Request) -> None:
        key = get_client_key(request)
        result = self.limiter.is_allowed(key)
        if not result.allowed:
            logger.info(
                "Route rate limit exceeded",
                extra=get_log_context(
                    request_id=get_request_id(request),
                    client_key=key,
                    path=request.url.path,
                    status_code=429,
                ),
            )
            raise RateLimitExceededError(retry_after=result.retry_after, limit=result.limit)

"""Middleware package for tollgate."""

from tollgate.app.middleware.auth import (
    get_bearer_token,
    require_access_token,
    require_admin,
)
from tollgate.app.middleware.rate_limit import (
    RateLimitMiddleware,
    RouteRateLimit,
    get_client_key,
)
from tollgate.app.middleware.request_id import RequestIdMiddleware, get_request_id

__all__ = [
    "get_bearer_token",
    "require_access_token",
    "require_admin",
    "RateLimitMiddleware",
    "RouteRateLimit",
    "get_client_key",
    "RequestIdMiddleware",
    "get_request_id",
]

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tollgate import __version__
from tollgate.app.api import auth_router
from tollgate.app.auth import TokenService, get_token_service
from tollgate.app.core.config import Settings, settings as default_settings
from tollgate.app.core.logging import get_logger, setup_logging
from tollgate.app.exceptions import (
    AuthenticationError,
    InvalidRequestError,
    RateLimitExceededError,
)
from tollgate.app.middleware.rate_limit import RateLimitMiddleware
from tollgate.app.middleware.request_id import RequestIdMiddleware
from tollgate.app.ratelimit import (
    FixedWindowLimiter,
    InMemoryStore,
    RateLimiter,
    build_rate_limit_headers,
    create_limiter,
)


def create_app(
    config: Optional[Settings] = None,
    token_service: Optional[TokenService] = None,
    limiter: Optional[RateLimiter] = None,
    auth_limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Settings (defaults to the global settings)
        token_service: Token service (defaults to one built from settings)
        limiter: Global per-client limiter (defaults to the configured algorithm)
        auth_limiter: Limiter for credential exchange endpoints

    Returns:
        Configured FastAPI application instance
    """
    # An explicit config must not reuse a token service built from other settings
    explicit_config = config is not None
    config = config or default_settings

    setup_logging()
    logger = get_logger(__name__)

    app = FastAPI(
        title="Tollgate",
        description="Per-client rate limiting and JWT session tokens",
        version=__version__,
    )

    app.state.settings = config
    app.state.token_service = token_service or get_token_service(config, force_new=explicit_config)
    app.state.auth_limiter = auth_limiter or FixedWindowLimiter(
        max_requests=config.auth_rate_limit_max_requests,
        window_ms=config.auth_rate_limit_window_ms,
        store=InMemoryStore(max_entries=config.rate_limit_max_entries),
    )

    if config.rate_limit_enabled:
        app.add_middleware(
            RateLimitMiddleware,
            limiter=limiter or create_limiter(config),
            exempt_paths=config.rate_limit_exempt_paths,
        )
    else:
        logger.warning("Global rate limiting is disabled")

    # Outermost, so every response and log line carries the request ID
    app.add_middleware(RequestIdMiddleware)

    app.include_router(auth_router)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        """Liveness check, exempt from rate limiting by default."""
        return {"status": "ok", "version": __version__}

    @app.exception_handler(RateLimitExceededError)
    async def rate_limit_handler(request: Request, exc: RateLimitExceededError) -> JSONResponse:
        """Handle RateLimitExceededError and return HTTP 429 response."""
        return JSONResponse(
            status_code=429,
            content={
                "error": "rate_limit_exceeded",
                "message": exc.message,
                "retry_after": exc.retry_after,
            },
            headers=build_rate_limit_headers(exc.limit, 0, exc.retry_after),
        )

    @app.exception_handler(AuthenticationError)
    async def auth_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
        """Handle AuthenticationError and return HTTP 401 response."""
        return JSONResponse(
            status_code=401,
            content={"error": "authentication_failed", "message": exc.detail},
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(InvalidRequestError)
    async def invalid_request_handler(request: Request, exc: InvalidRequestError) -> JSONResponse:
        """Handle InvalidRequestError and return HTTP 400 response."""
        return JSONResponse(
            status_code=400,
            content={"error": "invalid_request", "message": exc.detail},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled exceptions.

        The traceback is logged server-side and never returned to the client.
        """
        logger.exception(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__,
            },
        )

        if config.debug:
            return JSONResponse(
                status_code=500,
                content={
                    "error": "internal_error",
                    "message": str(exc),
                    "exception_type": type(exc).__name__,
                },
            )

        return JSONResponse(
            status_code=500,
            content={"error": "internal_error", "message": "Internal server error"},
        )

    return app


# Create the application instance
app = create_app()

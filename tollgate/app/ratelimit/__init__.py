"""Rate limiting for tollgate.

Provides fixed window, sliding window and token bucket strategies over a
pluggable record store, plus helpers for the standard response headers.
"""

from typing import Optional

from tollgate.app.core.config import Settings, settings as default_settings
from tollgate.app.core.logging import get_logger

# Re-export models
from tollgate.app.ratelimit.models import (
    Admitted,
    Denied,
    FixedWindowRecord,
    RateLimitResult,
    SlidingWindowRecord,
    TokenBucketRecord,
)

# Re-export stores and limiters
from tollgate.app.ratelimit.store import InMemoryStore, RateLimitStore
from tollgate.app.ratelimit.limiters import (
    Clock,
    FixedWindowLimiter,
    RateLimiter,
    SlidingWindowLimiter,
    TokenBucket,
)
from tollgate.app.ratelimit.headers import build_rate_limit_headers, headers_for

logger = get_logger(__name__)

__all__ = [
    # Models
    "Admitted",
    "Denied",
    "RateLimitResult",
    "FixedWindowRecord",
    "SlidingWindowRecord",
    "TokenBucketRecord",
    # Stores
    "RateLimitStore",
    "InMemoryStore",
    # Limiters
    "Clock",
    "RateLimiter",
    "FixedWindowLimiter",
    "SlidingWindowLimiter",
    "TokenBucket",
    "create_limiter",
    # Headers
    "build_rate_limit_headers",
    "headers_for",
]


def create_limiter(
    config: Optional[Settings] = None,
    store: Optional[RateLimitStore] = None,
    clock: Optional[Clock] = None,
) -> RateLimiter:
    """Create the limiter selected by configuration.

    Args:
        config: Settings to read (defaults to the global settings)
        store: Record store (defaults to an InMemoryStore sized by
            rate_limit_max_entries)
        clock: Millisecond clock override, mainly for tests

    Returns:
        A FixedWindowLimiter, SlidingWindowLimiter or TokenBucket
    """
    config = config or default_settings
    if store is None:
        store = InMemoryStore(max_entries=config.rate_limit_max_entries)

    algorithm = config.rate_limit_algorithm
    if algorithm == "token_bucket":
        limiter: RateLimiter = TokenBucket(
            max_tokens=config.rate_limit_bucket_size,
            refill_rate=config.rate_limit_refill_rate,
            store=store,
            clock=clock,
        )
    elif algorithm == "fixed_window":
        limiter = FixedWindowLimiter(
            max_requests=config.rate_limit_max_requests,
            window_ms=config.rate_limit_window_ms,
            store=store,
            clock=clock,
        )
    else:
        limiter = SlidingWindowLimiter(
            max_requests=config.rate_limit_max_requests,
            window_ms=config.rate_limit_window_ms,
            store=store,
            clock=clock,
        )

    logger.debug(f"Using {algorithm} rate limiter (limit={limiter.limit})")
    return limiter

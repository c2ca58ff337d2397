"""Standard rate limit response headers (IETF RateLimit fields)."""

from tollgate.app.ratelimit.models import Admitted, RateLimitResult


def build_rate_limit_headers(limit: int, remaining: int, reset: int) -> dict[str, str]:
    """Build rate limit headers for a response.

    Retry-After is only present once the client has nothing left.

    Args:
        limit: Capacity of the window or bucket
        remaining: Requests still available
        reset: Seconds until the limit resets

    Returns:
        Header name to value mapping
    """
    headers = {
        "RateLimit-Limit": str(limit),
        "RateLimit-Remaining": str(remaining),
        "RateLimit-Reset": str(reset),
    }
    if remaining == 0:
        headers["Retry-After"] = str(reset)
    return headers


def headers_for(result: RateLimitResult) -> dict[str, str]:
    """Build rate limit headers from a limiter result."""
    if isinstance(result, Admitted):
        return build_rate_limit_headers(result.limit, result.remaining, result.reset_after)
    # Denied results always advertise Retry-After, even when a token bucket
    # still holds fewer tokens than the request cost.
    return build_rate_limit_headers(result.limit, 0, result.retry_after)

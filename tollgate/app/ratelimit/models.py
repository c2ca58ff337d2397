"""Data models for rate limiting."""

from dataclasses import dataclass, field
from typing import Optional, Union


@dataclass(frozen=True)
class Admitted:
    """The request was admitted.

    Attributes:
        limit: Configured capacity (max requests or max tokens)
        remaining: Requests (or whole tokens) still available
        reset_after: Seconds until capacity is fully restored
        window_used: Requests counted in the trailing window (sliding window only)
    """
    limit: int
    remaining: int
    reset_after: int
    window_used: Optional[int] = None
    allowed: bool = field(default=True, init=False)


@dataclass(frozen=True)
class Denied:
    """The request was rejected.

    Attributes:
        limit: Configured capacity (max requests or max tokens)
        retry_after: Seconds until a retry can succeed, always positive
        remaining: Whole tokens left for token buckets, otherwise 0
        window_used: Requests counted in the trailing window (sliding window only)
    """
    limit: int
    retry_after: int
    remaining: int = 0
    window_used: Optional[int] = None
    allowed: bool = field(default=False, init=False)


RateLimitResult = Union[Admitted, Denied]


@dataclass
class FixedWindowRecord:
    """Counter for the current fixed window of one key."""
    count: int
    window_start: float


@dataclass
class SlidingWindowRecord:
    """Timestamps (epoch ms) of admitted requests, oldest first."""
    timestamps: list[float] = field(default_factory=list)


@dataclass
class TokenBucketRecord:
    """Token balance of one key."""
    tokens: float
    last_refill: float

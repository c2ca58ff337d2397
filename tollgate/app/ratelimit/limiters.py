"""Rate limiting algorithms.

Three interchangeable strategies decide, for a client key and the current
time, whether a request is admitted:

- FixedWindowLimiter: counter that resets wholesale at window boundaries.
  Up to 2x max_requests can pass in a short interval straddling a boundary.
- SlidingWindowLimiter: timestamps of admitted requests inside a trailing
  window. No boundary burst, memory grows with max_requests.
- TokenBucket: balance refilled continuously up to a cap. Allows bursts of
  up to max_tokens when the bucket is full.

Every check runs inside the limiter's lock, so the read, refill or prune,
decision and write for a key form one critical section.
"""

import math
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from tollgate.app.core.logging import get_logger
from tollgate.app.core.utils import now_ms
from tollgate.app.ratelimit.models import (
    Admitted,
    Denied,
    FixedWindowRecord,
    RateLimitResult,
    SlidingWindowRecord,
    TokenBucketRecord,
)
from tollgate.app.ratelimit.store import InMemoryStore, RateLimitStore

logger = get_logger(__name__)

Clock = Callable[[], float]


def _ceil_seconds(ms: float) -> int:
    return math.ceil(ms / 1000)


class RateLimiter(ABC):
    """Abstract base class for rate limiting strategies."""

    algorithm: str = ""

    def __init__(self, store: Optional[RateLimitStore] = None, clock: Optional[Clock] = None):
        """Initialize shared limiter state.

        Args:
            store: Record store (defaults to a fresh InMemoryStore)
            clock: Callable returning the current time in epoch milliseconds
        """
        self._store = store if store is not None else InMemoryStore()
        self._clock = clock or now_ms
        self._lock = threading.Lock()

    @property
    def store(self) -> RateLimitStore:
        return self._store

    @property
    @abstractmethod
    def limit(self) -> int:
        """Capacity reported in results and headers."""

    @abstractmethod
    def is_allowed(self, key: str) -> RateLimitResult:
        """Check if a request for the given key is admitted.

        Args:
            key: Client identifier (IP, user ID, API key)

        Returns:
            Admitted or Denied
        """

    @abstractmethod
    def _is_expired(self, record: Any, now: float) -> bool:
        """Whether a record carries no state beyond that of a new key."""

    def cleanup(self) -> int:
        """Remove records that no longer affect any decision.

        Returns:
            Number of records removed
        """
        with self._lock:
            now = self._clock()
            expired = [key for key, record in self._store.items() if self._is_expired(record, now)]
            for key in expired:
                self._store.delete(key)
        if expired:
            logger.debug(f"Removed {len(expired)} expired {self.algorithm} records")
        return len(expired)

    def reset(self, key: str) -> None:
        """Forget all state for a key."""
        with self._lock:
            self._store.delete(key)


class FixedWindowLimiter(RateLimiter):
    """Counts requests per key in fixed windows of window_ms."""

    algorithm = "fixed_window"

    def __init__(
        self,
        max_requests: int,
        window_ms: int,
        store: Optional[RateLimitStore] = None,
        clock: Optional[Clock] = None,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")
        super().__init__(store, clock)
        self.max_requests = max_requests
        self.window_ms = window_ms

    @property
    def limit(self) -> int:
        return self.max_requests

    def is_allowed(self, key: str) -> RateLimitResult:
        with self._lock:
            now = self._clock()
            record = self._store.get(key)

            if record is None or now - record.window_start >= self.window_ms:
                self._store.set(key, FixedWindowRecord(count=1, window_start=now))
                return Admitted(
                    limit=self.max_requests,
                    remaining=self.max_requests - 1,
                    reset_after=_ceil_seconds(self.window_ms),
                )

            reset_ms = record.window_start + self.window_ms - now
            if record.count < self.max_requests:
                record.count += 1
                self._store.set(key, record)
                return Admitted(
                    limit=self.max_requests,
                    remaining=self.max_requests - record.count,
                    reset_after=_ceil_seconds(reset_ms),
                )

        retry_after = _ceil_seconds(reset_ms)
        logger.debug(
            f"Fixed window limit reached, retry in {retry_after}s",
            extra={"client_key": key},
        )
        return Denied(limit=self.max_requests, retry_after=retry_after)

    def _is_expired(self, record: FixedWindowRecord, now: float) -> bool:
        return now - record.window_start >= self.window_ms


class SlidingWindowLimiter(RateLimiter):
    """Admits at most max_requests per key within any trailing window_ms."""

    algorithm = "sliding_window"

    def __init__(
        self,
        max_requests: int,
        window_ms: int,
        store: Optional[RateLimitStore] = None,
        clock: Optional[Clock] = None,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")
        super().__init__(store, clock)
        self.max_requests = max_requests
        self.window_ms = window_ms

    @property
    def limit(self) -> int:
        return self.max_requests

    def is_allowed(self, key: str) -> RateLimitResult:
        with self._lock:
            now = self._clock()
            record = self._store.get(key)
            previous = record.timestamps if record is not None else []

            # Remove expired timestamps
            timestamps = [ts for ts in previous if now - ts < self.window_ms]

            if len(timestamps) < self.max_requests:
                timestamps.append(now)
                self._store.set(key, SlidingWindowRecord(timestamps=timestamps))
                return Admitted(
                    limit=self.max_requests,
                    remaining=self.max_requests - len(timestamps),
                    reset_after=_ceil_seconds(timestamps[0] + self.window_ms - now),
                    window_used=len(timestamps),
                )

        retry_after = _ceil_seconds(timestamps[0] + self.window_ms - now)
        logger.debug(
            f"Sliding window limit reached, retry in {retry_after}s",
            extra={"client_key": key},
        )
        return Denied(
            limit=self.max_requests,
            retry_after=retry_after,
            window_used=len(timestamps),
        )

    def _is_expired(self, record: SlidingWindowRecord, now: float) -> bool:
        return not record.timestamps or now - record.timestamps[-1] >= self.window_ms


class TokenBucket(RateLimiter):
    """Per-key token balance refilled at refill_rate tokens per second."""

    algorithm = "token_bucket"

    def __init__(
        self,
        max_tokens: int,
        refill_rate: float,
        store: Optional[RateLimitStore] = None,
        clock: Optional[Clock] = None,
    ):
        if max_tokens < 1:
            raise ValueError("max_tokens must be at least 1")
        if refill_rate <= 0:
            raise ValueError("refill_rate must be positive")
        super().__init__(store, clock)
        self.max_tokens = max_tokens
        self.refill_rate = refill_rate

    @property
    def limit(self) -> int:
        return self.max_tokens

    def _refill(self, bucket: TokenBucketRecord, now: float) -> TokenBucketRecord:
        elapsed = max(0.0, (now - bucket.last_refill) / 1000)
        bucket.tokens = min(self.max_tokens, bucket.tokens + elapsed * self.refill_rate)
        bucket.last_refill = now
        return bucket

    def consume(self, key: str, cost: int = 1) -> RateLimitResult:
        """Spend cost tokens from the key's bucket if the balance allows.

        Args:
            key: Client identifier
            cost: Tokens this request costs, at least 1

        Returns:
            Admitted with the whole tokens left, or Denied with the seconds
            until enough tokens will have accumulated. A cost above
            max_tokens is always denied, since the balance never exceeds it.

        Raises:
            ValueError: If cost is less than 1
        """
        if cost < 1:
            raise ValueError("cost must be at least 1")

        with self._lock:
            now = self._clock()
            bucket = self._store.get(key)
            if bucket is None:
                bucket = TokenBucketRecord(tokens=float(self.max_tokens), last_refill=now)

            self._refill(bucket, now)

            if bucket.tokens >= cost:
                bucket.tokens -= cost
                self._store.set(key, bucket)
                return Admitted(
                    limit=self.max_tokens,
                    remaining=math.floor(bucket.tokens),
                    reset_after=math.ceil((self.max_tokens - bucket.tokens) / self.refill_rate),
                )

            self._store.set(key, bucket)
            tokens_left = bucket.tokens

        retry_after = math.ceil((cost - tokens_left) / self.refill_rate)
        logger.debug(
            f"Token bucket empty, retry in {retry_after}s",
            extra={"client_key": key},
        )
        return Denied(
            limit=self.max_tokens,
            retry_after=retry_after,
            remaining=math.floor(tokens_left),
        )

    def is_allowed(self, key: str) -> RateLimitResult:
        return self.consume(key, 1)

    def _is_expired(self, record: TokenBucketRecord, now: float) -> bool:
        elapsed = max(0.0, (now - record.last_refill) / 1000)
        return record.tokens + elapsed * self.refill_rate >= self.max_tokens

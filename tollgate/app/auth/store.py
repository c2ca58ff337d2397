"""Refresh token stores.

Refresh tokens are tracked by their ``jti`` claim so they can be revoked
before they expire. Access tokens have no server-side record.
"""

import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional

import redis

from tollgate.app.core.config import Settings, settings as default_settings
from tollgate.app.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RefreshRecord:
    """Server-side state of one refresh token."""
    user_id: str
    active: bool = True
    role: Optional[str] = None


class RefreshTokenStore(ABC):
    """Abstract base class for refresh token stores."""

    @abstractmethod
    def get(self, jti: str) -> Optional[RefreshRecord]:
        """Return the record for jti, or None if unknown or expired."""

    @abstractmethod
    def set(self, jti: str, record: RefreshRecord, ttl: Optional[int] = None) -> None:
        """Store a record.

        Args:
            jti: Refresh token identifier
            record: Record to store
            ttl: Seconds to keep the record (None keeps it indefinitely)
        """

    @abstractmethod
    def revoke(self, jti: str) -> bool:
        """Mark a refresh token inactive.

        Returns:
            True if a record existed for jti
        """


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """Process-local refresh token store.

    Records with a TTL are dropped lazily when read and by
    cleanup_expired(). Data is lost when the process restarts.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        self._clock = clock or time.time
        self._data: dict[str, tuple[RefreshRecord, Optional[float]]] = {}
        self._lock = threading.Lock()

    def _is_expired(self, expires_at: Optional[float]) -> bool:
        return expires_at is not None and self._clock() >= expires_at

    def get(self, jti: str) -> Optional[RefreshRecord]:
        with self._lock:
            item = self._data.get(jti)
            if item is None:
                return None
            record, expires_at = item
            if self._is_expired(expires_at):
                del self._data[jti]
                return None
            return record

    def set(self, jti: str, record: RefreshRecord, ttl: Optional[int] = None) -> None:
        with self._lock:
            expires_at = self._clock() + ttl if ttl else None
            self._data[jti] = (record, expires_at)

    def revoke(self, jti: str) -> bool:
        with self._lock:
            item = self._data.get(jti)
            if item is None:
                return False
            record, expires_at = item
            self._data[jti] = (
                RefreshRecord(user_id=record.user_id, active=False, role=record.role),
                expires_at,
            )
            return True

    def cleanup_expired(self) -> int:
        """Remove all expired records.

        Returns:
            Number of records removed.
        """
        with self._lock:
            expired = [jti for jti, (_, exp) in self._data.items() if self._is_expired(exp)]
            for jti in expired:
                del self._data[jti]
            return len(expired)

    def __len__(self) -> int:
        return len(self._data)


class RedisRefreshTokenStore(RefreshTokenStore):
    """Redis-backed refresh token store shared by every process.

    Each record is a hash at ``{key_prefix}:{jti}`` that expires together
    with the refresh token.
    """

    def __init__(
        self,
        redis_client: Optional[Any] = None,
        redis_url: Optional[str] = None,
        key_prefix: Optional[str] = None,
    ) -> None:
        """Initialize the Redis store.

        Args:
            redis_client: Optional Redis client instance
            redis_url: Redis connection URL used when no client is given
            key_prefix: Key namespace (defaults to settings.refresh_token_key_prefix)
        """
        self._redis = redis_client
        self._redis_url = redis_url or default_settings.redis_url
        self._key_prefix = key_prefix or default_settings.refresh_token_key_prefix

    def _get_redis(self) -> Any:
        """Get or create Redis connection."""
        if self._redis is None:
            self._redis = redis.Redis.from_url(self._redis_url, decode_responses=True)
        return self._redis

    def _key(self, jti: str) -> str:
        return f"{self._key_prefix}:{jti}"

    @staticmethod
    def _text(value: Any) -> Optional[str]:
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def get(self, jti: str) -> Optional[RefreshRecord]:
        """Look up a record.

        Redis failures are logged and reported as a missing record, so a
        refresh attempt fails closed instead of bypassing revocation.
        """
        try:
            data = self._get_redis().hgetall(self._key(jti))
        except redis.RedisError as e:
            logger.error(f"Redis lookup of refresh token failed: {e}", extra={"jti": jti})
            return None

        if not data:
            return None
        fields = {self._text(k): self._text(v) for k, v in data.items()}
        return RefreshRecord(
            user_id=fields.get("user_id", ""),
            active=fields.get("active") == "1",
            role=fields.get("role") or None,
        )

    def set(self, jti: str, record: RefreshRecord, ttl: Optional[int] = None) -> None:
        client = self._get_redis()
        key = self._key(jti)
        pipe = client.pipeline()
        pipe.hset(
            key,
            mapping={
                "user_id": record.user_id,
                "active": "1" if record.active else "0",
                "role": record.role or "",
            },
        )
        if ttl:
            pipe.expire(key, ttl)
        pipe.execute()

    def revoke(self, jti: str) -> bool:
        client = self._get_redis()
        key = self._key(jti)
        if not client.exists(key):
            return False
        client.hset(key, "active", "0")
        return True

    def close(self) -> None:
        """Close the Redis connection."""
        if self._redis is not None:
            self._redis.close()
            self._redis = None


# Global store instance (singleton pattern)
_store_instance: Optional[RefreshTokenStore] = None


def get_refresh_token_store(
    config: Optional[Settings] = None,
    force_new: bool = False,
) -> RefreshTokenStore:
    """Get or create the global refresh token store.

    Uses Redis when redis_enabled is set, otherwise an in-memory store.

    Args:
        config: Settings to read (defaults to the global settings)
        force_new: If True, create a new instance even if one exists.
    """
    global _store_instance

    if _store_instance is not None and not force_new:
        return _store_instance

    config = config or default_settings
    if config.redis_enabled:
        _store_instance = RedisRefreshTokenStore(
            redis_url=config.redis_url,
            key_prefix=config.refresh_token_key_prefix,
        )
        logger.info("Using Redis refresh token store")
    else:
        _store_instance = InMemoryRefreshTokenStore()
        logger.debug("Using in-memory refresh token store")
    return _store_instance


def reset_refresh_token_store() -> None:
    """Drop the global store instance (used by tests)."""
    global _store_instance
    _store_instance = None

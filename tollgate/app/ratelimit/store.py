"""Record storage for rate limiters.

Limiters keep their per-key state in a RateLimitStore passed in at
construction, so tests can inspect state and deployments can swap the
backend without touching the algorithms.
"""

from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any, Iterator, Optional, Tuple


class RateLimitStore(ABC):
    """Abstract base class for rate limit record stores.

    Stores are not synchronized. The owning limiter serializes access,
    so one store instance must not be shared between limiters.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the record for key, or None if absent."""

    @abstractmethod
    def set(self, key: str, record: Any) -> None:
        """Store the record for key."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove the record for key if present."""

    @abstractmethod
    def items(self) -> Iterator[Tuple[str, Any]]:
        """Iterate over a snapshot of (key, record) pairs."""

    @abstractmethod
    def __len__(self) -> int:
        pass

    def clear(self) -> None:
        """Remove every record."""
        for key, _ in list(self.items()):
            self.delete(key)


class InMemoryStore(RateLimitStore):
    """Process-local store with LRU eviction.

    Memory optimization:
    - Uses OrderedDict for LRU cache behavior
    - Limits max entries to prevent unbounded memory growth
    - Evicts the least recently used 20% of keys when the limit is exceeded
    """

    DEFAULT_MAX_ENTRIES = 10000

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._max_entries = max_entries
        self._data: OrderedDict[str, Any] = OrderedDict()

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def get(self, key: str) -> Optional[Any]:
        record = self._data.get(key)
        if record is not None:
            self._data.move_to_end(key)
        return record

    def set(self, key: str, record: Any) -> None:
        if key in self._data:
            self._data.move_to_end(key)
        self._data[key] = record
        self._enforce_lru_limit()

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def items(self) -> Iterator[Tuple[str, Any]]:
        return iter(list(self._data.items()))

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def _enforce_lru_limit(self) -> None:
        """Enforce max entries limit using LRU eviction."""
        if len(self._data) > self._max_entries:
            remove_count = max(1, int(self._max_entries * 0.2))
            for _ in range(min(remove_count, len(self._data) - 1)):
                self._data.popitem(last=False)

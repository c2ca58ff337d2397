"""Tests for the in-memory rate limit store."""

import pytest

from tollgate.app.ratelimit import FixedWindowLimiter, FixedWindowRecord, InMemoryStore


class TestInMemoryStore:

    def test_get_missing_key_returns_none(self):
        assert InMemoryStore().get("missing") is None

    def test_set_get_delete(self):
        store = InMemoryStore()
        record = FixedWindowRecord(count=1, window_start=0.0)
        store.set("k", record)
        assert store.get("k") is record

        store.delete("k")
        assert store.get("k") is None
        store.delete("k")  # deleting twice is harmless

    def test_evicts_least_recently_used_when_full(self):
        store = InMemoryStore(max_entries=5)
        for i in range(5):
            store.set(f"k{i}", i)

        store.get("k0")  # k0 becomes most recently used
        store.set("k5", 5)

        # 20% of 5 = 1 entry evicted: the oldest untouched key
        assert len(store) == 5
        assert "k1" not in store
        assert "k0" in store
        assert "k5" in store

    def test_newest_key_survives_tiny_capacity(self):
        store = InMemoryStore(max_entries=1)
        store.set("a", 1)
        store.set("b", 2)
        assert "b" in store
        assert "a" not in store

    def test_clear(self):
        store = InMemoryStore()
        store.set("a", 1)
        store.set("b", 2)
        store.clear()
        assert len(store) == 0

    def test_items_is_a_snapshot(self):
        store = InMemoryStore()
        store.set("a", 1)
        store.set("b", 2)
        for key, _ in store.items():
            store.delete(key)
        assert len(store) == 0

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            InMemoryStore(max_entries=0)

    def test_limiter_state_is_bounded(self, clock):
        store = InMemoryStore(max_entries=10)
        limiter = FixedWindowLimiter(5, 60000, store=store, clock=clock)
        for i in range(100):
            limiter.is_allowed(f"client-{i}")
        assert len(store) <= 10

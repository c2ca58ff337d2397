"""Shared fixtures: deterministic clocks and isolated global singletons."""

import pytest

from tollgate.app.auth import reset_refresh_token_store, reset_token_service


class FakeClock:
    """Manually advanced clock, callable like time.time."""

    def __init__(self, start: float):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, amount: float) -> None:
        self.now += amount


@pytest.fixture
def clock() -> FakeClock:
    """Millisecond clock for rate limiters."""
    return FakeClock(1_700_000_000_000.0)


@pytest.fixture
def token_clock() -> FakeClock:
    """Unix-seconds clock for token issuance and verification."""
    return FakeClock(1_700_000_000)


@pytest.fixture(autouse=True)
def _reset_singletons():
    reset_token_service()
    reset_refresh_token_store()
    yield
    reset_token_service()
    reset_refresh_token_store()

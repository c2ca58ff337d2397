"""Tests for application settings."""

import pytest
from pydantic import ValidationError

from tollgate.app.core.config import Settings


def test_defaults():
    config = Settings(_env_file=None)

    assert config.rate_limit_algorithm == "sliding_window"
    assert config.rate_limit_max_requests == 60
    assert config.rate_limit_exempt_paths == ["/health"]
    assert config.access_token_ttl_seconds == 900
    assert config.refresh_token_ttl_seconds == 604800
    assert config.redis_enabled is False


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_ALGORITHM", "Token_Bucket")
    monkeypatch.setenv("RATE_LIMIT_REFILL_RATE", "2.5")
    monkeypatch.setenv("RATE_LIMIT_EXEMPT_PATHS", '["/health", "/metrics"]')

    config = Settings(_env_file=None)

    assert config.rate_limit_algorithm == "token_bucket"
    assert config.rate_limit_refill_rate == 2.5
    assert config.rate_limit_exempt_paths == ["/health", "/metrics"]


def test_secrets_are_trimmed(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "  jwt-secret\n")
    monkeypatch.setenv("ADMIN_TOKEN", "admin-token\n")

    config = Settings(_env_file=None)

    assert config.jwt_secret == "jwt-secret"
    assert config.admin_token == "admin-token"


@pytest.mark.parametrize(
    "field",
    [
        "rate_limit_max_requests",
        "rate_limit_window_ms",
        "rate_limit_bucket_size",
        "rate_limit_max_entries",
        "auth_rate_limit_max_requests",
        "auth_rate_limit_window_ms",
        "access_token_ttl_seconds",
        "refresh_token_ttl_seconds",
    ],
)
def test_rejects_non_positive_values(field):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **{field: 0})


def test_rejects_non_positive_refill_rate():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, rate_limit_refill_rate=0)

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

RATE_LIMIT_ALGORITHMS = ("fixed_window", "sliding_window", "token_bucket")


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    """

    # Debug mode - enables detailed error responses
    debug: bool = False

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    # Rate limiting settings
    rate_limit_enabled: bool = True
    rate_limit_algorithm: str = "sliding_window"  # fixed_window | sliding_window | token_bucket
    rate_limit_max_requests: int = 60  # Per window (fixed/sliding window)
    rate_limit_window_ms: int = 60_000
    rate_limit_bucket_size: int = 10  # Token bucket capacity
    rate_limit_refill_rate: float = 1.0  # Tokens per second
    rate_limit_max_entries: int = 10000  # Keys tracked before LRU eviction
    rate_limit_exempt_paths: list[str] = ["/health"]

    # Stricter limit for credential exchange endpoints (fixed window)
    auth_rate_limit_max_requests: int = 5
    auth_rate_limit_window_ms: int = 900_000  # 15 minutes

    # JWT settings
    # An empty secret makes the service generate a per-process secret, so
    # tokens do not survive a restart. Always set JWT_SECRET in production.
    jwt_secret: str = ""
    access_token_ttl_seconds: int = 900  # 15 minutes
    refresh_token_ttl_seconds: int = 604800  # 7 days

    # Admin token guarding token issuance and revocation endpoints
    admin_token: str = ""

    # Redis settings (optional, for the refresh token store)
    redis_enabled: bool = False
    redis_url: str = "redis://localhost:6379/0"
    refresh_token_key_prefix: str = "tollgate:refresh"

    @field_validator("rate_limit_algorithm")
    @classmethod
    def validate_algorithm(cls, v: str) -> str:
        """Validate the rate limiting algorithm name."""
        v = v.strip().lower()
        if v not in RATE_LIMIT_ALGORITHMS:
            raise ValueError(
                f"rate_limit_algorithm must be one of {', '.join(RATE_LIMIT_ALGORITHMS)}"
            )
        return v

    @field_validator(
        "rate_limit_max_requests",
        "rate_limit_window_ms",
        "rate_limit_bucket_size",
        "rate_limit_max_entries",
        "auth_rate_limit_max_requests",
        "auth_rate_limit_window_ms",
    )
    @classmethod
    def validate_rate_limit_positive(cls, v: int) -> int:
        """Validate rate limit values are positive."""
        if v < 1:
            raise ValueError("Rate limit values must be at least 1")
        return v

    @field_validator("rate_limit_refill_rate")
    @classmethod
    def validate_refill_rate(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("rate_limit_refill_rate must be positive")
        return v

    @field_validator("access_token_ttl_seconds", "refresh_token_ttl_seconds")
    @classmethod
    def validate_ttl_positive(cls, v: int) -> int:
        """Validate token lifetimes are positive."""
        if v < 1:
            raise ValueError("Token lifetimes must be at least 1 second")
        return v

    @field_validator("admin_token", "jwt_secret")
    @classmethod
    def strip_secret(cls, v: str) -> str:
        # Normalize accidental whitespace/newline from env/secret stores.
        return v.strip()

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Global settings instance
settings = Settings()

"""Tollgate: per-client rate limiting and HMAC-signed JWT sessions."""

__version__ = "0.1.0"

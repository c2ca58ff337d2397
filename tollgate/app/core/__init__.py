"""Core utilities for the tollgate application."""

from tollgate.app.core.config import settings
from tollgate.app.core.logging import get_logger, setup_logging
from tollgate.app.core.utils import now_ms, now_seconds

__all__ = [
    "settings",
    "get_logger",
    "setup_logging",
    "now_ms",
    "now_seconds",
]

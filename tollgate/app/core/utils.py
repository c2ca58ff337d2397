"""Utility functions for the tollgate application."""

import time


def now_ms() -> float:
    """Current wall-clock time in epoch milliseconds.

    Default clock for the rate limiters.
    """
    return time.time() * 1000


def now_seconds() -> int:
    """Current wall-clock time in whole unix seconds.

    Default clock for JWT ``iat``/``exp`` claims.
    """
    return int(time.time())

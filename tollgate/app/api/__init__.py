"""API endpoints package for tollgate."""

from tollgate.app.api.auth import router as auth_router

__all__ = [
    "auth_router",
]

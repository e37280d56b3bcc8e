"""Web API routes."""

from .admin import router as admin_router
from .health import router as health_router
from .series import router as series_router

__all__ = ["admin_router", "health_router", "series_router"]

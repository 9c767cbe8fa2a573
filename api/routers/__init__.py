"""
API routers for different endpoints.
"""

from .creations import router as creations_router
from .dashboard import router as dashboard_router
from .health import router as health_router
from .notifications import router as notifications_router

__all__ = [
    "health_router",
    "creations_router",
    "dashboard_router",
    "notifications_router",
]

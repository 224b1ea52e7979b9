"""FastAPI routers package."""

from .admin import router as admin_router
from .booking import router as booking_router
from .metrics import router as metrics_router
from .notifications import router as notifications_router

__all__ = [
    "admin_router",
    "booking_router",
    "metrics_router",
    "notifications_router",
]

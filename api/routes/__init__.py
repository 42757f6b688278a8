"""API route modules."""

from .health_routes import router as health_router
from .streaks_routes import router as streaks_router
from .users_routes import router as users_router

__all__ = [
    "health_router",
    "streaks_router",
    "users_router",
]

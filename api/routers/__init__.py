"""API Routers."""

from .health import router as health_router
from .auth import router as auth_router
from .availability import router as availability_router
from .appointments import router as appointments_router
from .chats import router as chats_router

__all__ = [
    "health_router",
    "auth_router",
    "availability_router",
    "appointments_router",
    "chats_router",
]

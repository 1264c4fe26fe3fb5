"""API routers."""

from app.routers.internal import router as internal_router
from app.routers.public_quotes import router as public_quotes_router
from app.routers.quotes import router as quotes_router
from app.routers.settings import router as settings_router

__all__ = [
    "internal_router",
    "public_quotes_router",
    "quotes_router",
    "settings_router",
]

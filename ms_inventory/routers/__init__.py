"""
Routers de la API
"""
from .assets import router as assets_router
from .assignments import router as assignments_router
from .repairs import router as repairs_router
from .search import router as search_router

__all__ = [
    "assets_router",
    "assignments_router",
    "repairs_router",
    "search_router"
]

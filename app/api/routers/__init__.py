"""
app/api/routers package marker.
"""

from app.api.routers.imports import router as imports_router

__all__ = [
    "imports_router",
]

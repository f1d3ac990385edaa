"""
app/api/routers package marker.
"""

from app.api.routers.mass_import import router as mass_import_router

__all__ = [
    "mass_import_router",
]

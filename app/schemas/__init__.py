"""
app/schemas package marker.
"""

from app.schemas.health import HealthResponse
from app.schemas.mass_import import (
    ArtworkRecord,
    CreatorRecord,
    ImportConfig,
    MassImportRequest,
    MassImportResponse,
)

__all__ = [
    "ArtworkRecord",
    "CreatorRecord",
    "HealthResponse",
    "ImportConfig",
    "MassImportRequest",
    "MassImportResponse",
]

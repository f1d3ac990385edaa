"""
app/services package marker.
"""

from app.services.creator_resolution_service import CreatorResolutionService, parse_creator_names
from app.services.duplicate_detection_service import DuplicateDetectionService, merge_tags
from app.services.mass_import_service import (
    ImportCatalogUnavailableError,
    ImportTimeoutError,
    MassImportError,
    MassImportService,
    get_mass_import_service,
)
from app.services.photo_acquisition_service import PhotoAcquisitionService
from app.services.record_processor import ImportContext, RecordProcessor

__all__ = [
    "CreatorResolutionService",
    "DuplicateDetectionService",
    "ImportCatalogUnavailableError",
    "ImportContext",
    "ImportTimeoutError",
    "MassImportError",
    "MassImportService",
    "PhotoAcquisitionService",
    "RecordProcessor",
    "get_mass_import_service",
    "merge_tags",
    "parse_creator_names",
]

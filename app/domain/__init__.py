"""
app/domain package marker.
"""

from app.domain.creator_resolution import CreatorLinkStatus, CreatorResolutionResult, ResolvedCreator
from app.domain.duplicate_detection import CreatorWeights, DuplicateMatch, DuplicateWeights, TagMergeResult
from app.domain.mass_import import (
    ArtworkDuplicate,
    AuditTrail,
    AutoCreatedCreator,
    CreatedArtwork,
    CreatedCreator,
    CreatorDuplicate,
    FailedArtwork,
    FailedCreator,
    ImportReport,
    RecordState,
)
from app.domain.photo_acquisition import (
    PhotoAcquisitionResult,
    PhotoFailure,
    PhotoReference,
    ProcessedPhoto,
)

__all__ = [
    "ArtworkDuplicate",
    "AuditTrail",
    "AutoCreatedCreator",
    "CreatedArtwork",
    "CreatedCreator",
    "CreatorDuplicate",
    "CreatorLinkStatus",
    "CreatorResolutionResult",
    "CreatorWeights",
    "DuplicateMatch",
    "DuplicateWeights",
    "FailedArtwork",
    "FailedCreator",
    "ImportReport",
    "PhotoAcquisitionResult",
    "PhotoFailure",
    "PhotoReference",
    "ProcessedPhoto",
    "RecordState",
    "ResolvedCreator",
    "TagMergeResult",
]

"""
app/domain/mass_import.py

Per-record results, audit trail and the assembled import report.

Everything here lives for exactly one request. The orchestrator owns the
report and threads the AuditTrail through record processing.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime

from app.domain.creator_resolution import CreatorLinkStatus, ResolvedCreator
from app.domain.photo_acquisition import PhotoAcquisitionResult, PhotoFailure, ProcessedPhoto


class RecordState:
    PENDING = "pending"
    DUPLICATE_CHECK = "duplicate_check"
    DUPLICATE = "duplicate"
    NEW = "new"
    PERSISTED = "persisted"
    FAILED = "failed"


AUTO_CREATED_REASON = "referenced_in_artwork"


@dataclass(frozen=True)
class PhotoCounts:
    total: int = 0
    successful: int = 0
    failed: int = 0


@dataclass(frozen=True)
class CreatedArtwork:
    id: uuid.UUID
    title: str
    creators: tuple[ResolvedCreator, ...] = ()
    photos: tuple[ProcessedPhoto, ...] = ()
    photo_errors: tuple[PhotoFailure, ...] = ()
    photos_processed: PhotoCounts = PhotoCounts()


@dataclass(frozen=True)
class ArtworkDuplicate:
    title: str
    existing_id: uuid.UUID
    confidence_score: float
    score_breakdown: dict[str, float]
    error: str
    tags_merged: int = 0


@dataclass(frozen=True)
class FailedArtwork:
    title: str
    error: str
    code: str


@dataclass(frozen=True)
class CreatedCreator:
    id: uuid.UUID
    name: str
    status: str


@dataclass(frozen=True)
class AutoCreatedCreator:
    id: uuid.UUID
    name: str
    source_artwork_id: uuid.UUID
    reason: str = AUTO_CREATED_REASON


@dataclass(frozen=True)
class CreatorDuplicate:
    name: str
    existing_id: uuid.UUID
    confidence_score: float
    score_breakdown: dict[str, float]
    error: str
    tags_merged: int = 0


@dataclass(frozen=True)
class FailedCreator:
    name: str
    error: str
    code: str


ArtworkOutcome = CreatedArtwork | ArtworkDuplicate | FailedArtwork
CreatorOutcome = CreatedCreator | CreatorDuplicate | FailedCreator


@dataclass(frozen=True)
class CreatorResolutionFailure:
    artwork_id: uuid.UUID
    title: str
    error: str


@dataclass(frozen=True)
class UnresolvedCreator:
    artwork_id: uuid.UUID
    name: str


@dataclass
class AuditTrail:
    """
    Additive counters for one batch. Created at start, finalized at end.
    """

    system_user_token: str
    import_started: datetime
    import_completed: datetime | None = None
    batches_processed: int = 0
    tags_merged: int = 0
    photos_downloaded: int = 0
    photos_uploaded: int = 0
    photos_failed: int = 0
    creators_auto_created: int = 0
    creator_resolution_errors: list[CreatorResolutionFailure] = field(default_factory=list)
    unresolved_creators: list[UnresolvedCreator] = field(default_factory=list)

    def record_photos(self, result: PhotoAcquisitionResult) -> None:
        self.photos_downloaded += result.downloaded
        self.photos_uploaded += len(result.succeeded)
        self.photos_failed += len(result.failed)

    def record_discarded_photos(self, count: int) -> None:
        """Stored photos removed again because their record was never written."""
        self.photos_uploaded = max(0, self.photos_uploaded - count)

    def finalize(self, completed_at: datetime) -> None:
        self.import_completed = completed_at


@dataclass
class ImportSummary:
    total_requested: int = 0
    total_processed: int = 0
    total_succeeded: int = 0
    total_failed: int = 0
    total_duplicates: int = 0
    processing_time_ms: int = 0


@dataclass
class ArtworkResults:
    created: list[CreatedArtwork] = field(default_factory=list)
    duplicates: list[ArtworkDuplicate] = field(default_factory=list)
    failed: list[FailedArtwork] = field(default_factory=list)


@dataclass
class ArtistResults:
    created: list[CreatedCreator] = field(default_factory=list)
    auto_created: list[AutoCreatedCreator] = field(default_factory=list)
    duplicates: list[CreatorDuplicate] = field(default_factory=list)
    failed: list[FailedCreator] = field(default_factory=list)


@dataclass
class ImportResults:
    artworks: ArtworkResults = field(default_factory=ArtworkResults)
    artists: ArtistResults = field(default_factory=ArtistResults)


@dataclass
class ImportReport:
    import_id: str
    audit_trail: AuditTrail
    summary: ImportSummary = field(default_factory=ImportSummary)
    results: ImportResults = field(default_factory=ImportResults)

    def add_artwork_outcome(self, outcome: ArtworkOutcome) -> None:
        self.summary.total_processed += 1
        if isinstance(outcome, CreatedArtwork):
            self.results.artworks.created.append(outcome)
            self.summary.total_succeeded += 1
            for creator in outcome.creators:
                if creator.status == CreatorLinkStatus.CREATED:
                    self.results.artists.auto_created.append(
                        AutoCreatedCreator(id=creator.id, name=creator.name, source_artwork_id=outcome.id)
                    )
        elif isinstance(outcome, ArtworkDuplicate):
            self.results.artworks.duplicates.append(outcome)
            self.summary.total_duplicates += 1
        else:
            self.results.artworks.failed.append(outcome)
            self.summary.total_failed += 1

    def add_creator_outcome(self, outcome: CreatorOutcome) -> None:
        self.summary.total_processed += 1
        if isinstance(outcome, CreatedCreator):
            self.results.artists.created.append(outcome)
            self.summary.total_succeeded += 1
        elif isinstance(outcome, CreatorDuplicate):
            self.results.artists.duplicates.append(outcome)
            self.summary.total_duplicates += 1
        else:
            self.results.artists.failed.append(outcome)
            self.summary.total_failed += 1

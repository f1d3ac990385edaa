"""
app/services/record_processor.py

Per-record processing: one input record in, one recorded outcome out.

Record lifecycle:
    pending -> duplicate_check -> duplicate | new
    new -> creator resolution + photo acquisition (artworks) -> persisted
    any stage -> failed

Photo downloads finish before the record's write transaction opens, so no
catalog transaction is ever held across a network call.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from app import failure_codes
from app.domain.duplicate_detection import CreatorWeights, DuplicateWeights
from app.domain.mass_import import (
    ArtworkDuplicate,
    ArtworkOutcome,
    AuditTrail,
    CreatedArtwork,
    CreatedCreator,
    CreatorDuplicate,
    CreatorOutcome,
    CreatorResolutionFailure,
    FailedArtwork,
    FailedCreator,
    PhotoCounts,
    RecordState,
    UnresolvedCreator,
)
from app.domain.photo_acquisition import PhotoAcquisitionResult
from app.logging_utils import log_event
from app.schemas.mass_import import ArtworkRecord, CreatorRecord, ImportRecord
from app.services.creator_resolution_service import CreatorResolutionService
from app.services.duplicate_detection_service import (
    DuplicateDetectionService,
    append_biography,
    merge_tags,
)
from app.services.photo_acquisition_service import PhotoAcquisitionService
from db.models.artwork import CatalogStatus
from db.repositories.catalog_unit_of_work import CatalogUnitOfWork
from db.repositories.errors import CatalogUnavailableError
from db.repositories.types import ArtworkCreate, CreatorCreate

logger = logging.getLogger(__name__)


def _failure_code(exc: Exception) -> str:
    if isinstance(exc, SQLAlchemyError):
        return failure_codes.CATALOG_WRITE_FAILED
    return failure_codes.RECORD_PROCESSING_FAILED


@dataclass(frozen=True)
class ImportContext:
    """
    Request-wide settings every record is processed under.
    """

    import_id: str
    plugin_name: str
    threshold: float
    artwork_weights: DuplicateWeights
    creator_weights: CreatorWeights
    enable_tag_merging: bool = False
    create_missing_creators: bool = False
    auto_approve_creators: bool = False

    def provenance_tags(self, source: str) -> dict[str, str]:
        return {"source": source, "import_batch": self.import_id, "plugin_name": self.plugin_name}


def _imported_creator_status(record: CreatorRecord, context: ImportContext) -> str:
    if context.auto_approve_creators:
        return CatalogStatus.APPROVED
    return record.status or CatalogStatus.PENDING


class RecordProcessor:
    """
    Runs one record inside its own unit of work.

    This is the single place where residual faults become `failed` results.
    Only CatalogUnavailableError escapes, since no later record could succeed.
    """

    def __init__(
        self,
        *,
        unit_of_work: CatalogUnitOfWork,
        duplicate_detector: DuplicateDetectionService,
        creator_resolver: CreatorResolutionService,
        photo_acquirer: PhotoAcquisitionService,
        system_user_id: uuid.UUID,
    ) -> None:
        self._unit_of_work = unit_of_work
        self._duplicate_detector = duplicate_detector
        self._creator_resolver = creator_resolver
        self._photo_acquirer = photo_acquirer
        self._system_user_id = system_user_id

    def process(
        self,
        record: ImportRecord,
        *,
        context: ImportContext,
        audit: AuditTrail,
    ) -> ArtworkOutcome | CreatorOutcome:
        if record.record_type == "artwork":
            return self.process_artwork(record, context=context, audit=audit)
        return self.process_creator(record, context=context, audit=audit)

    def process_artwork(
        self,
        record: ArtworkRecord,
        *,
        context: ImportContext,
        audit: AuditTrail,
    ) -> ArtworkOutcome:
        state = RecordState.PENDING
        try:
            state = RecordState.DUPLICATE_CHECK
            duplicate = self._check_artwork_duplicate(record, context=context, audit=audit)
            if duplicate is not None:
                self._log_outcome(context, "artwork", record.title, RecordState.DUPLICATE)
                return duplicate

            state = RecordState.NEW
            photos = self._photo_acquirer.acquire(record.photo_references())
            audit.record_photos(photos)
            created = self._persist_artwork(record, photos, context=context, audit=audit)
        except CatalogUnavailableError:
            raise
        except Exception as exc:
            logger.exception(
                "Artwork record failed import_id=%s title=%r state=%s",
                context.import_id,
                record.title,
                state,
            )
            self._log_outcome(context, "artwork", record.title, RecordState.FAILED, error=str(exc))
            return FailedArtwork(
                title=record.title,
                error=str(exc) or type(exc).__name__,
                code=_failure_code(exc),
            )

        self._log_outcome(
            context,
            "artwork",
            record.title,
            RecordState.PERSISTED,
            photos_failed=len(created.photo_errors),
        )
        return created

    def _check_artwork_duplicate(
        self,
        record: ArtworkRecord,
        *,
        context: ImportContext,
        audit: AuditTrail,
    ) -> ArtworkDuplicate | None:
        with self._unit_of_work() as catalog:
            match = self._duplicate_detector.detect_artwork(
                catalog,
                record,
                threshold=context.threshold,
                weights=context.artwork_weights,
            )
            if match is None:
                return None

            merged = 0
            if context.enable_tag_merging and record.tags:
                merge = merge_tags(match.existing_tags, record.tags)
                if merge.added_count:
                    catalog.update_artwork_tags(match.existing_id, merge.tags)
                merged = merge.added_count

        audit.tags_merged += merged
        return ArtworkDuplicate(
            title=record.title,
            existing_id=match.existing_id,
            confidence_score=match.confidence_score,
            score_breakdown=match.score_breakdown,
            error=failure_codes.DUPLICATE_DETECTED,
            tags_merged=merged,
        )

    def _persist_artwork(
        self,
        record: ArtworkRecord,
        photos: PhotoAcquisitionResult,
        *,
        context: ImportContext,
        audit: AuditTrail,
    ) -> CreatedArtwork:
        row = ArtworkCreate(
            title=record.title,
            lat=record.lat,
            lon=record.lon,
            source=record.source,
            created_by=self._system_user_id,
            status=CatalogStatus.APPROVED,
            description=record.description,
            external_id=record.external_id,
            import_batch=context.import_id,
            tags=merge_tags(record.tags, context.provenance_tags(record.source)).tags,
            photos=[photo.to_catalog_dict() for photo in photos.succeeded],
        )

        try:
            with self._unit_of_work() as catalog:
                artwork_id = catalog.insert_artwork(row)
                resolution = self._creator_resolver.resolve(
                    catalog,
                    artwork_id=artwork_id,
                    raw_names=record.creator_field,
                    source=record.source,
                    create_missing=context.create_missing_creators,
                    auto_approve=context.auto_approve_creators,
                )
        except Exception:
            self._photo_acquirer.discard(photos.succeeded)
            audit.record_discarded_photos(len(photos.succeeded))
            raise

        if not resolution.ok:
            audit.creator_resolution_errors.append(
                CreatorResolutionFailure(artwork_id=artwork_id, title=record.title, error=resolution.error or "")
            )
        else:
            audit.unresolved_creators.extend(
                UnresolvedCreator(artwork_id=artwork_id, name=name) for name in resolution.unresolved_names
            )
        audit.creators_auto_created += len(resolution.created)

        return CreatedArtwork(
            id=artwork_id,
            title=record.title,
            creators=resolution.resolved,
            photos=photos.succeeded,
            photo_errors=photos.failed,
            photos_processed=PhotoCounts(
                total=photos.total,
                successful=len(photos.succeeded),
                failed=len(photos.failed),
            ),
        )

    def process_creator(
        self,
        record: CreatorRecord,
        *,
        context: ImportContext,
        audit: AuditTrail,
    ) -> CreatorOutcome:
        try:
            outcome = self._process_creator(record, context=context, audit=audit)
        except CatalogUnavailableError:
            raise
        except Exception as exc:
            logger.exception("Creator record failed import_id=%s name=%r", context.import_id, record.name)
            self._log_outcome(context, "artist", record.name, RecordState.FAILED, error=str(exc))
            return FailedCreator(
                name=record.name,
                error=str(exc) or type(exc).__name__,
                code=_failure_code(exc),
            )

        state = RecordState.DUPLICATE if isinstance(outcome, CreatorDuplicate) else RecordState.PERSISTED
        self._log_outcome(context, "artist", record.name, state)
        return outcome

    def _process_creator(
        self,
        record: CreatorRecord,
        *,
        context: ImportContext,
        audit: AuditTrail,
    ) -> CreatorOutcome:
        with self._unit_of_work() as catalog:
            match = self._duplicate_detector.detect_creator(
                catalog,
                record,
                threshold=context.threshold,
                weights=context.creator_weights,
            )
            if match is None:
                row = CreatorCreate(
                    name=record.name,
                    source=record.source,
                    created_by=self._system_user_id,
                    status=_imported_creator_status(record, context),
                    description=record.description,
                    website=record.website,
                    birth_date=record.birth_date,
                    death_date=record.death_date,
                    external_id=record.external_id,
                    tags=merge_tags(record.tags, context.provenance_tags(record.source)).tags,
                )
                creator_id = catalog.insert_creators([row])[0]
                return CreatedCreator(id=creator_id, name=record.name, status=row.status)

            merged_tags = None
            added = 0
            if context.enable_tag_merging and record.tags:
                merge = merge_tags(match.existing_tags, record.tags)
                added = merge.added_count
                merged_tags = merge.tags if added else None
            biography = append_biography(match.existing_description, record.description)
            catalog.update_creator(match.existing_id, tags=merged_tags, description=biography)

        audit.tags_merged += added
        return CreatorDuplicate(
            name=record.name,
            existing_id=match.existing_id,
            confidence_score=match.confidence_score,
            score_breakdown=match.score_breakdown,
            error=(
                failure_codes.DUPLICATE_DETECTED_BIO_UPDATED
                if biography is not None
                else failure_codes.DUPLICATE_DETECTED
            ),
            tags_merged=added,
        )

    def _log_outcome(self, context: ImportContext, kind: str, title: str, state: str, **fields: object) -> None:
        log_event(
            logger,
            logging.INFO,
            "record_processed",
            import_id=context.import_id,
            record_type=kind,
            title=title,
            state=state,
            **fields,
        )

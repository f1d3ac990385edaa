"""
app/services/mass_import_service.py

Batch orchestration for mass imports.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable, Iterator, Sequence
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, TypeVar

from app import failure_codes
from app.config import (
    MassImportSettings,
    get_mass_import_settings,
    get_photo_acquisition_settings,
    get_photo_storage_settings,
)
from app.domain.mass_import import AuditTrail, ImportReport
from app.logging_utils import log_event
from app.schemas.mass_import import MassImportRequest
from app.services.creator_resolution_service import CreatorResolutionService
from app.services.duplicate_detection_service import DuplicateDetectionService
from app.services.photo_acquisition_service import PhotoAcquisitionService
from app.services.record_processor import ImportContext, RecordProcessor
from app.validators.import_request_validator import ImportRequestValidator
from db.repositories.catalog_unit_of_work import SQLAlchemyCatalogUnitOfWork
from db.repositories.errors import CatalogUnavailableError
from db.repositories.storage import LocalObjectStorage

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MassImportError(RuntimeError):
    """
    Fatal, request-level failure. Carries whatever was recorded before it.
    """

    code = failure_codes.MASS_IMPORT_ERROR

    def __init__(self, message: str, *, report: ImportReport | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.report = report


class ImportTimeoutError(MassImportError):
    """
    Raised when the wall-clock budget runs out before every record started.
    """

    code = failure_codes.IMPORT_TIMEOUT


class ImportCatalogUnavailableError(MassImportError):
    """
    Raised when the catalog cannot be reached; no further record can succeed.
    """

    code = failure_codes.CATALOG_UNAVAILABLE


def _chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


class MassImportService:
    """
    Validates once, then processes every artwork and then every creator record
    in input order, in chunks of `batchSize`, under one wall-clock budget.

    The budget is checked before each record. A record that has started is
    allowed to finish, including its photo downloads; when the budget is gone
    no further record starts and ImportTimeoutError carries the partial report.
    """

    def __init__(
        self,
        *,
        processor: RecordProcessor,
        settings: MassImportSettings,
        validator: ImportRequestValidator | None = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._processor = processor
        self._settings = settings
        self._validator = validator or ImportRequestValidator(settings)
        self._clock = clock
        self._now = now or (lambda: datetime.now(timezone.utc))

    @property
    def validator(self) -> ImportRequestValidator:
        return self._validator

    def run_payload(self, payload: Any) -> ImportReport:
        """
        Validate a raw body and run it. ImportValidationError propagates untouched.
        """

        return self.run(self._validator.validate(payload))

    def run(self, request: MassImportRequest) -> ImportReport:
        started_clock = self._clock()
        deadline = started_clock + self._settings.processing_timeout_seconds
        config = request.config

        report = ImportReport(
            import_id=request.metadata.import_id,
            audit_trail=AuditTrail(
                system_user_token=self._settings.system_user_token,
                import_started=self._now(),
            ),
        )
        report.summary.total_requested = request.data.total_records

        context = ImportContext(
            import_id=request.metadata.import_id,
            plugin_name=request.metadata.source.plugin_name,
            threshold=(
                config.duplicate_threshold
                if config.duplicate_threshold is not None
                else self._settings.default_duplicate_threshold
            ),
            artwork_weights=config.artwork_weights(),
            creator_weights=config.creator_weights(),
            enable_tag_merging=config.enable_tag_merging,
            create_missing_creators=config.create_missing_artists,
            auto_approve_creators=config.auto_approve_artists,
        )
        batch_size = min(config.batch_size or self._settings.max_batch_size, self._settings.max_batch_size)

        log_event(
            logger,
            logging.INFO,
            "mass_import_started",
            import_id=context.import_id,
            plugin_name=context.plugin_name,
            artworks=len(request.data.artworks),
            artists=len(request.data.artists),
            threshold=context.threshold,
            batch_size=batch_size,
        )

        groups = (
            (request.data.artworks, report.add_artwork_outcome),
            (request.data.artists, report.add_creator_outcome),
        )
        try:
            for records, add_outcome in groups:
                for chunk in _chunked(records, batch_size):
                    self._ensure_budget(deadline, report, started_clock)
                    report.audit_trail.batches_processed += 1
                    for record in chunk:
                        self._ensure_budget(deadline, report, started_clock)
                        add_outcome(self._processor.process(record, context=context, audit=report.audit_trail))
        except CatalogUnavailableError as exc:
            self._finalize(report, started_clock)
            log_event(
                logger,
                logging.ERROR,
                "mass_import_aborted",
                import_id=context.import_id,
                code=failure_codes.CATALOG_UNAVAILABLE,
                processed=report.summary.total_processed,
            )
            raise ImportCatalogUnavailableError(str(exc), report=report) from exc

        self._finalize(report, started_clock)
        log_event(
            logger,
            logging.INFO,
            "mass_import_completed",
            import_id=context.import_id,
            processed=report.summary.total_processed,
            succeeded=report.summary.total_succeeded,
            duplicates=report.summary.total_duplicates,
            failed=report.summary.total_failed,
            processing_time_ms=report.summary.processing_time_ms,
        )
        return report

    def _ensure_budget(self, deadline: float, report: ImportReport, started_clock: float) -> None:
        if self._clock() < deadline:
            return
        self._finalize(report, started_clock)
        log_event(
            logger,
            logging.WARNING,
            "mass_import_timeout",
            import_id=report.import_id,
            processed=report.summary.total_processed,
            requested=report.summary.total_requested,
        )
        raise ImportTimeoutError(
            f"Import exceeded the {self._settings.processing_timeout_seconds:g}s processing budget "
            f"after {report.summary.total_processed} of {report.summary.total_requested} records.",
            report=report,
        )

    def _finalize(self, report: ImportReport, started_clock: float) -> None:
        report.summary.processing_time_ms = max(0, int((self._clock() - started_clock) * 1000))
        report.audit_trail.finalize(self._now())


@lru_cache(maxsize=1)
def get_mass_import_service() -> MassImportService:
    """
    Build and cache the mass-import service.
    """

    settings = get_mass_import_settings()
    storage_settings = get_photo_storage_settings()
    system_user_id = uuid.UUID(settings.system_user_token)

    processor = RecordProcessor(
        unit_of_work=SQLAlchemyCatalogUnitOfWork(),
        duplicate_detector=DuplicateDetectionService(
            search_radius_meters=settings.duplicate_search_radius_meters,
        ),
        creator_resolver=CreatorResolutionService(system_user_id=system_user_id),
        photo_acquirer=PhotoAcquisitionService(
            storage=LocalObjectStorage(
                storage_settings.root_dir,
                public_base_url=storage_settings.public_base_url,
            ),
            settings=get_photo_acquisition_settings(),
        ),
        system_user_id=system_user_id,
    )
    return MassImportService(processor=processor, settings=settings)

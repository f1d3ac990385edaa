"""
tests/test_mass_import_service.py

End-to-end pipeline tests over the in-memory catalog, fake photo hosts and
in-memory object storage.

Coverage
--------
- New artwork lands in `created`; resubmission lands in `duplicates` with tags merged
- One unreachable photo annotates its own record only
- Catalog write failure isolates the record and discards its photos
- Creator resolution failure keeps the artwork
- Auto-created creators and artist records
- Imported artist status follows autoApproveArtists, then the record's own status
- Discarded photos are taken back out of the upload count
- Time budget and catalog outage are fatal and carry partial results
"""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from app import failure_codes
from app.config import MassImportSettings
from app.domain.creator_resolution import CreatorLinkStatus
from app.schemas.mass_import import MassImportResponse
from app.services.duplicate_detection_service import BIOGRAPHY_SEPARATOR
from app.services.mass_import_service import (
    ImportCatalogUnavailableError,
    ImportTimeoutError,
    MassImportService,
)
from app.services.record_processor import RecordProcessor
from app.validators.import_request_validator import ImportValidationError
from tests.conftest import FIXED_NOW, make_artist, make_artwork, make_payload
from tests.fakes import FakeClock, FakeHTTPSession, InMemoryCatalog, InMemoryObjectStorage

MURAL_PHOTO = "https://img.example.org/untitled-mural.png"
SECOND_PHOTO = "https://img.example.org/untitled-mural-detail.png"


class AdvancingProcessor:
    """Advances the fake clock by a fixed amount per record."""

    def __init__(self, inner: RecordProcessor, clock: FakeClock, seconds: float) -> None:
        self._inner = inner
        self._clock = clock
        self._seconds = seconds

    def process(self, record, *, context, audit):
        outcome = self._inner.process(record, context=context, audit=audit)
        self._clock.advance(self._seconds)
        return outcome


class TestVancouverScenario:
    def test_new_artwork_is_created(
        self,
        mass_import_service: MassImportService,
        catalog: InMemoryCatalog,
    ) -> None:
        report = mass_import_service.run_payload(make_payload(artworks=[make_artwork()]))

        assert len(report.results.artworks.created) == 1
        assert report.summary.total_duplicates == 0
        assert report.summary.total_requested == 1
        assert report.summary.total_succeeded == 1
        stored = catalog.artworks[report.results.artworks.created[0].id]
        assert stored["status"] == "approved"
        assert stored["import_batch"] == "import-001"
        assert stored["tags"]["plugin_name"] == "vancouver-open-data"
        assert report.audit_trail.import_started == FIXED_NOW
        assert report.audit_trail.import_completed == FIXED_NOW
        assert report.audit_trail.batches_processed == 1

    def test_resubmission_is_a_duplicate_with_merged_tags(
        self,
        mass_import_service: MassImportService,
        catalog: InMemoryCatalog,
        http_session: FakeHTTPSession,
        png_bytes: bytes,
    ) -> None:
        http_session.add_image(MURAL_PHOTO, png_bytes)
        http_session.add_image(SECOND_PHOTO, png_bytes)
        first = mass_import_service.run_payload(
            make_payload(artworks=[make_artwork(photos=[MURAL_PHOTO], tags={"artwork_type": "mural"})])
        )
        existing_id = first.results.artworks.created[0].id

        second = mass_import_service.run_payload(
            make_payload(
                import_id="import-002",
                artworks=[
                    make_artwork(
                        photos=[MURAL_PHOTO, SECOND_PHOTO],
                        tags={"artwork_type": "mural", "medium": "acrylic"},
                    )
                ],
                config={"enableTagMerging": True},
            )
        )

        assert len(second.results.artworks.duplicates) == 1
        duplicate = second.results.artworks.duplicates[0]
        assert duplicate.existing_id == existing_id
        assert duplicate.confidence_score >= 0.7
        assert duplicate.error == failure_codes.DUPLICATE_DETECTED
        assert second.audit_trail.tags_merged >= 1
        assert catalog.artworks[existing_id]["tags"]["medium"] == "acrylic"
        assert catalog.artworks[existing_id]["tags"]["import_batch"] == "import-001"
        assert ("GET", SECOND_PHOTO) not in http_session.calls
        assert len(catalog.artworks) == 1

    def test_duplicate_without_tag_merging_leaves_tags(
        self,
        mass_import_service: MassImportService,
        catalog: InMemoryCatalog,
    ) -> None:
        existing_id = catalog.seed_artwork(title="Untitled Mural", lat=49.28, lon=-123.12)

        report = mass_import_service.run_payload(
            make_payload(artworks=[make_artwork(tags={"medium": "acrylic"})])
        )

        assert report.results.artworks.duplicates[0].tags_merged == 0
        assert catalog.artworks[existing_id]["tags"] == {}
        assert report.audit_trail.tags_merged == 0


def test_unreachable_photo_only_annotates_its_record(
    mass_import_service: MassImportService,
    http_session: FakeHTTPSession,
    png_bytes: bytes,
) -> None:
    artworks = []
    for index in range(4):
        url = f"https://img.example.org/mural-{index}.png"
        if index == 1:
            url = "https://gone.example.org/mural-1.png"
        else:
            http_session.add_image(url, png_bytes)
        artworks.append(make_artwork(title=f"Mural {index}", lat=49.20 + index * 0.05, photos=[url]))

    report = mass_import_service.run_payload(make_payload(artworks=artworks))

    created = report.results.artworks.created
    assert [artwork.title for artwork in created] == ["Mural 0", "Mural 1", "Mural 2", "Mural 3"]
    assert [len(artwork.photo_errors) for artwork in created] == [0, 1, 0, 0]
    assert created[1].photo_errors[0].index == 0
    assert created[1].photos_processed.failed == 1
    assert report.results.artworks.failed == []
    assert report.audit_trail.photos_failed == 1
    assert report.audit_trail.photos_uploaded == 3
    assert report.audit_trail.photos_downloaded == 3


def test_catalog_write_failure_isolates_record_and_discards_photos(
    mass_import_service: MassImportService,
    catalog: InMemoryCatalog,
    http_session: FakeHTTPSession,
    object_storage: InMemoryObjectStorage,
    png_bytes: bytes,
) -> None:
    http_session.add_image(MURAL_PHOTO, png_bytes)
    catalog.failures["insert_artwork"] = RuntimeError("disk full")

    report = mass_import_service.run_payload(
        make_payload(
            artworks=[make_artwork(photos=[MURAL_PHOTO])],
            artists=[make_artist("Jane Doe")],
        )
    )

    failed = report.results.artworks.failed
    assert [(f.title, f.error, f.code) for f in failed] == [
        ("Untitled Mural", "disk full", failure_codes.RECORD_PROCESSING_FAILED)
    ]
    assert object_storage.objects == {}
    assert report.audit_trail.photos_downloaded == 1
    assert report.audit_trail.photos_uploaded == 0
    assert len(report.results.artists.created) == 1
    assert report.summary.total_failed == 1
    assert report.summary.total_succeeded == 1
    assert report.summary.total_processed == 2


def test_creator_resolution_failure_keeps_artwork(
    mass_import_service: MassImportService,
    catalog: InMemoryCatalog,
) -> None:
    catalog.failures["insert_creators"] = RuntimeError("creator insert failed")

    report = mass_import_service.run_payload(
        make_payload(
            artworks=[make_artwork(artist="John Smith, Jane Doe")],
            config={"createMissingArtists": True},
        )
    )

    created = report.results.artworks.created[0]
    assert created.creators == ()
    assert created.id in catalog.artworks
    assert catalog.creators == {}
    errors = report.audit_trail.creator_resolution_errors
    assert [(e.artwork_id, e.error) for e in errors] == [(created.id, "creator insert failed")]


def test_missing_creators_are_auto_created(
    mass_import_service: MassImportService,
    catalog: InMemoryCatalog,
) -> None:
    existing_id = catalog.seed_creator(name="John Smith")

    report = mass_import_service.run_payload(
        make_payload(
            artworks=[make_artwork(artist="John Smith, Jane Doe")],
            config={"createMissingArtists": True, "autoApproveArtists": True},
        )
    )

    created = report.results.artworks.created[0]
    assert [(c.name, c.status) for c in created.creators] == [
        ("John Smith", CreatorLinkStatus.LINKED),
        ("Jane Doe", CreatorLinkStatus.CREATED),
    ]
    assert created.creators[0].id == existing_id
    auto_created = report.results.artists.auto_created
    assert [(c.name, c.source_artwork_id) for c in auto_created] == [("Jane Doe", created.id)]
    assert report.audit_trail.creators_auto_created == 1
    assert catalog.creators_named("Jane Doe")[0]["status"] == "approved"


def test_unmatched_creators_are_reported_when_creation_is_off(
    mass_import_service: MassImportService,
) -> None:
    report = mass_import_service.run_payload(make_payload(artworks=[make_artwork(artist="Jane Doe")]))

    created = report.results.artworks.created[0]
    assert [(u.artwork_id, u.name) for u in report.audit_trail.unresolved_creators] == [(created.id, "Jane Doe")]
    assert report.results.artists.auto_created == []


class TestArtistRecords:
    def test_new_artist_is_created(self, mass_import_service: MassImportService, catalog: InMemoryCatalog) -> None:
        report = mass_import_service.run_payload(
            make_payload(artists=[make_artist("Jane Doe", website="https://janedoe.example.org", externalId="A-1")])
        )

        created = report.results.artists.created[0]
        assert created.name == "Jane Doe"
        stored = catalog.creators[created.id]
        assert stored["website"] == "https://janedoe.example.org"
        assert stored["external_id"] == "A-1"
        assert stored["tags"]["import_batch"] == "import-001"

    @pytest.mark.parametrize(
        ("record_status", "auto_approve", "expected"),
        [
            (None, False, "pending"),
            ("pending", False, "pending"),
            ("approved", False, "approved"),
            ("pending", True, "approved"),
            (None, True, "approved"),
        ],
    )
    def test_new_artist_status(
        self,
        record_status: str | None,
        auto_approve: bool,
        expected: str,
        mass_import_service: MassImportService,
        catalog: InMemoryCatalog,
    ) -> None:
        extra = {} if record_status is None else {"status": record_status}

        report = mass_import_service.run_payload(
            make_payload(artists=[make_artist("Jane Doe", **extra)], config={"autoApproveArtists": auto_approve})
        )

        created = report.results.artists.created[0]
        assert created.status == expected
        assert catalog.creators[created.id]["status"] == expected

    def test_unknown_artist_status_is_rejected(self, mass_import_service: MassImportService) -> None:
        with pytest.raises(ImportValidationError) as excinfo:
            mass_import_service.run_payload(make_payload(artists=[make_artist("Jane Doe", status="featured")]))

        assert [error.field for error in excinfo.value.errors] == ["data.artists[0].status"]

    def test_duplicate_artist_gets_biography_appended(
        self,
        mass_import_service: MassImportService,
        catalog: InMemoryCatalog,
    ) -> None:
        existing_id = catalog.seed_creator(name="Jane Doe", description="Born in Vancouver.")

        report = mass_import_service.run_payload(
            make_payload(artists=[make_artist("Jane Doe", description="Works mostly in murals.")])
        )

        duplicate = report.results.artists.duplicates[0]
        assert duplicate.existing_id == existing_id
        assert duplicate.error == failure_codes.DUPLICATE_DETECTED_BIO_UPDATED
        assert catalog.creators[existing_id]["description"] == (
            f"Born in Vancouver.{BIOGRAPHY_SEPARATOR}Works mostly in murals."
        )

    def test_duplicate_artist_with_known_biography_is_untouched(
        self,
        mass_import_service: MassImportService,
        catalog: InMemoryCatalog,
    ) -> None:
        catalog.seed_creator(name="Jane Doe", description="Born in Vancouver.")

        report = mass_import_service.run_payload(
            make_payload(artists=[make_artist("Jane Doe", description="Born in Vancouver.")])
        )

        assert report.results.artists.duplicates[0].error == failure_codes.DUPLICATE_DETECTED
        assert catalog.writes == 0


def test_batches_are_counted_per_chunk(mass_import_service: MassImportService) -> None:
    artworks = [make_artwork(title=f"Mural {i}", lat=49.0 + i * 0.05) for i in range(5)]

    report = mass_import_service.run_payload(
        make_payload(artworks=artworks, artists=[make_artist("Jane Doe")], config={"batchSize": 2})
    )

    assert report.audit_trail.batches_processed == 4
    assert report.summary.total_processed == 6


def test_time_budget_stops_new_records(
    processor: RecordProcessor,
    catalog: InMemoryCatalog,
    clock: FakeClock,
) -> None:
    service = MassImportService(
        processor=AdvancingProcessor(processor, clock, seconds=25.0),
        settings=MassImportSettings(processing_timeout_seconds=60.0),
        clock=clock,
        now=lambda: FIXED_NOW,
    )
    artworks = [make_artwork(title=f"Mural {i}", lat=49.0 + i * 0.05) for i in range(5)]

    with pytest.raises(ImportTimeoutError) as ctx:
        service.run_payload(make_payload(artworks=artworks))

    partial = ctx.value.report
    assert partial is not None
    assert partial.summary.total_requested == 5
    assert partial.summary.total_processed == 3
    assert len(catalog.artworks) == 3
    assert partial.audit_trail.import_completed == FIXED_NOW
    assert partial.summary.processing_time_ms == 75000
    assert ctx.value.code == failure_codes.IMPORT_TIMEOUT


def test_catalog_outage_is_fatal(mass_import_service: MassImportService, catalog: InMemoryCatalog) -> None:
    catalog.unavailable = True

    with pytest.raises(ImportCatalogUnavailableError) as ctx:
        mass_import_service.run_payload(make_payload(artworks=[make_artwork(), make_artwork(title="Other", lat=48.0)]))

    assert ctx.value.report is not None
    assert ctx.value.report.summary.total_processed == 0
    assert ctx.value.code == failure_codes.CATALOG_UNAVAILABLE


def test_invalid_request_makes_no_catalog_writes(
    mass_import_service: MassImportService,
    catalog: InMemoryCatalog,
) -> None:
    with pytest.raises(ImportValidationError) as ctx:
        mass_import_service.run_payload(make_payload(artworks=[make_artwork()], config={"duplicateThreshold": 1.5}))

    assert [error.field for error in ctx.value.errors] == ["config.duplicateThreshold"]
    assert catalog.writes == 0
    assert catalog.scopes_opened == 0


def test_report_serializes_with_camel_case_keys(mass_import_service: MassImportService) -> None:
    report = mass_import_service.run_payload(make_payload(artworks=[make_artwork()]))

    body = MassImportResponse.from_report(report).model_dump(mode="json", by_alias=True)

    assert body["importId"] == "import-001"
    assert set(body["summary"]) == {
        "totalRequested",
        "totalProcessed",
        "totalSucceeded",
        "totalFailed",
        "totalDuplicates",
        "processingTimeMs",
    }
    assert set(body["results"]["artists"]) == {"created", "autoCreated", "duplicates", "failed"}
    assert body["results"]["artworks"]["created"][0]["photosProcessed"] == {"total": 0, "successful": 0, "failed": 0}
    assert body["auditTrail"]["systemUserToken"] == "00000000-0000-0000-0000-000000000002"


def test_database_errors_are_reported_as_catalog_write_failures(
    mass_import_service: MassImportService,
    catalog: InMemoryCatalog,
) -> None:
    catalog.failures["insert_creators"] = IntegrityError("INSERT INTO creators", {}, Exception("duplicate key"))

    report = mass_import_service.run_payload(make_payload(artists=[make_artist("Jane Doe")]))

    assert [f.code for f in report.results.artists.failed] == [failure_codes.CATALOG_WRITE_FAILED]

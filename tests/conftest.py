"""
tests/conftest.py

Shared fixtures for the mass-import pipeline tests.
"""

from __future__ import annotations

import io
import uuid
from datetime import datetime, timezone
from typing import Any

import pytest
from PIL import Image

from app.config import MASS_IMPORT_SYSTEM_USER_TOKEN, MassImportSettings, PhotoAcquisitionSettings
from app.services.creator_resolution_service import CreatorResolutionService
from app.services.duplicate_detection_service import DuplicateDetectionService
from app.services.mass_import_service import MassImportService
from app.services.photo_acquisition_service import PhotoAcquisitionService
from app.services.record_processor import RecordProcessor
from tests.fakes import FakeClock, FakeHTTPSession, InMemoryCatalog, InMemoryObjectStorage

SYSTEM_USER_ID = uuid.UUID(MASS_IMPORT_SYSTEM_USER_TOKEN)
FIXED_NOW = datetime(2026, 10, 19, 12, 30, 0, tzinfo=timezone.utc)


def make_payload(
    *,
    artworks: list[dict[str, Any]] | None = None,
    artists: list[dict[str, Any]] | None = None,
    config: dict[str, Any] | None = None,
    import_id: str = "import-001",
) -> dict[str, Any]:
    """Build a camelCase request body."""
    return {
        "metadata": {
            "importId": import_id,
            "source": {"pluginName": "vancouver-open-data", "originalDataSource": "opendata.vancouver.ca"},
            "timestamp": "2026-10-19T12:00:00Z",
        },
        "config": config or {},
        "data": {"artworks": artworks or [], "artists": artists or []},
    }


def make_artwork(title: str = "Untitled Mural", lat: float = 49.28, lon: float = -123.12, **extra: Any) -> dict[str, Any]:
    record = {"recordType": "artwork", "title": title, "lat": lat, "lon": lon, "source": "vancouver-open-data"}
    record.update(extra)
    return record


def make_artist(name: str, **extra: Any) -> dict[str, Any]:
    record = {"recordType": "artist", "title": name, "source": "vancouver-open-data"}
    record.update(extra)
    return record


@pytest.fixture()
def png_bytes() -> bytes:
    """A real, decodable PNG larger than the thumbnail edge."""
    buffer = io.BytesIO()
    Image.new("RGB", (1200, 600), color=(200, 40, 40)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture()
def catalog() -> InMemoryCatalog:
    return InMemoryCatalog()


@pytest.fixture()
def http_session() -> FakeHTTPSession:
    return FakeHTTPSession()


@pytest.fixture()
def object_storage() -> InMemoryObjectStorage:
    return InMemoryObjectStorage()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def import_settings() -> MassImportSettings:
    return MassImportSettings()


@pytest.fixture()
def photo_settings() -> PhotoAcquisitionSettings:
    return PhotoAcquisitionSettings(max_bytes=1024 * 1024, max_workers=2, thumbnail_max_px=64)


@pytest.fixture()
def photo_service(
    object_storage: InMemoryObjectStorage,
    http_session: FakeHTTPSession,
    photo_settings: PhotoAcquisitionSettings,
) -> PhotoAcquisitionService:
    return PhotoAcquisitionService(
        storage=object_storage,
        settings=photo_settings,
        session_factory=lambda: http_session,
        now=lambda: FIXED_NOW,
    )


@pytest.fixture()
def processor(catalog: InMemoryCatalog, photo_service: PhotoAcquisitionService) -> RecordProcessor:
    return RecordProcessor(
        unit_of_work=catalog,
        duplicate_detector=DuplicateDetectionService(search_radius_meters=500.0),
        creator_resolver=CreatorResolutionService(system_user_id=SYSTEM_USER_ID),
        photo_acquirer=photo_service,
        system_user_id=SYSTEM_USER_ID,
    )


@pytest.fixture()
def mass_import_service(
    processor: RecordProcessor,
    import_settings: MassImportSettings,
    clock: FakeClock,
) -> MassImportService:
    return MassImportService(
        processor=processor,
        settings=import_settings,
        clock=clock,
        now=lambda: FIXED_NOW,
    )

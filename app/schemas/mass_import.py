"""
app/schemas/mass_import.py

Wire schemas for the mass-import endpoint.

Requests and responses use camelCase keys. Artwork and creator records form
a tagged union on `recordType`, and each variant validates with its own schema
before any shared processing.
"""

from __future__ import annotations

import dataclasses
import uuid
from datetime import datetime
from typing import Annotated, Any, Literal, Union
from urllib.parse import urlparse

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from app.domain.duplicate_detection import CreatorWeights, DuplicateWeights
from app.domain.photo_acquisition import PhotoReference
from app.sanitizers import sanitize_markdown

MAX_PHOTOS_PER_ARTWORK = 10
DEFAULT_MAX_BATCH_SIZE = 10
DEFAULT_MAX_RECORDS = 1000


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )


def _check_http_url(value: str | None) -> str | None:
    if value is None:
        return None
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise PydanticCustomError("invalid_url", "Value must be an absolute http(s) URL")
    return value


class PhotoInput(_CamelModel):
    url: str = Field(min_length=1, max_length=2048)
    caption: str | None = Field(default=None, max_length=500)
    credit: str | None = Field(default=None, max_length=500)

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        return _check_http_url(value)

    def to_reference(self) -> PhotoReference:
        return PhotoReference(url=self.url, caption=self.caption, credit=self.credit)


class _RecordBase(_CamelModel):
    title: str = Field(min_length=1, max_length=200)
    source: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=10000)
    external_id: str | None = Field(default=None, max_length=200)
    tags: dict[str, Any] = Field(default_factory=dict)

    @field_validator("description")
    @classmethod
    def _sanitize_description(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return sanitize_markdown(value) or None

    @field_validator("tags", mode="before")
    @classmethod
    def _null_tags(cls, value: Any) -> Any:
        return {} if value is None else value


class ArtworkRecord(_RecordBase):
    record_type: Literal["artwork"] = "artwork"
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    artist: str | None = Field(default=None, max_length=500)
    created_by: str | None = Field(default=None, max_length=500)
    photos: list[PhotoInput] = Field(default_factory=list, max_length=MAX_PHOTOS_PER_ARTWORK)

    @field_validator("photos", mode="before")
    @classmethod
    def _accept_bare_urls(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [{"url": item} if isinstance(item, str) else item for item in value]
        return value

    @model_validator(mode="after")
    def _reject_null_island(self) -> ArtworkRecord:
        if self.lat == 0 and self.lon == 0:
            raise PydanticCustomError(
                "null_island",
                "Coordinates (0, 0) are not a plausible artwork location",
            )
        return self

    @property
    def creator_field(self) -> str | None:
        """Free-text creator names; `artist` wins over `createdBy`."""
        return self.artist or self.created_by

    def photo_references(self) -> list[PhotoReference]:
        return [photo.to_reference() for photo in self.photos]


class CreatorRecord(_RecordBase):
    record_type: Literal["artist"] = "artist"
    title: str = Field(
        min_length=1,
        max_length=200,
        validation_alias=AliasChoices("title", "name"),
    )
    website: str | None = Field(default=None, max_length=2048)
    birth_date: str | None = Field(default=None, max_length=32)
    death_date: str | None = Field(default=None, max_length=32)
    status: Literal["pending", "approved", "rejected"] | None = None

    @field_validator("website")
    @classmethod
    def _validate_website(cls, value: str | None) -> str | None:
        return _check_http_url(value)

    @property
    def name(self) -> str:
        return self.title


ImportRecord = Annotated[Union[ArtworkRecord, CreatorRecord], Field(discriminator="record_type")]


class DuplicateWeightsInput(_CamelModel):
    gps: float | None = Field(default=None, ge=0)
    title: float | None = Field(default=None, ge=0)
    artist: float | None = Field(default=None, ge=0)
    reference_ids: float | None = Field(default=None, ge=0)
    tag_similarity: float | None = Field(default=None, ge=0)

    def to_weights(self) -> DuplicateWeights:
        return dataclasses.replace(DuplicateWeights(), **self.model_dump(exclude_none=True))


class CreatorWeightsInput(_CamelModel):
    name: float | None = Field(default=None, ge=0)
    reference_ids: float | None = Field(default=None, ge=0)

    def to_weights(self) -> CreatorWeights:
        return dataclasses.replace(CreatorWeights(), **self.model_dump(exclude_none=True))


class ImportConfig(_CamelModel):
    duplicate_threshold: float | None = Field(default=None, ge=0, le=1)
    duplicate_weights: DuplicateWeightsInput | None = None
    artist_duplicate_weights: CreatorWeightsInput | None = None
    batch_size: int | None = Field(default=None, ge=1)
    enable_tag_merging: bool = False
    create_missing_artists: bool = False
    auto_approve_artists: bool = False

    @field_validator("batch_size")
    @classmethod
    def _check_batch_size(cls, value: int | None, info: ValidationInfo) -> int | None:
        limit = (info.context or {}).get("max_batch_size", DEFAULT_MAX_BATCH_SIZE)
        if value is not None and value > limit:
            raise PydanticCustomError(
                "less_than_equal",
                "Input should be less than or equal to {le}",
                {"le": limit},
            )
        return value

    def artwork_weights(self) -> DuplicateWeights:
        return self.duplicate_weights.to_weights() if self.duplicate_weights else DuplicateWeights()

    def creator_weights(self) -> CreatorWeights:
        return self.artist_duplicate_weights.to_weights() if self.artist_duplicate_weights else CreatorWeights()


class ImportData(_CamelModel):
    artworks: list[ArtworkRecord] = Field(default_factory=list)
    artists: list[CreatorRecord] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_record_count(self, info: ValidationInfo) -> ImportData:
        total = len(self.artworks) + len(self.artists)
        if total == 0:
            raise PydanticCustomError("empty_data", "At least one artwork or artist record is required")
        limit = (info.context or {}).get("max_records", DEFAULT_MAX_RECORDS)
        if total > limit:
            raise PydanticCustomError(
                "batch_too_large",
                "Request carries {count} records; the maximum is {limit}",
                {"count": total, "limit": limit},
            )
        return self

    @property
    def total_records(self) -> int:
        return len(self.artworks) + len(self.artists)


class ImportSource(_CamelModel):
    plugin_name: str = Field(min_length=1, max_length=100)
    original_data_source: str | None = Field(default=None, max_length=500)


class ImportMetadata(_CamelModel):
    import_id: str = Field(min_length=1, max_length=200)
    source: ImportSource
    timestamp: str | None = None


class MassImportRequest(_CamelModel):
    """
    Typed, fully validated import request.
    """

    metadata: ImportMetadata
    config: ImportConfig = Field(default_factory=ImportConfig)
    data: ImportData


# ---------------------------------------------------------------------------
# Response models (built from domain dataclasses)
# ---------------------------------------------------------------------------


class _ResponseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ResolvedCreatorResponse(_ResponseModel):
    id: uuid.UUID
    name: str
    status: str


class ProcessedPhotoResponse(_ResponseModel):
    url: str
    thumbnail_url: str | None = None
    caption: str | None = None
    credit: str | None = None
    format: str
    size_bytes: int


class PhotoErrorResponse(_ResponseModel):
    index: int
    url: str
    error: str


class PhotoCountsResponse(_ResponseModel):
    total: int = Field(..., ge=0)
    successful: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)


class CreatedArtworkResponse(_ResponseModel):
    id: uuid.UUID
    title: str
    creators: list[ResolvedCreatorResponse]
    photos: list[ProcessedPhotoResponse]
    photo_errors: list[PhotoErrorResponse]
    photos_processed: PhotoCountsResponse


class ArtworkDuplicateResponse(_ResponseModel):
    title: str
    existing_id: uuid.UUID
    confidence_score: float = Field(..., ge=0, le=1)
    score_breakdown: dict[str, float]
    tags_merged: int = Field(..., ge=0)
    error: str


class FailedArtworkResponse(_ResponseModel):
    title: str
    error: str
    code: str


class CreatedCreatorResponse(_ResponseModel):
    id: uuid.UUID
    name: str
    status: str


class AutoCreatedCreatorResponse(_ResponseModel):
    id: uuid.UUID
    name: str
    reason: str
    source_artwork_id: uuid.UUID


class CreatorDuplicateResponse(_ResponseModel):
    name: str
    existing_id: uuid.UUID
    confidence_score: float = Field(..., ge=0, le=1)
    score_breakdown: dict[str, float]
    tags_merged: int = Field(..., ge=0)
    error: str


class FailedCreatorResponse(_ResponseModel):
    name: str
    error: str
    code: str


class ArtworkResultsResponse(_ResponseModel):
    created: list[CreatedArtworkResponse]
    duplicates: list[ArtworkDuplicateResponse]
    failed: list[FailedArtworkResponse]


class ArtistResultsResponse(_ResponseModel):
    created: list[CreatedCreatorResponse]
    auto_created: list[AutoCreatedCreatorResponse]
    duplicates: list[CreatorDuplicateResponse]
    failed: list[FailedCreatorResponse]


class ImportResultsResponse(_ResponseModel):
    artworks: ArtworkResultsResponse
    artists: ArtistResultsResponse


class ImportSummaryResponse(_ResponseModel):
    total_requested: int = Field(..., ge=0)
    total_processed: int = Field(..., ge=0)
    total_succeeded: int = Field(..., ge=0)
    total_failed: int = Field(..., ge=0)
    total_duplicates: int = Field(..., ge=0)
    processing_time_ms: int = Field(..., ge=0)


class CreatorResolutionErrorResponse(_ResponseModel):
    artwork_id: uuid.UUID
    title: str
    error: str


class UnresolvedCreatorResponse(_ResponseModel):
    artwork_id: uuid.UUID
    name: str


class AuditTrailResponse(_ResponseModel):
    import_started: datetime
    import_completed: datetime | None = None
    batches_processed: int = Field(..., ge=0)
    tags_merged: int = Field(..., ge=0)
    photos_downloaded: int = Field(..., ge=0)
    photos_uploaded: int = Field(..., ge=0)
    photos_failed: int = Field(..., ge=0)
    creators_auto_created: int = Field(..., ge=0)
    creator_resolution_errors: list[CreatorResolutionErrorResponse]
    unresolved_creators: list[UnresolvedCreatorResponse]
    system_user_token: str


class MassImportResponse(_ResponseModel):
    """
    API response for one completed (or partially completed) import.
    """

    import_id: str
    summary: ImportSummaryResponse
    results: ImportResultsResponse
    audit_trail: AuditTrailResponse

    @classmethod
    def from_report(cls, report: Any) -> MassImportResponse:
        return cls.model_validate(report, from_attributes=True)

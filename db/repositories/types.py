"""
Typed DTOs exchanged between the import pipeline and the catalog store.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class ArtworkSnapshot:
    """
    Read-only view of an existing artwork used for duplicate scoring.
    """

    id: uuid.UUID
    title: str
    lat: float
    lon: float
    created_at: datetime
    external_id: str | None = None
    tags: dict[str, Any] = field(default_factory=dict)
    creator_names: tuple[str, ...] = ()


@dataclass(frozen=True)
class CreatorSnapshot:
    """
    Read-only view of an existing creator.
    """

    id: uuid.UUID
    name: str
    created_at: datetime
    external_id: str | None = None
    description: str | None = None
    tags: dict[str, Any] = field(default_factory=dict)
    status: str = "approved"


@dataclass(frozen=True)
class ArtworkCreate:
    """
    Normalized artwork row for insert.
    """

    title: str
    lat: float
    lon: float
    source: str
    created_by: uuid.UUID
    status: str
    description: str | None = None
    external_id: str | None = None
    import_batch: str | None = None
    tags: dict[str, Any] = field(default_factory=dict)
    photos: list[dict[str, Any]] = field(default_factory=list)
    artwork_id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass(frozen=True)
class CreatorCreate:
    """
    Normalized creator row for insert, also used for auto-created stubs.
    """

    name: str
    source: str
    created_by: uuid.UUID
    status: str
    description: str | None = None
    website: str | None = None
    birth_date: str | None = None
    death_date: str | None = None
    external_id: str | None = None
    tags: dict[str, Any] = field(default_factory=dict)
    creator_id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass(frozen=True)
class StoredObject:
    """
    Metadata produced by the object storage backend after a put.
    """

    key: str
    url: str
    content_type: str | None
    size_bytes: int
    checksum: str
    stored_at: datetime

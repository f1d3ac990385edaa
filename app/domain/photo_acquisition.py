"""
app/domain/photo_acquisition.py

Inputs and outcomes of the photo acquisition pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class PhotoReference:
    url: str
    caption: str | None = None
    credit: str | None = None


@dataclass(frozen=True)
class ProcessedPhoto:
    """
    Durable reference to one stored photo. Owned by a single artwork.
    """

    url: str
    format: str
    size_bytes: int
    thumbnail_url: str | None = None
    caption: str | None = None
    credit: str | None = None
    storage_keys: tuple[str, ...] = ()

    def to_catalog_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "thumbnail_url": self.thumbnail_url,
            "caption": self.caption,
            "credit": self.credit,
            "format": self.format,
            "size_bytes": self.size_bytes,
        }


@dataclass(frozen=True)
class PhotoFailure:
    index: int
    url: str
    error: str


@dataclass(frozen=True)
class PhotoAcquisitionResult:
    """
    Gathered outcome of one record's photo list, index-correlated.
    """

    succeeded: tuple[ProcessedPhoto, ...] = ()
    failed: tuple[PhotoFailure, ...] = ()
    downloaded: int = 0

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

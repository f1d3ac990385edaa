"""
db/models/artwork.py

Catalog artwork model.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import Float, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class CatalogStatus:
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Artwork(Base, TimestampMixin):
    __tablename__ = "artworks"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lon: Mapped[float] = mapped_column(Float, nullable=False)
    external_id: Mapped[str | None] = mapped_column(
        String(200),
        nullable=True,
        comment="Identifier of the record in its originating data source",
    )
    source: Mapped[str] = mapped_column(String(200), nullable=False)
    import_batch: Mapped[str | None] = mapped_column(
        String(200),
        nullable=True,
        comment="Caller-supplied importId of the batch that created the row",
    )
    tags: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
    )
    photos: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        comment="Processed photo references: url, thumbnail_url, caption, credit, format, size_bytes",
    )
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=CatalogStatus.APPROVED,
    )
    created_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        nullable=False,
        comment="Attribution identity; the system user for bulk imports",
    )

    __table_args__ = (
        Index("ix_artworks_lat_lon", "lat", "lon"),
        Index("ix_artworks_external_id", "external_id"),
        Index("ix_artworks_created_at", "created_at"),
    )

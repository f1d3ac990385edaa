"""
db/models/creator.py

Catalog creator (artist) model.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin
from db.models.artwork import CatalogStatus


class Creator(Base, TimestampMixin):
    __tablename__ = "creators"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Biography; additional imported text is appended, never replaced",
    )
    website: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    birth_date: Mapped[str | None] = mapped_column(String(32), nullable=True)
    death_date: Mapped[str | None] = mapped_column(String(32), nullable=True)
    external_id: Mapped[str | None] = mapped_column(String(200), nullable=True)
    source: Mapped[str] = mapped_column(String(200), nullable=False)
    tags: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
    )
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=CatalogStatus.APPROVED,
    )
    created_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)

    __table_args__ = (
        Index("ix_creators_name", "name"),
        Index("ix_creators_external_id", "external_id"),
    )

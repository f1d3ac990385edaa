"""
Catalog repository: the store capabilities consumed by the mass-import pipeline.

Point lookups, bounding-box spatial queries, batched multi-row inserts and
creator-by-name lookups. All calls run inside the caller's transaction.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any, ContextManager, Protocol

from sqlalchemy import case, func, insert, or_, select, update
from sqlalchemy.orm import Session

from db.models.artwork import Artwork
from db.models.artwork_creator import ArtworkCreator
from db.models.creator import Creator
from db.repositories.types import ArtworkCreate, ArtworkSnapshot, CreatorCreate, CreatorSnapshot


class CatalogStore(Protocol):
    """
    Catalog capabilities required by duplicate detection, creator resolution
    and the per-record processor.
    """

    def find_artworks_in_bounds(
        self,
        *,
        min_lat: float,
        max_lat: float,
        min_lon: float,
        max_lon: float,
    ) -> list[ArtworkSnapshot]:
        ...

    def find_creator_candidates(
        self,
        *,
        name: str,
        external_id: str | None = None,
        limit: int = 50,
    ) -> list[CreatorSnapshot]:
        ...

    def find_creators_by_names(self, names: Sequence[str]) -> dict[str, CreatorSnapshot]:
        ...

    def update_artwork_tags(self, artwork_id: uuid.UUID, tags: dict[str, Any]) -> None:
        ...

    def update_creator(
        self,
        creator_id: uuid.UUID,
        *,
        tags: dict[str, Any] | None = None,
        description: str | None = None,
    ) -> None:
        ...

    def insert_artwork(self, row: ArtworkCreate) -> uuid.UUID:
        ...

    def insert_creators(self, rows: Sequence[CreatorCreate]) -> list[uuid.UUID]:
        ...

    def link_artwork_creators(
        self,
        artwork_id: uuid.UUID,
        creator_ids: Sequence[uuid.UUID],
        *,
        role: str = "artist",
    ) -> int:
        ...

    def savepoint(self) -> ContextManager[None]:
        ...


def _wrap_longitude(value: float) -> float:
    return ((value + 180.0) % 360.0) - 180.0


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class CatalogRepository:
    """
    SQLAlchemy implementation of CatalogStore bound to one session.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def find_artworks_in_bounds(
        self,
        *,
        min_lat: float,
        max_lat: float,
        min_lon: float,
        max_lon: float,
    ) -> list[ArtworkSnapshot]:
        """
        Return every artwork inside a lat/lon box, newest first.

        The box is bounded by the duplicate radius, so the result is not capped.
        Boxes that cross the antimeridian are split into two longitude ranges.
        """

        if min_lon < -180.0 or max_lon > 180.0:
            lon_clause = or_(
                Artwork.lon >= _wrap_longitude(min_lon),
                Artwork.lon <= _wrap_longitude(max_lon),
            )
        else:
            lon_clause = Artwork.lon.between(min_lon, max_lon)

        stmt = (
            select(Artwork)
            .where(Artwork.lat.between(max(min_lat, -90.0), min(max_lat, 90.0)))
            .where(lon_clause)
            .order_by(Artwork.created_at.desc())
        )
        artworks = list(self._session.scalars(stmt).all())
        if not artworks:
            return []

        names_by_artwork = self._creator_names_for([artwork.id for artwork in artworks])
        return [
            ArtworkSnapshot(
                id=artwork.id,
                title=artwork.title,
                lat=artwork.lat,
                lon=artwork.lon,
                created_at=artwork.created_at,
                external_id=artwork.external_id,
                tags=dict(artwork.tags or {}),
                creator_names=tuple(names_by_artwork.get(artwork.id, ())),
            )
            for artwork in artworks
        ]

    def _creator_names_for(self, artwork_ids: Sequence[uuid.UUID]) -> dict[uuid.UUID, list[str]]:
        stmt = (
            select(ArtworkCreator.artwork_id, Creator.name)
            .join(Creator, Creator.id == ArtworkCreator.creator_id)
            .where(ArtworkCreator.artwork_id.in_(artwork_ids))
        )
        names: dict[uuid.UUID, list[str]] = {}
        for artwork_id, name in self._session.execute(stmt):
            names.setdefault(artwork_id, []).append(name)
        return names

    def find_creator_candidates(
        self,
        *,
        name: str,
        external_id: str | None = None,
        limit: int = 50,
    ) -> list[CreatorSnapshot]:
        cleaned = name.strip()
        strong = [func.lower(Creator.name) == cleaned.lower()]
        if external_id:
            strong.append(Creator.external_id == external_id)
        partial = Creator.name.ilike(f"%{_escape_like(cleaned)}%", escape="\\")

        # Exact name and reference matches first.
        stmt = (
            select(Creator)
            .where(or_(*strong, partial))
            .order_by(case((or_(*strong), 0), else_=1), Creator.created_at.desc())
            .limit(max(1, limit))
        )
        return [self._to_creator_snapshot(creator) for creator in self._session.scalars(stmt)]

    def find_creators_by_names(self, names: Sequence[str]) -> dict[str, CreatorSnapshot]:
        """
        Exact, case-preserving lookup in one round trip.

        When several creators share a name the oldest one wins.
        """

        unique_names = list(dict.fromkeys(name for name in names if name))
        if not unique_names:
            return {}

        stmt = select(Creator).where(Creator.name.in_(unique_names)).order_by(Creator.created_at.asc())
        found: dict[str, CreatorSnapshot] = {}
        for creator in self._session.scalars(stmt):
            found.setdefault(creator.name, self._to_creator_snapshot(creator))
        return found

    def update_artwork_tags(self, artwork_id: uuid.UUID, tags: dict[str, Any]) -> None:
        self._session.execute(update(Artwork).where(Artwork.id == artwork_id).values(tags=tags))

    def update_creator(
        self,
        creator_id: uuid.UUID,
        *,
        tags: dict[str, Any] | None = None,
        description: str | None = None,
    ) -> None:
        values: dict[str, Any] = {}
        if tags is not None:
            values["tags"] = tags
        if description is not None:
            values["description"] = description
        if not values:
            return
        self._session.execute(update(Creator).where(Creator.id == creator_id).values(**values))

    def insert_artwork(self, row: ArtworkCreate) -> uuid.UUID:
        self._session.execute(
            insert(Artwork),
            [
                {
                    "id": row.artwork_id,
                    "title": row.title,
                    "description": row.description,
                    "lat": row.lat,
                    "lon": row.lon,
                    "external_id": row.external_id,
                    "source": row.source,
                    "import_batch": row.import_batch,
                    "tags": row.tags,
                    "photos": row.photos,
                    "status": row.status,
                    "created_by": row.created_by,
                }
            ],
        )
        return row.artwork_id

    def insert_creators(self, rows: Sequence[CreatorCreate]) -> list[uuid.UUID]:
        if not rows:
            return []

        values = [
            {
                "id": row.creator_id,
                "name": row.name,
                "description": row.description,
                "website": row.website,
                "birth_date": row.birth_date,
                "death_date": row.death_date,
                "external_id": row.external_id,
                "source": row.source,
                "tags": row.tags,
                "status": row.status,
                "created_by": row.created_by,
            }
            for row in rows
        ]
        self._session.execute(insert(Creator), values)
        return [row.creator_id for row in rows]

    def link_artwork_creators(
        self,
        artwork_id: uuid.UUID,
        creator_ids: Sequence[uuid.UUID],
        *,
        role: str = "artist",
    ) -> int:
        unique_ids = list(dict.fromkeys(creator_ids))
        if not unique_ids:
            return 0

        self._session.execute(
            insert(ArtworkCreator),
            [{"artwork_id": artwork_id, "creator_id": creator_id, "role": role} for creator_id in unique_ids],
        )
        return len(unique_ids)

    @contextmanager
    def savepoint(self) -> Iterator[None]:
        with self._session.begin_nested():
            yield

    @staticmethod
    def _to_creator_snapshot(creator: Creator) -> CreatorSnapshot:
        return CreatorSnapshot(
            id=creator.id,
            name=creator.name,
            created_at=creator.created_at,
            external_id=creator.external_id,
            description=creator.description,
            tags=dict(creator.tags or {}),
            status=creator.status,
        )

"""
app/services/duplicate_detection_service.py

Weighted duplicate detection for imported artworks and creators.

Artworks are pre-filtered to a bounded radius around the incoming
coordinates, then scored on five signals:

- gps:            linear distance decay, 1 at the same point and 0 at the radius
- title:          normalized string similarity of lowercased, trimmed titles
- artist:         mean best-match similarity of incoming creator names
- referenceIds:   exact match of the external reference id
- tagSimilarity:  Jaccard index of tag key sets

Each signal in [0, 1] is multiplied by its weight. Weights need not sum to
1, so the combined score is clamped to [0, 1]. The radius is a hard cutoff:
anything farther away is never scored, whatever its other signals.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from difflib import SequenceMatcher
from typing import Any

from app.domain.duplicate_detection import CreatorWeights, DuplicateMatch, DuplicateWeights, TagMergeResult
from app.schemas.mass_import import ArtworkRecord, CreatorRecord
from app.services.creator_resolution_service import parse_creator_names
from db.repositories.catalog_repository import CatalogStore
from db.repositories.types import ArtworkSnapshot, CreatorSnapshot

logger = logging.getLogger(__name__)

EARTH_RADIUS_METERS = 6_371_000.0
METERS_PER_DEGREE_LAT = EARTH_RADIUS_METERS * math.pi / 180.0
BIOGRAPHY_SEPARATOR = "\n\n--- Additional Information ---\n\n"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def haversine_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points in meters.
    """

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * math.asin(min(1.0, math.sqrt(a)))


def bounding_box(lat: float, lon: float, radius_meters: float) -> tuple[float, float, float, float]:
    """
    Return (min_lat, max_lat, min_lon, max_lon) enclosing a circle of radius_meters.

    The box is a cheap index-friendly pre-filter and always contains the circle.
    """

    d_lat = radius_meters / METERS_PER_DEGREE_LAT
    cos_lat = math.cos(math.radians(lat))
    d_lon = 180.0 if cos_lat < 1e-6 else min(180.0, radius_meters / (METERS_PER_DEGREE_LAT * cos_lat))
    return lat - d_lat, lat + d_lat, lon - d_lon, lon + d_lon


def _normalize_text(value: str | None) -> str:
    return (value or "").strip().lower()


def text_similarity(left: str | None, right: str | None) -> float:
    """
    Case-insensitive similarity in [0, 1]; empty input scores 0.
    """

    a = _normalize_text(left)
    b = _normalize_text(right)
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    return SequenceMatcher(None, a, b).ratio()


def tag_similarity(left: Mapping[str, Any] | None, right: Mapping[str, Any] | None) -> float:
    """
    Jaccard index of tag key sets; two empty sets score 0.
    """

    left_keys = set(left or {})
    right_keys = set(right or {})
    union = left_keys | right_keys
    if not union:
        return 0.0
    return len(left_keys & right_keys) / len(union)


def name_overlap(incoming: Sequence[str], existing: Sequence[str]) -> float:
    """
    Mean over incoming names of their best similarity to any existing name.
    """

    if not incoming or not existing:
        return 0.0
    best_scores = [max(text_similarity(name, other) for other in existing) for name in incoming]
    return sum(best_scores) / len(best_scores)


def merge_tags(existing: Mapping[str, Any] | None, incoming: Mapping[str, Any] | None) -> TagMergeResult:
    """
    Additive merge where existing values always win on conflict.

    Merging the same incoming tags twice yields the same tags as merging once.
    """

    merged = dict(existing or {})
    added: list[str] = []
    for key, value in (incoming or {}).items():
        if key in merged:
            continue
        merged[key] = value
        added.append(key)
    return TagMergeResult(tags=merged, added_keys=tuple(added))


def append_biography(existing: str | None, incoming: str | None) -> str | None:
    """
    Return the combined biography, or None when nothing new was supplied.
    """

    addition = (incoming or "").strip()
    if not addition:
        return None
    current = (existing or "").strip()
    if not current:
        return addition
    if addition in current:
        return None
    return f"{current}{BIOGRAPHY_SEPARATOR}{addition}"


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


def _pick_best(scored: list[tuple[float, dict[str, float], Any]], threshold: float) -> DuplicateMatch | None:
    if not scored:
        return None
    score, breakdown, snapshot = max(
        scored,
        key=lambda item: (item[0], item[2].created_at or _EPOCH),
    )
    if score < threshold:
        return None
    return DuplicateMatch(
        existing_id=snapshot.id,
        confidence_score=round(score, 4),
        score_breakdown=breakdown,
        existing_created_at=snapshot.created_at,
        existing_tags=dict(snapshot.tags),
        existing_description=getattr(snapshot, "description", None),
    )


class DuplicateDetectionService:
    """
    Finds the best-matching existing record for an incoming one.

    Lookup or storage errors propagate to the caller, which owns the
    record-level failure policy.
    """

    def __init__(self, *, search_radius_meters: float = 500.0) -> None:
        self._radius_meters = max(1.0, search_radius_meters)

    @property
    def search_radius_meters(self) -> float:
        return self._radius_meters

    def detect_artwork(
        self,
        catalog: CatalogStore,
        record: ArtworkRecord,
        *,
        threshold: float,
        weights: DuplicateWeights,
    ) -> DuplicateMatch | None:
        min_lat, max_lat, min_lon, max_lon = bounding_box(record.lat, record.lon, self._radius_meters)
        candidates = catalog.find_artworks_in_bounds(
            min_lat=min_lat,
            max_lat=max_lat,
            min_lon=min_lon,
            max_lon=max_lon,
        )

        incoming_names = parse_creator_names(record.creator_field)
        scored: list[tuple[float, dict[str, float], Any]] = []
        for candidate in candidates:
            distance = haversine_meters(record.lat, record.lon, candidate.lat, candidate.lon)
            if distance > self._radius_meters:
                continue
            score, breakdown = self.score_artwork(
                record,
                candidate,
                weights=weights,
                distance_meters=distance,
                incoming_names=incoming_names,
            )
            scored.append((score, breakdown, candidate))

        match = _pick_best(scored, threshold)
        logger.debug(
            "Artwork duplicate check title=%r candidates=%d scored=%d match=%s",
            record.title,
            len(candidates),
            len(scored),
            match.existing_id if match else None,
        )
        return match

    def score_artwork(
        self,
        record: ArtworkRecord,
        candidate: ArtworkSnapshot,
        *,
        weights: DuplicateWeights,
        distance_meters: float | None = None,
        incoming_names: Sequence[str] | None = None,
    ) -> tuple[float, dict[str, float]]:
        if distance_meters is None:
            distance_meters = haversine_meters(record.lat, record.lon, candidate.lat, candidate.lon)
        if incoming_names is None:
            incoming_names = parse_creator_names(record.creator_field)

        proximity = max(0.0, 1.0 - distance_meters / self._radius_meters)
        reference_match = 1.0 if self._reference_matches(record.external_id, candidate) else 0.0

        breakdown = {
            "gps": proximity * weights.gps,
            "title": text_similarity(record.title, candidate.title) * weights.title,
            "artist": name_overlap(incoming_names, candidate.creator_names) * weights.artist,
            "referenceIds": reference_match * weights.reference_ids,
            "tagSimilarity": tag_similarity(record.tags, candidate.tags) * weights.tag_similarity,
        }
        total = _clamp(sum(breakdown.values()))
        return total, {key: round(value, 4) for key, value in breakdown.items()}

    def detect_creator(
        self,
        catalog: CatalogStore,
        record: CreatorRecord,
        *,
        threshold: float,
        weights: CreatorWeights,
    ) -> DuplicateMatch | None:
        candidates = catalog.find_creator_candidates(name=record.name, external_id=record.external_id)
        scored: list[tuple[float, dict[str, float], Any]] = []
        for candidate in candidates:
            score, breakdown = self.score_creator(record, candidate, weights=weights)
            scored.append((score, breakdown, candidate))
        return _pick_best(scored, threshold)

    def score_creator(
        self,
        record: CreatorRecord,
        candidate: CreatorSnapshot,
        *,
        weights: CreatorWeights,
    ) -> tuple[float, dict[str, float]]:
        reference_match = 1.0 if self._reference_matches(record.external_id, candidate) else 0.0
        breakdown = {
            "name": text_similarity(record.name, candidate.name) * weights.name,
            "referenceIds": reference_match * weights.reference_ids,
        }
        total = _clamp(sum(breakdown.values()))
        return total, {key: round(value, 4) for key, value in breakdown.items()}

    @staticmethod
    def _reference_matches(external_id: str | None, candidate: ArtworkSnapshot | CreatorSnapshot) -> bool:
        if not external_id:
            return False
        return external_id == candidate.external_id or external_id == str(candidate.id)

"""
app/domain/duplicate_detection.py

Weights and match results for duplicate detection.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class DuplicateWeights:
    """
    Per-signal weights for artwork scoring. They need not sum to 1.
    """

    gps: float = 0.6
    title: float = 0.25
    artist: float = 0.2
    reference_ids: float = 0.5
    tag_similarity: float = 0.05


@dataclass(frozen=True)
class CreatorWeights:
    """
    Per-signal weights for creator scoring. There is no geographic signal.
    """

    name: float = 1.0
    reference_ids: float = 0.5


@dataclass(frozen=True)
class DuplicateMatch:
    """
    Best-scoring existing record at or above the threshold. Never persisted.
    """

    existing_id: uuid.UUID
    confidence_score: float
    score_breakdown: dict[str, float] = field(default_factory=dict)
    existing_created_at: datetime | None = None
    existing_tags: dict[str, Any] = field(default_factory=dict)
    existing_description: str | None = None


@dataclass(frozen=True)
class TagMergeResult:
    tags: dict[str, Any]
    added_keys: tuple[str, ...] = ()

    @property
    def added_count(self) -> int:
        return len(self.added_keys)

"""
app/domain/creator_resolution.py

Outcome of resolving an artwork's free-text creator field.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass


class CreatorLinkStatus:
    LINKED = "linked"
    CREATED = "created"


@dataclass(frozen=True)
class ResolvedCreator:
    id: uuid.UUID
    name: str
    status: str


@dataclass(frozen=True)
class CreatorResolutionResult:
    """
    Explicit success/failure value; resolution never raises past its caller.
    """

    resolved: tuple[ResolvedCreator, ...] = ()
    unresolved_names: tuple[str, ...] = ()
    error: str | None = None

    @property
    def created(self) -> tuple[ResolvedCreator, ...]:
        return tuple(creator for creator in self.resolved if creator.status == CreatorLinkStatus.CREATED)

    @property
    def ok(self) -> bool:
        return self.error is None

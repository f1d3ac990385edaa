"""
app/services/creator_resolution_service.py

Maps an artwork's free-text creator field to creator entities.
"""

from __future__ import annotations

import logging
import uuid
from typing import Sequence

from sqlalchemy.exc import InterfaceError, OperationalError

from app.domain.creator_resolution import CreatorLinkStatus, CreatorResolutionResult, ResolvedCreator
from app.logging_utils import log_event
from db.models.artwork import CatalogStatus
from db.repositories.catalog_repository import CatalogStore
from db.repositories.errors import CatalogUnavailableError
from db.repositories.types import CreatorCreate

logger = logging.getLogger(__name__)

ARTWORK_CREATOR_ROLE = "artist"


def parse_creator_names(raw: str | None) -> list[str]:
    """
    Split a free-text creator field into individual names.

    Tokens are comma separated:
    - one token is one name
    - two tokens where either contains whitespace are two full names
    - two tokens without whitespace are a single "Last, First" name
    - an even number (> 2) of tokens without whitespace are "Last, First" pairs
    - anything else is one name per token

    Three bare tokens such as "A, B, C" become three names. That case is
    ambiguous and kept as-is rather than guessed at.
    """

    if not raw:
        return []
    tokens = [token.strip() for token in raw.split(",") if token.strip()]
    if len(tokens) <= 1:
        return tokens

    any_spaced = any(len(token.split()) > 1 for token in tokens)
    if len(tokens) == 2:
        names = tokens if any_spaced else [f"{tokens[0]}, {tokens[1]}"]
    elif not any_spaced and len(tokens) % 2 == 0:
        names = [f"{tokens[i]}, {tokens[i + 1]}" for i in range(0, len(tokens), 2)]
    else:
        names = tokens
    return list(dict.fromkeys(names))


def stub_creator_tags(artwork_id: uuid.UUID, source: str) -> dict[str, object]:
    return {
        "source": source,
        "source_id": f"auto-created-from-{artwork_id}",
        "auto_created": True,
        "created_from_artwork": str(artwork_id),
    }


class CreatorResolutionService:
    """
    Links existing creators and creates stubs for unmatched names.

    One batched lookup, one batched insert and one batched link insert per
    artwork, all inside a savepoint. A failure rolls back only the creator
    work and comes back as a result value; the artwork itself is unaffected.
    """

    def __init__(self, *, system_user_id: uuid.UUID) -> None:
        self._system_user_id = system_user_id

    def resolve(
        self,
        catalog: CatalogStore,
        *,
        artwork_id: uuid.UUID,
        raw_names: str | None,
        source: str,
        create_missing: bool,
        auto_approve: bool,
    ) -> CreatorResolutionResult:
        names = parse_creator_names(raw_names)
        if not names:
            return CreatorResolutionResult()

        try:
            with catalog.savepoint():
                result = self._resolve_names(
                    catalog,
                    artwork_id=artwork_id,
                    names=names,
                    source=source,
                    create_missing=create_missing,
                    auto_approve=auto_approve,
                )
        except (CatalogUnavailableError, OperationalError, InterfaceError):
            raise
        except Exception as exc:
            logger.exception("Creator resolution failed artwork_id=%s names=%s", artwork_id, names)
            return CreatorResolutionResult(unresolved_names=tuple(names), error=str(exc) or type(exc).__name__)

        log_event(
            logger,
            logging.DEBUG,
            "creators_resolved",
            artwork_id=artwork_id,
            linked=sum(1 for creator in result.resolved if creator.status == CreatorLinkStatus.LINKED),
            created=len(result.created),
            unresolved=list(result.unresolved_names),
        )
        return result

    def _resolve_names(
        self,
        catalog: CatalogStore,
        *,
        artwork_id: uuid.UUID,
        names: Sequence[str],
        source: str,
        create_missing: bool,
        auto_approve: bool,
    ) -> CreatorResolutionResult:
        existing = catalog.find_creators_by_names(names)
        resolved: dict[str, ResolvedCreator] = {
            name: ResolvedCreator(id=existing[name].id, name=name, status=CreatorLinkStatus.LINKED)
            for name in names
            if name in existing
        }
        missing = [name for name in names if name not in existing]

        unresolved: tuple[str, ...] = ()
        if missing and create_missing:
            status = CatalogStatus.APPROVED if auto_approve else CatalogStatus.PENDING
            rows = [
                CreatorCreate(
                    name=name,
                    source=source,
                    created_by=self._system_user_id,
                    status=status,
                    tags=stub_creator_tags(artwork_id, source),
                )
                for name in missing
            ]
            created_ids = catalog.insert_creators(rows)
            for name, creator_id in zip(missing, created_ids):
                resolved[name] = ResolvedCreator(id=creator_id, name=name, status=CreatorLinkStatus.CREATED)
        else:
            unresolved = tuple(missing)

        ordered = tuple(resolved[name] for name in names if name in resolved)
        catalog.link_artwork_creators(
            artwork_id,
            [creator.id for creator in ordered],
            role=ARTWORK_CREATOR_ROLE,
        )
        return CreatorResolutionResult(resolved=ordered, unresolved_names=unresolved)

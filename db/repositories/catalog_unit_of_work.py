"""
Per-record unit of work over the catalog database.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import ContextManager, Protocol

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import Session

from db.repositories.catalog_repository import CatalogRepository, CatalogStore
from db.repositories.errors import CatalogUnavailableError


class CatalogUnitOfWork(Protocol):
    """
    Callable returning a transactional scope that yields a CatalogStore.

    The scope commits on normal exit and rolls back when the body raises.
    """

    def __call__(self) -> ContextManager[CatalogStore]:
        ...


class SQLAlchemyCatalogUnitOfWork:
    """
    One session and one transaction per scope.

    Connection-level failures surface as CatalogUnavailableError so callers
    can tell an unreachable catalog apart from a bad record.
    """

    def __init__(self, *, session_factory: Callable[[], Session] | None = None) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory: Callable[[], Session] = SessionLocal
        else:
            self._session_factory = session_factory

    @contextmanager
    def __call__(self) -> Iterator[CatalogStore]:
        try:
            with self._session_factory() as session:
                with session.begin():
                    yield CatalogRepository(session)
        except (OperationalError, InterfaceError) as exc:
            raise CatalogUnavailableError("Catalog database is unavailable.") from exc

"""
Repository layer exports.
"""

from db.repositories.catalog_repository import CatalogRepository, CatalogStore
from db.repositories.catalog_unit_of_work import CatalogUnitOfWork, SQLAlchemyCatalogUnitOfWork
from db.repositories.errors import CatalogRepositoryError, CatalogUnavailableError, ObjectStorageError
from db.repositories.storage import LocalObjectStorage, ObjectStorageBackend
from db.repositories.types import (
    ArtworkCreate,
    ArtworkSnapshot,
    CreatorCreate,
    CreatorSnapshot,
    StoredObject,
)

__all__ = [
    "ArtworkCreate",
    "ArtworkSnapshot",
    "CatalogRepository",
    "CatalogRepositoryError",
    "CatalogStore",
    "CatalogUnavailableError",
    "CatalogUnitOfWork",
    "CreatorCreate",
    "CreatorSnapshot",
    "LocalObjectStorage",
    "ObjectStorageBackend",
    "ObjectStorageError",
    "SQLAlchemyCatalogUnitOfWork",
    "StoredObject",
]

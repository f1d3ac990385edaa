"""
Repository-layer exceptions for catalog and object storage flows.
"""

from __future__ import annotations


class CatalogRepositoryError(Exception):
    """Base exception for catalog persistence failures."""


class CatalogUnavailableError(CatalogRepositoryError):
    """Raised when the catalog database cannot be reached at all."""


class ObjectStorageError(CatalogRepositoryError):
    """Raised when storing or deleting a photo object fails."""

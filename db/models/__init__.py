"""
Model package exports.

Import all catalog models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.artwork import Artwork, CatalogStatus
from db.models.artwork_creator import ArtworkCreator
from db.models.creator import Creator

__all__ = [
    "Artwork",
    "ArtworkCreator",
    "CatalogStatus",
    "Creator",
]

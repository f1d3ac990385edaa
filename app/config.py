"""
app/config.py

Application-level configuration helpers for the mass-import pipeline.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

MASS_IMPORT_SYSTEM_USER_TOKEN = "00000000-0000-0000-0000-000000000002"
DEFAULT_PHOTO_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class MassImportSettings:
    """
    Runtime settings for bulk import orchestration.
    """

    system_user_token: str = MASS_IMPORT_SYSTEM_USER_TOKEN
    max_batch_size: int = 10
    max_records_per_request: int = 1000
    processing_timeout_seconds: float = 60.0
    default_duplicate_threshold: float = 0.7
    duplicate_search_radius_meters: float = 500.0


@dataclass(frozen=True)
class PhotoAcquisitionSettings:
    """
    Outbound fetch behavior for remote photo URLs.
    """

    max_bytes: int = 15 * 1024 * 1024
    head_timeout_seconds: float = 5.0
    download_timeout_seconds: float = 30.0
    max_workers: int = 3
    user_agent: str = DEFAULT_PHOTO_USER_AGENT
    thumbnail_max_px: int = 800


@dataclass(frozen=True)
class PhotoStorageSettings:
    """
    Where acquired photos are written and how they are addressed.
    """

    root_dir: str = "data/photos"
    public_base_url: str = "http://localhost:8000/photos"


@lru_cache(maxsize=1)
def get_mass_import_settings() -> MassImportSettings:
    """
    Return cached mass-import settings from environment variables.
    """

    threshold = _get_float_env("MASS_IMPORT_DEFAULT_THRESHOLD", 0.7)
    return MassImportSettings(
        system_user_token=_get_str_env("MASS_IMPORT_SYSTEM_USER_TOKEN", MASS_IMPORT_SYSTEM_USER_TOKEN),
        max_batch_size=max(1, _get_int_env("MASS_IMPORT_MAX_BATCH_SIZE", 10)),
        max_records_per_request=max(1, _get_int_env("MASS_IMPORT_MAX_RECORDS", 1000)),
        processing_timeout_seconds=max(1.0, _get_float_env("MASS_IMPORT_TIMEOUT_SECONDS", 60.0)),
        default_duplicate_threshold=min(1.0, max(0.0, threshold)),
        duplicate_search_radius_meters=max(1.0, _get_float_env("MASS_IMPORT_DUPLICATE_RADIUS_METERS", 500.0)),
    )


@lru_cache(maxsize=1)
def get_photo_acquisition_settings() -> PhotoAcquisitionSettings:
    """
    Return cached photo fetch settings from environment variables.
    """

    return PhotoAcquisitionSettings(
        max_bytes=max(1, _get_int_env("PHOTO_MAX_BYTES", 15 * 1024 * 1024)),
        head_timeout_seconds=max(0.5, _get_float_env("PHOTO_HEAD_TIMEOUT_SECONDS", 5.0)),
        download_timeout_seconds=max(1.0, _get_float_env("PHOTO_DOWNLOAD_TIMEOUT_SECONDS", 30.0)),
        max_workers=max(1, _get_int_env("PHOTO_MAX_WORKERS", 3)),
        user_agent=_get_str_env("PHOTO_USER_AGENT", DEFAULT_PHOTO_USER_AGENT),
        thumbnail_max_px=max(16, _get_int_env("PHOTO_THUMBNAIL_MAX_PX", 800)),
    )


@lru_cache(maxsize=1)
def get_photo_storage_settings() -> PhotoStorageSettings:
    """
    Return cached photo storage settings from environment variables.
    """

    return PhotoStorageSettings(
        root_dir=_get_str_env("PHOTO_STORAGE_DIR", "data/photos"),
        public_base_url=_get_str_env("PHOTO_PUBLIC_BASE_URL", "http://localhost:8000/photos"),
    )

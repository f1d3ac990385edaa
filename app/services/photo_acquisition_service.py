"""
app/services/photo_acquisition_service.py

Fetches, validates and stores the photos referenced by one artwork record.

Every photo is handled independently: an unreachable host, a non-image
response, an oversized payload or a timeout becomes a PhotoFailure for that
index and never stops the other photos or the rest of the batch.
"""

from __future__ import annotations

import io
import logging
import re
import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Callable, Sequence
from urllib.parse import unquote, urlparse

import requests
from PIL import Image, UnidentifiedImageError

from app.config import PhotoAcquisitionSettings
from app.domain.photo_acquisition import PhotoAcquisitionResult, PhotoFailure, PhotoReference, ProcessedPhoto
from app.logging_utils import log_event
from db.repositories.errors import ObjectStorageError
from db.repositories.storage import ObjectStorageBackend

logger = logging.getLogger(__name__)

ORIGINALS_FOLDER = "originals"
THUMBNAILS_FOLDER = "thumbnails"
DOWNLOAD_CHUNK_BYTES = 256 * 1024
# HEAD answers that say nothing about the resource itself; the GET decides.
INCONCLUSIVE_HEAD_STATUSES = {405, 501}

CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/heic": "heic",
    "image/heif": "heif",
}
PIL_FORMAT_NAMES = {
    "JPEG": "jpeg",
    "MPO": "jpeg",
    "PNG": "png",
    "WEBP": "webp",
    "GIF": "gif",
}

_CLEAN_NAME_PATTERN = re.compile(r"[^a-z0-9]+")


class PhotoFetchError(RuntimeError):
    """
    Raised when one photo cannot be fetched or fails validation.
    """


@dataclass(frozen=True)
class _FetchedPhoto:
    content: bytes
    content_type: str


def _media_type(header_value: str | None) -> str:
    return (header_value or "").split(";", 1)[0].strip().lower()


def _content_length(response: requests.Response) -> int | None:
    raw = response.headers.get("Content-Length")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def clean_file_stem(url: str) -> str:
    """
    Derive a short, filesystem-safe stem from the last URL path segment.
    """

    stem = PurePosixPath(unquote(urlparse(url).path)).stem.lower()
    cleaned = _CLEAN_NAME_PATTERN.sub("-", stem).strip("-")[:50].strip("-")
    return cleaned or "photo"


def build_storage_key(url: str, extension: str, *, now: datetime, folder: str = ORIGINALS_FOLDER) -> str:
    """
    Collision-resistant key: `<folder>/YYYY/MM/DD/YYYYMMDD-HHMMSS-<uuid hex>-<stem>.<ext>`.
    """

    file_name = f"{now:%Y%m%d-%H%M%S}-{uuid.uuid4().hex}-{clean_file_stem(url)}.{extension}"
    return f"{folder}/{now:%Y/%m/%d}/{file_name}"


def thumbnail_key_for(original_key: str) -> str:
    folder, _, rest = original_key.partition("/")
    if folder != ORIGINALS_FOLDER:
        return f"{THUMBNAILS_FOLDER}/{original_key}"
    stem = rest.rsplit(".", 1)[0]
    return f"{THUMBNAILS_FOLDER}/{stem}.jpg"


class _WorkerSessions:
    """
    One HTTP session per pool thread, closed together once the pool is done.
    """

    def __init__(self, factory: Callable[[], requests.Session], headers: dict[str, str]) -> None:
        self._factory = factory
        self._headers = headers
        self._local = threading.local()
        self._lock = threading.Lock()
        self._opened: list[requests.Session] = []

    def get(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._factory()
            session.headers.update(self._headers)
            self._local.session = session
            with self._lock:
                self._opened.append(session)
        return session

    def close(self) -> None:
        with self._lock:
            opened, self._opened = self._opened, []
        for session in opened:
            session.close()


class PhotoAcquisitionService:
    """
    Result-collecting fan-out over one record's photo list.

    A small worker pool fetches photos concurrently; outcomes are gathered in
    input order so failures correlate with their original index. Each worker
    thread gets its own HTTP session for the duration of one `acquire` call.
    """

    def __init__(
        self,
        *,
        storage: ObjectStorageBackend,
        settings: PhotoAcquisitionSettings,
        session_factory: Callable[[], requests.Session] = requests.Session,
        now: Callable[[], datetime] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._storage = storage
        self._settings = settings
        self._session_factory = session_factory
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._clock = clock
        self._headers = {
            "User-Agent": settings.user_agent,
            "Accept": "image/avif,image/webp,image/apng,image/*,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }

    def acquire(self, photos: Sequence[PhotoReference]) -> PhotoAcquisitionResult:
        if not photos:
            return PhotoAcquisitionResult()

        workers = min(self._settings.max_workers, len(photos))
        sessions = _WorkerSessions(self._session_factory, self._headers)
        try:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="photo-fetch") as executor:
                outcomes = list(
                    executor.map(
                        lambda index, photo: self._acquire_one(index, photo, sessions.get),
                        range(len(photos)),
                        photos,
                    )
                )
        finally:
            sessions.close()

        succeeded: list[ProcessedPhoto] = []
        failed: list[PhotoFailure] = []
        downloaded = 0
        for outcome, was_downloaded in outcomes:
            downloaded += int(was_downloaded)
            if isinstance(outcome, ProcessedPhoto):
                succeeded.append(outcome)
            else:
                failed.append(outcome)
        return PhotoAcquisitionResult(succeeded=tuple(succeeded), failed=tuple(failed), downloaded=downloaded)

    def discard(self, photos: Sequence[ProcessedPhoto]) -> None:
        """
        Delete stored objects for photos whose record never reached the catalog.
        """

        for photo in photos:
            for key in photo.storage_keys:
                self._delete_quietly(key)

    def _acquire_one(
        self,
        index: int,
        photo: PhotoReference,
        get_session: Callable[[], requests.Session],
    ) -> tuple[ProcessedPhoto | PhotoFailure, bool]:
        downloaded = False
        try:
            session = get_session()
            self._check_head(session, photo.url)
            fetched = self._download(session, photo.url)
            downloaded = True
            processed = self._store(photo, fetched)
        except PhotoFetchError as exc:
            return self._failure(index, photo.url, str(exc)), downloaded
        except requests.Timeout:
            return self._failure(index, photo.url, "Request timed out"), downloaded
        except requests.RequestException as exc:
            return self._failure(index, photo.url, f"Request failed: {type(exc).__name__}"), downloaded
        except ObjectStorageError as exc:
            return self._failure(index, photo.url, f"Storage failed: {exc}"), downloaded
        except Exception as exc:
            logger.exception("Unexpected photo failure index=%d url=%s", index, photo.url)
            return self._failure(index, photo.url, f"Unexpected error: {type(exc).__name__}"), downloaded

        log_event(
            logger,
            logging.INFO,
            "photo_acquired",
            index=index,
            url=photo.url,
            stored_url=processed.url,
            size_bytes=processed.size_bytes,
            format=processed.format,
        )
        return processed, downloaded

    def _failure(self, index: int, url: str, error: str) -> PhotoFailure:
        log_event(logger, logging.WARNING, "photo_failed", index=index, url=url, error=error)
        return PhotoFailure(index=index, url=url, error=error)

    def _check_head(self, session: requests.Session, url: str) -> None:
        response = session.head(
            url,
            timeout=self._settings.head_timeout_seconds,
            allow_redirects=True,
        )
        try:
            if response.status_code in INCONCLUSIVE_HEAD_STATUSES:
                return
            if response.status_code >= 400:
                raise PhotoFetchError(f"HTTP {response.status_code}")
            self._check_content_type(response.headers.get("Content-Type"))
            self._check_declared_size(response)
        finally:
            response.close()

    def _download(self, session: requests.Session, url: str) -> _FetchedPhoto:
        timeout = self._settings.download_timeout_seconds
        deadline = self._clock() + timeout
        with session.get(url, stream=True, timeout=timeout) as response:
            if response.status_code >= 400:
                raise PhotoFetchError(f"HTTP {response.status_code}")
            content_type = self._check_content_type(response.headers.get("Content-Type"))
            self._check_declared_size(response)

            buffer = bytearray()
            for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_BYTES):
                if not chunk:
                    continue
                buffer.extend(chunk)
                if len(buffer) > self._settings.max_bytes:
                    raise PhotoFetchError(self._too_large_message())
                # requests bounds each read, not the whole body.
                if self._clock() > deadline:
                    raise PhotoFetchError("Request timed out")

        if not buffer:
            raise PhotoFetchError("Empty response body")
        return _FetchedPhoto(content=bytes(buffer), content_type=content_type)

    def _check_content_type(self, header_value: str | None) -> str:
        media_type = _media_type(header_value)
        if not media_type.startswith("image/"):
            raise PhotoFetchError(f"Not an image: {media_type or 'missing content type'}")
        return media_type

    def _check_declared_size(self, response: requests.Response) -> None:
        declared = _content_length(response)
        if declared is not None and declared > self._settings.max_bytes:
            raise PhotoFetchError(self._too_large_message())

    def _too_large_message(self) -> str:
        return f"File too large (max {self._settings.max_bytes // (1024 * 1024)}MB)"

    def _store(self, photo: PhotoReference, fetched: _FetchedPhoto) -> ProcessedPhoto:
        image_format, thumbnail = self._inspect_image(fetched)
        extension = CONTENT_TYPE_EXTENSIONS.get(fetched.content_type) or image_format
        original_key = build_storage_key(photo.url, extension, now=self._now())

        original = self._storage.put(key=original_key, content=fetched.content, content_type=fetched.content_type)
        keys = [original.key]
        thumbnail_url: str | None = None
        if thumbnail is not None:
            try:
                stored_thumbnail = self._storage.put(
                    key=thumbnail_key_for(original.key),
                    content=thumbnail,
                    content_type="image/jpeg",
                )
            except ObjectStorageError:
                self._delete_quietly(original.key)
                raise
            keys.append(stored_thumbnail.key)
            thumbnail_url = stored_thumbnail.url

        return ProcessedPhoto(
            url=original.url,
            thumbnail_url=thumbnail_url,
            caption=photo.caption,
            credit=photo.credit,
            format=image_format,
            size_bytes=original.size_bytes,
            storage_keys=tuple(keys),
        )

    def _inspect_image(self, fetched: _FetchedPhoto) -> tuple[str, bytes | None]:
        """
        Verify the bytes decode and render a JPEG thumbnail.

        Types Pillow cannot decode (HEIC without a plugin, for instance) are
        stored without a thumbnail, trusting the declared content type.
        """

        subtype = _CLEAN_NAME_PATTERN.sub("", fetched.content_type.split("/", 1)[-1])
        fallback_format = CONTENT_TYPE_EXTENSIONS.get(fetched.content_type) or subtype or "bin"
        try:
            with Image.open(io.BytesIO(fetched.content)) as image:
                image.verify()
                detected = PIL_FORMAT_NAMES.get(image.format or "", (image.format or fallback_format).lower())

            with Image.open(io.BytesIO(fetched.content)) as image:
                image.thumbnail((self._settings.thumbnail_max_px, self._settings.thumbnail_max_px))
                if image.mode not in ("RGB", "L"):
                    image = image.convert("RGB")
                output = io.BytesIO()
                image.save(output, format="JPEG", quality=85)
        except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
            logger.warning(
                "Could not decode image content_type=%s size=%d error=%s; storing without thumbnail",
                fetched.content_type,
                len(fetched.content),
                exc,
            )
            return fallback_format, None
        return detected, output.getvalue()

    def _delete_quietly(self, key: str) -> None:
        try:
            self._storage.delete(key=key)
        except ObjectStorageError:
            pass

"""
Object storage abstractions for acquired photos.
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Protocol

from db.repositories.errors import ObjectStorageError
from db.repositories.types import StoredObject


class ObjectStorageBackend(Protocol):
    """
    Put-by-key / URL-for-key store used by photo acquisition.
    """

    def put(self, *, key: str, content: bytes, content_type: str | None = None) -> StoredObject:
        ...

    def url_for(self, key: str) -> str:
        ...

    def delete(self, *, key: str) -> None:
        ...


def _normalize_key(key: str) -> PurePosixPath:
    path = PurePosixPath(key.strip().lstrip("/"))
    if not path.parts or any(part in {"", ".", ".."} for part in path.parts):
        raise ObjectStorageError(f"Invalid object key: {key!r}")
    return path


class LocalObjectStorage:
    """
    Local filesystem object storage.

    Objects live under `root_dir/<key>` and are served from `public_base_url/<key>`.
    """

    def __init__(
        self,
        root_dir: str | Path = "data/photos",
        *,
        public_base_url: str = "http://localhost:8000/photos",
    ) -> None:
        self._root_dir = Path(root_dir)
        self._public_base_url = public_base_url.rstrip("/")

    def put(self, *, key: str, content: bytes, content_type: str | None = None) -> StoredObject:
        relative_path = _normalize_key(key)
        absolute_path = self._root_dir / Path(*relative_path.parts)
        absolute_path.parent.mkdir(parents=True, exist_ok=True)

        tmp_path = absolute_path.with_suffix(f"{absolute_path.suffix}.tmp")
        try:
            with tmp_path.open("wb") as handle:
                handle.write(content)
            tmp_path.replace(absolute_path)
        except OSError as exc:
            raise ObjectStorageError(f"Failed to write object {key} to storage.") from exc
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError:
                    pass

        return StoredObject(
            key=relative_path.as_posix(),
            url=self.url_for(relative_path.as_posix()),
            content_type=content_type,
            size_bytes=len(content),
            checksum=hashlib.sha256(content).hexdigest(),
            stored_at=datetime.now(timezone.utc),
        )

    def url_for(self, key: str) -> str:
        return f"{self._public_base_url}/{_normalize_key(key).as_posix()}"

    def delete(self, *, key: str) -> None:
        target = self._root_dir / Path(*_normalize_key(key).parts)
        if not target.exists():
            return
        try:
            target.unlink()
        except OSError as exc:
            raise ObjectStorageError(f"Failed to delete object {key} from storage.") from exc

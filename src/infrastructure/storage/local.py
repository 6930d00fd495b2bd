# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Filesystem blob storage for development and single-node deployments."""

import asyncio
import logging
import mimetypes
from datetime import datetime, timezone
from pathlib import Path

from src.infrastructure.storage.base import (
    BlobNotFoundError,
    BlobStorage,
    InvalidBlobPathError,
    StorageError,
    StoredBlob,
    normalize_path,
    normalize_prefix,
)

logger = logging.getLogger(__name__)


class LocalBlobStorage(BlobStorage):
    """Stores blobs as files below a root directory."""

    def __init__(self, root: str | Path, public_base_url: str) -> None:
        super().__init__(public_base_url)
        self._root = Path(root).resolve()

    def _resolve(self, path: str) -> Path:
        normalized = normalize_path(path)
        target = (self._root / normalized).resolve()
        if not target.is_relative_to(self._root):
            raise InvalidBlobPathError(f"Path escapes storage root: {path!r}")
        return target

    def _describe(self, file_path: Path) -> StoredBlob:
        stat = file_path.stat()
        relative = file_path.relative_to(self._root).as_posix()
        return StoredBlob(
            path=relative,
            size=stat.st_size,
            url=self.url_for(relative),
            content_type=mimetypes.guess_type(file_path.name)[0],
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )

    async def put(self, path: str, data: bytes, content_type: str | None = None) -> StoredBlob:
        target = self._resolve(path)

        def _write() -> StoredBlob:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
            blob = self._describe(target)
            blob.content_type = content_type or blob.content_type
            return blob

        try:
            blob = await asyncio.to_thread(_write)
        except OSError as e:
            raise StorageError(f"Failed to write blob {path}", e) from e

        logger.info("Stored blob: path=%s, size=%d", blob.path, blob.size)
        return blob

    async def get(self, path: str) -> bytes:
        target = self._resolve(path)
        try:
            return await asyncio.to_thread(target.read_bytes)
        except FileNotFoundError as e:
            raise BlobNotFoundError(f"Blob not found: {path}") from e
        except IsADirectoryError as e:
            raise BlobNotFoundError(f"Blob not found: {path}") from e
        except OSError as e:
            raise StorageError(f"Failed to read blob {path}", e) from e

    async def delete(self, path: str) -> bool:
        target = self._resolve(path)

        def _remove() -> bool:
            if not target.is_file():
                return False
            target.unlink()
            return True

        try:
            return await asyncio.to_thread(_remove)
        except OSError as e:
            raise StorageError(f"Failed to delete blob {path}", e) from e

    async def list(self, prefix: str = "") -> list[StoredBlob]:
        normalized = normalize_prefix(prefix)
        directory = normalized if normalized.endswith("/") else normalized.rpartition("/")[0]
        start = self._root / directory

        def _scan() -> list[StoredBlob]:
            if not start.is_dir():
                return []
            blobs = []
            for file_path in start.rglob("*"):
                if not file_path.is_file():
                    continue
                relative = file_path.relative_to(self._root).as_posix()
                if relative.startswith(normalized):
                    blobs.append(self._describe(file_path))
            return sorted(blobs, key=lambda blob: blob.path)

        try:
            return await asyncio.to_thread(_scan)
        except OSError as e:
            raise StorageError(f"Failed to list blobs under {prefix}", e) from e

    async def exists(self, path: str) -> bool:
        target = self._resolve(path)
        return await asyncio.to_thread(target.is_file)

    async def ping(self) -> bool:
        def _check() -> bool:
            self._root.mkdir(parents=True, exist_ok=True)
            return self._root.is_dir()

        try:
            return await asyncio.to_thread(_check)
        except OSError:
            return False

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Blob storage interface.

Blob paths are relative, slash separated keys such as
``students/<id>/report_card/2025-06-01-card.pdf``. Every backend
serves the same paths, and clients download through the API route
returned by ``url_for``, so stored URLs stay valid when the backend
changes.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from urllib.parse import quote


class StorageError(Exception):
    """Base exception for blob storage operations.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying backend error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class BlobNotFoundError(StorageError):
    """Raised when a blob does not exist."""

    pass


class InvalidBlobPathError(StorageError):
    """Raised when a path is empty, absolute or escapes the store."""

    pass


@dataclass
class StoredBlob:
    """Metadata of a stored blob."""

    path: str
    size: int
    url: str
    content_type: str | None = None
    last_modified: datetime | None = None


def normalize_path(path: str) -> str:
    """Validate and normalize a blob path.

    Raises:
        InvalidBlobPathError: For empty paths, backslashes or ``..`` segments.
    """
    if not path or "\\" in path or "\x00" in path:
        raise InvalidBlobPathError(f"Invalid blob path: {path!r}")
    parts = [part for part in path.strip("/").split("/") if part not in ("", ".")]
    if not parts or any(part == ".." for part in parts):
        raise InvalidBlobPathError(f"Invalid blob path: {path!r}")
    return "/".join(parts)


def normalize_prefix(prefix: str) -> str:
    """Normalize a listing prefix; an empty prefix lists everything."""
    if not prefix.strip("/"):
        return ""
    normalized = normalize_path(prefix)
    return normalized + "/" if prefix.endswith("/") else normalized


class BlobStorage(ABC):
    """Async blob store."""

    def __init__(self, public_base_url: str) -> None:
        self._public_base_url = public_base_url.rstrip("/")

    def url_for(self, path: str) -> str:
        """URL under which the API serves the blob."""
        return f"{self._public_base_url}/{quote(normalize_path(path))}"

    @abstractmethod
    async def put(self, path: str, data: bytes, content_type: str | None = None) -> StoredBlob:
        """Store ``data`` at ``path``, replacing any existing blob."""

    @abstractmethod
    async def get(self, path: str) -> bytes:
        """Read a blob.

        Raises:
            BlobNotFoundError: If the blob does not exist.
        """

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """Delete a blob. Returns False when it did not exist."""

    @abstractmethod
    async def list(self, prefix: str = "") -> list[StoredBlob]:
        """List blobs whose path starts with ``prefix``, sorted by path."""

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check whether a blob exists."""

    async def ping(self) -> bool:
        """Check whether the backend is usable."""
        return True

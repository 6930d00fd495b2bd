# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Blob storage for uploaded documents.

Example:
    from src.infrastructure.storage import init_storage, get_storage

    init_storage(settings)
    blob = await get_storage().put("uploads/general/a.pdf", data, "application/pdf")
"""

from typing import TYPE_CHECKING, Optional

from src.infrastructure.storage.base import (
    BlobNotFoundError,
    BlobStorage,
    InvalidBlobPathError,
    StorageError,
    StoredBlob,
    normalize_path,
)
from src.infrastructure.storage.local import LocalBlobStorage
from src.infrastructure.storage.s3 import S3BlobStorage

if TYPE_CHECKING:
    from src.core.config.settings import Settings


_storage: Optional[BlobStorage] = None


def create_storage(settings: "Settings") -> BlobStorage:
    """Build the configured backend."""
    if settings.storage.backend == "s3":
        return S3BlobStorage(settings.storage, public_base_url=settings.storage.public_base_url)
    return LocalBlobStorage(settings.storage.local_root, public_base_url=settings.storage.public_base_url)


def init_storage(settings: "Settings") -> BlobStorage:
    """Create the process-wide blob store."""
    global _storage
    _storage = create_storage(settings)
    return _storage


def get_storage() -> BlobStorage:
    """Get the process-wide blob store.

    Raises:
        StorageError: If storage has not been initialized.
    """
    if _storage is None:
        raise StorageError("Storage not initialized. Call init_storage() first.")
    return _storage


def reset_storage() -> None:
    global _storage
    _storage = None


__all__ = [
    "BlobNotFoundError",
    "BlobStorage",
    "InvalidBlobPathError",
    "LocalBlobStorage",
    "S3BlobStorage",
    "StorageError",
    "StoredBlob",
    "create_storage",
    "get_storage",
    "init_storage",
    "normalize_path",
    "reset_storage",
]

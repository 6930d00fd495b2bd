# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Document storage domain."""

from src.domains.document.filenames import safe_filename, unique_filename
from src.domains.document.service import (
    DocumentOwnerNotFoundError,
    DocumentService,
    DocumentServiceError,
    DocumentTooLargeError,
    DocumentValidationError,
    IncomingFile,
    decode_base64,
)

__all__ = [
    "DocumentOwnerNotFoundError",
    "DocumentService",
    "DocumentServiceError",
    "DocumentTooLargeError",
    "DocumentValidationError",
    "IncomingFile",
    "decode_base64",
    "safe_filename",
    "unique_filename",
]

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Blob upload DTOs."""

from pydantic import BaseModel, Field

from src.models.common import UTCDateTime


class StudentDocumentUploadRequest(BaseModel):
    """Base64 document upload for a student."""

    document_type: str = Field(
        min_length=1,
        max_length=50,
        pattern=r"^[A-Za-z0-9_\-]+$",
        description="Category, e.g. birth_certificate or report_card",
    )
    filename: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1, description="Base64 encoded file content")
    content_type: str | None = Field(default=None, max_length=100)


class DocumentEntry(BaseModel):
    """Document reference recorded on the enrollment."""

    filename: str
    url: str
    path: str
    size: int
    content_type: str
    uploaded_at: UTCDateTime


class StudentDocumentResponse(BaseModel):
    student_id: str
    document_type: str
    enrollment_id: str | None = Field(
        default=None,
        description="Enrollment the document was attached to, if any",
    )
    document: DocumentEntry


class StoredBlobResponse(BaseModel):
    path: str
    url: str
    size: int
    last_modified: UTCDateTime | None = None


class StoredBlobListResponse(BaseModel):
    items: list[StoredBlobResponse]


class UploadResponse(BaseModel):
    path: str
    url: str
    filename: str = Field(description="Original client filename")
    size: int
    content_type: str

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Document and file endpoints backed by blob storage.

- POST /students/{student_id}/documents - Upload a base64 document
- GET /students/{student_id}/documents - List a student's stored documents
- POST /uploads - Multipart upload, ``purpose`` selects the folder
- GET /files/{path} - Download a stored blob

Student documents are visible to the student, linked parents, the
registrar and admins. Blob URLs point at the download endpoint.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, File, Form, HTTPException, Response, UploadFile, status

from src.api.dependencies import AuthenticatedUser, Documents
from src.api.middleware.auth import CurrentUser
from src.domains.document.service import (
    DocumentOwnerNotFoundError,
    DocumentService,
    DocumentTooLargeError,
    DocumentValidationError,
    IncomingFile,
)
from src.infrastructure.storage import BlobNotFoundError, InvalidBlobPathError
from src.models.document import (
    StoredBlobListResponse,
    StoredBlobResponse,
    StudentDocumentResponse,
    StudentDocumentUploadRequest,
    UploadResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _require_student_access(
    documents: DocumentService, current_user: CurrentUser, student_id: str
) -> None:
    if not await documents.can_manage_student(current_user.id, current_user.role, student_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to access this student's documents",
        )


@router.post(
    "/students/{student_id}/documents",
    response_model=StudentDocumentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload student document",
    description="Store a base64 document and attach it to the student's latest enrollment.",
)
async def upload_student_document(
    student_id: str,
    data: StudentDocumentUploadRequest,
    documents: Documents,
    current_user: AuthenticatedUser,
) -> StudentDocumentResponse:
    await _require_student_access(documents, current_user, student_id)
    try:
        return await documents.upload_student_document(
            student_id,
            data.document_type,
            data.filename,
            data.content,
            content_type=data.content_type,
        )
    except DocumentOwnerNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except DocumentTooLargeError as e:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e))
    except DocumentValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get(
    "/students/{student_id}/documents",
    response_model=StoredBlobListResponse,
    summary="List student documents",
)
async def list_student_documents(
    student_id: str,
    documents: Documents,
    current_user: AuthenticatedUser,
) -> StoredBlobListResponse:
    await _require_student_access(documents, current_user, student_id)
    try:
        blobs = await documents.list_student_documents(student_id)
    except DocumentOwnerNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return StoredBlobListResponse(
        items=[
            StoredBlobResponse(path=b.path, url=b.url, size=b.size, last_modified=b.last_modified)
            for b in blobs
        ]
    )


@router.post(
    "/uploads",
    response_model=list[UploadResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Upload files",
)
async def upload_files(
    documents: Documents,
    current_user: AuthenticatedUser,
    files: Annotated[list[UploadFile], File(description="Files to store")],
    purpose: Annotated[str, Form()] = "general",
) -> list[UploadResponse]:
    incoming = [
        IncomingFile(filename=f.filename or "upload", content_type=f.content_type, data=await f.read())
        for f in files
    ]
    try:
        return await documents.upload_files(purpose, incoming)
    except DocumentTooLargeError as e:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e))
    except DocumentValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/files/{path:path}", summary="Download file")
async def download_file(path: str, documents: Documents, current_user: AuthenticatedUser) -> Response:
    try:
        allowed = await documents.can_read(current_user.id, current_user.role, path)
    except InvalidBlobPathError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to read this file")

    try:
        data, content_type = await documents.read(path)
    except BlobNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    return Response(content=data, media_type=content_type)

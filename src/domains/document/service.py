# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Document service.

Stores uploaded files in blob storage and records references to them:

- Student documents (base64 JSON uploads) live under
  ``students/{student_id}/{document_type}/`` and are appended to the
  student's latest enrollment ``documents`` map.
- Enrollment application files live under
  ``applications/{application_id}/{document_type}/``.
- Generic multipart uploads live under ``uploads/{purpose}/``.
- Learning module files live under ``modules/{section_id}/``.
"""

import base64
import binascii
import logging
import mimetypes
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import StorageSettings
from src.core.roles import Role
from src.domains.classroom.service import teaches_section
from src.domains.document.filenames import safe_filename, unique_filename
from src.infrastructure.database.models import (
    Enrollment,
    EnrollmentApplication,
    ParentStudentLink,
    User,
)
from src.infrastructure.storage import BlobStorage, StoredBlob, normalize_path
from src.models.document import DocumentEntry, StudentDocumentResponse, UploadResponse
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

UPLOAD_PURPOSES = frozenset({"general", "modules", "assignments", "enrollment", "profiles"})

# Roles that may read every stored document
DOCUMENT_STAFF_ROLES = frozenset({Role.ADMIN.value, Role.REGISTRAR.value})


class DocumentServiceError(Exception):
    """Base exception for document service errors."""

    pass


class DocumentValidationError(DocumentServiceError):
    """Raised for bad content, disallowed types or too many files."""

    pass


class DocumentTooLargeError(DocumentValidationError):
    """Raised when a file exceeds the configured size limit."""

    pass


class DocumentOwnerNotFoundError(DocumentServiceError):
    """Raised when the student a document belongs to does not exist."""

    pass


@dataclass
class IncomingFile:
    """A file received from a client, already read into memory."""

    filename: str
    content_type: str | None
    data: bytes


def decode_base64(content: str) -> bytes:
    """Decode base64 content, accepting an optional ``data:`` URL prefix.

    Raises:
        DocumentValidationError: If the content is not valid base64.
    """
    if content.startswith("data:") and "," in content:
        content = content.split(",", 1)[1]
    try:
        data = base64.b64decode(content, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DocumentValidationError("Invalid base64 content") from e
    if not data:
        raise DocumentValidationError("Document is empty")
    return data


def resolve_content_type(filename: str, declared: str | None) -> str:
    if declared:
        return declared.split(";", 1)[0].strip().lower()
    return mimetypes.guess_type(filename)[0] or "application/octet-stream"


def validate_file(content_type: str, size: int, allowed: list[str], max_bytes: int) -> None:
    """Check a file against an allowed type list and a size limit.

    Raises:
        DocumentValidationError: If the content type is not allowed.
        DocumentTooLargeError: If the file exceeds ``max_bytes``.
    """
    if content_type not in allowed:
        raise DocumentValidationError(f"File type {content_type} not allowed")
    if size > max_bytes:
        raise DocumentTooLargeError(
            f"File size exceeds {max(1, max_bytes // (1024 * 1024))}MB limit"
        )


class DocumentService:
    """Blob-backed document storage.

    Attributes:
        _db: Async database session.
        _storage: Blob storage backend.
        _settings: Upload limits and allowed content types.
    """

    def __init__(self, db: AsyncSession, storage: BlobStorage, settings: StorageSettings) -> None:
        self._db = db
        self._storage = storage
        self._settings = settings

    # ------------------------------------------------------------------
    # Student documents
    # ------------------------------------------------------------------

    async def upload_student_document(
        self,
        student_id: str,
        document_type: str,
        filename: str,
        content: str,
        content_type: str | None = None,
    ) -> StudentDocumentResponse:
        """Store a base64 document for a student.

        Raises:
            DocumentOwnerNotFoundError: If the student does not exist.
            DocumentValidationError: For bad base64, type or size.
        """
        await self._get_student(student_id)

        data = decode_base64(content)
        resolved_type = resolve_content_type(filename, content_type)
        validate_file(resolved_type, len(data), self._settings.document_content_types,
                       self._settings.max_document_bytes)

        stored_name = f"{utc_now().strftime('%Y-%m-%d')}-{safe_filename(filename)}"
        blob = await self._storage.put(
            f"students/{student_id}/{document_type}/{stored_name}",
            data,
            resolved_type,
        )
        entry = DocumentEntry(
            filename=filename,
            url=blob.url,
            path=blob.path,
            size=blob.size,
            content_type=resolved_type,
            uploaded_at=utc_now(),
        )

        enrollment = await self._latest_enrollment(student_id)
        if enrollment is not None:
            documents = dict(enrollment.documents or {})
            documents[document_type] = [
                *documents.get(document_type, []),
                entry.model_dump(mode="json"),
            ]
            # Reassign so the JSON column is flagged dirty
            enrollment.documents = documents
            await self._db.commit()

        logger.info(
            "Student document stored: student=%s, type=%s, path=%s",
            student_id,
            document_type,
            blob.path,
        )
        return StudentDocumentResponse(
            student_id=student_id,
            document_type=document_type,
            enrollment_id=enrollment.id if enrollment else None,
            document=entry,
        )

    async def list_student_documents(self, student_id: str) -> list[StoredBlob]:
        await self._get_student(student_id)
        return await self._storage.list(f"students/{student_id}/")

    # ------------------------------------------------------------------
    # Application documents and generic uploads
    # ------------------------------------------------------------------

    def validate_application_files(self, files: list[IncomingFile]) -> None:
        """Check count, type and size of enrollment application files.

        Raises:
            DocumentValidationError: On any violation.
        """
        if not files:
            raise DocumentValidationError("No files uploaded")
        if len(files) > self._settings.max_files_per_request:
            raise DocumentValidationError(
                f"At most {self._settings.max_files_per_request} files per request"
            )
        for file in files:
            validate_file(
                resolve_content_type(file.filename, file.content_type),
                len(file.data),
                self._settings.document_content_types,
                self._settings.max_document_bytes,
            )

    async def store_application_file(
        self,
        application_id: str,
        document_type: str,
        file: IncomingFile,
    ) -> StoredBlob:
        content_type = resolve_content_type(file.filename, file.content_type)
        return await self._storage.put(
            f"applications/{application_id}/{document_type}/{unique_filename(file.filename)}",
            file.data,
            content_type,
        )

    async def upload_files(self, purpose: str, files: list[IncomingFile]) -> list[UploadResponse]:
        """Store generic uploads under ``uploads/{purpose}/``.

        Raises:
            DocumentValidationError: For an unknown purpose or disallowed type.
            DocumentTooLargeError: If a file exceeds the upload limit.
        """
        if purpose not in UPLOAD_PURPOSES:
            raise DocumentValidationError(f"Unknown upload purpose '{purpose}'")
        if not files:
            raise DocumentValidationError("No files uploaded")
        if len(files) > self._settings.max_files_per_request:
            raise DocumentValidationError(
                f"At most {self._settings.max_files_per_request} files per request"
            )

        for file in files:
            validate_file(
                resolve_content_type(file.filename, file.content_type),
                len(file.data),
                self._settings.allowed_content_types,
                self._settings.max_upload_bytes,
            )

        uploaded = []
        for file in files:
            content_type = resolve_content_type(file.filename, file.content_type)
            blob = await self._storage.put(
                f"uploads/{purpose}/{unique_filename(file.filename)}",
                file.data,
                content_type,
            )
            uploaded.append(
                UploadResponse(
                    path=blob.path,
                    url=blob.url,
                    filename=file.filename,
                    size=blob.size,
                    content_type=content_type,
                )
            )
        logger.info("Stored %d upload(s) under %s", len(uploaded), purpose)
        return uploaded

    # ------------------------------------------------------------------
    # Reading blobs
    # ------------------------------------------------------------------

    async def can_read(self, user_id: str, role: str, path: str) -> bool:
        """Decide whether a user may download a stored blob.

        Staff roles read everything. Student folders are readable by the
        student and linked parents, application folders by the applicant
        and linked parents, module folders by the section's students and
        teachers, and generic uploads by any signed-in user.
        """
        normalized = normalize_path(path)
        if role in DOCUMENT_STAFF_ROLES:
            return True

        parts = normalized.split("/")
        if parts[0] == "uploads":
            return True
        if parts[0] == "students" and len(parts) > 1:
            return await self._is_self_or_parent(user_id, parts[1])
        if parts[0] == "applications" and len(parts) > 1:
            student_id = await self._db.scalar(
                select(EnrollmentApplication.student_id).where(
                    EnrollmentApplication.id == parts[1]
                )
            )
            return student_id is not None and await self._is_self_or_parent(user_id, student_id)
        if parts[0] == "modules" and len(parts) > 1:
            return await self._in_section(user_id, role, parts[1])
        return False

    async def read(self, path: str) -> tuple[bytes, str]:
        """Read a blob and guess its content type from the name."""
        data = await self._storage.get(path)
        return data, mimetypes.guess_type(path)[0] or "application/octet-stream"

    async def can_manage_student(self, user_id: str, role: str, student_id: str) -> bool:
        if role in DOCUMENT_STAFF_ROLES:
            return True
        return await self._is_self_or_parent(user_id, student_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_student(self, student_id: str) -> User:
        student = await self._db.get(User, student_id)
        if student is None or student.role != Role.STUDENT.value:
            raise DocumentOwnerNotFoundError(f"Student {student_id} not found")
        return student

    async def _latest_enrollment(self, student_id: str) -> Enrollment | None:
        result = await self._db.execute(
            select(Enrollment)
            .where(Enrollment.student_id == student_id)
            .order_by(Enrollment.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _in_section(self, user_id: str, role: str, section_id: str) -> bool:
        if role == Role.TEACHER.value:
            return await teaches_section(self._db, user_id, section_id)
        if role == Role.STUDENT.value:
            own_section = await self._db.scalar(select(User.section_id).where(User.id == user_id))
            return own_section == section_id
        return False

    async def _is_self_or_parent(self, user_id: str, student_id: str) -> bool:
        if user_id == student_id:
            return True
        link = await self._db.scalar(
            select(ParentStudentLink.id).where(
                ParentStudentLink.parent_id == user_id,
                ParentStudentLink.student_id == student_id,
            )
        )
        return link is not None

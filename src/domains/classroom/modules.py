# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Learning modules: teaching material a teacher uploads for a section.

Files are stored under ``modules/{section_id}/`` in blob storage and are
readable by the section's students and teachers through the file
download endpoint.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import StorageSettings
from src.domains.classroom.service import (
    ClassroomServiceError,
    SectionAccessDeniedError,
    teaches_section,
)
from src.domains.document.filenames import unique_filename
from src.domains.document.service import IncomingFile, resolve_content_type, validate_file
from src.domains.notification.service import NotificationService
from src.infrastructure.database.models import LearningModule, Section, User
from src.infrastructure.storage import BlobStorage
from src.models.classroom import LearningModuleUpdateRequest

logger = logging.getLogger(__name__)


class LearningModuleNotFoundError(ClassroomServiceError):
    """Raised when a module does not exist or belongs to another teacher."""

    pass


class LearningModuleService:
    """Upload, list, edit and remove learning modules.

    Attributes:
        _db: Async database session.
        _storage: Blob storage backend.
        _settings: Module size limit and allowed content types.
        _notifier: Notification service.
    """

    def __init__(
        self,
        db: AsyncSession,
        storage: BlobStorage,
        settings: StorageSettings,
        notifier: NotificationService | None = None,
    ) -> None:
        self._db = db
        self._storage = storage
        self._settings = settings
        self._notifier = notifier or NotificationService(db)

    async def upload(
        self,
        teacher_id: str,
        section_id: str,
        title: str,
        file: IncomingFile,
        description: str | None = None,
    ) -> LearningModule:
        """Store a module file for a section and notify its students.

        Raises:
            SectionAccessDeniedError: If the teacher does not teach the section.
            DocumentValidationError: If the file type is not allowed.
            DocumentTooLargeError: If the file exceeds the module limit.
        """
        section = await self._db.get(Section, section_id)
        if section is None:
            raise SectionAccessDeniedError(f"Section {section_id} not found")
        if not await teaches_section(self._db, teacher_id, section_id):
            raise SectionAccessDeniedError("You do not teach this section")

        content_type = resolve_content_type(file.filename, file.content_type)
        validate_file(
            content_type,
            len(file.data),
            self._settings.module_content_types,
            self._settings.max_module_bytes,
        )

        blob = await self._storage.put(
            f"modules/{section_id}/{unique_filename(file.filename)}",
            file.data,
            content_type,
        )
        module = LearningModule(
            teacher_id=teacher_id,
            section_id=section_id,
            title=title,
            description=description,
            file_path=blob.path,
            file_url=blob.url,
            file_name=file.filename,
            file_size=blob.size,
            content_type=content_type,
        )
        self._db.add(module)
        await self._db.commit()
        await self._db.refresh(module)

        await self._notifier.notify_section_students(
            section_id,
            "New Learning Module Available",
            f"{title} has been uploaded for your section",
            type="module",
            sender_id=teacher_id,
            link=module.file_url,
        )
        logger.info("Learning module uploaded: %s (section=%s)", module.id, section_id)
        return module

    async def list_for_teacher(
        self, teacher_id: str, section_id: str | None = None
    ) -> list[LearningModule]:
        stmt = select(LearningModule).where(LearningModule.teacher_id == teacher_id)
        if section_id:
            stmt = stmt.where(LearningModule.section_id == section_id)
        result = await self._db.execute(stmt.order_by(LearningModule.created_at.desc()))
        return list(result.scalars().all())

    async def list_for_student(self, student_id: str) -> list[LearningModule]:
        """Modules of the student's own section, newest first."""
        section_id = await self._db.scalar(select(User.section_id).where(User.id == student_id))
        if section_id is None:
            return []
        result = await self._db.execute(
            select(LearningModule)
            .where(LearningModule.section_id == section_id)
            .order_by(LearningModule.created_at.desc())
        )
        return list(result.scalars().all())

    async def update(
        self, teacher_id: str, module_id: str, request: LearningModuleUpdateRequest
    ) -> LearningModule:
        module = await self._get_owned(teacher_id, module_id)
        if request.title is not None:
            module.title = request.title
        if "description" in request.model_fields_set:
            module.description = request.description
        await self._db.commit()
        await self._db.refresh(module)
        return module

    async def delete(self, teacher_id: str, module_id: str) -> None:
        """Remove a module and its stored file.

        Raises:
            LearningModuleNotFoundError: If it does not exist or is not the teacher's.
        """
        module = await self._get_owned(teacher_id, module_id)
        await self._storage.delete(module.file_path)
        await self._db.delete(module)
        await self._db.commit()
        logger.info("Learning module deleted: %s", module_id)

    async def _get_owned(self, teacher_id: str, module_id: str) -> LearningModule:
        module = await self._db.get(LearningModule, module_id)
        if module is None or module.teacher_id != teacher_id:
            raise LearningModuleNotFoundError(f"Learning module {module_id} not found")
        return module

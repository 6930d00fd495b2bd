# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment service.

This module provides the EnrollmentService that handles:
- Enrollment records (admin CRUD, registrar enrollment requests)
- The application workflow: draft -> pending_documents -> submitted ->
  approved | rejected, with a progress row per application
- Application document uploads through the DocumentService

Example:
    >>> service = EnrollmentService(db, documents=document_service)
    >>> application = await service.create_application(student_id, "student", request)
    >>> await service.submit_application(application.id, student_id, "student")
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.roles import Role
from src.domains.document.service import DocumentService, IncomingFile
from src.domains.notification.service import NotificationService
from src.infrastructure.database.models import (
    Enrollment,
    EnrollmentApplication,
    EnrollmentDocument,
    EnrollmentProgress,
    ParentStudentLink,
    Section,
    User,
)
from src.models.enrollment import (
    ApplicationCreateRequest,
    ApplicationDocumentResponse,
    ApplicationListResponse,
    ApplicationResponse,
    EnrollmentCreateRequest,
    EnrollmentRequestCreateRequest,
    EnrollmentRequestUpdateRequest,
    EnrollmentResponse,
    EnrollmentUpdateRequest,
    ProgressResponse,
)
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

DECISIONS = ("approved", "rejected")
EDITABLE_APPLICATION_STATUSES = ("draft", "pending_documents")


class EnrollmentServiceError(Exception):
    """Base exception for enrollment service errors."""

    pass


class EnrollmentNotFoundError(EnrollmentServiceError):
    """Raised when an enrollment record is not found."""

    pass


class ApplicationNotFoundError(EnrollmentServiceError):
    """Raised when an application is missing or not visible to the caller."""

    pass


class InvalidApplicationStateError(EnrollmentServiceError):
    """Raised when an application is not in a state that allows the action."""

    pass


class InvalidDecisionError(EnrollmentServiceError):
    """Raised when a decision is neither approved nor rejected."""

    pass


class EnrollmentStudentNotFoundError(EnrollmentServiceError):
    """Raised when the referenced student does not exist."""

    pass


class EnrollmentAccessDeniedError(EnrollmentServiceError):
    """Raised when a parent applies for a student they are not linked to."""

    pass


class EnrollmentService:
    """Enrollment records and the application workflow.

    Attributes:
        _db: Async database session.
        _notifier: Notification service.
        _documents: Document service used for application uploads.
    """

    def __init__(
        self,
        db: AsyncSession,
        notifier: NotificationService | None = None,
        documents: DocumentService | None = None,
    ) -> None:
        self._db = db
        self._notifier = notifier or NotificationService(db)
        self._documents = documents

    # ------------------------------------------------------------------
    # Enrollment records
    # ------------------------------------------------------------------

    async def list_enrollments(
        self,
        status: str | None = None,
        school_year: str | None = None,
        student_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[EnrollmentResponse], int]:
        stmt = select(Enrollment, User.name).join(User, User.id == Enrollment.student_id)
        if status:
            stmt = stmt.where(Enrollment.status == status)
        if school_year:
            stmt = stmt.where(Enrollment.school_year == school_year)
        if student_id:
            stmt = stmt.where(Enrollment.student_id == student_id)

        total = await self._db.scalar(select(func.count()).select_from(stmt.subquery()))
        result = await self._db.execute(
            stmt.order_by(Enrollment.created_at.desc()).limit(limit).offset(offset)
        )
        items = [self._enrollment_response(e, name) for e, name in result.all()]
        return items, total or 0

    async def get_enrollment(self, enrollment_id: str) -> EnrollmentResponse:
        enrollment = await self._get_enrollment(enrollment_id)
        student_name = await self._db.scalar(select(User.name).where(User.id == enrollment.student_id))
        return self._enrollment_response(enrollment, student_name)

    async def create_enrollment(self, request: EnrollmentCreateRequest) -> EnrollmentResponse:
        """Create an enrollment record.

        Raises:
            EnrollmentStudentNotFoundError: If the student does not exist.
            EnrollmentServiceError: If the section does not exist.
        """
        student = await self._get_student(request.student_id)
        if request.section_id:
            await self._ensure_section(request.section_id)

        enrollment = Enrollment(
            student_id=student.id,
            section_id=request.section_id,
            school_year=request.school_year,
            grade_level=request.grade_level or student.grade_level,
            status=request.status,
            payment_status="unpaid",
            documents={},
            remarks=request.remarks,
        )
        self._db.add(enrollment)
        await self._db.commit()
        await self._db.refresh(enrollment)

        logger.info("Enrollment created: %s (student=%s)", enrollment.id, student.id)
        return self._enrollment_response(enrollment, student.name)

    async def update_enrollment(
        self, enrollment_id: str, request: EnrollmentUpdateRequest
    ) -> EnrollmentResponse:
        enrollment = await self._get_enrollment(enrollment_id)
        changes = request.model_dump(exclude_unset=True)
        if changes.get("section_id"):
            await self._ensure_section(changes["section_id"])

        for field, value in changes.items():
            if value is None and field in ("status", "payment_status"):
                continue
            setattr(enrollment, field, value)
        await self._sync_student_section(enrollment)

        await self._db.commit()
        await self._db.refresh(enrollment)

        logger.info("Enrollment updated: %s (status=%s)", enrollment.id, enrollment.status)
        return await self.get_enrollment(enrollment.id)

    async def create_request(
        self, request: EnrollmentRequestCreateRequest, created_by: str | None = None
    ) -> EnrollmentResponse:
        """Record an enrollment request and tell every registrar about it."""
        response = await self.create_enrollment(
            EnrollmentCreateRequest(
                student_id=request.student_id,
                school_year=request.school_year,
                grade_level=request.grade_level,
                status="pending",
                remarks=request.remarks,
            )
        )
        await self._notifier.notify_role(
            Role.REGISTRAR.value,
            "New Enrollment Request",
            f"New enrollment request from {response.student_name} for {request.grade_level}",
            type="enrollment",
            sender_id=created_by,
        )
        return response

    async def update_request(
        self,
        enrollment_id: str,
        request: EnrollmentRequestUpdateRequest,
        updated_by: str | None = None,
    ) -> EnrollmentResponse:
        """Update a request; leaving ``pending`` notifies the student."""
        enrollment = await self._get_enrollment(enrollment_id)
        previous_status = enrollment.status

        response = await self.update_enrollment(
            enrollment_id,
            EnrollmentUpdateRequest(**request.model_dump(exclude_unset=True)),
        )
        if previous_status == "pending" and response.status != "pending":
            await self._notifier.notify_user(
                response.student_id,
                "Enrollment Request Update",
                f"Your enrollment request has been {response.status}",
                type="enrollment",
                sender_id=updated_by,
            )
        return response

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------

    async def create_application(
        self,
        user_id: str,
        role: str,
        request: ApplicationCreateRequest,
    ) -> ApplicationResponse:
        """Start a draft application.

        Students apply for themselves. Parents apply for a linked child
        and must pass its ``student_id``.

        Raises:
            EnrollmentServiceError: If a parent omits the student.
            EnrollmentAccessDeniedError: If a parent is not linked to the student.
        """
        if role == Role.PARENT.value:
            if not request.student_id:
                raise EnrollmentServiceError("student_id is required when a parent applies")
            if not await self._is_linked_parent(user_id, request.student_id):
                raise EnrollmentAccessDeniedError("You are not linked to this student")
            student_id = request.student_id
        else:
            student_id = user_id
        await self._get_student(student_id)

        application = EnrollmentApplication(
            student_id=student_id,
            **request.model_dump(exclude={"student_id"}),
            status="draft",
        )
        self._db.add(application)
        await self._db.flush()

        self._db.add(
            EnrollmentProgress(
                student_id=student_id,
                application_id=application.id,
                current_status="draft",
                remarks="Application created",
            )
        )
        await self._db.commit()
        await self._db.refresh(application)

        logger.info("Application created: %s (student=%s)", application.id, student_id)
        return await self._application_response(application)

    async def get_application(self, application_id: str, user_id: str, role: str) -> ApplicationResponse:
        if role in (Role.REGISTRAR.value, Role.ADMIN.value):
            application = await self._db.get(EnrollmentApplication, application_id)
            if application is None:
                raise ApplicationNotFoundError(f"Application {application_id} not found")
            return await self._application_response(application)
        application = await self._get_owned_application(application_id, user_id, role)
        return await self._application_response(application)

    async def list_my_applications(self, user_id: str, role: str) -> list[ApplicationResponse]:
        stmt = select(EnrollmentApplication)
        if role == Role.PARENT.value:
            children = select(ParentStudentLink.student_id).where(ParentStudentLink.parent_id == user_id)
            stmt = stmt.where(EnrollmentApplication.student_id.in_(children))
        else:
            stmt = stmt.where(EnrollmentApplication.student_id == user_id)

        result = await self._db.execute(stmt.order_by(EnrollmentApplication.created_at.desc()))
        return await self._application_responses(list(result.scalars().all()))

    async def upload_documents(
        self,
        application_id: str,
        user_id: str,
        role: str,
        document_type: str,
        files: list[IncomingFile],
    ) -> ApplicationResponse:
        """Attach documents to a draft application.

        Raises:
            ApplicationNotFoundError: If the application is not the caller's.
            InvalidApplicationStateError: If it has already been submitted.
            DocumentValidationError: For bad files.
        """
        if self._documents is None:
            raise EnrollmentServiceError("Document storage is not configured")

        application = await self._get_owned_application(application_id, user_id, role)
        if application.status not in EDITABLE_APPLICATION_STATUSES:
            raise InvalidApplicationStateError("Documents can only be added before submission")

        self._documents.validate_application_files(files)
        for file in files:
            blob = await self._documents.store_application_file(application.id, document_type, file)
            self._db.add(
                EnrollmentDocument(
                    application_id=application.id,
                    document_type=document_type,
                    file_name=file.filename,
                    file_path=blob.path,
                    file_url=blob.url,
                    content_type=blob.content_type or "application/octet-stream",
                    size=blob.size,
                )
            )

        application.status = "pending_documents"
        await self._set_progress(
            application, "pending_documents", f"{len(files)} document(s) uploaded"
        )
        await self._db.commit()
        await self._db.refresh(application)

        logger.info("Uploaded %d document(s) to application %s", len(files), application.id)
        return await self._application_response(application)

    async def submit_application(self, application_id: str, user_id: str, role: str) -> ApplicationResponse:
        """Submit a draft for review and notify the registrars.

        Raises:
            InvalidApplicationStateError: If it is not a draft.
        """
        application = await self._get_owned_application(application_id, user_id, role)
        if application.status not in EDITABLE_APPLICATION_STATUSES:
            raise InvalidApplicationStateError(
                f"Application cannot be submitted from status '{application.status}'"
            )

        application.status = "submitted"
        application.submitted_at = utc_now()
        await self._set_progress(application, "submitted", "Application submitted for review")
        await self._db.commit()
        await self._db.refresh(application)

        await self._notifier.notify_role(
            Role.REGISTRAR.value,
            "New Enrollment Application",
            f"{application.first_name} {application.last_name} submitted an enrollment "
            f"application for {application.grade_level}",
            type="enrollment",
            sender_id=user_id,
        )
        logger.info("Application submitted: %s", application.id)
        return await self._application_response(application)

    async def get_my_progress(self, user_id: str) -> ProgressResponse:
        result = await self._db.execute(
            select(EnrollmentProgress)
            .where(EnrollmentProgress.student_id == user_id)
            .order_by(EnrollmentProgress.last_updated.desc())
            .limit(1)
        )
        progress = result.scalar_one_or_none()
        if progress is None:
            return ProgressResponse(status="no_application")
        return ProgressResponse(
            status=progress.current_status,
            application_id=progress.application_id,
            remarks=progress.remarks,
            last_updated=progress.last_updated,
        )

    async def list_applications(
        self,
        status: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> ApplicationListResponse:
        """Review queue for registrars and admins."""
        stmt = select(EnrollmentApplication)
        if status:
            stmt = stmt.where(EnrollmentApplication.status == status)

        total = await self._db.scalar(select(func.count()).select_from(stmt.subquery()))
        result = await self._db.execute(
            stmt.order_by(EnrollmentApplication.created_at.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        items = await self._application_responses(list(result.scalars().all()))
        return ApplicationListResponse(items=items, total=total or 0, page=page, limit=limit)

    async def decide_application(
        self,
        application_id: str,
        decision: str,
        decided_by: str,
        remarks: str | None = None,
    ) -> ApplicationResponse:
        """Approve or reject a submitted application.

        Approval creates (or approves) the student's enrollment record for
        the application's school year.

        Raises:
            InvalidDecisionError: If the decision is not approved/rejected.
            ApplicationNotFoundError: If the application does not exist.
            InvalidApplicationStateError: If it has not been submitted.
        """
        decision = decision.strip().lower()
        if decision not in DECISIONS:
            raise InvalidDecisionError("Invalid decision")

        application = await self._db.get(EnrollmentApplication, application_id)
        if application is None:
            raise ApplicationNotFoundError(f"Application {application_id} not found")
        if application.status != "submitted":
            raise InvalidApplicationStateError("Only submitted applications can be decided")

        application.status = decision
        application.decided_at = utc_now()
        application.decided_by = decided_by
        application.remarks = remarks
        await self._set_progress(application, decision, remarks or f"Application {decision}")

        if decision == "approved":
            await self._approve_enrollment(application)

        await self._db.commit()
        await self._db.refresh(application)

        message = f"Your enrollment application has been {decision}"
        if remarks:
            message = f"{message}: {remarks}"
        await self._notifier.notify_user(
            application.student_id,
            f"Enrollment Application {decision.capitalize()}",
            message,
            type="enrollment",
            sender_id=decided_by,
        )
        logger.info("Application %s %s by %s", application.id, decision, decided_by)
        return await self._application_response(application)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _approve_enrollment(self, application: EnrollmentApplication) -> None:
        result = await self._db.execute(
            select(Enrollment).where(
                Enrollment.student_id == application.student_id,
                Enrollment.school_year == application.school_year,
            )
        )
        enrollment = result.scalars().first()
        if enrollment is None:
            enrollment = Enrollment(
                student_id=application.student_id,
                school_year=application.school_year,
                payment_status="unpaid",
                documents={},
            )
            self._db.add(enrollment)

        enrollment.status = "approved"
        enrollment.application_id = application.id
        enrollment.grade_level = application.grade_level

        student = await self._db.get(User, application.student_id)
        if student is not None:
            student.grade_level = application.grade_level

    async def _set_progress(
        self, application: EnrollmentApplication, status: str, remarks: str | None
    ) -> None:
        result = await self._db.execute(
            select(EnrollmentProgress).where(EnrollmentProgress.application_id == application.id)
        )
        progress = result.scalar_one_or_none()
        if progress is None:
            progress = EnrollmentProgress(
                student_id=application.student_id,
                application_id=application.id,
            )
            self._db.add(progress)
        progress.current_status = status
        progress.remarks = remarks
        progress.last_updated = utc_now()

    async def _sync_student_section(self, enrollment: Enrollment) -> None:
        """Approved enrollments place the student in the enrollment's section."""
        if enrollment.status != "approved" or not enrollment.section_id:
            return
        student = await self._db.get(User, enrollment.student_id)
        if student is not None:
            student.section_id = enrollment.section_id
            if enrollment.grade_level:
                student.grade_level = enrollment.grade_level

    async def _get_enrollment(self, enrollment_id: str) -> Enrollment:
        enrollment = await self._db.get(Enrollment, enrollment_id)
        if enrollment is None:
            raise EnrollmentNotFoundError(f"Enrollment {enrollment_id} not found")
        return enrollment

    async def _get_owned_application(
        self, application_id: str, user_id: str, role: str
    ) -> EnrollmentApplication:
        application = await self._db.get(EnrollmentApplication, application_id)
        if application is None:
            raise ApplicationNotFoundError(f"Application {application_id} not found")

        if application.student_id == user_id:
            return application
        if role == Role.PARENT.value and await self._is_linked_parent(user_id, application.student_id):
            return application
        raise ApplicationNotFoundError(f"Application {application_id} not found")

    async def _get_student(self, student_id: str) -> User:
        student = await self._db.get(User, student_id)
        if student is None or student.role != Role.STUDENT.value:
            raise EnrollmentStudentNotFoundError(f"Student {student_id} not found")
        return student

    async def _ensure_section(self, section_id: str) -> None:
        if await self._db.get(Section, section_id) is None:
            raise EnrollmentServiceError(f"Section {section_id} not found")

    async def _is_linked_parent(self, parent_id: str, student_id: str) -> bool:
        link = await self._db.scalar(
            select(ParentStudentLink.id).where(
                ParentStudentLink.parent_id == parent_id,
                ParentStudentLink.student_id == student_id,
            )
        )
        return link is not None

    async def _application_responses(
        self, applications: list[EnrollmentApplication]
    ) -> list[ApplicationResponse]:
        if not applications:
            return []
        result = await self._db.execute(
            select(EnrollmentDocument)
            .where(EnrollmentDocument.application_id.in_([a.id for a in applications]))
            .order_by(EnrollmentDocument.uploaded_at)
        )
        documents: dict[str, list[EnrollmentDocument]] = {}
        for document in result.scalars().all():
            documents.setdefault(document.application_id, []).append(document)
        return [self._to_application_response(a, documents.get(a.id, [])) for a in applications]

    async def _application_response(self, application: EnrollmentApplication) -> ApplicationResponse:
        return (await self._application_responses([application]))[0]

    @staticmethod
    def _to_application_response(
        application: EnrollmentApplication, documents: list[EnrollmentDocument]
    ) -> ApplicationResponse:
        return ApplicationResponse(
            id=application.id,
            student_id=application.student_id,
            school_year=application.school_year,
            grade_level=application.grade_level,
            first_name=application.first_name,
            last_name=application.last_name,
            birth_date=application.birth_date,
            address=application.address,
            parent_name=application.parent_name,
            parent_contact=application.parent_contact,
            status=application.status,
            submitted_at=application.submitted_at,
            decided_at=application.decided_at,
            decided_by=application.decided_by,
            remarks=application.remarks,
            documents=[ApplicationDocumentResponse.model_validate(d) for d in documents],
            created_at=application.created_at,
        )

    @staticmethod
    def _enrollment_response(enrollment: Enrollment, student_name: str | None) -> EnrollmentResponse:
        return EnrollmentResponse(
            id=enrollment.id,
            student_id=enrollment.student_id,
            student_name=student_name,
            section_id=enrollment.section_id,
            application_id=enrollment.application_id,
            school_year=enrollment.school_year,
            grade_level=enrollment.grade_level,
            status=enrollment.status,
            payment_status=enrollment.payment_status,
            documents=enrollment.documents or {},
            remarks=enrollment.remarks,
            created_at=enrollment.created_at,
            updated_at=enrollment.updated_at,
        )

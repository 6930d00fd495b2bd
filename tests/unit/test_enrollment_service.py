# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for EnrollmentService.

Tests the application workflow rules with a mocked session.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.domains.enrollment.service import (
    ApplicationNotFoundError,
    EnrollmentAccessDeniedError,
    EnrollmentService,
    EnrollmentServiceError,
    EnrollmentStudentNotFoundError,
    InvalidApplicationStateError,
    InvalidDecisionError,
)
from src.infrastructure.database.models import Enrollment, EnrollmentApplication
from src.models.enrollment import ApplicationCreateRequest


@pytest.fixture
def notifier() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def service(mock_db: AsyncMock, notifier: AsyncMock) -> EnrollmentService:
    return EnrollmentService(mock_db, notifier=notifier)


def make_application(status: str = "draft", student_id: str = "student-1") -> EnrollmentApplication:
    return EnrollmentApplication(
        id="application-1",
        student_id=student_id,
        school_year="2025-2026",
        grade_level="Grade 7",
        first_name="Jane",
        last_name="Student",
        status=status,
        created_at=datetime(2025, 6, 1, tzinfo=timezone.utc),
    )


def create_request(**overrides) -> ApplicationCreateRequest:
    data = {
        "school_year": "2025-2026",
        "grade_level": "Grade 7",
        "first_name": "Jane",
        "last_name": "Student",
    }
    data.update(overrides)
    return ApplicationCreateRequest(**data)


class TestCreateApplication:
    """Tests for starting applications."""

    async def test_parent_must_name_the_student(self, service: EnrollmentService) -> None:
        """Test that parents have to pass student_id."""
        with pytest.raises(EnrollmentServiceError, match="student_id is required"):
            await service.create_application("parent-1", "parent", create_request())

    async def test_unlinked_parent_is_refused(
        self, service: EnrollmentService, mock_db: AsyncMock
    ) -> None:
        """Test that parents can only apply for linked children."""
        mock_db.scalar.return_value = None

        with pytest.raises(EnrollmentAccessDeniedError):
            await service.create_application(
                "parent-1", "parent", create_request(student_id="student-1")
            )

        mock_db.add.assert_not_called()

    async def test_caller_must_be_a_student(
        self, service: EnrollmentService, mock_db: AsyncMock
    ) -> None:
        """Test that non-students cannot apply for themselves."""
        mock_db.get.return_value = MagicMock(role="teacher")

        with pytest.raises(EnrollmentStudentNotFoundError):
            await service.create_application("teacher-1", "teacher", create_request())


class TestApplicationState:
    """Tests for upload and submit state checks."""

    async def test_upload_without_document_storage(self, service: EnrollmentService) -> None:
        """Test that uploads need a configured DocumentService."""
        with pytest.raises(EnrollmentServiceError, match="not configured"):
            await service.upload_documents("application-1", "student-1", "student", "psa", [])

    async def test_upload_after_submission(
        self, mock_db: AsyncMock, notifier: AsyncMock
    ) -> None:
        """Test that submitted applications take no more documents."""
        documents = MagicMock()
        service = EnrollmentService(mock_db, notifier=notifier, documents=documents)
        mock_db.get.return_value = make_application(status="submitted")

        with pytest.raises(InvalidApplicationStateError):
            await service.upload_documents("application-1", "student-1", "student", "psa", [])

        documents.validate_application_files.assert_not_called()

    async def test_submit_twice(
        self, service: EnrollmentService, mock_db: AsyncMock, notifier: AsyncMock
    ) -> None:
        """Test that a submitted application cannot be submitted again."""
        mock_db.get.return_value = make_application(status="submitted")

        with pytest.raises(InvalidApplicationStateError, match="'submitted'"):
            await service.submit_application("application-1", "student-1", "student")

        notifier.notify_role.assert_not_called()

    async def test_foreign_application_is_hidden(
        self, service: EnrollmentService, mock_db: AsyncMock
    ) -> None:
        """Test that other students' applications look missing."""
        mock_db.get.return_value = make_application(student_id="someone-else")

        with pytest.raises(ApplicationNotFoundError):
            await service.submit_application("application-1", "student-1", "student")

    async def test_submit_notifies_registrars(
        self, service: EnrollmentService, mock_db: AsyncMock, notifier: AsyncMock, make_result
    ) -> None:
        """Test the draft to submitted transition."""
        application = make_application(status="pending_documents")
        mock_db.get.return_value = application
        mock_db.execute.side_effect = [make_result(value=None), make_result(items=[])]

        response = await service.submit_application("application-1", "student-1", "student")

        assert response.status == "submitted"
        assert application.submitted_at is not None
        notifier.notify_role.assert_awaited_once()
        assert notifier.notify_role.await_args.args[:2] == (
            "registrar",
            "New Enrollment Application",
        )


class TestDecideApplication:
    """Tests for registrar decisions."""

    async def test_invalid_decision(self, service: EnrollmentService, mock_db: AsyncMock) -> None:
        """Test that only approved and rejected are accepted."""
        with pytest.raises(InvalidDecisionError):
            await service.decide_application("application-1", "maybe", "registrar-1")

        mock_db.get.assert_not_called()

    async def test_only_submitted_applications(
        self, service: EnrollmentService, mock_db: AsyncMock
    ) -> None:
        """Test that drafts cannot be decided."""
        mock_db.get.return_value = make_application(status="draft")

        with pytest.raises(InvalidApplicationStateError):
            await service.decide_application("application-1", "approved", "registrar-1")

    async def test_reject_with_remarks(
        self, service: EnrollmentService, mock_db: AsyncMock, notifier: AsyncMock, make_result
    ) -> None:
        """Test that a rejection notifies the student with the remarks."""
        mock_db.get.return_value = make_application(status="submitted")
        mock_db.execute.side_effect = [make_result(value=None), make_result(items=[])]

        response = await service.decide_application(
            "application-1", " Rejected ", "registrar-1", remarks="Missing PSA"
        )

        assert response.status == "rejected"
        assert response.decided_by == "registrar-1"
        user_id, title, message = notifier.notify_user.await_args.args
        assert user_id == "student-1"
        assert title == "Enrollment Application Rejected"
        assert message == "Your enrollment application has been rejected: Missing PSA"

    async def test_approve_creates_enrollment(
        self, service: EnrollmentService, mock_db: AsyncMock, make_result
    ) -> None:
        """Test that approval creates an approved enrollment for the year."""
        student = MagicMock(grade_level=None)
        mock_db.get.side_effect = [make_application(status="submitted"), student]
        no_enrollment = make_result()
        no_enrollment.scalars.return_value.first.return_value = None
        mock_db.execute.side_effect = [make_result(value=None), no_enrollment, make_result(items=[])]

        await service.decide_application("application-1", "approved", "registrar-1")

        enrollments = [
            call.args[0] for call in mock_db.add.call_args_list if isinstance(call.args[0], Enrollment)
        ]
        assert len(enrollments) == 1
        assert enrollments[0].status == "approved"
        assert enrollments[0].application_id == "application-1"
        assert enrollments[0].school_year == "2025-2026"
        assert student.grade_level == "Grade 7"

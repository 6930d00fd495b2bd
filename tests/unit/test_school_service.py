# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for School service."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError

from src.domains.school.service import (
    AssignmentExistsError,
    AssignmentNotFoundError,
    InvalidTeacherError,
    SchoolService,
    SchoolServiceError,
    SchoolYearExistsError,
    SchoolYearNotFoundError,
    SettingExistsError,
    SettingNotFoundError,
    SubjectCodeExistsError,
    SubjectNotFoundError,
)
from src.infrastructure.database.models import AcademicYear, SchoolSetting, Subject
from src.models.school import (
    OrgChartEntryUpdateRequest,
    SchoolSettingCreateRequest,
    SchoolSettingUpdateRequest,
    SchoolYearCreateRequest,
    SubjectCreateRequest,
    SubjectUpdateRequest,
    TeacherAssignmentCreateRequest,
)


@pytest.fixture
def school_service(mock_db: AsyncMock) -> SchoolService:
    """Create school service with mock database."""
    return SchoolService(db=mock_db)


def assignment_request() -> TeacherAssignmentCreateRequest:
    return TeacherAssignmentCreateRequest(
        teacher_id="teacher-1",
        subject_id="subject-1",
        section_id="section-1",
        school_year="2025-2026",
    )


class TestSubjects:
    """Tests for subject management."""

    async def test_create_subject(self, school_service: SchoolService, mock_db: AsyncMock) -> None:
        """Test creating a subject with a free code."""
        mock_db.scalar.return_value = None

        subject = await school_service.create_subject(
            SubjectCreateRequest(name="Science 7", code="SCI7", grade_level="Grade 7")
        )

        assert isinstance(subject, Subject)
        assert subject.code == "SCI7"
        mock_db.add.assert_called_once_with(subject)
        mock_db.commit.assert_awaited_once()

    async def test_create_subject_duplicate_code(
        self, school_service: SchoolService, mock_db: AsyncMock
    ) -> None:
        """Test that subject codes are unique."""
        mock_db.scalar.return_value = "existing-id"

        with pytest.raises(SubjectCodeExistsError, match="SCI7"):
            await school_service.create_subject(
                SubjectCreateRequest(name="Science 7", code="SCI7", grade_level="Grade 7")
            )

        mock_db.add.assert_not_called()

    async def test_update_keeps_required_fields(
        self, school_service: SchoolService, mock_db: AsyncMock
    ) -> None:
        """Test that explicit nulls do not clear name or grade level."""
        subject = Subject(id="subject-1", name="Science 7", code="SCI7", grade_level="Grade 7")
        mock_db.get.return_value = subject

        await school_service.update_subject(
            "subject-1", SubjectUpdateRequest(name=None, description="Earth and life science")
        )

        assert subject.name == "Science 7"
        assert subject.description == "Earth and life science"
        mock_db.scalar.assert_not_awaited()

    async def test_missing_subject(self, school_service: SchoolService, mock_db: AsyncMock) -> None:
        """Test the not found error."""
        mock_db.get.return_value = None

        with pytest.raises(SubjectNotFoundError):
            await school_service.delete_subject("missing")


class TestAssignments:
    """Tests for teacher assignments."""

    async def test_only_teachers_can_be_assigned(
        self, school_service: SchoolService, mock_db: AsyncMock
    ) -> None:
        """Test that other roles are rejected."""
        mock_db.get.return_value = MagicMock(role="student")

        with pytest.raises(InvalidTeacherError):
            await school_service.create_assignment(assignment_request())

    async def test_duplicate_assignment(
        self, school_service: SchoolService, mock_db: AsyncMock
    ) -> None:
        """Test that the same assignment cannot be created twice."""
        mock_db.get.side_effect = [
            MagicMock(role="teacher"),
            MagicMock(spec=Subject),
            MagicMock(),
        ]
        mock_db.scalar.return_value = "assignment-1"

        with pytest.raises(AssignmentExistsError):
            await school_service.create_assignment(assignment_request())

    async def test_delete_missing_assignment(
        self, school_service: SchoolService, mock_db: AsyncMock
    ) -> None:
        """Test deleting an unknown assignment."""
        mock_db.get.return_value = None

        with pytest.raises(AssignmentNotFoundError):
            await school_service.delete_assignment("missing")


class TestOrgChartAndSettings:
    """Tests for the org chart and school settings."""

    async def test_entry_cannot_report_to_itself(
        self, school_service: SchoolService, mock_db: AsyncMock
    ) -> None:
        """Test the self reference check."""
        mock_db.get.return_value = MagicMock()

        with pytest.raises(SchoolServiceError, match="itself"):
            await school_service.update_org_chart_entry(
                "entry-1", OrgChartEntryUpdateRequest(reports_to_id="entry-1")
            )

    async def test_duplicate_setting(self, school_service: SchoolService, mock_db: AsyncMock) -> None:
        """Test that setting keys are unique."""
        mock_db.scalar.return_value = "setting-1"

        with pytest.raises(SettingExistsError):
            await school_service.create_setting(
                SchoolSettingCreateRequest(key="school_name", value="San Isidro High")
            )

    async def test_update_missing_setting(
        self, school_service: SchoolService, mock_db: AsyncMock, make_result
    ) -> None:
        """Test updating an unknown key."""
        mock_db.execute.return_value = make_result(value=None)

        with pytest.raises(SettingNotFoundError, match="school_name"):
            await school_service.update_setting("school_name", SchoolSettingUpdateRequest(value="x"))


def school_year_request(**fields) -> SchoolYearCreateRequest:
    values = {"year": "2026-2027", "start_date": date(2026, 6, 1), "end_date": date(2027, 3, 31)}
    values.update(fields)
    return SchoolYearCreateRequest(**values)


@pytest.fixture
def notifier() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def year_service(mock_db: AsyncMock, notifier: AsyncMock) -> SchoolService:
    return SchoolService(mock_db, notifier=notifier)


class TestSchoolYears:
    """Tests for starting and switching school years."""

    async def test_create_activates_and_notifies(
        self, year_service: SchoolService, mock_db: AsyncMock, notifier: AsyncMock
    ) -> None:
        """Test that a new year becomes active, mirrors the setting and notifies users."""
        mock_db.scalar.side_effect = [None, None, None]

        school_year = await year_service.create_school_year(school_year_request())

        assert isinstance(school_year, AcademicYear)
        assert school_year.is_active is True
        added = [c.args[0] for c in mock_db.add.call_args_list]
        assert added[0] is school_year
        setting = added[1]
        assert isinstance(setting, SchoolSetting)
        assert (setting.key, setting.value) == ("school_year", "2026-2027")
        mock_db.execute.assert_awaited_once()
        mock_db.commit.assert_awaited_once()

        roles = [c.args[0] for c in notifier.notify_role.await_args_list]
        assert roles == ["student", "teacher", "parent"]
        title, message = notifier.notify_role.await_args.args[1:]
        assert title == "New School Year Started"
        assert "2026-2027" in message
        assert "history" in message

    async def test_duplicate_year(self, year_service: SchoolService, mock_db: AsyncMock) -> None:
        """Test that year names are unique."""
        mock_db.scalar.return_value = "year-1"

        with pytest.raises(SchoolYearExistsError, match="2026-2027"):
            await year_service.create_school_year(school_year_request())

        mock_db.add.assert_not_called()

    async def test_overlapping_dates(self, year_service: SchoolService, mock_db: AsyncMock) -> None:
        """Test that two years cannot share dates."""
        mock_db.scalar.side_effect = [None, "2025-2026"]

        with pytest.raises(SchoolYearExistsError, match="2025-2026"):
            await year_service.create_school_year(school_year_request())

        mock_db.commit.assert_not_awaited()

    async def test_activate_updates_existing_setting(
        self, year_service: SchoolService, mock_db: AsyncMock, notifier: AsyncMock
    ) -> None:
        """Test switching back to an earlier year."""
        earlier = AcademicYear(
            id="year-1",
            year="2025-2026",
            start_date=date(2025, 6, 1),
            end_date=date(2026, 3, 31),
            is_active=False,
        )
        setting = SchoolSetting(key="school_year", value="2026-2027")
        mock_db.get.return_value = earlier
        mock_db.scalar.return_value = setting

        result = await year_service.activate_school_year("year-1")

        assert result is earlier
        assert earlier.is_active is True
        assert setting.value == "2025-2026"
        mock_db.add.assert_not_called()
        assert notifier.notify_role.await_count == 3

    async def test_activate_active_year_is_a_no_op(
        self, year_service: SchoolService, mock_db: AsyncMock, notifier: AsyncMock
    ) -> None:
        """Test that re-activating the current year changes nothing."""
        mock_db.get.return_value = AcademicYear(id="year-1", year="2025-2026", is_active=True)

        await year_service.activate_school_year("year-1")

        mock_db.commit.assert_not_awaited()
        notifier.notify_role.assert_not_awaited()

    async def test_activate_missing_year(self, year_service: SchoolService, mock_db: AsyncMock) -> None:
        """Test activating an unknown id."""
        mock_db.get.return_value = None

        with pytest.raises(SchoolYearNotFoundError):
            await year_service.activate_school_year("missing")

    @pytest.mark.parametrize(
        "fields",
        [
            {"year": "2025-2027"},
            {"year": "2025/2026"},
            {"end_date": date(2026, 6, 1)},
        ],
    )
    def test_request_validation(self, fields: dict) -> None:
        """Test the year format and the date order."""
        with pytest.raises(ValidationError):
            school_year_request(**fields)

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School structure service.

This module provides the SchoolService that handles:
- Sections and their advisers
- Subjects per grade level
- Teacher assignments (teacher x subject x section x school year)
- Organization chart entries
- Key/value school settings
- School years, one of which is active at a time

Example:
    >>> school_service = SchoolService(db_session)
    >>> section = await school_service.create_section(request)
    >>> subjects = await school_service.list_subjects(grade_level="Grade 7")
"""

import logging

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.roles import Role
from src.domains.notification.service import NotificationService
from src.infrastructure.database.models import (
    AcademicYear,
    OrgChartEntry,
    SchoolSetting,
    Section,
    Subject,
    TeacherAssignment,
    User,
)
from src.models.school import (
    OrgChartEntryCreateRequest,
    OrgChartEntryUpdateRequest,
    SchoolSettingCreateRequest,
    SchoolSettingUpdateRequest,
    SchoolYearCreateRequest,
    SectionCreateRequest,
    SectionResponse,
    SectionUpdateRequest,
    SubjectCreateRequest,
    SubjectUpdateRequest,
    TeacherAssignmentCreateRequest,
    TeacherAssignmentResponse,
)

logger = logging.getLogger(__name__)

# Setting that mirrors the active school year for clients that read settings
SCHOOL_YEAR_SETTING = "school_year"

# Roles told when a new school year starts
SCHOOL_YEAR_AUDIENCE = (Role.STUDENT.value, Role.TEACHER.value, Role.PARENT.value)


class SchoolServiceError(Exception):
    """Base exception for school service errors."""

    pass


class SectionNotFoundError(SchoolServiceError):
    """Raised when a section is not found."""

    pass


class SubjectNotFoundError(SchoolServiceError):
    """Raised when a subject is not found."""

    pass


class SubjectCodeExistsError(SchoolServiceError):
    """Raised when creating a subject with an existing code."""

    pass


class AssignmentNotFoundError(SchoolServiceError):
    """Raised when a teacher assignment is not found."""

    pass


class AssignmentExistsError(SchoolServiceError):
    """Raised when the same assignment already exists."""

    pass


class InvalidTeacherError(SchoolServiceError):
    """Raised when a user given as teacher or adviser is not a teacher."""

    pass


class OrgChartEntryNotFoundError(SchoolServiceError):
    pass


class SettingNotFoundError(SchoolServiceError):
    pass


class SettingExistsError(SchoolServiceError):
    pass


class SchoolYearNotFoundError(SchoolServiceError):
    pass


class SchoolYearExistsError(SchoolServiceError):
    """Raised when a school year with the same name or overlapping dates exists."""

    pass


class SchoolService:
    """Service for the school's organizational structure.

    Attributes:
        _db: Async database session.
        _notifier: Notification service.
    """

    def __init__(self, db: AsyncSession, notifier: NotificationService | None = None) -> None:
        self._db = db
        self._notifier = notifier or NotificationService(db)

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    async def list_sections(
        self,
        grade_level: str | None = None,
        school_year: str | None = None,
    ) -> list[SectionResponse]:
        stmt = select(Section)
        if grade_level:
            stmt = stmt.where(Section.grade_level == grade_level)
        if school_year:
            stmt = stmt.where(Section.school_year == school_year)
        result = await self._db.execute(stmt.order_by(Section.grade_level, Section.name))
        sections = list(result.scalars().all())

        counts = await self._student_counts([s.id for s in sections])
        return [self._section_response(s, counts.get(s.id, 0)) for s in sections]

    async def get_section(self, section_id: str) -> SectionResponse:
        section = await self._get_section(section_id)
        counts = await self._student_counts([section.id])
        return self._section_response(section, counts.get(section.id, 0))

    async def create_section(self, request: SectionCreateRequest) -> SectionResponse:
        """Create a section.

        Raises:
            InvalidTeacherError: If the adviser is not a teacher.
        """
        if request.adviser_id:
            await self._require_teacher(request.adviser_id)

        section = Section(**request.model_dump())
        self._db.add(section)
        await self._db.commit()
        await self._db.refresh(section)

        logger.info("Section created: %s (%s)", section.id, section.name)
        return self._section_response(section, 0)

    async def update_section(self, section_id: str, request: SectionUpdateRequest) -> SectionResponse:
        section = await self._get_section(section_id)
        changes = request.model_dump(exclude_unset=True)
        if changes.get("adviser_id"):
            await self._require_teacher(changes["adviser_id"])

        for field, value in changes.items():
            if value is None and field in ("name", "grade_level"):
                continue
            setattr(section, field, value)

        await self._db.commit()
        await self._db.refresh(section)

        logger.info("Section updated: %s", section.id)
        return await self.get_section(section.id)

    async def delete_section(self, section_id: str) -> None:
        section = await self._get_section(section_id)
        await self._db.delete(section)
        await self._db.commit()
        logger.info("Section deleted: %s", section_id)

    async def list_section_students(self, section_id: str) -> list[User]:
        await self._get_section(section_id)
        result = await self._db.execute(
            select(User)
            .where(User.section_id == section_id, User.role == Role.STUDENT.value)
            .order_by(User.name)
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Subjects
    # ------------------------------------------------------------------

    async def list_subjects(self, grade_level: str | None = None) -> list[Subject]:
        stmt = select(Subject)
        if grade_level:
            stmt = stmt.where(Subject.grade_level == grade_level)
        result = await self._db.execute(stmt.order_by(Subject.grade_level, Subject.name))
        return list(result.scalars().all())

    async def get_subject(self, subject_id: str) -> Subject:
        subject = await self._db.get(Subject, subject_id)
        if subject is None:
            raise SubjectNotFoundError(f"Subject {subject_id} not found")
        return subject

    async def create_subject(self, request: SubjectCreateRequest) -> Subject:
        """Create a subject.

        Raises:
            SubjectCodeExistsError: If the code is already used.
        """
        if request.code and await self._subject_code_taken(request.code):
            raise SubjectCodeExistsError(f"Subject with code '{request.code}' already exists")

        subject = Subject(**request.model_dump())
        self._db.add(subject)
        await self._db.commit()
        await self._db.refresh(subject)

        logger.info("Subject created: %s (%s)", subject.id, subject.name)
        return subject

    async def update_subject(self, subject_id: str, request: SubjectUpdateRequest) -> Subject:
        subject = await self.get_subject(subject_id)
        changes = request.model_dump(exclude_unset=True)
        code = changes.get("code")
        if code and code != subject.code and await self._subject_code_taken(code):
            raise SubjectCodeExistsError(f"Subject with code '{code}' already exists")

        for field, value in changes.items():
            if value is None and field in ("name", "grade_level"):
                continue
            setattr(subject, field, value)

        await self._db.commit()
        await self._db.refresh(subject)
        return subject

    async def delete_subject(self, subject_id: str) -> None:
        subject = await self.get_subject(subject_id)
        await self._db.delete(subject)
        await self._db.commit()
        logger.info("Subject deleted: %s", subject_id)

    # ------------------------------------------------------------------
    # Teacher assignments
    # ------------------------------------------------------------------

    async def list_assignments(
        self,
        teacher_id: str | None = None,
        section_id: str | None = None,
        school_year: str | None = None,
    ) -> list[TeacherAssignmentResponse]:
        stmt = (
            select(TeacherAssignment, User.name, Subject.name, Section.name)
            .join(User, User.id == TeacherAssignment.teacher_id)
            .join(Subject, Subject.id == TeacherAssignment.subject_id)
            .join(Section, Section.id == TeacherAssignment.section_id)
        )
        if teacher_id:
            stmt = stmt.where(TeacherAssignment.teacher_id == teacher_id)
        if section_id:
            stmt = stmt.where(TeacherAssignment.section_id == section_id)
        if school_year:
            stmt = stmt.where(TeacherAssignment.school_year == school_year)

        result = await self._db.execute(stmt.order_by(Section.name, Subject.name))
        return [
            self._assignment_response(assignment, teacher_name, subject_name, section_name)
            for assignment, teacher_name, subject_name, section_name in result.all()
        ]

    async def create_assignment(
        self, request: TeacherAssignmentCreateRequest
    ) -> TeacherAssignmentResponse:
        """Assign a teacher to teach a subject in a section.

        Raises:
            InvalidTeacherError: If the user is not a teacher.
            SubjectNotFoundError: If the subject does not exist.
            SectionNotFoundError: If the section does not exist.
            AssignmentExistsError: If the assignment already exists.
        """
        teacher = await self._require_teacher(request.teacher_id)
        subject = await self.get_subject(request.subject_id)
        section = await self._get_section(request.section_id)

        existing = await self._db.scalar(
            select(TeacherAssignment.id).where(
                TeacherAssignment.teacher_id == request.teacher_id,
                TeacherAssignment.subject_id == request.subject_id,
                TeacherAssignment.section_id == request.section_id,
                TeacherAssignment.school_year == request.school_year,
            )
        )
        if existing:
            raise AssignmentExistsError("Teacher is already assigned to this subject and section")

        assignment = TeacherAssignment(**request.model_dump())
        self._db.add(assignment)
        await self._db.commit()
        await self._db.refresh(assignment)

        logger.info(
            "Teacher assigned: teacher=%s, subject=%s, section=%s",
            teacher.id,
            subject.id,
            section.id,
        )
        return self._assignment_response(assignment, teacher.name, subject.name, section.name)

    async def delete_assignment(self, assignment_id: str) -> None:
        assignment = await self._db.get(TeacherAssignment, assignment_id)
        if assignment is None:
            raise AssignmentNotFoundError(f"Assignment {assignment_id} not found")
        await self._db.delete(assignment)
        await self._db.commit()

    async def section_responses(self, sections: list[Section]) -> list[SectionResponse]:
        """Attach student counts to already loaded sections."""
        counts = await self._student_counts([s.id for s in sections])
        return [self._section_response(s, counts.get(s.id, 0)) for s in sections]

    # ------------------------------------------------------------------
    # Organization chart
    # ------------------------------------------------------------------

    async def list_org_chart(self) -> list[OrgChartEntry]:
        result = await self._db.execute(
            select(OrgChartEntry).order_by(OrgChartEntry.display_order, OrgChartEntry.name)
        )
        return list(result.scalars().all())

    async def create_org_chart_entry(self, request: OrgChartEntryCreateRequest) -> OrgChartEntry:
        if request.reports_to_id:
            await self._get_org_entry(request.reports_to_id)
        entry = OrgChartEntry(**request.model_dump())
        self._db.add(entry)
        await self._db.commit()
        await self._db.refresh(entry)
        return entry

    async def update_org_chart_entry(
        self, entry_id: str, request: OrgChartEntryUpdateRequest
    ) -> OrgChartEntry:
        entry = await self._get_org_entry(entry_id)
        changes = request.model_dump(exclude_unset=True)
        reports_to = changes.get("reports_to_id")
        if reports_to:
            if reports_to == entry_id:
                raise SchoolServiceError("An entry cannot report to itself")
            await self._get_org_entry(reports_to)

        for field, value in changes.items():
            if value is None and field in ("name", "position", "display_order"):
                continue
            setattr(entry, field, value)

        await self._db.commit()
        await self._db.refresh(entry)
        return entry

    async def delete_org_chart_entry(self, entry_id: str) -> None:
        entry = await self._get_org_entry(entry_id)
        await self._db.delete(entry)
        await self._db.commit()

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    async def list_settings(self) -> list[SchoolSetting]:
        result = await self._db.execute(select(SchoolSetting).order_by(SchoolSetting.key))
        return list(result.scalars().all())

    async def create_setting(self, request: SchoolSettingCreateRequest) -> SchoolSetting:
        existing = await self._db.scalar(
            select(SchoolSetting.id).where(SchoolSetting.key == request.key)
        )
        if existing:
            raise SettingExistsError(f"Setting '{request.key}' already exists")

        setting = SchoolSetting(**request.model_dump())
        self._db.add(setting)
        await self._db.commit()
        await self._db.refresh(setting)
        return setting

    async def update_setting(self, key: str, request: SchoolSettingUpdateRequest) -> SchoolSetting:
        result = await self._db.execute(select(SchoolSetting).where(SchoolSetting.key == key))
        setting = result.scalar_one_or_none()
        if setting is None:
            raise SettingNotFoundError(f"Setting '{key}' not found")

        for field, value in request.model_dump(exclude_unset=True).items():
            setattr(setting, field, value)

        await self._db.commit()
        await self._db.refresh(setting)
        logger.info("Setting updated: %s", key)
        return setting

    # ------------------------------------------------------------------
    # School years
    # ------------------------------------------------------------------

    async def list_school_years(self) -> list[AcademicYear]:
        result = await self._db.execute(
            select(AcademicYear).order_by(AcademicYear.start_date.desc())
        )
        return list(result.scalars().all())

    async def get_active_school_year(self) -> AcademicYear | None:
        return await self._db.scalar(select(AcademicYear).where(AcademicYear.is_active.is_(True)))

    async def create_school_year(self, request: SchoolYearCreateRequest) -> AcademicYear:
        """Create a school year and make it the active one.

        Raises:
            SchoolYearExistsError: If the name is taken or the dates overlap
                another school year.
        """
        taken = await self._db.scalar(
            select(AcademicYear.id).where(AcademicYear.year == request.year)
        )
        if taken:
            raise SchoolYearExistsError(f"School year {request.year} already exists")
        overlap = await self._db.scalar(
            select(AcademicYear.year).where(
                AcademicYear.start_date <= request.end_date,
                AcademicYear.end_date >= request.start_date,
            )
        )
        if overlap:
            raise SchoolYearExistsError(f"Dates overlap school year {overlap}")

        school_year = AcademicYear(
            year=request.year,
            start_date=request.start_date,
            end_date=request.end_date,
            is_active=False,
        )
        self._db.add(school_year)
        logger.info("School year created: %s", request.year)
        return await self._activate(school_year)

    async def activate_school_year(self, year_id: str) -> AcademicYear:
        """Make an existing school year the active one.

        Raises:
            SchoolYearNotFoundError: If it does not exist.
        """
        school_year = await self._db.get(AcademicYear, year_id)
        if school_year is None:
            raise SchoolYearNotFoundError(f"School year {year_id} not found")
        if school_year.is_active:
            return school_year
        return await self._activate(school_year)

    async def _activate(self, school_year: AcademicYear) -> AcademicYear:
        """Deactivate every other year, mirror the setting and notify users.

        Earlier years keep their records, so grades, invoices and
        submissions stay available as history.
        """
        await self._db.execute(
            update(AcademicYear).where(AcademicYear.is_active.is_(True)).values(is_active=False)
        )
        school_year.is_active = True

        setting = await self._db.scalar(
            select(SchoolSetting).where(SchoolSetting.key == SCHOOL_YEAR_SETTING)
        )
        if setting is None:
            self._db.add(
                SchoolSetting(
                    key=SCHOOL_YEAR_SETTING,
                    value=school_year.year,
                    description="Active school year",
                )
            )
        else:
            setting.value = school_year.year

        await self._db.commit()
        await self._db.refresh(school_year)

        for role in SCHOOL_YEAR_AUDIENCE:
            await self._notifier.notify_role(
                role,
                "New School Year Started",
                f"Welcome to the {school_year.year} academic year! "
                "Previous year data remains accessible in your history.",
                type="school_year",
            )
        logger.info("School year activated: %s", school_year.year)
        return school_year

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_section(self, section_id: str) -> Section:
        section = await self._db.get(Section, section_id)
        if section is None:
            raise SectionNotFoundError(f"Section {section_id} not found")
        return section

    async def _get_org_entry(self, entry_id: str) -> OrgChartEntry:
        entry = await self._db.get(OrgChartEntry, entry_id)
        if entry is None:
            raise OrgChartEntryNotFoundError(f"Org chart entry {entry_id} not found")
        return entry

    async def _require_teacher(self, user_id: str) -> User:
        user = await self._db.get(User, user_id)
        if user is None or user.role != Role.TEACHER.value:
            raise InvalidTeacherError(f"User {user_id} is not a teacher")
        return user

    async def _subject_code_taken(self, code: str) -> bool:
        return bool(await self._db.scalar(select(Subject.id).where(Subject.code == code)))

    async def _student_counts(self, section_ids: list[str]) -> dict[str, int]:
        if not section_ids:
            return {}
        result = await self._db.execute(
            select(User.section_id, func.count(User.id))
            .where(User.section_id.in_(section_ids), User.role == Role.STUDENT.value)
            .group_by(User.section_id)
        )
        return {section_id: count for section_id, count in result.all()}

    @staticmethod
    def _section_response(section: Section, student_count: int) -> SectionResponse:
        return SectionResponse(
            id=section.id,
            name=section.name,
            grade_level=section.grade_level,
            school_year=section.school_year,
            adviser_id=section.adviser_id,
            student_count=student_count,
            created_at=section.created_at,
        )

    @staticmethod
    def _assignment_response(
        assignment: TeacherAssignment,
        teacher_name: str | None,
        subject_name: str | None,
        section_name: str | None,
    ) -> TeacherAssignmentResponse:
        return TeacherAssignmentResponse(
            id=assignment.id,
            teacher_id=assignment.teacher_id,
            subject_id=assignment.subject_id,
            section_id=assignment.section_id,
            school_year=assignment.school_year,
            teacher_name=teacher_name,
            subject_name=subject_name,
            section_name=section_name,
        )

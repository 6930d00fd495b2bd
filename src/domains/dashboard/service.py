# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Role dashboards.

Read-only aggregates for each role's landing page. The queries reuse the
other domain services where those already compute the figure (balances,
open tasks, section student counts) and count rows directly otherwise.

The student history gathers one student's records for a single school
year, so earlier years stay reachable after a new year starts.
"""

import logging
import math
from decimal import Decimal

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.roles import Role
from src.domains.academic.service import AcademicService
from src.domains.accounting.service import AccountingService
from src.domains.classroom.service import ClassroomService
from src.domains.notification.service import NotificationService
from src.domains.school.service import SchoolService
from src.infrastructure.database.models import (
    AcademicYear,
    BehaviorRecord,
    CounselingSession,
    Enrollment,
    EnrollmentApplication,
    Grade,
    ParentStudentLink,
    Section,
    SchoolExpense,
    Subject,
    TeacherAssignment,
    TranscriptRequest,
    User,
    WellnessProgram,
)
from src.models.academic import AcademicRecordResponse
from src.models.classroom import MeetingResponse, TaskResponse
from src.models.common import quantize_cents
from src.models.dashboard import (
    AcademicStatsResponse,
    AccountingDashboardResponse,
    AdminStatsResponse,
    ChildSummary,
    CurriculumResponse,
    GradeLevelCurriculum,
    GuidanceDashboardResponse,
    ParentDashboardResponse,
    PrincipalFinancialResponse,
    PrincipalStatsResponse,
    RegistrarDashboardResponse,
    StudentDashboardResponse,
    StudentHistoryResponse,
    TeacherDashboardResponse,
    TeacherPerformanceEntry,
)
from src.models.enrollment import EnrollmentResponse
from src.models.school import SchoolYearResponse, SubjectResponse
from src.utils.datetime import (
    day_end,
    day_start,
    month_start,
    next_month_start,
    utc_today,
    year_start,
)

logger = logging.getLogger(__name__)

ENROLLMENT_STATUSES = ("pending", "approved", "rejected", "withdrawn")


class DashboardServiceError(Exception):
    """Base exception for dashboard service errors."""

    pass


class HistoryStudentNotFoundError(DashboardServiceError):
    pass


def _average(value) -> float | None:
    if value is None:
        return None
    return round(float(value), 1)


class DashboardService:
    """Aggregated figures for the role dashboards."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db
        self._notifications = NotificationService(db)
        self._accounting = AccountingService(db, notifier=self._notifications)
        self._classroom = ClassroomService(db, notifier=self._notifications)
        self._school = SchoolService(db, notifier=self._notifications)
        self._academic = AcademicService(db, notifier=self._notifications)

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    async def admin_stats(self) -> AdminStatsResponse:
        result = await self._db.execute(select(User.role, func.count(User.id)).group_by(User.role))
        users_by_role = {role: count for role, count in result.all()}

        pending_enrollments = await self._count(Enrollment.id, Enrollment.status == "pending")
        submitted = await self._count(
            EnrollmentApplication.id, EnrollmentApplication.status == "submitted"
        )
        return AdminStatsResponse(
            total_users=sum(users_by_role.values()),
            active_enrollments=await self._count(Enrollment.id, Enrollment.status == "approved"),
            total_sections=await self._count(Section.id),
            pending_approvals=pending_enrollments + submitted,
            users_by_role=users_by_role,
        )

    async def principal_stats(self) -> PrincipalStatsResponse:
        """School-wide headcounts and the overall average grade."""
        average = _average(await self._db.scalar(select(func.avg(Grade.grade))))
        return PrincipalStatsResponse(
            total_students=await self._count(User.id, User.role == Role.STUDENT.value),
            total_teachers=await self._count(User.id, User.role == Role.TEACHER.value),
            new_enrollments=await self._count(
                Enrollment.id,
                Enrollment.created_at >= month_start(),
                Enrollment.created_at < next_month_start(),
            ),
            active_teachers=await self._count(
                User.id, User.role == Role.TEACHER.value, User.is_active.is_(True)
            ),
            average_grade=average if average is not None else "N/A",
        )

    async def principal_financial(self) -> PrincipalFinancialResponse:
        start_of_year = year_start()
        by_category = await self._accounting.expenses_by_category()
        zero = Decimal("0")
        return PrincipalFinancialResponse(
            monthly_revenue=await self._accounting.collected_between(
                month_start(), next_month_start()
            ),
            yearly_revenue=await self._accounting.collected_between(
                start_of_year, start_of_year.replace(year=start_of_year.year + 1)
            ),
            outstanding_balance=await self._accounting.outstanding_balance(),
            faculty_expenses=by_category.get("Faculty", zero),
            facility_expenses=by_category.get("Facility", zero),
            academic_expenses=by_category.get("Academic", zero),
            expenses_by_category=by_category,
        )

    # ------------------------------------------------------------------
    # Academic coordinator
    # ------------------------------------------------------------------

    async def curriculum(self) -> CurriculumResponse:
        """Core subjects are the first half by name, rounded up."""
        result = await self._db.execute(select(Subject).order_by(Subject.name))
        subjects = [SubjectResponse.model_validate(s) for s in result.scalars().all()]
        split = math.ceil(len(subjects) / 2)

        by_level: dict[str, list[SubjectResponse]] = {}
        for subject in subjects:
            by_level.setdefault(subject.grade_level, []).append(subject)

        return CurriculumResponse(
            core_subjects=subjects[:split],
            electives=subjects[split:],
            by_grade_level=[
                GradeLevelCurriculum(grade_level=level, subjects=items)
                for level, items in sorted(by_level.items())
            ],
        )

    async def teacher_performance(self) -> list[TeacherPerformanceEntry]:
        teachers = await self._db.execute(
            select(User).where(User.role == Role.TEACHER.value).order_by(User.name)
        )

        assignments = await self._db.execute(
            select(TeacherAssignment.teacher_id, Subject.name).join(
                Subject, Subject.id == TeacherAssignment.subject_id
            )
        )
        assigned: dict[str, list[str]] = {}
        for teacher_id, subject_name in assignments.all():
            assigned.setdefault(teacher_id, []).append(subject_name)

        averages = await self._db.execute(
            select(Grade.teacher_id, func.avg(Grade.grade))
            .where(Grade.teacher_id.is_not(None))
            .group_by(Grade.teacher_id)
        )
        average_by_teacher = {teacher_id: avg for teacher_id, avg in averages.all()}

        entries = []
        for teacher in teachers.scalars().all():
            subjects = assigned.get(teacher.id, [])
            entries.append(
                TeacherPerformanceEntry(
                    teacher_id=teacher.id,
                    name=teacher.name,
                    classes_assigned=len(subjects),
                    subject=f"{len(subjects)} subjects" if subjects else "No assignments",
                    subjects=sorted(set(subjects)),
                    average_grade_given=_average(average_by_teacher.get(teacher.id)),
                )
            )
        return entries

    async def academic_stats(self) -> AcademicStatsResponse:
        result = await self._db.execute(
            select(User.grade_level, func.avg(Grade.grade))
            .join(User, User.id == Grade.student_id)
            .where(User.grade_level.is_not(None))
            .group_by(User.grade_level)
        )
        return AcademicStatsResponse(
            total_subjects=await self._count(Subject.id),
            total_teachers=await self._count(User.id, User.role == Role.TEACHER.value),
            active_teachers=await self._count(
                User.id, User.role == Role.TEACHER.value, User.is_active.is_(True)
            ),
            total_students=await self._count(User.id, User.role == Role.STUDENT.value),
            total_sections=await self._count(Section.id),
            average_grade_by_level={level: _average(avg) for level, avg in result.all()},
        )

    # ------------------------------------------------------------------
    # Teacher, student, parent
    # ------------------------------------------------------------------

    async def teacher_dashboard(self, teacher_id: str) -> TeacherDashboardResponse:
        sections = await self._classroom.teacher_sections(teacher_id)
        tasks = await self._classroom.list_teacher_tasks(teacher_id)
        meetings = await self._classroom.list_teacher_meetings(teacher_id, upcoming_only=True)
        return TeacherDashboardResponse(
            sections=await self._school.section_responses(sections),
            tasks=len(tasks),
            pending_submissions=await self._classroom.pending_submission_count(teacher_id),
            upcoming_meetings=[MeetingResponse.model_validate(m) for m in meetings],
            unread_notifications=await self._notifications.unread_count(teacher_id),
        )

    async def student_dashboard(self, student_id: str) -> StudentDashboardResponse:
        student = await self._db.get(User, student_id)
        section = None
        if student is not None and student.section_id:
            section_row = await self._db.get(Section, student.section_id)
            if section_row is not None:
                section = (await self._school.section_responses([section_row]))[0]

        submitted = {s.task_id for s in await self._classroom.list_student_submissions(student_id)}
        open_tasks = [
            TaskResponse.model_validate(t)
            for t in await self._classroom.list_student_tasks(student_id)
            if t.id not in submitted
        ]
        meetings = await self._classroom.list_student_meetings(student_id)
        return StudentDashboardResponse(
            section=section,
            open_tasks=open_tasks,
            upcoming_meetings=[MeetingResponse.model_validate(m) for m in meetings],
            average_grade=await self._student_average(student_id),
            outstanding_balance=await self._accounting.outstanding_balance(student_id),
            unread_notifications=await self._notifications.unread_count(student_id),
        )

    async def student_history(self, student_id: str, school_year: str) -> StudentHistoryResponse:
        """One student's enrollments, grades, records, invoices and submissions.

        Submissions carry no school year, so they are included when the
        year is registered and they fall between its start and end dates.

        Raises:
            HistoryStudentNotFoundError: If the student does not exist.
        """
        student = await self._db.get(User, student_id)
        if student is None or student.role != Role.STUDENT.value:
            raise HistoryStudentNotFoundError(f"Student {student_id} not found")

        period = await self._db.scalar(
            select(AcademicYear).where(AcademicYear.year == school_year)
        )
        enrollments = await self._db.execute(
            select(Enrollment)
            .where(Enrollment.student_id == student_id, Enrollment.school_year == school_year)
            .order_by(Enrollment.created_at)
        )
        submissions = []
        if period is not None:
            submissions = await self._classroom.list_student_submissions(
                student_id,
                since=day_start(period.start_date),
                until=day_end(period.end_date),
            )

        records = await self._academic.list_records(student_id=student_id, school_year=school_year)
        return StudentHistoryResponse(
            student_id=student_id,
            school_year=school_year,
            period=SchoolYearResponse.model_validate(period) if period else None,
            enrollments=[EnrollmentResponse.model_validate(e) for e in enrollments.scalars().all()],
            grades=await self._academic.list_grades(student_id=student_id, school_year=school_year),
            academic_records=[AcademicRecordResponse.model_validate(r) for r in records],
            invoices=await self._accounting.list_invoices(
                student_id=student_id, school_year=school_year
            ),
            submissions=submissions,
        )

    async def parent_dashboard(self, parent_id: str) -> ParentDashboardResponse:
        result = await self._db.execute(
            select(User, Section.name)
            .join(ParentStudentLink, ParentStudentLink.student_id == User.id)
            .outerjoin(Section, Section.id == User.section_id)
            .where(ParentStudentLink.parent_id == parent_id)
            .order_by(User.name)
        )
        children = []
        for child, section_name in result.all():
            children.append(
                ChildSummary(
                    student_id=child.id,
                    name=child.name,
                    section_name=section_name,
                    grade_level=child.grade_level,
                    average_grade=await self._student_average(child.id),
                    outstanding_balance=await self._accounting.outstanding_balance(child.id),
                )
            )
        return ParentDashboardResponse(
            children=children,
            unread_notifications=await self._notifications.unread_count(parent_id),
        )

    # ------------------------------------------------------------------
    # Offices
    # ------------------------------------------------------------------

    async def guidance_dashboard(self) -> GuidanceDashboardResponse:
        today = utc_today()
        return GuidanceDashboardResponse(
            open_behavior_records=await self._count(
                BehaviorRecord.id, BehaviorRecord.status == "open"
            ),
            escalated_behavior_records=await self._count(
                BehaviorRecord.id, BehaviorRecord.status == "escalated"
            ),
            sessions_this_month=await self._count(
                CounselingSession.id,
                CounselingSession.session_date >= month_start(),
                CounselingSession.session_date < next_month_start(),
            ),
            active_programs=await self._count(
                WellnessProgram.id,
                or_(WellnessProgram.end_date.is_(None), WellnessProgram.end_date >= today),
            ),
        )

    async def registrar_dashboard(self) -> RegistrarDashboardResponse:
        result = await self._db.execute(
            select(Enrollment.status, func.count(Enrollment.id)).group_by(Enrollment.status)
        )
        by_status = dict.fromkeys(ENROLLMENT_STATUSES, 0)
        by_status.update({status: count for status, count in result.all()})
        return RegistrarDashboardResponse(
            requests_by_status=by_status,
            pending_transcripts=await self._count(
                TranscriptRequest.id, TranscriptRequest.status == "pending"
            ),
            submitted_applications=await self._count(
                EnrollmentApplication.id, EnrollmentApplication.status == "submitted"
            ),
        )

    async def accounting_dashboard(self) -> AccountingDashboardResponse:
        start, end = month_start(), next_month_start()
        expenses = await self._db.scalar(
            select(func.coalesce(func.sum(SchoolExpense.amount), 0)).where(
                SchoolExpense.expense_date >= start.date(),
                SchoolExpense.expense_date < end.date(),
            )
        )
        return AccountingDashboardResponse(
            invoices_by_status=await self._accounting.invoice_counts_by_status(),
            collected_this_month=await self._accounting.collected_between(start, end),
            outstanding_balance=await self._accounting.outstanding_balance(),
            expenses_this_month=quantize_cents(Decimal(str(expenses or 0))),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _count(self, column, *criteria) -> int:
        stmt = select(func.count(column))
        if criteria:
            stmt = stmt.where(*criteria)
        return await self._db.scalar(stmt) or 0

    async def _student_average(self, student_id: str) -> float | None:
        return _average(
            await self._db.scalar(select(func.avg(Grade.grade)).where(Grade.student_id == student_id))
        )

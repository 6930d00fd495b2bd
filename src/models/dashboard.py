# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Role dashboard and student history DTOs."""

from pydantic import BaseModel, Field

from src.models.academic import AcademicRecordResponse, GradeResponse
from src.models.accounting import InvoiceResponse
from src.models.classroom import MeetingResponse, SubmissionResponse, TaskResponse
from src.models.common import Money
from src.models.enrollment import EnrollmentResponse
from src.models.school import SchoolYearResponse, SectionResponse, SubjectResponse


class AdminStatsResponse(BaseModel):
    total_users: int
    active_enrollments: int
    total_sections: int
    pending_approvals: int
    users_by_role: dict[str, int] = Field(default_factory=dict)


class PrincipalStatsResponse(BaseModel):
    total_students: int
    total_teachers: int
    new_enrollments: int
    active_teachers: int
    average_grade: float | str = Field(description="Rounded to one decimal, or N/A")


class PrincipalFinancialResponse(BaseModel):
    monthly_revenue: Money
    yearly_revenue: Money
    outstanding_balance: Money
    faculty_expenses: Money
    facility_expenses: Money
    academic_expenses: Money
    expenses_by_category: dict[str, Money] = Field(default_factory=dict)


class GradeLevelCurriculum(BaseModel):
    grade_level: str
    subjects: list[SubjectResponse]


class CurriculumResponse(BaseModel):
    core_subjects: list[SubjectResponse]
    electives: list[SubjectResponse]
    by_grade_level: list[GradeLevelCurriculum]


class TeacherPerformanceEntry(BaseModel):
    teacher_id: str
    name: str
    classes_assigned: int
    subject: str = Field(description='"<n> subjects" or "No assignments"')
    subjects: list[str] = Field(default_factory=list)
    average_grade_given: float | None = None


class AcademicStatsResponse(BaseModel):
    total_subjects: int
    total_teachers: int
    active_teachers: int
    total_students: int
    total_sections: int
    average_grade_by_level: dict[str, float] = Field(default_factory=dict)


class TeacherDashboardResponse(BaseModel):
    sections: list[SectionResponse]
    tasks: int
    pending_submissions: int
    upcoming_meetings: list[MeetingResponse]
    unread_notifications: int


class StudentDashboardResponse(BaseModel):
    section: SectionResponse | None = None
    open_tasks: list[TaskResponse]
    upcoming_meetings: list[MeetingResponse]
    average_grade: float | None = None
    outstanding_balance: Money
    unread_notifications: int


class ChildSummary(BaseModel):
    student_id: str
    name: str
    section_name: str | None = None
    grade_level: str | None = None
    average_grade: float | None = None
    outstanding_balance: Money


class ParentDashboardResponse(BaseModel):
    children: list[ChildSummary]
    unread_notifications: int


class GuidanceDashboardResponse(BaseModel):
    open_behavior_records: int
    escalated_behavior_records: int
    sessions_this_month: int
    active_programs: int


class RegistrarDashboardResponse(BaseModel):
    requests_by_status: dict[str, int]
    pending_transcripts: int
    submitted_applications: int


class AccountingDashboardResponse(BaseModel):
    invoices_by_status: dict[str, int]
    collected_this_month: Money
    outstanding_balance: Money
    expenses_this_month: Money


class StudentHistoryResponse(BaseModel):
    """Everything recorded for one student in one school year."""

    student_id: str
    school_year: str
    period: SchoolYearResponse | None = Field(
        default=None, description="Dates of the school year when it is registered"
    )
    enrollments: list[EnrollmentResponse]
    grades: list[GradeResponse]
    academic_records: list[AcademicRecordResponse]
    invoices: list[InvoiceResponse]
    submissions: list[SubmissionResponse] = Field(
        description="Task submissions dated within the school year"
    )

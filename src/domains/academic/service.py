# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic records service.

Covers quarterly grades recorded by teachers and administrators, and
the registrar's records: final academic records, graduation candidates
and transcript requests. Students are notified when the registrar
records something for them; registrars are notified of new transcript
requests.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.roles import Role
from src.domains.notification.service import NotificationService
from src.infrastructure.database.models import (
    AcademicRecord,
    Grade,
    GraduationCandidate,
    Subject,
    TeacherAssignment,
    TranscriptRequest,
    User,
)
from src.models.academic import (
    AcademicRecordCreateRequest,
    AcademicRecordUpdateRequest,
    GradeCreateRequest,
    GradeResponse,
    GradeUpdateRequest,
    GraduationCandidateCreateRequest,
    GraduationCandidateUpdateRequest,
    TranscriptRequestCreateRequest,
    TranscriptRequestUpdateRequest,
)

logger = logging.getLogger(__name__)


class AcademicServiceError(Exception):
    """Base exception for academic service errors."""

    pass


class StudentNotFoundError(AcademicServiceError):
    """Raised when the referenced user is missing or not a student."""

    pass


class GradeNotFoundError(AcademicServiceError):
    pass


class GradeExistsError(AcademicServiceError):
    """Raised when a grade already exists for the student, subject and quarter."""

    pass


class GradeAccessDeniedError(AcademicServiceError):
    """Raised when a teacher records a grade for a student they do not teach."""

    pass


class RecordNotFoundError(AcademicServiceError):
    pass


class CandidateExistsError(AcademicServiceError):
    pass


class TranscriptNotFoundError(AcademicServiceError):
    pass


class AcademicService:
    """Grades and registrar records.

    Attributes:
        _db: Async database session.
        _notifier: Notification service for workflow notifications.
    """

    def __init__(self, db: AsyncSession, notifier: NotificationService | None = None) -> None:
        self._db = db
        self._notifier = notifier or NotificationService(db)

    # ------------------------------------------------------------------
    # Grades
    # ------------------------------------------------------------------

    async def list_grades(
        self,
        student_id: str | None = None,
        school_year: str | None = None,
        subject_id: str | None = None,
        teacher_id: str | None = None,
    ) -> list[GradeResponse]:
        stmt = select(Grade, Subject.name).join(Subject, Subject.id == Grade.subject_id)
        if student_id:
            stmt = stmt.where(Grade.student_id == student_id)
        if school_year:
            stmt = stmt.where(Grade.school_year == school_year)
        if subject_id:
            stmt = stmt.where(Grade.subject_id == subject_id)
        if teacher_id:
            stmt = stmt.where(Grade.teacher_id == teacher_id)

        result = await self._db.execute(
            stmt.order_by(Grade.school_year, Subject.name, Grade.quarter)
        )
        return [self._grade_response(grade, subject_name) for grade, subject_name in result.all()]

    async def record_grade(
        self,
        request: GradeCreateRequest,
        recorded_by: str,
        as_teacher: bool = False,
    ) -> GradeResponse:
        """Record a quarterly grade.

        Teachers may only grade students of sections they teach the
        subject in.

        Raises:
            StudentNotFoundError: If the student does not exist.
            GradeAccessDeniedError: If a teacher does not teach the student.
            GradeExistsError: If the quarter is already graded.
        """
        student = await self._get_student(request.student_id)
        subject = await self._db.get(Subject, request.subject_id)
        if subject is None:
            raise AcademicServiceError(f"Subject {request.subject_id} not found")

        if as_teacher and not await self._teaches(recorded_by, student, subject.id):
            raise GradeAccessDeniedError("You do not teach this subject to this student")

        existing = await self._db.scalar(
            select(Grade.id).where(
                Grade.student_id == request.student_id,
                Grade.subject_id == request.subject_id,
                Grade.quarter == request.quarter,
                Grade.school_year == request.school_year,
            )
        )
        if existing:
            raise GradeExistsError("Grade already recorded for this quarter")

        grade = Grade(**request.model_dump(), teacher_id=recorded_by)
        self._db.add(grade)
        await self._db.commit()
        await self._db.refresh(grade)

        logger.info(
            "Grade recorded: student=%s, subject=%s, quarter=%d",
            grade.student_id,
            grade.subject_id,
            grade.quarter,
        )
        return self._grade_response(grade, subject.name)

    async def update_grade(
        self,
        grade_id: str,
        request: GradeUpdateRequest,
        teacher_id: str | None = None,
    ) -> GradeResponse:
        """Change a grade. With ``teacher_id`` only that teacher's grades match."""
        grade = await self._get_grade(grade_id)
        if teacher_id and grade.teacher_id != teacher_id:
            raise GradeNotFoundError(f"Grade {grade_id} not found")

        for field, value in request.model_dump(exclude_unset=True).items():
            if value is None and field == "grade":
                continue
            setattr(grade, field, value)

        await self._db.commit()
        await self._db.refresh(grade)
        subject_name = await self._db.scalar(select(Subject.name).where(Subject.id == grade.subject_id))
        return self._grade_response(grade, subject_name)

    async def delete_grade(self, grade_id: str) -> None:
        grade = await self._get_grade(grade_id)
        await self._db.delete(grade)
        await self._db.commit()

    # ------------------------------------------------------------------
    # Academic records
    # ------------------------------------------------------------------

    async def list_records(
        self,
        student_id: str | None = None,
        school_year: str | None = None,
    ) -> list[AcademicRecord]:
        stmt = select(AcademicRecord)
        if student_id:
            stmt = stmt.where(AcademicRecord.student_id == student_id)
        if school_year:
            stmt = stmt.where(AcademicRecord.school_year == school_year)
        result = await self._db.execute(
            stmt.order_by(AcademicRecord.school_year.desc(), AcademicRecord.subject_name)
        )
        return list(result.scalars().all())

    async def create_record(
        self, request: AcademicRecordCreateRequest, recorded_by: str
    ) -> AcademicRecord:
        await self._get_student(request.student_id)

        record = AcademicRecord(**request.model_dump(), recorded_by=recorded_by)
        self._db.add(record)
        await self._db.commit()
        await self._db.refresh(record)

        await self._notifier.notify_user(
            record.student_id,
            "Academic Record",
            f"New grade recorded for {record.subject_name}",
            type="grade",
            sender_id=recorded_by,
        )
        logger.info("Academic record created: %s", record.id)
        return record

    async def update_record(
        self, record_id: str, request: AcademicRecordUpdateRequest
    ) -> AcademicRecord:
        record = await self._db.get(AcademicRecord, record_id)
        if record is None:
            raise RecordNotFoundError(f"Academic record {record_id} not found")

        for field, value in request.model_dump(exclude_unset=True).items():
            if value is None and field == "final_grade":
                continue
            setattr(record, field, value)

        await self._db.commit()
        await self._db.refresh(record)
        return record

    # ------------------------------------------------------------------
    # Graduation candidates
    # ------------------------------------------------------------------

    async def list_candidates(self, school_year: str | None = None) -> list[GraduationCandidate]:
        stmt = select(GraduationCandidate)
        if school_year:
            stmt = stmt.where(GraduationCandidate.school_year == school_year)
        result = await self._db.execute(stmt.order_by(GraduationCandidate.created_at.desc()))
        return list(result.scalars().all())

    async def add_candidate(
        self, request: GraduationCandidateCreateRequest, added_by: str | None = None
    ) -> GraduationCandidate:
        """Add a student to the graduation list of a school year.

        Raises:
            CandidateExistsError: If the student is already listed for that year.
        """
        await self._get_student(request.student_id)
        existing = await self._db.scalar(
            select(GraduationCandidate.id).where(
                GraduationCandidate.student_id == request.student_id,
                GraduationCandidate.school_year == request.school_year,
            )
        )
        if existing:
            raise CandidateExistsError("Student is already a graduation candidate for this year")

        candidate = GraduationCandidate(**request.model_dump(), status="pending")
        self._db.add(candidate)
        await self._db.commit()
        await self._db.refresh(candidate)

        await self._notifier.notify_user(
            candidate.student_id,
            "Graduation Candidate",
            f"You have been added to graduation candidates for {candidate.school_year}",
            type="graduation",
            sender_id=added_by,
        )
        return candidate

    async def update_candidate(
        self, candidate_id: str, request: GraduationCandidateUpdateRequest
    ) -> GraduationCandidate:
        candidate = await self._db.get(GraduationCandidate, candidate_id)
        if candidate is None:
            raise RecordNotFoundError(f"Graduation candidate {candidate_id} not found")

        for field, value in request.model_dump(exclude_unset=True).items():
            if value is None and field == "status":
                continue
            setattr(candidate, field, value)

        await self._db.commit()
        await self._db.refresh(candidate)
        return candidate

    # ------------------------------------------------------------------
    # Transcript requests
    # ------------------------------------------------------------------

    async def list_transcripts(
        self,
        status: str | None = None,
        student_id: str | None = None,
    ) -> list[TranscriptRequest]:
        stmt = select(TranscriptRequest)
        if status:
            stmt = stmt.where(TranscriptRequest.status == status)
        if student_id:
            stmt = stmt.where(TranscriptRequest.student_id == student_id)
        result = await self._db.execute(stmt.order_by(TranscriptRequest.created_at.desc()))
        return list(result.scalars().all())

    async def request_transcript(
        self, student_id: str, request: TranscriptRequestCreateRequest
    ) -> TranscriptRequest:
        await self._get_student(student_id)

        transcript = TranscriptRequest(
            student_id=student_id,
            purpose=request.purpose,
            copies=request.copies,
            status="pending",
        )
        self._db.add(transcript)
        await self._db.commit()
        await self._db.refresh(transcript)

        await self._notifier.notify_role(
            Role.REGISTRAR.value,
            "Transcript Request",
            "New transcript request from student",
            type="transcript",
            sender_id=student_id,
        )
        logger.info("Transcript requested: %s by %s", transcript.id, student_id)
        return transcript

    async def update_transcript(
        self,
        transcript_id: str,
        request: TranscriptRequestUpdateRequest,
        processed_by: str,
    ) -> TranscriptRequest:
        """Move a transcript request along; the student hears about status changes."""
        transcript = await self._db.get(TranscriptRequest, transcript_id)
        if transcript is None:
            raise TranscriptNotFoundError(f"Transcript request {transcript_id} not found")

        previous_status = transcript.status
        transcript.status = request.status
        if "remarks" in request.model_fields_set:
            transcript.remarks = request.remarks
        transcript.processed_by = processed_by

        await self._db.commit()
        await self._db.refresh(transcript)

        if transcript.status != previous_status:
            await self._notifier.notify_user(
                transcript.student_id,
                "Transcript Request",
                f"Your transcript request status: {transcript.status}",
                type="transcript",
                sender_id=processed_by,
            )
        return transcript

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_student(self, student_id: str) -> User:
        user = await self._db.get(User, student_id)
        if user is None or user.role != Role.STUDENT.value:
            raise StudentNotFoundError(f"Student {student_id} not found")
        return user

    async def _get_grade(self, grade_id: str) -> Grade:
        grade = await self._db.get(Grade, grade_id)
        if grade is None:
            raise GradeNotFoundError(f"Grade {grade_id} not found")
        return grade

    async def _teaches(self, teacher_id: str, student: User, subject_id: str) -> bool:
        if not student.section_id:
            return False
        assignment = await self._db.scalar(
            select(TeacherAssignment.id).where(
                TeacherAssignment.teacher_id == teacher_id,
                TeacherAssignment.section_id == student.section_id,
                TeacherAssignment.subject_id == subject_id,
            )
        )
        return assignment is not None

    @staticmethod
    def _grade_response(grade: Grade, subject_name: str | None) -> GradeResponse:
        return GradeResponse(
            id=grade.id,
            student_id=grade.student_id,
            subject_id=grade.subject_id,
            subject_name=subject_name,
            teacher_id=grade.teacher_id,
            quarter=grade.quarter,
            grade=grade.grade,
            school_year=grade.school_year,
            remarks=grade.remarks,
            created_at=grade.created_at,
        )

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Classroom service: tasks, quizzes, submissions and online meetings.

Teachers manage tasks and meetings for the sections they advise or are
assigned to. Students see and submit work for their own section. Quiz
and test answers are scored against the answer key on submission.
"""

import logging
from collections.abc import Sequence
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.roles import Role
from src.domains.notification.service import NotificationService
from src.infrastructure.database.models import (
    Meeting,
    Section,
    Task,
    TaskQuestion,
    TaskSubmission,
    TeacherAssignment,
    User,
    new_id,
)
from src.models.classroom import (
    AUTO_GRADED_TYPES,
    MeetingCreateRequest,
    SubmissionCreateRequest,
    SubmissionGradeRequest,
    SubmissionResponse,
    TaskCreateRequest,
    TaskQuestionsResponse,
    TaskQuestionView,
    TaskResponse,
    TaskUpdateRequest,
)
from src.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class ClassroomServiceError(Exception):
    """Base exception for classroom service errors."""

    pass


class TaskNotFoundError(ClassroomServiceError):
    """Raised when a task is not found or not visible to the caller."""

    pass


class MeetingNotFoundError(ClassroomServiceError):
    pass


class SubmissionNotFoundError(ClassroomServiceError):
    pass


class SectionAccessDeniedError(ClassroomServiceError):
    """Raised when a teacher acts on a section they do not teach."""

    pass


class SubmissionLockedError(ClassroomServiceError):
    """Raised when resubmitting work that has already been graded."""

    pass


class TaskClosedError(ClassroomServiceError):
    """Raised when submitting after the task's due date."""

    pass


async def teaches_section(db: AsyncSession, teacher_id: str, section_id: str) -> bool:
    """Whether the teacher advises the section or is assigned a subject in it."""
    adviser_id = await db.scalar(select(Section.adviser_id).where(Section.id == section_id))
    if adviser_id == teacher_id:
        return True
    assignment = await db.scalar(
        select(TeacherAssignment.id).where(
            TeacherAssignment.teacher_id == teacher_id,
            TeacherAssignment.section_id == section_id,
        )
    )
    return assignment is not None


def score_answers(questions: Sequence[TaskQuestion], answers: dict[str, str]) -> Decimal:
    """Percentage of questions answered correctly, rounded to two places.

    Answers are keyed by question id and compared with the key after
    trimming surrounding whitespace. Unanswered questions count as wrong.
    """
    if not questions:
        return Decimal("0.00")
    correct = sum(
        1
        for q in questions
        if (answers.get(q.id) or "").strip() == q.answer.strip()
    )
    score = Decimal(correct) * 100 / Decimal(len(questions))
    return score.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class ClassroomService:
    """Tasks, submissions and meetings.

    Attributes:
        _db: Async database session.
        _notifier: Notification service.
    """

    def __init__(self, db: AsyncSession, notifier: NotificationService | None = None) -> None:
        self._db = db
        self._notifier = notifier or NotificationService(db)

    # ------------------------------------------------------------------
    # Teacher side
    # ------------------------------------------------------------------

    async def teacher_sections(self, teacher_id: str) -> list[Section]:
        """Sections the teacher advises or teaches a subject in."""
        assigned = select(TeacherAssignment.section_id).where(
            TeacherAssignment.teacher_id == teacher_id
        )
        result = await self._db.execute(
            select(Section)
            .where((Section.adviser_id == teacher_id) | Section.id.in_(assigned))
            .order_by(Section.grade_level, Section.name)
        )
        return list(result.scalars().all())

    async def list_teacher_tasks(self, teacher_id: str, section_id: str | None = None) -> list[Task]:
        stmt = select(Task).where(Task.teacher_id == teacher_id)
        if section_id:
            stmt = stmt.where(Task.section_id == section_id)
        result = await self._db.execute(stmt.order_by(Task.created_at.desc()))
        return list(result.scalars().all())

    async def create_task(self, teacher_id: str, request: TaskCreateRequest) -> Task:
        """Create a task for a section the teacher teaches and notify its students.

        Raises:
            SectionAccessDeniedError: If the teacher does not teach the section.
        """
        await self._ensure_teaches(teacher_id, request.section_id)

        task = Task(
            id=new_id(),
            teacher_id=teacher_id,
            section_id=request.section_id,
            subject_id=request.subject_id,
            title=request.title,
            description=request.description,
            task_type=request.task_type,
            timer_minutes=request.timer_minutes,
            due_date=ensure_utc(request.due_date),
        )
        self._db.add(task)
        self._db.add_all(
            TaskQuestion(
                task_id=task.id,
                position=position,
                question=q.question,
                choices=q.choices,
                answer=q.answer,
            )
            for position, q in enumerate(request.questions, start=1)
        )
        await self._db.commit()
        await self._db.refresh(task)

        await self._notifier.notify_section_students(
            task.section_id,
            "New Task",
            f"New {task.task_type}: {task.title}",
            type="task",
            sender_id=teacher_id,
        )
        logger.info("Task created: %s (section=%s)", task.id, task.section_id)
        return task

    async def list_task_questions(self, teacher_id: str, task_id: str) -> list[TaskQuestion]:
        """Questions of one of the teacher's tasks, answer key included."""
        await self._get_teacher_task(teacher_id, task_id)
        return await self._questions(task_id)

    async def update_task(self, teacher_id: str, task_id: str, request: TaskUpdateRequest) -> Task:
        task = await self._get_teacher_task(teacher_id, task_id)

        for field, value in request.model_dump(exclude_unset=True).items():
            if value is None and field in ("title", "task_type"):
                continue
            setattr(task, field, ensure_utc(value) if field == "due_date" else value)

        await self._db.commit()
        await self._db.refresh(task)
        return task

    async def delete_task(self, teacher_id: str, task_id: str) -> None:
        task = await self._get_teacher_task(teacher_id, task_id)
        await self._db.delete(task)
        await self._db.commit()
        logger.info("Task deleted: %s", task_id)

    async def list_submissions(self, teacher_id: str, task_id: str) -> list[SubmissionResponse]:
        await self._get_teacher_task(teacher_id, task_id)
        result = await self._db.execute(
            select(TaskSubmission, User.name)
            .join(User, User.id == TaskSubmission.student_id)
            .where(TaskSubmission.task_id == task_id)
            .order_by(TaskSubmission.submitted_at)
        )
        return [self._submission_response(s, name) for s, name in result.all()]

    async def grade_submission(
        self,
        teacher_id: str,
        submission_id: str,
        request: SubmissionGradeRequest,
    ) -> SubmissionResponse:
        """Grade a submission to one of the teacher's tasks.

        Raises:
            SubmissionNotFoundError: If it does not exist or belongs to another teacher.
        """
        result = await self._db.execute(
            select(TaskSubmission, Task)
            .join(Task, Task.id == TaskSubmission.task_id)
            .where(TaskSubmission.id == submission_id)
        )
        row = result.first()
        if row is None or row[1].teacher_id != teacher_id:
            raise SubmissionNotFoundError(f"Submission {submission_id} not found")
        submission, task = row

        submission.grade = request.grade
        submission.feedback = request.feedback
        submission.graded_at = utc_now()
        await self._db.commit()
        await self._db.refresh(submission)

        await self._notifier.notify_user(
            submission.student_id,
            "Submission Graded",
            f"Your submission for {task.title} has been graded",
            type="grade",
            sender_id=teacher_id,
        )
        student_name = await self._db.scalar(select(User.name).where(User.id == submission.student_id))
        return self._submission_response(submission, student_name)

    async def pending_submission_count(self, teacher_id: str) -> int:
        count = await self._db.scalar(
            select(func.count(TaskSubmission.id))
            .join(Task, Task.id == TaskSubmission.task_id)
            .where(Task.teacher_id == teacher_id, TaskSubmission.graded_at.is_(None))
        )
        return count or 0

    async def create_meeting(self, organizer_id: str, request: MeetingCreateRequest) -> Meeting:
        """Schedule a meeting for a section and notify its students."""
        await self._ensure_teaches(organizer_id, request.section_id)

        meeting = Meeting(
            organizer_id=organizer_id,
            section_id=request.section_id,
            title=request.title,
            meeting_url=request.meeting_url,
            scheduled_at=ensure_utc(request.scheduled_at),
        )
        self._db.add(meeting)
        await self._db.commit()
        await self._db.refresh(meeting)

        await self._notifier.notify_section_students(
            meeting.section_id,
            "New Meeting",
            f"New meeting scheduled: {meeting.title}",
            type="meeting",
            sender_id=organizer_id,
            link=meeting.meeting_url,
        )
        logger.info("Meeting created: %s (section=%s)", meeting.id, meeting.section_id)
        return meeting

    async def list_teacher_meetings(self, organizer_id: str, upcoming_only: bool = False) -> list[Meeting]:
        stmt = select(Meeting).where(Meeting.organizer_id == organizer_id)
        if upcoming_only:
            stmt = stmt.where(Meeting.scheduled_at >= utc_now())
        result = await self._db.execute(stmt.order_by(Meeting.scheduled_at))
        return list(result.scalars().all())

    async def delete_meeting(self, organizer_id: str, meeting_id: str) -> None:
        meeting = await self._db.get(Meeting, meeting_id)
        if meeting is None or meeting.organizer_id != organizer_id:
            raise MeetingNotFoundError(f"Meeting {meeting_id} not found")
        await self._db.delete(meeting)
        await self._db.commit()

    # ------------------------------------------------------------------
    # Student side
    # ------------------------------------------------------------------

    async def list_student_tasks(self, student_id: str) -> list[Task]:
        section_id = await self._student_section(student_id)
        if section_id is None:
            return []
        result = await self._db.execute(
            select(Task).where(Task.section_id == section_id).order_by(Task.due_date, Task.created_at)
        )
        return list(result.scalars().all())

    async def list_student_meetings(self, student_id: str, upcoming_only: bool = True) -> list[Meeting]:
        section_id = await self._student_section(student_id)
        if section_id is None:
            return []
        stmt = select(Meeting).where(Meeting.section_id == section_id)
        if upcoming_only:
            stmt = stmt.where(Meeting.scheduled_at >= utc_now())
        result = await self._db.execute(stmt.order_by(Meeting.scheduled_at))
        return list(result.scalars().all())

    async def list_student_submissions(
        self,
        student_id: str,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list[SubmissionResponse]:
        """The student's submissions, newest first, optionally within [since, until)."""
        stmt = select(TaskSubmission).where(TaskSubmission.student_id == student_id)
        if since is not None:
            stmt = stmt.where(TaskSubmission.submitted_at >= since)
        if until is not None:
            stmt = stmt.where(TaskSubmission.submitted_at < until)
        result = await self._db.execute(stmt.order_by(TaskSubmission.submitted_at.desc()))
        return [self._submission_response(s, None) for s in result.scalars().all()]

    async def open_task_questions(self, student_id: str, task_id: str) -> TaskQuestionsResponse:
        """Questions of a quiz or test without the answer key.

        Raises:
            TaskNotFoundError: If the task is not in the student's section.
            SubmissionLockedError: If the student's submission is already graded.
        """
        task = await self._get_student_task(student_id, task_id)
        submission = await self._find_submission(task_id, student_id)
        if submission is not None and submission.graded_at is not None:
            raise SubmissionLockedError("You have already completed this task")

        questions = await self._questions(task_id)
        return TaskQuestionsResponse(
            task=TaskResponse.model_validate(task),
            questions=[TaskQuestionView.model_validate(q) for q in questions],
        )

    async def submit(
        self,
        student_id: str,
        task_id: str,
        request: SubmissionCreateRequest,
    ) -> SubmissionResponse:
        """Submit work for a task of the student's section.

        A second submission replaces the first while it is ungraded. Quiz
        and test answers are scored at once, which grades and locks the
        submission. The teacher is notified of every submission.

        Raises:
            TaskNotFoundError: If the task is not in the student's section.
            TaskClosedError: If the due date has passed.
            SubmissionLockedError: If the existing submission is graded.
        """
        task = await self._get_student_task(student_id, task_id)
        if task.due_date is not None and utc_now() > ensure_utc(task.due_date):
            raise TaskClosedError("Task submission deadline has passed")

        submission = await self._find_submission(task_id, student_id)
        if submission is not None and submission.graded_at is not None:
            raise SubmissionLockedError("Submission has already been graded")

        if submission is None:
            submission = TaskSubmission(task_id=task_id, student_id=student_id, auto_graded=False)
            self._db.add(submission)
        submission.submission_text = request.submission_text
        submission.file_url = request.file_url
        submission.submitted_at = utc_now()
        submission.answers = request.answers

        if task.task_type in AUTO_GRADED_TYPES and request.answers:
            questions = await self._questions(task_id)
            if questions:
                submission.grade = score_answers(questions, request.answers)
                submission.graded_at = submission.submitted_at
                submission.auto_graded = True

        await self._db.commit()
        await self._db.refresh(submission)

        await self._notifier.notify_user(
            task.teacher_id,
            "New Task Submission",
            f"A student has submitted {task.title}",
            type="task_submission",
            sender_id=student_id,
        )
        logger.info("Submission stored: task=%s, student=%s", task_id, student_id)
        return self._submission_response(submission, None)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _ensure_teaches(self, teacher_id: str, section_id: str) -> None:
        section = await self._db.get(Section, section_id)
        if section is None:
            raise SectionAccessDeniedError(f"Section {section_id} not found")
        if not await teaches_section(self._db, teacher_id, section_id):
            raise SectionAccessDeniedError("You do not teach this section")

    async def _get_teacher_task(self, teacher_id: str, task_id: str) -> Task:
        task = await self._db.get(Task, task_id)
        if task is None or task.teacher_id != teacher_id:
            raise TaskNotFoundError(f"Task {task_id} not found")
        return task

    async def _get_student_task(self, student_id: str, task_id: str) -> Task:
        task = await self._db.get(Task, task_id)
        section_id = await self._student_section(student_id)
        if task is None or section_id is None or task.section_id != section_id:
            raise TaskNotFoundError(f"Task {task_id} not found")
        return task

    async def _find_submission(self, task_id: str, student_id: str) -> TaskSubmission | None:
        result = await self._db.execute(
            select(TaskSubmission).where(
                TaskSubmission.task_id == task_id,
                TaskSubmission.student_id == student_id,
            )
        )
        return result.scalar_one_or_none()

    async def _questions(self, task_id: str) -> list[TaskQuestion]:
        result = await self._db.execute(
            select(TaskQuestion)
            .where(TaskQuestion.task_id == task_id)
            .order_by(TaskQuestion.position)
        )
        return list(result.scalars().all())

    async def _student_section(self, student_id: str) -> str | None:
        return await self._db.scalar(
            select(User.section_id).where(User.id == student_id, User.role == Role.STUDENT.value)
        )

    @staticmethod
    def _submission_response(submission: TaskSubmission, student_name: str | None) -> SubmissionResponse:
        return SubmissionResponse(
            id=submission.id,
            task_id=submission.task_id,
            student_id=submission.student_id,
            student_name=student_name,
            submission_text=submission.submission_text,
            file_url=submission.file_url,
            answers=submission.answers,
            submitted_at=submission.submitted_at,
            grade=submission.grade,
            feedback=submission.feedback,
            graded_at=submission.graded_at,
            auto_graded=submission.auto_graded,
        )

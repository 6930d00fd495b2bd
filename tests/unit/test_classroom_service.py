# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for quiz scoring and task submission rules."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from src.domains.classroom.service import (
    ClassroomService,
    TaskClosedError,
    score_answers,
)
from src.infrastructure.database.models import Task, TaskQuestion, TaskSubmission
from src.models.classroom import (
    SubmissionCreateRequest,
    TaskCreateRequest,
    TaskQuestionCreate,
)


def make_question(question_id: str, answer: str, position: int = 1) -> TaskQuestion:
    return TaskQuestion(
        id=question_id,
        task_id="task-1",
        position=position,
        question=f"Question {position}",
        choices=None,
        answer=answer,
    )


def make_task(task_type: str = "quiz", due_date: datetime | None = None) -> Task:
    return Task(
        id="task-1",
        teacher_id="teacher-1",
        section_id="section-1",
        title="Fractions Quiz",
        task_type=task_type,
        due_date=due_date,
    )


@pytest.fixture
def notifier() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def service(mock_db: AsyncMock, notifier: AsyncMock) -> ClassroomService:
    return ClassroomService(mock_db, notifier=notifier)


class TestScoreAnswers:
    """Tests for the quiz score."""

    def test_all_correct(self) -> None:
        """Test a perfect score."""
        questions = [make_question("q1", "4"), make_question("q2", "Manila", 2)]

        assert score_answers(questions, {"q1": "4", "q2": "Manila"}) == Decimal("100.00")

    def test_rounds_to_two_places(self) -> None:
        """Test that two of three correct is 66.67."""
        questions = [make_question(f"q{i}", "A", i) for i in (1, 2, 3)]

        assert score_answers(questions, {"q1": "A", "q2": "A", "q3": "B"}) == Decimal("66.67")

    def test_whitespace_is_trimmed_and_case_matters(self) -> None:
        """Test the comparison of answers with the key."""
        questions = [make_question("q1", "Manila"), make_question("q2", "Cebu", 2)]

        assert score_answers(questions, {"q1": "  Manila ", "q2": "cebu"}) == Decimal("50.00")

    def test_unanswered_questions_are_wrong(self) -> None:
        """Test that missing answers count against the score."""
        questions = [make_question(f"q{i}", "A", i) for i in (1, 2, 3, 4)]

        assert score_answers(questions, {"q1": "A"}) == Decimal("25.00")

    def test_no_questions(self) -> None:
        """Test that a task without questions scores zero."""
        assert score_answers([], {"q1": "A"}) == Decimal("0.00")


class TestRequestValidation:
    """Tests for task and submission request rules."""

    def test_questions_only_on_quizzes(self) -> None:
        """Test that an assignment cannot carry questions."""
        with pytest.raises(ValidationError, match="quizzes and tests"):
            TaskCreateRequest(
                section_id="section-1",
                title="Essay",
                task_type="assignment",
                questions=[{"question": "2 + 2?", "answer": "4"}],
            )

    def test_answer_must_be_a_choice(self) -> None:
        """Test multiple choice answer keys."""
        with pytest.raises(ValidationError, match="one of the choices"):
            TaskQuestionCreate(question="2 + 2?", choices=["3", "5"], answer="4")

        question = TaskQuestionCreate(question="2 + 2?", choices=["3", "4"], answer=" 4")
        assert question.answer == " 4"

    def test_answers_alone_are_a_submission(self) -> None:
        """Test that quiz answers satisfy the content rule."""
        request = SubmissionCreateRequest(answers={"q1": "4"})
        assert request.answers == {"q1": "4"}

        with pytest.raises(ValidationError):
            SubmissionCreateRequest()


class TestSubmit:
    """Tests for ClassroomService.submit."""

    async def test_late_submission_is_rejected(
        self, service: ClassroomService, mock_db: AsyncMock, notifier: AsyncMock
    ) -> None:
        """Test that nothing is stored after the due date."""
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        mock_db.get.return_value = make_task("assignment", due_date=past)
        mock_db.scalar.return_value = "section-1"

        with pytest.raises(TaskClosedError, match="deadline has passed"):
            await service.submit("student-1", "task-1", SubmissionCreateRequest(submission_text="Done"))

        mock_db.add.assert_not_called()
        mock_db.commit.assert_not_awaited()
        notifier.notify_user.assert_not_awaited()

    async def test_quiz_answers_are_graded(
        self,
        service: ClassroomService,
        mock_db: AsyncMock,
        notifier: AsyncMock,
        make_result,
    ) -> None:
        """Test that quiz answers are scored and the teacher is told."""
        future = datetime.now(timezone.utc) + timedelta(days=1)
        mock_db.get.return_value = make_task("quiz", due_date=future)
        mock_db.scalar.return_value = "section-1"
        mock_db.execute.side_effect = [
            make_result(value=None),
            make_result(items=[make_question("q1", "4"), make_question("q2", "Manila", 2)]),
        ]

        async def refresh(submission: TaskSubmission) -> None:
            submission.id = "submission-1"

        mock_db.refresh.side_effect = refresh

        response = await service.submit(
            "student-1", "task-1", SubmissionCreateRequest(answers={"q1": "4", "q2": "Cebu"})
        )

        assert response.grade == Decimal("50.00")
        assert response.auto_graded is True
        assert response.graded_at == response.submitted_at
        assert response.answers == {"q1": "4", "q2": "Cebu"}
        mock_db.commit.assert_awaited_once()

        notifier.notify_user.assert_awaited_once()
        args, kwargs = notifier.notify_user.await_args
        assert args == ("teacher-1", "New Task Submission", "A student has submitted Fractions Quiz")
        assert kwargs["type"] == "task_submission"
        assert kwargs["sender_id"] == "student-1"

    async def test_assignment_is_not_graded(
        self,
        service: ClassroomService,
        mock_db: AsyncMock,
        notifier: AsyncMock,
        make_result,
    ) -> None:
        """Test that text submissions wait for the teacher."""
        mock_db.get.return_value = make_task("assignment")
        mock_db.scalar.return_value = "section-1"
        mock_db.execute.side_effect = [make_result(value=None)]

        async def refresh(submission: TaskSubmission) -> None:
            submission.id = "submission-1"

        mock_db.refresh.side_effect = refresh

        response = await service.submit(
            "student-1", "task-1", SubmissionCreateRequest(submission_text="My essay")
        )

        assert response.grade is None
        assert response.auto_graded is False
        assert mock_db.execute.await_count == 1
        notifier.notify_user.assert_awaited_once()

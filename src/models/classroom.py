# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Task, quiz question, submission, learning module and meeting DTOs."""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.models.academic import GradeValue
from src.models.common import UTCDateTime

TaskType = Literal["assignment", "quiz", "test"]

# Task types whose questions are graded automatically on submission.
AUTO_GRADED_TYPES = ("quiz", "test")


class TaskQuestionCreate(BaseModel):
    question: str = Field(min_length=1)
    choices: list[Annotated[str, Field(min_length=1)]] | None = Field(default=None, min_length=2)
    answer: str = Field(min_length=1)

    @model_validator(mode="after")
    def answer_among_choices(self) -> "TaskQuestionCreate":
        if self.choices and self.answer.strip() not in [c.strip() for c in self.choices]:
            raise ValueError("answer must be one of the choices")
        return self


class TaskQuestionView(BaseModel):
    """A question as students see it, without the answer key."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    position: int
    question: str
    choices: list[str] | None = None


class TaskQuestionResponse(TaskQuestionView):
    answer: str


class TaskCreateRequest(BaseModel):
    section_id: str
    subject_id: str | None = None
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    task_type: TaskType = "assignment"
    timer_minutes: int | None = Field(default=None, ge=1, le=600)
    due_date: UTCDateTime | None = None
    questions: list[TaskQuestionCreate] = Field(default_factory=list)

    @model_validator(mode="after")
    def questions_need_quiz(self) -> "TaskCreateRequest":
        if self.questions and self.task_type not in AUTO_GRADED_TYPES:
            raise ValueError("questions are only allowed for quizzes and tests")
        return self


class TaskUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    task_type: TaskType | None = None
    timer_minutes: int | None = Field(default=None, ge=1, le=600)
    due_date: UTCDateTime | None = None


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    teacher_id: str
    section_id: str
    subject_id: str | None = None
    title: str
    description: str | None = None
    task_type: str
    timer_minutes: int | None = None
    due_date: UTCDateTime | None = None
    created_at: UTCDateTime


class TaskQuestionsResponse(BaseModel):
    """A quiz or test opened by a student."""

    task: TaskResponse
    questions: list[TaskQuestionView]


class SubmissionCreateRequest(BaseModel):
    submission_text: str | None = None
    file_url: str | None = Field(default=None, max_length=1000)
    answers: dict[str, str] | None = Field(
        default=None, description="Answers keyed by question id"
    )

    @model_validator(mode="after")
    def require_content(self) -> "SubmissionCreateRequest":
        if not (self.submission_text or self.file_url or self.answers):
            raise ValueError("submission_text, file_url or answers is required")
        return self


class SubmissionGradeRequest(BaseModel):
    grade: GradeValue
    feedback: str | None = None


class SubmissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    task_id: str
    student_id: str
    student_name: str | None = None
    submission_text: str | None = None
    file_url: str | None = None
    answers: dict[str, str] | None = None
    submitted_at: UTCDateTime
    grade: GradeValue | None = None
    feedback: str | None = None
    graded_at: UTCDateTime | None = None
    auto_graded: bool = False


class MeetingCreateRequest(BaseModel):
    section_id: str
    title: str = Field(min_length=1, max_length=255)
    meeting_url: str = Field(min_length=1, max_length=1000)
    scheduled_at: UTCDateTime


class MeetingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    organizer_id: str
    section_id: str
    title: str
    meeting_url: str
    scheduled_at: UTCDateTime
    created_at: UTCDateTime


class LearningModuleUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None


class LearningModuleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    teacher_id: str
    section_id: str
    title: str
    description: str | None = None
    file_url: str
    file_name: str
    file_size: int
    content_type: str
    created_at: UTCDateTime

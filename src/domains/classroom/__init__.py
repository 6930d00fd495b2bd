# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Classroom domain: tasks, quizzes, submissions and meetings.

Learning modules live in ``src.domains.classroom.modules``, which is not
imported here because it depends on the document domain.
"""

from src.domains.classroom.service import (
    ClassroomService,
    ClassroomServiceError,
    MeetingNotFoundError,
    SectionAccessDeniedError,
    SubmissionLockedError,
    SubmissionNotFoundError,
    TaskClosedError,
    TaskNotFoundError,
    score_answers,
    teaches_section,
)

__all__ = [
    "ClassroomService",
    "ClassroomServiceError",
    "MeetingNotFoundError",
    "SectionAccessDeniedError",
    "SubmissionLockedError",
    "SubmissionNotFoundError",
    "TaskClosedError",
    "TaskNotFoundError",
    "score_answers",
    "teaches_section",
]

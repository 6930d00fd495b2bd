# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grades and registrar records domain."""

from src.domains.academic.service import (
    AcademicService,
    AcademicServiceError,
    CandidateExistsError,
    GradeAccessDeniedError,
    GradeExistsError,
    GradeNotFoundError,
    RecordNotFoundError,
    StudentNotFoundError,
    TranscriptNotFoundError,
)

__all__ = [
    "AcademicService",
    "AcademicServiceError",
    "CandidateExistsError",
    "GradeAccessDeniedError",
    "GradeExistsError",
    "GradeNotFoundError",
    "RecordNotFoundError",
    "StudentNotFoundError",
    "TranscriptNotFoundError",
]

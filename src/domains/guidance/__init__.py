# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Guidance office domain."""

from src.domains.guidance.service import (
    BehaviorRecordNotFoundError,
    CounselingSessionNotFoundError,
    GuidanceService,
    GuidanceServiceError,
    GuidanceStudentNotFoundError,
    ParticipantExistsError,
    ParticipantNotFoundError,
    ProgramFullError,
    ProgramNotFoundError,
)

__all__ = [
    "BehaviorRecordNotFoundError",
    "CounselingSessionNotFoundError",
    "GuidanceService",
    "GuidanceServiceError",
    "GuidanceStudentNotFoundError",
    "ParticipantExistsError",
    "ParticipantNotFoundError",
    "ProgramFullError",
    "ProgramNotFoundError",
]

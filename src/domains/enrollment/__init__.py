# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment records and application workflow domain."""

from src.domains.enrollment.service import (
    ApplicationNotFoundError,
    EnrollmentAccessDeniedError,
    EnrollmentNotFoundError,
    EnrollmentService,
    EnrollmentServiceError,
    EnrollmentStudentNotFoundError,
    InvalidApplicationStateError,
    InvalidDecisionError,
)

__all__ = [
    "ApplicationNotFoundError",
    "EnrollmentAccessDeniedError",
    "EnrollmentNotFoundError",
    "EnrollmentService",
    "EnrollmentServiceError",
    "EnrollmentStudentNotFoundError",
    "InvalidApplicationStateError",
    "InvalidDecisionError",
]

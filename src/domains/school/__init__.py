# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School structure domain."""

from src.domains.school.service import (
    AssignmentExistsError,
    AssignmentNotFoundError,
    InvalidTeacherError,
    OrgChartEntryNotFoundError,
    SchoolService,
    SchoolServiceError,
    SectionNotFoundError,
    SettingExistsError,
    SettingNotFoundError,
    SubjectCodeExistsError,
    SubjectNotFoundError,
)

__all__ = [
    "AssignmentExistsError",
    "AssignmentNotFoundError",
    "InvalidTeacherError",
    "OrgChartEntryNotFoundError",
    "SchoolService",
    "SchoolServiceError",
    "SectionNotFoundError",
    "SettingExistsError",
    "SettingNotFoundError",
    "SubjectCodeExistsError",
    "SubjectNotFoundError",
]

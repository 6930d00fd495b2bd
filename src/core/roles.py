# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Role vocabulary.

Every user holds exactly one role. Roles gate the dashboard routers and
decide who receives workflow notifications.
"""

from enum import Enum


class Role(str, Enum):
    """User roles known to the portal."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"
    GUIDANCE = "guidance"
    REGISTRAR = "registrar"
    ACCOUNTING = "accounting"
    PRINCIPAL = "principal"
    ACADEMIC_COORDINATOR = "academic_coordinator"


ALL_ROLES: tuple[str, ...] = tuple(role.value for role in Role)

# Roles a visitor may pick at registration. Staff accounts are created by an admin.
SELF_REGISTER_ROLES: frozenset[str] = frozenset({Role.STUDENT.value, Role.PARENT.value})

ROLE_DESCRIPTIONS: dict[str, str] = {
    Role.ADMIN.value: "Manages users, sections, subjects and school settings",
    Role.TEACHER.value: "Runs sections, tasks, meetings and grading",
    Role.STUDENT.value: "Enrolls, submits work and views grades and invoices",
    Role.PARENT.value: "Follows linked children",
    Role.GUIDANCE.value: "Records behavior, counseling and wellness programs",
    Role.REGISTRAR.value: "Processes enrollment, academic records and transcripts",
    Role.ACCOUNTING.value: "Manages fees, invoices, payments and expenses",
    Role.PRINCIPAL.value: "Oversees school-wide and financial statistics",
    Role.ACADEMIC_COORDINATOR.value: "Oversees curriculum and teacher performance",
}

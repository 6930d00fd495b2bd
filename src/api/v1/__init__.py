# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for one area of the portal.

Modules:
    auth: Registration, login, refresh, current user, logout.
    users: Admin user management and parent-student links.
    schools: Sections, subjects, teacher assignments, org chart, settings.
    content: Admin announcements, news and events.
    public: Unauthenticated announcements, news, events and org chart.
    enrollments: Admin enrollment records and grades.
    applications: Online enrollment applications and their review.
    registrar: Registrar workspace (requests, records, transcripts).
    teacher: Teacher workspace (sections, tasks, meetings, grades).
    student: Student workspace (tasks, grades, invoices, transcripts).
    parent: Parent view of linked children.
    guidance: Behavior records, counseling and wellness programs.
    accounting: Fees, invoices, payments, scholarships, expenses.
    notifications: In-app notifications of the signed-in user.
    dashboards: Admin, principal and academic coordinator statistics.
    documents: Student documents, generic uploads and file downloads.
    chat: Chat REST endpoints.
    chat_socket: Chat WebSocket channel.
"""

from fastapi import APIRouter

from src.api.v1 import (
    accounting,
    applications,
    auth,
    chat,
    chat_socket,
    content,
    dashboards,
    documents,
    enrollments,
    guidance,
    notifications,
    parent,
    public,
    registrar,
    schools,
    student,
    teacher,
    users,
)

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

router.include_router(auth.router, prefix="/auth", tags=["Authentication"])

# Admin routes
router.include_router(users.router, prefix="/admin", tags=["Admin: Users"])
router.include_router(schools.router, prefix="/admin", tags=["Admin: School"])
router.include_router(content.router, prefix="/admin", tags=["Admin: Content"])
router.include_router(enrollments.router, prefix="/admin", tags=["Admin: Enrollment"])
router.include_router(accounting.tuition_router, prefix="/admin", tags=["Admin: Tuition"])
router.include_router(dashboards.admin_router, prefix="/admin", tags=["Admin: Dashboard"])
router.include_router(chat.admin_router, prefix="/admin", tags=["Admin: Chat"])

# Role workspaces
router.include_router(applications.router, prefix="/enrollment", tags=["Enrollment"])
router.include_router(registrar.router, prefix="/registrar", tags=["Registrar"])
router.include_router(teacher.router, prefix="/teacher", tags=["Teacher"])
router.include_router(student.router, prefix="/student", tags=["Student"])
router.include_router(parent.router, prefix="/parent", tags=["Parent"])
router.include_router(guidance.router, prefix="/guidance", tags=["Guidance"])
router.include_router(accounting.router, prefix="/accounting", tags=["Accounting"])
router.include_router(dashboards.principal_router, prefix="/principal", tags=["Principal"])
router.include_router(
    dashboards.coordinator_router,
    prefix="/academic-coordinator",
    tags=["Academic Coordinator"],
)

# Shared routes
router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
router.include_router(chat.router, prefix="/chat", tags=["Chat"])
router.include_router(chat_socket.router, prefix="/chat", tags=["Chat"])
router.include_router(documents.router, tags=["Documents"])

# Public routes (no authentication required)
router.include_router(public.router, prefix="/public", tags=["Public"])

__all__ = ["router"]

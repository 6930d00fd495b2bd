# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School-wide dashboard endpoints.

Admin (``admin_router``):
- GET /stats - Users by role, active enrollments, sections, pending approvals

Principal (``principal_router``):
- GET /stats - Students, teachers, new enrollments, average grade
- GET /financial - Revenue, outstanding balance, expenses by category

Academic coordinator (``coordinator_router``):
- GET /curriculum - Core and elective subjects, subjects per grade level
- GET /teacher-performance - Assignments and average grade per teacher
- GET /stats - Counts and average grade per grade level

Role dashboards for teachers, students, parents and the offices live in
their own routers.
"""

from fastapi import APIRouter

from src.api.dependencies import AdminUser, CoordinatorUser, DbSession, PrincipalUser
from src.domains.dashboard.service import DashboardService
from src.models.dashboard import (
    AcademicStatsResponse,
    AdminStatsResponse,
    CurriculumResponse,
    PrincipalFinancialResponse,
    PrincipalStatsResponse,
    TeacherPerformanceEntry,
)

admin_router = APIRouter()
principal_router = APIRouter()
coordinator_router = APIRouter()


@admin_router.get("/stats", response_model=AdminStatsResponse, summary="Admin statistics")
async def admin_stats(db: DbSession, current_user: AdminUser) -> AdminStatsResponse:
    return await DashboardService(db).admin_stats()


@principal_router.get("/stats", response_model=PrincipalStatsResponse, summary="Principal statistics")
async def principal_stats(db: DbSession, current_user: PrincipalUser) -> PrincipalStatsResponse:
    return await DashboardService(db).principal_stats()


@principal_router.get(
    "/financial",
    response_model=PrincipalFinancialResponse,
    summary="Financial overview",
    description="Monthly and yearly revenue from payments, outstanding balance and expenses.",
)
async def principal_financial(db: DbSession, current_user: PrincipalUser) -> PrincipalFinancialResponse:
    return await DashboardService(db).principal_financial()


@coordinator_router.get("/curriculum", response_model=CurriculumResponse, summary="Curriculum overview")
async def curriculum(db: DbSession, current_user: CoordinatorUser) -> CurriculumResponse:
    return await DashboardService(db).curriculum()


@coordinator_router.get(
    "/teacher-performance",
    response_model=list[TeacherPerformanceEntry],
    summary="Teacher performance",
)
async def teacher_performance(db: DbSession, current_user: CoordinatorUser) -> list[TeacherPerformanceEntry]:
    return await DashboardService(db).teacher_performance()


@coordinator_router.get("/stats", response_model=AcademicStatsResponse, summary="Academic statistics")
async def academic_stats(db: DbSession, current_user: CoordinatorUser) -> AcademicStatsResponse:
    return await DashboardService(db).academic_stats()

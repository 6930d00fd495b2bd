# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Parent portal endpoints.

- GET /dashboard - Summary per linked child
- GET /children - Linked children
- GET /children/{student_id}/grades - A child's grades
- GET /children/{student_id}/invoices - A child's invoices
- GET /children/{student_id}/guidance - Guidance items shared with parents

Only children linked to the parent are visible; others answer 404.
"""

import logging

from fastapi import APIRouter, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import DbSession, ParentUser, get_password_hasher
from src.domains.academic.service import AcademicService
from src.domains.accounting.service import AccountingService
from src.domains.dashboard.service import DashboardService
from src.domains.guidance.service import GuidanceService
from src.domains.user.service import UserService
from src.models.academic import GradeResponse
from src.models.accounting import InvoiceResponse
from src.models.dashboard import ParentDashboardResponse
from src.models.guidance import (
    BehaviorRecordResponse,
    CounselingSessionResponse,
    ParentGuidanceResponse,
)
from src.models.user import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


async def _require_child(db: AsyncSession, parent_id: str, student_id: str) -> None:
    """Raise 404 unless the student is linked to the parent."""
    if not await UserService(db, get_password_hasher()).is_parent_of(parent_id, student_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Student {student_id} not found",
        )


@router.get("/dashboard", response_model=ParentDashboardResponse, summary="Parent dashboard")
async def dashboard(db: DbSession, current_user: ParentUser) -> ParentDashboardResponse:
    return await DashboardService(db).parent_dashboard(current_user.id)


@router.get("/children", response_model=list[UserResponse], summary="List my children")
async def list_children(db: DbSession, current_user: ParentUser) -> list[UserResponse]:
    children = await UserService(db, get_password_hasher()).list_children(current_user.id)
    return [UserResponse.model_validate(c) for c in children]


@router.get(
    "/children/{student_id}/grades",
    response_model=list[GradeResponse],
    summary="List a child's grades",
)
async def child_grades(student_id: str, db: DbSession, current_user: ParentUser) -> list[GradeResponse]:
    await _require_child(db, current_user.id, student_id)
    return await AcademicService(db).list_grades(student_id=student_id)


@router.get(
    "/children/{student_id}/invoices",
    response_model=list[InvoiceResponse],
    summary="List a child's invoices",
)
async def child_invoices(student_id: str, db: DbSession, current_user: ParentUser) -> list[InvoiceResponse]:
    await _require_child(db, current_user.id, student_id)
    return await AccountingService(db).list_invoices(student_id=student_id)


@router.get(
    "/children/{student_id}/guidance",
    response_model=ParentGuidanceResponse,
    summary="Guidance items shared with parents",
)
async def child_guidance(student_id: str, db: DbSession, current_user: ParentUser) -> ParentGuidanceResponse:
    await _require_child(db, current_user.id, student_id)
    records, sessions = await GuidanceService(db).list_parent_visible(student_id)
    return ParentGuidanceResponse(
        behavior_records=[BehaviorRecordResponse.model_validate(r) for r in records],
        counseling_sessions=[CounselingSessionResponse.model_validate(s) for s in sessions],
    )

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Guidance office endpoints.

Behavior records and counseling:
- GET /behavior-records, POST /behavior-records, PUT /behavior-records/{id}
- GET /sessions, POST /sessions, PUT /sessions/{id}

Wellness programs:
- GET /programs, POST /programs, PUT /programs/{id}, DELETE /programs/{id}
- GET /programs/{id}/participants - List participants
- POST /programs/{id}/participants - Add participant (capacity enforced)
- DELETE /programs/{id}/participants/{student_id} - Remove participant

Other:
- GET /dashboard - Guidance summary counts
- POST /notify - Send an ad-hoc notification

Guidance or admin role required.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from src.api.dependencies import DbSession, GuidanceUser
from src.domains.dashboard.service import DashboardService
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
from src.models.common import MessageResponse
from src.models.dashboard import GuidanceDashboardResponse
from src.models.guidance import (
    BehaviorRecordCreateRequest,
    BehaviorRecordResponse,
    BehaviorRecordUpdateRequest,
    CounselingSessionCreateRequest,
    CounselingSessionResponse,
    CounselingSessionUpdateRequest,
    GuidanceNotifyRequest,
    ParticipantCreateRequest,
    ParticipantResponse,
    WellnessProgramCreateRequest,
    WellnessProgramResponse,
    WellnessProgramUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/dashboard", response_model=GuidanceDashboardResponse, summary="Guidance dashboard")
async def dashboard(db: DbSession, current_user: GuidanceUser) -> GuidanceDashboardResponse:
    return await DashboardService(db).guidance_dashboard()


# =========================================================================
# Behavior records
# =========================================================================


@router.get(
    "/behavior-records",
    response_model=list[BehaviorRecordResponse],
    summary="List behavior records",
)
async def list_behavior_records(
    db: DbSession,
    current_user: GuidanceUser,
    student_id: Annotated[str | None, Query()] = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> list[BehaviorRecordResponse]:
    records = await GuidanceService(db).list_behavior_records(student_id=student_id, status=status_filter)
    return [BehaviorRecordResponse.model_validate(r) for r in records]


@router.post(
    "/behavior-records",
    response_model=BehaviorRecordResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create behavior record",
    description="An escalated record notifies the student's parents and section teachers.",
)
async def create_behavior_record(
    data: BehaviorRecordCreateRequest,
    db: DbSession,
    current_user: GuidanceUser,
) -> BehaviorRecordResponse:
    try:
        record = await GuidanceService(db).create_behavior_record(data, current_user.id)
    except GuidanceStudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return BehaviorRecordResponse.model_validate(record)


@router.put(
    "/behavior-records/{record_id}",
    response_model=BehaviorRecordResponse,
    summary="Update behavior record",
)
async def update_behavior_record(
    record_id: str,
    data: BehaviorRecordUpdateRequest,
    db: DbSession,
    current_user: GuidanceUser,
) -> BehaviorRecordResponse:
    try:
        record = await GuidanceService(db).update_behavior_record(record_id, data, current_user.id)
    except BehaviorRecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return BehaviorRecordResponse.model_validate(record)


# =========================================================================
# Counseling sessions
# =========================================================================


@router.get(
    "/sessions",
    response_model=list[CounselingSessionResponse],
    summary="List counseling sessions",
)
async def list_sessions(
    db: DbSession,
    current_user: GuidanceUser,
    student_id: Annotated[str | None, Query()] = None,
    counselor_id: Annotated[str | None, Query()] = None,
) -> list[CounselingSessionResponse]:
    sessions = await GuidanceService(db).list_sessions(student_id=student_id, counselor_id=counselor_id)
    return [CounselingSessionResponse.model_validate(s) for s in sessions]


@router.post(
    "/sessions",
    response_model=CounselingSessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record counseling session",
)
async def create_session(
    data: CounselingSessionCreateRequest,
    db: DbSession,
    current_user: GuidanceUser,
) -> CounselingSessionResponse:
    try:
        session = await GuidanceService(db).create_session(data, current_user.id)
    except GuidanceStudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return CounselingSessionResponse.model_validate(session)


@router.put(
    "/sessions/{session_id}",
    response_model=CounselingSessionResponse,
    summary="Update counseling session",
)
async def update_session(
    session_id: str,
    data: CounselingSessionUpdateRequest,
    db: DbSession,
    current_user: GuidanceUser,
) -> CounselingSessionResponse:
    try:
        session = await GuidanceService(db).update_session(session_id, data)
    except CounselingSessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return CounselingSessionResponse.model_validate(session)


# =========================================================================
# Wellness programs
# =========================================================================


@router.get("/programs", response_model=list[WellnessProgramResponse], summary="List wellness programs")
async def list_programs(
    db: DbSession,
    current_user: GuidanceUser,
    active_only: Annotated[bool, Query()] = False,
) -> list[WellnessProgramResponse]:
    return await GuidanceService(db).list_programs(active_only)


@router.post(
    "/programs",
    response_model=WellnessProgramResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create wellness program",
    description="All students are notified about the new program.",
)
async def create_program(
    data: WellnessProgramCreateRequest,
    db: DbSession,
    current_user: GuidanceUser,
) -> WellnessProgramResponse:
    try:
        return await GuidanceService(db).create_program(data, current_user.id)
    except GuidanceServiceError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/programs/{program_id}", response_model=WellnessProgramResponse, summary="Update wellness program")
async def update_program(
    program_id: str,
    data: WellnessProgramUpdateRequest,
    db: DbSession,
    current_user: GuidanceUser,
) -> WellnessProgramResponse:
    try:
        return await GuidanceService(db).update_program(program_id, data)
    except ProgramNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except GuidanceServiceError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete(
    "/programs/{program_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete wellness program",
)
async def delete_program(program_id: str, db: DbSession, current_user: GuidanceUser) -> None:
    try:
        await GuidanceService(db).delete_program(program_id)
    except ProgramNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get(
    "/programs/{program_id}/participants",
    response_model=list[ParticipantResponse],
    summary="List program participants",
)
async def list_participants(
    program_id: str,
    db: DbSession,
    current_user: GuidanceUser,
) -> list[ParticipantResponse]:
    try:
        return await GuidanceService(db).list_participants(program_id)
    except ProgramNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post(
    "/programs/{program_id}/participants",
    response_model=ParticipantResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add program participant",
)
async def add_participant(
    program_id: str,
    data: ParticipantCreateRequest,
    db: DbSession,
    current_user: GuidanceUser,
) -> ParticipantResponse:
    try:
        return await GuidanceService(db).add_participant(program_id, data.student_id)
    except (ProgramNotFoundError, GuidanceStudentNotFoundError) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ParticipantExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ProgramFullError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete(
    "/programs/{program_id}/participants/{student_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove program participant",
)
async def remove_participant(
    program_id: str,
    student_id: str,
    db: DbSession,
    current_user: GuidanceUser,
) -> None:
    try:
        await GuidanceService(db).remove_participant(program_id, student_id)
    except (ProgramNotFoundError, ParticipantNotFoundError) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/notify", response_model=MessageResponse, summary="Send notification")
async def send_notification(
    data: GuidanceNotifyRequest,
    db: DbSession,
    current_user: GuidanceUser,
) -> MessageResponse:
    try:
        await GuidanceService(db).send_notification(
            current_user.id,
            data.recipient_id,
            data.title,
            data.message,
            type=data.type,
        )
    except GuidanceStudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return MessageResponse(message="Notification sent")

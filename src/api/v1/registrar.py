# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Registrar endpoints.

- GET /dashboard - Registrar summary counts
- GET /enrollment-requests - List requests by status
- POST /enrollment-requests - Record a request (notifies registrars)
- PUT /enrollment-requests/{enrollment_id} - Update a request
- GET /subjects, POST /subjects - Subject catalogue
- GET /academic-records, POST /academic-records,
  PUT /academic-records/{record_id}
- GET /graduation-candidates, POST /graduation-candidates,
  PUT /graduation-candidates/{candidate_id}
- GET /transcripts, PUT /transcripts/{transcript_id}

Registrar or admin role required.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from src.api.dependencies import DbSession, RegistrarUser
from src.domains.academic.service import (
    AcademicService,
    CandidateExistsError,
    RecordNotFoundError,
    StudentNotFoundError,
    TranscriptNotFoundError,
)
from src.domains.dashboard.service import DashboardService
from src.domains.enrollment.service import (
    EnrollmentNotFoundError,
    EnrollmentService,
    EnrollmentServiceError,
    EnrollmentStudentNotFoundError,
)
from src.domains.school.service import SchoolService, SubjectCodeExistsError
from src.models.academic import (
    AcademicRecordCreateRequest,
    AcademicRecordResponse,
    AcademicRecordUpdateRequest,
    GraduationCandidateCreateRequest,
    GraduationCandidateResponse,
    GraduationCandidateUpdateRequest,
    TranscriptRequestResponse,
    TranscriptRequestUpdateRequest,
)
from src.models.dashboard import RegistrarDashboardResponse
from src.models.enrollment import (
    EnrollmentListResponse,
    EnrollmentRequestCreateRequest,
    EnrollmentRequestUpdateRequest,
    EnrollmentResponse,
)
from src.models.school import SubjectCreateRequest, SubjectResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/dashboard", response_model=RegistrarDashboardResponse, summary="Registrar dashboard")
async def dashboard(db: DbSession, current_user: RegistrarUser) -> RegistrarDashboardResponse:
    return await DashboardService(db).registrar_dashboard()


# =========================================================================
# Enrollment requests
# =========================================================================


@router.get(
    "/enrollment-requests",
    response_model=EnrollmentListResponse,
    summary="List enrollment requests",
)
async def list_requests(
    db: DbSession,
    current_user: RegistrarUser,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> EnrollmentListResponse:
    items, total = await EnrollmentService(db).list_enrollments(
        status=status_filter, limit=limit, offset=offset
    )
    return EnrollmentListResponse(items=items, total=total)


@router.post(
    "/enrollment-requests",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create enrollment request",
)
async def create_request(
    data: EnrollmentRequestCreateRequest,
    db: DbSession,
    current_user: RegistrarUser,
) -> EnrollmentResponse:
    try:
        return await EnrollmentService(db).create_request(data, created_by=current_user.id)
    except EnrollmentStudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.put(
    "/enrollment-requests/{enrollment_id}",
    response_model=EnrollmentResponse,
    summary="Update enrollment request",
    description="A status change away from pending notifies the student.",
)
async def update_request(
    enrollment_id: str,
    data: EnrollmentRequestUpdateRequest,
    db: DbSession,
    current_user: RegistrarUser,
) -> EnrollmentResponse:
    try:
        return await EnrollmentService(db).update_request(
            enrollment_id, data, updated_by=current_user.id
        )
    except EnrollmentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except EnrollmentServiceError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# =========================================================================
# Subjects
# =========================================================================


@router.get("/subjects", response_model=list[SubjectResponse], summary="List subjects")
async def list_subjects(
    db: DbSession,
    current_user: RegistrarUser,
    grade_level: Annotated[str | None, Query()] = None,
) -> list[SubjectResponse]:
    subjects = await SchoolService(db).list_subjects(grade_level)
    return [SubjectResponse.model_validate(s) for s in subjects]


@router.post(
    "/subjects",
    response_model=SubjectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create subject",
)
async def create_subject(
    data: SubjectCreateRequest,
    db: DbSession,
    current_user: RegistrarUser,
) -> SubjectResponse:
    try:
        subject = await SchoolService(db).create_subject(data)
    except SubjectCodeExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return SubjectResponse.model_validate(subject)


# =========================================================================
# Academic records
# =========================================================================


@router.get(
    "/academic-records",
    response_model=list[AcademicRecordResponse],
    summary="List academic records",
)
async def list_records(
    db: DbSession,
    current_user: RegistrarUser,
    student_id: Annotated[str | None, Query()] = None,
    school_year: Annotated[str | None, Query()] = None,
) -> list[AcademicRecordResponse]:
    records = await AcademicService(db).list_records(student_id=student_id, school_year=school_year)
    return [AcademicRecordResponse.model_validate(r) for r in records]


@router.post(
    "/academic-records",
    response_model=AcademicRecordResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create academic record",
)
async def create_record(
    data: AcademicRecordCreateRequest,
    db: DbSession,
    current_user: RegistrarUser,
) -> AcademicRecordResponse:
    try:
        record = await AcademicService(db).create_record(data, current_user.id)
    except StudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return AcademicRecordResponse.model_validate(record)


@router.put(
    "/academic-records/{record_id}",
    response_model=AcademicRecordResponse,
    summary="Update academic record",
)
async def update_record(
    record_id: str,
    data: AcademicRecordUpdateRequest,
    db: DbSession,
    current_user: RegistrarUser,
) -> AcademicRecordResponse:
    try:
        record = await AcademicService(db).update_record(record_id, data)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return AcademicRecordResponse.model_validate(record)


# =========================================================================
# Graduation candidates
# =========================================================================


@router.get(
    "/graduation-candidates",
    response_model=list[GraduationCandidateResponse],
    summary="List graduation candidates",
)
async def list_candidates(
    db: DbSession,
    current_user: RegistrarUser,
    school_year: Annotated[str | None, Query()] = None,
) -> list[GraduationCandidateResponse]:
    candidates = await AcademicService(db).list_candidates(school_year)
    return [GraduationCandidateResponse.model_validate(c) for c in candidates]


@router.post(
    "/graduation-candidates",
    response_model=GraduationCandidateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add graduation candidate",
)
async def add_candidate(
    data: GraduationCandidateCreateRequest,
    db: DbSession,
    current_user: RegistrarUser,
) -> GraduationCandidateResponse:
    try:
        candidate = await AcademicService(db).add_candidate(data, added_by=current_user.id)
    except StudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except CandidateExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return GraduationCandidateResponse.model_validate(candidate)


@router.put(
    "/graduation-candidates/{candidate_id}",
    response_model=GraduationCandidateResponse,
    summary="Update graduation candidate",
)
async def update_candidate(
    candidate_id: str,
    data: GraduationCandidateUpdateRequest,
    db: DbSession,
    current_user: RegistrarUser,
) -> GraduationCandidateResponse:
    try:
        candidate = await AcademicService(db).update_candidate(candidate_id, data)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return GraduationCandidateResponse.model_validate(candidate)


# =========================================================================
# Transcript requests
# =========================================================================


@router.get(
    "/transcripts",
    response_model=list[TranscriptRequestResponse],
    summary="List transcript requests",
)
async def list_transcripts(
    db: DbSession,
    current_user: RegistrarUser,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    student_id: Annotated[str | None, Query()] = None,
) -> list[TranscriptRequestResponse]:
    transcripts = await AcademicService(db).list_transcripts(status=status_filter, student_id=student_id)
    return [TranscriptRequestResponse.model_validate(t) for t in transcripts]


@router.put(
    "/transcripts/{transcript_id}",
    response_model=TranscriptRequestResponse,
    summary="Update transcript request",
    description="Status changes are pushed to the student as notifications.",
)
async def update_transcript(
    transcript_id: str,
    data: TranscriptRequestUpdateRequest,
    db: DbSession,
    current_user: RegistrarUser,
) -> TranscriptRequestResponse:
    try:
        transcript = await AcademicService(db).update_transcript(transcript_id, data, current_user.id)
    except TranscriptNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return TranscriptRequestResponse.model_validate(transcript)

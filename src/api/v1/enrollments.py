# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin enrollment and grade endpoints.

Enrollments:
- GET /enrollments - List enrollments (status, school year, student filters)
- POST /enrollments - Create enrollment
- GET /enrollments/{enrollment_id} - Get enrollment
- PUT /enrollments/{enrollment_id} - Update enrollment

Grades:
- GET /grades - List grades (student, subject, school year filters)
- POST /grades - Record a grade
- PUT /grades/{grade_id} - Update a grade
- DELETE /grades/{grade_id} - Delete a grade
- GET /students/{student_id}/grades - Grades of one student

All endpoints require the admin role.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from src.api.dependencies import AdminUser, DbSession
from src.domains.academic.service import (
    AcademicService,
    AcademicServiceError,
    GradeExistsError,
    GradeNotFoundError,
    StudentNotFoundError,
)
from src.domains.enrollment.service import (
    EnrollmentNotFoundError,
    EnrollmentService,
    EnrollmentServiceError,
    EnrollmentStudentNotFoundError,
)
from src.models.academic import GradeCreateRequest, GradeResponse, GradeUpdateRequest
from src.models.enrollment import (
    EnrollmentCreateRequest,
    EnrollmentListResponse,
    EnrollmentResponse,
    EnrollmentUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/enrollments",
    response_model=EnrollmentListResponse,
    summary="List enrollments",
)
async def list_enrollments(
    db: DbSession,
    current_user: AdminUser,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    school_year: Annotated[str | None, Query()] = None,
    student_id: Annotated[str | None, Query()] = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> EnrollmentListResponse:
    items, total = await EnrollmentService(db).list_enrollments(
        status=status_filter,
        school_year=school_year,
        student_id=student_id,
        limit=limit,
        offset=offset,
    )
    return EnrollmentListResponse(items=items, total=total)


@router.post(
    "/enrollments",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create enrollment",
)
async def create_enrollment(
    data: EnrollmentCreateRequest,
    db: DbSession,
    current_user: AdminUser,
) -> EnrollmentResponse:
    try:
        return await EnrollmentService(db).create_enrollment(data)
    except EnrollmentStudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except EnrollmentServiceError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get(
    "/enrollments/{enrollment_id}",
    response_model=EnrollmentResponse,
    summary="Get enrollment",
)
async def get_enrollment(enrollment_id: str, db: DbSession, current_user: AdminUser) -> EnrollmentResponse:
    try:
        return await EnrollmentService(db).get_enrollment(enrollment_id)
    except EnrollmentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.put(
    "/enrollments/{enrollment_id}",
    response_model=EnrollmentResponse,
    summary="Update enrollment",
)
async def update_enrollment(
    enrollment_id: str,
    data: EnrollmentUpdateRequest,
    db: DbSession,
    current_user: AdminUser,
) -> EnrollmentResponse:
    try:
        return await EnrollmentService(db).update_enrollment(enrollment_id, data)
    except EnrollmentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except EnrollmentServiceError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get(
    "/grades",
    response_model=list[GradeResponse],
    summary="List grades",
)
async def list_grades(
    db: DbSession,
    current_user: AdminUser,
    student_id: Annotated[str | None, Query()] = None,
    subject_id: Annotated[str | None, Query()] = None,
    school_year: Annotated[str | None, Query()] = None,
) -> list[GradeResponse]:
    return await AcademicService(db).list_grades(
        student_id=student_id,
        subject_id=subject_id,
        school_year=school_year,
    )


@router.get(
    "/students/{student_id}/grades",
    response_model=list[GradeResponse],
    summary="List a student's grades",
)
async def list_student_grades(student_id: str, db: DbSession, current_user: AdminUser) -> list[GradeResponse]:
    return await AcademicService(db).list_grades(student_id=student_id)


@router.post(
    "/grades",
    response_model=GradeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record grade",
)
async def create_grade(data: GradeCreateRequest, db: DbSession, current_user: AdminUser) -> GradeResponse:
    try:
        return await AcademicService(db).record_grade(data, current_user.id)
    except StudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except GradeExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except AcademicServiceError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put(
    "/grades/{grade_id}",
    response_model=GradeResponse,
    summary="Update grade",
)
async def update_grade(
    grade_id: str,
    data: GradeUpdateRequest,
    db: DbSession,
    current_user: AdminUser,
) -> GradeResponse:
    try:
        return await AcademicService(db).update_grade(grade_id, data)
    except GradeNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete(
    "/grades/{grade_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete grade",
)
async def delete_grade(grade_id: str, db: DbSession, current_user: AdminUser) -> None:
    try:
        await AcademicService(db).delete_grade(grade_id)
    except GradeNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

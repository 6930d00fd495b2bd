# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment application workflow endpoints.

Applicant endpoints (student or parent):
- POST /applications - Start an application (status draft)
- GET /applications/mine - List my applications
- GET /applications/{application_id} - Get one of my applications
- POST /applications/{application_id}/documents - Upload documents (multipart)
- POST /applications/{application_id}/submit - Submit for review
- GET /progress/me - Latest application progress

Review endpoints (registrar or admin):
- GET /applications - List applications with status filter and paging
- POST /applications/{application_id}/decision - Approve or reject

Example:
    POST /api/v1/enrollment/applications/{id}/documents
    Content-Type: multipart/form-data
        document_type=birth_certificate
        files=@birth_certificate.pdf
"""

import logging
from typing import Annotated

from fastapi import APIRouter, File, Form, HTTPException, Query, UploadFile, status

from src.api.dependencies import ApplicantUser, AuthenticatedUser, DbSession, Documents, RegistrarUser
from src.domains.document.service import (
    DocumentTooLargeError,
    DocumentValidationError,
    IncomingFile,
)
from src.domains.enrollment.service import (
    ApplicationNotFoundError,
    EnrollmentAccessDeniedError,
    EnrollmentService,
    EnrollmentServiceError,
    EnrollmentStudentNotFoundError,
    InvalidApplicationStateError,
    InvalidDecisionError,
)
from src.models.enrollment import (
    ApplicationCreateRequest,
    ApplicationDecisionRequest,
    ApplicationListResponse,
    ApplicationResponse,
    ProgressResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/applications",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start application",
    description="Create a draft application. Parents apply for a linked child.",
)
async def create_application(
    data: ApplicationCreateRequest,
    db: DbSession,
    current_user: ApplicantUser,
) -> ApplicationResponse:
    try:
        return await EnrollmentService(db).create_application(current_user.id, current_user.role, data)
    except EnrollmentStudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except EnrollmentAccessDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except EnrollmentServiceError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get(
    "/applications/mine",
    response_model=list[ApplicationResponse],
    summary="List my applications",
)
async def list_my_applications(db: DbSession, current_user: ApplicantUser) -> list[ApplicationResponse]:
    return await EnrollmentService(db).list_my_applications(current_user.id, current_user.role)


@router.get(
    "/applications",
    response_model=ApplicationListResponse,
    summary="Review applications",
)
async def list_applications(
    db: DbSession,
    current_user: RegistrarUser,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> ApplicationListResponse:
    return await EnrollmentService(db).list_applications(status=status_filter, page=page, limit=limit)


@router.get(
    "/applications/{application_id}",
    response_model=ApplicationResponse,
    summary="Get application",
)
async def get_application(
    application_id: str,
    db: DbSession,
    current_user: AuthenticatedUser,
) -> ApplicationResponse:
    try:
        return await EnrollmentService(db).get_application(
            application_id, current_user.id, current_user.role
        )
    except ApplicationNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post(
    "/applications/{application_id}/documents",
    response_model=ApplicationResponse,
    summary="Upload application documents",
    description="Upload up to 5 PDF, JPEG or PNG files (10 MB each) of one document type.",
)
async def upload_documents(
    application_id: str,
    db: DbSession,
    documents: Documents,
    current_user: ApplicantUser,
    document_type: Annotated[str, Form(min_length=1, max_length=50, pattern=r"^[A-Za-z0-9_\-]+$")],
    files: Annotated[list[UploadFile], File(description="Documents to attach")],
) -> ApplicationResponse:
    incoming = [
        IncomingFile(
            filename=f.filename or "document",
            content_type=f.content_type,
            data=await f.read(),
        )
        for f in files
    ]
    service = EnrollmentService(db, documents=documents)
    try:
        return await service.upload_documents(
            application_id,
            current_user.id,
            current_user.role,
            document_type,
            incoming,
        )
    except ApplicationNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidApplicationStateError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DocumentTooLargeError as e:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e))
    except DocumentValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post(
    "/applications/{application_id}/submit",
    response_model=ApplicationResponse,
    summary="Submit application",
)
async def submit_application(
    application_id: str,
    db: DbSession,
    current_user: ApplicantUser,
) -> ApplicationResponse:
    try:
        return await EnrollmentService(db).submit_application(
            application_id, current_user.id, current_user.role
        )
    except ApplicationNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidApplicationStateError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post(
    "/applications/{application_id}/decision",
    response_model=ApplicationResponse,
    summary="Decide application",
    description="Approve or reject a submitted application. Approval creates an enrollment.",
)
async def decide_application(
    application_id: str,
    data: ApplicationDecisionRequest,
    db: DbSession,
    current_user: RegistrarUser,
) -> ApplicationResponse:
    try:
        return await EnrollmentService(db).decide_application(
            application_id,
            data.decision,
            current_user.id,
            remarks=data.remarks,
        )
    except ApplicationNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except (InvalidDecisionError, InvalidApplicationStateError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get(
    "/progress/me",
    response_model=ProgressResponse,
    summary="My application progress",
)
async def get_my_progress(db: DbSession, current_user: AuthenticatedUser) -> ProgressResponse:
    return await EnrollmentService(db).get_my_progress(current_user.id)

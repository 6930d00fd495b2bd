# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School structure API endpoints.

Sections:
- GET /sections - List sections with student counts
- POST /sections - Create section
- GET /sections/{section_id} - Get section
- PUT /sections/{section_id} - Update section
- DELETE /sections/{section_id} - Delete section
- GET /sections/{section_id}/students - List students in a section

Subjects:
- GET /subjects, POST /subjects, PUT /subjects/{id}, DELETE /subjects/{id}

Teacher assignments:
- GET /teacher-assignments, POST /teacher-assignments,
  DELETE /teacher-assignments/{id}

Org chart and settings:
- GET /org-chart, POST /org-chart, PUT /org-chart/{id}, DELETE /org-chart/{id}
- GET /settings, POST /settings, PUT /settings/{key}

School years and history:
- GET /school-years, POST /school-years - List and start school years
- PUT /school-years/{year_id}/activate - Make an earlier year active again
- GET /students/{student_id}/history/{school_year} - A student's records for a year

All endpoints require the admin role.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.api.dependencies import DbSession, require_admin
from src.api.middleware.auth import CurrentUser
from src.domains.dashboard.service import DashboardService, HistoryStudentNotFoundError
from src.domains.school.service import (
    AssignmentExistsError,
    AssignmentNotFoundError,
    InvalidTeacherError,
    OrgChartEntryNotFoundError,
    SchoolService,
    SchoolServiceError,
    SchoolYearExistsError,
    SchoolYearNotFoundError,
    SectionNotFoundError,
    SettingExistsError,
    SettingNotFoundError,
    SubjectCodeExistsError,
    SubjectNotFoundError,
)
from src.models.dashboard import StudentHistoryResponse
from src.models.school import (
    OrgChartEntryCreateRequest,
    OrgChartEntryResponse,
    OrgChartEntryUpdateRequest,
    SchoolSettingCreateRequest,
    SchoolSettingResponse,
    SchoolSettingUpdateRequest,
    SchoolYearCreateRequest,
    SchoolYearResponse,
    SectionCreateRequest,
    SectionResponse,
    SectionUpdateRequest,
    SubjectCreateRequest,
    SubjectResponse,
    SubjectUpdateRequest,
    TeacherAssignmentCreateRequest,
    TeacherAssignmentResponse,
)
from src.models.user import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


# =========================================================================
# Sections
# =========================================================================


@router.get(
    "/sections",
    response_model=list[SectionResponse],
    summary="List sections",
)
async def list_sections(
    db: DbSession,
    grade_level: Annotated[str | None, Query()] = None,
    school_year: Annotated[str | None, Query()] = None,
    current_user: CurrentUser = Depends(require_admin),
) -> list[SectionResponse]:
    return await SchoolService(db).list_sections(grade_level=grade_level, school_year=school_year)


@router.post(
    "/sections",
    response_model=SectionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create section",
)
async def create_section(
    data: SectionCreateRequest,
    db: DbSession,
    current_user: CurrentUser = Depends(require_admin),
) -> SectionResponse:
    try:
        return await SchoolService(db).create_section(data)
    except InvalidTeacherError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get(
    "/sections/{section_id}",
    response_model=SectionResponse,
    summary="Get section",
)
async def get_section(
    section_id: str,
    db: DbSession,
    current_user: CurrentUser = Depends(require_admin),
) -> SectionResponse:
    try:
        return await SchoolService(db).get_section(section_id)
    except SectionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.put(
    "/sections/{section_id}",
    response_model=SectionResponse,
    summary="Update section",
)
async def update_section(
    section_id: str,
    data: SectionUpdateRequest,
    db: DbSession,
    current_user: CurrentUser = Depends(require_admin),
) -> SectionResponse:
    try:
        return await SchoolService(db).update_section(section_id, data)
    except SectionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidTeacherError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete(
    "/sections/{section_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete section",
)
async def delete_section(
    section_id: str,
    db: DbSession,
    current_user: CurrentUser = Depends(require_admin),
) -> None:
    try:
        await SchoolService(db).delete_section(section_id)
    except SectionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get(
    "/sections/{section_id}/students",
    response_model=list[UserResponse],
    summary="List section students",
)
async def list_section_students(
    section_id: str,
    db: DbSession,
    current_user: CurrentUser = Depends(require_admin),
) -> list[UserResponse]:
    try:
        students = await SchoolService(db).list_section_students(section_id)
    except SectionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return [UserResponse.model_validate(s) for s in students]


# =========================================================================
# Subjects
# =========================================================================


@router.get(
    "/subjects",
    response_model=list[SubjectResponse],
    summary="List subjects",
)
async def list_subjects(
    db: DbSession,
    grade_level: Annotated[str | None, Query()] = None,
    current_user: CurrentUser = Depends(require_admin),
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
    current_user: CurrentUser = Depends(require_admin),
) -> SubjectResponse:
    try:
        subject = await SchoolService(db).create_subject(data)
    except SubjectCodeExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return SubjectResponse.model_validate(subject)


@router.put(
    "/subjects/{subject_id}",
    response_model=SubjectResponse,
    summary="Update subject",
)
async def update_subject(
    subject_id: str,
    data: SubjectUpdateRequest,
    db: DbSession,
    current_user: CurrentUser = Depends(require_admin),
) -> SubjectResponse:
    try:
        subject = await SchoolService(db).update_subject(subject_id, data)
    except SubjectNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except SubjectCodeExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return SubjectResponse.model_validate(subject)


@router.delete(
    "/subjects/{subject_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete subject",
)
async def delete_subject(
    subject_id: str,
    db: DbSession,
    current_user: CurrentUser = Depends(require_admin),
) -> None:
    try:
        await SchoolService(db).delete_subject(subject_id)
    except SubjectNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# =========================================================================
# Teacher assignments
# =========================================================================


@router.get(
    "/teacher-assignments",
    response_model=list[TeacherAssignmentResponse],
    summary="List teacher assignments",
)
async def list_assignments(
    db: DbSession,
    teacher_id: Annotated[str | None, Query()] = None,
    section_id: Annotated[str | None, Query()] = None,
    school_year: Annotated[str | None, Query()] = None,
    current_user: CurrentUser = Depends(require_admin),
) -> list[TeacherAssignmentResponse]:
    return await SchoolService(db).list_assignments(
        teacher_id=teacher_id,
        section_id=section_id,
        school_year=school_year,
    )


@router.post(
    "/teacher-assignments",
    response_model=TeacherAssignmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Assign teacher",
    description="Assign a teacher to teach a subject in a section for a school year.",
)
async def create_assignment(
    data: TeacherAssignmentCreateRequest,
    db: DbSession,
    current_user: CurrentUser = Depends(require_admin),
) -> TeacherAssignmentResponse:
    try:
        return await SchoolService(db).create_assignment(data)
    except (SectionNotFoundError, SubjectNotFoundError) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidTeacherError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except AssignmentExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.delete(
    "/teacher-assignments/{assignment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove teacher assignment",
)
async def delete_assignment(
    assignment_id: str,
    db: DbSession,
    current_user: CurrentUser = Depends(require_admin),
) -> None:
    try:
        await SchoolService(db).delete_assignment(assignment_id)
    except AssignmentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# =========================================================================
# Org chart
# =========================================================================


@router.get(
    "/org-chart",
    response_model=list[OrgChartEntryResponse],
    summary="List org chart",
)
async def list_org_chart(
    db: DbSession,
    current_user: CurrentUser = Depends(require_admin),
) -> list[OrgChartEntryResponse]:
    entries = await SchoolService(db).list_org_chart()
    return [OrgChartEntryResponse.model_validate(e) for e in entries]


@router.post(
    "/org-chart",
    response_model=OrgChartEntryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create org chart entry",
)
async def create_org_chart_entry(
    data: OrgChartEntryCreateRequest,
    db: DbSession,
    current_user: CurrentUser = Depends(require_admin),
) -> OrgChartEntryResponse:
    try:
        entry = await SchoolService(db).create_org_chart_entry(data)
    except OrgChartEntryNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return OrgChartEntryResponse.model_validate(entry)


@router.put(
    "/org-chart/{entry_id}",
    response_model=OrgChartEntryResponse,
    summary="Update org chart entry",
)
async def update_org_chart_entry(
    entry_id: str,
    data: OrgChartEntryUpdateRequest,
    db: DbSession,
    current_user: CurrentUser = Depends(require_admin),
) -> OrgChartEntryResponse:
    try:
        entry = await SchoolService(db).update_org_chart_entry(entry_id, data)
    except OrgChartEntryNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except SchoolServiceError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return OrgChartEntryResponse.model_validate(entry)


@router.delete(
    "/org-chart/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete org chart entry",
)
async def delete_org_chart_entry(
    entry_id: str,
    db: DbSession,
    current_user: CurrentUser = Depends(require_admin),
) -> None:
    try:
        await SchoolService(db).delete_org_chart_entry(entry_id)
    except OrgChartEntryNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# =========================================================================
# Settings
# =========================================================================


@router.get(
    "/settings",
    response_model=list[SchoolSettingResponse],
    summary="List school settings",
)
async def list_settings(
    db: DbSession,
    current_user: CurrentUser = Depends(require_admin),
) -> list[SchoolSettingResponse]:
    settings = await SchoolService(db).list_settings()
    return [SchoolSettingResponse.model_validate(s) for s in settings]


@router.post(
    "/settings",
    response_model=SchoolSettingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create school setting",
)
async def create_setting(
    data: SchoolSettingCreateRequest,
    db: DbSession,
    current_user: CurrentUser = Depends(require_admin),
) -> SchoolSettingResponse:
    try:
        setting = await SchoolService(db).create_setting(data)
    except SettingExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return SchoolSettingResponse.model_validate(setting)


@router.put(
    "/settings/{key}",
    response_model=SchoolSettingResponse,
    summary="Update school setting",
)
async def update_setting(
    key: str,
    data: SchoolSettingUpdateRequest,
    db: DbSession,
    current_user: CurrentUser = Depends(require_admin),
) -> SchoolSettingResponse:
    try:
        setting = await SchoolService(db).update_setting(key, data)
    except SettingNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return SchoolSettingResponse.model_validate(setting)


# =========================================================================
# School years
# =========================================================================


@router.get(
    "/school-years",
    response_model=list[SchoolYearResponse],
    summary="List school years",
)
async def list_school_years(
    db: DbSession,
    current_user: CurrentUser = Depends(require_admin),
) -> list[SchoolYearResponse]:
    years = await SchoolService(db).list_school_years()
    return [SchoolYearResponse.model_validate(y) for y in years]


@router.post(
    "/school-years",
    response_model=SchoolYearResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start school year",
    description=(
        "Create a school year and make it active. Other years are deactivated and "
        "students, teachers and parents are notified."
    ),
)
async def create_school_year(
    data: SchoolYearCreateRequest,
    db: DbSession,
    current_user: CurrentUser = Depends(require_admin),
) -> SchoolYearResponse:
    try:
        school_year = await SchoolService(db).create_school_year(data)
    except SchoolYearExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return SchoolYearResponse.model_validate(school_year)


@router.put(
    "/school-years/{year_id}/activate",
    response_model=SchoolYearResponse,
    summary="Activate school year",
)
async def activate_school_year(
    year_id: str,
    db: DbSession,
    current_user: CurrentUser = Depends(require_admin),
) -> SchoolYearResponse:
    try:
        school_year = await SchoolService(db).activate_school_year(year_id)
    except SchoolYearNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return SchoolYearResponse.model_validate(school_year)


@router.get(
    "/students/{student_id}/history/{school_year}",
    response_model=StudentHistoryResponse,
    summary="Student history",
)
async def student_history(
    student_id: str,
    school_year: str,
    db: DbSession,
    current_user: CurrentUser = Depends(require_admin),
) -> StudentHistoryResponse:
    try:
        return await DashboardService(db).student_history(student_id, school_year)
    except HistoryStudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

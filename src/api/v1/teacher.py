# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Teacher API endpoints.

This module provides endpoints for teachers to run their classes:
- GET /dashboard - Sections, task and submission counts, meetings
- GET /sections - Sections the teacher advises or teaches
- GET /sections/{section_id}/students - Students of one of those sections

Tasks and submissions:
- GET /tasks, POST /tasks, PUT /tasks/{task_id}, DELETE /tasks/{task_id}
- GET /tasks/{task_id}/questions - Quiz or test questions with answers
- GET /tasks/{task_id}/submissions - Submissions for a task
- PUT /submissions/{submission_id}/grade - Grade a submission

Meetings:
- GET /meetings, POST /meetings, DELETE /meetings/{meeting_id}

Learning modules:
- GET /modules, POST /modules (multipart), PUT /modules/{module_id},
  DELETE /modules/{module_id}

Grades:
- GET /grades - Grades recorded by the teacher
- POST /grades - Record a grade for a subject the teacher teaches
- PUT /grades/{grade_id} - Update one of the teacher's grades

All endpoints require the teacher role.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, File, Form, HTTPException, Query, UploadFile, status

from src.api.dependencies import DbSession, LearningModules, TeacherUser
from src.domains.academic.service import (
    AcademicService,
    AcademicServiceError,
    GradeAccessDeniedError,
    GradeExistsError,
    GradeNotFoundError,
    StudentNotFoundError,
)
from src.domains.classroom.modules import LearningModuleNotFoundError
from src.domains.classroom.service import (
    ClassroomService,
    MeetingNotFoundError,
    SectionAccessDeniedError,
    SubmissionNotFoundError,
    TaskNotFoundError,
)
from src.domains.dashboard.service import DashboardService
from src.domains.document.service import (
    DocumentTooLargeError,
    DocumentValidationError,
    IncomingFile,
)
from src.domains.school.service import SchoolService
from src.models.academic import GradeCreateRequest, GradeResponse, GradeUpdateRequest
from src.models.classroom import (
    LearningModuleResponse,
    LearningModuleUpdateRequest,
    MeetingCreateRequest,
    MeetingResponse,
    SubmissionGradeRequest,
    SubmissionResponse,
    TaskCreateRequest,
    TaskQuestionResponse,
    TaskResponse,
    TaskUpdateRequest,
)
from src.models.dashboard import TeacherDashboardResponse
from src.models.school import SectionResponse
from src.models.user import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/dashboard", response_model=TeacherDashboardResponse, summary="Teacher dashboard")
async def dashboard(db: DbSession, current_user: TeacherUser) -> TeacherDashboardResponse:
    return await DashboardService(db).teacher_dashboard(current_user.id)


@router.get("/sections", response_model=list[SectionResponse], summary="List my sections")
async def list_sections(db: DbSession, current_user: TeacherUser) -> list[SectionResponse]:
    sections = await ClassroomService(db).teacher_sections(current_user.id)
    return await SchoolService(db).section_responses(sections)


@router.get(
    "/sections/{section_id}/students",
    response_model=list[UserResponse],
    summary="List students of my section",
)
async def list_section_students(
    section_id: str,
    db: DbSession,
    current_user: TeacherUser,
) -> list[UserResponse]:
    sections = await ClassroomService(db).teacher_sections(current_user.id)
    if section_id not in {s.id for s in sections}:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not teach this section",
        )
    students = await SchoolService(db).list_section_students(section_id)
    return [UserResponse.model_validate(s) for s in students]


# =========================================================================
# Tasks and submissions
# =========================================================================


@router.get("/tasks", response_model=list[TaskResponse], summary="List my tasks")
async def list_tasks(
    db: DbSession,
    current_user: TeacherUser,
    section_id: Annotated[str | None, Query()] = None,
) -> list[TaskResponse]:
    tasks = await ClassroomService(db).list_teacher_tasks(current_user.id, section_id)
    return [TaskResponse.model_validate(t) for t in tasks]


@router.post(
    "/tasks",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create task",
    description="Create an assignment, quiz or test. Students of the section are notified.",
)
async def create_task(data: TaskCreateRequest, db: DbSession, current_user: TeacherUser) -> TaskResponse:
    try:
        task = await ClassroomService(db).create_task(current_user.id, data)
    except SectionAccessDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return TaskResponse.model_validate(task)


@router.put("/tasks/{task_id}", response_model=TaskResponse, summary="Update task")
async def update_task(
    task_id: str,
    data: TaskUpdateRequest,
    db: DbSession,
    current_user: TeacherUser,
) -> TaskResponse:
    try:
        task = await ClassroomService(db).update_task(current_user.id, task_id, data)
    except TaskNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return TaskResponse.model_validate(task)


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete task")
async def delete_task(task_id: str, db: DbSession, current_user: TeacherUser) -> None:
    try:
        await ClassroomService(db).delete_task(current_user.id, task_id)
    except TaskNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get(
    "/tasks/{task_id}/questions",
    response_model=list[TaskQuestionResponse],
    summary="List task questions",
)
async def list_task_questions(
    task_id: str, db: DbSession, current_user: TeacherUser
) -> list[TaskQuestionResponse]:
    try:
        questions = await ClassroomService(db).list_task_questions(current_user.id, task_id)
    except TaskNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return [TaskQuestionResponse.model_validate(q) for q in questions]


@router.get(
    "/tasks/{task_id}/submissions",
    response_model=list[SubmissionResponse],
    summary="List task submissions",
)
async def list_submissions(task_id: str, db: DbSession, current_user: TeacherUser) -> list[SubmissionResponse]:
    try:
        return await ClassroomService(db).list_submissions(current_user.id, task_id)
    except TaskNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.put(
    "/submissions/{submission_id}/grade",
    response_model=SubmissionResponse,
    summary="Grade submission",
)
async def grade_submission(
    submission_id: str,
    data: SubmissionGradeRequest,
    db: DbSession,
    current_user: TeacherUser,
) -> SubmissionResponse:
    try:
        return await ClassroomService(db).grade_submission(current_user.id, submission_id, data)
    except SubmissionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# =========================================================================
# Meetings
# =========================================================================


@router.get("/meetings", response_model=list[MeetingResponse], summary="List my meetings")
async def list_meetings(
    db: DbSession,
    current_user: TeacherUser,
    upcoming_only: Annotated[bool, Query()] = False,
) -> list[MeetingResponse]:
    meetings = await ClassroomService(db).list_teacher_meetings(current_user.id, upcoming_only)
    return [MeetingResponse.model_validate(m) for m in meetings]


@router.post(
    "/meetings",
    response_model=MeetingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule meeting",
)
async def create_meeting(
    data: MeetingCreateRequest,
    db: DbSession,
    current_user: TeacherUser,
) -> MeetingResponse:
    try:
        meeting = await ClassroomService(db).create_meeting(current_user.id, data)
    except SectionAccessDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return MeetingResponse.model_validate(meeting)


@router.delete("/meetings/{meeting_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete meeting")
async def delete_meeting(meeting_id: str, db: DbSession, current_user: TeacherUser) -> None:
    try:
        await ClassroomService(db).delete_meeting(current_user.id, meeting_id)
    except MeetingNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# =========================================================================
# Learning modules
# =========================================================================


@router.get("/modules", response_model=list[LearningModuleResponse], summary="List my modules")
async def list_modules(
    modules: LearningModules,
    current_user: TeacherUser,
    section_id: Annotated[str | None, Query()] = None,
) -> list[LearningModuleResponse]:
    items = await modules.list_for_teacher(current_user.id, section_id)
    return [LearningModuleResponse.model_validate(m) for m in items]


@router.post(
    "/modules",
    response_model=LearningModuleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload learning module",
    description="Store a module file for a section. Students of the section are notified.",
)
async def upload_module(
    modules: LearningModules,
    current_user: TeacherUser,
    file: Annotated[UploadFile, File(description="Module file")],
    section_id: Annotated[str, Form()],
    title: Annotated[str, Form(min_length=1, max_length=255)],
    description: Annotated[str | None, Form()] = None,
) -> LearningModuleResponse:
    incoming = IncomingFile(
        filename=file.filename or "module", content_type=file.content_type, data=await file.read()
    )
    try:
        module = await modules.upload(
            current_user.id, section_id, title, incoming, description=description
        )
    except SectionAccessDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except DocumentTooLargeError as e:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e))
    except DocumentValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return LearningModuleResponse.model_validate(module)


@router.put("/modules/{module_id}", response_model=LearningModuleResponse, summary="Update module")
async def update_module(
    module_id: str,
    data: LearningModuleUpdateRequest,
    modules: LearningModules,
    current_user: TeacherUser,
) -> LearningModuleResponse:
    try:
        module = await modules.update(current_user.id, module_id, data)
    except LearningModuleNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return LearningModuleResponse.model_validate(module)


@router.delete(
    "/modules/{module_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete module"
)
async def delete_module(module_id: str, modules: LearningModules, current_user: TeacherUser) -> None:
    try:
        await modules.delete(current_user.id, module_id)
    except LearningModuleNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# =========================================================================
# Grades
# =========================================================================


@router.get("/grades", response_model=list[GradeResponse], summary="List grades I recorded")
async def list_grades(
    db: DbSession,
    current_user: TeacherUser,
    student_id: Annotated[str | None, Query()] = None,
    subject_id: Annotated[str | None, Query()] = None,
) -> list[GradeResponse]:
    return await AcademicService(db).list_grades(
        student_id=student_id,
        subject_id=subject_id,
        teacher_id=current_user.id,
    )


@router.post(
    "/grades",
    response_model=GradeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record grade",
)
async def record_grade(data: GradeCreateRequest, db: DbSession, current_user: TeacherUser) -> GradeResponse:
    try:
        return await AcademicService(db).record_grade(data, current_user.id, as_teacher=True)
    except StudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except GradeAccessDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except GradeExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except AcademicServiceError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/grades/{grade_id}", response_model=GradeResponse, summary="Update grade")
async def update_grade(
    grade_id: str,
    data: GradeUpdateRequest,
    db: DbSession,
    current_user: TeacherUser,
) -> GradeResponse:
    try:
        return await AcademicService(db).update_grade(grade_id, data, teacher_id=current_user.id)
    except GradeNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

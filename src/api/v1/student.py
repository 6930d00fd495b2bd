# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student API endpoints.

- GET /dashboard - Section, open tasks, meetings, average grade, balance
- GET /tasks - Tasks of my section
- GET /tasks/{task_id}/questions - Open a quiz or test (answers hidden)
- POST /tasks/{task_id}/submit - Submit or resubmit work
- GET /modules - Learning modules of my section
- GET /submissions - My submissions
- GET /meetings - Upcoming meetings of my section
- GET /grades - My grades
- GET /academic-records - My registrar records
- GET /invoices - My invoices
- GET /scholarships - My scholarships
- GET /transcripts, POST /transcripts - Transcript requests
- GET /history/{school_year} - My records for a school year

All endpoints require the student role.
"""

import logging

from fastapi import APIRouter, HTTPException, status

from src.api.dependencies import DbSession, LearningModules, StudentUser
from src.domains.academic.service import AcademicService, StudentNotFoundError
from src.domains.accounting.service import AccountingService
from src.domains.classroom.service import (
    ClassroomService,
    SubmissionLockedError,
    TaskClosedError,
    TaskNotFoundError,
)
from src.domains.dashboard.service import DashboardService, HistoryStudentNotFoundError
from src.models.academic import (
    AcademicRecordResponse,
    GradeResponse,
    TranscriptRequestCreateRequest,
    TranscriptRequestResponse,
)
from src.models.accounting import InvoiceResponse, ScholarshipResponse
from src.models.classroom import (
    LearningModuleResponse,
    MeetingResponse,
    SubmissionCreateRequest,
    SubmissionResponse,
    TaskQuestionsResponse,
    TaskResponse,
)
from src.models.dashboard import StudentDashboardResponse, StudentHistoryResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/dashboard", response_model=StudentDashboardResponse, summary="Student dashboard")
async def dashboard(db: DbSession, current_user: StudentUser) -> StudentDashboardResponse:
    return await DashboardService(db).student_dashboard(current_user.id)


@router.get("/tasks", response_model=list[TaskResponse], summary="List my tasks")
async def list_tasks(db: DbSession, current_user: StudentUser) -> list[TaskResponse]:
    tasks = await ClassroomService(db).list_student_tasks(current_user.id)
    return [TaskResponse.model_validate(t) for t in tasks]


@router.get(
    "/tasks/{task_id}/questions",
    response_model=TaskQuestionsResponse,
    summary="Open quiz or test",
    description="Questions without the answer key. Refused once the submission is graded.",
)
async def open_task_questions(
    task_id: str, db: DbSession, current_user: StudentUser
) -> TaskQuestionsResponse:
    try:
        return await ClassroomService(db).open_task_questions(current_user.id, task_id)
    except TaskNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except SubmissionLockedError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post(
    "/tasks/{task_id}/submit",
    response_model=SubmissionResponse,
    summary="Submit work",
    description=(
        "Submit text, a file URL or quiz answers. Quiz and test answers are scored at once. "
        "Resubmitting replaces an ungraded submission. Refused after the due date."
    ),
)
async def submit_task(
    task_id: str,
    data: SubmissionCreateRequest,
    db: DbSession,
    current_user: StudentUser,
) -> SubmissionResponse:
    try:
        return await ClassroomService(db).submit(current_user.id, task_id, data)
    except TaskNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except TaskClosedError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SubmissionLockedError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/submissions", response_model=list[SubmissionResponse], summary="List my submissions")
async def list_submissions(db: DbSession, current_user: StudentUser) -> list[SubmissionResponse]:
    return await ClassroomService(db).list_student_submissions(current_user.id)


@router.get("/modules", response_model=list[LearningModuleResponse], summary="List my modules")
async def list_modules(
    modules: LearningModules, current_user: StudentUser
) -> list[LearningModuleResponse]:
    items = await modules.list_for_student(current_user.id)
    return [LearningModuleResponse.model_validate(m) for m in items]


@router.get("/meetings", response_model=list[MeetingResponse], summary="List my meetings")
async def list_meetings(db: DbSession, current_user: StudentUser) -> list[MeetingResponse]:
    meetings = await ClassroomService(db).list_student_meetings(current_user.id)
    return [MeetingResponse.model_validate(m) for m in meetings]


@router.get("/grades", response_model=list[GradeResponse], summary="List my grades")
async def list_grades(db: DbSession, current_user: StudentUser) -> list[GradeResponse]:
    return await AcademicService(db).list_grades(student_id=current_user.id)


@router.get(
    "/academic-records",
    response_model=list[AcademicRecordResponse],
    summary="List my academic records",
)
async def list_records(db: DbSession, current_user: StudentUser) -> list[AcademicRecordResponse]:
    records = await AcademicService(db).list_records(student_id=current_user.id)
    return [AcademicRecordResponse.model_validate(r) for r in records]


@router.get("/invoices", response_model=list[InvoiceResponse], summary="List my invoices")
async def list_invoices(db: DbSession, current_user: StudentUser) -> list[InvoiceResponse]:
    return await AccountingService(db).list_invoices(student_id=current_user.id)


@router.get("/scholarships", response_model=list[ScholarshipResponse], summary="List my scholarships")
async def list_scholarships(db: DbSession, current_user: StudentUser) -> list[ScholarshipResponse]:
    scholarships = await AccountingService(db).list_scholarships(student_id=current_user.id)
    return [ScholarshipResponse.model_validate(s) for s in scholarships]


@router.get(
    "/transcripts",
    response_model=list[TranscriptRequestResponse],
    summary="List my transcript requests",
)
async def list_transcripts(db: DbSession, current_user: StudentUser) -> list[TranscriptRequestResponse]:
    transcripts = await AcademicService(db).list_transcripts(student_id=current_user.id)
    return [TranscriptRequestResponse.model_validate(t) for t in transcripts]


@router.post(
    "/transcripts",
    response_model=TranscriptRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request transcript",
)
async def request_transcript(
    data: TranscriptRequestCreateRequest,
    db: DbSession,
    current_user: StudentUser,
) -> TranscriptRequestResponse:
    try:
        transcript = await AcademicService(db).request_transcript(current_user.id, data)
    except StudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return TranscriptRequestResponse.model_validate(transcript)


@router.get(
    "/history/{school_year}",
    response_model=StudentHistoryResponse,
    summary="My school year history",
)
async def history(school_year: str, db: DbSession, current_user: StudentUser) -> StudentHistoryResponse:
    try:
        return await DashboardService(db).student_history(current_user.id, school_year)
    except HistoryStudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade and registrar record DTOs."""

from decimal import Decimal
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer

from src.models.common import SchoolYear, UTCDateTime, quantize_cents

GradeValue = Annotated[
    Decimal,
    Field(ge=0, le=100),
    AfterValidator(quantize_cents),
    PlainSerializer(float, return_type=float, when_used="json"),
]

GraduationStatus = Literal["pending", "approved", "graduated", "deferred"]
TranscriptStatus = Literal["pending", "processing", "ready", "released", "rejected"]


class GradeCreateRequest(BaseModel):
    student_id: str
    subject_id: str
    quarter: int = Field(ge=1, le=4)
    grade: GradeValue
    school_year: SchoolYear
    remarks: str | None = Field(default=None, max_length=255)


class GradeUpdateRequest(BaseModel):
    grade: GradeValue | None = None
    remarks: str | None = Field(default=None, max_length=255)


class GradeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    subject_id: str
    subject_name: str | None = None
    teacher_id: str | None = None
    quarter: int
    grade: GradeValue
    school_year: str
    remarks: str | None = None
    created_at: UTCDateTime


class AcademicRecordCreateRequest(BaseModel):
    student_id: str
    subject_name: str = Field(min_length=1, max_length=150)
    school_year: SchoolYear
    semester: str | None = Field(default=None, max_length=20)
    final_grade: GradeValue
    remarks: str | None = Field(default=None, max_length=255)


class AcademicRecordUpdateRequest(BaseModel):
    final_grade: GradeValue | None = None
    semester: str | None = Field(default=None, max_length=20)
    remarks: str | None = Field(default=None, max_length=255)


class AcademicRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    subject_name: str
    school_year: str
    semester: str | None = None
    final_grade: GradeValue
    remarks: str | None = None
    recorded_by: str | None = None
    created_at: UTCDateTime


class GraduationCandidateCreateRequest(BaseModel):
    student_id: str
    school_year: SchoolYear
    gpa: GradeValue | None = None
    remarks: str | None = None


class GraduationCandidateUpdateRequest(BaseModel):
    status: GraduationStatus | None = None
    gpa: GradeValue | None = None
    remarks: str | None = None


class GraduationCandidateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    school_year: str
    status: str
    gpa: GradeValue | None = None
    remarks: str | None = None


class TranscriptRequestCreateRequest(BaseModel):
    purpose: str | None = Field(default=None, max_length=255)
    copies: int = Field(default=1, ge=1, le=20)


class TranscriptRequestUpdateRequest(BaseModel):
    status: TranscriptStatus
    remarks: str | None = None


class TranscriptRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    purpose: str | None = None
    copies: int
    status: str
    processed_by: str | None = None
    remarks: str | None = None
    created_at: UTCDateTime
    updated_at: UTCDateTime

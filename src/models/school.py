# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School structure DTOs: sections, subjects, assignments, org chart, settings, school years."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.models.common import SchoolYear, UTCDateTime


class SectionCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    grade_level: str = Field(min_length=1, max_length=30)
    school_year: SchoolYear | None = None
    adviser_id: str | None = Field(default=None, description="Teacher acting as adviser")


class SectionUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    grade_level: str | None = Field(default=None, min_length=1, max_length=30)
    school_year: SchoolYear | None = None
    adviser_id: str | None = None


class SectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    grade_level: str
    school_year: str | None = None
    adviser_id: str | None = None
    student_count: int = 0
    created_at: UTCDateTime


class SubjectCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    code: str | None = Field(default=None, max_length=30)
    grade_level: str = Field(min_length=1, max_length=30)
    description: str | None = None


class SubjectUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=150)
    code: str | None = Field(default=None, max_length=30)
    grade_level: str | None = Field(default=None, min_length=1, max_length=30)
    description: str | None = None


class SubjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    code: str | None = None
    grade_level: str
    description: str | None = None


class TeacherAssignmentCreateRequest(BaseModel):
    teacher_id: str
    subject_id: str
    section_id: str
    school_year: SchoolYear


class TeacherAssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    teacher_id: str
    subject_id: str
    section_id: str
    school_year: str
    teacher_name: str | None = None
    subject_name: str | None = None
    section_name: str | None = None


class OrgChartEntryCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    position: str = Field(min_length=1, max_length=150)
    department: str | None = Field(default=None, max_length=150)
    reports_to_id: str | None = None
    display_order: int = 0
    photo_url: str | None = Field(default=None, max_length=500)


class OrgChartEntryUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    position: str | None = Field(default=None, min_length=1, max_length=150)
    department: str | None = Field(default=None, max_length=150)
    reports_to_id: str | None = None
    display_order: int | None = None
    photo_url: str | None = Field(default=None, max_length=500)


class OrgChartEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    position: str
    department: str | None = None
    reports_to_id: str | None = None
    display_order: int
    photo_url: str | None = None


class SchoolSettingCreateRequest(BaseModel):
    key: str = Field(min_length=1, max_length=100)
    value: str | None = None
    description: str | None = Field(default=None, max_length=500)


class SchoolSettingUpdateRequest(BaseModel):
    value: str | None = None
    description: str | None = Field(default=None, max_length=500)


class SchoolSettingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    key: str
    value: str | None = None
    description: str | None = None
    updated_at: UTCDateTime


class SchoolYearCreateRequest(BaseModel):
    year: str = Field(pattern=r"^\d{4}-\d{4}$", description="School year, e.g. 2025-2026")
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def check_span(self) -> "SchoolYearCreateRequest":
        first, second = (int(part) for part in self.year.split("-"))
        if second != first + 1:
            raise ValueError("year must name two consecutive years")
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class SchoolYearResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    year: str
    start_date: date
    end_date: date
    is_active: bool
    created_at: UTCDateTime

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment record and application workflow DTOs."""

from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from src.models.common import SchoolYear, UTCDateTime

EnrollmentStatus = Literal["pending", "approved", "rejected", "withdrawn"]
PaymentStatus = Literal["unpaid", "partial", "paid"]
ApplicationStatus = Literal["draft", "pending_documents", "submitted", "approved", "rejected"]
ApplicationDecision = Literal["approved", "rejected"]


class EnrollmentCreateRequest(BaseModel):
    """Enrollment created by an admin or a registrar."""

    student_id: str
    school_year: SchoolYear
    grade_level: str | None = Field(default=None, max_length=30)
    section_id: str | None = None
    status: EnrollmentStatus = "pending"
    remarks: str | None = None


class EnrollmentUpdateRequest(BaseModel):
    section_id: str | None = None
    grade_level: str | None = Field(default=None, max_length=30)
    status: EnrollmentStatus | None = None
    payment_status: PaymentStatus | None = None
    remarks: str | None = None


class EnrollmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    student_name: str | None = None
    section_id: str | None = None
    application_id: str | None = None
    school_year: str
    grade_level: str | None = None
    status: str
    payment_status: str
    documents: dict[str, Any] = Field(default_factory=dict)
    remarks: str | None = None
    created_at: UTCDateTime
    updated_at: UTCDateTime


class EnrollmentListResponse(BaseModel):
    items: list[EnrollmentResponse]
    total: int


class ApplicationCreateRequest(BaseModel):
    """Start a new application. Parents pass the child's student_id."""

    student_id: str | None = Field(
        default=None,
        description="Student applied for; defaults to the caller",
    )
    school_year: SchoolYear
    grade_level: str = Field(min_length=1, max_length=30)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    birth_date: date | None = None
    address: str | None = None
    parent_name: str | None = Field(default=None, max_length=255)
    parent_contact: str | None = Field(default=None, max_length=100)


class ApplicationDocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    document_type: str
    file_name: str
    file_url: str
    content_type: str
    size: int
    uploaded_at: UTCDateTime


class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    school_year: str
    grade_level: str
    first_name: str
    last_name: str
    birth_date: date | None = None
    address: str | None = None
    parent_name: str | None = None
    parent_contact: str | None = None
    status: str
    submitted_at: UTCDateTime | None = None
    decided_at: UTCDateTime | None = None
    decided_by: str | None = None
    remarks: str | None = None
    documents: list[ApplicationDocumentResponse] = Field(default_factory=list)
    created_at: UTCDateTime


class ApplicationListResponse(BaseModel):
    items: list[ApplicationResponse]
    total: int
    page: int
    limit: int


class ApplicationDecisionRequest(BaseModel):
    decision: str = Field(description="approved or rejected")
    remarks: str | None = None


class ProgressResponse(BaseModel):
    """Latest application progress; status is no_application when none exists."""

    status: str
    application_id: str | None = None
    remarks: str | None = None
    last_updated: UTCDateTime | None = None


class EnrollmentRequestCreateRequest(BaseModel):
    """Registrar intake of an enrollment request."""

    student_id: str
    school_year: SchoolYear
    grade_level: str = Field(min_length=1, max_length=30)
    remarks: str | None = None


class EnrollmentRequestUpdateRequest(BaseModel):
    status: EnrollmentStatus | None = None
    section_id: str | None = None
    remarks: str | None = None

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Guidance office DTOs."""

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from src.models.common import UTCDateTime

BehaviorStatus = Literal["open", "resolved", "escalated"]
Confidentiality = Literal["private", "share_with_parent", "share_with_teacher"]


class BehaviorRecordCreateRequest(BaseModel):
    student_id: str
    incident_type: str = Field(min_length=1, max_length=100)
    description: str | None = None
    incident_date: date
    action_taken: str | None = None
    status: BehaviorStatus = "open"


class BehaviorRecordUpdateRequest(BaseModel):
    description: str | None = None
    action_taken: str | None = None
    status: BehaviorStatus | None = None


class BehaviorRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    reported_by: str | None = None
    incident_type: str
    description: str | None = None
    incident_date: date
    action_taken: str | None = None
    status: str
    created_at: UTCDateTime


class CounselingSessionCreateRequest(BaseModel):
    student_id: str
    session_date: UTCDateTime
    notes: str | None = None
    confidentiality: Confidentiality = "private"
    follow_up_date: date | None = None


class CounselingSessionUpdateRequest(BaseModel):
    notes: str | None = None
    confidentiality: Confidentiality | None = None
    follow_up_date: date | None = None


class CounselingSessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    counselor_id: str | None = None
    session_date: UTCDateTime
    notes: str | None = None
    confidentiality: str
    follow_up_date: date | None = None
    created_at: UTCDateTime


class WellnessProgramCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    capacity: int | None = Field(default=None, ge=1)


class WellnessProgramUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    capacity: int | None = Field(default=None, ge=1)


class WellnessProgramResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    capacity: int | None = None
    participant_count: int = 0
    created_at: UTCDateTime


class ParticipantCreateRequest(BaseModel):
    student_id: str


class ParticipantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    program_id: str
    student_id: str
    student_name: str | None = None
    joined_at: UTCDateTime


class GuidanceNotifyRequest(BaseModel):
    """Ad-hoc message from the guidance office to a user."""

    recipient_id: str
    title: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1)
    type: str = Field(default="guidance", max_length=30)


class ParentGuidanceResponse(BaseModel):
    """Guidance items a parent may see for one child."""

    behavior_records: list[BehaviorRecordResponse]
    counseling_sessions: list[CounselingSessionResponse]

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User DTOs."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from src.core.roles import Role
from src.models.common import UTCDateTime


class UserSummary(BaseModel):
    """Compact user reference embedded in other responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    role: str


class UserResponse(BaseModel):
    """Full user profile."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    role: str
    section_id: str | None = None
    grade_level: str | None = None
    phone: str | None = None
    is_active: bool
    last_login_at: UTCDateTime | None = None
    created_at: UTCDateTime


class UserListResponse(BaseModel):
    items: list[UserResponse]
    total: int


class UserCreateRequest(BaseModel):
    """Admin-side account creation."""

    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    role: Role
    section_id: str | None = None
    grade_level: str | None = Field(default=None, max_length=30)
    phone: str | None = Field(default=None, max_length=50)


class UserUpdateRequest(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=8, max_length=128)
    role: Role | None = None
    section_id: str | None = None
    grade_level: str | None = Field(default=None, max_length=30)
    phone: str | None = Field(default=None, max_length=50)
    is_active: bool | None = None


class ParentLinkRequest(BaseModel):
    parent_id: str
    student_id: str
    relationship_type: str = Field(default="guardian", max_length=30)


class ParentLinkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    parent_id: str
    student_id: str
    relationship_type: str
    created_at: UTCDateTime


class RoleResponse(BaseModel):
    code: str = Field(description="Role identifier stored on the user")
    description: str

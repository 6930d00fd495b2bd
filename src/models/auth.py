# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication DTOs."""

from pydantic import BaseModel, EmailStr, Field

from src.core.roles import Role
from src.models.user import UserResponse


class RegisterRequest(BaseModel):
    """Self-registration request."""

    name: str = Field(min_length=1, max_length=255, description="Full name")
    email: EmailStr = Field(description="Login email")
    password: str = Field(min_length=8, max_length=128, description="Plain password")
    role: Role = Field(default=Role.STUDENT, description="Requested role")
    grade_level: str | None = Field(default=None, max_length=30)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = Field(description="Access token lifetime in seconds")


class AuthResponse(BaseModel):
    """User profile together with a fresh token pair."""

    user: UserResponse
    tokens: TokenResponse

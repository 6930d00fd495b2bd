# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication API endpoints.

This module provides endpoints for user authentication:
- POST /register - Self-register a student or parent account
- POST /login - Email and password login
- POST /refresh - Refresh access token
- GET /me - Get current user info
- POST /logout - Mark the user offline

Staff accounts (teachers, registrars, ...) are created by an admin.

Example:
    POST /api/v1/auth/login
    Body:
        {"email": "student@school.edu", "password": "..."}
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from src.api.dependencies import DbSession, get_auth_service, require_auth
from src.api.middleware.auth import CurrentUser
from src.api.middleware.rate_limit import get_ip_only, limiter, login_limit
from src.core.config import get_settings
from src.domains.auth.jwt import TokenPair
from src.domains.auth.service import (
    AccountInactiveError,
    AuthService,
    EmailExistsError,
    InvalidCredentialsError,
    RegistrationNotAllowedError,
    TokenRefreshError,
)
from src.domains.chat.service import ChatService
from src.models.auth import (
    AuthResponse,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
)
from src.models.common import MessageResponse
from src.models.user import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _token_response(tokens: TokenPair) -> TokenResponse:
    return TokenResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        token_type=tokens.token_type,
        expires_in=tokens.expires_in,
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register account",
    description="Create a student or parent account and return a token pair.",
)
async def register(
    data: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    try:
        user, tokens = await service.register(data)
    except RegistrationNotAllowedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except EmailExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return AuthResponse(user=UserResponse.model_validate(user), tokens=_token_response(tokens))


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login",
    description="Authenticate with email and password.",
)
@limiter.limit(login_limit, key_func=get_ip_only)
async def login(
    request: Request,
    data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    try:
        user, tokens = await service.login(data.email, data.password)
    except (InvalidCredentialsError, AccountInactiveError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AuthResponse(user=UserResponse.model_validate(user), tokens=_token_response(tokens))


@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Refresh access token",
    description="Exchange a refresh token for a new token pair.",
)
async def refresh_token(
    data: RefreshRequest,
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    try:
        tokens = await service.refresh_tokens(data.refresh_token)
    except TokenRefreshError as e:
        logger.info("Token refresh failed: %s", str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return _token_response(tokens)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
)
async def get_current_user_info(
    current_user: CurrentUser = Depends(require_auth),
    service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    try:
        user = await service.get_user(current_user.id)
    except InvalidCredentialsError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse.model_validate(user)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Logout",
    description="Mark the user offline. Tokens expire on their own.",
)
async def logout(
    db: DbSession,
    current_user: CurrentUser = Depends(require_auth),
) -> MessageResponse:
    await ChatService(db, settings=get_settings().chat).set_presence(current_user.id, False)
    logger.info("User logged out: %s", current_user.id)
    return MessageResponse(message="Logged out")

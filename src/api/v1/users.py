# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User management API endpoints.

This module provides admin endpoints for accounts:
- GET /users - List users with role filter and search
- POST /users - Create a user with any role
- GET /users/{user_id} - Get user details
- PUT /users/{user_id} - Update user (partial, password reset)
- DELETE /users/{user_id} - Delete user
- GET /roles - List the role vocabulary

Parent-student links:
- POST /parent-links - Link a parent to a student
- DELETE /parent-links/{parent_id}/{student_id} - Remove a link
- GET /parents/{parent_id}/children - List a parent's children

All endpoints require the admin role.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, get_password_hasher, require_admin
from src.api.middleware.auth import CurrentUser
from src.domains.auth.password import PasswordHasher
from src.domains.user.service import (
    InvalidUserRoleError,
    ParentLinkExistsError,
    ParentLinkNotFoundError,
    UserEmailExistsError,
    UserNotFoundError,
    UserService,
    UserServiceError,
)
from src.models.user import (
    ParentLinkRequest,
    ParentLinkResponse,
    RoleResponse,
    UserCreateRequest,
    UserListResponse,
    UserResponse,
    UserUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(
    db: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> UserService:
    return UserService(db, hasher)


@router.get(
    "/users",
    response_model=UserListResponse,
    summary="List users",
    description="List users, optionally filtered by role or matched by name/email.",
)
async def list_users(
    role: Annotated[str | None, Query(description="Filter by role")] = None,
    search: Annotated[str | None, Query(description="Name or email contains")] = None,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
    current_user: CurrentUser = Depends(require_admin),
    service: UserService = Depends(_get_service),
) -> UserListResponse:
    users, total = await service.list_users(role=role, search=search, limit=limit, offset=offset)
    return UserListResponse(items=[UserResponse.model_validate(u) for u in users], total=total)


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
)
async def create_user(
    data: UserCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    service: UserService = Depends(_get_service),
) -> UserResponse:
    try:
        user = await service.create_user(data)
    except UserEmailExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except UserServiceError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    logger.info("Admin %s created user %s", current_user.id, user.id)
    return UserResponse.model_validate(user)


@router.get(
    "/users/{user_id}",
    response_model=UserResponse,
    summary="Get user",
)
async def get_user(
    user_id: str,
    current_user: CurrentUser = Depends(require_admin),
    service: UserService = Depends(_get_service),
) -> UserResponse:
    try:
        user = await service.get_user(user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return UserResponse.model_validate(user)


@router.put(
    "/users/{user_id}",
    response_model=UserResponse,
    summary="Update user",
    description="Partial update. Sending a password resets it.",
)
async def update_user(
    user_id: str,
    data: UserUpdateRequest,
    current_user: CurrentUser = Depends(require_admin),
    service: UserService = Depends(_get_service),
) -> UserResponse:
    try:
        user = await service.update_user(user_id, data)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except UserEmailExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except UserServiceError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return UserResponse.model_validate(user)


@router.delete(
    "/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete user",
)
async def delete_user(
    user_id: str,
    current_user: CurrentUser = Depends(require_admin),
    service: UserService = Depends(_get_service),
) -> None:
    if user_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete your own account",
        )
    try:
        await service.delete_user(user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get(
    "/roles",
    response_model=list[RoleResponse],
    summary="List roles",
)
async def list_roles(
    current_user: CurrentUser = Depends(require_admin),
) -> list[RoleResponse]:
    return UserService.list_roles()


@router.post(
    "/parent-links",
    response_model=ParentLinkResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Link parent to student",
)
async def link_parent(
    data: ParentLinkRequest,
    current_user: CurrentUser = Depends(require_admin),
    service: UserService = Depends(_get_service),
) -> ParentLinkResponse:
    try:
        link = await service.link_parent(data)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidUserRoleError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ParentLinkExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return ParentLinkResponse.model_validate(link)


@router.delete(
    "/parent-links/{parent_id}/{student_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unlink parent from student",
)
async def unlink_parent(
    parent_id: str,
    student_id: str,
    current_user: CurrentUser = Depends(require_admin),
    service: UserService = Depends(_get_service),
) -> None:
    try:
        await service.unlink_parent(parent_id, student_id)
    except ParentLinkNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get(
    "/parents/{parent_id}/children",
    response_model=list[UserResponse],
    summary="List a parent's children",
)
async def list_children(
    parent_id: str,
    current_user: CurrentUser = Depends(require_admin),
    service: UserService = Depends(_get_service),
) -> list[UserResponse]:
    children = await service.list_children(parent_id)
    return [UserResponse.model_validate(c) for c in children]

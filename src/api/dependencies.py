# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions
- Get authenticated users and enforce roles
- Get service instances

Example:
    @router.get("/grades")
    async def list_grades(
        db: AsyncSession = Depends(get_db),
        current_user: CurrentUser = Depends(require_auth),
    ):
        ...
"""

import logging
from contextlib import AbstractAsyncContextManager
from typing import Annotated, AsyncGenerator, Callable

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.middleware.auth import CurrentUser, get_current_user
from src.core.config import get_settings
from src.core.roles import Role
from src.domains.auth.jwt import JWTManager
from src.domains.auth.password import PasswordHasher
from src.domains.auth.service import AuthService
from src.domains.classroom.modules import LearningModuleService
from src.domains.document.service import DocumentService
from src.infrastructure.database.connection import get_session
from src.infrastructure.storage import BlobStorage, StorageError, get_storage

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session.

    Yields:
        AsyncSession committed on success and rolled back on error.
    """
    async with get_session() as session:
        yield session


def get_session_factory() -> SessionFactory:
    """Get a factory for short-lived sessions.

    Long-running handlers such as the chat socket open one session per
    operation instead of holding one for the whole connection.
    """
    return get_session


# =========================================================================
# Authentication Dependencies
# =========================================================================


def get_optional_user(request: Request) -> CurrentUser | None:
    """Get current user if authenticated, None otherwise."""
    return get_current_user(request)


def require_auth(request: Request) -> CurrentUser:
    """Require authenticated user.

    Args:
        request: HTTP request.

    Returns:
        CurrentUser.

    Raises:
        HTTPException: If not authenticated.
    """
    user = get_current_user(request)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_admin(request: Request) -> CurrentUser:
    """Require admin user.

    Raises:
        HTTPException: If not authenticated or not admin.
    """
    user = require_auth(request)
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


class RequireRole:
    """Dependency for requiring specific roles.

    Example:
        @router.get("/records")
        async def list_records(
            user: CurrentUser = Depends(RequireRole("registrar", "admin")),
        ):
            ...
    """

    def __init__(self, *roles: str | Role) -> None:
        """Initialize role requirement.

        Args:
            roles: Accepted role codes (any of these).
        """
        self.roles = tuple(r.value if isinstance(r, Role) else r for r in roles)

    def __call__(self, request: Request) -> CurrentUser:
        """Check roles and return user.

        Raises:
            HTTPException: If the user holds none of the roles.
        """
        user = require_auth(request)

        if not user.has_any_role(*self.roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role: {', '.join(self.roles)}",
            )

        return user


require_teacher = RequireRole(Role.TEACHER)
require_student = RequireRole(Role.STUDENT)
require_parent = RequireRole(Role.PARENT)
require_guidance = RequireRole(Role.GUIDANCE, Role.ADMIN)
require_registrar = RequireRole(Role.REGISTRAR, Role.ADMIN)
require_accounting = RequireRole(Role.ACCOUNTING, Role.ADMIN)
require_principal = RequireRole(Role.PRINCIPAL, Role.ADMIN)
require_coordinator = RequireRole(Role.ACADEMIC_COORDINATOR, Role.PRINCIPAL, Role.ADMIN)
require_applicant = RequireRole(Role.STUDENT, Role.PARENT)


# =========================================================================
# Service Dependencies
# =========================================================================


def get_jwt_manager() -> JWTManager:
    """Get JWT manager instance."""
    return JWTManager(get_settings().jwt)


def get_password_hasher() -> PasswordHasher:
    """Get password hasher with the configured cost factor."""
    return PasswordHasher(get_settings().jwt.bcrypt_rounds)


async def get_auth_service(
    db: AsyncSession = Depends(get_db),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> AuthService:
    """Get AuthService instance."""
    return AuthService(db, jwt_manager, hasher)


def get_blob_storage() -> BlobStorage:
    """Get the configured blob store.

    Raises:
        HTTPException: If storage was not initialized at startup.
    """
    try:
        return get_storage()
    except StorageError as e:
        logger.error("Blob storage unavailable: %s", str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage not initialized",
        ) from e


async def get_document_service(
    db: AsyncSession = Depends(get_db),
    storage: BlobStorage = Depends(get_blob_storage),
) -> DocumentService:
    """Get DocumentService bound to the request session."""
    return DocumentService(db, storage, get_settings().storage)


async def get_learning_module_service(
    db: AsyncSession = Depends(get_db),
    storage: BlobStorage = Depends(get_blob_storage),
) -> LearningModuleService:
    """Get LearningModuleService bound to the request session."""
    return LearningModuleService(db, storage, get_settings().storage)


# =========================================================================
# Type Aliases for Cleaner Endpoint Signatures
# =========================================================================

DbSession = Annotated[AsyncSession, Depends(get_db)]
OptionalUser = Annotated[CurrentUser | None, Depends(get_optional_user)]
AuthenticatedUser = Annotated[CurrentUser, Depends(require_auth)]
AdminUser = Annotated[CurrentUser, Depends(require_admin)]
TeacherUser = Annotated[CurrentUser, Depends(require_teacher)]
StudentUser = Annotated[CurrentUser, Depends(require_student)]
ParentUser = Annotated[CurrentUser, Depends(require_parent)]
GuidanceUser = Annotated[CurrentUser, Depends(require_guidance)]
RegistrarUser = Annotated[CurrentUser, Depends(require_registrar)]
AccountingUser = Annotated[CurrentUser, Depends(require_accounting)]
PrincipalUser = Annotated[CurrentUser, Depends(require_principal)]
CoordinatorUser = Annotated[CurrentUser, Depends(require_coordinator)]
ApplicantUser = Annotated[CurrentUser, Depends(require_applicant)]
Documents = Annotated[DocumentService, Depends(get_document_service)]
LearningModules = Annotated[LearningModuleService, Depends(get_learning_module_service)]

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User service for account administration.

This module provides the UserService that handles:
- User CRUD for administrators
- Parent/student links
- The role vocabulary

Example:
    >>> user_service = UserService(db_session, PasswordHasher())
    >>> users, total = await user_service.list_users(role="teacher", search="ana")
"""

import logging

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.roles import ROLE_DESCRIPTIONS, Role
from src.domains.auth.password import PasswordHasher
from src.infrastructure.database.models import ParentStudentLink, Section, User
from src.models.user import (
    ParentLinkRequest,
    RoleResponse,
    UserCreateRequest,
    UserUpdateRequest,
)

logger = logging.getLogger(__name__)


class UserServiceError(Exception):
    """Base exception for user service errors."""

    pass


class UserNotFoundError(UserServiceError):
    """Raised when a user is not found."""

    pass


class UserEmailExistsError(UserServiceError):
    """Raised when an email is already used by another account."""

    pass


class InvalidUserRoleError(UserServiceError):
    """Raised when a user does not hold the role an operation needs."""

    pass


class ParentLinkExistsError(UserServiceError):
    """Raised when a parent is already linked to a student."""

    pass


class ParentLinkNotFoundError(UserServiceError):
    """Raised when a parent/student link does not exist."""

    pass


class UserService:
    """Service for managing user accounts.

    Attributes:
        _db: Async database session.
        _hasher: Password hasher for created and reset passwords.
    """

    def __init__(self, db: AsyncSession, hasher: PasswordHasher) -> None:
        self._db = db
        self._hasher = hasher

    async def list_users(
        self,
        role: str | None = None,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[User], int]:
        """List users, filtered by role and a name/email search."""
        stmt = select(User)
        if role:
            stmt = stmt.where(User.role == role)
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(
                or_(func.lower(User.name).like(pattern), func.lower(User.email).like(pattern))
            )

        total = await self._db.scalar(select(func.count()).select_from(stmt.subquery()))
        result = await self._db.execute(stmt.order_by(User.name).limit(limit).offset(offset))
        return list(result.scalars().all()), total or 0

    async def get_user(self, user_id: str) -> User:
        """Get a user by ID.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        user = await self._db.get(User, user_id)
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    async def require_role(self, user_id: str, role: Role | str) -> User:
        """Get a user and check it holds ``role``.

        Raises:
            UserNotFoundError: If the user does not exist.
            InvalidUserRoleError: If the user holds a different role.
        """
        user = await self.get_user(user_id)
        expected = Role(role).value
        if user.role != expected:
            raise InvalidUserRoleError(f"User {user_id} is not a {expected}")
        return user

    async def create_user(self, request: UserCreateRequest) -> User:
        """Create an account with any role.

        Raises:
            UserEmailExistsError: If the email is taken.
            UserServiceError: If the section does not exist.
        """
        email = request.email.lower()
        await self._ensure_email_free(email)
        if request.section_id:
            await self._ensure_section(request.section_id)

        user = User(
            name=request.name.strip(),
            email=email,
            password_hash=self._hasher.hash(request.password),
            role=request.role.value,
            section_id=request.section_id,
            grade_level=request.grade_level,
            phone=request.phone,
            is_active=True,
        )
        self._db.add(user)
        await self._db.commit()
        await self._db.refresh(user)

        logger.info("User created: %s (role=%s)", user.id, user.role)
        return user

    async def update_user(self, user_id: str, request: UserUpdateRequest) -> User:
        """Apply a partial update. A password in the request resets it."""
        user = await self.get_user(user_id)
        changes = request.model_dump(exclude_unset=True)

        if changes.get("email"):
            email = changes["email"].lower()
            if email != user.email:
                await self._ensure_email_free(email)
            changes["email"] = email
        if changes.get("section_id"):
            await self._ensure_section(changes["section_id"])
        password = changes.pop("password", None)
        if password:
            user.password_hash = self._hasher.hash(password)
        if changes.get("role") is not None:
            changes["role"] = Role(changes["role"]).value

        for field, value in changes.items():
            # Required columns ignore an explicit null
            if value is None and field in ("name", "email", "role", "is_active"):
                continue
            setattr(user, field, value)

        await self._db.commit()
        await self._db.refresh(user)

        logger.info("User updated: %s", user.id)
        return user

    async def delete_user(self, user_id: str) -> None:
        user = await self.get_user(user_id)
        await self._db.delete(user)
        await self._db.commit()
        logger.info("User deleted: %s", user_id)

    async def link_parent(self, request: ParentLinkRequest) -> ParentStudentLink:
        """Link a parent account to a student account.

        Raises:
            UserNotFoundError: If either account does not exist.
            InvalidUserRoleError: If the roles do not match.
            ParentLinkExistsError: If the link already exists.
        """
        await self.require_role(request.parent_id, Role.PARENT)
        await self.require_role(request.student_id, Role.STUDENT)

        if await self._get_link(request.parent_id, request.student_id):
            raise ParentLinkExistsError("Parent is already linked to this student")

        link = ParentStudentLink(
            parent_id=request.parent_id,
            student_id=request.student_id,
            relationship_type=request.relationship_type,
        )
        self._db.add(link)
        await self._db.commit()
        await self._db.refresh(link)

        logger.info("Parent linked: parent=%s, student=%s", link.parent_id, link.student_id)
        return link

    async def unlink_parent(self, parent_id: str, student_id: str) -> None:
        link = await self._get_link(parent_id, student_id)
        if link is None:
            raise ParentLinkNotFoundError("Parent is not linked to this student")
        await self._db.delete(link)
        await self._db.commit()

    async def list_children(self, parent_id: str) -> list[User]:
        result = await self._db.execute(
            select(User)
            .join(ParentStudentLink, ParentStudentLink.student_id == User.id)
            .where(ParentStudentLink.parent_id == parent_id)
            .order_by(User.name)
        )
        return list(result.scalars().all())

    async def is_parent_of(self, parent_id: str, student_id: str) -> bool:
        return await self._get_link(parent_id, student_id) is not None

    @staticmethod
    def list_roles() -> list[RoleResponse]:
        return [
            RoleResponse(code=role.value, description=ROLE_DESCRIPTIONS[role.value])
            for role in Role
        ]

    async def _ensure_email_free(self, email: str) -> None:
        existing = await self._db.scalar(select(User.id).where(func.lower(User.email) == email))
        if existing:
            raise UserEmailExistsError(f"Email '{email}' is already registered")

    async def _ensure_section(self, section_id: str) -> None:
        if await self._db.get(Section, section_id) is None:
            raise UserServiceError(f"Section {section_id} not found")

    async def _get_link(self, parent_id: str, student_id: str) -> ParentStudentLink | None:
        result = await self._db.execute(
            select(ParentStudentLink).where(
                ParentStudentLink.parent_id == parent_id,
                ParentStudentLink.student_id == student_id,
            )
        )
        return result.scalar_one_or_none()

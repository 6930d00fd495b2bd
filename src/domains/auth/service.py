# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication service.

This module provides the AuthService that handles:
- Self-registration of students and parents
- Email/password login
- Token refresh
- Profile lookup for the authenticated user

Example:
    >>> auth_service = AuthService(db_session, jwt_manager, PasswordHasher())
    >>> user, tokens = await auth_service.login("ana@school.test", "secret-pass")
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.roles import SELF_REGISTER_ROLES
from src.domains.auth.jwt import JWTError, JWTManager, TokenPair
from src.domains.auth.password import PasswordHasher
from src.infrastructure.database.models import User
from src.models.auth import RegisterRequest
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Base exception for authentication errors."""

    pass


class InvalidCredentialsError(AuthenticationError):
    """Raised when the email is unknown or the password is wrong."""

    pass


class AccountInactiveError(AuthenticationError):
    """Raised when account is not active."""

    pass


class TokenRefreshError(AuthenticationError):
    """Raised when token refresh fails."""

    pass


class EmailExistsError(AuthenticationError):
    """Raised when registering an email that is already taken."""

    pass


class RegistrationNotAllowedError(AuthenticationError):
    """Raised when self-registration is requested for a staff role."""

    pass


class AuthService:
    """Authentication service.

    Attributes:
        _db: Database session for queries.
        _jwt_manager: JWT token manager.
        _hasher: Password hasher.
    """

    def __init__(
        self,
        db: AsyncSession,
        jwt_manager: JWTManager,
        hasher: PasswordHasher,
    ) -> None:
        self._db = db
        self._jwt_manager = jwt_manager
        self._hasher = hasher

    async def register(self, request: RegisterRequest) -> tuple[User, TokenPair]:
        """Create a student or parent account and sign it in.

        Raises:
            RegistrationNotAllowedError: If the role may not self-register.
            EmailExistsError: If the email is already registered.
        """
        if request.role.value not in SELF_REGISTER_ROLES:
            raise RegistrationNotAllowedError(
                f"Role '{request.role.value}' cannot self-register"
            )

        email = request.email.lower()
        if await self._get_by_email(email):
            raise EmailExistsError(f"Email '{email}' is already registered")

        user = User(
            name=request.name.strip(),
            email=email,
            password_hash=self._hasher.hash(request.password),
            role=request.role.value,
            grade_level=request.grade_level,
            is_active=True,
            last_login_at=utc_now(),
        )
        self._db.add(user)
        await self._db.commit()
        await self._db.refresh(user)

        logger.info("User registered: %s (role=%s)", user.id, user.role)
        return user, self.issue_tokens(user)

    async def login(self, email: str, password: str) -> tuple[User, TokenPair]:
        """Authenticate with email and password.

        Raises:
            InvalidCredentialsError: On unknown email or wrong password.
            AccountInactiveError: If the account is deactivated.
        """
        user = await self._get_by_email(email.lower())
        if user is None or not self._hasher.verify(password, user.password_hash):
            logger.info("Failed login for %s", email)
            raise InvalidCredentialsError("Invalid email or password")

        if not user.is_active:
            raise AccountInactiveError("Account is inactive")

        if self._hasher.needs_rehash(user.password_hash):
            user.password_hash = self._hasher.hash(password)
        user.last_login_at = utc_now()
        await self._db.commit()
        await self._db.refresh(user)

        logger.info("User logged in: %s", user.id)
        return user, self.issue_tokens(user)

    async def refresh_tokens(self, refresh_token: str) -> TokenPair:
        """Exchange a refresh token for a new pair.

        Raises:
            TokenRefreshError: If the token is invalid or the user is gone.
        """
        try:
            payload = self._jwt_manager.decode_token(refresh_token, expected_type="refresh")
        except JWTError as e:
            raise TokenRefreshError(f"Invalid refresh token: {e}") from e

        user = await self._db.get(User, payload.sub)
        if user is None or not user.is_active:
            raise TokenRefreshError("User not found or inactive")

        logger.info("Tokens refreshed for user: %s", user.id)
        return self.issue_tokens(user)

    async def get_user(self, user_id: str) -> User:
        """Load the profile of an authenticated user.

        Raises:
            InvalidCredentialsError: If the user no longer exists.
        """
        user = await self._db.get(User, user_id)
        if user is None:
            raise InvalidCredentialsError("User not found")
        return user

    def issue_tokens(self, user: User) -> TokenPair:
        return self._jwt_manager.create_token_pair(
            user_id=user.id,
            role=user.role,
            email=user.email,
            name=user.name,
        )

    async def _get_by_email(self, email: str) -> User | None:
        result = await self._db.execute(select(User).where(func.lower(User.email) == email))
        return result.scalar_one_or_none()

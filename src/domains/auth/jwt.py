# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""JWT token management utilities.

This module provides JWT token creation and validation using python-jose.
Access tokens carry the user's role, email and name so that requests can
be authorized without a database round trip. Refresh tokens carry only
the subject.

Example:
    >>> from src.core.config import get_settings
    >>> jwt_manager = JWTManager(get_settings().jwt)
    >>> tokens = jwt_manager.create_token_pair(user_id="...", role="student")
    >>> claims = jwt_manager.decode_token(tokens.access_token, expected_type="access")
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Literal

from jose import ExpiredSignatureError, JWTError as JoseJWTError, jwt
from pydantic import BaseModel, ValidationError

from src.core.config.settings import JWTSettings

logger = logging.getLogger(__name__)


class TokenPayload(BaseModel):
    """JWT token payload structure.

    Attributes:
        sub: Subject (user ID).
        type: Token type (access or refresh).
        role: Role code of the user (access tokens only).
        email: User email (access tokens only).
        name: Display name (access tokens only).
        exp: Expiration timestamp.
        iat: Issued at timestamp.
        jti: JWT ID.
    """

    sub: str
    type: Literal["access", "refresh"]
    role: str | None = None
    email: str | None = None
    name: str | None = None
    exp: int
    iat: int
    jti: str


class TokenPair(BaseModel):
    """Access and refresh token pair."""

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    refresh_expires_in: int


class JWTError(Exception):
    """Base exception for JWT operations."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid."""

    pass


class JWTManager:
    """JWT token creation and validation manager.

    Example:
        >>> jwt_manager = JWTManager(settings)
        >>> tokens = jwt_manager.create_token_pair(
        ...     user_id=user.id, role=user.role, email=user.email, name=user.name
        ... )
        >>> jwt_manager.decode_token(tokens.refresh_token, expected_type="refresh").sub
    """

    def __init__(self, settings: JWTSettings) -> None:
        self._settings = settings

    @property
    def access_ttl(self) -> timedelta:
        return timedelta(minutes=self._settings.access_token_expire_minutes)

    @property
    def refresh_ttl(self) -> timedelta:
        return timedelta(days=self._settings.refresh_token_expire_days)

    def _encode(self, payload: dict[str, Any]) -> str:
        return jwt.encode(
            payload,
            self._settings.secret_key.get_secret_value(),
            algorithm=self._settings.algorithm,
        )

    def create_access_token(
        self,
        user_id: str,
        role: str,
        email: str | None = None,
        name: str | None = None,
    ) -> str:
        """Create a signed access token.

        Args:
            user_id: User identifier.
            role: Role code of the user.
            email: User email.
            name: Display name.

        Returns:
            JWT access token string.
        """
        now = datetime.now(timezone.utc)
        return self._encode(
            {
                "sub": str(user_id),
                "type": "access",
                "role": role,
                "email": email,
                "name": name,
                "exp": int((now + self.access_ttl).timestamp()),
                "iat": int(now.timestamp()),
                "jti": secrets.token_urlsafe(16),
            }
        )

    def create_refresh_token(self, user_id: str) -> str:
        """Create a signed refresh token."""
        now = datetime.now(timezone.utc)
        return self._encode(
            {
                "sub": str(user_id),
                "type": "refresh",
                "exp": int((now + self.refresh_ttl).timestamp()),
                "iat": int(now.timestamp()),
                "jti": secrets.token_urlsafe(16),
            }
        )

    def create_token_pair(
        self,
        user_id: str,
        role: str,
        email: str | None = None,
        name: str | None = None,
    ) -> TokenPair:
        """Create an access and refresh token pair."""
        return TokenPair(
            access_token=self.create_access_token(user_id, role, email=email, name=name),
            refresh_token=self.create_refresh_token(user_id),
            token_type="Bearer",
            expires_in=int(self.access_ttl.total_seconds()),
            refresh_expires_in=int(self.refresh_ttl.total_seconds()),
        )

    def decode_token(
        self,
        token: str,
        expected_type: Literal["access", "refresh"] | None = None,
    ) -> TokenPayload:
        """Decode and validate a JWT token.

        Args:
            token: JWT token string.
            expected_type: Expected token type (access or refresh).

        Returns:
            TokenPayload with decoded claims.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid or of the wrong type.
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.secret_key.get_secret_value(),
                algorithms=[self._settings.algorithm],
            )
        except ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except JoseJWTError as e:
            logger.debug("Token decode failed: %s", e)
            raise InvalidTokenError(f"Invalid token: {e}") from e

        if expected_type and payload.get("type") != expected_type:
            raise InvalidTokenError(f"Expected {expected_type} token, got {payload.get('type')}")

        try:
            return TokenPayload.model_validate(payload)
        except ValidationError as e:
            raise InvalidTokenError("Token payload is malformed") from e

    def verify_token(
        self,
        token: str,
        expected_type: Literal["access", "refresh"] | None = None,
    ) -> bool:
        """Return True if the token decodes and has the expected type."""
        try:
            self.decode_token(token, expected_type)
            return True
        except JWTError:
            return False

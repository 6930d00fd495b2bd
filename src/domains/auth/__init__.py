# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication domain.

Exports:
    PasswordHasher: bcrypt password hashing.
    JWTManager: JWT token creation and validation.
    AuthService: Registration, login and token refresh.
"""

from src.domains.auth.jwt import JWTManager
from src.domains.auth.password import PasswordHasher
from src.domains.auth.service import AuthService

__all__ = [
    "AuthService",
    "JWTManager",
    "PasswordHasher",
]

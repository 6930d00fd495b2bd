# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User administration domain."""

from src.domains.user.service import (
    InvalidUserRoleError,
    ParentLinkExistsError,
    ParentLinkNotFoundError,
    UserEmailExistsError,
    UserNotFoundError,
    UserService,
    UserServiceError,
)

__all__ = [
    "InvalidUserRoleError",
    "ParentLinkExistsError",
    "ParentLinkNotFoundError",
    "UserEmailExistsError",
    "UserNotFoundError",
    "UserService",
    "UserServiceError",
]

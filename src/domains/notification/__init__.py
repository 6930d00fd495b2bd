# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification domain."""

from src.domains.notification.service import (
    NotificationNotFoundError,
    NotificationService,
    NotificationServiceError,
)

__all__ = [
    "NotificationNotFoundError",
    "NotificationService",
    "NotificationServiceError",
]

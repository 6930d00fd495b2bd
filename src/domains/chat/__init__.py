# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Chat domain: conversations, messages and presence."""

from src.domains.chat.service import (
    ChatAccessDeniedError,
    ChatService,
    ChatServiceError,
    ConversationNotFoundError,
    InvalidConversationError,
    MessageNotFoundError,
)

__all__ = [
    "ChatAccessDeniedError",
    "ChatService",
    "ChatServiceError",
    "ConversationNotFoundError",
    "InvalidConversationError",
    "MessageNotFoundError",
]

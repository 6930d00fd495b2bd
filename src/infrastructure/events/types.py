# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Event type constants.

Publishers and subscribers import names from here instead of repeating
string literals.
"""


class EventTypes:
    """All event types organized by domain."""

    class Chat:
        """Chat events pushed to connected sockets."""

        CONVERSATION_CREATED = "chat.conversation.created"
        MESSAGE_CREATED = "chat.message.created"
        MESSAGES_READ = "chat.messages.read"
        TYPING_STARTED = "chat.typing.started"
        TYPING_STOPPED = "chat.typing.stopped"
        USER_ONLINE = "chat.presence.online"
        USER_OFFLINE = "chat.presence.offline"

    class Notification:
        CREATED = "notification.created"


class EventPatterns:
    """Wildcard patterns for subscribing to event groups."""

    ALL_CHAT = "chat.*"
    ALL_NOTIFICATION = "notification.*"
    ALL = "*"

    # Events the realtime layer forwards between workers
    REALTIME = (ALL_CHAT, ALL_NOTIFICATION)

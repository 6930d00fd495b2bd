# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""ORM models.

Importing this package registers every table on ``Base.metadata``.
"""

from src.infrastructure.database.models.academic import (
    AcademicRecord,
    Grade,
    GraduationCandidate,
    TranscriptRequest,
)
from src.infrastructure.database.models.accounting import (
    FeeStructure,
    Invoice,
    InvoiceItem,
    Payment,
    Scholarship,
    SchoolExpense,
)
from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDMixin, new_id
from src.infrastructure.database.models.chat import (
    Conversation,
    ConversationMember,
    Message,
    UserStatus,
)
from src.infrastructure.database.models.classroom import (
    LearningModule,
    Meeting,
    Task,
    TaskQuestion,
    TaskSubmission,
)
from src.infrastructure.database.models.content import Announcement, NewsItem, SchoolEvent
from src.infrastructure.database.models.enrollment import (
    Enrollment,
    EnrollmentApplication,
    EnrollmentDocument,
    EnrollmentProgress,
)
from src.infrastructure.database.models.guidance import (
    BehaviorRecord,
    CounselingSession,
    ProgramParticipant,
    WellnessProgram,
)
from src.infrastructure.database.models.notification import Notification
from src.infrastructure.database.models.school import (
    AcademicYear,
    OrgChartEntry,
    SchoolSetting,
    Section,
    Subject,
    TeacherAssignment,
)
from src.infrastructure.database.models.user import ParentStudentLink, User

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "new_id",
    # Users
    "User",
    "ParentStudentLink",
    # School structure
    "AcademicYear",
    "Section",
    "Subject",
    "TeacherAssignment",
    "OrgChartEntry",
    "SchoolSetting",
    # Academic
    "Grade",
    "AcademicRecord",
    "GraduationCandidate",
    "TranscriptRequest",
    # Enrollment
    "Enrollment",
    "EnrollmentApplication",
    "EnrollmentDocument",
    "EnrollmentProgress",
    # Classroom
    "Task",
    "TaskQuestion",
    "TaskSubmission",
    "LearningModule",
    "Meeting",
    # Guidance
    "BehaviorRecord",
    "CounselingSession",
    "WellnessProgram",
    "ProgramParticipant",
    # Accounting
    "FeeStructure",
    "Invoice",
    "InvoiceItem",
    "Payment",
    "Scholarship",
    "SchoolExpense",
    # Content
    "Announcement",
    "NewsItem",
    "SchoolEvent",
    # Notifications
    "Notification",
    # Chat
    "Conversation",
    "ConversationMember",
    "Message",
    "UserStatus",
]

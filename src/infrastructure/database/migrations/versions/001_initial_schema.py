# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial schema.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2025-06-02

Creates every table of the portal: users, school structure, enrollment,
classroom, guidance, registrar, accounting, content, notifications and
chat.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True)


def _fk(name: str, target: str, ondelete: str = "CASCADE", nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.String(36),
        sa.ForeignKey(f"{target}.id", ondelete=ondelete),
        nullable=nullable,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def _money(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.Numeric(12, 2), nullable=nullable, server_default="0")


def upgrade() -> None:
    """Create all tables."""
    # ==========================================================================
    # Users and school structure
    # ==========================================================================
    op.create_table(
        "users",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(30), nullable=False),
        sa.Column("section_id", sa.String(36), nullable=True),
        sa.Column("grade_level", sa.String(30), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_section_id", "users", ["section_id"])

    op.create_table(
        "sections",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("grade_level", sa.String(30), nullable=False),
        sa.Column("school_year", sa.String(20), nullable=True),
        _fk("adviser_id", "users", "SET NULL", nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_sections_grade_level", "sections", ["grade_level"])

    with op.batch_alter_table("users") as batch:
        batch.create_foreign_key(
            "fk_users_section_id_sections",
            "sections",
            ["section_id"],
            ["id"],
            ondelete="SET NULL",
        )

    op.create_table(
        "parent_student_links",
        _id(),
        _fk("parent_id", "users"),
        _fk("student_id", "users"),
        sa.Column("relationship_type", sa.String(30), nullable=False, server_default="guardian"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("parent_id", "student_id", name="uq_parent_student"),
    )
    op.create_index("ix_parent_student_links_parent_id", "parent_student_links", ["parent_id"])
    op.create_index("ix_parent_student_links_student_id", "parent_student_links", ["student_id"])

    op.create_table(
        "subjects",
        _id(),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("code", sa.String(30), nullable=True, unique=True),
        sa.Column("grade_level", sa.String(30), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_subjects_grade_level", "subjects", ["grade_level"])

    op.create_table(
        "teacher_assignments",
        _id(),
        _fk("teacher_id", "users"),
        _fk("subject_id", "subjects"),
        _fk("section_id", "sections"),
        sa.Column("school_year", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "teacher_id", "subject_id", "section_id", "school_year",
            name="uq_teacher_assignment",
        ),
    )
    op.create_index("ix_teacher_assignments_teacher_id", "teacher_assignments", ["teacher_id"])
    op.create_index("ix_teacher_assignments_section_id", "teacher_assignments", ["section_id"])

    op.create_table(
        "org_chart_entries",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("position", sa.String(150), nullable=False),
        sa.Column("department", sa.String(150), nullable=True),
        _fk("reports_to_id", "org_chart_entries", "SET NULL", nullable=True),
        sa.Column("display_order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("photo_url", sa.String(500), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "school_settings",
        _id(),
        sa.Column("key", sa.String(100), nullable=False, unique=True),
        sa.Column("value", sa.Text, nullable=True),
        sa.Column("description", sa.String(500), nullable=True),
        *_timestamps(),
    )

    # ==========================================================================
    # Academic
    # ==========================================================================
    op.create_table(
        "grades",
        _id(),
        _fk("student_id", "users"),
        _fk("subject_id", "subjects"),
        _fk("teacher_id", "users", "SET NULL", nullable=True),
        sa.Column("quarter", sa.Integer, nullable=False),
        sa.Column("grade", sa.Numeric(5, 2), nullable=False),
        sa.Column("school_year", sa.String(20), nullable=False),
        sa.Column("remarks", sa.String(255), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            "student_id", "subject_id", "quarter", "school_year",
            name="uq_grade_student_subject_quarter",
        ),
    )
    op.create_index("ix_grades_student_id", "grades", ["student_id"])
    op.create_index("ix_grades_teacher_id", "grades", ["teacher_id"])

    op.create_table(
        "academic_records",
        _id(),
        _fk("student_id", "users"),
        sa.Column("subject_name", sa.String(150), nullable=False),
        sa.Column("school_year", sa.String(20), nullable=False),
        sa.Column("semester", sa.String(20), nullable=True),
        sa.Column("final_grade", sa.Numeric(5, 2), nullable=False),
        sa.Column("remarks", sa.String(255), nullable=True),
        _fk("recorded_by", "users", "SET NULL", nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_academic_records_student_id", "academic_records", ["student_id"])

    op.create_table(
        "graduation_candidates",
        _id(),
        _fk("student_id", "users"),
        sa.Column("school_year", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("gpa", sa.Numeric(5, 2), nullable=True),
        sa.Column("remarks", sa.Text, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("student_id", "school_year", name="uq_graduation_student_year"),
    )
    op.create_index("ix_graduation_candidates_school_year", "graduation_candidates", ["school_year"])

    op.create_table(
        "transcript_requests",
        _id(),
        _fk("student_id", "users"),
        sa.Column("purpose", sa.String(255), nullable=True),
        sa.Column("copies", sa.Integer, nullable=False, server_default="1"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        _fk("processed_by", "users", "SET NULL", nullable=True),
        sa.Column("remarks", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_transcript_requests_student_id", "transcript_requests", ["student_id"])
    op.create_index("ix_transcript_requests_status", "transcript_requests", ["status"])

    # ==========================================================================
    # Enrollment
    # ==========================================================================
    op.create_table(
        "enrollment_applications",
        _id(),
        _fk("student_id", "users"),
        sa.Column("school_year", sa.String(20), nullable=False),
        sa.Column("grade_level", sa.String(30), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("birth_date", sa.Date, nullable=True),
        sa.Column("address", sa.Text, nullable=True),
        sa.Column("parent_name", sa.String(255), nullable=True),
        sa.Column("parent_contact", sa.String(100), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        _fk("decided_by", "users", "SET NULL", nullable=True),
        sa.Column("remarks", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_enrollment_applications_student_id", "enrollment_applications", ["student_id"])
    op.create_index("ix_enrollment_applications_status", "enrollment_applications", ["status"])

    op.create_table(
        "enrollments",
        _id(),
        _fk("student_id", "users"),
        _fk("section_id", "sections", "SET NULL", nullable=True),
        _fk("application_id", "enrollment_applications", "SET NULL", nullable=True),
        sa.Column("school_year", sa.String(20), nullable=False),
        sa.Column("grade_level", sa.String(30), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="unpaid"),
        sa.Column("documents", sa.JSON, nullable=False),
        sa.Column("remarks", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_enrollments_student_id", "enrollments", ["student_id"])
    op.create_index("ix_enrollments_status", "enrollments", ["status"])

    op.create_table(
        "enrollment_documents",
        _id(),
        _fk("application_id", "enrollment_applications"),
        sa.Column("document_type", sa.String(50), nullable=False),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("file_path", sa.String(500), nullable=False),
        sa.Column("file_url", sa.String(1000), nullable=False),
        sa.Column("content_type", sa.String(100), nullable=False),
        sa.Column("size", sa.Integer, nullable=False),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_enrollment_documents_application_id", "enrollment_documents", ["application_id"])

    op.create_table(
        "enrollment_progress",
        _id(),
        _fk("student_id", "users"),
        sa.Column(
            "application_id",
            sa.String(36),
            sa.ForeignKey("enrollment_applications.id", ondelete="CASCADE"),
            nullable=True,
            unique=True,
        ),
        sa.Column("current_status", sa.String(30), nullable=False),
        sa.Column("remarks", sa.Text, nullable=True),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_enrollment_progress_student_id", "enrollment_progress", ["student_id"])

    # ==========================================================================
    # Classroom
    # ==========================================================================
    op.create_table(
        "tasks",
        _id(),
        _fk("teacher_id", "users"),
        _fk("section_id", "sections"),
        _fk("subject_id", "subjects", "SET NULL", nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("task_type", sa.String(20), nullable=False, server_default="assignment"),
        sa.Column("timer_minutes", sa.Integer, nullable=True),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_tasks_teacher_id", "tasks", ["teacher_id"])
    op.create_index("ix_tasks_section_id", "tasks", ["section_id"])

    op.create_table(
        "task_submissions",
        _id(),
        _fk("task_id", "tasks"),
        _fk("student_id", "users"),
        sa.Column("submission_text", sa.Text, nullable=True),
        sa.Column("file_url", sa.String(1000), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("grade", sa.Numeric(5, 2), nullable=True),
        sa.Column("feedback", sa.Text, nullable=True),
        sa.Column("graded_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("task_id", "student_id", name="uq_submission_task_student"),
    )
    op.create_index("ix_task_submissions_task_id", "task_submissions", ["task_id"])
    op.create_index("ix_task_submissions_student_id", "task_submissions", ["student_id"])

    op.create_table(
        "meetings",
        _id(),
        _fk("organizer_id", "users"),
        _fk("section_id", "sections"),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("meeting_url", sa.String(1000), nullable=False),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_meetings_organizer_id", "meetings", ["organizer_id"])
    op.create_index("ix_meetings_section_id", "meetings", ["section_id"])

    # ==========================================================================
    # Guidance
    # ==========================================================================
    op.create_table(
        "behavior_records",
        _id(),
        _fk("student_id", "users"),
        _fk("reported_by", "users", "SET NULL", nullable=True),
        sa.Column("incident_type", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("incident_date", sa.Date, nullable=False),
        sa.Column("action_taken", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="open"),
        *_timestamps(),
    )
    op.create_index("ix_behavior_records_student_id", "behavior_records", ["student_id"])
    op.create_index("ix_behavior_records_status", "behavior_records", ["status"])

    op.create_table(
        "counseling_sessions",
        _id(),
        _fk("student_id", "users"),
        _fk("counselor_id", "users", "SET NULL", nullable=True),
        sa.Column("session_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("confidentiality", sa.String(30), nullable=False, server_default="private"),
        sa.Column("follow_up_date", sa.Date, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_counseling_sessions_student_id", "counseling_sessions", ["student_id"])

    op.create_table(
        "wellness_programs",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("start_date", sa.Date, nullable=True),
        sa.Column("end_date", sa.Date, nullable=True),
        sa.Column("capacity", sa.Integer, nullable=True),
        _fk("created_by", "users", "SET NULL", nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "program_participants",
        _id(),
        _fk("program_id", "wellness_programs"),
        _fk("student_id", "users"),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("program_id", "student_id", name="uq_program_student"),
    )
    op.create_index("ix_program_participants_program_id", "program_participants", ["program_id"])

    # ==========================================================================
    # Accounting
    # ==========================================================================
    op.create_table(
        "fee_structures",
        _id(),
        sa.Column("grade_level", sa.String(30), nullable=False),
        sa.Column("school_year", sa.String(20), nullable=False),
        _money("tuition_fee"),
        _money("misc_fee"),
        _money("other_fee"),
        sa.Column("description", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_fee_structures_grade_level", "fee_structures", ["grade_level"])

    op.create_table(
        "invoices",
        _id(),
        _fk("student_id", "users"),
        sa.Column("school_year", sa.String(20), nullable=False),
        sa.Column("due_date", sa.Date, nullable=True),
        _money("total_amount"),
        sa.Column("status", sa.String(20), nullable=False, server_default="unpaid"),
        sa.Column("notes", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_invoices_student_id", "invoices", ["student_id"])
    op.create_index("ix_invoices_status", "invoices", ["status"])

    op.create_table(
        "invoice_items",
        _id(),
        _fk("invoice_id", "invoices"),
        sa.Column("description", sa.String(255), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_invoice_items_invoice_id", "invoice_items", ["invoice_id"])

    op.create_table(
        "payments",
        _id(),
        _fk("invoice_id", "invoices"),
        sa.Column("amount_paid", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_method", sa.String(50), nullable=False),
        sa.Column("receipt_number", sa.String(100), nullable=True),
        sa.Column("payment_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        _fk("recorded_by", "users", "SET NULL", nullable=True),
    )
    op.create_index("ix_payments_invoice_id", "payments", ["invoice_id"])
    op.create_index("ix_payments_payment_date", "payments", ["payment_date"])

    op.create_table(
        "scholarships",
        _id(),
        _fk("student_id", "users"),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("discount_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("school_year", sa.String(20), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_scholarships_student_id", "scholarships", ["student_id"])

    op.create_table(
        "school_expenses",
        _id(),
        sa.Column("expense_date", sa.Date, nullable=False),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        _fk("recorded_by", "users", "SET NULL", nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_school_expenses_expense_date", "school_expenses", ["expense_date"])
    op.create_index("ix_school_expenses_category", "school_expenses", ["category"])

    # ==========================================================================
    # Content and notifications
    # ==========================================================================
    op.create_table(
        "announcements",
        _id(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        _fk("created_by", "users", "SET NULL", nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "news",
        _id(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("summary", sa.Text, nullable=True),
        sa.Column("content", sa.Text, nullable=True),
        sa.Column("image_url", sa.String(1000), nullable=True),
        sa.Column("date_posted", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        *_timestamps(),
    )
    op.create_index("ix_news_date_posted", "news", ["date_posted"])

    op.create_table(
        "events",
        _id(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("event_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_events_event_date", "events", ["event_date"])

    op.create_table(
        "notifications",
        _id(),
        _fk("recipient_id", "users"),
        _fk("sender_id", "users", "SET NULL", nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("type", sa.String(30), nullable=False, server_default="info"),
        sa.Column("link", sa.String(500), nullable=True),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_notifications_recipient_read", "notifications", ["recipient_id", "is_read"])
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])

    # ==========================================================================
    # Chat
    # ==========================================================================
    op.create_table(
        "conversations",
        _id(),
        sa.Column("conversation_type", sa.String(20), nullable=False, server_default="private"),
        sa.Column("title", sa.String(255), nullable=True),
        _fk("created_by", "users", "SET NULL", nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_conversations_updated_at", "conversations", ["updated_at"])

    op.create_table(
        "conversation_members",
        _id(),
        _fk("conversation_id", "conversations"),
        _fk("user_id", "users"),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("conversation_id", "user_id", name="uq_conversation_member"),
    )
    op.create_index("ix_conversation_members_conversation_id", "conversation_members", ["conversation_id"])
    op.create_index("ix_conversation_members_user_id", "conversation_members", ["user_id"])

    op.create_table(
        "messages",
        _id(),
        _fk("conversation_id", "conversations"),
        _fk("sender_id", "users", "SET NULL", nullable=True),
        sa.Column("message_text", sa.Text, nullable=True),
        sa.Column("attachment_url", sa.String(1000), nullable=True),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_messages_conversation_created", "messages", ["conversation_id", "created_at"])

    op.create_table(
        "user_status",
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("is_online", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("last_seen", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    for table in (
        "user_status",
        "messages",
        "conversation_members",
        "conversations",
        "notifications",
        "events",
        "news",
        "announcements",
        "school_expenses",
        "scholarships",
        "payments",
        "invoice_items",
        "invoices",
        "fee_structures",
        "program_participants",
        "wellness_programs",
        "counseling_sessions",
        "behavior_records",
        "meetings",
        "task_submissions",
        "tasks",
        "enrollment_progress",
        "enrollment_documents",
        "enrollments",
        "enrollment_applications",
        "transcript_requests",
        "graduation_candidates",
        "academic_records",
        "grades",
        "org_chart_entries",
        "school_settings",
        "teacher_assignments",
        "subjects",
        "parent_student_links",
    ):
        op.drop_table(table)
    with op.batch_alter_table("users") as batch:
        batch.drop_constraint("fk_users_section_id_sections", type_="foreignkey")
    op.drop_table("sections")
    op.drop_table("users")

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Add learning modules, quiz questions and academic years.

Revision ID: 002_modules_quizzes_academic_years
Revises: 001_initial_schema
Create Date: 2025-07-14

Creates academic_years, learning_modules and task_questions, and adds the
answers and auto_graded columns to task_submissions.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "002_modules_quizzes_academic_years"
down_revision: str = "001_initial_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


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


def upgrade() -> None:
    """Create the new tables and submission columns."""
    op.create_table(
        "academic_years",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("year", sa.String(20), nullable=False),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint("year", name="uq_academic_years_year"),
    )

    op.create_table(
        "learning_modules",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "teacher_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "section_id",
            sa.String(36),
            sa.ForeignKey("sections.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("file_path", sa.String(1000), nullable=False),
        sa.Column("file_url", sa.String(1000), nullable=False),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("file_size", sa.Integer, nullable=False),
        sa.Column("content_type", sa.String(150), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_learning_modules_teacher_id", "learning_modules", ["teacher_id"])
    op.create_index("ix_learning_modules_section_id", "learning_modules", ["section_id"])

    op.create_table(
        "task_questions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "task_id",
            sa.String(36),
            sa.ForeignKey("tasks.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        sa.Column("question", sa.Text, nullable=False),
        sa.Column("choices", sa.JSON, nullable=True),
        sa.Column("answer", sa.Text, nullable=False),
    )
    op.create_index("ix_task_questions_task_id", "task_questions", ["task_id"])

    with op.batch_alter_table("task_submissions") as batch:
        batch.add_column(sa.Column("answers", sa.JSON, nullable=True))
        batch.add_column(
            sa.Column("auto_graded", sa.Boolean, nullable=False, server_default=sa.false())
        )


def downgrade() -> None:
    """Drop the new tables and submission columns."""
    with op.batch_alter_table("task_submissions") as batch:
        batch.drop_column("auto_graded")
        batch.drop_column("answers")
    op.drop_table("task_questions")
    op.drop_table("learning_modules")
    op.drop_table("academic_years")

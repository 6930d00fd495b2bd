# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment records and the application workflow."""

from datetime import date, datetime
from typing import Any

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDMixin
from src.utils.datetime import utc_now


class Enrollment(UUIDMixin, TimestampMixin, Base):
    """A student's enrollment for a school year.

    ``documents`` maps a document type to the list of uploaded files of
    that type: ``{"birth_certificate": [{"filename": ..., "url": ...}]}``.
    """

    __tablename__ = "enrollments"

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    section_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("sections.id", ondelete="SET NULL")
    )
    application_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("enrollment_applications.id", ondelete="SET NULL")
    )
    school_year: Mapped[str] = mapped_column(String(20), nullable=False)
    grade_level: Mapped[str | None] = mapped_column(String(30))
    status: Mapped[str] = mapped_column(String(20), default="pending", index=True, nullable=False)
    payment_status: Mapped[str] = mapped_column(String(20), default="unpaid", nullable=False)
    documents: Mapped[dict[str, Any]] = mapped_column(default=dict, nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text)


class EnrollmentApplication(UUIDMixin, TimestampMixin, Base):
    """An application moving through draft, submission and decision."""

    __tablename__ = "enrollment_applications"

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    school_year: Mapped[str] = mapped_column(String(20), nullable=False)
    grade_level: Mapped[str] = mapped_column(String(30), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    birth_date: Mapped[date | None] = mapped_column(Date)
    address: Mapped[str | None] = mapped_column(Text)
    parent_name: Mapped[str | None] = mapped_column(String(255))
    parent_contact: Mapped[str | None] = mapped_column(String(100))
    status: Mapped[str] = mapped_column(String(20), default="draft", index=True, nullable=False)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    decided_by: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL")
    )
    remarks: Mapped[str | None] = mapped_column(Text)


class EnrollmentDocument(UUIDMixin, Base):
    __tablename__ = "enrollment_documents"

    application_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("enrollment_applications.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    document_type: Mapped[str] = mapped_column(String(50), nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str] = mapped_column(String(500), nullable=False)
    file_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    content_type: Mapped[str] = mapped_column(String(100), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )


class EnrollmentProgress(UUIDMixin, Base):
    """Latest workflow status of a student's application."""

    __tablename__ = "enrollment_progress"

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    application_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("enrollment_applications.id", ondelete="CASCADE"), unique=True
    )
    current_status: Mapped[str] = mapped_column(String(30), nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

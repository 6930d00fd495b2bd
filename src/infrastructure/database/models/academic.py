# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grades, academic records, graduation candidates and transcript requests."""

from decimal import Decimal

from sqlalchemy import ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDMixin


class Grade(UUIDMixin, TimestampMixin, Base):
    """Quarterly grade of a student in a subject."""

    __tablename__ = "grades"
    __table_args__ = (
        UniqueConstraint(
            "student_id", "subject_id", "quarter", "school_year",
            name="uq_grade_student_subject_quarter",
        ),
    )

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    subject_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False
    )
    teacher_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), index=True
    )
    quarter: Mapped[int] = mapped_column(Integer, nullable=False)
    grade: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    school_year: Mapped[str] = mapped_column(String(20), nullable=False)
    remarks: Mapped[str | None] = mapped_column(String(255))


class AcademicRecord(UUIDMixin, TimestampMixin, Base):
    """Final grade kept by the registrar for the permanent record."""

    __tablename__ = "academic_records"

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    subject_name: Mapped[str] = mapped_column(String(150), nullable=False)
    school_year: Mapped[str] = mapped_column(String(20), nullable=False)
    semester: Mapped[str | None] = mapped_column(String(20))
    final_grade: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    remarks: Mapped[str | None] = mapped_column(String(255))
    recorded_by: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL")
    )


class GraduationCandidate(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "graduation_candidates"
    __table_args__ = (
        UniqueConstraint("student_id", "school_year", name="uq_graduation_student_year"),
    )

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    school_year: Mapped[str] = mapped_column(String(20), index=True, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    gpa: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    remarks: Mapped[str | None] = mapped_column(Text)


class TranscriptRequest(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "transcript_requests"

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    purpose: Mapped[str | None] = mapped_column(String(255))
    copies: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending", index=True, nullable=False)
    processed_by: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL")
    )
    remarks: Mapped[str | None] = mapped_column(Text)

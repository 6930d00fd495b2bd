# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School structure: sections, subjects, teacher assignments, org chart, settings, academic years."""

from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDMixin
from src.utils.datetime import utc_now


class Section(UUIDMixin, TimestampMixin, Base):
    """A class section for a grade level, optionally with an adviser."""

    __tablename__ = "sections"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    grade_level: Mapped[str] = mapped_column(String(30), index=True, nullable=False)
    school_year: Mapped[str | None] = mapped_column(String(20))
    adviser_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL", use_alter=True)
    )


class Subject(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "subjects"

    name: Mapped[str] = mapped_column(String(150), nullable=False)
    code: Mapped[str | None] = mapped_column(String(30), unique=True)
    grade_level: Mapped[str] = mapped_column(String(30), index=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)


class TeacherAssignment(UUIDMixin, Base):
    """A teacher teaching a subject to a section in a school year."""

    __tablename__ = "teacher_assignments"
    __table_args__ = (
        UniqueConstraint(
            "teacher_id", "subject_id", "section_id", "school_year",
            name="uq_teacher_assignment",
        ),
    )

    teacher_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    subject_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False
    )
    section_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("sections.id", ondelete="CASCADE"), index=True, nullable=False
    )
    school_year: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )


class OrgChartEntry(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "org_chart_entries"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    position: Mapped[str] = mapped_column(String(150), nullable=False)
    department: Mapped[str | None] = mapped_column(String(150))
    reports_to_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("org_chart_entries.id", ondelete="SET NULL")
    )
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    photo_url: Mapped[str | None] = mapped_column(String(500))


class SchoolSetting(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "school_settings"

    key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    value: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(String(500))


class AcademicYear(UUIDMixin, TimestampMixin, Base):
    """An academic year such as ``2025-2026``. At most one is active."""

    __tablename__ = "academic_years"

    year: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

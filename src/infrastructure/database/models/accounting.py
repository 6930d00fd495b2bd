# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Fees, invoices, payments, scholarships and expenses."""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDMixin
from src.utils.datetime import utc_now

Money = Numeric(12, 2)


class FeeStructure(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "fee_structures"

    grade_level: Mapped[str] = mapped_column(String(30), index=True, nullable=False)
    school_year: Mapped[str] = mapped_column(String(20), nullable=False)
    tuition_fee: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"), nullable=False)
    misc_fee: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"), nullable=False)
    other_fee: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)

    @property
    def total(self) -> Decimal:
        return (self.tuition_fee or Decimal("0")) + (self.misc_fee or Decimal("0")) + (
            self.other_fee or Decimal("0")
        )


class Invoice(UUIDMixin, TimestampMixin, Base):
    """Bill issued to a student. Items and payments load eagerly."""

    __tablename__ = "invoices"

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    school_year: Mapped[str] = mapped_column(String(20), nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date)
    total_amount: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="unpaid", index=True, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)

    items: Mapped[list["InvoiceItem"]] = relationship(
        back_populates="invoice",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="InvoiceItem.created_at",
    )
    payments: Mapped[list["Payment"]] = relationship(
        back_populates="invoice",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="Payment.payment_date",
    )


class InvoiceItem(UUIDMixin, Base):
    __tablename__ = "invoice_items"

    invoice_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("invoices.id", ondelete="CASCADE"), index=True, nullable=False
    )
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    invoice: Mapped[Invoice] = relationship(back_populates="items")


class Payment(UUIDMixin, Base):
    __tablename__ = "payments"

    invoice_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("invoices.id", ondelete="CASCADE"), index=True, nullable=False
    )
    amount_paid: Mapped[Decimal] = mapped_column(Money, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(50), nullable=False)
    receipt_number: Mapped[str | None] = mapped_column(String(100))
    payment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, index=True, nullable=False
    )
    recorded_by: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL")
    )

    invoice: Mapped[Invoice] = relationship(back_populates="payments")


class Scholarship(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "scholarships"

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    discount_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    school_year: Mapped[str] = mapped_column(String(20), nullable=False)


class SchoolExpense(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "school_expenses"

    expense_date: Mapped[date] = mapped_column(Date, index=True, nullable=False)
    category: Mapped[str] = mapped_column(String(50), index=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    recorded_by: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL")
    )

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Accounting service.

This module provides the AccountingService that handles:
- Fee structures per grade level and school year
- Invoices with line items and payments
- Scholarships and school expenses

Invoice status is derived, never set directly. The amount due is the
sum of the items when the invoice has items, otherwise its total. An
invoice is ``paid`` once payments cover a non-zero amount due,
``partial`` when anything has been paid, and ``unpaid`` otherwise. The
student's enrollment for the same school year mirrors that status in
its ``payment_status``.

Example:
    >>> service = AccountingService(db)
    >>> invoice = await service.create_invoice(request)
    >>> invoice = await service.record_payment(invoice.id, payment, recorded_by=user_id)
    >>> invoice.status
    'partial'
"""

import logging
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.roles import Role
from src.domains.notification.service import NotificationService
from src.infrastructure.database.models import (
    Enrollment,
    FeeStructure,
    Invoice,
    InvoiceItem,
    Payment,
    Scholarship,
    SchoolExpense,
    User,
)
from src.models.accounting import (
    ExpenseCreateRequest,
    ExpenseUpdateRequest,
    FeeStructureCreateRequest,
    FeeStructureResponse,
    FeeStructureUpdateRequest,
    InvoiceCreateRequest,
    InvoiceItemCreateRequest,
    InvoiceItemResponse,
    InvoiceResponse,
    InvoiceUpdateRequest,
    PaymentCreateRequest,
    PaymentResponse,
    ScholarshipCreateRequest,
    ScholarshipUpdateRequest,
)
from src.models.common import quantize_cents
from src.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class AccountingServiceError(Exception):
    """Base exception for accounting service errors."""

    pass


class FeeStructureNotFoundError(AccountingServiceError):
    pass


class FeeStructureExistsError(AccountingServiceError):
    """Raised when a grade level already has fees for the school year."""

    pass


class InvoiceNotFoundError(AccountingServiceError):
    pass


class InvoiceItemNotFoundError(AccountingServiceError):
    pass


class InvoiceStudentNotFoundError(AccountingServiceError):
    pass


class ScholarshipNotFoundError(AccountingServiceError):
    pass


class ExpenseNotFoundError(AccountingServiceError):
    pass


def amount_due(invoice: Invoice) -> Decimal:
    """Item sum when the invoice has items, else its total."""
    if invoice.items:
        return quantize_cents(sum((item.amount for item in invoice.items), ZERO))
    return quantize_cents(invoice.total_amount or ZERO)


def amount_paid(invoice: Invoice) -> Decimal:
    return quantize_cents(sum((p.amount_paid for p in invoice.payments), ZERO))


def invoice_status(due: Decimal, paid: Decimal) -> str:
    if paid >= due:
        return "paid"
    if paid > ZERO:
        return "partial"
    return "unpaid"


class AccountingService:
    """Fees, invoices, payments, scholarships and expenses.

    Attributes:
        _db: Async database session.
        _notifier: Notification service.
    """

    def __init__(self, db: AsyncSession, notifier: NotificationService | None = None) -> None:
        self._db = db
        self._notifier = notifier or NotificationService(db)

    # ------------------------------------------------------------------
    # Fee structures
    # ------------------------------------------------------------------

    async def list_fee_structures(
        self,
        grade_level: str | None = None,
        school_year: str | None = None,
    ) -> list[FeeStructureResponse]:
        stmt = select(FeeStructure)
        if grade_level:
            stmt = stmt.where(FeeStructure.grade_level == grade_level)
        if school_year:
            stmt = stmt.where(FeeStructure.school_year == school_year)
        result = await self._db.execute(
            stmt.order_by(FeeStructure.school_year.desc(), FeeStructure.grade_level)
        )
        return [self._fee_response(fee) for fee in result.scalars().all()]

    async def get_fee_structure(self, fee_id: str) -> FeeStructureResponse:
        return self._fee_response(await self._get_fee(fee_id))

    async def create_fee_structure(self, request: FeeStructureCreateRequest) -> FeeStructureResponse:
        existing = await self._db.scalar(
            select(FeeStructure.id).where(
                FeeStructure.grade_level == request.grade_level,
                FeeStructure.school_year == request.school_year,
            )
        )
        if existing:
            raise FeeStructureExistsError(
                f"Fees for {request.grade_level} in {request.school_year} already exist"
            )

        fee = FeeStructure(**request.model_dump())
        self._db.add(fee)
        await self._db.commit()
        await self._db.refresh(fee)
        logger.info("Fee structure created: %s %s", fee.grade_level, fee.school_year)
        return self._fee_response(fee)

    async def update_fee_structure(
        self, fee_id: str, request: FeeStructureUpdateRequest
    ) -> FeeStructureResponse:
        fee = await self._get_fee(fee_id)
        for field, value in request.model_dump(exclude_unset=True).items():
            if value is None and field != "description":
                continue
            setattr(fee, field, value)
        await self._db.commit()
        await self._db.refresh(fee)
        return self._fee_response(fee)

    async def delete_fee_structure(self, fee_id: str) -> None:
        fee = await self._get_fee(fee_id)
        await self._db.delete(fee)
        await self._db.commit()

    # ------------------------------------------------------------------
    # Invoices
    # ------------------------------------------------------------------

    async def list_invoices(
        self,
        student_id: str | None = None,
        status: str | None = None,
        school_year: str | None = None,
    ) -> list[InvoiceResponse]:
        stmt = select(Invoice, User.name).join(User, User.id == Invoice.student_id)
        if student_id:
            stmt = stmt.where(Invoice.student_id == student_id)
        if status:
            stmt = stmt.where(Invoice.status == status)
        if school_year:
            stmt = stmt.where(Invoice.school_year == school_year)
        result = await self._db.execute(stmt.order_by(Invoice.created_at.desc()))
        return [self._invoice_response(invoice, name) for invoice, name in result.all()]

    async def get_invoice(self, invoice_id: str) -> InvoiceResponse:
        invoice = await self._get_invoice(invoice_id)
        return self._invoice_response(invoice, await self._student_name(invoice.student_id))

    async def create_invoice(self, request: InvoiceCreateRequest) -> InvoiceResponse:
        """Issue an invoice and notify the student.

        Raises:
            InvoiceStudentNotFoundError: If the student does not exist.
        """
        student = await self._get_student(request.student_id)

        items = [InvoiceItem(description=i.description, amount=i.amount) for i in request.items]
        total = request.total_amount
        if total is None:
            total = sum((item.amount for item in items), ZERO)

        invoice = Invoice(
            student_id=student.id,
            school_year=request.school_year,
            due_date=request.due_date,
            total_amount=quantize_cents(total),
            notes=request.notes,
            items=items,
            payments=[],
        )
        invoice.status = invoice_status(amount_due(invoice), ZERO)
        self._db.add(invoice)
        await self._db.commit()

        await self._notifier.notify_user(
            student.id,
            "New Invoice",
            f"New invoice generated for {invoice.school_year} - Amount: {invoice.total_amount:.2f}",
            type="billing",
        )
        logger.info("Invoice created: %s for student %s", invoice.id, student.id)
        return self._invoice_response(invoice, student.name)

    async def update_invoice(self, invoice_id: str, request: InvoiceUpdateRequest) -> InvoiceResponse:
        invoice = await self._get_invoice(invoice_id)
        for field, value in request.model_dump(exclude_unset=True).items():
            if value is None and field == "total_amount":
                continue
            setattr(invoice, field, value)
        await self._apply_status(invoice)
        await self._db.commit()
        return self._invoice_response(invoice, await self._student_name(invoice.student_id))

    async def delete_invoice(self, invoice_id: str) -> None:
        invoice = await self._get_invoice(invoice_id)
        await self._db.delete(invoice)
        await self._db.commit()

    async def add_item(self, invoice_id: str, request: InvoiceItemCreateRequest) -> InvoiceResponse:
        invoice = await self._get_invoice(invoice_id)
        invoice.items.append(InvoiceItem(description=request.description, amount=request.amount))
        await self._apply_status(invoice)
        await self._db.commit()
        return self._invoice_response(invoice, await self._student_name(invoice.student_id))

    async def remove_item(self, invoice_id: str, item_id: str) -> InvoiceResponse:
        invoice = await self._get_invoice(invoice_id)
        item = next((i for i in invoice.items if i.id == item_id), None)
        if item is None:
            raise InvoiceItemNotFoundError(f"Invoice item {item_id} not found")
        invoice.items.remove(item)
        await self._apply_status(invoice)
        await self._db.commit()
        return self._invoice_response(invoice, await self._student_name(invoice.student_id))

    async def record_payment(
        self,
        invoice_id: str,
        request: PaymentCreateRequest,
        recorded_by: str | None = None,
    ) -> InvoiceResponse:
        """Record a payment and recompute the invoice status."""
        invoice = await self._get_invoice(invoice_id)
        invoice.payments.append(
            Payment(
                amount_paid=request.amount_paid,
                payment_method=request.payment_method,
                receipt_number=request.receipt_number,
                payment_date=ensure_utc(request.payment_date) or utc_now(),
                recorded_by=recorded_by,
            )
        )
        await self._apply_status(invoice)
        await self._db.commit()
        logger.info(
            "Payment of %s recorded on invoice %s (status=%s)",
            request.amount_paid,
            invoice.id,
            invoice.status,
        )
        return self._invoice_response(invoice, await self._student_name(invoice.student_id))

    async def list_payments(self, invoice_id: str) -> list[PaymentResponse]:
        invoice = await self._get_invoice(invoice_id)
        return [PaymentResponse.model_validate(p) for p in invoice.payments]

    async def outstanding_balance(self, student_id: str | None = None) -> Decimal:
        """Unpaid remainder across invoices that are not fully paid."""
        stmt = select(Invoice).where(Invoice.status != "paid")
        if student_id:
            stmt = stmt.where(Invoice.student_id == student_id)
        result = await self._db.execute(stmt)
        balance = ZERO
        for invoice in result.scalars().all():
            balance += max(amount_due(invoice) - amount_paid(invoice), ZERO)
        return quantize_cents(balance)

    async def collected_between(self, start: datetime, end: datetime) -> Decimal:
        total = await self._db.scalar(
            select(func.coalesce(func.sum(Payment.amount_paid), 0)).where(
                Payment.payment_date >= start,
                Payment.payment_date < end,
            )
        )
        return quantize_cents(Decimal(str(total or 0)))

    async def invoice_counts_by_status(self) -> dict[str, int]:
        result = await self._db.execute(
            select(Invoice.status, func.count(Invoice.id)).group_by(Invoice.status)
        )
        counts = {"unpaid": 0, "partial": 0, "paid": 0}
        counts.update({status: count for status, count in result.all()})
        return counts

    # ------------------------------------------------------------------
    # Scholarships
    # ------------------------------------------------------------------

    async def list_scholarships(
        self,
        student_id: str | None = None,
        school_year: str | None = None,
    ) -> list[Scholarship]:
        stmt = select(Scholarship)
        if student_id:
            stmt = stmt.where(Scholarship.student_id == student_id)
        if school_year:
            stmt = stmt.where(Scholarship.school_year == school_year)
        result = await self._db.execute(stmt.order_by(Scholarship.created_at.desc()))
        return list(result.scalars().all())

    async def create_scholarship(self, request: ScholarshipCreateRequest) -> Scholarship:
        student = await self._get_student(request.student_id)
        scholarship = Scholarship(**request.model_dump())
        self._db.add(scholarship)
        await self._db.commit()
        await self._db.refresh(scholarship)

        await self._notifier.notify_user(
            student.id,
            "Scholarship Granted",
            f"Scholarship granted: {scholarship.name} "
            f"({float(scholarship.discount_percentage):g}% discount)",
            type="billing",
        )
        return scholarship

    async def update_scholarship(
        self, scholarship_id: str, request: ScholarshipUpdateRequest
    ) -> Scholarship:
        scholarship = await self._get_scholarship(scholarship_id)
        for field, value in request.model_dump(exclude_unset=True).items():
            if value is None:
                continue
            setattr(scholarship, field, value)
        await self._db.commit()
        await self._db.refresh(scholarship)
        return scholarship

    async def delete_scholarship(self, scholarship_id: str) -> None:
        scholarship = await self._get_scholarship(scholarship_id)
        await self._db.delete(scholarship)
        await self._db.commit()

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    async def list_expenses(
        self,
        category: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[SchoolExpense]:
        stmt = select(SchoolExpense)
        if category:
            stmt = stmt.where(SchoolExpense.category == category)
        if start_date:
            stmt = stmt.where(SchoolExpense.expense_date >= start_date)
        if end_date:
            stmt = stmt.where(SchoolExpense.expense_date <= end_date)
        result = await self._db.execute(stmt.order_by(SchoolExpense.expense_date.desc()))
        return list(result.scalars().all())

    async def create_expense(self, request: ExpenseCreateRequest, recorded_by: str) -> SchoolExpense:
        expense = SchoolExpense(**request.model_dump(), recorded_by=recorded_by)
        self._db.add(expense)
        await self._db.commit()
        await self._db.refresh(expense)
        logger.info("Expense recorded: %s %s", expense.category, expense.amount)
        return expense

    async def update_expense(self, expense_id: str, request: ExpenseUpdateRequest) -> SchoolExpense:
        expense = await self._get_expense(expense_id)
        for field, value in request.model_dump(exclude_unset=True).items():
            if value is None and field != "description":
                continue
            setattr(expense, field, value)
        await self._db.commit()
        await self._db.refresh(expense)
        return expense

    async def delete_expense(self, expense_id: str) -> None:
        expense = await self._get_expense(expense_id)
        await self._db.delete(expense)
        await self._db.commit()

    async def expenses_by_category(self, start_date: date | None = None) -> dict[str, Decimal]:
        stmt = select(SchoolExpense.category, func.sum(SchoolExpense.amount))
        if start_date:
            stmt = stmt.where(SchoolExpense.expense_date >= start_date)
        result = await self._db.execute(stmt.group_by(SchoolExpense.category))
        return {
            category: quantize_cents(Decimal(str(total or 0))) for category, total in result.all()
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _apply_status(self, invoice: Invoice) -> None:
        invoice.status = invoice_status(amount_due(invoice), amount_paid(invoice))
        result = await self._db.execute(
            select(Enrollment).where(
                Enrollment.student_id == invoice.student_id,
                Enrollment.school_year == invoice.school_year,
            )
        )
        for enrollment in result.scalars().all():
            enrollment.payment_status = invoice.status

    async def _get_invoice(self, invoice_id: str) -> Invoice:
        invoice = await self._db.get(Invoice, invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(f"Invoice {invoice_id} not found")
        return invoice

    async def _get_fee(self, fee_id: str) -> FeeStructure:
        fee = await self._db.get(FeeStructure, fee_id)
        if fee is None:
            raise FeeStructureNotFoundError(f"Fee structure {fee_id} not found")
        return fee

    async def _get_scholarship(self, scholarship_id: str) -> Scholarship:
        scholarship = await self._db.get(Scholarship, scholarship_id)
        if scholarship is None:
            raise ScholarshipNotFoundError(f"Scholarship {scholarship_id} not found")
        return scholarship

    async def _get_expense(self, expense_id: str) -> SchoolExpense:
        expense = await self._db.get(SchoolExpense, expense_id)
        if expense is None:
            raise ExpenseNotFoundError(f"Expense {expense_id} not found")
        return expense

    async def _get_student(self, student_id: str) -> User:
        student = await self._db.get(User, student_id)
        if student is None or student.role != Role.STUDENT.value:
            raise InvoiceStudentNotFoundError(f"Student {student_id} not found")
        return student

    async def _student_name(self, student_id: str) -> str | None:
        return await self._db.scalar(select(User.name).where(User.id == student_id))

    @staticmethod
    def _fee_response(fee: FeeStructure) -> FeeStructureResponse:
        return FeeStructureResponse(
            id=fee.id,
            grade_level=fee.grade_level,
            school_year=fee.school_year,
            tuition_fee=fee.tuition_fee,
            misc_fee=fee.misc_fee,
            other_fee=fee.other_fee,
            total=fee.total,
            description=fee.description,
        )

    @staticmethod
    def _invoice_response(invoice: Invoice, student_name: str | None) -> InvoiceResponse:
        due = amount_due(invoice)
        paid = amount_paid(invoice)
        return InvoiceResponse(
            id=invoice.id,
            student_id=invoice.student_id,
            student_name=student_name,
            school_year=invoice.school_year,
            due_date=invoice.due_date,
            total_amount=invoice.total_amount,
            amount_due=due,
            amount_paid=paid,
            balance=max(due - paid, ZERO),
            status=invoice.status,
            notes=invoice.notes,
            items=[InvoiceItemResponse.model_validate(i) for i in invoice.items],
            payments=[PaymentResponse.model_validate(p) for p in invoice.payments],
            created_at=invoice.created_at,
        )

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Accounting endpoints.

- GET /dashboard - Invoice counts, collections, outstanding, expenses

Fee structures:
- GET /fee-structures, POST /fee-structures,
  GET|PUT|DELETE /fee-structures/{fee_id}

Invoices and payments:
- GET /invoices, POST /invoices
- GET|PUT|DELETE /invoices/{invoice_id}
- POST /invoices/{invoice_id}/items, DELETE /invoices/{invoice_id}/items/{item_id}
- GET /invoices/{invoice_id}/payments, POST /invoices/{invoice_id}/payments

Scholarships and expenses:
- GET /scholarships, POST /scholarships, PUT|DELETE /scholarships/{id}
- GET /expenses, POST /expenses, PUT|DELETE /expenses/{id}

Accounting or admin role required. The admin "tuition fees" screen is
served by ``tuition_router`` over the same fee structures.
"""

import logging
from datetime import date
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from src.api.dependencies import AccountingUser, AdminUser, DbSession
from src.domains.accounting.service import (
    AccountingService,
    ExpenseNotFoundError,
    FeeStructureExistsError,
    FeeStructureNotFoundError,
    InvoiceItemNotFoundError,
    InvoiceNotFoundError,
    InvoiceStudentNotFoundError,
    ScholarshipNotFoundError,
)
from src.domains.dashboard.service import DashboardService
from src.models.accounting import (
    ExpenseCreateRequest,
    ExpenseResponse,
    ExpenseUpdateRequest,
    FeeStructureCreateRequest,
    FeeStructureResponse,
    FeeStructureUpdateRequest,
    InvoiceCreateRequest,
    InvoiceItemCreateRequest,
    InvoiceResponse,
    InvoiceUpdateRequest,
    PaymentCreateRequest,
    PaymentResponse,
    ScholarshipCreateRequest,
    ScholarshipResponse,
    ScholarshipUpdateRequest,
)
from src.models.dashboard import AccountingDashboardResponse

logger = logging.getLogger(__name__)

router = APIRouter()
tuition_router = APIRouter()


@router.get("/dashboard", response_model=AccountingDashboardResponse, summary="Accounting dashboard")
async def dashboard(db: DbSession, current_user: AccountingUser) -> AccountingDashboardResponse:
    return await DashboardService(db).accounting_dashboard()


# =========================================================================
# Fee structures
# =========================================================================


async def _list_fees(
    db: DbSession,
    grade_level: str | None,
    school_year: str | None,
) -> list[FeeStructureResponse]:
    return await AccountingService(db).list_fee_structures(grade_level=grade_level, school_year=school_year)


async def _create_fee(db: DbSession, data: FeeStructureCreateRequest) -> FeeStructureResponse:
    try:
        return await AccountingService(db).create_fee_structure(data)
    except FeeStructureExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


async def _update_fee(db: DbSession, fee_id: str, data: FeeStructureUpdateRequest) -> FeeStructureResponse:
    try:
        return await AccountingService(db).update_fee_structure(fee_id, data)
    except FeeStructureNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


async def _delete_fee(db: DbSession, fee_id: str) -> None:
    try:
        await AccountingService(db).delete_fee_structure(fee_id)
    except FeeStructureNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/fee-structures", response_model=list[FeeStructureResponse], summary="List fee structures")
async def list_fee_structures(
    db: DbSession,
    current_user: AccountingUser,
    grade_level: Annotated[str | None, Query()] = None,
    school_year: Annotated[str | None, Query()] = None,
) -> list[FeeStructureResponse]:
    return await _list_fees(db, grade_level, school_year)


@router.post(
    "/fee-structures",
    response_model=FeeStructureResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create fee structure",
)
async def create_fee_structure(
    data: FeeStructureCreateRequest,
    db: DbSession,
    current_user: AccountingUser,
) -> FeeStructureResponse:
    return await _create_fee(db, data)


@router.get("/fee-structures/{fee_id}", response_model=FeeStructureResponse, summary="Get fee structure")
async def get_fee_structure(fee_id: str, db: DbSession, current_user: AccountingUser) -> FeeStructureResponse:
    try:
        return await AccountingService(db).get_fee_structure(fee_id)
    except FeeStructureNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.put("/fee-structures/{fee_id}", response_model=FeeStructureResponse, summary="Update fee structure")
async def update_fee_structure(
    fee_id: str,
    data: FeeStructureUpdateRequest,
    db: DbSession,
    current_user: AccountingUser,
) -> FeeStructureResponse:
    return await _update_fee(db, fee_id, data)


@router.delete(
    "/fee-structures/{fee_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete fee structure",
)
async def delete_fee_structure(fee_id: str, db: DbSession, current_user: AccountingUser) -> None:
    await _delete_fee(db, fee_id)


@tuition_router.get("/tuition-fees", response_model=list[FeeStructureResponse], summary="List tuition fees")
async def list_tuition_fees(
    db: DbSession,
    current_user: AdminUser,
    grade_level: Annotated[str | None, Query()] = None,
    school_year: Annotated[str | None, Query()] = None,
) -> list[FeeStructureResponse]:
    return await _list_fees(db, grade_level, school_year)


@tuition_router.post(
    "/tuition-fees",
    response_model=FeeStructureResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create tuition fee",
)
async def create_tuition_fee(
    data: FeeStructureCreateRequest,
    db: DbSession,
    current_user: AdminUser,
) -> FeeStructureResponse:
    return await _create_fee(db, data)


@tuition_router.put("/tuition-fees/{fee_id}", response_model=FeeStructureResponse, summary="Update tuition fee")
async def update_tuition_fee(
    fee_id: str,
    data: FeeStructureUpdateRequest,
    db: DbSession,
    current_user: AdminUser,
) -> FeeStructureResponse:
    return await _update_fee(db, fee_id, data)


@tuition_router.delete(
    "/tuition-fees/{fee_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete tuition fee",
)
async def delete_tuition_fee(fee_id: str, db: DbSession, current_user: AdminUser) -> None:
    await _delete_fee(db, fee_id)


# =========================================================================
# Invoices and payments
# =========================================================================


@router.get("/invoices", response_model=list[InvoiceResponse], summary="List invoices")
async def list_invoices(
    db: DbSession,
    current_user: AccountingUser,
    student_id: Annotated[str | None, Query()] = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    school_year: Annotated[str | None, Query()] = None,
) -> list[InvoiceResponse]:
    return await AccountingService(db).list_invoices(
        student_id=student_id,
        status=status_filter,
        school_year=school_year,
    )


@router.post(
    "/invoices",
    response_model=InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create invoice",
    description="The total defaults to the sum of the items. The student is notified.",
)
async def create_invoice(
    data: InvoiceCreateRequest,
    db: DbSession,
    current_user: AccountingUser,
) -> InvoiceResponse:
    try:
        return await AccountingService(db).create_invoice(data)
    except InvoiceStudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/invoices/{invoice_id}", response_model=InvoiceResponse, summary="Get invoice")
async def get_invoice(invoice_id: str, db: DbSession, current_user: AccountingUser) -> InvoiceResponse:
    try:
        return await AccountingService(db).get_invoice(invoice_id)
    except InvoiceNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.put("/invoices/{invoice_id}", response_model=InvoiceResponse, summary="Update invoice")
async def update_invoice(
    invoice_id: str,
    data: InvoiceUpdateRequest,
    db: DbSession,
    current_user: AccountingUser,
) -> InvoiceResponse:
    try:
        return await AccountingService(db).update_invoice(invoice_id, data)
    except InvoiceNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/invoices/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete invoice")
async def delete_invoice(invoice_id: str, db: DbSession, current_user: AccountingUser) -> None:
    try:
        await AccountingService(db).delete_invoice(invoice_id)
    except InvoiceNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post(
    "/invoices/{invoice_id}/items",
    response_model=InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add invoice item",
)
async def add_item(
    invoice_id: str,
    data: InvoiceItemCreateRequest,
    db: DbSession,
    current_user: AccountingUser,
) -> InvoiceResponse:
    try:
        return await AccountingService(db).add_item(invoice_id, data)
    except InvoiceNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete(
    "/invoices/{invoice_id}/items/{item_id}",
    response_model=InvoiceResponse,
    summary="Remove invoice item",
)
async def remove_item(
    invoice_id: str,
    item_id: str,
    db: DbSession,
    current_user: AccountingUser,
) -> InvoiceResponse:
    try:
        return await AccountingService(db).remove_item(invoice_id, item_id)
    except (InvoiceNotFoundError, InvoiceItemNotFoundError) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get(
    "/invoices/{invoice_id}/payments",
    response_model=list[PaymentResponse],
    summary="List invoice payments",
)
async def list_payments(invoice_id: str, db: DbSession, current_user: AccountingUser) -> list[PaymentResponse]:
    try:
        return await AccountingService(db).list_payments(invoice_id)
    except InvoiceNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post(
    "/invoices/{invoice_id}/payments",
    response_model=InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record payment",
    description="Records a payment and recomputes the invoice and enrollment payment status.",
)
async def record_payment(
    invoice_id: str,
    data: PaymentCreateRequest,
    db: DbSession,
    current_user: AccountingUser,
) -> InvoiceResponse:
    try:
        return await AccountingService(db).record_payment(invoice_id, data, recorded_by=current_user.id)
    except InvoiceNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# =========================================================================
# Scholarships
# =========================================================================


@router.get("/scholarships", response_model=list[ScholarshipResponse], summary="List scholarships")
async def list_scholarships(
    db: DbSession,
    current_user: AccountingUser,
    student_id: Annotated[str | None, Query()] = None,
    school_year: Annotated[str | None, Query()] = None,
) -> list[ScholarshipResponse]:
    scholarships = await AccountingService(db).list_scholarships(student_id=student_id, school_year=school_year)
    return [ScholarshipResponse.model_validate(s) for s in scholarships]


@router.post(
    "/scholarships",
    response_model=ScholarshipResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Grant scholarship",
)
async def create_scholarship(
    data: ScholarshipCreateRequest,
    db: DbSession,
    current_user: AccountingUser,
) -> ScholarshipResponse:
    try:
        scholarship = await AccountingService(db).create_scholarship(data)
    except InvoiceStudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return ScholarshipResponse.model_validate(scholarship)


@router.put("/scholarships/{scholarship_id}", response_model=ScholarshipResponse, summary="Update scholarship")
async def update_scholarship(
    scholarship_id: str,
    data: ScholarshipUpdateRequest,
    db: DbSession,
    current_user: AccountingUser,
) -> ScholarshipResponse:
    try:
        scholarship = await AccountingService(db).update_scholarship(scholarship_id, data)
    except ScholarshipNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return ScholarshipResponse.model_validate(scholarship)


@router.delete(
    "/scholarships/{scholarship_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete scholarship",
)
async def delete_scholarship(scholarship_id: str, db: DbSession, current_user: AccountingUser) -> None:
    try:
        await AccountingService(db).delete_scholarship(scholarship_id)
    except ScholarshipNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# =========================================================================
# Expenses
# =========================================================================


@router.get("/expenses", response_model=list[ExpenseResponse], summary="List expenses")
async def list_expenses(
    db: DbSession,
    current_user: AccountingUser,
    category: Annotated[str | None, Query()] = None,
    start_date: Annotated[date | None, Query()] = None,
    end_date: Annotated[date | None, Query()] = None,
) -> list[ExpenseResponse]:
    expenses = await AccountingService(db).list_expenses(
        category=category,
        start_date=start_date,
        end_date=end_date,
    )
    return [ExpenseResponse.model_validate(e) for e in expenses]


@router.post(
    "/expenses",
    response_model=ExpenseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record expense",
)
async def create_expense(
    data: ExpenseCreateRequest,
    db: DbSession,
    current_user: AccountingUser,
) -> ExpenseResponse:
    expense = await AccountingService(db).create_expense(data, current_user.id)
    return ExpenseResponse.model_validate(expense)


@router.put("/expenses/{expense_id}", response_model=ExpenseResponse, summary="Update expense")
async def update_expense(
    expense_id: str,
    data: ExpenseUpdateRequest,
    db: DbSession,
    current_user: AccountingUser,
) -> ExpenseResponse:
    try:
        expense = await AccountingService(db).update_expense(expense_id, data)
    except ExpenseNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return ExpenseResponse.model_validate(expense)


@router.delete("/expenses/{expense_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete expense")
async def delete_expense(expense_id: str, db: DbSession, current_user: AccountingUser) -> None:
    try:
        await AccountingService(db).delete_expense(expense_id)
    except ExpenseNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

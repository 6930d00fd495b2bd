# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Fee, invoice, payment, scholarship and expense DTOs."""

from datetime import date
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from src.models.common import Money, SchoolYear, UTCDateTime

InvoiceStatus = Literal["unpaid", "partial", "paid"]


class FeeStructureCreateRequest(BaseModel):
    grade_level: str = Field(min_length=1, max_length=30)
    school_year: SchoolYear
    tuition_fee: Money = Field(default=Decimal("0"), ge=0)
    misc_fee: Money = Field(default=Decimal("0"), ge=0)
    other_fee: Money = Field(default=Decimal("0"), ge=0)
    description: str | None = None


class FeeStructureUpdateRequest(BaseModel):
    tuition_fee: Money | None = Field(default=None, ge=0)
    misc_fee: Money | None = Field(default=None, ge=0)
    other_fee: Money | None = Field(default=None, ge=0)
    description: str | None = None


class FeeStructureResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    grade_level: str
    school_year: str
    tuition_fee: Money
    misc_fee: Money
    other_fee: Money
    total: Money
    description: str | None = None


class InvoiceItemCreateRequest(BaseModel):
    description: str = Field(min_length=1, max_length=255)
    amount: Money = Field(gt=0)


class InvoiceItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    description: str
    amount: Money


class InvoiceCreateRequest(BaseModel):
    student_id: str
    school_year: SchoolYear
    due_date: date | None = None
    total_amount: Money | None = Field(
        default=None,
        ge=0,
        description="Defaults to the sum of items",
    )
    notes: str | None = None
    items: list[InvoiceItemCreateRequest] = Field(default_factory=list)


class InvoiceUpdateRequest(BaseModel):
    due_date: date | None = None
    total_amount: Money | None = Field(default=None, ge=0)
    notes: str | None = None


class PaymentCreateRequest(BaseModel):
    amount_paid: Money = Field(gt=0)
    payment_method: str = Field(min_length=1, max_length=50)
    receipt_number: str | None = Field(default=None, max_length=100)
    payment_date: UTCDateTime | None = None


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    invoice_id: str
    amount_paid: Money
    payment_method: str
    receipt_number: str | None = None
    payment_date: UTCDateTime


class InvoiceResponse(BaseModel):
    id: str
    student_id: str
    student_name: str | None = None
    school_year: str
    due_date: date | None = None
    total_amount: Money
    amount_due: Money
    amount_paid: Money
    balance: Money
    status: str
    notes: str | None = None
    items: list[InvoiceItemResponse] = Field(default_factory=list)
    payments: list[PaymentResponse] = Field(default_factory=list)
    created_at: UTCDateTime


class ScholarshipCreateRequest(BaseModel):
    student_id: str
    name: str = Field(min_length=1, max_length=255)
    discount_percentage: Decimal = Field(ge=0, le=100)
    school_year: SchoolYear


class ScholarshipUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    discount_percentage: Decimal | None = Field(default=None, ge=0, le=100)


class ScholarshipResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    name: str
    discount_percentage: float
    school_year: str
    created_at: UTCDateTime


class ExpenseCreateRequest(BaseModel):
    expense_date: date
    category: str = Field(min_length=1, max_length=50)
    description: str | None = None
    amount: Money = Field(gt=0)


class ExpenseUpdateRequest(BaseModel):
    expense_date: date | None = None
    category: str | None = Field(default=None, min_length=1, max_length=50)
    description: str | None = None
    amount: Money | None = Field(default=None, gt=0)


class ExpenseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    expense_date: date
    category: str
    description: str | None = None
    amount: Money
    recorded_by: str | None = None

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Accounting domain: fees, invoices, payments, scholarships, expenses."""

from src.domains.accounting.service import (
    AccountingService,
    AccountingServiceError,
    ExpenseNotFoundError,
    FeeStructureExistsError,
    FeeStructureNotFoundError,
    InvoiceItemNotFoundError,
    InvoiceNotFoundError,
    InvoiceStudentNotFoundError,
    ScholarshipNotFoundError,
    amount_due,
    amount_paid,
    invoice_status,
)

__all__ = [
    "AccountingService",
    "AccountingServiceError",
    "ExpenseNotFoundError",
    "FeeStructureExistsError",
    "FeeStructureNotFoundError",
    "InvoiceItemNotFoundError",
    "InvoiceNotFoundError",
    "InvoiceStudentNotFoundError",
    "ScholarshipNotFoundError",
    "amount_due",
    "amount_paid",
    "invoice_status",
]

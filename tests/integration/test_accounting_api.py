# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for fees, invoices, payments, scholarships and expenses."""

import pytest
from httpx import AsyncClient

from src.utils.datetime import next_month_start, utc_now

pytestmark = pytest.mark.integration


async def create_invoice(client: AsyncClient, headers: dict, student_id: str, **fields) -> dict:
    payload = {"student_id": student_id, "school_year": "2025-2026", **fields}
    response = await client.post("/api/v1/accounting/invoices", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestFeeStructures:
    """Tests for fee structures and the admin tuition view."""

    async def test_create_fee_structure_computes_total(
        self, client: AsyncClient, accounting
    ) -> None:
        """Test that the total is the sum of the fee components."""
        _, headers = accounting

        response = await client.post(
            "/api/v1/accounting/fee-structures",
            json={
                "grade_level": "Grade 7",
                "school_year": "2025-2026",
                "tuition_fee": 25000,
                "misc_fee": 3500.5,
                "other_fee": 1000,
            },
            headers=headers,
        )

        assert response.status_code == 201
        assert response.json()["total"] == 29500.5

    async def test_duplicate_fee_structure_conflicts(self, client: AsyncClient, accounting) -> None:
        """Test one fee structure per grade and school year."""
        _, headers = accounting
        payload = {"grade_level": "Grade 7", "school_year": "2025-2026", "tuition_fee": 100}
        await client.post("/api/v1/accounting/fee-structures", json=payload, headers=headers)

        response = await client.post(
            "/api/v1/accounting/fee-structures", json=payload, headers=headers
        )

        assert response.status_code == 409

    async def test_admin_tuition_fees_share_fee_structures(
        self, client: AsyncClient, accounting, admin
    ) -> None:
        """Test that admin tuition fees read the same records."""
        _, headers = accounting
        _, admin_headers = admin
        created = await client.post(
            "/api/v1/accounting/fee-structures",
            json={"grade_level": "Grade 8", "school_year": "2025-2026", "tuition_fee": 100},
            headers=headers,
        )

        updated = await client.put(
            f"/api/v1/admin/tuition-fees/{created.json()['id']}",
            json={"misc_fee": 50},
            headers=admin_headers,
        )
        listed = await client.get(
            "/api/v1/admin/tuition-fees", params={"grade_level": "Grade 8"}, headers=admin_headers
        )

        assert updated.json()["total"] == 150.0
        assert [f["id"] for f in listed.json()] == [created.json()["id"]]

    async def test_delete_missing_fee_structure(self, client: AsyncClient, accounting) -> None:
        """Test deleting an unknown fee structure."""
        _, headers = accounting

        response = await client.delete(
            "/api/v1/accounting/fee-structures/missing", headers=headers
        )

        assert response.status_code == 404

    async def test_students_cannot_manage_fees(self, client: AsyncClient, student) -> None:
        """Test that accounting endpoints are role protected."""
        _, headers = student

        response = await client.get("/api/v1/accounting/fee-structures", headers=headers)

        assert response.status_code == 403


class TestInvoices:
    """Tests for invoice status derivation."""

    async def test_invoice_total_defaults_to_items(
        self, client: AsyncClient, accounting, student
    ) -> None:
        """Test that an invoice without a total sums its items."""
        _, headers = accounting
        student_user, student_headers = student

        invoice = await create_invoice(
            client,
            headers,
            student_user.id,
            items=[
                {"description": "Tuition", "amount": 20000},
                {"description": "Books", "amount": 1500.25},
            ],
        )

        assert invoice["total_amount"] == 21500.25
        assert invoice["amount_due"] == 21500.25
        assert invoice["status"] == "unpaid"
        assert invoice["student_name"] == "Jane Student"

        notifications = await client.get("/api/v1/notifications", headers=student_headers)
        assert notifications.json()["items"][0]["title"] == "New Invoice"

    async def test_payments_move_invoice_to_paid(
        self, client: AsyncClient, accounting, student, admin
    ) -> None:
        """Test partial then full payment and the enrollment mirror."""
        _, headers = accounting
        _, admin_headers = admin
        student_user, _ = student
        await client.post(
            "/api/v1/admin/enrollments",
            json={"student_id": student_user.id, "school_year": "2025-2026", "status": "approved"},
            headers=admin_headers,
        )
        invoice = await create_invoice(client, headers, student_user.id, total_amount=10000)

        partial = await client.post(
            f"/api/v1/accounting/invoices/{invoice['id']}/payments",
            json={"amount_paid": 4000, "payment_method": "cash", "receipt_number": "OR-1"},
            headers=headers,
        )
        enrollment = await client.get(
            "/api/v1/admin/enrollments", params={"student_id": student_user.id}, headers=admin_headers
        )
        assert partial.status_code == 201
        assert partial.json()["status"] == "partial"
        assert partial.json()["balance"] == 6000.0
        assert enrollment.json()["items"][0]["payment_status"] == "partial"

        paid = await client.post(
            f"/api/v1/accounting/invoices/{invoice['id']}/payments",
            json={"amount_paid": 6000, "payment_method": "bank_transfer"},
            headers=headers,
        )
        enrollment = await client.get(
            "/api/v1/admin/enrollments", params={"student_id": student_user.id}, headers=admin_headers
        )
        assert paid.json()["status"] == "paid"
        assert paid.json()["amount_paid"] == 10000.0
        assert paid.json()["balance"] == 0.0
        assert enrollment.json()["items"][0]["payment_status"] == "paid"

        payments = await client.get(
            f"/api/v1/accounting/invoices/{invoice['id']}/payments", headers=headers
        )
        assert [p["receipt_number"] for p in payments.json()] == ["OR-1", None]

    async def test_zero_invoice_is_settled(
        self, client: AsyncClient, accounting, student
    ) -> None:
        """Test that an invoice with nothing due is paid and stays paid."""
        _, headers = accounting
        student_user, _ = student

        invoice = await create_invoice(client, headers, student_user.id, total_amount=0)
        payment = await client.post(
            f"/api/v1/accounting/invoices/{invoice['id']}/payments",
            json={"amount_paid": 100, "payment_method": "cash"},
            headers=headers,
        )

        assert invoice["status"] == "paid"
        assert invoice["amount_due"] == 0.0
        assert payment.status_code == 201
        assert payment.json()["status"] == "paid"
        assert payment.json()["balance"] == 0.0

    async def test_adding_item_reopens_paid_invoice(
        self, client: AsyncClient, accounting, student
    ) -> None:
        """Test that items change the amount due and the status."""
        _, headers = accounting
        student_user, _ = student
        invoice = await create_invoice(
            client, headers, student_user.id, items=[{"description": "Tuition", "amount": 500}]
        )
        await client.post(
            f"/api/v1/accounting/invoices/{invoice['id']}/payments",
            json={"amount_paid": 500, "payment_method": "cash"},
            headers=headers,
        )

        added = await client.post(
            f"/api/v1/accounting/invoices/{invoice['id']}/items",
            json={"description": "Uniform", "amount": 250},
            headers=headers,
        )
        uniform_id = next(i["id"] for i in added.json()["items"] if i["description"] == "Uniform")
        removed = await client.delete(
            f"/api/v1/accounting/invoices/{invoice['id']}/items/{uniform_id}", headers=headers
        )

        assert added.json()["amount_due"] == 750.0
        assert added.json()["status"] == "partial"
        assert removed.json()["amount_due"] == 500.0
        assert removed.json()["status"] == "paid"

    async def test_filter_invoices_by_status(
        self, client: AsyncClient, accounting, student
    ) -> None:
        """Test listing invoices by derived status."""
        _, headers = accounting
        student_user, _ = student
        first = await create_invoice(client, headers, student_user.id, total_amount=100)
        await create_invoice(client, headers, student_user.id, total_amount=200)
        await client.post(
            f"/api/v1/accounting/invoices/{first['id']}/payments",
            json={"amount_paid": 100, "payment_method": "cash"},
            headers=headers,
        )

        response = await client.get(
            "/api/v1/accounting/invoices", params={"status": "paid"}, headers=headers
        )

        assert [i["id"] for i in response.json()] == [first["id"]]

    async def test_invoice_for_unknown_student(self, client: AsyncClient, accounting) -> None:
        """Test that invoices need an existing student."""
        _, headers = accounting

        response = await client.post(
            "/api/v1/accounting/invoices",
            json={"student_id": "missing", "school_year": "2025-2026", "total_amount": 10},
            headers=headers,
        )

        assert response.status_code == 404

    async def test_payment_must_be_positive(
        self, client: AsyncClient, accounting, student
    ) -> None:
        """Test payment amount validation."""
        _, headers = accounting
        student_user, _ = student
        invoice = await create_invoice(client, headers, student_user.id, total_amount=100)

        response = await client.post(
            f"/api/v1/accounting/invoices/{invoice['id']}/payments",
            json={"amount_paid": 0, "payment_method": "cash"},
            headers=headers,
        )

        assert response.status_code == 422


class TestScholarshipsAndExpenses:
    """Tests for scholarships, expenses and the accounting dashboard."""

    async def test_scholarship_notifies_student(
        self, client: AsyncClient, accounting, student
    ) -> None:
        """Test granting a scholarship."""
        _, headers = accounting
        student_user, student_headers = student

        response = await client.post(
            "/api/v1/accounting/scholarships",
            json={
                "student_id": student_user.id,
                "name": "Academic Excellence",
                "discount_percentage": 50,
                "school_year": "2025-2026",
            },
            headers=headers,
        )
        notifications = await client.get("/api/v1/notifications", headers=student_headers)

        assert response.status_code == 201
        assert response.json()["discount_percentage"] == 50.0
        assert "Academic Excellence (50% discount)" in notifications.json()["items"][0]["message"]

    async def test_scholarship_percentage_bounds(
        self, client: AsyncClient, accounting, student
    ) -> None:
        """Test that discounts above 100 percent are rejected."""
        _, headers = accounting
        student_user, _ = student

        response = await client.post(
            "/api/v1/accounting/scholarships",
            json={
                "student_id": student_user.id,
                "name": "Too generous",
                "discount_percentage": 150,
                "school_year": "2025-2026",
            },
            headers=headers,
        )

        assert response.status_code == 422

    async def test_expense_lifecycle(self, client: AsyncClient, accounting) -> None:
        """Test recording, filtering, updating and deleting expenses."""
        user, headers = accounting
        today = utc_now().date().isoformat()
        created = await client.post(
            "/api/v1/accounting/expenses",
            json={"expense_date": today, "category": "utilities", "amount": 1200},
            headers=headers,
        )
        await client.post(
            "/api/v1/accounting/expenses",
            json={"expense_date": today, "category": "supplies", "amount": 300},
            headers=headers,
        )

        utilities = await client.get(
            "/api/v1/accounting/expenses", params={"category": "utilities"}, headers=headers
        )
        updated = await client.put(
            f"/api/v1/accounting/expenses/{created.json()['id']}",
            json={"amount": 1500},
            headers=headers,
        )
        deleted = await client.delete(
            f"/api/v1/accounting/expenses/{created.json()['id']}", headers=headers
        )
        missing = await client.delete(
            f"/api/v1/accounting/expenses/{created.json()['id']}", headers=headers
        )

        assert created.json()["recorded_by"] == user.id
        assert [e["category"] for e in utilities.json()] == ["utilities"]
        assert updated.json()["amount"] == 1500.0
        assert deleted.status_code == 204
        assert missing.status_code == 404

    async def test_accounting_dashboard(self, client: AsyncClient, accounting, student) -> None:
        """Test the accounting dashboard totals for the current month only."""
        _, headers = accounting
        student_user, _ = student
        invoice = await create_invoice(client, headers, student_user.id, total_amount=1000)
        await client.post(
            f"/api/v1/accounting/invoices/{invoice['id']}/payments",
            json={"amount_paid": 400, "payment_method": "cash"},
            headers=headers,
        )
        await client.post(
            "/api/v1/accounting/expenses",
            json={"expense_date": utc_now().date().isoformat(), "category": "utilities", "amount": 250},
            headers=headers,
        )
        await client.post(
            "/api/v1/accounting/expenses",
            json={
                "expense_date": next_month_start().date().isoformat(),
                "category": "utilities",
                "amount": 900,
            },
            headers=headers,
        )

        response = await client.get("/api/v1/accounting/dashboard", headers=headers)

        assert response.status_code == 200
        body = response.json()
        assert body["invoices_by_status"] == {"unpaid": 0, "partial": 1, "paid": 0}
        assert body["collected_this_month"] == 400.0
        assert body["outstanding_balance"] == 600.0
        assert body["expenses_this_month"] == 250.0

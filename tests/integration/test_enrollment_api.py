# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the enrollment application workflow."""

import pytest
from httpx import AsyncClient

from src.core.config import clear_settings_cache

pytestmark = pytest.mark.integration

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n"


def application_payload(**overrides) -> dict:
    payload = {
        "school_year": "2025-2026",
        "grade_level": "Grade 8",
        "first_name": "Jane",
        "last_name": "Student",
        "birth_date": "2012-04-15",
        "address": "12 Mabini St.",
        "parent_name": "Mary Parent",
        "parent_contact": "09171234567",
    }
    payload.update(overrides)
    return payload


async def start_application(client: AsyncClient, headers: dict, **overrides) -> dict:
    response = await client.post(
        "/api/v1/enrollment/applications",
        json=application_payload(**overrides),
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


async def upload_pdf(client: AsyncClient, headers: dict, application_id: str, name: str = "birth.pdf"):
    return await client.post(
        f"/api/v1/enrollment/applications/{application_id}/documents",
        data={"document_type": "birth_certificate"},
        files=[("files", (name, PDF_BYTES, "application/pdf"))],
        headers=headers,
    )


class TestStudentApplication:
    """Tests for the applicant side of the workflow."""

    async def test_create_application_starts_as_draft(self, client: AsyncClient, student) -> None:
        """Test that a new application is a draft owned by the student."""
        user, headers = student

        body = await start_application(client, headers)

        assert body["status"] == "draft"
        assert body["student_id"] == user.id
        assert body["documents"] == []

    async def test_progress_without_application(self, client: AsyncClient, student) -> None:
        """Test the progress placeholder before anything was filed."""
        _, headers = student

        response = await client.get("/api/v1/enrollment/progress/me", headers=headers)

        assert response.status_code == 200
        assert response.json()["status"] == "no_application"

    async def test_upload_documents_moves_to_pending(
        self, client: AsyncClient, student, storage
    ) -> None:
        """Test that uploaded files are stored and recorded."""
        _, headers = student
        application = await start_application(client, headers)

        response = await upload_pdf(client, headers, application["id"])

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "pending_documents"
        [document] = body["documents"]
        assert document["document_type"] == "birth_certificate"
        assert document["file_name"] == "birth.pdf"
        assert document["size"] == len(PDF_BYTES)
        assert document["file_url"].startswith(
            f"/api/v1/files/applications/{application['id']}/birth_certificate/"
        )
        stored = await storage.list(f"applications/{application['id']}/")
        assert len(stored) == 1

    async def test_upload_rejects_disallowed_type(self, client: AsyncClient, student) -> None:
        """Test that only PDF and image documents are accepted."""
        _, headers = student
        application = await start_application(client, headers)

        response = await client.post(
            f"/api/v1/enrollment/applications/{application['id']}/documents",
            data={"document_type": "report_card"},
            files=[("files", ("grades.txt", b"A+", "text/plain"))],
            headers=headers,
        )

        assert response.status_code == 400

    async def test_upload_rejects_too_many_files(self, client: AsyncClient, student) -> None:
        """Test the per-request file limit."""
        _, headers = student
        application = await start_application(client, headers)

        response = await client.post(
            f"/api/v1/enrollment/applications/{application['id']}/documents",
            data={"document_type": "report_card"},
            files=[("files", (f"page{i}.pdf", PDF_BYTES, "application/pdf")) for i in range(6)],
            headers=headers,
        )

        assert response.status_code == 400

    async def test_upload_rejects_oversized_file(
        self, client: AsyncClient, student, monkeypatch
    ) -> None:
        """Test that a document over the size limit returns 413."""
        _, headers = student
        application = await start_application(client, headers)
        monkeypatch.setenv("STORAGE_MAX_DOCUMENT_BYTES", "16")
        clear_settings_cache()

        response = await upload_pdf(client, headers, application["id"])

        assert response.status_code == 413

    async def test_submit_notifies_registrars(
        self, client: AsyncClient, student, registrar
    ) -> None:
        """Test submitting an application and the registrar notification."""
        _, headers = student
        _, registrar_headers = registrar
        application = await start_application(client, headers)
        await upload_pdf(client, headers, application["id"])

        response = await client.post(
            f"/api/v1/enrollment/applications/{application['id']}/submit", headers=headers
        )

        assert response.status_code == 200
        assert response.json()["status"] == "submitted"
        assert response.json()["submitted_at"] is not None

        progress = await client.get("/api/v1/enrollment/progress/me", headers=headers)
        assert progress.json()["status"] == "submitted"
        assert progress.json()["application_id"] == application["id"]

        notifications = await client.get("/api/v1/notifications", headers=registrar_headers)
        [notification] = notifications.json()["items"]
        assert notification["type"] == "enrollment"
        assert "Jane Student" in notification["message"]

    async def test_cannot_upload_after_submit(self, client: AsyncClient, student) -> None:
        """Test that submitted applications are frozen."""
        _, headers = student
        application = await start_application(client, headers)
        await client.post(
            f"/api/v1/enrollment/applications/{application['id']}/submit", headers=headers
        )

        response = await upload_pdf(client, headers, application["id"])
        resubmit = await client.post(
            f"/api/v1/enrollment/applications/{application['id']}/submit", headers=headers
        )

        assert response.status_code == 400
        assert resubmit.status_code == 400

    async def test_other_student_cannot_see_application(
        self, client: AsyncClient, student, make_user
    ) -> None:
        """Test that applications are private to their owner."""
        _, headers = student
        _, other_headers = await make_user("student")
        application = await start_application(client, headers)

        response = await client.get(
            f"/api/v1/enrollment/applications/{application['id']}", headers=other_headers
        )

        assert response.status_code == 404

    async def test_teacher_cannot_apply(self, client: AsyncClient, teacher) -> None:
        """Test that staff roles cannot file applications."""
        _, headers = teacher

        response = await client.post(
            "/api/v1/enrollment/applications", json=application_payload(), headers=headers
        )

        assert response.status_code == 403


class TestParentApplication:
    """Tests for parents applying on behalf of a child."""

    async def test_parent_applies_for_linked_child(
        self, client: AsyncClient, admin, parent, student
    ) -> None:
        """Test that a linked parent can apply and list the application."""
        _, admin_headers = admin
        parent_user, parent_headers = parent
        student_user, _ = student
        await client.post(
            "/api/v1/admin/parent-links",
            json={"parent_id": parent_user.id, "student_id": student_user.id},
            headers=admin_headers,
        )

        created = await start_application(client, parent_headers, student_id=student_user.id)
        mine = await client.get("/api/v1/enrollment/applications/mine", headers=parent_headers)

        assert created["student_id"] == student_user.id
        assert [a["id"] for a in mine.json()] == [created["id"]]

    async def test_parent_cannot_apply_for_unlinked_child(
        self, client: AsyncClient, parent, student
    ) -> None:
        """Test that parents must be linked to the student."""
        _, parent_headers = parent
        student_user, _ = student

        response = await client.post(
            "/api/v1/enrollment/applications",
            json=application_payload(student_id=student_user.id),
            headers=parent_headers,
        )

        assert response.status_code == 403

    async def test_parent_must_name_student(self, client: AsyncClient, parent) -> None:
        """Test that a parent application without a student is rejected."""
        _, parent_headers = parent

        response = await client.post(
            "/api/v1/enrollment/applications", json=application_payload(), headers=parent_headers
        )

        assert response.status_code == 400


class TestRegistrarReview:
    """Tests for the registrar review queue and decisions."""

    async def _submitted(self, client: AsyncClient, headers: dict) -> dict:
        application = await start_application(client, headers)
        await client.post(
            f"/api/v1/enrollment/applications/{application['id']}/submit", headers=headers
        )
        return application

    async def test_list_applications_by_status(
        self, client: AsyncClient, student, registrar, make_user
    ) -> None:
        """Test filtering the review queue."""
        _, headers = student
        _, draft_headers = await make_user("student")
        _, registrar_headers = registrar
        submitted = await self._submitted(client, headers)
        await start_application(client, draft_headers, first_name="Draft")

        everything = await client.get(
            "/api/v1/enrollment/applications", headers=registrar_headers
        )
        only_submitted = await client.get(
            "/api/v1/enrollment/applications",
            params={"status": "submitted"},
            headers=registrar_headers,
        )

        assert everything.json()["total"] == 2
        assert only_submitted.json()["total"] == 1
        assert only_submitted.json()["items"][0]["id"] == submitted["id"]
        assert only_submitted.json()["page"] == 1

    async def test_student_cannot_review(self, client: AsyncClient, student) -> None:
        """Test that the review queue is staff only."""
        _, headers = student

        response = await client.get("/api/v1/enrollment/applications", headers=headers)

        assert response.status_code == 403

    async def test_approve_creates_enrollment(
        self, client: AsyncClient, student, registrar, admin
    ) -> None:
        """Test that approval creates an unpaid enrollment and notifies the student."""
        user, headers = student
        _, registrar_headers = registrar
        _, admin_headers = admin
        application = await self._submitted(client, headers)

        response = await client.post(
            f"/api/v1/enrollment/applications/{application['id']}/decision",
            json={"decision": "approved", "remarks": "Welcome"},
            headers=registrar_headers,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "approved"
        assert response.json()["decided_at"] is not None

        enrollments = await client.get(
            "/api/v1/admin/enrollments", params={"student_id": user.id}, headers=admin_headers
        )
        [enrollment] = enrollments.json()["items"]
        assert enrollment["status"] == "approved"
        assert enrollment["payment_status"] == "unpaid"
        assert enrollment["school_year"] == "2025-2026"
        assert enrollment["application_id"] == application["id"]

        me = await client.get("/api/v1/auth/me", headers=headers)
        assert me.json()["grade_level"] == "Grade 8"

        progress = await client.get("/api/v1/enrollment/progress/me", headers=headers)
        assert progress.json()["status"] == "approved"

        notifications = await client.get("/api/v1/notifications", headers=headers)
        titles = [n["title"] for n in notifications.json()["items"]]
        assert "Enrollment Application Approved" in titles

    async def test_reject_keeps_no_enrollment(
        self, client: AsyncClient, student, registrar, admin
    ) -> None:
        """Test that rejection does not create an enrollment."""
        user, headers = student
        _, registrar_headers = registrar
        _, admin_headers = admin
        application = await self._submitted(client, headers)

        response = await client.post(
            f"/api/v1/enrollment/applications/{application['id']}/decision",
            json={"decision": "rejected", "remarks": "Incomplete"},
            headers=registrar_headers,
        )
        enrollments = await client.get(
            "/api/v1/admin/enrollments", params={"student_id": user.id}, headers=admin_headers
        )

        assert response.json()["status"] == "rejected"
        assert response.json()["remarks"] == "Incomplete"
        assert enrollments.json()["total"] == 0

    async def test_invalid_decision(self, client: AsyncClient, student, registrar) -> None:
        """Test that only approved or rejected are accepted."""
        _, headers = student
        _, registrar_headers = registrar
        application = await self._submitted(client, headers)

        response = await client.post(
            f"/api/v1/enrollment/applications/{application['id']}/decision",
            json={"decision": "maybe"},
            headers=registrar_headers,
        )

        assert response.status_code == 400

    async def test_cannot_decide_draft(self, client: AsyncClient, student, registrar) -> None:
        """Test that drafts cannot be decided."""
        _, headers = student
        _, registrar_headers = registrar
        application = await start_application(client, headers)

        response = await client.post(
            f"/api/v1/enrollment/applications/{application['id']}/decision",
            json={"decision": "approved"},
            headers=registrar_headers,
        )

        assert response.status_code == 400

    async def test_decide_unknown_application(self, client: AsyncClient, registrar) -> None:
        """Test deciding an application that does not exist."""
        _, registrar_headers = registrar

        response = await client.post(
            "/api/v1/enrollment/applications/missing/decision",
            json={"decision": "approved"},
            headers=registrar_headers,
        )

        assert response.status_code == 404

    async def test_registrar_downloads_application_file(
        self, client: AsyncClient, student, registrar, make_user
    ) -> None:
        """Test file access rules for application documents."""
        _, headers = student
        _, registrar_headers = registrar
        _, stranger_headers = await make_user("student")
        application = await start_application(client, headers)
        uploaded = await upload_pdf(client, headers, application["id"])
        url = uploaded.json()["documents"][0]["file_url"]

        as_registrar = await client.get(url, headers=registrar_headers)
        as_owner = await client.get(url, headers=headers)
        as_stranger = await client.get(url, headers=stranger_headers)

        assert as_registrar.status_code == 200
        assert as_registrar.content == PDF_BYTES
        assert as_owner.status_code == 200
        assert as_stranger.status_code == 403

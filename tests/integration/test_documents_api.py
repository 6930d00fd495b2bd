# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for student documents, uploads and file downloads."""

import base64

import pytest
from httpx import AsyncClient

from src.core.config import clear_settings_cache

pytestmark = pytest.mark.integration

PDF_BYTES = b"%PDF-1.4\n% report card\n"


def document_payload(**overrides) -> dict:
    payload = {
        "document_type": "report_card",
        "filename": "report card.pdf",
        "content": base64.b64encode(PDF_BYTES).decode(),
        "content_type": "application/pdf",
    }
    payload.update(overrides)
    return payload


class TestStudentDocuments:
    """Tests for base64 student document uploads."""

    async def test_upload_attaches_to_latest_enrollment(
        self, client: AsyncClient, student, admin
    ) -> None:
        """Test that the document is stored and recorded on the enrollment."""
        user, headers = student
        _, admin_headers = admin
        enrollment = await client.post(
            "/api/v1/admin/enrollments",
            json={"student_id": user.id, "school_year": "2025-2026"},
            headers=admin_headers,
        )

        response = await client.post(
            f"/api/v1/students/{user.id}/documents", json=document_payload(), headers=headers
        )

        assert response.status_code == 201
        body = response.json()
        assert body["enrollment_id"] == enrollment.json()["id"]
        assert body["document"]["path"].startswith(f"students/{user.id}/report_card/")
        assert body["document"]["path"].endswith("-report_card.pdf")
        assert body["document"]["size"] == len(PDF_BYTES)

        stored = await client.get(
            "/api/v1/admin/enrollments", params={"student_id": user.id}, headers=admin_headers
        )
        [entry] = stored.json()["items"][0]["documents"]["report_card"]
        assert entry["filename"] == "report card.pdf"

    async def test_upload_accepts_data_url(self, client: AsyncClient, student) -> None:
        """Test that a data URL prefix is stripped before decoding."""
        user, headers = student
        content = "data:application/pdf;base64," + base64.b64encode(PDF_BYTES).decode()

        response = await client.post(
            f"/api/v1/students/{user.id}/documents",
            json=document_payload(content=content),
            headers=headers,
        )

        assert response.status_code == 201
        assert response.json()["enrollment_id"] is None

    async def test_invalid_base64(self, client: AsyncClient, student) -> None:
        """Test that undecodable content is rejected."""
        user, headers = student

        response = await client.post(
            f"/api/v1/students/{user.id}/documents",
            json=document_payload(content="not base64!!"),
            headers=headers,
        )

        assert response.status_code == 400

    async def test_document_type_not_allowed(self, client: AsyncClient, student) -> None:
        """Test that only PDF and image documents are accepted."""
        user, headers = student

        response = await client.post(
            f"/api/v1/students/{user.id}/documents",
            json=document_payload(filename="notes.txt", content_type="text/plain"),
            headers=headers,
        )

        assert response.status_code == 400

    async def test_document_too_large(self, client: AsyncClient, student, monkeypatch) -> None:
        """Test the document size limit."""
        user, headers = student
        monkeypatch.setenv("STORAGE_MAX_DOCUMENT_BYTES", "8")
        clear_settings_cache()

        response = await client.post(
            f"/api/v1/students/{user.id}/documents", json=document_payload(), headers=headers
        )

        assert response.status_code == 413

    async def test_access_rules(
        self, client: AsyncClient, student, parent, registrar, make_user, admin
    ) -> None:
        """Test who may upload and list a student's documents."""
        user, headers = student
        parent_user, parent_headers = parent
        _, registrar_headers = registrar
        _, admin_headers = admin
        _, stranger_headers = await make_user("student")
        await client.post(
            "/api/v1/admin/parent-links",
            json={"parent_id": parent_user.id, "student_id": user.id},
            headers=admin_headers,
        )
        await client.post(
            f"/api/v1/students/{user.id}/documents", json=document_payload(), headers=headers
        )

        by_parent = await client.get(f"/api/v1/students/{user.id}/documents", headers=parent_headers)
        by_registrar = await client.get(
            f"/api/v1/students/{user.id}/documents", headers=registrar_headers
        )
        by_stranger = await client.post(
            f"/api/v1/students/{user.id}/documents",
            json=document_payload(),
            headers=stranger_headers,
        )

        assert len(by_parent.json()["items"]) == 1
        assert by_registrar.json()["items"][0]["url"].startswith(
            f"/api/v1/files/students/{user.id}/report_card/"
        )
        assert by_stranger.status_code == 403

    async def test_unknown_student(self, client: AsyncClient, registrar) -> None:
        """Test uploads for a missing student."""
        _, headers = registrar

        response = await client.post(
            "/api/v1/students/missing/documents", json=document_payload(), headers=headers
        )

        assert response.status_code == 404


class TestUploads:
    """Tests for multipart uploads and downloads."""

    async def test_upload_and_download(self, client: AsyncClient, teacher, student) -> None:
        """Test storing a file and reading it back through its URL."""
        _, headers = teacher
        _, student_headers = student

        response = await client.post(
            "/api/v1/uploads",
            data={"purpose": "modules"},
            files=[("files", ("Week 1 Notes.txt", b"fractions", "text/plain"))],
            headers=headers,
        )

        assert response.status_code == 201
        [uploaded] = response.json()
        assert uploaded["filename"] == "Week 1 Notes.txt"
        assert uploaded["path"].startswith("uploads/modules/")
        assert uploaded["content_type"] == "text/plain"

        download = await client.get(uploaded["url"], headers=student_headers)
        assert download.status_code == 200
        assert download.content == b"fractions"

    async def test_default_purpose(self, client: AsyncClient, teacher) -> None:
        """Test that uploads default to the general folder."""
        _, headers = teacher

        response = await client.post(
            "/api/v1/uploads",
            files=[("files", ("a.pdf", PDF_BYTES, "application/pdf"))],
            headers=headers,
        )

        assert response.json()[0]["path"].startswith("uploads/general/")

    async def test_unknown_purpose(self, client: AsyncClient, teacher) -> None:
        """Test that the purpose selects one of the known folders."""
        _, headers = teacher

        response = await client.post(
            "/api/v1/uploads",
            data={"purpose": "secrets"},
            files=[("files", ("a.pdf", PDF_BYTES, "application/pdf"))],
            headers=headers,
        )

        assert response.status_code == 400

    async def test_disallowed_type(self, client: AsyncClient, teacher) -> None:
        """Test that executables are rejected."""
        _, headers = teacher

        response = await client.post(
            "/api/v1/uploads",
            files=[("files", ("run.sh", b"#!/bin/sh", "application/x-sh"))],
            headers=headers,
        )

        assert response.status_code == 400

    async def test_upload_too_large(self, client: AsyncClient, teacher, monkeypatch) -> None:
        """Test the generic upload size limit."""
        _, headers = teacher
        monkeypatch.setenv("STORAGE_MAX_UPLOAD_BYTES", "4")
        clear_settings_cache()

        response = await client.post(
            "/api/v1/uploads",
            files=[("files", ("a.pdf", PDF_BYTES, "application/pdf"))],
            headers=headers,
        )

        assert response.status_code == 413

    async def test_download_rules(self, client: AsyncClient, student, make_user) -> None:
        """Test download permissions, missing files and invalid paths."""
        user, headers = student
        _, stranger_headers = await make_user("student")
        stored = await client.post(
            f"/api/v1/students/{user.id}/documents", json=document_payload(), headers=headers
        )
        url = stored.json()["document"]["url"]

        own = await client.get(url, headers=headers)
        stranger = await client.get(url, headers=stranger_headers)
        missing = await client.get(f"/api/v1/files/students/{user.id}/nope.pdf", headers=headers)
        invalid = await client.get("/api/v1/files/uploads%5Csecret.txt", headers=headers)
        unknown_root = await client.get("/api/v1/files/private/x.pdf", headers=headers)

        assert own.status_code == 200
        assert own.headers["content-type"] == "application/pdf"
        assert stranger.status_code == 403
        assert missing.status_code == 404
        assert invalid.status_code == 400
        assert unknown_root.status_code == 403

    async def test_download_requires_authentication(self, client: AsyncClient) -> None:
        """Test that files are never public."""
        response = await client.get("/api/v1/files/uploads/general/a.pdf")

        assert response.status_code == 401

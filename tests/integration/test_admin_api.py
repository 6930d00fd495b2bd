# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for admin endpoints: users, school structure, content."""

from datetime import date, timedelta

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.integration


class TestAdminUsers:
    """Tests for /api/v1/admin/users."""

    async def test_create_and_list_users(self, client: AsyncClient, admin) -> None:
        """Test creating a staff account and finding it by role."""
        _, headers = admin

        created = await client.post(
            "/api/v1/admin/users",
            json={
                "name": "Bob Registrar",
                "email": "registrar@school.edu",
                "password": "registrar123456",
                "role": "registrar",
            },
            headers=headers,
        )
        listed = await client.get(
            "/api/v1/admin/users", params={"role": "registrar"}, headers=headers
        )

        assert created.status_code == 201
        assert created.json()["role"] == "registrar"
        assert listed.status_code == 200
        assert listed.json()["total"] == 1
        assert listed.json()["items"][0]["email"] == "registrar@school.edu"

    async def test_search_users(self, client: AsyncClient, admin, make_user) -> None:
        """Test name/email search."""
        _, headers = admin
        await make_user("student", name="Carlos Reyes")
        await make_user("student", name="Dana Cruz")

        response = await client.get(
            "/api/v1/admin/users", params={"search": "reyes"}, headers=headers
        )

        assert [u["name"] for u in response.json()["items"]] == ["Carlos Reyes"]

    async def test_duplicate_email_conflicts(self, client: AsyncClient, admin) -> None:
        """Test that creating a user with a taken email fails."""
        admin_user, headers = admin

        response = await client.post(
            "/api/v1/admin/users",
            json={
                "name": "Copy",
                "email": admin_user.email,
                "password": "password123",
                "role": "teacher",
            },
            headers=headers,
        )

        assert response.status_code == 409

    async def test_update_and_deactivate_user(self, client: AsyncClient, admin, teacher) -> None:
        """Test partial update of a user."""
        _, headers = admin
        teacher_user, _ = teacher

        response = await client.put(
            f"/api/v1/admin/users/{teacher_user.id}",
            json={"is_active": False, "phone": "555-0100"},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json()["is_active"] is False
        assert response.json()["phone"] == "555-0100"
        assert response.json()["name"] == teacher_user.name

    async def test_admin_cannot_delete_self(self, client: AsyncClient, admin) -> None:
        """Test the self-delete guard."""
        admin_user, headers = admin

        response = await client.delete(f"/api/v1/admin/users/{admin_user.id}", headers=headers)

        assert response.status_code == 400

    async def test_delete_user(self, client: AsyncClient, admin, student) -> None:
        """Test deleting another account."""
        _, headers = admin
        student_user, _ = student

        deleted = await client.delete(f"/api/v1/admin/users/{student_user.id}", headers=headers)
        fetched = await client.get(f"/api/v1/admin/users/{student_user.id}", headers=headers)

        assert deleted.status_code == 204
        assert fetched.status_code == 404

    async def test_non_admin_is_forbidden(self, client: AsyncClient, teacher) -> None:
        """Test that admin routes reject other roles."""
        _, headers = teacher

        response = await client.get("/api/v1/admin/users", headers=headers)

        assert response.status_code == 403

    async def test_roles_listing(self, client: AsyncClient, admin) -> None:
        """Test that all nine roles are listed."""
        _, headers = admin

        response = await client.get("/api/v1/admin/roles", headers=headers)

        codes = {r["code"] for r in response.json()}
        assert "academic_coordinator" in codes
        assert len(codes) == 9


class TestParentLinks:
    """Tests for parent-student links."""

    async def test_link_and_list_children(
        self, client: AsyncClient, admin, parent, student
    ) -> None:
        """Test linking a parent and listing the children."""
        _, headers = admin
        parent_user, _ = parent
        student_user, _ = student

        linked = await client.post(
            "/api/v1/admin/parent-links",
            json={"parent_id": parent_user.id, "student_id": student_user.id},
            headers=headers,
        )
        children = await client.get(
            f"/api/v1/admin/parents/{parent_user.id}/children", headers=headers
        )

        assert linked.status_code == 201
        assert linked.json()["relationship_type"] == "guardian"
        assert [c["id"] for c in children.json()] == [student_user.id]

    async def test_duplicate_link_conflicts(
        self, client: AsyncClient, admin, parent, student
    ) -> None:
        """Test that a link can only exist once."""
        _, headers = admin
        payload = {"parent_id": parent[0].id, "student_id": student[0].id}
        await client.post("/api/v1/admin/parent-links", json=payload, headers=headers)

        response = await client.post("/api/v1/admin/parent-links", json=payload, headers=headers)

        assert response.status_code == 409

    async def test_link_with_wrong_roles_rejected(
        self, client: AsyncClient, admin, teacher, student
    ) -> None:
        """Test that only parent accounts can be linked as parents."""
        _, headers = admin

        response = await client.post(
            "/api/v1/admin/parent-links",
            json={"parent_id": teacher[0].id, "student_id": student[0].id},
            headers=headers,
        )

        assert response.status_code == 400

    async def test_unlink(self, client: AsyncClient, admin, parent, student) -> None:
        """Test removing a link."""
        _, headers = admin
        payload = {"parent_id": parent[0].id, "student_id": student[0].id}
        await client.post("/api/v1/admin/parent-links", json=payload, headers=headers)

        removed = await client.delete(
            f"/api/v1/admin/parent-links/{parent[0].id}/{student[0].id}", headers=headers
        )
        again = await client.delete(
            f"/api/v1/admin/parent-links/{parent[0].id}/{student[0].id}", headers=headers
        )

        assert removed.status_code == 204
        assert again.status_code == 404


class TestSchoolStructure:
    """Tests for sections, subjects, assignments and settings."""

    async def test_section_lifecycle(self, client: AsyncClient, admin, teacher) -> None:
        """Test creating, updating and deleting a section."""
        _, headers = admin

        created = await client.post(
            "/api/v1/admin/sections",
            json={
                "name": "Sampaguita",
                "grade_level": "Grade 7",
                "school_year": "2025-2026",
                "adviser_id": teacher[0].id,
            },
            headers=headers,
        )
        section_id = created.json()["id"]
        updated = await client.put(
            f"/api/v1/admin/sections/{section_id}", json={"name": "Rosal"}, headers=headers
        )
        deleted = await client.delete(f"/api/v1/admin/sections/{section_id}", headers=headers)
        missing = await client.get(f"/api/v1/admin/sections/{section_id}", headers=headers)

        assert created.status_code == 201
        assert created.json()["student_count"] == 0
        assert updated.json()["name"] == "Rosal"
        assert deleted.status_code == 204
        assert missing.status_code == 404

    async def test_section_student_count(
        self, client: AsyncClient, admin, make_user
    ) -> None:
        """Test that students assigned to a section are counted and listed."""
        _, headers = admin
        section = await client.post(
            "/api/v1/admin/sections",
            json={"name": "Ilang-Ilang", "grade_level": "Grade 8"},
            headers=headers,
        )
        section_id = section.json()["id"]
        await make_user("student", name="A Student", section_id=section_id)
        await make_user("student", name="B Student", section_id=section_id)

        fetched = await client.get(f"/api/v1/admin/sections/{section_id}", headers=headers)
        students = await client.get(
            f"/api/v1/admin/sections/{section_id}/students", headers=headers
        )

        assert fetched.json()["student_count"] == 2
        assert [s["name"] for s in students.json()] == ["A Student", "B Student"]

    async def test_subject_code_unique(self, client: AsyncClient, admin) -> None:
        """Test that subject codes cannot repeat."""
        _, headers = admin
        payload = {"name": "Mathematics 7", "code": "MATH7", "grade_level": "Grade 7"}

        first = await client.post("/api/v1/admin/subjects", json=payload, headers=headers)
        second = await client.post("/api/v1/admin/subjects", json=payload, headers=headers)

        assert first.status_code == 201
        assert second.status_code == 409

    async def test_teacher_assignment(self, client: AsyncClient, admin, teacher) -> None:
        """Test assigning a teacher and rejecting the duplicate."""
        _, headers = admin
        section = await client.post(
            "/api/v1/admin/sections",
            json={"name": "Rosal", "grade_level": "Grade 7"},
            headers=headers,
        )
        subject = await client.post(
            "/api/v1/admin/subjects",
            json={"name": "Science 7", "grade_level": "Grade 7"},
            headers=headers,
        )
        payload = {
            "teacher_id": teacher[0].id,
            "subject_id": subject.json()["id"],
            "section_id": section.json()["id"],
            "school_year": "2025-2026",
        }

        created = await client.post(
            "/api/v1/admin/teacher-assignments", json=payload, headers=headers
        )
        duplicate = await client.post(
            "/api/v1/admin/teacher-assignments", json=payload, headers=headers
        )

        assert created.status_code == 201
        assert created.json()["teacher_name"] == "John Teacher"
        assert created.json()["subject_name"] == "Science 7"
        assert duplicate.status_code == 409

    async def test_assignment_requires_teacher(
        self, client: AsyncClient, admin, student
    ) -> None:
        """Test that only teachers can be assigned."""
        _, headers = admin
        section = await client.post(
            "/api/v1/admin/sections",
            json={"name": "Rosal", "grade_level": "Grade 7"},
            headers=headers,
        )
        subject = await client.post(
            "/api/v1/admin/subjects",
            json={"name": "Science 7", "grade_level": "Grade 7"},
            headers=headers,
        )

        response = await client.post(
            "/api/v1/admin/teacher-assignments",
            json={
                "teacher_id": student[0].id,
                "subject_id": subject.json()["id"],
                "section_id": section.json()["id"],
                "school_year": "2025-2026",
            },
            headers=headers,
        )

        assert response.status_code == 400

    async def test_settings(self, client: AsyncClient, admin) -> None:
        """Test creating and updating a school setting by key."""
        _, headers = admin

        created = await client.post(
            "/api/v1/admin/settings",
            json={"key": "school_name", "value": "Rizal High"},
            headers=headers,
        )
        duplicate = await client.post(
            "/api/v1/admin/settings",
            json={"key": "school_name", "value": "Other"},
            headers=headers,
        )
        updated = await client.put(
            "/api/v1/admin/settings/school_name",
            json={"value": "Rizal National High"},
            headers=headers,
        )
        missing = await client.put(
            "/api/v1/admin/settings/unknown", json={"value": "x"}, headers=headers
        )

        assert created.status_code == 201
        assert duplicate.status_code == 409
        assert updated.json()["value"] == "Rizal National High"
        assert missing.status_code == 404


class TestContent:
    """Tests for admin content and its public listing."""

    async def test_announcement_published_publicly(self, client: AsyncClient, admin) -> None:
        """Test that admin announcements appear on the public endpoint."""
        _, headers = admin

        created = await client.post(
            "/api/v1/admin/announcements",
            json={"title": "Enrollment open", "content": "Enrollment starts June 1."},
            headers=headers,
        )
        public = await client.get("/api/v1/public/announcements")

        assert created.status_code == 201
        assert public.status_code == 200
        assert [a["title"] for a in public.json()] == ["Enrollment open"]

    async def test_events_and_news(self, client: AsyncClient, admin) -> None:
        """Test creating news and events."""
        _, headers = admin

        news = await client.post(
            "/api/v1/admin/news",
            json={"title": "Science fair winners", "summary": "Congratulations"},
            headers=headers,
        )
        event = await client.post(
            "/api/v1/admin/events",
            json={"title": "Foundation Day", "event_date": "2026-02-14T08:00:00Z"},
            headers=headers,
        )

        assert news.status_code == 201
        assert news.json()["date_posted"] is not None
        assert event.status_code == 201
        assert len((await client.get("/api/v1/public/news")).json()) == 1
        assert len((await client.get("/api/v1/public/events")).json()) == 1

    async def test_update_missing_announcement(self, client: AsyncClient, admin) -> None:
        """Test 404 on unknown content."""
        _, headers = admin

        response = await client.put(
            "/api/v1/admin/announcements/missing", json={"title": "x"}, headers=headers
        )

        assert response.status_code == 404

    async def test_public_org_chart(self, client: AsyncClient, admin) -> None:
        """Test that org chart entries are public and ordered."""
        _, headers = admin
        await client.post(
            "/api/v1/admin/org-chart",
            json={"name": "Ana Santos", "position": "Registrar", "display_order": 2},
            headers=headers,
        )
        await client.post(
            "/api/v1/admin/org-chart",
            json={"name": "Jose Rizal", "position": "Principal", "display_order": 1},
            headers=headers,
        )

        response = await client.get("/api/v1/public/org-chart")

        assert [e["position"] for e in response.json()] == ["Principal", "Registrar"]


def school_year(year: str, start: date, end: date) -> dict:
    return {"year": year, "start_date": start.isoformat(), "end_date": end.isoformat()}


class TestSchoolYears:
    """Tests for /api/v1/admin/school-years."""

    async def test_start_school_year(self, client: AsyncClient, admin, student) -> None:
        """Test that a new year is active, mirrored in settings and announced."""
        _, headers = admin
        _, student_headers = student

        response = await client.post(
            "/api/v1/admin/school-years",
            json=school_year("2025-2026", date(2025, 6, 1), date(2026, 3, 31)),
            headers=headers,
        )
        settings = await client.get("/api/v1/admin/settings", headers=headers)
        notifications = await client.get("/api/v1/notifications", headers=student_headers)

        assert response.status_code == 201, response.text
        assert response.json()["is_active"] is True
        assert {s["key"]: s["value"] for s in settings.json()}["school_year"] == "2025-2026"
        [notification] = notifications.json()["items"]
        assert notification["title"] == "New School Year Started"
        assert "2025-2026" in notification["message"]

    async def test_next_year_replaces_active(self, client: AsyncClient, admin) -> None:
        """Test that only one year is active and an older one can be reactivated."""
        _, headers = admin
        first = await client.post(
            "/api/v1/admin/school-years",
            json=school_year("2025-2026", date(2025, 6, 1), date(2026, 3, 31)),
            headers=headers,
        )
        await client.post(
            "/api/v1/admin/school-years",
            json=school_year("2026-2027", date(2026, 6, 1), date(2027, 3, 31)),
            headers=headers,
        )

        listed = await client.get("/api/v1/admin/school-years", headers=headers)
        assert [(y["year"], y["is_active"]) for y in listed.json()] == [
            ("2026-2027", True),
            ("2025-2026", False),
        ]

        activated = await client.put(
            f"/api/v1/admin/school-years/{first.json()['id']}/activate", headers=headers
        )
        missing = await client.put("/api/v1/admin/school-years/nope/activate", headers=headers)
        settings = await client.get("/api/v1/admin/settings", headers=headers)

        assert activated.json()["is_active"] is True
        assert missing.status_code == 404
        assert {s["key"]: s["value"] for s in settings.json()}["school_year"] == "2025-2026"

    async def test_duplicate_and_overlapping_years(self, client: AsyncClient, admin) -> None:
        """Test that names are unique and dates never overlap."""
        _, headers = admin
        await client.post(
            "/api/v1/admin/school-years",
            json=school_year("2025-2026", date(2025, 6, 1), date(2026, 3, 31)),
            headers=headers,
        )

        duplicate = await client.post(
            "/api/v1/admin/school-years",
            json=school_year("2025-2026", date(2030, 6, 1), date(2031, 3, 31)),
            headers=headers,
        )
        overlap = await client.post(
            "/api/v1/admin/school-years",
            json=school_year("2026-2027", date(2026, 3, 1), date(2027, 3, 31)),
            headers=headers,
        )

        assert duplicate.status_code == 409
        assert overlap.status_code == 409
        assert "2025-2026" in overlap.json()["detail"]

    async def test_invalid_year(self, client: AsyncClient, admin) -> None:
        """Test the year format and the date order."""
        _, headers = admin
        start = date(2025, 6, 1)

        bad_name = await client.post(
            "/api/v1/admin/school-years",
            json=school_year("2025", start, start + timedelta(days=300)),
            headers=headers,
        )
        reversed_dates = await client.post(
            "/api/v1/admin/school-years",
            json=school_year("2025-2026", start, start - timedelta(days=1)),
            headers=headers,
        )

        assert bad_name.status_code == 422
        assert reversed_dates.status_code == 422

    async def test_requires_admin(self, client: AsyncClient, teacher) -> None:
        """Test that school years are admin only."""
        _, headers = teacher

        response = await client.get("/api/v1/admin/school-years", headers=headers)

        assert response.status_code == 403

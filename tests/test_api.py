"""Tests for the FastAPI access endpoints."""

from __future__ import annotations

import time

import jwt
import pytest

from schoolplanner.core.catalog import DEFAULT_GRANTS, DEFAULT_PERMISSIONS
from schoolplanner.core.models import UserRoleAssignment
from schoolplanner.rbac import Role

JWT_SECRET = "test-supabase-jwt-secret-with-enough-bytes"


def as_user(monkeypatch, user_id: str) -> None:
    monkeypatch.setenv("SP_DEV_USER_ID", user_id)


def bearer(sub: str, secret: str = JWT_SECRET) -> dict[str, str]:
    token = jwt.encode(
        {"sub": sub, "aud": "authenticated", "exp": int(time.time()) + 300},
        secret,
        algorithm="HS256",
    )
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class TestHealth:
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["store"] == "ok"
        assert body["permission_count"] == len(DEFAULT_PERMISSIONS)
        assert "version" in body

    async def test_request_id_header(self, client):
        resp = await client.get("/health")
        assert len(resp.headers["X-Request-ID"]) == 8


# ---------------------------------------------------------------------------
# /me endpoints (dev auth mode)
# ---------------------------------------------------------------------------


class TestMyAccess:
    async def test_unassigned_dev_user_is_student(self, client):
        resp = await client.get("/me/access")
        assert resp.status_code == 200
        body = resp.json()
        assert body["user_id"] == "dev"
        assert body["status"] == "resolved"
        assert body["role"] == "student"
        assert body["school_id"] is None
        assert body["permissions"] == sorted(DEFAULT_GRANTS[Role.STUDENT])
        assert "todo" in body["views"]
        assert "attendance" not in body["views"]
        assert body["role_config"]["label"] == "Student"
        assert body["can_manage_users"] is False

    async def test_teacher(self, client, monkeypatch):
        as_user(monkeypatch, "teacher-1")
        body = (await client.get("/me/access")).json()
        assert body["role"] == "teacher"
        assert body["school_id"] == "school-a"
        assert "can_mark_attendance" in body["permissions"]
        assert "attendance" in body["views"]
        assert "role-management" not in body["views"]

    async def test_platform_admin(self, client, monkeypatch):
        as_user(monkeypatch, "root-1")
        body = (await client.get("/me/access")).json()
        assert body["role"] == "platform_admin"
        assert body["can_change_roles"] is True
        assert "feature-toggles" in body["views"]

    async def test_view_check(self, client, monkeypatch):
        as_user(monkeypatch, "student-1")
        resp = await client.get("/me/views/calendar")
        assert resp.json() == {
            "view": "calendar",
            "permission": "can_view_calendar",
            "allowed": True,
        }

    async def test_unknown_view_denied(self, client):
        resp = await client.get("/me/views/not-a-view")
        assert resp.status_code == 200
        assert resp.json() == {"view": "not-a-view", "permission": None, "allowed": False}

    async def test_permission_overview(self, client, monkeypatch):
        as_user(monkeypatch, "teacher-1")
        body = (await client.get("/me/permissions")).json()
        assert body["total"] == len(DEFAULT_PERMISSIONS)
        assert body["unlocked"] == len(DEFAULT_GRANTS[Role.TEACHER])
        labels = {p["name"]: p["label"] for p in body["permissions"]}
        assert labels["can_mark_attendance"] == "Mark Attendance"

    async def test_catalog(self, client):
        body = (await client.get("/permissions")).json()
        assert {p["name"] for p in body} == set(DEFAULT_PERMISSIONS)


# ---------------------------------------------------------------------------
# Bearer token auth
# ---------------------------------------------------------------------------


class TestTokenAuth:
    @pytest.fixture(autouse=True)
    def _enable_auth(self, client, monkeypatch):
        # Runs after the client fixture, which clears the secret.
        monkeypatch.setenv("SP_SUPABASE_JWT_SECRET", JWT_SECRET)

    async def test_missing_token_forbidden(self, client):
        resp = await client.get("/me/access")
        assert resp.status_code == 403

    async def test_invalid_token_unauthorized(self, client):
        resp = await client.get("/me/access", headers=bearer("teacher-1", "a-different-secret-that-is-long-enough"))
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid access token."

    async def test_valid_token_resolves_subject(self, client):
        resp = await client.get("/me/access", headers=bearer("admin-1"))
        assert resp.status_code == 200
        assert resp.json()["role"] == "school_admin"

    async def test_health_is_public(self, client):
        assert (await client.get("/health")).status_code == 200


# ---------------------------------------------------------------------------
# Admin routes
# ---------------------------------------------------------------------------


class TestAdminRoles:
    async def test_teacher_cannot_list(self, client, monkeypatch):
        as_user(monkeypatch, "teacher-1")
        resp = await client.get("/admin/roles")
        assert resp.status_code == 403
        assert resp.json()["detail"] == "You don't have permission to manage user roles."

    async def test_school_admin_lists_with_stats(self, client, monkeypatch):
        as_user(monkeypatch, "admin-1")
        body = (await client.get("/admin/roles")).json()
        assert {u["user_id"] for u in body["users"]} == {"student-1", "teacher-1", "admin-1"}
        assert body["stats"] == {
            "student": 1,
            "teacher": 1,
            "school_admin": 1,
            "platform_admin": 0,
        }

    async def test_school_admin_does_not_see_other_schools(self, client, seeded_db, monkeypatch):
        await seeded_db.upsert_role_assignment(
            UserRoleAssignment(user_id="teacher-b", role=Role.TEACHER, school_id="school-b")
        )

        as_user(monkeypatch, "admin-1")
        body = (await client.get("/admin/roles")).json()
        assert "teacher-b" not in {u["user_id"] for u in body["users"]}
        assert body["stats"]["teacher"] == 1
        assert (await client.get("/admin/roles", params={"q": "school-b"})).json()["users"] == []
        assert (await client.get("/admin/stats")).json()["teacher"] == 1

        as_user(monkeypatch, "root-1")
        body = (await client.get("/admin/roles")).json()
        assert "teacher-b" in {u["user_id"] for u in body["users"]}
        assert (await client.get("/admin/stats")).json()["teacher"] == 2

    async def test_search(self, client, monkeypatch):
        as_user(monkeypatch, "root-1")
        body = (await client.get("/admin/roles", params={"q": "student"})).json()
        assert [u["user_id"] for u in body["users"]] == ["student-1"]

    async def test_school_admin_cannot_change_roles(self, client, monkeypatch):
        as_user(monkeypatch, "admin-1")
        resp = await client.patch("/admin/roles/student-1", json={"role": "teacher"})
        assert resp.status_code == 403
        body = resp.json()
        assert body["error"] == "permission_denied"
        assert "request_id" in body

    async def test_platform_admin_changes_role(self, client, monkeypatch):
        as_user(monkeypatch, "root-1")
        resp = await client.patch("/admin/roles/student-1", json={"role": "teacher"})
        assert resp.status_code == 200
        assert resp.json()["role"] == "teacher"

        as_user(monkeypatch, "student-1")
        assert (await client.get("/me/access")).json()["role"] == "teacher"

    async def test_change_unknown_user(self, client, monkeypatch):
        as_user(monkeypatch, "root-1")
        resp = await client.patch("/admin/roles/ghost", json={"role": "teacher"})
        assert resp.status_code == 404
        assert resp.json()["error"] == "not_found"

    async def test_invalid_role_rejected(self, client, monkeypatch):
        as_user(monkeypatch, "root-1")
        resp = await client.patch("/admin/roles/student-1", json={"role": "janitor"})
        assert resp.status_code == 422


class TestAdminStatsAndGrants:
    async def test_stats_need_analytics_view(self, client, monkeypatch):
        as_user(monkeypatch, "teacher-1")
        assert (await client.get("/admin/stats")).status_code == 403

        as_user(monkeypatch, "admin-1")
        resp = await client.get("/admin/stats")
        assert resp.status_code == 200
        assert resp.json()["teacher"] == 1

    async def test_list_grants_requires_school_admin(self, client, monkeypatch):
        as_user(monkeypatch, "teacher-1")
        assert (await client.get("/admin/grants/teacher")).status_code == 403

        as_user(monkeypatch, "admin-1")
        resp = await client.get("/admin/grants/teacher")
        assert set(resp.json()) == DEFAULT_GRANTS[Role.TEACHER]

    async def test_grant_and_revoke(self, client, monkeypatch):
        as_user(monkeypatch, "root-1")
        resp = await client.put("/admin/grants/student/can_mark_attendance")
        assert resp.json() == {"role": "student", "permission": "can_mark_attendance", "changed": True}

        as_user(monkeypatch, "student-1")
        body = (await client.get("/me/access")).json()
        assert "can_mark_attendance" in body["permissions"]

        as_user(monkeypatch, "root-1")
        resp = await client.delete("/admin/grants/student/can_mark_attendance")
        assert resp.json()["changed"] is True

        as_user(monkeypatch, "student-1")
        body = (await client.get("/me/access")).json()
        assert "can_mark_attendance" not in body["permissions"]

    async def test_grant_requires_change_any_role(self, client, monkeypatch):
        as_user(monkeypatch, "admin-1")
        resp = await client.put("/admin/grants/student/can_mark_attendance")
        assert resp.status_code == 403
        assert resp.json()["detail"] == "Requires permission: can_change_any_role"

    async def test_grant_unknown_permission(self, client, monkeypatch):
        as_user(monkeypatch, "root-1")
        resp = await client.put("/admin/grants/student/can_fly")
        assert resp.status_code == 404

"""Tests for role lookup: assignment row, lookup function, student default."""

from __future__ import annotations

import pytest

from schoolplanner.access.role_store import RoleStore
from schoolplanner.auth_providers.base import Identity
from schoolplanner.core.models import RoleSource, UserRoleAssignment
from schoolplanner.exceptions import ResolutionError
from schoolplanner.rbac import Role


class TestResolveRole:
    async def test_assignment_row_wins(self, fake_store, identity):
        fake_store.function_roles["U1"] = "platform_admin"
        result = await RoleStore(fake_store).resolve_role(identity)

        assert result.role is Role.TEACHER
        assert result.school_id == "S1"
        assert result.source is RoleSource.ASSIGNMENT
        assert ("function", "U1") not in fake_store.calls

    async def test_falls_back_to_lookup_function(self, make_store):
        store = make_store(function_roles={"U2": "school_admin"})
        result = await RoleStore(store).resolve_role(Identity(user_id="U2"))

        assert result.role is Role.SCHOOL_ADMIN
        assert result.school_id is None
        assert result.source is RoleSource.FUNCTION

    async def test_missing_row_defaults_to_student(self, make_store):
        result = await RoleStore(make_store()).resolve_role(Identity(user_id="U9"))

        assert result.role is Role.STUDENT
        assert result.school_id is None
        assert result.source is RoleSource.DEFAULT

    async def test_empty_function_result_defaults_to_student(self, make_store):
        store = make_store(function_roles={"U9": ""})
        result = await RoleStore(store).resolve_role(Identity(user_id="U9"))
        assert result.source is RoleSource.DEFAULT

    async def test_assignment_failure_raises(self, fake_store, identity):
        fake_store.fail_assignment = True
        with pytest.raises(ResolutionError, match="Role lookup failed"):
            await RoleStore(fake_store).resolve_role(identity)

    async def test_function_failure_raises(self, make_store):
        store = make_store()
        store.fail_function = True
        with pytest.raises(ResolutionError, match="get_user_role"):
            await RoleStore(store).resolve_role(Identity(user_id="U9"))

    async def test_unknown_function_role_raises(self, make_store):
        store = make_store(function_roles={"U3": "superuser"})
        with pytest.raises(ResolutionError, match="Unknown role"):
            await RoleStore(store).resolve_role(Identity(user_id="U3"))

    async def test_platform_admin_without_school(self, make_store):
        store = make_store(
            assignments=[UserRoleAssignment(user_id="P1", role=Role.PLATFORM_ADMIN)]
        )
        result = await RoleStore(store).resolve_role(Identity(user_id="P1"))
        assert result.role is Role.PLATFORM_ADMIN
        assert result.school_id is None

    async def test_against_sqlite(self, seeded_db):
        result = await RoleStore(seeded_db).resolve_role(Identity(user_id="admin-1"))
        assert result.role is Role.SCHOOL_ADMIN
        assert result.school_id == "school-a"

        missing = await RoleStore(seeded_db).resolve_role(Identity(user_id="new-user"))
        assert missing.role is Role.STUDENT

"""Shared fixtures for school planner tests."""

from __future__ import annotations

import asyncio

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from schoolplanner.api.app import app
from schoolplanner.auth_providers.base import Identity
from schoolplanner.core.models import Permission, UserRoleAssignment
from schoolplanner.exceptions import StorageError
from schoolplanner.rbac import Role
from schoolplanner.storage.database import Database


class FakeStore:
    """In-memory reference store with switchable failures and per-user gates.

    A gate is an :class:`asyncio.Event` the role lookup for that user waits
    on, which lets tests hold one resolution in flight while another runs.
    """

    def __init__(
        self,
        assignments: list[UserRoleAssignment] | None = None,
        grants: dict[Role, list[str]] | None = None,
        function_roles: dict[str, str] | None = None,
    ) -> None:
        self.assignments = {a.user_id: a for a in assignments or []}
        self.grants = {Role(k): list(v) for k, v in (grants or {}).items()}
        self.function_roles = dict(function_roles or {})
        self.catalog: list[Permission] = []
        self.gates: dict[str, asyncio.Event] = {}
        self.fail_assignment = False
        self.fail_function = False
        self.fail_permissions = False
        self.calls: list[tuple[str, str]] = []

    async def connect(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def get_role_assignment(self, user_id):
        self.calls.append(("assignment", user_id))
        gate = self.gates.get(user_id)
        if gate is not None:
            await gate.wait()
        if self.fail_assignment:
            raise StorageError("store unreachable")
        return self.assignments.get(user_id)

    async def get_user_role(self, user_id):
        self.calls.append(("function", user_id))
        if self.fail_function:
            raise StorageError("rpc failed")
        return self.function_roles.get(user_id)

    async def get_role_permissions(self, role):
        self.calls.append(("permissions", str(role)))
        if self.fail_permissions:
            raise StorageError("permissions table unreachable")
        return sorted(self.grants.get(Role(role), []))

    async def list_permissions(self):
        return list(self.catalog)

    async def list_role_assignments(self):
        return sorted(self.assignments.values(), key=lambda a: (a.role.value, a.user_id))

    async def upsert_role_assignment(self, assignment):
        self.assignments[assignment.user_id] = assignment

    async def update_user_role(self, user_id, role):
        current = self.assignments.get(user_id)
        if current is None:
            return None
        updated = current.model_copy(update={"role": Role(role)})
        self.assignments[user_id] = updated
        return updated

    async def insert_permission(self, permission):
        self.catalog.append(permission)

    async def grant_permission(self, role, name):
        names = self.grants.setdefault(Role(role), [])
        if name in names:
            return False
        names.append(name)
        return True

    async def revoke_permission(self, role, name):
        names = self.grants.get(Role(role), [])
        if name not in names:
            return False
        names.remove(name)
        return True

    async def get_permission_count(self):
        return len(self.catalog)


@pytest.fixture
def fake_store():
    """Store with the U1 teacher scenario: teacher at S1 granted can_mark_attendance."""
    return FakeStore(
        assignments=[UserRoleAssignment(user_id="U1", role=Role.TEACHER, school_id="S1")],
        grants={Role.TEACHER: ["can_mark_attendance"]},
    )


@pytest.fixture
def make_store():
    return FakeStore


@pytest.fixture
def identity():
    return Identity(user_id="U1", email="u1@example.com", provider="test")


@pytest_asyncio.fixture
async def db(tmp_path):
    """Fresh SQLite database seeded with the default catalog."""
    database = Database(tmp_path / "test.db")
    await database.connect()
    await database.seed_reference_data()
    yield database
    await database.close()


@pytest_asyncio.fixture
async def seeded_db(db):
    """Database with one user per role."""
    for user_id, role, school in (
        ("student-1", Role.STUDENT, "school-a"),
        ("teacher-1", Role.TEACHER, "school-a"),
        ("admin-1", Role.SCHOOL_ADMIN, "school-a"),
        ("root-1", Role.PLATFORM_ADMIN, None),
    ):
        await db.upsert_role_assignment(
            UserRoleAssignment(user_id=user_id, role=role, school_id=school)
        )
    return db


@pytest_asyncio.fixture
async def client(seeded_db, monkeypatch):
    """HTTP test client in dev-auth mode wired to the seeded database."""
    monkeypatch.delenv("SP_SUPABASE_JWT_SECRET", raising=False)
    monkeypatch.delenv("SP_DEV_USER_ID", raising=False)
    previous = app.state.store
    app.state.store = seeded_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.state.store = previous

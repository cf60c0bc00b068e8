"""Repository protocol shared by the SQLite and Supabase backends."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from schoolplanner.core.models import Permission, UserRoleAssignment
from schoolplanner.rbac import Role


@runtime_checkable
class ReferenceStore(Protocol):
    """Read/write access to role assignments, permissions, and grants.

    The resolution pipeline only ever calls the read methods; the write
    methods back administrative role changes and seeding.
    """

    async def connect(self) -> None: ...

    async def close(self) -> None: ...

    async def get_role_assignment(self, user_id: str) -> UserRoleAssignment | None: ...

    async def get_user_role(self, user_id: str) -> str | None: ...

    async def get_role_permissions(self, role: Role) -> list[str]: ...

    async def list_permissions(self) -> list[Permission]: ...

    async def list_role_assignments(self) -> list[UserRoleAssignment]: ...

    async def upsert_role_assignment(self, assignment: UserRoleAssignment) -> None: ...

    async def update_user_role(self, user_id: str, role: Role) -> UserRoleAssignment | None: ...

    async def insert_permission(self, permission: Permission) -> None: ...

    async def grant_permission(self, role: Role, name: str) -> bool: ...

    async def revoke_permission(self, role: Role, name: str) -> bool: ...

    async def get_permission_count(self) -> int: ...

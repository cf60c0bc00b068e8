"""Async Supabase storage layer for planner roles and permissions.

Uses supabase-py for async access. Same repository interface as database.py.
Designed for production use -- selectable via SP_STORAGE=supabase env var.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from uuid import UUID, uuid4

from schoolplanner.core.models import Permission, UserRoleAssignment
from schoolplanner.exceptions import NotFoundError
from schoolplanner.rbac import Role


class SupabaseDatabase:
    """Async Supabase database wrapper with the same interface as Database."""

    def __init__(
        self,
        url: str | None = None,
        key: str | None = None,
    ) -> None:
        self.url = url or os.environ.get("SP_SUPABASE_URL", "")
        self.key = key or os.environ.get("SP_SUPABASE_KEY", "")
        self._client: object | None = None

    async def connect(self) -> None:
        from supabase import acreate_client

        self._client = await acreate_client(self.url, self.key)

    async def close(self) -> None:
        self._client = None

    @property
    def client(self):
        if self._client is None:
            raise RuntimeError("Supabase client not connected. Call connect() first.")
        return self._client

    # --- UserRoleAssignment ---

    async def get_role_assignment(self, user_id: str) -> UserRoleAssignment | None:
        response = await (
            self.client.table("user_roles").select("*").eq("user_id", user_id).limit(1).execute()
        )
        if not response.data:
            return None
        return self._row_to_assignment(response.data[0])

    async def get_user_role(self, user_id: str) -> str | None:
        """Call the ``get_user_role`` function, which bypasses table row-level security."""
        response = await self.client.rpc("get_user_role", {"_user_id": user_id}).execute()
        return response.data or None

    async def list_role_assignments(self) -> list[UserRoleAssignment]:
        response = await (
            self.client.table("user_roles").select("*").order("role").order("user_id").execute()
        )
        return [self._row_to_assignment(r) for r in response.data]

    async def upsert_role_assignment(self, assignment: UserRoleAssignment) -> None:
        await (
            self.client.table("user_roles")
            .upsert(
                {
                    "id": str(assignment.id),
                    "user_id": assignment.user_id,
                    "role": assignment.role.value,
                    "school_id": assignment.school_id,
                    "created_at": assignment.created_at.isoformat(),
                    "updated_at": assignment.updated_at.isoformat(),
                },
                on_conflict="user_id",
            )
            .execute()
        )

    async def update_user_role(self, user_id: str, role: Role) -> UserRoleAssignment | None:
        response = await (
            self.client.table("user_roles")
            .update({"role": Role(role).value, "updated_at": datetime.now(timezone.utc).isoformat()})
            .eq("user_id", user_id)
            .execute()
        )
        if not response.data:
            return None
        return self._row_to_assignment(response.data[0])

    def _row_to_assignment(self, row: dict) -> UserRoleAssignment:
        return UserRoleAssignment(
            id=UUID(row["id"]),
            user_id=row["user_id"],
            role=row["role"],
            school_id=row.get("school_id"),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    # --- Permission / RolePermissionGrant ---

    async def get_role_permissions(self, role: Role) -> list[str]:
        response = await (
            self.client.table("role_permissions")
            .select("permissions (name)")
            .eq("role", Role(role).value)
            .execute()
        )
        names: list[str] = []
        for row in response.data:
            joined = row.get("permissions") or {}
            name = joined.get("name")
            if name:
                names.append(name)
        return sorted(names)

    async def list_permissions(self) -> list[Permission]:
        response = await (
            self.client.table("permissions").select("id, name, description").order("name").execute()
        )
        return [
            Permission(id=UUID(r["id"]), name=r["name"], description=r.get("description"))
            for r in response.data
        ]

    async def insert_permission(self, permission: Permission) -> None:
        await (
            self.client.table("permissions")
            .upsert(
                {
                    "id": str(permission.id),
                    "name": permission.name,
                    "description": permission.description,
                },
                on_conflict="name",
            )
            .execute()
        )

    async def _permission_id(self, name: str) -> str:
        response = await (
            self.client.table("permissions").select("id").eq("name", name).limit(1).execute()
        )
        if not response.data:
            raise NotFoundError(f"Permission '{name}' not found")
        return response.data[0]["id"]

    async def grant_permission(self, role: Role, name: str) -> bool:
        permission_id = await self._permission_id(name)
        response = await (
            self.client.table("role_permissions")
            .upsert(
                {
                    "id": str(uuid4()),
                    "role": Role(role).value,
                    "permission_id": permission_id,
                },
                on_conflict="role,permission_id",
                ignore_duplicates=True,
            )
            .execute()
        )
        return bool(response.data)

    async def revoke_permission(self, role: Role, name: str) -> bool:
        permission_id = await self._permission_id(name)
        response = await (
            self.client.table("role_permissions")
            .delete()
            .eq("role", Role(role).value)
            .eq("permission_id", permission_id)
            .execute()
        )
        return bool(response.data)

    async def get_permission_count(self) -> int:
        response = await self.client.table("permissions").select("id", count="exact").execute()
        return response.count if response.count is not None else 0

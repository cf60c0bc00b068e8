"""Async SQLite storage layer for planner roles and permissions.

Uses aiosqlite for async access. Repository pattern for clean separation.
Designed for dev/testing; production reads the same tables from Supabase.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from uuid import UUID, uuid4

import aiosqlite

from schoolplanner.core.catalog import DEFAULT_GRANTS, DEFAULT_PERMISSIONS
from schoolplanner.core.models import Permission, UserRoleAssignment
from schoolplanner.exceptions import NotFoundError
from schoolplanner.rbac import Role

logger = logging.getLogger("schoolplanner.storage")

DEFAULT_DB_PATH = Path(os.environ.get("SP_DB_PATH", "schoolplanner.db"))

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS permissions (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL UNIQUE,
    description TEXT
);

CREATE TABLE IF NOT EXISTS role_permissions (
    id TEXT PRIMARY KEY,
    role TEXT NOT NULL,
    permission_id TEXT NOT NULL REFERENCES permissions (id) ON DELETE CASCADE,
    created_at TEXT NOT NULL,
    UNIQUE (role, permission_id)
);

CREATE TABLE IF NOT EXISTS user_roles (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL UNIQUE,
    role TEXT NOT NULL DEFAULT 'student',
    school_id TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_role_permissions_role
    ON role_permissions (role);

CREATE INDEX IF NOT EXISTS idx_user_roles_school
    ON user_roles (school_id);
"""


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Database:
    """Async SQLite database wrapper."""

    def __init__(self, db_path: Path | str = DEFAULT_DB_PATH) -> None:
        self.db_path = Path(db_path)
        self._db: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        self._db = await aiosqlite.connect(self.db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.execute("PRAGMA foreign_keys = ON")
        await self._db.executescript(SCHEMA_SQL)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._db

    # --- UserRoleAssignment ---

    async def get_role_assignment(self, user_id: str) -> UserRoleAssignment | None:
        cursor = await self.db.execute("SELECT * FROM user_roles WHERE user_id = ?", (user_id,))
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_assignment(row)

    async def get_user_role(self, user_id: str) -> str | None:
        """Mirror of the ``get_user_role`` database function."""
        cursor = await self.db.execute("SELECT role FROM user_roles WHERE user_id = ?", (user_id,))
        row = await cursor.fetchone()
        return row[0] if row else None

    async def list_role_assignments(self) -> list[UserRoleAssignment]:
        cursor = await self.db.execute("SELECT * FROM user_roles ORDER BY role, user_id")
        rows = await cursor.fetchall()
        return [self._row_to_assignment(r) for r in rows]

    async def upsert_role_assignment(self, assignment: UserRoleAssignment) -> None:
        await self.db.execute(
            """INSERT INTO user_roles (id, user_id, role, school_id, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?)
               ON CONFLICT (user_id) DO UPDATE SET
                   role = excluded.role,
                   school_id = excluded.school_id,
                   updated_at = excluded.updated_at""",
            (
                str(assignment.id),
                assignment.user_id,
                assignment.role.value,
                assignment.school_id,
                assignment.created_at.isoformat(),
                assignment.updated_at.isoformat(),
            ),
        )
        await self.db.commit()

    async def update_user_role(self, user_id: str, role: Role) -> UserRoleAssignment | None:
        cursor = await self.db.execute(
            "UPDATE user_roles SET role = ?, updated_at = ? WHERE user_id = ?",
            (role.value, _now_iso(), user_id),
        )
        await self.db.commit()
        if cursor.rowcount == 0:
            return None
        return await self.get_role_assignment(user_id)

    def _row_to_assignment(self, row: aiosqlite.Row) -> UserRoleAssignment:
        return UserRoleAssignment(
            id=UUID(row["id"]),
            user_id=row["user_id"],
            role=row["role"],
            school_id=row["school_id"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    # --- Permission / RolePermissionGrant ---

    async def get_role_permissions(self, role: Role) -> list[str]:
        cursor = await self.db.execute(
            """SELECT p.name FROM role_permissions rp
               JOIN permissions p ON p.id = rp.permission_id
               WHERE rp.role = ?
               ORDER BY p.name""",
            (Role(role).value,),
        )
        rows = await cursor.fetchall()
        return [r[0] for r in rows]

    async def list_permissions(self) -> list[Permission]:
        cursor = await self.db.execute("SELECT * FROM permissions ORDER BY name")
        rows = await cursor.fetchall()
        return [
            Permission(id=UUID(r["id"]), name=r["name"], description=r["description"])
            for r in rows
        ]

    async def insert_permission(self, permission: Permission) -> None:
        await self.db.execute(
            """INSERT INTO permissions (id, name, description) VALUES (?, ?, ?)
               ON CONFLICT (name) DO UPDATE SET description = excluded.description""",
            (str(permission.id), permission.name, permission.description),
        )
        await self.db.commit()

    async def _permission_id(self, name: str) -> str:
        cursor = await self.db.execute("SELECT id FROM permissions WHERE name = ?", (name,))
        row = await cursor.fetchone()
        if row is None:
            raise NotFoundError(f"Permission '{name}' not found")
        return row[0]

    async def grant_permission(self, role: Role, name: str) -> bool:
        """Grant *name* to *role*. Returns False when the grant already existed."""
        permission_id = await self._permission_id(name)
        cursor = await self.db.execute(
            """INSERT OR IGNORE INTO role_permissions (id, role, permission_id, created_at)
               VALUES (?, ?, ?, ?)""",
            (str(uuid4()), Role(role).value, permission_id, _now_iso()),
        )
        await self.db.commit()
        return cursor.rowcount == 1

    async def revoke_permission(self, role: Role, name: str) -> bool:
        permission_id = await self._permission_id(name)
        cursor = await self.db.execute(
            "DELETE FROM role_permissions WHERE role = ? AND permission_id = ?",
            (Role(role).value, permission_id),
        )
        await self.db.commit()
        return cursor.rowcount > 0

    async def get_permission_count(self) -> int:
        cursor = await self.db.execute("SELECT COUNT(*) FROM permissions")
        row = await cursor.fetchone()
        return row[0] if row else 0

    # --- Seeding ---

    async def seed_reference_data(
        self,
        permissions: dict[str, str] | None = None,
        grants: dict[Role, frozenset[str]] | None = None,
    ) -> int:
        """Insert the permission catalog and grant table. Returns new grant count."""
        permissions = DEFAULT_PERMISSIONS if permissions is None else permissions
        grants = DEFAULT_GRANTS if grants is None else grants

        for name, description in permissions.items():
            await self.insert_permission(Permission(name=name, description=description))

        added = 0
        for role, names in grants.items():
            for name in sorted(names):
                if await self.grant_permission(role, name):
                    added += 1
        logger.info(
            "Seeded %d permissions and %d new grants", len(permissions), added
        )
        return added

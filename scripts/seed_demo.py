#!/usr/bin/env python3
"""Seed a local school planner database with the permission catalog and demo users.

Usage:
    python scripts/seed_demo.py [db_path]

Demo users (user_id -> role, school):
    demo-student -> student, school-north
    demo-teacher -> teacher, school-north
    demo-admin   -> school_admin, school-north
    demo-root    -> platform_admin, no school
"""

import asyncio
import sys

from schoolplanner.core.models import UserRoleAssignment
from schoolplanner.rbac import Role
from schoolplanner.storage.database import Database

DEMO_USERS = [
    ("demo-student", Role.STUDENT, "school-north"),
    ("demo-teacher", Role.TEACHER, "school-north"),
    ("demo-admin", Role.SCHOOL_ADMIN, "school-north"),
    ("demo-root", Role.PLATFORM_ADMIN, None),
]


async def main(db_path: str) -> None:
    db = Database(db_path)
    await db.connect()
    try:
        added = await db.seed_reference_data()
        print(f"═══ Permission catalog: {await db.get_permission_count()} permissions, {added} new grants")

        for user_id, role, school_id in DEMO_USERS:
            await db.upsert_role_assignment(
                UserRoleAssignment(user_id=user_id, role=role, school_id=school_id)
            )
            granted = await db.get_role_permissions(role)
            print(f"  {user_id:<14} {role.value:<15} {school_id or '-':<13} {len(granted)} permissions")
    finally:
        await db.close()


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "schoolplanner.db"))

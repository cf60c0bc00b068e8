"""Role administration and permission overview.

Backs the role-management screen (list, search, count, change roles) and
the "my permissions" panel (every catalog permission with granted/locked
status).
"""

from __future__ import annotations

import logging
import re

from pydantic import BaseModel

from schoolplanner.access.decisions import AccessDecisions
from schoolplanner.core.models import ResolvedAccessState, UserRoleAssignment
from schoolplanner.exceptions import NotFoundError, PermissionDeniedError
from schoolplanner.rbac import ROLE_CONFIG, ROLE_HIERARCHY, Role
from schoolplanner.storage.base import ReferenceStore

logger = logging.getLogger("schoolplanner.access.administration")
_audit_logger = logging.getLogger("schoolplanner.audit")


def humanize_permission_name(name: str) -> str:
    """``can_mark_attendance`` -> ``Mark Attendance``."""
    label = re.sub(r"^can_", "", name).replace("_", " ")
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), label)


class PermissionStatus(BaseModel):
    name: str
    label: str
    description: str | None = None
    granted: bool


class PermissionOverview(BaseModel):
    permissions: list[PermissionStatus]
    unlocked: int
    total: int


class RoleAdministration:
    """Administrative operations over role assignments."""

    def __init__(self, store: ReferenceStore) -> None:
        self._store = store

    async def _visible_assignments(self, decisions: AccessDecisions) -> list[UserRoleAssignment]:
        """Assignments the caller may see.

        Callers who can change any role see every school.  Everyone else
        sees only assignments in their own school, and nothing without one.
        """
        assignments = await self._store.list_role_assignments()
        if decisions.can_change_roles():
            return assignments
        school_id = decisions.school_id
        if school_id is None:
            return []
        return [a for a in assignments if a.school_id == school_id]

    async def list_users(
        self, decisions: AccessDecisions, query: str | None = None
    ) -> list[UserRoleAssignment]:
        """Visible assignments, optionally filtered by a case-insensitive search term.

        The term matches the user id, the school id, or the role name.
        """
        assignments = await self._visible_assignments(decisions)
        if not query:
            return assignments
        needle = query.lower()
        return [
            a
            for a in assignments
            if needle in a.user_id.lower()
            or (a.school_id is not None and needle in a.school_id.lower())
            or needle in a.role.value
        ]

    async def role_stats(self, decisions: AccessDecisions) -> dict[Role, int]:
        assignments = await self._visible_assignments(decisions)
        stats = {role: 0 for role in ROLE_HIERARCHY}
        for a in assignments:
            stats[a.role] += 1
        return stats

    async def change_role(
        self,
        decisions: AccessDecisions,
        user_id: str,
        new_role: Role,
    ) -> UserRoleAssignment:
        """Change *user_id*'s role on behalf of the caller behind *decisions*.

        Raises:
            PermissionDeniedError: the caller may not change roles.
            NotFoundError: *user_id* has no role assignment.
        """
        actor = decisions.state.user_id or "unknown"
        if not decisions.can_change_roles():
            _audit_logger.warning(
                "Role change denied: %s -> %s by %s",
                user_id,
                new_role.value,
                actor,
                extra={
                    "event_category": "audit",
                    "action": "role_change_denied",
                    "user_id": actor,
                },
            )
            raise PermissionDeniedError("You don't have permission to change roles")

        updated = await self._store.update_user_role(user_id, new_role)
        if updated is None:
            raise NotFoundError(f"No role assignment for user {user_id}")

        _audit_logger.info(
            "Role changed: %s -> %s by %s",
            user_id,
            ROLE_CONFIG[new_role]["label"],
            actor,
            extra={
                "event_category": "audit",
                "action": "role_changed",
                "user_id": actor,
                "role": new_role.value,
            },
        )
        return updated

    async def permission_overview(self, state: ResolvedAccessState) -> PermissionOverview:
        catalog = await self._store.list_permissions()
        granted = state.permissions if state.is_resolved else frozenset()

        rows = [
            PermissionStatus(
                name=p.name,
                label=humanize_permission_name(p.name),
                description=p.description,
                granted=p.name in granted,
            )
            for p in catalog
        ]
        if not rows:
            # Catalog unavailable: report what the session holds.
            return PermissionOverview(permissions=[], unlocked=len(granted), total=len(granted))
        unlocked = sum(1 for r in rows if r.granted)
        return PermissionOverview(permissions=rows, unlocked=unlocked, total=len(rows))

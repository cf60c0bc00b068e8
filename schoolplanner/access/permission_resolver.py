"""Map a resolved role to its granted permission names."""

from __future__ import annotations

import logging

from schoolplanner.rbac import Role
from schoolplanner.storage.base import ReferenceStore

logger = logging.getLogger("schoolplanner.access.permission_resolver")


class PermissionResolver:
    """Fetch the grant set for exactly one role.

    No inheritance across ranks: a ``school_admin`` holds a ``teacher``
    capability only if a ``school_admin`` grant row exists for it.
    """

    def __init__(self, store: ReferenceStore) -> None:
        self._store = store

    async def resolve_permissions(self, role: Role) -> frozenset[str]:
        """Return the granted permission names, or an empty set if the lookup fails."""
        try:
            names = await self._store.get_role_permissions(role)
        except Exception:
            logger.warning(
                "Permission lookup failed for role %s; denying all permissions",
                role,
                exc_info=True,
                extra={"role": str(role)},
            )
            return frozenset()
        return frozenset(names)

"""Resolve the authenticated identity's role and school assignment."""

from __future__ import annotations

import logging

from schoolplanner.auth_providers.base import Identity
from schoolplanner.core.models import RoleResolution, RoleSource
from schoolplanner.exceptions import ResolutionError
from schoolplanner.rbac import DEFAULT_ROLE, parse_role
from schoolplanner.storage.base import ReferenceStore

logger = logging.getLogger("schoolplanner.access.role_store")


class RoleStore:
    """Read-only role lookup against the reference store.

    Lookup order:

    1. the ``user_roles`` row for the identity (role + school),
    2. the ``get_user_role`` function, which still answers when row-level
       security hides the row (role only, no school),
    3. :data:`~schoolplanner.rbac.DEFAULT_ROLE` with no school.

    A missing row is not an error.  A failing lookup is, and surfaces as
    :class:`ResolutionError` so the caller can fail closed instead of
    guessing a role.
    """

    def __init__(self, store: ReferenceStore) -> None:
        self._store = store

    async def resolve_role(self, identity: Identity) -> RoleResolution:
        user_id = identity.user_id

        try:
            assignment = await self._store.get_role_assignment(user_id)
        except Exception as exc:
            raise ResolutionError(f"Role lookup failed for user {user_id}: {exc}") from exc

        if assignment is not None:
            return RoleResolution(
                role=assignment.role,
                school_id=assignment.school_id,
                source=RoleSource.ASSIGNMENT,
            )

        try:
            raw_role = await self._store.get_user_role(user_id)
        except Exception as exc:
            raise ResolutionError(f"get_user_role failed for user {user_id}: {exc}") from exc

        if raw_role:
            role = parse_role(raw_role)
            if role is None:
                raise ResolutionError(f"Unknown role '{raw_role}' for user {user_id}")
            return RoleResolution(role=role, school_id=None, source=RoleSource.FUNCTION)

        logger.info(
            "No role assignment for user %s, defaulting to %s",
            user_id,
            DEFAULT_ROLE.value,
            extra={"user_id": user_id, "role": DEFAULT_ROLE.value},
        )
        return RoleResolution(role=DEFAULT_ROLE, school_id=None, source=RoleSource.DEFAULT)

"""Role resolution, access decisions, and gating."""

from schoolplanner.access.context import AccessContext
from schoolplanner.access.decisions import VIEW_PERMISSIONS, AccessDecisions
from schoolplanner.access.guard import PermissionGuard, permission_check, with_permission

__all__ = [
    "VIEW_PERMISSIONS",
    "AccessContext",
    "AccessDecisions",
    "PermissionGuard",
    "permission_check",
    "with_permission",
]

"""Boolean access checks over a resolved access snapshot.

Every check returns ``False`` unless the snapshot is ``resolved``, so a
consumer that asks while resolution is in flight, after it failed, or
after sign-out is always denied.  No check raises.

Views are gated through :data:`VIEW_PERMISSIONS`, a closed table: a view
that is not listed is denied.  Some views also accept alternate
permissions or specific roles; those exceptions are spelled out per view
in :data:`VIEW_POLICIES` rather than applied as a blanket rule.
"""

from __future__ import annotations

from dataclasses import dataclass

from schoolplanner.core.models import ResolvedAccessState, ResolutionStatus
from schoolplanner.rbac import ROLE_CONFIG, Role, meets_minimum, parse_role

#: View identifier -> permission required to open it.
VIEW_PERMISSIONS: dict[str, str] = {
    "dashboard": "can_view_dashboard",
    "timetable": "can_view_timetable",
    "calendar": "can_view_calendar",
    "todo": "can_view_todo",
    "pomodoro": "can_view_pomodoro",
    "groups": "can_view_groups",
    "resources": "can_view_resources",
    "transcribe": "can_view_transcribe",
    "role-management": "can_change_any_role",
    "schools-management": "can_manage_schools",
    "announcements": "can_view_announcements",
    "attendance": "can_mark_attendance",
    "analytics": "can_view_analytics",
    "feature-toggles": "can_toggle_features",
}


@dataclass(frozen=True)
class ViewPolicy:
    """Extra ways to pass a view gate besides its table permission.

    Attributes:
        any_of: alternate permissions, any of which opens the view.
        bypass_roles: roles that open the view without a grant.
        school_scoped_roles: roles that open the view only when the
            assignment carries a school.
        delegated: ``(role, permissions)`` pairs; the role opens the view
            when it holds any of the listed permissions.
    """

    any_of: tuple[str, ...] = ()
    bypass_roles: frozenset[Role] = frozenset()
    school_scoped_roles: frozenset[Role] = frozenset()
    delegated: tuple[tuple[Role, tuple[str, ...]], ...] = ()


_STAFF = frozenset({Role.TEACHER, Role.SCHOOL_ADMIN, Role.PLATFORM_ADMIN})
_ADMINS = frozenset({Role.SCHOOL_ADMIN, Role.PLATFORM_ADMIN})

VIEW_POLICIES: dict[str, ViewPolicy] = {
    "role-management": ViewPolicy(
        bypass_roles=frozenset({Role.PLATFORM_ADMIN}),
        delegated=((Role.SCHOOL_ADMIN, ("can_manage_students", "can_manage_teachers")),),
    ),
    "schools-management": ViewPolicy(
        bypass_roles=frozenset({Role.PLATFORM_ADMIN}),
        school_scoped_roles=frozenset({Role.SCHOOL_ADMIN}),
    ),
    "announcements": ViewPolicy(any_of=("can_post_announcements",), bypass_roles=_STAFF),
    "attendance": ViewPolicy(bypass_roles=_STAFF),
    "analytics": ViewPolicy(any_of=("can_view_platform_analytics",), bypass_roles=_ADMINS),
    "feature-toggles": ViewPolicy(
        any_of=("can_manage_features",),
        bypass_roles=frozenset({Role.PLATFORM_ADMIN}),
    ),
}


class AccessDecisions:
    """Read-only decision surface over one :class:`ResolvedAccessState`.

    ``platform_admin_override`` turns the top-rank bypass into a universal
    rule inside :meth:`has_permission`.  It is off unless a deployment
    enables ``SP_PLATFORM_ADMIN_OVERRIDE``.
    """

    def __init__(
        self, state: ResolvedAccessState, *, platform_admin_override: bool = False
    ) -> None:
        self._state = state
        self._override = platform_admin_override

    @property
    def state(self) -> ResolvedAccessState:
        return self._state

    @property
    def role(self) -> Role | None:
        return self._state.role if self._resolved else None

    @property
    def school_id(self) -> str | None:
        return self._state.school_id if self._resolved else None

    @property
    def permissions(self) -> frozenset[str]:
        return self._state.permissions if self._resolved else frozenset()

    @property
    def loading(self) -> bool:
        return self._state.is_loading

    @property
    def _resolved(self) -> bool:
        return self._state.status is ResolutionStatus.RESOLVED

    # -- core checks --

    def has_permission(self, name: str) -> bool:
        if not self._resolved:
            return False
        if self._override and self._state.role is Role.PLATFORM_ADMIN:
            return True
        return name in self._state.permissions

    def has_role(self, role: str | Role) -> bool:
        if not self._resolved:
            return False
        wanted = parse_role(role)
        return wanted is not None and self._state.role is wanted

    def has_minimum_role(self, role: str | Role) -> bool:
        if not self._resolved:
            return False
        return meets_minimum(self._state.role, role)

    def can_access_view(self, view: str) -> bool:
        if not self._resolved:
            return False
        permission = VIEW_PERMISSIONS.get(view)
        if permission is None:
            return False
        policy = VIEW_POLICIES.get(view)
        if policy is None:
            return self.has_permission(permission)
        return self._passes(permission, policy)

    def _passes(self, permission: str, policy: ViewPolicy) -> bool:
        if any(self.has_permission(p) for p in (permission, *policy.any_of)):
            return True
        role = self._state.role
        if role in policy.bypass_roles:
            return True
        if role in policy.school_scoped_roles and self._state.school_id:
            return True
        for delegate_role, permissions in policy.delegated:
            if role is delegate_role and any(self.has_permission(p) for p in permissions):
                return True
        return False

    def accessible_views(self) -> list[str]:
        return [view for view in VIEW_PERMISSIONS if self.can_access_view(view)]

    # -- call-site policies --

    def can_manage_users(self) -> bool:
        """Platform admins globally; school admins holding ``can_manage_students``."""
        if self.has_permission("can_change_any_role"):
            return True
        if self.has_role(Role.PLATFORM_ADMIN):
            return True
        return self.has_role(Role.SCHOOL_ADMIN) and self.has_permission("can_manage_students")

    def can_change_roles(self) -> bool:
        return self.has_permission("can_change_any_role") or self.has_role(Role.PLATFORM_ADMIN)

    def role_config(self) -> dict[str, str] | None:
        role = self.role
        if role is None:
            return None
        return dict(ROLE_CONFIG[role])

"""Role definitions for the school planner.

Defines the fixed role ranking used by minimum-role gates.  Rank never
implies a capability: permissions come only from explicit grant rows
(see :mod:`schoolplanner.access.permission_resolver`).

Roles (highest → lowest privilege):
    platform_admin - Platform-wide administration, no school scope
    school_admin   - Administers a single school
    teacher        - Classes, attendance, announcements
    student        - Default role for every provisioned user
"""

from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    """Enumerated planner roles."""

    STUDENT = "student"
    TEACHER = "teacher"
    SCHOOL_ADMIN = "school_admin"
    PLATFORM_ADMIN = "platform_admin"


#: Roles ordered from most to least privileged.
ROLE_HIERARCHY: list[Role] = [
    Role.PLATFORM_ADMIN,
    Role.SCHOOL_ADMIN,
    Role.TEACHER,
    Role.STUDENT,
]

#: Numeric rank per role, used for minimum-role checks.
ROLE_RANK: dict[Role, int] = {
    Role.STUDENT: 1,
    Role.TEACHER: 2,
    Role.SCHOOL_ADMIN: 3,
    Role.PLATFORM_ADMIN: 4,
}

#: Role assigned when a user has no assignment row.
DEFAULT_ROLE = Role.STUDENT

#: Display metadata for badges and role pickers.
ROLE_CONFIG: dict[Role, dict[str, str]] = {
    Role.STUDENT: {"label": "Student", "color": "text-blue-600", "bg_color": "bg-blue-100"},
    Role.TEACHER: {"label": "Teacher", "color": "text-green-600", "bg_color": "bg-green-100"},
    Role.SCHOOL_ADMIN: {
        "label": "School Admin",
        "color": "text-orange-600",
        "bg_color": "bg-orange-100",
    },
    Role.PLATFORM_ADMIN: {
        "label": "Platform Admin",
        "color": "text-purple-600",
        "bg_color": "bg-purple-100",
    },
}


def parse_role(value: str | Role | None) -> Role | None:
    """Return the :class:`Role` for *value*, or ``None`` if it is not a known role."""
    if value is None:
        return None
    try:
        return Role(value)
    except ValueError:
        return None


def role_rank(role: str | Role | None) -> int:
    """Return the rank of *role*; unknown or missing roles rank 0."""
    parsed = parse_role(role)
    if parsed is None:
        return 0
    return ROLE_RANK[parsed]


def meets_minimum(role: str | Role | None, minimum: str | Role) -> bool:
    """Check whether *role* ranks at or above *minimum*.

    Returns ``False`` when either side is missing or not a known role.
    """
    held = parse_role(role)
    required = parse_role(minimum)
    if held is None or required is None:
        return False
    return ROLE_RANK[held] >= ROLE_RANK[required]

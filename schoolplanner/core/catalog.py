"""Default permission catalog and grant table.

Seeds development databases with the capabilities the planner views
check.  Every role's grants are listed explicitly; building one set from
another below is only a convenience for writing the table, the stored
rows are independent per role.
"""

from __future__ import annotations

from schoolplanner.rbac import Role

DEFAULT_PERMISSIONS: dict[str, str] = {
    "can_view_dashboard": "Open the dashboard overview",
    "can_view_timetable": "View and edit the personal timetable",
    "can_view_calendar": "View the calendar and exam tracker",
    "can_view_todo": "Use the to-do list",
    "can_view_pomodoro": "Use the pomodoro timer",
    "can_view_groups": "Join and chat in study groups",
    "can_view_resources": "Browse the resource library",
    "can_view_transcribe": "Transcribe audio notes",
    "can_view_announcements": "Read school announcements",
    "can_post_announcements": "Post announcements to a school",
    "can_mark_attendance": "Mark attendance for classes",
    "can_manage_classes": "Create and edit classes",
    "can_manage_students": "Manage student accounts within a school",
    "can_manage_teachers": "Manage teacher accounts within a school",
    "can_view_analytics": "View school analytics",
    "can_view_platform_analytics": "View analytics across all schools",
    "can_manage_schools": "Create and edit schools",
    "can_change_any_role": "Change the role of any user",
    "can_toggle_features": "Enable or disable features",
    "can_manage_features": "Configure feature settings",
}

_STUDENT = frozenset(
    {
        "can_view_dashboard",
        "can_view_timetable",
        "can_view_calendar",
        "can_view_todo",
        "can_view_pomodoro",
        "can_view_groups",
        "can_view_resources",
        "can_view_transcribe",
        "can_view_announcements",
    }
)
_TEACHER = _STUDENT | {"can_post_announcements", "can_mark_attendance", "can_manage_classes"}
_SCHOOL_ADMIN = _TEACHER | {"can_manage_students", "can_manage_teachers", "can_view_analytics"}

DEFAULT_GRANTS: dict[Role, frozenset[str]] = {
    Role.STUDENT: _STUDENT,
    Role.TEACHER: frozenset(_TEACHER),
    Role.SCHOOL_ADMIN: frozenset(_SCHOOL_ADMIN),
    Role.PLATFORM_ADMIN: frozenset(DEFAULT_PERMISSIONS),
}

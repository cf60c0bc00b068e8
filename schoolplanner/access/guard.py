"""Gate content and actions behind access decisions.

:class:`PermissionGuard` decides how a gated element is presented;
:func:`with_permission` protects callables; :func:`permission_check`
gives the disabled/tooltip state for a single control.
"""

from __future__ import annotations

import functools
import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from schoolplanner.access.decisions import AccessDecisions
from schoolplanner.exceptions import PermissionDeniedError
from schoolplanner.rbac import Role

DEFAULT_DENIED_MESSAGE = "You don't have permission to do this"


class GuardOutcome(str, Enum):
    RENDER = "render"
    FALLBACK = "fallback"
    DISABLED = "disabled"
    HIDDEN = "hidden"


@dataclass
class GuardResult:
    outcome: GuardOutcome
    content: Any = None
    tooltip: str | None = None

    @property
    def allowed(self) -> bool:
        return self.outcome is GuardOutcome.RENDER


@dataclass
class PermissionGuard:
    """Wrap a unit of content with one access requirement.

    At most one of ``permission``, ``role`` and ``minimum_role`` is
    consulted, in that order of precedence.  With none set, content is
    allowed only once resolution has succeeded; a failed resolution denies.

    Denied content becomes ``fallback`` when it is truthy, otherwise a
    dimmed copy with ``tooltip_message`` when ``show_tooltip`` is set,
    otherwise nothing.  While resolution is loading the result is always
    ``HIDDEN``, never the fallback or the dimmed copy.
    """

    permission: str | None = None
    role: Role | str | None = None
    minimum_role: Role | str | None = None
    fallback: Any = None
    show_tooltip: bool = True
    tooltip_message: str = DEFAULT_DENIED_MESSAGE

    def is_allowed(self, decisions: AccessDecisions) -> bool:
        if self.permission:
            return decisions.has_permission(self.permission)
        if self.role:
            return decisions.has_role(self.role)
        if self.minimum_role:
            return decisions.has_minimum_role(self.minimum_role)
        return decisions.state.is_resolved

    def evaluate(self, decisions: AccessDecisions, children: Any = None) -> GuardResult:
        if decisions.loading:
            return GuardResult(GuardOutcome.HIDDEN)

        if self.is_allowed(decisions):
            return GuardResult(GuardOutcome.RENDER, children)

        if self.fallback:
            return GuardResult(GuardOutcome.FALLBACK, self.fallback)

        if self.show_tooltip:
            return GuardResult(GuardOutcome.DISABLED, children, self.tooltip_message)

        return GuardResult(GuardOutcome.HIDDEN)


def with_permission(decisions_source: Callable[[], AccessDecisions], permission: str):
    """Decorator factory: refuse to run the wrapped callable without *permission*.

    *decisions_source* is called at invocation time (typically
    ``context.decisions``) so the check sees the latest committed state.

    Usage::

        @with_permission(context.decisions, "can_mark_attendance")
        async def mark_present(student_id): ...
    """

    def decorator(func):
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                if not decisions_source().has_permission(permission):
                    raise PermissionDeniedError()
                return await func(*args, **kwargs)

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if not decisions_source().has_permission(permission):
                raise PermissionDeniedError()
            return func(*args, **kwargs)

        return wrapper

    return decorator


@dataclass
class PermissionCheck:
    is_allowed: bool
    loading: bool
    tooltip_message: str | None = None
    tooltip_props: dict[str, str] = field(default_factory=dict)

    @property
    def is_disabled(self) -> bool:
        return not self.is_allowed


def permission_check(decisions: AccessDecisions, permission: str) -> PermissionCheck:
    """Disabled state and tooltip for a control gated on *permission*."""
    allowed = decisions.has_permission(permission)
    if allowed:
        return PermissionCheck(is_allowed=True, loading=decisions.loading)
    return PermissionCheck(
        is_allowed=False,
        loading=decisions.loading,
        tooltip_message=DEFAULT_DENIED_MESSAGE,
        tooltip_props={
            "title": DEFAULT_DENIED_MESSAGE,
            "className": "opacity-50 cursor-not-allowed",
        },
    )

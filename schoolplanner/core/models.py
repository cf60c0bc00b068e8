"""Domain models for planner access control.

- UserRoleAssignment: the single role a user holds, optionally scoped to a school
- Permission: a named, independently grantable capability
- RolePermissionGrant: role ↔ permission link, the only source of capabilities
- RoleResolution: outcome of looking up a user's role
- ResolvedAccessState: session snapshot consumed by access decisions
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from schoolplanner.rbac import DEFAULT_ROLE, Role


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> UUID:
    return uuid4()


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ResolutionStatus(str, Enum):
    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    FAILED = "failed"


class RoleSource(str, Enum):
    """Where a resolved role came from."""

    ASSIGNMENT = "assignment"
    FUNCTION = "function"
    DEFAULT = "default"


# ---------------------------------------------------------------------------
# Persisted reference data
# ---------------------------------------------------------------------------


class UserRoleAssignment(BaseModel):
    """Links a user identity to one role and an optional school."""

    id: UUID = Field(default_factory=_new_id)
    user_id: str = Field(min_length=1)
    role: Role = DEFAULT_ROLE
    school_id: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_platform_scoped(self) -> bool:
        return self.school_id is None


class Permission(BaseModel):
    """Static reference data: a named capability."""

    id: UUID = Field(default_factory=_new_id)
    name: str = Field(min_length=1)
    description: str | None = None


class RolePermissionGrant(BaseModel):
    id: UUID = Field(default_factory=_new_id)
    role: Role
    permission_id: UUID
    created_at: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Derived, in-memory only
# ---------------------------------------------------------------------------


class RoleResolution(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    school_id: str | None = None
    source: RoleSource = RoleSource.ASSIGNMENT


class ResolvedAccessState(BaseModel):
    """Snapshot of the current session's role and permission set.

    ``permissions`` is always exactly the grant set for ``role`` as of the
    resolution that produced this snapshot.  Instances are immutable; the
    access context replaces the whole snapshot on every transition.
    """

    model_config = ConfigDict(frozen=True)

    status: ResolutionStatus = ResolutionStatus.UNRESOLVED
    user_id: str | None = None
    role: Role | None = None
    school_id: str | None = None
    permissions: frozenset[str] = Field(default_factory=frozenset)
    generation: int = 0
    resolved_at: datetime | None = None

    @classmethod
    def unresolved(cls, generation: int = 0) -> ResolvedAccessState:
        return cls(status=ResolutionStatus.UNRESOLVED, generation=generation)

    @classmethod
    def resolving(cls, user_id: str, generation: int) -> ResolvedAccessState:
        return cls(status=ResolutionStatus.RESOLVING, user_id=user_id, generation=generation)

    @classmethod
    def failed(cls, user_id: str, generation: int) -> ResolvedAccessState:
        return cls(status=ResolutionStatus.FAILED, user_id=user_id, generation=generation)

    @property
    def is_resolved(self) -> bool:
        return self.status is ResolutionStatus.RESOLVED

    @property
    def is_loading(self) -> bool:
        return self.status in (ResolutionStatus.UNRESOLVED, ResolutionStatus.RESOLVING)

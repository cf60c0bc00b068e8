"""Custom exception hierarchy for the school planner.

Provides structured error types that the centralized error handler
translates into consistent JSON responses.  Access decisions themselves
never raise; these types surface only from the resolution pipeline,
storage, and administrative operations.
"""

from __future__ import annotations


class PlannerError(Exception):
    """Base exception for all school planner errors."""

    status_code: int = 500
    error_type: str = "internal_error"

    def __init__(self, message: str = "An internal error occurred") -> None:
        self.message = message
        super().__init__(message)


class StorageError(PlannerError):
    """Database or storage layer failure."""

    status_code = 503
    error_type = "storage_error"


class NotFoundError(PlannerError):
    """Requested resource was not found."""

    status_code = 404
    error_type = "not_found"


class ResolutionError(PlannerError):
    """Role lookup failed (store unreachable, query failure, bad row)."""

    status_code = 503
    error_type = "resolution_error"


class PermissionDeniedError(PlannerError):
    """The current identity is not allowed to perform the action."""

    status_code = 403
    error_type = "permission_denied"

    def __init__(self, message: str = "You don't have permission to do this") -> None:
        super().__init__(message)

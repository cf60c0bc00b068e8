"""Session authentication and access dependencies for the planner API.

Authentication is controlled by ``SP_SUPABASE_JWT_SECRET``.  When it is
unset, auth is **disabled** (dev mode) and every request runs as
``SP_DEV_USER_ID``, whose role is still resolved from the store like any
other user.

Clients supply their Supabase access token via
``Authorization: Bearer <token>``.
"""

from __future__ import annotations

import logging
import os

from fastapi import Depends, HTTPException, Request, status

from schoolplanner.access.context import AccessContext
from schoolplanner.access.decisions import AccessDecisions
from schoolplanner.auth_providers.base import Identity
from schoolplanner.auth_providers.jwt_provider import SupabaseJWTProvider
from schoolplanner.config import settings
from schoolplanner.rbac import Role

# Paths that are always public, even when auth is enabled.
PUBLIC_PATHS: frozenset[str] = frozenset({"/health"})

_audit_logger = logging.getLogger("schoolplanner.audit")


def _extract_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip() or None
    return None


async def require_session(request: Request) -> None:
    """FastAPI dependency that establishes the caller's identity.

    The :class:`Identity` is attached to ``request.state.identity``.

    Raises:
        HTTPException 403: auth is enabled but no token was provided.
        HTTPException 401: a token was provided but it is not valid.
    """
    if request.url.path in PUBLIC_PATHS:
        return

    # Read config from os.environ so monkeypatch works in tests.
    secret = os.environ.get("SP_SUPABASE_JWT_SECRET", settings.supabase_jwt_secret)
    if not secret:
        request.state.identity = Identity(
            user_id=os.environ.get("SP_DEV_USER_ID", settings.dev_user_id), provider="dev"
        )
        return

    client_host = request.client.host if request.client else "unknown"
    token = _extract_token(request)
    if token is None:
        _audit_logger.warning(
            "Auth failure (no token): %s %s from %s",
            request.method,
            request.url.path,
            client_host,
            extra={
                "event_category": "audit",
                "action": "auth_failure",
                "reason": "no_token",
                "path": request.url.path,
            },
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access token required. Provide via Authorization: Bearer header.",
        )

    result = await SupabaseJWTProvider(secret).authenticate(token)
    if not result.authenticated:
        _audit_logger.warning(
            "Auth failure (invalid token): %s %s from %s",
            request.method,
            request.url.path,
            client_host,
            extra={
                "event_category": "audit",
                "action": "auth_failure",
                "reason": "invalid_token",
                "path": request.url.path,
                "error": result.error,
            },
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid access token.",
        )

    request.state.identity = result.identity


async def get_access(request: Request) -> AccessDecisions:
    """Resolve the request identity's access state (once per request)."""
    cached: AccessDecisions | None = getattr(request.state, "access", None)
    if cached is not None:
        return cached

    identity: Identity | None = getattr(request.state, "identity", None)
    context = AccessContext(request.app.state.store)
    await context.resolve(identity)
    decisions = context.decisions()
    request.state.access = decisions
    return decisions


def _forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def require_permission(name: str):
    """Dependency factory: require a granted permission.

    Usage::

        @router.post("/attendance", dependencies=[Depends(require_permission("can_mark_attendance"))])
        async def mark(): ...
    """

    async def _check(access: AccessDecisions = Depends(get_access)) -> AccessDecisions:
        if not access.has_permission(name):
            raise _forbidden(f"Requires permission: {name}")
        return access

    return _check


def require_minimum_role(role: Role | str):
    """Dependency factory: require a role at or above *role*."""

    async def _check(access: AccessDecisions = Depends(get_access)) -> AccessDecisions:
        if not access.has_minimum_role(role):
            raise _forbidden(f"Requires role {role} or higher")
        return access

    return _check


def require_view(view: str):
    """Dependency factory: require access to a named view."""

    async def _check(access: AccessDecisions = Depends(get_access)) -> AccessDecisions:
        if not access.can_access_view(view):
            raise _forbidden(f"Cannot access view: {view}")
        return access

    return _check

"""Session-lifetime cache of the resolved role and permission state.

:class:`AccessContext` owns the single :class:`ResolvedAccessState` for a
session and is the only writer of it.  Its lifecycle::

    Unresolved ──resolve(identity)──▶ Resolving ──▶ Resolved
         ▲                                 │
         └────────── sign_out() ◀──────────┴──────▶ Failed

Each resolution is tagged with a generation number.  A resolution that
finishes after a newer one was started is discarded, so the committed
state always belongs to the most recently requested identity.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone

from schoolplanner.access.decisions import AccessDecisions
from schoolplanner.access.permission_resolver import PermissionResolver
from schoolplanner.access.role_store import RoleStore
from schoolplanner.auth_providers.base import AuthEvent, Identity
from schoolplanner.auth_providers.session import SessionFeed
from schoolplanner.config import settings
from schoolplanner.core.models import ResolvedAccessState, ResolutionStatus
from schoolplanner.exceptions import ResolutionError
from schoolplanner.storage.base import ReferenceStore

logger = logging.getLogger("schoolplanner.access.context")

StateListener = Callable[[ResolvedAccessState], None]


class AccessContext:
    """Resolve, cache, and publish the access state for one session."""

    def __init__(
        self,
        store: ReferenceStore,
        *,
        timeout: float | None = None,
        platform_admin_override: bool | None = None,
    ) -> None:
        self._role_store = RoleStore(store)
        self._resolver = PermissionResolver(store)
        self._timeout = settings.resolution_timeout if timeout is None else timeout
        self._override = (
            settings.platform_admin_override
            if platform_admin_override is None
            else platform_admin_override
        )
        self._generation = 0
        self._identity: Identity | None = None
        self._state = ResolvedAccessState.unresolved()
        self._listeners: list[StateListener] = []

    # -- read side --

    @property
    def identity(self) -> Identity | None:
        return self._identity

    @property
    def loading(self) -> bool:
        return self._state.is_loading

    def snapshot(self) -> ResolvedAccessState:
        return self._state

    def decisions(self) -> AccessDecisions:
        return AccessDecisions(self._state, platform_admin_override=self._override)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call *listener* with every committed state; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # -- write side --

    def _commit(self, state: ResolvedAccessState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Access state listener failed")

    async def resolve(self, identity: Identity | None) -> ResolvedAccessState:
        """Resolve role and permissions for *identity* and commit the result.

        ``None`` clears the state back to ``unresolved``.  Returns the
        committed state, which is the current one if this resolution was
        superseded while in flight.
        """
        self._generation += 1
        generation = self._generation
        self._identity = identity

        if identity is None:
            self._commit(ResolvedAccessState.unresolved(generation))
            return self._state

        user_id = identity.user_id
        self._commit(ResolvedAccessState.resolving(user_id, generation))

        failure: str | None = None
        try:
            async with asyncio.timeout(self._timeout):
                resolution = await self._role_store.resolve_role(identity)
                permissions = await self._resolver.resolve_permissions(resolution.role)
        except ResolutionError as exc:
            failure = exc.message
        except TimeoutError:
            failure = f"resolution timed out after {self._timeout}s"

        if generation != self._generation:
            logger.debug(
                "Discarding stale access resolution for user %s",
                user_id,
                extra={"user_id": user_id, "generation": generation},
            )
            return self._state

        if failure is not None:
            logger.warning(
                "Access resolution failed for user %s: %s",
                user_id,
                failure,
                extra={"user_id": user_id, "generation": generation},
            )
            self._commit(ResolvedAccessState.failed(user_id, generation))
            return self._state

        self._commit(
            ResolvedAccessState(
                status=ResolutionStatus.RESOLVED,
                user_id=user_id,
                role=resolution.role,
                school_id=resolution.school_id,
                permissions=permissions,
                generation=generation,
                resolved_at=datetime.now(timezone.utc),
            )
        )
        logger.debug(
            "Resolved access for user %s: role=%s, %d permissions",
            user_id,
            resolution.role.value,
            len(permissions),
            extra={"user_id": user_id, "role": resolution.role.value, "generation": generation},
        )
        return self._state

    async def refresh(self) -> ResolvedAccessState:
        """Re-resolve the current identity (e.g. after an administrative role change)."""
        return await self.resolve(self._identity)

    async def sign_out(self) -> None:
        await self.resolve(None)

    async def handle_auth_event(self, event: AuthEvent, identity: Identity | None) -> None:
        """React to a session change notification.

        A token refresh for the identity already resolved (or resolving)
        keeps the current state; every other change re-resolves.
        """
        if event is AuthEvent.SIGNED_OUT or identity is None:
            await self.sign_out()
            return

        same_identity = self._identity is not None and self._identity.user_id == identity.user_id
        if (
            event is AuthEvent.TOKEN_REFRESHED
            and same_identity
            and self._state.status in (ResolutionStatus.RESOLVED, ResolutionStatus.RESOLVING)
        ):
            return

        await self.resolve(identity)

    async def attach(self, feed: SessionFeed) -> Callable[[], None]:
        """Follow *feed*: resolve its current identity now and on every change."""
        unsubscribe = feed.subscribe(self.handle_auth_event)
        await self.resolve(feed.identity)
        return unsubscribe

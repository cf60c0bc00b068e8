"""In-process session feed: the current identity plus change notifications."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from schoolplanner.auth_providers.base import AuthEvent, Identity

logger = logging.getLogger("schoolplanner.auth_providers.session")

SessionListener = Callable[[AuthEvent, Identity | None], Awaitable[None]]


class SessionFeed:
    """Fan-out of auth state changes to every subscribed listener.

    Holds a single current identity (or ``None`` when signed out).  Each
    :meth:`emit` updates the identity and then awaits every listener in
    subscription order.  A listener that raises is logged and skipped so
    the remaining listeners still see the change.
    """

    def __init__(self, identity: Identity | None = None) -> None:
        self._identity = identity
        self._listeners: list[SessionListener] = []

    @property
    def identity(self) -> Identity | None:
        return self._identity

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def emit(self, event: AuthEvent, identity: Identity | None) -> None:
        if event is AuthEvent.SIGNED_OUT:
            identity = None
        self._identity = identity
        for listener in list(self._listeners):
            try:
                await listener(event, identity)
            except Exception:
                logger.exception("Session listener failed for %s", event.value)

    async def sign_in(self, identity: Identity) -> None:
        await self.emit(AuthEvent.SIGNED_IN, identity)

    async def sign_out(self) -> None:
        await self.emit(AuthEvent.SIGNED_OUT, None)

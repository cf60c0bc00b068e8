"""Base identity types and the authentication provider protocol."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class Identity:
    """An authenticated user, as reported by the session provider."""

    user_id: str
    email: str | None = None
    provider: str = ""
    claims: dict = field(default_factory=dict, compare=False, hash=False)


@dataclass
class AuthResult:
    """Result of an authentication attempt."""

    authenticated: bool
    identity: Identity | None = None
    provider: str = ""
    error: str | None = None


class AuthEvent(str, Enum):
    """Session change notifications emitted by the identity provider."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


@runtime_checkable
class AuthProvider(Protocol):
    """Protocol that all auth providers must implement."""

    name: str

    async def authenticate(self, token: str) -> AuthResult:
        """Authenticate a token and return an AuthResult."""
        ...

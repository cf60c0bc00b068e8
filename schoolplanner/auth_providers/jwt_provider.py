"""Supabase access-token authentication."""

from __future__ import annotations

import logging

import jwt

from schoolplanner.auth_providers.base import AuthResult, Identity

logger = logging.getLogger("schoolplanner.auth_providers.jwt")


class SupabaseJWTProvider:
    """Authenticate via Supabase JWT access tokens (HS256)."""

    name = "supabase"

    def __init__(self, jwt_secret: str, audience: str = "authenticated") -> None:
        self._jwt_secret = jwt_secret
        self._audience = audience

    async def authenticate(self, token: str) -> AuthResult:
        try:
            payload = jwt.decode(
                token,
                self._jwt_secret,
                algorithms=["HS256"],
                audience=self._audience,
                options={"require": ["sub", "exp"]},
            )
        except jwt.PyJWTError as e:
            logger.debug("Supabase token rejected: %s", e)
            return AuthResult(
                authenticated=False,
                provider=self.name,
                error=f"JWT validation failed: {e}",
            )

        identity = Identity(
            user_id=payload["sub"],
            email=payload.get("email"),
            provider=self.name,
            claims=payload,
        )
        return AuthResult(authenticated=True, identity=identity, provider=self.name)

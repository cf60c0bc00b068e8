"""Centralized configuration for the school planner.

Uses Pydantic BaseSettings with environment variable loading and validation.
All SP_* environment variables are validated at import time.
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Storage
    storage: str = Field(default="sqlite", description="Storage backend: sqlite or supabase")
    db_path: str = Field(default="schoolplanner.db", description="SQLite database path")
    seed_reference_data: bool = Field(
        default=True, description="Seed the default permission catalog into SQLite on startup"
    )

    # Supabase
    supabase_url: str | None = Field(default=None, description="Supabase project URL")
    supabase_key: str | None = Field(default=None, description="Supabase anon or service key")

    # Auth
    supabase_jwt_secret: str | None = Field(
        default=None, description="Supabase JWT secret (unset = dev mode)"
    )
    dev_user_id: str = Field(default="dev", description="Identity used when auth is disabled")

    # Access resolution
    resolution_timeout: float = Field(
        default=5.0, gt=0, description="Seconds before a role/permission resolution fails"
    )
    platform_admin_override: bool = Field(
        default=False,
        description="Let platform_admin pass every permission check without a grant row",
    )

    # Logging
    log_format: str = Field(default="text", description="Log format: text or json")
    log_level: str = Field(default="INFO", description="Python log level")

    # Server
    host: str = Field(default="0.0.0.0", description="Server bind host")  # noqa: S104
    port: int = Field(default=8000, ge=1, le=65535, description="Server bind port")

    # CORS
    cors_origins: str = Field(default="*", description="Comma-separated CORS origins")

    model_config = {"env_prefix": "SP_", "case_sensitive": False, "extra": "ignore"}

    @field_validator("storage")
    @classmethod
    def validate_storage(cls, v: str) -> str:
        v = v.lower()
        if v not in ("sqlite", "supabase"):
            msg = f"SP_STORAGE must be 'sqlite' or 'supabase', got '{v}'"
            raise ValueError(msg)
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("text", "json"):
            msg = f"SP_LOG_FORMAT must be 'text' or 'json', got '{v}'"
            raise ValueError(msg)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        import logging

        v = v.upper()
        if not isinstance(getattr(logging, v, None), int):
            msg = f"SP_LOG_LEVEL must be a valid Python log level, got '{v}'"
            raise ValueError(msg)
        return v

    @property
    def cors_origin_list(self) -> list[str]:
        """Return parsed list of CORS origins."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


# Singleton, validated at import time.
settings = Settings()

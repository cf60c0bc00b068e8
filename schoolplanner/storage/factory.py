"""Factory for creating the reference store based on configuration."""

from __future__ import annotations

import os

from schoolplanner.config import settings
from schoolplanner.storage.base import ReferenceStore
from schoolplanner.storage.database import Database


def create_store(backend: str | None = None) -> ReferenceStore:
    """Create the appropriate store backend.

    Checks os.environ directly as well (for tests that set SP_STORAGE
    after the settings singleton is created).
    """
    name = (backend or os.environ.get("SP_STORAGE", settings.storage)).lower()
    if name == "supabase":
        from schoolplanner.storage.supabase_db import SupabaseDatabase

        return SupabaseDatabase(url=settings.supabase_url, key=settings.supabase_key)
    if name == "sqlite":
        return Database(os.environ.get("SP_DB_PATH", settings.db_path))

    msg = f"Unknown storage backend: {name}"
    raise ValueError(msg)

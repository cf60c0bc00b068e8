"""Tests for settings validation and store selection."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from schoolplanner.config import Settings
from schoolplanner.storage.database import Database
from schoolplanner.storage.factory import create_store
from schoolplanner.storage.supabase_db import SupabaseDatabase


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ("SP_STORAGE", "SP_RESOLUTION_TIMEOUT", "SP_PLATFORM_ADMIN_OVERRIDE"):
            monkeypatch.delenv(name, raising=False)
        s = Settings()
        assert s.storage == "sqlite"
        assert s.resolution_timeout == 5.0
        assert s.platform_admin_override is False
        assert s.dev_user_id == "dev"

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("SP_RESOLUTION_TIMEOUT", "2.5")
        monkeypatch.setenv("SP_PLATFORM_ADMIN_OVERRIDE", "true")
        s = Settings()
        assert s.resolution_timeout == 2.5
        assert s.platform_admin_override is True

    def test_storage_is_normalised(self, monkeypatch):
        monkeypatch.setenv("SP_STORAGE", "SUPABASE")
        assert Settings().storage == "supabase"

    @pytest.mark.parametrize(
        "name,value",
        [
            ("SP_STORAGE", "postgres"),
            ("SP_LOG_FORMAT", "xml"),
            ("SP_LOG_LEVEL", "LOUD"),
            ("SP_RESOLUTION_TIMEOUT", "0"),
            ("SP_PORT", "70000"),
        ],
    )
    def test_invalid_values_rejected(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ValidationError):
            Settings()

    def test_cors_origin_list(self, monkeypatch):
        monkeypatch.setenv("SP_CORS_ORIGINS", "https://a.test, https://b.test,")
        assert Settings().cors_origin_list == ["https://a.test", "https://b.test"]


class TestCreateStore:
    def test_sqlite_uses_db_path(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SP_DB_PATH", str(tmp_path / "x.db"))
        store = create_store("sqlite")
        assert isinstance(store, Database)

    def test_supabase(self):
        assert isinstance(create_store("supabase"), SupabaseDatabase)

    def test_reads_backend_from_env(self, monkeypatch):
        monkeypatch.setenv("SP_STORAGE", "supabase")
        assert isinstance(create_store(), SupabaseDatabase)

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown storage backend"):
            create_store("mongo")

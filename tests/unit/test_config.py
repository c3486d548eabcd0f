from __future__ import annotations

import pytest
from pydantic import ValidationError

from typeprobe import config
from typeprobe.config import Settings, validate_identifier
from typeprobe.infrastructure.db_factory import build_dsn


def test_get_settings_defaults():
    settings = config.get_settings()
    assert settings.db_driver == "sqlite"
    assert settings.sqlite_path == "typeprobe.db"
    assert settings.null_policy == "zero"
    assert settings.raw_binding == "unchecked"
    assert settings.raw_wrong_column == "fav"
    assert settings.addend == 99
    assert settings.failure_policy == "tolerant"


def test_get_settings_is_cached():
    assert config.get_settings() is config.get_settings()


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("NULL_POLICY", "propagate")
    monkeypatch.setenv("RAW_WRONG_COLUMN", "name")
    monkeypatch.setenv("PROBE_ADDEND", "1")
    settings = Settings()
    assert settings.null_policy == "propagate"
    assert settings.raw_wrong_column == "name"
    assert settings.addend == 1


def test_wrong_column_must_be_identifier():
    with pytest.raises(ValidationError):
        Settings(raw_wrong_column="fav); DROP TABLE simple; --")


def test_validate_identifier():
    assert validate_identifier("_age2") == "_age2"
    with pytest.raises(ValueError, match="not a valid column identifier"):
        validate_identifier("2age")


def test_unknown_policy_rejected():
    with pytest.raises(ValidationError):
        Settings(null_policy="guess")


class TestBuildDsn:
    def test_sqlite_default(self):
        assert build_dsn(Settings()) == "sqlite+aiosqlite:///typeprobe.db"

    def test_postgres_from_parts(self):
        settings = Settings(db_driver="postgresql", db_user="u", db_password="p", db_host="h", db_port=1, db_name="d")
        assert build_dsn(settings) == "postgresql+asyncpg://u:p@h:1/d"

    def test_explicit_url_wins(self):
        settings = Settings(db_driver="postgresql", database_url="sqlite+aiosqlite:///other.db")
        assert build_dsn(settings) == "sqlite+aiosqlite:///other.db"

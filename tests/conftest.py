"""
Pytest configuration for typeprobe.

Provides fixtures for:
- Settings isolation (env vars and the cached settings instance)
- A throwaway SQLite database with the schema initialized
- Optional PostgreSQL settings for integration tests
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import pytest

from typeprobe.config import Settings, get_settings
from typeprobe.infrastructure.db_factory import build_dsn, init_schema

_SETTINGS_ENV = (
    "DATABASE_URL",
    "DB_DRIVER",
    "SQLITE_PATH",
    "NULL_POLICY",
    "RAW_BINDING",
    "RAW_WRONG_COLUMN",
    "PROBE_ADDEND",
    "FAILURE_POLICY",
    "DB_ECHO",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """
    Drop probe-related env vars and the settings cache around each test.
    """
    for var in _SETTINGS_ENV:
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    """
    Async URL for a SQLite file that has no schema yet.
    """
    return f"sqlite+aiosqlite:///{tmp_path / 'probe.db'}"


@pytest.fixture
def schema_url(sqlite_url: str) -> str:
    """
    Async URL for a SQLite file with the `simple` table created and empty.
    """
    init_schema(sqlite_url)
    return sqlite_url


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    PostgreSQL settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_driver="postgresql",
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "typeprobe"),
        log_level="DEBUG",
    )


@pytest.fixture
def postgres_url(test_settings: Settings) -> str:
    """
    Async URL for PostgreSQL with a freshly recreated schema.

    Skips unless RUN_INTEGRATION_TESTS=1.
    """
    if os.getenv("RUN_INTEGRATION_TESTS", "0") != "1":
        pytest.skip("PostgreSQL tests require RUN_INTEGRATION_TESTS=1 and a reachable server")
    url = build_dsn(test_settings)
    init_schema(url, drop_existing=True)
    return url

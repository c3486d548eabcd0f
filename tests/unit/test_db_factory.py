from __future__ import annotations

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from typeprobe.infrastructure.db_factory import (
    database_scope,
    init_schema,
    mask_password,
    to_sync_url,
)


@pytest.mark.parametrize(
    "url,expected",
    [
        ("sqlite+aiosqlite:///typeprobe.db", "sqlite:///typeprobe.db"),
        ("postgresql+asyncpg://u:secret@h:5432/d", "postgresql+psycopg://u:secret@h:5432/d"),
        ("sqlite:///already-sync.db", "sqlite:///already-sync.db"),
    ],
)
def test_to_sync_url(url, expected):
    assert to_sync_url(url) == expected


def test_mask_password_hides_secret():
    masked = mask_password("postgresql+asyncpg://u:secret@h:5432/d")
    assert "secret" not in masked
    assert masked == "postgresql+asyncpg://u:***@h:5432/d"


def test_init_schema_is_idempotent(sqlite_url):
    assert init_schema(sqlite_url) == ["simple"]
    assert init_schema(sqlite_url) == ["simple"]


@pytest.fixture
def dispose_calls(monkeypatch):
    calls = []
    original = AsyncEngine.dispose

    async def spy(self, close=True):
        calls.append(self)
        await original(self, close)

    monkeypatch.setattr(AsyncEngine, "dispose", spy)
    return calls


@pytest.mark.asyncio
async def test_database_scope_yields_working_sessions(schema_url, dispose_calls):
    async with database_scope(schema_url) as sessions:
        async with sessions() as session:
            assert (await session.execute(text("SELECT count(*) FROM simple"))).scalar_one() == 0
    assert len(dispose_calls) == 1


@pytest.mark.asyncio
async def test_database_scope_disposes_engine_on_error(schema_url, dispose_calls):
    with pytest.raises(RuntimeError, match="boom"):
        async with database_scope(schema_url):
            raise RuntimeError("boom")
    assert len(dispose_calls) == 1

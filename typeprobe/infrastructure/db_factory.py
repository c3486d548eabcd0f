"""
Database engine factory utilities for typeprobe.

Provides scoped acquisition of an async SQLAlchemy engine and session factory.
The engine is disposed (and the dispose awaited) on every exit path, so a
process exiting right after a run never leaves a disconnect in flight.

Includes retry logic for transient connection failures using tenacity.
"""

from __future__ import annotations

from contextlib import asynccontextmanager, contextmanager
from typing import AsyncIterator, Iterator, List, Optional

from sqlalchemy import Engine, create_engine, inspect, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from typeprobe.config import Settings, get_settings
from typeprobe.domain.models import Base
from typeprobe.utils.logging import get_logger

log = get_logger(__name__)

# async driver -> sync driver used for schema setup
_SYNC_DRIVERS = {
    "sqlite+aiosqlite": "sqlite",
    "postgresql+asyncpg": "postgresql+psycopg",
}


def build_dsn(settings: Optional[Settings] = None) -> str:
    """
    Compose the async database URL from settings.

    An explicit DATABASE_URL wins; otherwise the URL is derived from DB_DRIVER.
    """
    settings = settings or get_settings()
    if settings.database_url:
        return settings.database_url
    if settings.db_driver == "postgresql":
        return (
            f"postgresql+asyncpg://{settings.db_user}:{settings.db_password}"
            f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
        )
    return f"sqlite+aiosqlite:///{settings.sqlite_path}"


def to_sync_url(url: str) -> str:
    """Swap an async driver for its sync counterpart (aiosqlite -> sqlite, asyncpg -> psycopg)."""
    parsed = make_url(url)
    drivername = _SYNC_DRIVERS.get(parsed.drivername, parsed.drivername)
    return parsed.set(drivername=drivername).render_as_string(hide_password=False)


def mask_password(url: str) -> str:
    """Return *url* with the password replaced by ``***``."""
    return make_url(url).render_as_string(hide_password=True)


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((OperationalError, InterfaceError, OSError)),
    reraise=True,
)
async def verify_connection(engine: AsyncEngine) -> None:
    """
    Open one connection and run ``SELECT 1``.

    Retries up to 3 times with exponential backoff for transient connection errors.
    """
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


@asynccontextmanager
async def database_scope(
    url: Optional[str] = None, echo: Optional[bool] = None
) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """
    Acquire an engine for the duration of a block and yield a session factory.

    Example
    -------
        async with database_scope() as sessions:
            async with sessions() as session:
                await session.execute(text("SELECT 1"))
    """
    settings = get_settings()
    dsn = url or build_dsn(settings)
    engine = create_async_engine(dsn, echo=settings.db_echo if echo is None else echo)
    log.debug("Engine created", extra={"url": mask_password(dsn)})
    try:
        await verify_connection(engine)
        yield async_sessionmaker(engine, expire_on_commit=False)
    finally:
        await engine.dispose()
        log.debug("Engine disposed", extra={"url": mask_password(dsn)})


@contextmanager
def sync_engine_scope(url: Optional[str] = None) -> Iterator[Engine]:
    """Sync engine for schema setup, disposed on exit."""
    dsn = to_sync_url(url or build_dsn())
    engine = create_engine(dsn)
    try:
        yield engine
    finally:
        engine.dispose()


def init_schema(url: Optional[str] = None, drop_existing: bool = False) -> List[str]:
    """
    Create the probe tables (idempotent) and return the table names present.

    Parameters
    ----------
    url : str | None
        Database URL (async or sync form). Defaults to settings.
    drop_existing : bool
        Drop the probe tables first. **Destroys all data.**
    """
    with sync_engine_scope(url) as engine:
        if drop_existing:
            log.warning("Dropping probe tables", extra={"url": mask_password(str(engine.url))})
            Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)
        tables = sorted(inspect(engine).get_table_names())
    log.info("Schema ready", extra={"tables": tables})
    return tables


__all__ = [
    "build_dsn",
    "database_scope",
    "init_schema",
    "mask_password",
    "sync_engine_scope",
    "to_sync_url",
    "verify_connection",
]

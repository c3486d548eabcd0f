"""
Seeder: replace the contents of `simple` with a fixed, ordered set of rows.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from typeprobe.domain.models import SEED_DATA, SeedRecord, Simple
from typeprobe.utils.logging import get_logger

log = get_logger(__name__)


async def seed(
    sessions: async_sessionmaker[AsyncSession],
    records: Iterable[SeedRecord] = SEED_DATA,
) -> int:
    """
    Delete every row, then insert `records` one at a time in order.

    Any delete or insert failure rolls the transaction back and propagates;
    the caller decides whether to continue.

    Returns
    -------
    int
        Number of rows inserted.
    """
    inserted = 0
    async with sessions() as session:
        async with session.begin():
            result = await session.execute(delete(Simple))
            log.debug("Cleared table", extra={"table": Simple.__tablename__, "deleted": result.rowcount})
            for record in records:
                session.add(Simple(**record.model_dump()))
                await session.flush()
                inserted += 1
    log.info("Seeded table", extra={"table": Simple.__tablename__, "rows": inserted})
    return inserted


__all__ = ["seed"]

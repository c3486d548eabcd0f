"""
Aggregate runner: ORM `sum(age)` over the nullable column.

The sum is declared ``Optional[int]``: an empty table or an all-null column
sums to None, not 0. The runner never adds to the raw value; it coerces first
according to the configured null policy and then adds the constant.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from typeprobe.config import NullPolicy, get_settings
from typeprobe.domain.models import AggregateResult, Simple
from typeprobe.domain.values import coerce_number, tag_value, type_tag
from typeprobe.runners.abstract import AbstractQueryRunner, RunnerResult
from typeprobe.utils.logging import get_logger

log = get_logger(__name__)


class AggregateQueryRunner(AbstractQueryRunner):
    """
    Sum `Simple.age` through the ORM query builder and coerce the result.
    """

    name: str = "orm"
    description: str = "ORM sum() over a nullable integer column, coerced before arithmetic."

    def __init__(self, null_policy: Optional[NullPolicy] = None, addend: Optional[int] = None) -> None:
        settings = get_settings()
        self.null_policy = null_policy or settings.null_policy
        if self.null_policy not in ("zero", "propagate"):
            raise ValueError(f"Unknown null policy '{self.null_policy}'. Available: zero, propagate")
        self.addend = settings.addend if addend is None else addend

    async def query(self, sessions: async_sessionmaker[AsyncSession]) -> AggregateResult:
        """Run ``SELECT sum(age) FROM simple`` and wrap it as ``{"_sum": {"age": ...}}``."""
        async with sessions() as session:
            total = await session.scalar(select(func.sum(Simple.age)))
        return AggregateResult.model_validate({"_sum": {"age": total}})

    async def run(self, sessions: async_sessionmaker[AsyncSession]) -> RunnerResult:
        result = await self.query(sessions)
        age = result.sum_.age

        coerced = coerce_number(age, self.null_policy)
        good_value = None if coerced is None else coerced + self.addend
        log.info(
            "Aggregate computed",
            extra={
                "runner": self.name,
                "sum": age,
                "null_policy": self.null_policy,
                "good_value": good_value,
            },
        )

        report = "\n".join(
            [
                "results of ORM queries--------",
                f"result: {result.to_json()}",
                f"result._sum.age: {age} (type: {type_tag(age)})",
                f"goodValue: {good_value} (type: {type_tag(good_value)})",
            ]
        )
        return RunnerResult(
            report=report,
            values={
                "result._sum.age": tag_value(age).as_dict(),
                "coerced": tag_value(coerced).as_dict(),
                "goodValue": tag_value(good_value).as_dict(),
            },
            mismatches=[],
        )


__all__ = ["AggregateQueryRunner"]

"""
Raw runner: literal SQL bound to caller-declared row shapes.

Three statements, each first row bound to a declared shape:

- rawInt: ``coalesce(SUM(age), "")`` declared int. Empty/all-null tables
  fall through to the empty-string default.
- rawStr: ``SELECT "4"`` declared str. The declared field name carries no type.
- badInt: ``coalesce(SUM(<wrong column>), "bad")`` declared int, followed by
  ``badInt + addend``.

Statements are written for SQLite, where an unresolvable double-quoted
identifier falls back to a string literal. Other engines may reject them
outright; a rejected statement fails the whole runner.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from typeprobe.config import BindingMode, get_settings, validate_identifier
from typeprobe.domain.binding import ColumnMismatch, bind_checked, bind_unchecked, declared_kind
from typeprobe.domain.models import QueryIntResult, QueryStrResult
from typeprobe.domain.values import Derived, attempt_add, tag_value, type_tag
from typeprobe.runners.abstract import AbstractQueryRunner, RunnerResult
from typeprobe.utils.logging import get_logger

log = get_logger(__name__)

RAW_INT_SQL = 'SELECT coalesce(SUM(age),"") as mySum FROM simple;'
RAW_STR_SQL = 'SELECT "4" as mySum;'
BAD_INT_SQL = 'SELECT coalesce(SUM({column}),"bad") as mySum FROM simple;'


@dataclass(frozen=True)
class RawProbe:
    label: str
    sql: str
    shape: Type[BaseModel]


@dataclass
class ProbeResult:
    probe: RawProbe
    rows: List[Dict[str, Any]]
    bound: Optional[BaseModel]
    mismatches: List[ColumnMismatch]

    @property
    def value(self) -> Any:
        if self.bound is not None:
            return getattr(self.bound, "my_sum", None)
        # checked mode rejected the row; report what the engine sent
        return next(iter(self.rows[0].values()), None) if self.rows else None


class RawQueryRunner(AbstractQueryRunner):
    """
    Execute raw SQL and bind rows to declared shapes, checked or unchecked.
    """

    name: str = "raw"
    description: str = "Raw SQL whose declared row types disagree with the engine's values."

    def __init__(
        self,
        binding: Optional[BindingMode] = None,
        wrong_column: Optional[str] = None,
        addend: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self.binding = binding or settings.raw_binding
        if self.binding not in ("unchecked", "checked"):
            raise ValueError(f"Unknown binding mode '{self.binding}'. Available: unchecked, checked")
        self.wrong_column = validate_identifier(wrong_column or settings.raw_wrong_column)
        self.addend = settings.addend if addend is None else addend

    def probes(self) -> List[RawProbe]:
        return [
            RawProbe("rawInt", RAW_INT_SQL, QueryIntResult),
            RawProbe("rawStr", RAW_STR_SQL, QueryStrResult),
            RawProbe("badInt", BAD_INT_SQL.format(column=self.wrong_column), QueryIntResult),
        ]

    def _bind(self, probe: RawProbe, rows: List[Dict[str, Any]]) -> ProbeResult:
        if not rows:
            return ProbeResult(probe=probe, rows=rows, bound=None, mismatches=[])
        if self.binding == "checked":
            instances, mismatches = bind_checked(probe.shape, rows[:1])
            return ProbeResult(probe=probe, rows=rows, bound=instances[0], mismatches=mismatches)
        return ProbeResult(
            probe=probe, rows=rows, bound=bind_unchecked(probe.shape, rows[:1])[0], mismatches=[]
        )

    async def execute_probes(self, sessions: async_sessionmaker[AsyncSession]) -> List[ProbeResult]:
        """Run every statement in order; the first engine error propagates."""
        results: List[ProbeResult] = []
        async with sessions() as session:
            for probe in self.probes():
                log.debug("Raw statement", extra={"runner": self.name, "probe": probe.label, "sql": probe.sql})
                result = await session.execute(text(probe.sql))
                rows = [dict(row) for row in result.mappings().all()]
                results.append(self._bind(probe, rows))
        return results

    def _derive(self, bad: ProbeResult) -> Derived:
        if bad.mismatches:
            mismatch = bad.mismatches[0]
            return Derived(
                error=f"skipped: declared {mismatch.declared.value}, got {mismatch.actual.value}"
            )
        return attempt_add(bad.value, self.addend)

    async def run(self, sessions: async_sessionmaker[AsyncSession]) -> RunnerResult:
        raw_int, raw_str, bad_int = await self.execute_probes(sessions)
        bad_value = self._derive(bad_int)
        mismatches = [m for probe in (raw_int, raw_str, bad_int) for m in probe.mismatches]

        declared, _ = declared_kind(QueryIntResult, "my_sum")
        log.info(
            "Raw queries completed",
            extra={
                "runner": self.name,
                "binding": self.binding,
                "bad_value": bad_value.value,
                "bad_value_error": bad_value.error,
                "mismatches": len(mismatches),
            },
        )

        lines = [
            "results of RAW queries--------",
            f"rawInt: {raw_int.value} (type: {type_tag(raw_int.value)})",
            f"rawStr: {raw_str.value} (type: {type_tag(raw_str.value)})",
            f"badInt: {bad_int.value} (type: {type_tag(bad_int.value)})",
            "badValue:",
        ]
        if bad_value.failed:
            lines.append(f"  (typed int, but {bad_value.error})")
        else:
            lines.append(f"  (typed int, but has type {type_tag(bad_value.value)})")
        lines.append(f"  value: {bad_value.value}")
        if self.binding == "checked":
            lines.append("mismatches:")
            lines.extend(f"  {m.describe()}" for m in mismatches)
            if not mismatches:
                lines.append("  none")
        lines.append("------------------------------")

        values = {
            probe.probe.label: tag_value(probe.value).as_dict()
            for probe in (raw_int, raw_str, bad_int)
        }
        values["badValue"] = dict(tag_value(bad_value.value).as_dict(), error=bad_value.error)
        values["badValue"]["declared"] = declared.value

        return RunnerResult(
            report="\n".join(lines),
            values=values,
            mismatches=[m.as_dict() for m in mismatches],
        )


__all__ = [
    "BAD_INT_SQL",
    "ProbeResult",
    "RAW_INT_SQL",
    "RAW_STR_SQL",
    "RawProbe",
    "RawQueryRunner",
]

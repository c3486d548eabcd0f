"""
Abstract runner interfaces and result contracts for typeprobe.

Concrete runners (aggregate, raw) implement the QueryRunner protocol and return
a RunnerResult TypedDict; the orchestrator wraps it into a RunOutcome that also
records the seed phase and any failure.
"""

from __future__ import annotations

import abc
from typing import Any, Dict, List, Literal, Optional, Protocol, TypedDict, runtime_checkable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

OutcomeStatus = Literal["ok", "seed_failed", "query_failed"]
SeedStatus = Literal["ok", "failed", "skipped"]


class RunnerResult(TypedDict):
    """
    What a runner's query phase produces.

    `values` maps a report label to a tagged value dict
    (``{"value": ..., "kind": ..., "type": ...}``).
    """

    report: str
    values: Dict[str, Dict[str, Any]]
    mismatches: List[Dict[str, Any]]


class RunOutcome(TypedDict, total=False):
    """
    Result of one seed+query run.

    A failed query leaves `report` as None and fills `error`/`error_type`; a
    failed seed fills `seed_error` while the query phase still runs.
    """

    runner: str
    status: OutcomeStatus
    seed_status: SeedStatus
    seeded_rows: Optional[int]
    seed_error: Optional[str]
    report: Optional[str]
    values: Dict[str, Dict[str, Any]]
    mismatches: List[Dict[str, Any]]
    error: Optional[str]
    error_type: Optional[str]
    duration_seconds: float


@runtime_checkable
class QueryRunner(Protocol):
    """
    Common interface all query runners must implement.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier.
    description : str
        A human-friendly summary of what the runner demonstrates.
    """

    name: str
    description: str

    async def run(self, sessions: async_sessionmaker[AsyncSession]) -> RunnerResult:
        """
        Execute the runner's queries and build its report.

        Parameters
        ----------
        sessions : async_sessionmaker
            Session factory bound to an engine owned by the caller.

        Returns
        -------
        RunnerResult
            Report text, tagged values, and any binding mismatches.
        """
        ...


class AbstractQueryRunner(abc.ABC):
    """
    Optional ABC helper for class-based implementations.

    Subclasses should set `name` and `description` and implement `run`.
    """

    name: str
    description: str

    @abc.abstractmethod
    async def run(
        self, sessions: async_sessionmaker[AsyncSession]
    ) -> RunnerResult:  # pragma: no cover - interface only
        """Run the queries and return the result."""
        raise NotImplementedError


__all__ = [
    "AbstractQueryRunner",
    "OutcomeStatus",
    "QueryRunner",
    "RunOutcome",
    "RunnerResult",
    "SeedStatus",
]

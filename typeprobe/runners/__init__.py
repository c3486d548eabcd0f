"""
Runners package for typeprobe.

This module re-exports the abstract interfaces and the concrete runner classes
so downstream code can import from `typeprobe.runners` directly.
"""

from typeprobe.runners.abstract import (
    AbstractQueryRunner,
    QueryRunner,
    RunnerResult,
    RunOutcome,
)
from typeprobe.runners.aggregate import AggregateQueryRunner
from typeprobe.runners.raw import RawQueryRunner

__all__ = [
    # Abstracts
    "AbstractQueryRunner",
    "QueryRunner",
    "RunOutcome",
    "RunnerResult",
    # Concrete runners
    "AggregateQueryRunner",
    "RawQueryRunner",
]

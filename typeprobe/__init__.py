"""
typeprobe - where an ORM's static result types and runtime values part ways.

This package seeds a two-row table and runs:

- An ORM aggregate (sum over a nullable integer column) whose result is
  declared Optional and must be coerced before arithmetic
- Raw SQL statements bound to caller-declared row shapes that the database
  never checks

Each run reports values alongside their runtime types, so the cases where the
declaration lies (a "non-null integer" that is a string, a float, or None)
are visible instead of silent.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from typeprobe.config import Settings, get_settings
from typeprobe.orchestrator import RunConfig, available_runners, run_runners, run_runners_async
from typeprobe.runners.abstract import AbstractQueryRunner, QueryRunner, RunnerResult, RunOutcome
from typeprobe.seeder import seed
from typeprobe.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Orchestration
    "RunConfig",
    "available_runners",
    "run_runners",
    "run_runners_async",
    "seed",
    # Runner abstractions
    "QueryRunner",
    "AbstractQueryRunner",
    "RunOutcome",
    "RunnerResult",
    # Logging
    "configure_logging",
    "get_logger",
]

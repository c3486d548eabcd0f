"""
Orchestrator for seeding, running query runners, and persisting outcomes.

Usage (example from CLI):
    from typeprobe.orchestrator import RunConfig, run_runners

    outcomes = run_runners(RunConfig(runner_names=["orm", "raw"]))
    for outcome in outcomes:
        print(outcome["report"])

Each runner seeds first. A seed failure is logged and the query phase runs
anyway, so it may observe an empty or half-written table. Under the
"tolerant" failure policy every failure ends up in the returned outcome;
under "strict" the first failure is re-raised.

Outcomes can be saved to `results/` (`latest.json` plus a timestamped archive).
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Coroutine, Dict, List, Optional, Sequence, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from typeprobe.config import BindingMode, FailurePolicy, NullPolicy, get_settings
from typeprobe.infrastructure.db_factory import database_scope
from typeprobe.runners.abstract import QueryRunner, RunOutcome
from typeprobe.runners.aggregate import AggregateQueryRunner
from typeprobe.runners.raw import RawQueryRunner
from typeprobe.seeder import seed
from typeprobe.utils.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")


@dataclass
class RunConfig:
    """
    Options for one orchestrated invocation; None falls back to settings.
    """

    runner_names: Optional[Sequence[str]] = None
    database_url: Optional[str] = None
    seed: bool = True
    failure_policy: Optional[FailurePolicy] = None
    null_policy: Optional[NullPolicy] = None
    binding: Optional[BindingMode] = None
    wrong_column: Optional[str] = None
    addend: Optional[int] = None
    persist: bool = False
    results_dir: Path | str = "results"

    def effective_failure_policy(self) -> FailurePolicy:
        return self.failure_policy or get_settings().failure_policy


def _runner_factories(config: RunConfig) -> Dict[str, Callable[[], QueryRunner]]:
    """Registry of available runners."""
    return {
        "orm": lambda: AggregateQueryRunner(null_policy=config.null_policy, addend=config.addend),
        "raw": lambda: RawQueryRunner(
            binding=config.binding, wrong_column=config.wrong_column, addend=config.addend
        ),
    }


def available_runners() -> List[str]:
    """List available runner names."""
    return sorted(_runner_factories(RunConfig()).keys())


def _resolve_runner(name: str, config: RunConfig) -> QueryRunner:
    factories = _runner_factories(config)
    if name not in factories:
        raise ValueError(f"Unknown runner '{name}'. Available: {', '.join(factories)}")
    return factories[name]()


def _resolve_names(config: RunConfig) -> List[str]:
    names = list(config.runner_names) if config.runner_names is not None else ["all"]
    if len(names) == 1 and names[0] == "all":
        return available_runners()
    return names


def _persist_results(payload: dict, results_dir: Path) -> None:
    results_dir.mkdir(parents=True, exist_ok=True)
    latest_path = results_dir / "latest.json"
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    archive_path = results_dir / f"run-{timestamp}.json"

    for path in (latest_path, archive_path):
        with path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, sort_keys=True, default=str)

    log.info("Results persisted", extra={"latest": str(latest_path), "archive": str(archive_path)})


async def seed_database(
    sessions: async_sessionmaker[AsyncSession],
    outcome: RunOutcome,
    failure_policy: FailurePolicy,
) -> None:
    """Seed phase; records the result on `outcome` and only raises when strict."""
    runner = outcome.get("runner")
    try:
        outcome["seeded_rows"] = await seed(sessions)
        outcome["seed_status"] = "ok"
    except Exception as exc:  # noqa: BLE001 - seed failures must not stop the query phase
        log.exception("[SEED FAILED]", extra={"runner": runner})
        outcome["seed_status"] = "failed"
        outcome["seed_error"] = f"{type(exc).__name__}: {exc}"
        if failure_policy == "strict":
            raise


def _new_outcome(name: str) -> RunOutcome:
    return RunOutcome(
        runner=name,
        seed_status="skipped",
        seeded_rows=None,
        seed_error=None,
        report=None,
        values={},
        mismatches=[],
        error=None,
        error_type=None,
    )


def _unreachable_outcome(name: str, exc: BaseException) -> RunOutcome:
    outcome = _new_outcome(name)
    outcome.update(
        status="query_failed",
        error=str(exc),
        error_type=type(exc).__name__,
        duration_seconds=0.0,
    )
    return outcome


async def _execute_runner(
    runner: QueryRunner,
    sessions: async_sessionmaker[AsyncSession],
    config: RunConfig,
) -> RunOutcome:
    failure_policy = config.effective_failure_policy()
    outcome = _new_outcome(runner.name)
    log.info(f"[RUNNER START] {runner.name}", extra={"runner": runner.name})
    start = time.perf_counter()

    if config.seed:
        await seed_database(sessions, outcome, failure_policy)

    try:
        result = await runner.run(sessions)
        outcome.update(
            status="ok",
            report=result["report"],
            values=result["values"],
            mismatches=result["mismatches"],
        )
        log.info(
            f"[RUNNER SUCCESS] {runner.name}",
            extra={"runner": runner.name, "mismatches": len(result["mismatches"])},
        )
    except Exception as exc:  # noqa: BLE001 - intentional broad catch to record failures
        log.exception(f"[RUNNER FAILED] {runner.name}", extra={"runner": runner.name})
        outcome.update(status="query_failed", error=str(exc), error_type=type(exc).__name__)
        if failure_policy == "strict":
            raise
    finally:
        outcome["duration_seconds"] = round(time.perf_counter() - start, 4)

    return outcome


async def run_runners_async(config: Optional[RunConfig] = None) -> List[RunOutcome]:
    """
    Run one or more runners inside a single database scope.

    Parameters
    ----------
    config : RunConfig | None
        Runner names, database URL, and policy overrides.

    Returns
    -------
    List[RunOutcome]
        One outcome per runner, in execution order. If the database cannot be
        reached, every runner that did not run gets a `query_failed` outcome
        (tolerant policy) or the connection error is raised (strict policy).
    """
    config = config or RunConfig()
    names = _resolve_names(config)
    runners = [_resolve_runner(name, config) for name in names]

    outcomes: List[RunOutcome] = []
    try:
        async with database_scope(config.database_url) as sessions:
            for runner in runners:
                outcomes.append(await _execute_runner(runner, sessions, config))
    except Exception as exc:  # noqa: BLE001 - tolerant runs report instead of raising
        if config.effective_failure_policy() == "strict":
            raise
        log.exception("[DATABASE UNAVAILABLE]", extra={"runners": names})
        outcomes.extend(_unreachable_outcome(r.name, exc) for r in runners[len(outcomes):])

    if config.persist:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "runners": names,
            "outcomes": outcomes,
        }
        _persist_results(payload, Path(config.results_dir))

    failed = [o["runner"] for o in outcomes if o.get("status") != "ok"]
    log.info(
        f"[ORCHESTRATOR COMPLETE] {len(outcomes) - len(failed)}/{len(outcomes)} runner(s) succeeded",
        extra={"runners": names, "failed": failed},
    )
    return outcomes


async def seed_only_async(
    database_url: Optional[str] = None, failure_policy: Optional[FailurePolicy] = None
) -> RunOutcome:
    """Run the seed phase by itself."""
    policy = failure_policy or get_settings().failure_policy
    outcome = _new_outcome("seed")
    start = time.perf_counter()
    try:
        async with database_scope(database_url) as sessions:
            await seed_database(sessions, outcome, policy)
    except Exception as exc:  # noqa: BLE001 - tolerant runs report instead of raising
        if policy == "strict":
            raise
        if outcome["seed_status"] == "skipped":
            log.exception("[DATABASE UNAVAILABLE]", extra={"runner": "seed"})
            outcome.update(seed_status="failed", seed_error=f"{type(exc).__name__}: {exc}")
    outcome["status"] = "ok" if outcome["seed_status"] == "ok" else "seed_failed"
    outcome["duration_seconds"] = round(time.perf_counter() - start, 4)
    return outcome


def _run_sync(coro: Coroutine[Any, Any, T]) -> T:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    coro.close()
    raise RuntimeError(
        "Cannot run synchronously from an async context; await the *_async variant instead."
    )


def run_runners(config: Optional[RunConfig] = None) -> List[RunOutcome]:
    """Synchronous wrapper around run_runners_async."""
    return _run_sync(run_runners_async(config))


def seed_only(
    database_url: Optional[str] = None, failure_policy: Optional[FailurePolicy] = None
) -> RunOutcome:
    """Synchronous wrapper around seed_only_async."""
    return _run_sync(seed_only_async(database_url, failure_policy))


__all__ = [
    "RunConfig",
    "available_runners",
    "run_runners",
    "run_runners_async",
    "seed_database",
    "seed_only",
    "seed_only_async",
]

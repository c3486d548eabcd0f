from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager
from typing import Any

import pytest

from typeprobe import orchestrator
from typeprobe.domain.values import tag_value
from typeprobe.orchestrator import RunConfig, available_runners, run_runners, seed_only
from typeprobe.runners.abstract import RunnerResult


class _ProbeRunner:
    name = "probe"
    description = "test runner that records its calls"

    def __init__(self) -> None:
        self.calls = 0

    async def run(self, sessions: Any) -> RunnerResult:
        self.calls += 1
        return RunnerResult(
            report="probe report",
            values={"value": tag_value(1).as_dict()},
            mismatches=[],
        )


class _FailingRunner(_ProbeRunner):
    name = "failing"

    async def run(self, sessions: Any) -> RunnerResult:
        self.calls += 1
        raise RuntimeError("intentional failure")


@pytest.fixture
def registry(monkeypatch):
    created: dict[str, _ProbeRunner] = {}

    def make(cls):
        def factory():
            runner = cls()
            created[runner.name] = runner
            return runner

        return factory

    def fake_factories(config):
        del config
        return {"probe": make(_ProbeRunner), "failing": make(_FailingRunner)}

    monkeypatch.setattr(orchestrator, "_runner_factories", fake_factories)
    return created


async def _failing_seed(sessions):
    raise RuntimeError("seed exploded")


def test_available_runners_lists_both_demos():
    assert available_runners() == ["orm", "raw"]


def test_unknown_runner_is_rejected(schema_url):
    with pytest.raises(ValueError, match="Unknown runner 'nope'"):
        run_runners(RunConfig(runner_names=["nope"], database_url=schema_url))


def test_tolerant_policy_records_query_failure_and_continues(schema_url, registry):
    outcomes = run_runners(RunConfig(runner_names=["failing", "probe"], database_url=schema_url))

    failed, ok = outcomes
    assert failed["status"] == "query_failed"
    assert failed["error"] == "intentional failure"
    assert failed["error_type"] == "RuntimeError"
    assert failed["report"] is None
    assert ok["status"] == "ok"
    assert ok["report"] == "probe report"
    assert registry["probe"].calls == 1


def test_strict_policy_fails_fast(schema_url, registry):
    with pytest.raises(RuntimeError, match="intentional failure"):
        run_runners(
            RunConfig(
                runner_names=["failing", "probe"],
                database_url=schema_url,
                failure_policy="strict",
            )
        )
    assert registry["failing"].calls == 1
    assert registry["probe"].calls == 0


def test_seed_failure_does_not_stop_query_phase(schema_url, registry, monkeypatch):
    monkeypatch.setattr(orchestrator, "seed", _failing_seed)

    (outcome,) = run_runners(RunConfig(runner_names=["probe"], database_url=schema_url))

    assert outcome["seed_status"] == "failed"
    assert outcome["seed_error"] == "RuntimeError: seed exploded"
    assert outcome["status"] == "ok"
    assert registry["probe"].calls == 1


def test_strict_seed_failure_skips_query_phase(schema_url, registry, monkeypatch):
    monkeypatch.setattr(orchestrator, "seed", _failing_seed)

    with pytest.raises(RuntimeError, match="seed exploded"):
        run_runners(
            RunConfig(runner_names=["probe"], database_url=schema_url, failure_policy="strict")
        )
    assert registry["probe"].calls == 0


def test_seed_can_be_skipped(schema_url, registry):
    (outcome,) = run_runners(RunConfig(runner_names=["probe"], database_url=schema_url, seed=False))
    assert outcome["seed_status"] == "skipped"
    assert outcome["seeded_rows"] is None


def test_unreachable_database_yields_failed_outcomes(registry, monkeypatch):
    @asynccontextmanager
    async def unreachable(url=None, echo=None):
        raise ConnectionRefusedError("connection refused")
        yield  # pragma: no cover

    monkeypatch.setattr(orchestrator, "database_scope", unreachable)

    outcomes = run_runners(RunConfig(runner_names=["probe", "failing"]))

    assert [o["runner"] for o in outcomes] == ["probe", "failing"]
    assert all(o["status"] == "query_failed" for o in outcomes)
    assert all(o["error_type"] == "ConnectionRefusedError" for o in outcomes)
    assert registry["probe"].calls == 0


def test_unreachable_database_raises_when_strict(monkeypatch):
    @asynccontextmanager
    async def unreachable(url=None, echo=None):
        raise ConnectionRefusedError("connection refused")
        yield  # pragma: no cover

    monkeypatch.setattr(orchestrator, "database_scope", unreachable)

    with pytest.raises(ConnectionRefusedError):
        run_runners(RunConfig(runner_names=["orm"], failure_policy="strict"))


def test_persist_writes_latest_and_archive(schema_url, registry, tmp_path):
    results_dir = tmp_path / "results"
    run_runners(
        RunConfig(
            runner_names=["probe"],
            database_url=schema_url,
            persist=True,
            results_dir=results_dir,
        )
    )

    latest = json.loads((results_dir / "latest.json").read_text(encoding="utf-8"))
    assert latest["runners"] == ["probe"]
    assert latest["outcomes"][0]["report"] == "probe report"
    assert len(list(results_dir.glob("run-*.json"))) == 1


def test_run_runners_refuses_running_event_loop(schema_url):
    async def call_sync():
        run_runners(RunConfig(runner_names=["orm"], database_url=schema_url))

    with pytest.raises(RuntimeError, match="async context"):
        asyncio.run(call_sync())


def test_seed_only_reports_inserted_rows(schema_url):
    outcome = seed_only(schema_url)
    assert outcome["status"] == "ok"
    assert outcome["seeded_rows"] == 2


def test_seed_only_without_schema_is_tolerated(sqlite_url):
    outcome = seed_only(sqlite_url)
    assert outcome["status"] == "seed_failed"
    assert outcome["seed_status"] == "failed"
    assert "simple" in outcome["seed_error"]

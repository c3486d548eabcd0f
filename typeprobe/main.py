from __future__ import annotations

import enum
import json
import sys
from typing import List, Optional, cast

import typer

from typeprobe.config import BindingMode, NullPolicy, get_settings
from typeprobe.infrastructure.db_factory import build_dsn, init_schema, mask_password
from typeprobe.orchestrator import RunConfig, available_runners, run_runners, seed_only
from typeprobe.reporter import print_outcomes, reports_text
from typeprobe.runners.abstract import RunOutcome
from typeprobe.utils.logging import configure_logging

app = typer.Typer(help="Probe how ORM and raw-SQL result types diverge from runtime values.")

DatabaseUrlOption = typer.Option(
    None, "--database-url", "-d", help="Override DATABASE_URL (async SQLAlchemy URL)."
)
StrictOption = typer.Option(
    False, "--strict", help="Fail fast: exit 1 on the first seed or query failure."
)
JsonLogsOption = typer.Option(False, "--json-logs", help="Emit logs as JSON on stderr.")


class NullPolicyChoice(str, enum.Enum):
    zero = "zero"
    propagate = "propagate"


class BindingChoice(str, enum.Enum):
    unchecked = "unchecked"
    checked = "checked"


def _null_policy(choice: Optional[NullPolicyChoice]) -> Optional[NullPolicy]:
    return None if choice is None else cast(NullPolicy, choice.value)


def _binding(choice: Optional[BindingChoice]) -> Optional[BindingMode]:
    return None if choice is None else cast(BindingMode, choice.value)


def _setup_logging(json_logs: bool) -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=json_logs or settings.log_json)


def _emit(outcomes: List[RunOutcome], table: bool, as_json: bool) -> None:
    if as_json:
        typer.echo(json.dumps(outcomes, indent=2, default=str))
        return
    text = reports_text(outcomes)
    if text:
        typer.echo(text)
    if table:
        print_outcomes(list(outcomes))


def _run(config: RunConfig, table: bool, as_json: bool) -> None:
    try:
        outcomes = run_runners(config)
    except Exception as exc:  # strict policy re-raises the first failure
        typer.echo(f"Run aborted: {type(exc).__name__}: {exc}", err=True)
        raise typer.Exit(code=1)
    _emit(outcomes, table=table, as_json=as_json)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={mask_password(build_dsn(settings))} | null_policy={settings.null_policy} "
        f"binding={settings.raw_binding} wrong_column={settings.raw_wrong_column} "
        f"addend={settings.addend} failure_policy={settings.failure_policy}"
    )


@app.command("list")
def list_runners() -> None:
    """
    List available runners.
    """
    typer.echo("Available runners: " + ", ".join(available_runners()))


@app.command("init-db")
def init_db(
    database_url: Optional[str] = DatabaseUrlOption,
    drop: bool = typer.Option(False, "--drop", help="Drop the probe tables first."),
    json_logs: bool = JsonLogsOption,
) -> None:
    """
    Create the `simple` table (schema precondition for every runner).
    """
    _setup_logging(json_logs)
    tables = init_schema(database_url, drop_existing=drop)
    typer.echo("Tables: " + ", ".join(tables))


@app.command()
def seed(
    database_url: Optional[str] = DatabaseUrlOption,
    strict: bool = StrictOption,
    json_logs: bool = JsonLogsOption,
) -> None:
    """
    Replace the table contents with the two fixed seed rows.
    """
    _setup_logging(json_logs)
    try:
        outcome = seed_only(database_url, failure_policy="strict" if strict else None)
    except Exception as exc:
        typer.echo(f"Seed aborted: {type(exc).__name__}: {exc}", err=True)
        raise typer.Exit(code=1)
    if outcome["seed_status"] == "ok":
        typer.echo(f"Seeded {outcome['seeded_rows']} row(s).")
    else:
        typer.echo(f"Seed failed: {outcome['seed_error']}", err=True)


@app.command()
def orm(
    database_url: Optional[str] = DatabaseUrlOption,
    null_policy: Optional[NullPolicyChoice] = typer.Option(
        None, "--null-policy", help="How an absent sum is coerced: zero or propagate."
    ),
    no_seed: bool = typer.Option(False, "--no-seed", help="Skip the seed phase."),
    strict: bool = StrictOption,
    table: bool = typer.Option(False, "--table", help="Also render a summary table."),
    as_json: bool = typer.Option(False, "--json", help="Print outcomes as JSON."),
    json_logs: bool = JsonLogsOption,
) -> None:
    """
    Seed, then sum the nullable column through the ORM.
    """
    _setup_logging(json_logs)
    config = RunConfig(
        runner_names=["orm"],
        database_url=database_url,
        seed=not no_seed,
        failure_policy="strict" if strict else None,
        null_policy=_null_policy(null_policy),
    )
    _run(config, table=table, as_json=as_json)


@app.command()
def raw(
    database_url: Optional[str] = DatabaseUrlOption,
    binding: Optional[BindingChoice] = typer.Option(
        None, "--binding", help="Row binding: unchecked (declared types trusted) or checked."
    ),
    wrong_column: Optional[str] = typer.Option(
        None, "--wrong-column", help="Column summed by the 'badInt' statement."
    ),
    no_seed: bool = typer.Option(False, "--no-seed", help="Skip the seed phase."),
    strict: bool = StrictOption,
    table: bool = typer.Option(False, "--table", help="Also render a summary table."),
    as_json: bool = typer.Option(False, "--json", help="Print outcomes as JSON."),
    json_logs: bool = JsonLogsOption,
) -> None:
    """
    Seed, then run the raw SQL statements against their declared row types.
    """
    _setup_logging(json_logs)
    config = RunConfig(
        runner_names=["raw"],
        database_url=database_url,
        seed=not no_seed,
        failure_policy="strict" if strict else None,
        binding=_binding(binding),
        wrong_column=wrong_column,
    )
    _run(config, table=table, as_json=as_json)


@app.command()
def run(
    runner: str = typer.Option(
        "all",
        "--runner",
        "--runners",
        "-r",
        help="Runner to execute (orm, raw, all).",
    ),
    database_url: Optional[str] = DatabaseUrlOption,
    null_policy: Optional[NullPolicyChoice] = typer.Option(
        None, "--null-policy", help="How an absent sum is coerced."
    ),
    binding: Optional[BindingChoice] = typer.Option(None, "--binding", help="Raw row binding."),
    wrong_column: Optional[str] = typer.Option(None, "--wrong-column", help="Column for 'badInt'."),
    no_seed: bool = typer.Option(False, "--no-seed", help="Skip the seed phase."),
    strict: bool = StrictOption,
    save: bool = typer.Option(False, "--save", help="Persist outcomes under results/."),
    table: bool = typer.Option(True, "--table/--no-table", help="Render a summary table."),
    as_json: bool = typer.Option(False, "--json", help="Print outcomes as JSON."),
    json_logs: bool = JsonLogsOption,
) -> None:
    """
    Run one or all runners and optionally persist the outcomes.
    """
    _setup_logging(json_logs)
    names = ["all"] if runner == "all" else [runner]
    if runner not in ("all", *available_runners()):
        typer.echo(f"Unknown runner '{runner}'. Available: {', '.join(available_runners())}", err=True)
        raise typer.Exit(code=2)
    config = RunConfig(
        runner_names=names,
        database_url=database_url,
        seed=not no_seed,
        failure_policy="strict" if strict else None,
        null_policy=_null_policy(null_policy),
        binding=_binding(binding),
        wrong_column=wrong_column,
        persist=save,
    )
    _run(config, table=table, as_json=as_json)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()

"""
Schema setup script for typeprobe.

Creates the `simple` table the runners expect. Schema creation is a
precondition of every run, not something the runners do themselves.
"""

from __future__ import annotations

import sys
import time

import typer

from typeprobe.infrastructure.db_factory import build_dsn, init_schema, mask_password

app = typer.Typer(help="Create (or recreate) the typeprobe schema.")


def _build_dsn(dsn_override: str | None) -> str:
    if dsn_override:
        return dsn_override
    return build_dsn()


@app.command()
def main(
    dsn: str | None = typer.Option(
        None,
        "--dsn",
        help="Optional database URL override (async or sync SQLAlchemy form).",
    ),
    drop: bool = typer.Option(
        False,
        "--drop",
        help="Drop the probe tables before creating them. Destroys all data.",
    ),
) -> None:
    """
    Create the probe tables and list what the database now contains.
    """
    start = time.perf_counter()
    url = _build_dsn(dsn)
    typer.echo(f"Initializing schema at {mask_password(url)} (drop={drop})")
    tables = init_schema(url, drop_existing=drop)
    typer.echo(f"Tables: {', '.join(tables)} ({time.perf_counter() - start:.2f}s)")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)

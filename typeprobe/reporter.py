from __future__ import annotations

from typing import Any, Dict, List, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

_STATUS_STYLES = {
    "ok": "green",
    "seed_failed": "yellow",
    "query_failed": "red",
    "failed": "red",
    "skipped": "dim",
}


def _styled(status: str) -> str:
    style = _STATUS_STYLES.get(status, "white")
    return f"[{style}]{status}[/{style}]"


def format_values(values: Dict[str, Dict[str, Any]]) -> str:
    """
    One ``label: value (type)`` line per tagged value.
    """
    lines = []
    for label, tagged in values.items():
        line = f"{label}: {tagged.get('value')!r} ({tagged.get('type')})"
        if tagged.get("error"):
            line = f"{line} ! {tagged['error']}"
        lines.append(line)
    return "\n".join(lines)


def reports_text(outcomes: Sequence[Dict[str, Any]]) -> str:
    """
    Join the plain-text reports of successful runs; failed runs contribute nothing.
    """
    return "\n\n".join(o["report"] for o in outcomes if o.get("report"))


def print_outcomes(outcomes: List[Dict[str, Any]], console: Console | None = None) -> None:
    """
    Render run outcomes as a rich table.

    Shows status, seed status, every tagged value with its runtime type,
    the mismatch count, and the error for failed runs.
    """
    console = console or Console()

    if not outcomes:
        console.print("[yellow]No outcomes to display.[/yellow]")
        return

    table = Table(
        title="typeprobe outcomes",
        box=box.ROUNDED,
        caption="value (runtime type)",
    )

    table.add_column("Runner", style="cyan", no_wrap=True)
    table.add_column("Status", justify="center")
    table.add_column("Seed", justify="center")
    table.add_column("Values", style="magenta")
    table.add_column("Mismatches", justify="right", style="yellow")
    table.add_column("Duration (s)", justify="right", style="green")
    table.add_column("Error", style="red")

    for res in outcomes:
        error = ""
        if res.get("error"):
            error = f"{res.get('error_type')}: {res['error']}"
        elif res.get("seed_error"):
            error = f"seed: {res['seed_error']}"

        table.add_row(
            res.get("runner", "unknown"),
            _styled(res.get("status", "unknown")),
            _styled(res.get("seed_status", "skipped")),
            escape(format_values(res.get("values") or {})),
            str(len(res.get("mismatches") or [])),
            f"{res.get('duration_seconds', 0.0):.3f}",
            escape(error),
        )

    console.print(table)


__all__ = ["format_values", "print_outcomes", "reports_text"]

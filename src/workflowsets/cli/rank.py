# Copyright (c) Syntropy Systems
"""workflowsets rank command."""
from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.table import Table

from workflowsets.config import load_config
from workflowsets.errors import AggregationError
from workflowsets.persist import load_results
from workflowsets.rank import rank_results

if TYPE_CHECKING:
    from collections.abc import Sequence

    from workflowsets.models.results import RankingRow

console = Console()


def format_params(row: RankingRow) -> str:
    """Format a configuration for display."""
    if not row.params:
        return "-"
    return ", ".join(f"{k}={v}" for k, v in row.params.items())


def ranking_table(rows: Sequence[RankingRow], title: str) -> Table:
    """Build a rich table for ranking rows."""
    table = Table(title=title)
    table.add_column("Rank", style="dim")
    table.add_column("ID")
    table.add_column("Config")
    table.add_column("Mean", justify="right")
    table.add_column("Std Err", justify="right")
    table.add_column("N", justify="right")

    for row in rows:
        mean_str = f"{row.mean:.4f}"
        table.add_row(
            str(row.rank),
            row.id,
            format_params(row),
            f"[green]{mean_str}[/green]" if row.rank == 1 else mean_str,
            f"{row.std_err:.4f}" if row.std_err is not None else "-",
            str(row.n),
        )
    return table


def rank(
    results_file: Path = typer.Argument(
        ...,
        help="Results file written by 'workflowsets run'",
        exists=True,
    ),
    metric: str = typer.Option(..., "--metric", "-m", help="Metric to rank by"),
    select_best: bool = typer.Option(
        False,
        "--select-best",
        "-b",
        help="Show only the best configuration per workflow",
    ),
    limit: int | None = typer.Option(
        None, "--limit", "-l", min=1, help="Show at most this many rows"
    ),
) -> None:
    """Rank workflows by a metric.

    Example:
        workflowsets rank results.json --metric roc_auc --select-best

    """
    try:
        wset = load_results(results_file)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error loading results:[/red] {e}")
        raise typer.Exit(1) from e

    try:
        rows = rank_results(
            wset, metric, select_best=select_best or load_config().select_best
        )
    except AggregationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    if limit is not None:
        rows = rows[:limit]

    console.print(ranking_table(rows, f"Ranking by {metric} ({rows[0].direction})"))

    winner = rows[0]
    console.print(f"\n[green]Best:[/green] {winner.id}")
    console.print(f"  {metric}: {winner.mean:.4f} ({format_params(winner)})")

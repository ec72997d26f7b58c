# Copyright (c) Syntropy Systems
"""Export command - export a ranking to CSV/JSON."""
from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from workflowsets.config import load_config
from workflowsets.errors import AggregationError
from workflowsets.export import export_ranking
from workflowsets.persist import load_results
from workflowsets.rank import rank_results

console = Console()


def export(
    results_file: Path = typer.Argument(
        ...,
        help="Results file written by 'workflowsets run'",
        exists=True,
    ),
    output: Path = typer.Argument(..., help="Output file path (.csv or .json)"),
    metric: str = typer.Option(..., "--metric", "-m", help="Metric to rank by"),
    select_best: bool = typer.Option(
        False,
        "--select-best",
        "-b",
        help="Export only the best configuration per workflow",
    ),
) -> None:
    """Export a ranking table to CSV or JSON format.

    Examples:
        workflowsets export results.json ranking.csv --metric rmse
        workflowsets export results.json best.json -m rmse --select-best

    """
    if output.suffix.lower() not in (".csv", ".json"):
        console.print("[red]Output must be .csv or .json[/red]")
        raise typer.Exit(1)

    try:
        wset = load_results(results_file)
        rows = rank_results(
            wset, metric, select_best=select_best or load_config().select_best
        )
    except (OSError, ValueError, AggregationError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    count = export_ranking(rows, output)
    console.print(f"[green]Exported {count} row(s) to {output}[/green]")

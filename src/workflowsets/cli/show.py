# Copyright (c) Syntropy Systems
"""workflowsets show command."""
from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from workflowsets.persist import load_results

console = Console()

STATUS_STYLES = {
    "completed": "green",
    "failed": "red",
    "not_run": "dim",
}


def show(
    results_file: Path = typer.Argument(
        ...,
        help="Results file written by 'workflowsets run'",
        exists=True,
    ),
) -> None:
    """Show every workflow in a results file and its status."""
    try:
        wset = load_results(results_file)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error loading results:[/red] {e}")
        raise typer.Exit(1) from e

    if len(wset) == 0:
        console.print("[yellow]No workflows in results file[/yellow]")
        return

    table = Table(title=f"Workflows: {results_file.name}")
    table.add_column("ID")
    table.add_column("Preprocessor")
    table.add_column("Model")
    table.add_column("Status")
    table.add_column("Details")

    for record in wset.to_records():
        status = str(record["status"])
        style = STATUS_STYLES.get(status, "")
        if "message" in record:
            details = str(record["message"])
        elif "metrics" in record:
            metrics = record["metrics"]
            names = ""
            if isinstance(metrics, list):
                names = ", ".join(str(m) for m in metrics)
            details = f"{record.get('n_configs')} config(s): {names}"
        else:
            details = "-"
        table.add_row(
            str(record["id"]),
            str(record["preprocessor_name"]),
            str(record["model_name"]),
            f"[{style}]{status}[/{style}]" if style else status,
            details,
        )

    console.print(table)

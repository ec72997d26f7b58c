# Copyright (c) Syntropy Systems
"""workflowsets run command."""
from __future__ import annotations

import warnings
from pathlib import Path
from typing import Literal, cast

import typer
from rich.console import Console

from workflowsets.builder import workflow_set
from workflowsets.cli.rank import format_params, ranking_table
from workflowsets.config import RunSpec, import_object, load_config
from workflowsets.errors import AggregationError, ConfigurationError
from workflowsets.executor import ProgressReporter, workflow_map
from workflowsets.persist import save_results
from workflowsets.rank import rank_results

console = Console()


def run(
    spec_file: Path = typer.Argument(
        ...,
        help="Path to run specification YAML file",
        exists=True,
    ),
    output: Path = typer.Option(
        Path("results.json"),
        "--output", "-o",
        help="Where to write the results file",
    ),
    metric: str | None = typer.Option(
        None,
        "--metric", "-m",
        help="Metric to rank by (overrides metric in spec)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Print a progress line per workflow",
    ),
    force: bool = typer.Option(
        False,
        "--force", "-f",
        help="Re-run workflows that already have a result",
    ),
) -> None:
    r"""Build a workflow set from a spec, run it, and save the results.

    Example spec.yaml:

    \b
        preprocessors:
          plain: mypkg.preps:plain
          scaled: mypkg.preps:scaled
        models:
          cart: mypkg.models:cart
          knn: mypkg.models:knn
        resamples: mypkg.data:folds
        operation: tune_grid
        options:
          metrics: [mypkg.metrics:rmse]
        entry_options:
          plain_knn:
            grid: {neighbors: [3, 5, 7]}
        metric: rmse
    """
    config = load_config()

    try:
        spec = RunSpec.from_yaml(spec_file)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error loading spec:[/red] {e}")
        raise typer.Exit(1) from e

    try:
        preprocessors = {n: import_object(r) for n, r in spec.preprocessors.items()}
        models = {n: import_object(r) for n, r in spec.models.items()}
        resamples = import_object(spec.resamples)
        base_options = spec.resolve_options(spec.options)
        entry_options = {
            entry_id: spec.resolve_options(opts)
            for entry_id, opts in spec.entry_options.items()
        }
    except (ImportError, AttributeError, ValueError) as e:
        console.print(f"[red]Error importing objects:[/red] {e}")
        raise typer.Exit(1) from e

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            wset = workflow_set(
                preprocessors,
                models,
                mode=cast("Literal['cross', 'pairwise']", spec.mode),
                options=entry_options,
            )
            console.print(f"[bold]{len(wset)} workflows[/bold] built")
            _ = workflow_map(
                wset,
                spec.operation,
                resamples=resamples,
                options=base_options,
                force=force or config.force,
                reporter=ProgressReporter(console, enabled=verbose or config.verbose),
                config=config,
            )
        except ConfigurationError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from e

    for warning in caught:
        console.print(f"[yellow]Warning:[/yellow] {warning.message}")

    save_results(wset, output)

    completed = len(wset.completed())
    failed = sum(1 for e in wset if e.status == "failed")
    console.print(f"\n[green]{completed} completed[/green], [red]{failed} failed[/red]")
    console.print(f"  [dim]results:[/dim] {output}")

    metric = metric or spec.metric
    if metric is None or completed == 0:
        return

    try:
        rows = rank_results(wset, metric, select_best=True)
    except AggregationError as e:
        console.print(f"[yellow]Could not rank:[/yellow] {e}")
        return

    console.print(ranking_table(rows, f"Best per workflow by {metric}"))
    winner = rows[0]
    console.print(f"\n[green]Best:[/green] {winner.id} ({format_params(winner)})")

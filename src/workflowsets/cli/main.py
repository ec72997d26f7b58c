# Copyright (c) Syntropy Systems
"""Main CLI entry point for workflowsets."""

import typer

from workflowsets.cli.export import export
from workflowsets.cli.operations import operations
from workflowsets.cli.rank import rank
from workflowsets.cli.run import run
from workflowsets.cli.show import show

app = typer.Typer(
    name="workflowsets",
    help=(
        "Tune every preprocessor and model combination with one resampling "
        "plan, then rank the results."
    ),
    no_args_is_help=True,
    add_completion=False,
)

# Register commands
_ = app.command()(run)
_ = app.command()(rank)
_ = app.command()(show)
_ = app.command(name="export")(export)
_ = app.command()(operations)


if __name__ == "__main__":
    app()

# Copyright (c) Syntropy Systems
"""workflowsets operations command."""

from rich.console import Console

from workflowsets.operations import registry

console = Console()


def operations() -> None:
    """List the registered batch operations."""
    for name in registry.names():
        fn = registry.get(name)
        doc = (fn.__doc__ or "").strip().splitlines()
        summary = doc[0] if doc else ""
        console.print(f"[cyan]{name}[/cyan]  {summary}")

# Copyright (c) Syntropy Systems
"""Batch execution of one operation over every entry of a workflow set."""
from __future__ import annotations

import logging
import time
import warnings
from concurrent.futures import as_completed
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, Union

from rich.console import Console

from workflowsets.config import load_config
from workflowsets.errors import ExecutionFailureWarning, SkippedEntryWarning
from workflowsets.models.results import Failure, Success, coerce_result
from workflowsets.operations import registry as default_registry

if TYPE_CHECKING:
    from collections.abc import Mapping
    from concurrent.futures import Future

    from workflowsets.config import WorkflowSetConfig
    from workflowsets.operations import Operation, OperationRegistry
    from workflowsets.workflow_set import WorkflowEntry, WorkflowSet

logger = logging.getLogger(__name__)


class SubmitExecutor(Protocol):
    """Anything with a ``concurrent.futures.Executor`` style ``submit``."""

    def submit(self, fn: Any, /, *args: Any, **kwargs: Any) -> Future[Any]: ...


def format_duration(seconds: float) -> str:
    """Format an elapsed time for progress output."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    if seconds < 3600:
        minutes = int(seconds // 60)
        return f"{minutes}m {int(seconds % 60)}s"
    hours = int(seconds // 3600)
    return f"{hours}h {int((seconds % 3600) // 60)}m"


class ProgressReporter:
    """Prints a line before and after each unit of work."""

    def __init__(
        self, console: Console | None = None, *, enabled: bool = True
    ) -> None:
        self.console = console or Console(stderr=True)
        self.enabled = enabled

    def start(self, entry_id: str, index: int, total: int) -> None:
        if self.enabled:
            self.console.print(
                f"[dim]{index} of {total}[/dim] {entry_id} [dim]started[/dim]"
            )

    def finish(
        self, entry_id: str, index: int, total: int, outcome: UnitOutcome
    ) -> None:
        if not self.enabled:
            return
        elapsed = format_duration(outcome.elapsed)
        if isinstance(outcome.result, Failure):
            self.console.print(
                f"[dim]{index} of {total}[/dim] {entry_id} "
                f"[red]failed[/red] after {elapsed}: {outcome.result.message}"
            )
        else:
            self.console.print(
                f"[dim]{index} of {total}[/dim] {entry_id} "
                f"[green]done[/green] in {elapsed}"
            )


@dataclass
class UnitOutcome:
    """What a unit of work hands back to the orchestrating thread."""

    entry_id: str
    result: Union[Success, Failure]
    elapsed: float


def run_unit(
    entry_id: str,
    operation_name: str,
    operation: Operation,
    workflow: Any,
    resamples: Any,
    options: Mapping[str, Any],
) -> UnitOutcome:
    """Run one operation call and capture its result or its error.

    Module-level so that process pools can pickle it.
    """
    start = time.perf_counter()
    try:
        raw = operation(workflow, resamples, **options)
        tuned = coerce_result(raw, operation=operation_name)
    except Exception as e:  # noqa: BLE001
        elapsed = time.perf_counter() - start
        failure = Failure(
            message=str(e) or type(e).__name__,
            error_type=type(e).__name__,
            elapsed=elapsed,
        )
        return UnitOutcome(entry_id, failure, elapsed)

    elapsed = time.perf_counter() - start
    return UnitOutcome(entry_id, Success(result=tuned, elapsed=elapsed), elapsed)


def merge_options(
    base: Mapping[str, Any], entry_options: Mapping[str, Any]
) -> dict[str, Any]:
    """Merge batch options with entry options; entry keys win."""
    return {**base, **entry_options}


def _store(
    wset: WorkflowSet,
    outcome: UnitOutcome,
    operation_name: str,
    reporter: ProgressReporter,
    index: int,
    total: int,
) -> None:
    wset.set_result(outcome.entry_id, outcome.result)
    reporter.finish(outcome.entry_id, index, total, outcome)

    if isinstance(outcome.result, Failure):
        logger.warning(
            "Operation %s failed for %s: %s",
            operation_name,
            outcome.entry_id,
            outcome.result.message,
        )
        warnings.warn(
            f"Operation '{operation_name}' failed for '{outcome.entry_id}': "
            f"{outcome.result.message}",
            ExecutionFailureWarning,
            stacklevel=3,
        )
    else:
        logger.debug(
            "Operation %s finished for %s in %.3fs",
            operation_name,
            outcome.entry_id,
            outcome.elapsed,
        )


def workflow_map(
    wset: WorkflowSet,
    fn: str | None = None,
    *,
    resamples: Any,
    options: Mapping[str, Any] | None = None,
    verbose: bool | None = None,
    force: bool | None = None,
    executor: SubmitExecutor | None = None,
    reporter: ProgressReporter | None = None,
    registry: OperationRegistry | None = None,
    config: WorkflowSetConfig | None = None,
) -> WorkflowSet:
    """Run an operation on every entry and store the results in place.

    Entries run in table order. A failing entry gets a Failure marker and an
    ExecutionFailureWarning; the batch carries on. Entries that already
    hold a result are skipped with a SkippedEntryWarning unless ``force``.

    With an ``executor`` every entry is submitted as an independent unit of
    work; results are written back by the calling thread as units complete.
    If the batch is interrupted, finished entries keep their results and
    the rest stay unrun.

    Args:
        wset: Workflow set to execute
        fn: Registered operation name (default from config, ``tune_grid``)
        resamples: Resampling plan passed unchanged to every call
        options: Keyword arguments for every call, overridden per entry
        verbose: Print progress lines
        force: Re-run entries that already have a result
        executor: Optional ``concurrent.futures`` style executor
        reporter: Progress reporter (created from ``verbose`` if omitted)
        registry: Operation registry (the default registry if omitted)
        config: Defaults for ``fn``, ``verbose`` and ``force``

    Returns:
        The same workflow set, with results populated

    """
    if config is None:
        config = load_config()
    operation_name = fn or config.operation
    verbose = config.verbose if verbose is None else verbose
    force = config.force if force is None else force

    operation = (registry or default_registry).get(operation_name)
    if reporter is None:
        reporter = ProgressReporter(enabled=verbose)
    base_options = dict(options or {})

    pending: list[WorkflowEntry] = []
    for entry in wset:
        if entry.has_result and not force:
            warnings.warn(
                f"Skipping '{entry.id}': it already has a result "
                "(pass force=True to re-run)",
                SkippedEntryWarning,
                stacklevel=2,
            )
            continue
        pending.append(entry)

    total = len(pending)
    logger.debug("Running %s on %d of %d entries", operation_name, total, len(wset))

    if executor is None:
        for index, entry in enumerate(pending, 1):
            reporter.start(entry.id, index, total)
            outcome = run_unit(
                entry.id,
                operation_name,
                operation,
                entry.workflow,
                resamples,
                merge_options(base_options, entry.options),
            )
            _store(wset, outcome, operation_name, reporter, index, total)
        return wset

    futures: dict[Future[Any], tuple[int, str]] = {}
    try:
        for index, entry in enumerate(pending, 1):
            reporter.start(entry.id, index, total)
            future = executor.submit(
                run_unit,
                entry.id,
                operation_name,
                operation,
                entry.workflow,
                resamples,
                merge_options(base_options, entry.options),
            )
            futures[future] = (index, entry.id)

        for future in as_completed(futures):
            index, entry_id = futures[future]
            try:
                outcome = future.result()
            except Exception as e:  # noqa: BLE001
                # Raised by the executor itself, e.g. a broken worker pool
                failure = Failure(
                    message=str(e) or type(e).__name__,
                    error_type=type(e).__name__,
                )
                outcome = UnitOutcome(entry_id, failure, 0.0)
            _store(wset, outcome, operation_name, reporter, index, total)
    except BaseException:
        for future in futures:
            _ = future.cancel()
        raise

    return wset

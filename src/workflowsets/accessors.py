# Copyright (c) Syntropy Systems
"""Read and replace parts of individual workflow set entries."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

from workflowsets.errors import UnresolvedParameterError, WorkflowSetError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from workflowsets.workflow_set import WorkflowSet


def pull_workflow(wset: WorkflowSet, entry_id: str) -> Any:
    """Return the composed workflow of an entry."""
    workflow = wset.get(entry_id).workflow
    if workflow is None:
        msg = f"No workflow object for '{entry_id}' (loaded from a results file?)"
        raise WorkflowSetError(msg)
    return workflow


def pull_preprocessor(wset: WorkflowSet, entry_id: str) -> Any:
    """Return the preprocessor of an entry's workflow."""
    return pull_workflow(wset, entry_id).preprocessor


def pull_model(wset: WorkflowSet, entry_id: str) -> Any:
    """Return the model spec of an entry's workflow."""
    return pull_workflow(wset, entry_id).model


def replace_workflow(
    wset: WorkflowSet,
    entry_id: str,
    workflow: Any,
    *,
    keep_result: bool = False,
) -> WorkflowSet:
    """Swap the workflow of an entry.

    The stored result belonged to the old workflow, so it is cleared unless
    ``keep_result`` is set.
    """
    _ = wset.update(entry_id, workflow=workflow)
    if not keep_result:
        wset.clear_result(entry_id)
    return wset


def update_options(
    wset: WorkflowSet, entry_id: str, options: Mapping[str, Any]
) -> WorkflowSet:
    """Merge options into an entry's existing options."""
    entry = wset.get(entry_id)
    entry.options.update(options)
    return wset


def remove_options(wset: WorkflowSet, entry_id: str, *keys: str) -> WorkflowSet:
    """Drop option keys from an entry; missing keys are ignored."""
    entry = wset.get(entry_id)
    for key in keys:
        _ = entry.options.pop(key, None)
    return wset


def finalize(wset: WorkflowSet, entry_id: str, params: Mapping[str, Any]) -> Any:
    """Bind concrete values to every tunable parameter of an entry's workflow.

    Returns a new workflow; the set itself is not changed. Keys of ``params``
    that are not tunable are ignored.

    Raises:
        UnresolvedParameterError: A tunable parameter has no value in ``params``

    """
    workflow = pull_workflow(wset, entry_id)
    tunable = list(workflow.tunable_parameters())
    missing = [name for name in tunable if name not in params]
    if missing:
        raise UnresolvedParameterError(entry_id, missing)

    finalized = workflow.finalize({k: v for k, v in params.items() if k in tunable})
    remaining = list(finalized.tunable_parameters())
    if remaining:
        raise UnresolvedParameterError(entry_id, remaining)
    return finalized

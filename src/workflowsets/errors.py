# Copyright (c) Syntropy Systems
"""Error and warning taxonomy for workflowsets."""

from __future__ import annotations


class WorkflowSetError(Exception):
    """Base class for all workflowsets errors."""


class ConfigurationError(WorkflowSetError, ValueError):
    """Invalid names, duplicate ids, bad option shapes or unknown operations."""


class IncompatibleCombination(WorkflowSetError):
    """Raised by a composer when a preprocessor and model cannot be combined."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class AggregationError(WorkflowSetError, LookupError):
    """Results could not be ranked or pulled."""


class UnknownIdError(AggregationError):
    """The id is not part of the workflow set."""

    def __init__(self, entry_id: str) -> None:
        super().__init__(f"unknown id: '{entry_id}'")
        self.entry_id = entry_id


class NoResultError(AggregationError):
    """The entry exists but was never executed."""

    def __init__(self, entry_id: str) -> None:
        super().__init__(f"no result computed for '{entry_id}'")
        self.entry_id = entry_id


class UnresolvedParameterError(WorkflowSetError, ValueError):
    """Finalizing left tunable parameters without a value."""

    def __init__(self, entry_id: str, missing: list[str]) -> None:
        names = ", ".join(missing)
        super().__init__(f"unresolved tuning parameter(s) for '{entry_id}': {names}")
        self.entry_id = entry_id
        self.missing = missing


class IncompatibilityWarning(UserWarning):
    """One or more combinations were skipped while building a set."""


class ExecutionFailureWarning(UserWarning):
    """An operation failed for a single entry; the batch continued."""


class SkippedEntryWarning(UserWarning):
    """An entry already had a result and was not re-run."""

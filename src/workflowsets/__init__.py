"""
workflowsets - Tune many preprocessor/model combinations at once.

Build a set, map one tuning operation over it, rank what came back.
"""

from workflowsets.accessors import (
    finalize,
    pull_model,
    pull_preprocessor,
    pull_workflow,
    remove_options,
    replace_workflow,
    update_options,
)
from workflowsets.builder import workflow_set
from workflowsets.errors import (
    AggregationError,
    ConfigurationError,
    ExecutionFailureWarning,
    IncompatibilityWarning,
    IncompatibleCombination,
    NoResultError,
    SkippedEntryWarning,
    UnknownIdError,
    UnresolvedParameterError,
    WorkflowSetError,
)
from workflowsets.executor import ProgressReporter, workflow_map
from workflowsets.operations import Metric, registry
from workflowsets.rank import (
    collect_metrics,
    pull_best_config,
    pull_result,
    rank_results,
)
from workflowsets.resample import ResamplePlan, ResampleSplit
from workflowsets.workflow import Compatibility, Workflow
from workflowsets.workflow_set import WorkflowEntry, WorkflowSet

__version__ = "0.1.0"
__all__ = [
    "AggregationError",
    "Compatibility",
    "ConfigurationError",
    "ExecutionFailureWarning",
    "IncompatibilityWarning",
    "IncompatibleCombination",
    "Metric",
    "NoResultError",
    "ProgressReporter",
    "ResamplePlan",
    "ResampleSplit",
    "SkippedEntryWarning",
    "UnknownIdError",
    "UnresolvedParameterError",
    "Workflow",
    "WorkflowEntry",
    "WorkflowSet",
    "WorkflowSetError",
    "__version__",
    "collect_metrics",
    "finalize",
    "pull_best_config",
    "pull_model",
    "pull_preprocessor",
    "pull_result",
    "pull_workflow",
    "rank_results",
    "registry",
    "remove_options",
    "replace_workflow",
    "update_options",
    "workflow_map",
    "workflow_set",
]

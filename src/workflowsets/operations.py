# Copyright (c) Syntropy Systems
"""Registry of batch operations and the built-in tuning routines."""
from __future__ import annotations

import itertools
import math
import statistics
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, cast

from workflowsets.errors import ConfigurationError
from workflowsets.models.results import METRIC_DIRECTIONS, MetricEstimate, TuneResult

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from workflowsets.models.results import Direction, JSONValue
    from workflowsets.resample import ResamplePlan

Operation = Callable[..., Any]


@dataclass(frozen=True)
class Metric:
    """A named metric function with its natural direction.

    ``direction`` may be left out for metrics in ``METRIC_DIRECTIONS``;
    any other metric has to state it.
    """

    name: str
    fn: Callable[[Any, Any], float]
    direction: Direction | None = None

    def __post_init__(self) -> None:
        if self.direction is None:
            direction = METRIC_DIRECTIONS.get(self.name)
            if direction is None:
                msg = f"No direction given for unknown metric {self.name!r}"
                raise ValueError(msg)
            object.__setattr__(self, "direction", direction)

    def __call__(self, fitted: Any, data: Any) -> float:
        return float(self.fn(fitted, data))


class OperationRegistry:
    """Maps operation names to callables ``(workflow, resamples, **options)``."""

    def __init__(self) -> None:
        self._operations: dict[str, Operation] = {}

    def register(
        self, name: str, fn: Operation | None = None
    ) -> Callable[[Operation], Operation] | Operation:
        """Register an operation, directly or as a decorator."""
        if not name:
            msg = "Operation name must be a non-empty string"
            raise ConfigurationError(msg)

        def decorator(func: Operation) -> Operation:
            self._operations[name] = func
            return func

        if fn is not None:
            return decorator(fn)
        return decorator

    def get(self, name: str) -> Operation:
        """Look up an operation by name."""
        try:
            return self._operations[name]
        except KeyError:
            available = ", ".join(sorted(self._operations)) or "none"
            msg = f"Unknown operation '{name}' (available: {available})"
            raise ConfigurationError(msg) from None

    def names(self) -> list[str]:
        return sorted(self._operations)

    def __contains__(self, name: object) -> bool:
        return name in self._operations


def expand_grid(
    grid: Mapping[str, Iterable[JSONValue]] | Iterable[Mapping[str, JSONValue]],
) -> list[dict[str, JSONValue]]:
    """Expand a parameter grid into a list of configurations.

    A mapping of parameter name to candidate values is expanded into every
    combination. A sequence of mappings is taken as explicit configurations.
    """
    if isinstance(grid, Mapping):
        param_names: list[str] = []
        param_values: list[list[JSONValue]] = []
        for name, values in cast("Mapping[str, Iterable[JSONValue]]", grid).items():
            if isinstance(values, (str, bytes)) or not hasattr(values, "__iter__"):
                msg = f"Grid parameter '{name}' must be a list of values"
                raise ValueError(msg)
            param_names.append(name)
            param_values.append(list(values))
        return [
            dict(zip(param_names, combo))
            for combo in itertools.product(*param_values)
        ]

    configs = [dict(c) for c in cast("Iterable[Mapping[str, JSONValue]]", grid)]
    if not configs:
        msg = "Grid has no configurations"
        raise ValueError(msg)
    return configs


def _resolve_metrics(metrics: Iterable[Metric] | Metric | None) -> list[Metric]:
    if metrics is None:
        msg = "A 'metrics' option is required"
        raise ValueError(msg)
    metric_list = [metrics] if isinstance(metrics, Metric) else list(metrics)
    if not metric_list:
        msg = "At least one metric is required"
        raise ValueError(msg)
    return metric_list


def summarize(
    params: dict[str, JSONValue], metric: Metric, values: list[float]
) -> MetricEstimate:
    """Reduce per-split values to mean, standard error and count.

    A NaN on any split gives a NaN mean and no standard error.
    """
    n = len(values)
    std_err: float | None = None
    if any(math.isnan(v) for v in values):
        mean = math.nan
    else:
        mean = statistics.fmean(values)
        if n > 1:
            std_err = statistics.stdev(values) / math.sqrt(n)
    return MetricEstimate(
        params=params,
        metric=metric.name,
        mean=mean,
        std_err=std_err,
        n=n,
        direction=metric.direction,
    )


def _evaluate(
    workflow: Any,
    resamples: ResamplePlan,
    configs: list[dict[str, JSONValue]],
    metrics: list[Metric],
) -> Iterator[MetricEstimate]:
    if len(resamples) == 0:
        msg = "Resampling plan has no splits"
        raise ValueError(msg)

    for params in configs:
        candidate = workflow.finalize(params) if params else workflow
        scores: dict[str, list[float]] = {m.name: [] for m in metrics}
        for split in resamples:
            fitted = candidate.fit(split.analysis)
            for metric in metrics:
                scores[metric.name].append(metric(fitted, split.assessment))
        for metric in metrics:
            yield summarize(params, metric, scores[metric.name])


def tune_grid(
    workflow: Any,
    resamples: ResamplePlan,
    *,
    grid: Mapping[str, Iterable[JSONValue]]
    | Iterable[Mapping[str, JSONValue]]
    | None = None,
    metrics: Iterable[Metric] | Metric | None = None,
) -> TuneResult:
    """Evaluate every grid configuration of a workflow over the resamples."""
    metric_list = _resolve_metrics(metrics)
    tunable = workflow.tunable_parameters()
    configs = expand_grid(grid) if grid is not None else [{}]

    missing = sorted({p for p in tunable for c in configs if p not in c})
    if missing:
        msg = f"Grid does not cover tunable parameter(s): {', '.join(missing)}"
        raise ValueError(msg)

    estimates = list(_evaluate(workflow, resamples, configs, metric_list))
    return TuneResult(operation="tune_grid", estimates=estimates)


def fit_resamples(
    workflow: Any,
    resamples: ResamplePlan,
    *,
    metrics: Iterable[Metric] | Metric | None = None,
) -> TuneResult:
    """Evaluate a workflow without tunable parameters over the resamples."""
    metric_list = _resolve_metrics(metrics)
    tunable = workflow.tunable_parameters()
    if tunable:
        msg = (
            "fit_resamples cannot evaluate tunable parameter(s): "
            f"{', '.join(tunable)}; use tune_grid"
        )
        raise ValueError(msg)

    estimates = list(_evaluate(workflow, resamples, [{}], metric_list))
    return TuneResult(operation="fit_resamples", estimates=estimates)


registry = OperationRegistry()
_ = registry.register("tune_grid", tune_grid)
_ = registry.register("fit_resamples", fit_resamples)

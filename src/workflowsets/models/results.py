# Copyright (c) Syntropy Systems
"""Pydantic models for tuning results and ranking rows."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from typing import Annotated, Any, ClassVar, Literal, Union, cast

from pydantic import BaseModel, ConfigDict, Field, JsonValue, model_validator
from typing_extensions import Self, TypeAlias

JSONValue: TypeAlias = JsonValue
Direction: TypeAlias = Literal["maximize", "minimize"]

# Natural direction of common metrics, used when a result does not say.
METRIC_DIRECTIONS: dict[str, Direction] = {
    "accuracy": "maximize",
    "bal_accuracy": "maximize",
    "f_meas": "maximize",
    "kap": "maximize",
    "mcc": "maximize",
    "pr_auc": "maximize",
    "precision": "maximize",
    "recall": "maximize",
    "roc_auc": "maximize",
    "rsq": "maximize",
    "sens": "maximize",
    "spec": "maximize",
    "brier_class": "minimize",
    "huber_loss": "minimize",
    "mae": "minimize",
    "mape": "minimize",
    "mn_log_loss": "minimize",
    "mse": "minimize",
    "rmse": "minimize",
}


class WorkflowSetBaseModel(BaseModel):
    """Base model with shared config for workflowsets schemas."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        ser_json_inf_nan="constants",
    )


def config_key(config: Mapping[str, JSONValue]) -> str:
    """Return a stable key for a hyperparameter configuration."""
    return json.dumps(config, sort_keys=True, default=str)


class MetricEstimate(WorkflowSetBaseModel):
    """Resampled estimate of one metric for one configuration."""

    params: dict[str, JSONValue] = Field(default_factory=dict)
    config_id: str | None = None
    metric: str
    mean: float
    std_err: float | None = None
    n: int = 0
    direction: Direction

    @model_validator(mode="before")
    @classmethod
    def _infer_direction(cls, data: object) -> object:
        if isinstance(data, dict) and data.get("direction") is None:
            data_dict = cast("dict[str, object]", data)
            metric = data_dict.get("metric")
            if isinstance(metric, str) and metric in METRIC_DIRECTIONS:
                return {**data_dict, "direction": METRIC_DIRECTIONS[metric]}
            msg = f"No direction given for unknown metric {metric!r}"
            raise ValueError(msg)
        return data


class TuneResult(WorkflowSetBaseModel):
    """Normalized result of one tuning/evaluation call."""

    operation: str | None = None
    estimates: list[MetricEstimate] = Field(default_factory=list)
    raw: Any = Field(default=None, exclude=True)

    @model_validator(mode="after")
    def _assign_config_ids(self) -> Self:
        ids: dict[str, str] = {}
        used = {e.config_id for e in self.estimates if e.config_id is not None}
        counter = 0
        for estimate in self.estimates:
            key = config_key(estimate.params)
            if estimate.config_id is not None:
                _ = ids.setdefault(key, estimate.config_id)
                continue
            if key not in ids:
                counter += 1
                while f"config_{counter:02d}" in used:
                    counter += 1
                ids[key] = f"config_{counter:02d}"
                used.add(ids[key])
            estimate.config_id = ids[key]
        return self

    def metric_names(self) -> list[str]:
        """Return metric names in first-seen order."""
        return list(dict.fromkeys(e.metric for e in self.estimates))

    def for_metric(self, metric: str) -> list[MetricEstimate]:
        """Return the estimates of a single metric."""
        return [e for e in self.estimates if e.metric == metric]


class NotRun(WorkflowSetBaseModel):
    """Entry has not been executed."""

    status: Literal["not_run"] = "not_run"


class Success(WorkflowSetBaseModel):
    """Entry executed and produced a result."""

    status: Literal["completed"] = "completed"
    result: TuneResult
    elapsed: float | None = None


class Failure(WorkflowSetBaseModel):
    """Entry executed and its operation raised."""

    status: Literal["failed"] = "failed"
    message: str
    error_type: str | None = None
    elapsed: float | None = None


EntryResult: TypeAlias = Annotated[
    Union[NotRun, Success, Failure], Field(discriminator="status")
]


class RankingRow(WorkflowSetBaseModel):
    """One row of the ranking table."""

    id: str
    preprocessor_name: str
    model_name: str
    config_id: str
    params: dict[str, JSONValue] = Field(default_factory=dict)
    metric: str
    direction: Direction
    mean: float
    std_err: float | None = None
    n: int
    rank: int | None = None


def _as_estimate(item: object) -> MetricEstimate:
    if isinstance(item, MetricEstimate):
        return item
    if isinstance(item, Mapping):
        return MetricEstimate.model_validate(dict(cast("Mapping[str, object]", item)))
    if isinstance(item, tuple) and len(item) in (5, 6):
        fields = ("params", "metric", "mean", "std_err", "n", "direction")
        return MetricEstimate.model_validate(dict(zip(fields, item)))
    msg = f"Cannot read a metric estimate from {type(item).__name__}"
    raise TypeError(msg)


def coerce_result(obj: object, operation: str | None = None) -> TuneResult:
    """Normalize a result object into a TuneResult.

    Accepts a TuneResult, an object with a ``collect_metrics()`` method, or
    an iterable of estimates. Estimates may be MetricEstimate instances,
    mappings, or ``(params, metric, mean, std_err, n[, direction])`` tuples.
    """
    if isinstance(obj, TuneResult):
        if obj.operation is None:
            obj.operation = operation
        return obj

    collect = getattr(obj, "collect_metrics", None)
    if callable(collect):
        items = cast("Iterable[object]", collect())
    elif isinstance(obj, Iterable) and not isinstance(obj, (str, bytes, Mapping)):
        items = cast("Iterable[object]", obj)
    else:
        msg = f"Unsupported result type: {type(obj).__name__}"
        raise TypeError(msg)

    estimates = [_as_estimate(item) for item in items]
    return TuneResult(operation=operation, estimates=estimates, raw=obj)

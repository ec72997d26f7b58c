# Copyright (c) Syntropy Systems
"""Ranking and extraction of results across a workflow set."""
from __future__ import annotations

import math
from typing import TYPE_CHECKING, Union

from workflowsets.errors import AggregationError, NoResultError
from workflowsets.models.results import (
    Failure,
    NotRun,
    RankingRow,
    Success,
    TuneResult,
)

if TYPE_CHECKING:
    from workflowsets.models.results import Direction, JSONValue
    from workflowsets.workflow_set import WorkflowEntry, WorkflowSet

# Row plus its position inside the entry's result, used as last tie-break
_Ordered = tuple[RankingRow, int]


def _entry_rows(entry: WorkflowEntry, metric: str | None = None) -> list[_Ordered]:
    if not isinstance(entry.result, Success):
        return []
    rows: list[_Ordered] = []
    for position, estimate in enumerate(entry.result.result.estimates):
        if metric is not None and estimate.metric != metric:
            continue
        row = RankingRow(
            id=entry.id,
            preprocessor_name=entry.preprocessor_name,
            model_name=entry.model_name,
            config_id=estimate.config_id or "",
            params=estimate.params,
            metric=estimate.metric,
            direction=estimate.direction,
            mean=estimate.mean,
            std_err=estimate.std_err,
            n=estimate.n,
        )
        rows.append((row, position))
    return rows


def _direction(rows: list[_Ordered], metric: str) -> Direction:
    directions = {row.direction for row, _ in rows}
    if len(directions) > 1:
        msg = f"Metric '{metric}' has conflicting directions across results"
        raise AggregationError(msg)
    return directions.pop()


def _score_key(row: RankingRow, direction: Direction) -> tuple[float, float]:
    """Smaller is better: direction-adjusted mean, then standard error."""
    if math.isnan(row.mean):
        mean_key = math.inf
    else:
        mean_key = -row.mean if direction == "maximize" else row.mean
    std_err = row.std_err
    se_key = math.inf if std_err is None or math.isnan(std_err) else std_err
    return (mean_key, se_key)


def _best(rows: list[_Ordered], direction: Direction) -> _Ordered:
    return min(rows, key=lambda item: (_score_key(item[0], direction), item[1]))


def rank_results(
    wset: WorkflowSet,
    metric: str,
    select_best: bool = False,
) -> list[RankingRow]:
    """Rank every configuration of every entry by one metric.

    Entries that were not run, failed, or lack the metric are skipped.
    Rows are ordered by the direction-adjusted mean, then standard error,
    then id, then configuration order. ``rank`` is a dense rank over
    (mean, std_err, id) with 1 for the best row.

    Args:
        wset: Executed workflow set
        metric: Metric name to rank by
        select_best: Keep only the best configuration of each entry

    Raises:
        AggregationError: No entry has a usable result, or none has the metric

    """
    completed = wset.completed()
    if not completed:
        msg = "no results to rank"
        raise AggregationError(msg)

    per_entry = [
        rows for rows in (_entry_rows(e, metric) for e in completed) if rows
    ]
    if not per_entry:
        available: set[str] = set()
        for entry in completed:
            if isinstance(entry.result, Success):
                available.update(entry.result.result.metric_names())
        msg = (
            f"metric '{metric}' not found in any result "
            f"(available: {', '.join(sorted(available)) or 'none'})"
        )
        raise AggregationError(msg)

    direction = _direction([row for rows in per_entry for row in rows], metric)
    if select_best:
        per_entry = [[_best(rows, direction)] for rows in per_entry]

    ordered = sorted(
        (item for rows in per_entry for item in rows),
        key=lambda item: (_score_key(item[0], direction), item[0].id, item[1]),
    )

    ranked: list[RankingRow] = []
    previous: tuple[tuple[float, float], str] | None = None
    current_rank = 0
    for row, _ in ordered:
        key = (_score_key(row, direction), row.id)
        if key != previous:
            current_rank += 1
            previous = key
        ranked.append(row.model_copy(update={"rank": current_rank}))
    return ranked


def collect_metrics(wset: WorkflowSet) -> list[RankingRow]:
    """Return every estimate of every successful entry, unranked."""
    return [row for entry in wset for row, _ in _entry_rows(entry)]


def pull_result(wset: WorkflowSet, entry_id: str) -> Union[TuneResult, Failure]:
    """Return the stored result of an entry.

    A failed entry returns its Failure marker.

    Raises:
        UnknownIdError: The id is not in the set
        NoResultError: The entry was never executed

    """
    entry = wset.get(entry_id)
    result = entry.result
    if isinstance(result, NotRun):
        raise NoResultError(entry_id)
    if isinstance(result, Failure):
        return result
    return result.result


def pull_best_config(
    wset: WorkflowSet, entry_id: str, metric: str
) -> dict[str, JSONValue]:
    """Return the best hyperparameter configuration of one entry."""
    entry = wset.get(entry_id)
    if isinstance(entry.result, NotRun):
        raise NoResultError(entry_id)
    if isinstance(entry.result, Failure):
        msg = f"'{entry_id}' failed and has no usable result: {entry.result.message}"
        raise AggregationError(msg)

    rows = _entry_rows(entry, metric)
    if not rows:
        msg = f"'{entry_id}' has no result for metric '{metric}'"
        raise AggregationError(msg)

    best, _ = _best(rows, _direction(rows, metric))
    return dict(best.params)

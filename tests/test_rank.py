# Copyright (c) Syntropy Systems
"""Tests for ranking and pulling results."""

from __future__ import annotations

import math
from typing import Any

import fakes
import pytest

from workflowsets import (
    AggregationError,
    Metric,
    NoResultError,
    UnknownIdError,
    WorkflowEntry,
    WorkflowSet,
    collect_metrics,
    pull_best_config,
    pull_result,
    rank_results,
    workflow_map,
    workflow_set,
)
from workflowsets.models.results import Failure, Success, TuneResult


def _success(*estimates: dict[str, Any]) -> Success:
    return Success(result=TuneResult(estimates=list(estimates)))


def _set(results: dict[str, Any]) -> WorkflowSet:
    entries = []
    for entry_id, result in results.items():
        prep, model = entry_id.split("_", 1)
        entry = WorkflowEntry(
            id=entry_id, preprocessor_name=prep, model_name=model, workflow=None
        )
        if result is not None:
            entry.result = result
        entries.append(entry)
    return WorkflowSet(entries)


def _est(metric: str, mean: float, **extra: Any) -> dict[str, Any]:
    return {"metric": metric, "mean": mean, "n": 5, **extra}


class TestRankResults:
    """Tests for rank_results."""

    def test_maximize_orders_descending(self) -> None:
        wset = _set(
            {
                "p_a": _success(_est("accuracy", 0.9)),
                "p_b": _success(_est("accuracy", 0.7)),
                "p_c": _success(_est("accuracy", 0.8)),
            }
        )

        rows = rank_results(wset, "accuracy")

        assert [r.id for r in rows] == ["p_a", "p_c", "p_b"]
        assert [r.rank for r in rows] == [1, 2, 3]

    def test_minimize_orders_ascending(self) -> None:
        wset = _set(
            {
                "p_a": _success(_est("rmse", 0.9)),
                "p_b": _success(_est("rmse", 0.7)),
                "p_c": _success(_est("rmse", 0.8)),
            }
        )

        rows = rank_results(wset, "rmse")

        assert [r.id for r in rows] == ["p_b", "p_c", "p_a"]
        assert rows[0].direction == "minimize"

    def test_explicit_direction_for_custom_metric(self) -> None:
        wset = _set(
            {
                "p_a": _success(_est("latency", 12.0, direction="minimize")),
                "p_b": _success(_est("latency", 8.0, direction="minimize")),
            }
        )
        assert [r.id for r in rank_results(wset, "latency")] == ["p_b", "p_a"]

    def test_all_configs_ranked_without_select_best(self) -> None:
        wset = _set(
            {
                "p_a": _success(
                    _est("accuracy", 0.6, params={"k": 1}),
                    _est("accuracy", 0.9, params={"k": 2}),
                ),
                "p_b": _success(_est("accuracy", 0.8)),
            }
        )

        rows = rank_results(wset, "accuracy")

        assert [(r.id, r.config_id) for r in rows] == [
            ("p_a", "config_02"),
            ("p_b", "config_01"),
            ("p_a", "config_01"),
        ]
        assert rows[0].params == {"k": 2}

    def test_select_best_keeps_one_row_per_entry(self) -> None:
        wset = _set(
            {
                "p_a": _success(
                    _est("accuracy", 0.6, params={"k": 1}),
                    _est("accuracy", 0.9, params={"k": 2}),
                ),
                "p_b": _success(_est("accuracy", 0.8)),
            }
        )

        rows = rank_results(wset, "accuracy", select_best=True)

        assert [r.id for r in rows] == ["p_a", "p_b"]
        assert rows[0].params == {"k": 2}
        assert len({r.id for r in rows}) == len(rows)

    def test_only_requested_metric_is_returned(self) -> None:
        wset = _set(
            {
                "p_a": _success(_est("accuracy", 0.9), _est("rmse", 0.1)),
                "p_b": _success(_est("accuracy", 0.8), _est("rmse", 0.2)),
            }
        )
        rows = rank_results(wset, "rmse")
        assert {r.metric for r in rows} == {"rmse"}
        assert len(rows) == 2

    def test_ties_broken_by_std_err_then_id(self) -> None:
        wset = _set(
            {
                "p_c": _success(_est("accuracy", 0.8, std_err=0.01)),
                "p_b": _success(_est("accuracy", 0.8, std_err=0.02)),
                "p_a": _success(_est("accuracy", 0.8, std_err=0.02)),
            }
        )

        rows = rank_results(wset, "accuracy")

        assert [r.id for r in rows] == ["p_c", "p_a", "p_b"]
        assert [r.rank for r in rows] == [1, 2, 3]

    def test_ranking_does_not_depend_on_insertion_order(self) -> None:
        results = {
            "p_a": _success(_est("accuracy", 0.8)),
            "p_b": _success(_est("accuracy", 0.8)),
            "p_c": _success(_est("accuracy", 0.9)),
        }
        forward = rank_results(_set(results), "accuracy")
        backward = rank_results(_set(dict(reversed(list(results.items())))), "accuracy")
        assert [r.id for r in forward] == [r.id for r in backward]

    def test_nan_mean_ranks_last(self) -> None:
        wset = _set(
            {
                "p_a": _success(_est("accuracy", math.nan)),
                "p_b": _success(_est("accuracy", 0.1)),
            }
        )
        assert [r.id for r in rank_results(wset, "accuracy")] == ["p_b", "p_a"]

    def test_failed_and_unrun_entries_skipped(self) -> None:
        wset = _set(
            {
                "p_a": _success(_est("accuracy", 0.9)),
                "p_b": Failure(message="boom"),
                "p_c": None,
            }
        )
        assert [r.id for r in rank_results(wset, "accuracy")] == ["p_a"]

    def test_no_results_fails(self) -> None:
        wset = _set({"p_a": Failure(message="boom"), "p_b": None})
        with pytest.raises(AggregationError, match="no results to rank"):
            _ = rank_results(wset, "accuracy")

    def test_unknown_metric_lists_available(self) -> None:
        wset = _set({"p_a": _success(_est("accuracy", 0.9), _est("rmse", 0.1))})
        with pytest.raises(AggregationError, match=r"available: accuracy, rmse"):
            _ = rank_results(wset, "roc_auc")

    def test_conflicting_directions_fail(self) -> None:
        wset = _set(
            {
                "p_a": _success(_est("score", 0.9, direction="maximize")),
                "p_b": _success(_est("score", 0.8, direction="minimize")),
            }
        )
        with pytest.raises(AggregationError, match="conflicting directions"):
            _ = rank_results(wset, "score")


class TestPull:
    """Tests for pulling individual results."""

    def test_pull_result(self) -> None:
        wset = _set({"p_a": _success(_est("accuracy", 0.9))})
        result = pull_result(wset, "p_a")
        assert isinstance(result, TuneResult)
        assert result.estimates[0].mean == 0.9

    def test_pull_result_failure_marker(self) -> None:
        wset = _set({"p_a": Failure(message="boom")})
        result = pull_result(wset, "p_a")
        assert isinstance(result, Failure)
        assert result.message == "boom"

    def test_pull_result_unknown_id(self) -> None:
        wset = _set({"p_a": None})
        with pytest.raises(UnknownIdError, match="unknown id: 'p_z'"):
            _ = pull_result(wset, "p_z")

    def test_pull_result_not_run(self) -> None:
        wset = _set({"p_a": None})
        with pytest.raises(NoResultError, match="no result computed for 'p_a'"):
            _ = pull_result(wset, "p_a")

    def test_pull_best_config(self) -> None:
        wset = _set(
            {
                "p_a": _success(
                    _est("rmse", 0.3, params={"k": 1}),
                    _est("rmse", 0.2, params={"k": 2}),
                    _est("rmse", 0.4, params={"k": 3}),
                )
            }
        )
        assert pull_best_config(wset, "p_a", "rmse") == {"k": 2}

    def test_pull_best_config_failed_entry(self) -> None:
        wset = _set({"p_a": Failure(message="boom")})
        with pytest.raises(AggregationError, match="boom"):
            _ = pull_best_config(wset, "p_a", "rmse")

    def test_collect_metrics(self) -> None:
        wset = _set(
            {
                "p_a": _success(_est("accuracy", 0.9), _est("rmse", 0.1)),
                "p_b": Failure(message="boom"),
                "p_c": _success(_est("accuracy", 0.7)),
            }
        )
        rows = collect_metrics(wset)
        assert [(r.id, r.metric) for r in rows] == [
            ("p_a", "accuracy"),
            ("p_a", "rmse"),
            ("p_c", "accuracy"),
        ]
        assert all(r.rank is None for r in rows)


class TestRankExecutedSet:
    """Ranking a set run with the built-in tune_grid."""

    def test_knn_best_neighbors(self, wset, config) -> None:
        _ = workflow_map(
            wset,
            resamples=fakes.folds,
            options={"metrics": [fakes.accuracy]},
            config=config,
        )

        assert pull_best_config(wset, "plain_knn", "accuracy") == {"neighbors": 5}

        rows = rank_results(wset, "accuracy", select_best=True)
        assert [r.id for r in rows] == [
            "scaled_cart",
            "plain_cart",
            "scaled_knn",
            "plain_knn",
            "scaled_glm",
            "plain_glm",
        ]
        assert rows[0].mean == pytest.approx(0.86)
        assert rows[0].n == 5

    def test_direction_taken_from_metric_name(self, config) -> None:
        wset = workflow_set({"plain": fakes.plain}, {"glm": fakes.glm, "cart": fakes.cart})
        rmse = Metric("rmse", lambda fitted, data: 1.0 - fitted.predict(data))

        _ = workflow_map(
            wset,
            "fit_resamples",
            resamples=fakes.folds,
            options={"metrics": rmse},
            config=config,
        )

        rows = rank_results(wset, "rmse")
        assert [(r.id, r.rank) for r in rows] == [("plain_cart", 1), ("plain_glm", 2)]
        assert rows[0].direction == "minimize"
        assert rows[0].mean == pytest.approx(0.15)

    def test_nan_scores_complete_and_rank_last(self, config) -> None:
        wset = workflow_set({"plain": fakes.plain}, {"glm": fakes.glm, "cart": fakes.cart})

        def rsq(fitted: Any, data: float) -> float:
            if fitted.fitted_model.model.name == "cart":
                return math.nan
            return fitted.predict(data)

        _ = workflow_map(
            wset,
            "fit_resamples",
            resamples=fakes.folds,
            options={"metrics": Metric("rsq", rsq)},
            config=config,
        )

        assert all(e.status == "completed" for e in wset)
        rows = rank_results(wset, "rsq")
        assert [r.id for r in rows] == ["plain_glm", "plain_cart"]
        assert math.isnan(rows[1].mean)

# Copyright (c) Syntropy Systems
"""Tests for id generation and building workflow sets."""

from __future__ import annotations

import fakes
import pytest

from workflowsets import (
    Compatibility,
    ConfigurationError,
    IncompatibilityWarning,
    IncompatibleCombination,
    Workflow,
    workflow_set,
)
from workflowsets.ids import check_unique_ids, make_id, validate_names


class TestIds:
    """Tests for identifier generation."""

    def test_make_id(self) -> None:
        assert make_id("plain", "cart") == "plain_cart"

    def test_validate_names_rejects_empty(self) -> None:
        with pytest.raises(ConfigurationError, match="non-empty"):
            _ = validate_names(["ok", ""], "model")

    def test_validate_names_rejects_non_strings(self) -> None:
        with pytest.raises(ConfigurationError):
            _ = validate_names(["ok", 3], "model")

    def test_validate_names_rejects_duplicates(self) -> None:
        with pytest.raises(ConfigurationError, match="Duplicate model names: a"):
            _ = validate_names(["a", "b", "a"], "model")

    @pytest.mark.parametrize("name", ["my model", "a/b", "knn:5", "x\ty"])
    def test_validate_names_rejects_unsafe_characters(self, name: str) -> None:
        with pytest.raises(ConfigurationError, match="Invalid model name"):
            _ = validate_names(["ok", name], "model")

    def test_validate_names_accepts_dots_and_hyphens(self) -> None:
        assert validate_names(["glm.v2", "rand-forest"], "model") == [
            "glm.v2",
            "rand-forest",
        ]

    def test_unsafe_name_fails_the_build(self) -> None:
        with pytest.raises(ConfigurationError, match="'log scale'"):
            _ = workflow_set({"log scale": fakes.plain}, {"cart": fakes.cart})

    def test_check_unique_ids_names_collisions(self) -> None:
        with pytest.raises(ConfigurationError, match="a_b_c"):
            check_unique_ids(["a_b_c", "x_y", "a_b_c"])


class TestCrossMode:
    """Tests for the default cross join."""

    def test_cross_builds_all_combinations(self, preprocessors, models) -> None:
        wset = workflow_set(preprocessors, models)

        assert len(wset) == 6
        assert len(set(wset.ids)) == 6
        assert wset.ids == [
            "plain_glm",
            "plain_cart",
            "plain_knn",
            "scaled_glm",
            "scaled_cart",
            "scaled_knn",
        ]

    @pytest.mark.parametrize(("p", "m"), [(1, 1), (1, 4), (3, 2), (4, 4)])
    def test_cross_size_is_product(self, p: int, m: int) -> None:
        preps = {f"p{i}": fakes.FakePreprocessor() for i in range(p)}
        mods = {f"m{i}": fakes.FakeModel(f"m{i}", 0.5) for i in range(m)}

        wset = workflow_set(preps, mods)

        assert len(wset) == p * m
        assert len(set(wset.ids)) == p * m

    def test_entries_start_unrun(self, wset) -> None:
        for entry in wset:
            assert entry.status == "not_run"
            assert not entry.has_result

    def test_entries_carry_provenance(self, wset) -> None:
        entry = wset["scaled_cart"]
        assert entry.preprocessor_name == "scaled"
        assert entry.model_name == "cart"
        assert isinstance(entry.workflow, Workflow)
        assert entry.workflow.model is fakes.cart

    def test_accepts_name_object_pairs(self) -> None:
        wset = workflow_set([("plain", fakes.plain)], [("cart", fakes.cart)])
        assert wset.ids == ["plain_cart"]

    def test_duplicate_pair_names_fail(self) -> None:
        with pytest.raises(ConfigurationError, match="Duplicate preprocessor"):
            _ = workflow_set(
                [("plain", fakes.plain), ("plain", fakes.scaled)],
                {"cart": fakes.cart},
            )

    def test_colliding_ids_fail_without_renaming(self) -> None:
        preps = {"a": fakes.plain, "a_b": fakes.scaled}
        mods = {"b_c": fakes.cart, "c": fakes.glm}

        with pytest.raises(ConfigurationError, match="a_b_c"):
            _ = workflow_set(preps, mods)

    def test_unknown_mode_fails(self, preprocessors, models) -> None:
        with pytest.raises(ConfigurationError, match="Unknown combination mode"):
            _ = workflow_set(preprocessors, models, mode="diagonal")  # type: ignore[arg-type]


class TestPairwiseMode:
    """Tests for pairwise joins."""

    def test_pairwise_pairs_in_order(self) -> None:
        wset = workflow_set(
            {"plain": fakes.plain, "scaled": fakes.scaled},
            {"cart": fakes.cart, "glm": fakes.glm},
            mode="pairwise",
        )
        assert wset.ids == ["plain_cart", "scaled_glm"]

    def test_pairwise_size_mismatch_fails(self, preprocessors, models) -> None:
        with pytest.raises(ConfigurationError, match="got 2 and 3"):
            _ = workflow_set(preprocessors, models, mode="pairwise")


class TestOptions:
    """Tests for per-entry options at build time."""

    def test_options_attached_to_entries(self, wset) -> None:
        assert wset["plain_knn"].options == {"grid": {"neighbors": [3, 5, 7]}}
        assert wset["plain_cart"].options == {}

    def test_options_are_copied(self, preprocessors, models) -> None:
        opts = {"grid": {"neighbors": [3]}}
        wset = workflow_set(preprocessors, models, options={"plain_knn": opts})
        opts["extra"] = 1
        assert "extra" not in wset["plain_knn"].options

    def test_options_for_unknown_id_fail(self, preprocessors, models) -> None:
        with pytest.raises(ConfigurationError, match="plain_svm"):
            _ = workflow_set(preprocessors, models, options={"plain_svm": {}})

    def test_non_mapping_options_fail(self, preprocessors, models) -> None:
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            _ = workflow_set(
                preprocessors, models, options={"plain_cart": ["grid"]}  # type: ignore[dict-item]
            )


class TestCompatibility:
    """Tests for skipping incompatible combinations."""

    def test_incompatible_pair_is_skipped_with_warning(self, models) -> None:
        preps = {
            "plain": fakes.plain,
            "picky": fakes.FakePreprocessor(rejects=("knn",)),
        }

        with pytest.warns(IncompatibilityWarning, match="picky_knn") as record:
            wset = workflow_set(preps, models)

        assert len(record) == 1
        assert "cannot feed knn" in str(record[0].message)
        assert len(wset) == 5
        assert "picky_knn" not in wset
        assert "plain_knn" in wset

    def test_all_skipped_pairs_in_one_warning(self, models) -> None:
        preps = {"picky": fakes.FakePreprocessor(rejects=("knn", "glm"))}

        with pytest.warns(IncompatibilityWarning) as record:
            wset = workflow_set(preps, models)

        assert len(record) == 1
        message = str(record[0].message)
        assert "picky_glm" in message
        assert "picky_knn" in message
        assert wset.ids == ["picky_cart"]

    def test_custom_check_hook(self, preprocessors, models) -> None:
        def no_glm(prep: object, model: fakes.FakeModel) -> Compatibility:
            if model.name == "glm":
                return Compatibility.incompatible("glm disabled")
            return Compatibility.ok()

        with pytest.warns(IncompatibilityWarning, match="glm disabled"):
            wset = workflow_set(preprocessors, models, check=no_glm)

        assert wset.ids == ["plain_cart", "plain_knn", "scaled_cart", "scaled_knn"]

    def test_composer_can_signal_incompatibility(self, preprocessors) -> None:
        def composer(prep: object, model: fakes.FakeModel) -> Workflow:
            if model.name == "cart":
                msg = "no trees today"
                raise IncompatibleCombination(msg)
            return Workflow(prep, model)

        with pytest.warns(IncompatibilityWarning, match="no trees today"):
            wset = workflow_set(
                preprocessors, {"cart": fakes.cart, "glm": fakes.glm}, composer=composer
            )

        assert wset.ids == ["plain_glm", "scaled_glm"]

    def test_options_for_skipped_entry_are_dropped(self, models) -> None:
        preps = {"picky": fakes.FakePreprocessor(rejects=("knn",))}

        with pytest.warns(IncompatibilityWarning):
            wset = workflow_set(preps, models, options={"picky_knn": {"grid": {}}})

        assert "picky_knn" not in wset

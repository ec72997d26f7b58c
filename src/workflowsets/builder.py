# Copyright (c) Syntropy Systems
"""Combination of preprocessors and model specs into a workflow set."""
from __future__ import annotations

import itertools
import logging
import warnings
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Literal, cast

from workflowsets.errors import (
    ConfigurationError,
    IncompatibilityWarning,
    IncompatibleCombination,
)
from workflowsets.ids import check_unique_ids, make_id, validate_names
from workflowsets.workflow import check_compatibility, compose_workflow
from workflowsets.workflow_set import WorkflowEntry, WorkflowSet

if TYPE_CHECKING:
    from collections.abc import Iterable

    from workflowsets.workflow import CompatibilityCheck, Composer

logger = logging.getLogger(__name__)


def _as_pairs(collection: object, kind: str) -> list[tuple[str, Any]]:
    """Turn a mapping or a sequence of (name, object) pairs into pairs."""
    if isinstance(collection, Mapping):
        pairs = list(cast("Mapping[str, Any]", collection).items())
    else:
        try:
            pairs = [tuple(item) for item in cast("Iterable[Any]", collection)]
        except TypeError as e:
            msg = f"{kind}s must be a mapping or a sequence of (name, object) pairs"
            raise ConfigurationError(msg) from e
        if any(len(pair) != 2 for pair in pairs):
            msg = f"{kind}s must be given as (name, object) pairs"
            raise ConfigurationError(msg)
    _ = validate_names((name for name, _ in pairs), kind)
    return cast("list[tuple[str, Any]]", pairs)


def generate_combinations(
    preprocessors: list[tuple[str, Any]],
    models: list[tuple[str, Any]],
    mode: str = "cross",
) -> list[tuple[tuple[str, Any], tuple[str, Any]]]:
    """Pair preprocessors with models.

    ``cross`` yields every combination, preprocessor-major. ``pairwise``
    pairs the i-th preprocessor with the i-th model.
    """
    if mode == "cross":
        return list(itertools.product(preprocessors, models))
    if mode == "pairwise":
        if len(preprocessors) != len(models):
            msg = (
                "Pairwise mode needs as many preprocessors as models "
                f"(got {len(preprocessors)} and {len(models)})"
            )
            raise ConfigurationError(msg)
        return list(zip(preprocessors, models))
    msg = f"Unknown combination mode: {mode}"
    raise ConfigurationError(msg)


def _validate_options(
    options: Mapping[str, Mapping[str, Any]] | None, ids: list[str]
) -> dict[str, dict[str, Any]]:
    if options is None:
        return {}
    if not isinstance(options, Mapping):
        msg = "options must be a mapping of workflow id to keyword arguments"
        raise ConfigurationError(msg)

    unknown = sorted(set(options) - set(ids))
    if unknown:
        msg = f"options given for unknown workflow ids: {', '.join(unknown)}"
        raise ConfigurationError(msg)

    checked: dict[str, dict[str, Any]] = {}
    for entry_id, entry_options in options.items():
        if not isinstance(entry_options, Mapping):
            msg = f"options for '{entry_id}' must be a mapping"
            raise ConfigurationError(msg)
        checked[entry_id] = dict(entry_options)
    return checked


def workflow_set(
    preprocessors: Mapping[str, Any] | Iterable[tuple[str, Any]],
    models: Mapping[str, Any] | Iterable[tuple[str, Any]],
    *,
    mode: Literal["cross", "pairwise"] = "cross",
    options: Mapping[str, Mapping[str, Any]] | None = None,
    composer: Composer = compose_workflow,
    check: CompatibilityCheck | None = None,
) -> WorkflowSet:
    """Build a workflow set from named preprocessors and model specs.

    Names, ids and options are all validated before anything is composed,
    so a configuration error never leaves a partial set behind. Pairs the
    compatibility hook (or the composer) rejects are left out and reported
    in a single IncompatibilityWarning.

    Args:
        preprocessors: Name to preprocessor, in declaration order
        models: Name to model spec, in declaration order
        mode: ``cross`` for every combination, ``pairwise`` for i-th with i-th
        options: Per-id keyword overrides for the batch operation
        composer: Builds the workflow object for one pair
        check: Compatibility hook; defaults to asking the preprocessor

    """
    prep_pairs = _as_pairs(preprocessors, "preprocessor")
    model_pairs = _as_pairs(models, "model")

    combinations = generate_combinations(prep_pairs, model_pairs, mode)
    ids = [make_id(p_name, m_name) for (p_name, _), (m_name, _) in combinations]
    check_unique_ids(ids)
    entry_options = _validate_options(options, ids)

    check = check or check_compatibility
    entries: list[WorkflowEntry] = []
    skipped: list[str] = []

    for entry_id, ((p_name, prep), (m_name, model)) in zip(ids, combinations):
        compat = check(prep, model)
        if not compat.compatible:
            skipped.append(f"{entry_id} ({compat.reason or 'incompatible'})")
            continue
        try:
            composed = composer(prep, model)
        except IncompatibleCombination as e:
            skipped.append(f"{entry_id} ({e.reason})")
            continue

        entries.append(
            WorkflowEntry(
                id=entry_id,
                preprocessor_name=p_name,
                model_name=m_name,
                workflow=composed,
                options=entry_options.get(entry_id, {}),
            )
        )

    if skipped:
        logger.info("Skipped %d incompatible combination(s)", len(skipped))
        warnings.warn(
            f"Skipped incompatible combinations: {'; '.join(skipped)}",
            IncompatibilityWarning,
            stacklevel=2,
        )

    return WorkflowSet(entries)

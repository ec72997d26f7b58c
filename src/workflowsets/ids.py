# Copyright (c) Syntropy Systems
"""Identifier generation for preprocessor/model pairings."""
from __future__ import annotations

import re
from collections import Counter
from typing import TYPE_CHECKING

from workflowsets.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Iterable

# Ids end up in file names and CSV columns.
_NAME_PATTERN = re.compile(r"[A-Za-z0-9_.-]+")


def make_id(preprocessor_name: str, model_name: str) -> str:
    """Return the entry id for a preprocessor/model pair."""
    return f"{preprocessor_name}_{model_name}"


def validate_names(names: Iterable[object], kind: str) -> list[str]:
    """Check that names are non-empty strings, unique within their collection.

    Names may only contain letters, digits, underscores, dots and hyphens.
    """
    checked: list[str] = []
    for name in names:
        if not isinstance(name, str) or not name.strip():
            msg = f"{kind} names must be non-empty strings, got {name!r}"
            raise ConfigurationError(msg)
        if not _NAME_PATTERN.fullmatch(name):
            msg = (
                f"Invalid {kind} name {name!r}: use only letters, digits, "
                "'_', '.' and '-'"
            )
            raise ConfigurationError(msg)
        checked.append(name)

    duplicates = sorted(n for n, count in Counter(checked).items() if count > 1)
    if duplicates:
        msg = f"Duplicate {kind} names: {', '.join(duplicates)}"
        raise ConfigurationError(msg)
    return checked


def check_unique_ids(ids: Iterable[str]) -> None:
    """Fail if any id occurs more than once.

    Ids are never renamed to resolve a collision; the caller has to pick
    different preprocessor or model names.
    """
    counts = Counter(ids)
    collisions = sorted(i for i, count in counts.items() if count > 1)
    if collisions:
        msg = f"Workflow ids are not unique: {', '.join(collisions)}"
        raise ConfigurationError(msg)

# Copyright (c) Syntropy Systems
"""Resampling plan value types."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


@dataclass(frozen=True)
class ResampleSplit:
    """One analysis/assessment pair."""

    analysis: Any
    assessment: Any
    id: str = ""


@dataclass(frozen=True)
class ResamplePlan:
    """Ordered, immutable collection of resampling splits.

    The plan is shared by reference across every unit of work in a batch,
    so splits are stored as a tuple and the dataclass is frozen.
    """

    splits: tuple[ResampleSplit, ...] = field(default_factory=tuple)
    name: str = "resamples"

    def __post_init__(self) -> None:
        splits = tuple(self.splits)
        named = tuple(
            split
            if split.id
            else ResampleSplit(split.analysis, split.assessment, f"Fold{i:02d}")
            for i, split in enumerate(splits, 1)
        )
        object.__setattr__(self, "splits", named)

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[Any, Any]], name: str = "resamples") -> ResamplePlan:
        """Build a plan from ``(analysis, assessment)`` pairs."""
        return cls(tuple(ResampleSplit(a, b) for a, b in pairs), name=name)

    def __iter__(self) -> Iterator[ResampleSplit]:
        return iter(self.splits)

    def __len__(self) -> int:
        return len(self.splits)

# Copyright (c) Syntropy Systems
"""JSON snapshots of workflow set results."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from pydantic import Field
from typing_extensions import override

from workflowsets.models.results import EntryResult, NotRun, WorkflowSetBaseModel
from workflowsets.workflow_set import WorkflowEntry, WorkflowSet

if TYPE_CHECKING:
    from pathlib import Path


class EntryRecord(WorkflowSetBaseModel):
    """Serializable part of a workflow entry."""

    id: str
    preprocessor_name: str
    model_name: str
    result: EntryResult = Field(default_factory=NotRun)


class ResultsSnapshot(WorkflowSetBaseModel):
    """Results of a workflow set as stored on disk."""

    entries: list[EntryRecord] = Field(default_factory=list)
    created_at: str = ""

    @override
    def model_post_init(self, __context: object, /) -> None:
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc).isoformat()


def save_results(wset: WorkflowSet, path: Path) -> None:
    """Write ids, provenance and results of a set to a JSON file.

    Workflow objects and options are not written.
    """
    snapshot = ResultsSnapshot(
        entries=[
            EntryRecord(
                id=e.id,
                preprocessor_name=e.preprocessor_name,
                model_name=e.model_name,
                result=e.result,
            )
            for e in wset
        ]
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    _ = path.write_text(snapshot.model_dump_json(indent=2))


def load_results(path: Path) -> WorkflowSet:
    """Read a snapshot back into a set whose entries have no workflow."""
    snapshot = ResultsSnapshot.model_validate_json(path.read_text())
    return WorkflowSet(
        WorkflowEntry(
            id=record.id,
            preprocessor_name=record.preprocessor_name,
            model_name=record.model_name,
            workflow=None,
            result=record.result,
        )
        for record in snapshot.entries
    )

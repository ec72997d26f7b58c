# Copyright (c) Syntropy Systems
"""Workflow set table and its invariants."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Callable

from workflowsets.errors import ConfigurationError, UnknownIdError
from workflowsets.ids import check_unique_ids
from workflowsets.models.results import EntryResult, Failure, NotRun, Success

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

    from workflowsets.models.results import JSONValue


@dataclass
class WorkflowEntry:
    """One preprocessor/model combination and its result."""

    id: str
    preprocessor_name: str
    model_name: str
    workflow: Any
    options: dict[str, Any] = field(default_factory=dict)
    result: EntryResult = field(default_factory=NotRun)

    def __post_init__(self) -> None:
        # Options are never None, and never shared with the caller's mapping
        self.options = dict(self.options) if self.options is not None else {}
        if self.result is None:
            self.result = NotRun()

    @property
    def status(self) -> str:
        return self.result.status

    @property
    def has_result(self) -> bool:
        return not isinstance(self.result, NotRun)

    def copy(self) -> WorkflowEntry:
        """Return a copy with its own options mapping."""
        return replace(self, options=dict(self.options))


class WorkflowSet:
    """Ordered collection of workflow entries keyed by unique id.

    Iteration follows insertion order. ``sorted_ids()`` gives an order that
    does not depend on insertion, for reproducible display.
    """

    _entries: dict[str, WorkflowEntry]

    def __init__(self, entries: Iterable[WorkflowEntry] = ()) -> None:
        entries = list(entries)
        check_unique_ids(e.id for e in entries)
        self._entries = {e.id: e for e in entries}

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[WorkflowEntry]:
        return iter(list(self._entries.values()))

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._entries

    def __getitem__(self, entry_id: str) -> WorkflowEntry:
        return self.get(entry_id)

    def __or__(self, other: WorkflowSet) -> WorkflowSet:
        return self.union(other)

    def __repr__(self) -> str:
        return f"WorkflowSet({len(self)} entries: {', '.join(self.ids)})"

    @property
    def ids(self) -> list[str]:
        """Entry ids in table order."""
        return list(self._entries)

    def sorted_ids(self) -> list[str]:
        """Entry ids in lexical order."""
        return sorted(self._entries)

    def get(self, entry_id: str) -> WorkflowEntry:
        """Return the entry for an id, failing on unknown ids."""
        try:
            return self._entries[entry_id]
        except KeyError:
            raise UnknownIdError(entry_id) from None

    def add(self, entry: WorkflowEntry) -> None:
        """Append an entry; its id must not be in the set yet."""
        if entry.id in self._entries:
            msg = f"Workflow ids are not unique: {entry.id}"
            raise ConfigurationError(msg)
        self._entries[entry.id] = entry

    def remove(self, entry_id: str) -> WorkflowEntry:
        """Remove and return an entry."""
        entry = self.get(entry_id)
        del self._entries[entry_id]
        return entry

    def update(self, entry_id: str, **changes: Any) -> WorkflowEntry:
        """Replace fields of an entry; the id itself cannot change."""
        if "id" in changes and changes["id"] != entry_id:
            msg = "Entry ids cannot be changed"
            raise ConfigurationError(msg)
        entry = replace(self.get(entry_id), **changes)
        self._entries[entry_id] = entry
        return entry

    def set_result(self, entry_id: str, result: EntryResult) -> None:
        self.get(entry_id).result = result

    def clear_result(self, entry_id: str) -> None:
        """Reset an entry so the next batch runs it again."""
        self.set_result(entry_id, NotRun())

    def union(self, other: WorkflowSet) -> WorkflowSet:
        """Combine two sets into a new one; ids must stay unique."""
        return WorkflowSet([e.copy() for e in self] + [e.copy() for e in other])

    def filter(self, predicate: Callable[[WorkflowEntry], bool]) -> WorkflowSet:
        """Return a new set with the entries the predicate accepts."""
        return WorkflowSet(e.copy() for e in self if predicate(e))

    def subset(self, ids: Iterable[str]) -> WorkflowSet:
        """Return a new set with the given ids, in the given order."""
        return WorkflowSet(self.get(i).copy() for i in ids)

    def completed(self) -> list[WorkflowEntry]:
        """Entries holding a successful result."""
        return [e for e in self if isinstance(e.result, Success)]

    def to_records(self) -> list[Mapping[str, JSONValue]]:
        """Return the raw table: one record per entry, in table order."""
        records: list[Mapping[str, JSONValue]] = []
        for entry in self:
            record: dict[str, JSONValue] = {
                "id": entry.id,
                "preprocessor_name": entry.preprocessor_name,
                "model_name": entry.model_name,
                "options": sorted(entry.options),
                "status": entry.status,
            }
            result = entry.result
            if isinstance(result, Success):
                record["metrics"] = list(result.result.metric_names())
                record["n_configs"] = len(
                    {e.config_id for e in result.result.estimates}
                )
            elif isinstance(result, Failure):
                record["message"] = result.message
            records.append(record)
        return records

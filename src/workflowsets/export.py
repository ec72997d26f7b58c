# Copyright (c) Syntropy Systems
"""Export ranking tables to CSV or JSON."""
from __future__ import annotations

import csv
from typing import TYPE_CHECKING

from pydantic import TypeAdapter

from workflowsets.models.results import JSONValue, RankingRow

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

_JSON_ADAPTER = TypeAdapter(JSONValue)
_ROWS_ADAPTER = TypeAdapter(list[RankingRow])

BASE_FIELDS = [
    "rank",
    "id",
    "preprocessor_name",
    "model_name",
    "config_id",
    "metric",
    "direction",
    "mean",
    "std_err",
    "n",
]


def _to_csv_value(value: JSONValue | None) -> str | float | int | None:
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, (dict, list)):
        return _JSON_ADAPTER.dump_json(value).decode("utf-8")
    return str(value)


def export_ranking(rows: Sequence[RankingRow], output: Path) -> int:
    """Write ranking rows to ``output`` (.csv or .json).

    Returns the number of rows written.
    """
    suffix = output.suffix.lower()
    if suffix not in (".csv", ".json"):
        msg = "Output must be .csv or .json"
        raise ValueError(msg)

    if suffix == ".json":
        _ = output.write_bytes(_ROWS_ADAPTER.dump_json(list(rows), indent=2))
        return len(rows)

    # CSV - flatten params into config.<name> columns
    param_keys: set[str] = set()
    for row in rows:
        param_keys.update(row.params.keys())
    fieldnames = BASE_FIELDS + [f"config.{k}" for k in sorted(param_keys)]

    with output.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            record = row.model_dump(exclude={"params"})
            flat: dict[str, str | float | int | None] = {
                name: _to_csv_value(record.get(name)) for name in BASE_FIELDS
            }
            for k, v in row.params.items():
                flat[f"config.{k}"] = _to_csv_value(v)
            writer.writerow(flat)

    return len(rows)

"""Tabular schema references for decoded and plottable perf results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .observations import ImproveDirection

RESULT_RECORD_FIELDS: tuple[str, ...] = (
    "graph_name",
    "trace_name",
    "units",
    "important",
    "improve_direction",
    "count",
    "mean",
    "std",
    "min",
    "max",
)

PLOTTABLE_FIELDS: tuple[str, ...] = (
    "graph_name",
    "trace_name",
    "units",
    "mean",
    "std",
    "time_us",
    "value",
)


@dataclass(slots=True)
class ResultRecord:
    """Format-independent view of one metric read back from an encoded document."""

    graph_name: str
    trace_name: str
    units: str
    important: bool
    improve_direction: ImproveDirection
    values: List[float] = field(default_factory=list)
    std: float | None = None

    def to_row(self) -> Dict[str, object]:
        count = len(self.values)
        row: Dict[str, object] = {
            "graph_name": self.graph_name,
            "trace_name": self.trace_name,
            "units": self.units,
            "important": self.important,
            "improve_direction": self.improve_direction.value,
            "count": count,
            "mean": sum(self.values) / count if count else None,
            "std": self.std,
            "min": min(self.values) if count else None,
            "max": max(self.values) if count else None,
        }
        return normalise_row(row, RESULT_RECORD_FIELDS)


def normalise_row(
    row: dict[str, object], fields: tuple[str, ...]
) -> dict[str, object | str]:
    """Project a dict onto the requested schema, filling missing values with blanks."""
    return {
        name: row.get(name, "") if row.get(name) is not None else ""
        for name in fields
    }


def rows_for_records(records: Iterable[ResultRecord]) -> List[Dict[str, object]]:
    return [record.to_row() for record in records]


__all__ = [
    "PLOTTABLE_FIELDS",
    "RESULT_RECORD_FIELDS",
    "ResultRecord",
    "normalise_row",
    "rows_for_records",
]

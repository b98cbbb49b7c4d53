"""Dashboard chart JSON encoding (``format_version`` 1.0)."""

from __future__ import annotations

import json
from typing import Dict, Iterable, List

from .observations import (
    CounterObservation,
    ImproveDirection,
    MeanErrorObservation,
    Metric,
    ScalarObservation,
    coalesce_by_chart,
    json_safe,
)
from .schemas import ResultRecord

FORMAT_VERSION = "1.0"

_DIRECTION_TO_JSON = {
    ImproveDirection.SMALLER_IS_BETTER: "down",
    ImproveDirection.BIGGER_IS_BETTER: "up",
}
_JSON_TO_DIRECTION = {value: key for key, value in _DIRECTION_TO_JSON.items()}


def _safe_values(metric: Metric, values: List[float]) -> List[float]:
    context = f"Chart value of {metric.graph_name}/{metric.trace_name}"
    safe = (json_safe(value, context) for value in values)
    return [value for value in safe if value is not None]


def _entry(metric: Metric) -> Dict[str, object]:
    entry: Dict[str, object]
    observations = metric.observations
    only = observations[0] if len(observations) == 1 else None
    if isinstance(only, ScalarObservation):
        entry = {"type": "scalar", "value": only.value}
    elif isinstance(only, (MeanErrorObservation, CounterObservation)):
        entry = {
            "type": "list_of_scalar_values",
            "values": _safe_values(metric, [only.mean]),
        }
        std = json_safe(only.error, f"Std of {metric.graph_name}/{metric.trace_name}")
        if std is not None:
            entry["std"] = std
    else:
        entry = {
            "type": "list_of_scalar_values",
            "values": _safe_values(metric, metric.chart_values()),
        }
    entry["units"] = metric.units
    entry["important"] = metric.important
    direction = _DIRECTION_TO_JSON.get(metric.improve_direction)
    if direction is not None:
        entry["improvement_direction"] = direction
    return entry


def build_charts(metrics: Iterable[Metric]) -> Dict[str, object]:
    charts: Dict[str, Dict[str, object]] = {}
    for metric in coalesce_by_chart(metrics):
        charts.setdefault(metric.graph_name, {})[metric.trace_name] = _entry(metric)
    return {"format_version": FORMAT_VERSION, "charts": charts}


def encode(metrics: Iterable[Metric]) -> str:
    return json.dumps(build_charts(metrics), separators=(",", ":"), allow_nan=False)


def load_chart_json(text: str) -> List[ResultRecord]:
    """Decode a chart JSON document back into records, preserving order."""
    document = json.loads(text)
    if not isinstance(document, dict) or "charts" not in document:
        raise ValueError("Not a chart JSON document: missing 'charts'")
    version = document.get("format_version")
    if version != FORMAT_VERSION:
        raise ValueError(f"Unsupported chart format_version {version!r}")
    records: List[ResultRecord] = []
    for graph_name, traces in document["charts"].items():
        for trace_name, entry in traces.items():
            kind = entry.get("type")
            if kind == "scalar":
                values = [float(entry["value"])]
            elif kind == "list_of_scalar_values":
                values = [float(v) for v in entry.get("values", [])]
            else:
                raise ValueError(
                    f"Unsupported chart entry type {kind!r} for {graph_name}/{trace_name}"
                )
            std = entry.get("std")
            records.append(
                ResultRecord(
                    graph_name=graph_name,
                    trace_name=trace_name,
                    units=str(entry.get("units", "")),
                    important=bool(entry.get("important", False)),
                    improve_direction=_JSON_TO_DIRECTION.get(
                        entry.get("improvement_direction"), ImproveDirection.NONE
                    ),
                    values=values,
                    std=float(std) if std is not None else None,
                )
            )
    return records


__all__ = ["FORMAT_VERSION", "build_charts", "encode", "load_chart_json"]

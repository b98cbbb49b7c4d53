"""Line-oriented text renderings: PLOTTABLE_DATA records and legacy RESULT lines."""

from __future__ import annotations

import json
from typing import Dict, Iterable, List, Sequence

import pandas as pd

from .observations import (
    CounterObservation,
    MeanErrorObservation,
    Metric,
    Observation,
    SampleListObservation,
    ScalarObservation,
    json_safe,
)
from .schemas import PLOTTABLE_FIELDS, normalise_row

PLOTTABLE_PREFIX = "PLOTTABLE_DATA: "
RESULT_MARKER = "RESULT "


def _fmt(value: float) -> str:
    return f"{value:.8g}"


def plottable_record(metric: Metric) -> Dict[str, object]:
    record: Dict[str, object] = {
        "graph_name": metric.graph_name,
        "trace_name": metric.trace_name,
        "units": metric.units,
    }
    summary = metric.mean_and_std()
    if summary is not None:
        context = f"{metric.graph_name}/{metric.trace_name}"
        mean = json_safe(summary[0], f"Mean of {context}")
        std = json_safe(summary[1], f"Std of {context}")
        if mean is not None:
            record["mean"] = mean
        if std is not None:
            record["std"] = std
    samples: List[Dict[str, object]] = []
    for sample in metric.samples():
        entry: Dict[str, object] = {}
        if sample.time_us is not None:
            entry["time"] = sample.time_us
        entry["value"] = sample.value
        samples.append(entry)
    record["samples"] = samples
    return record


def format_plottable_line(metric: Metric) -> str:
    return PLOTTABLE_PREFIX + json.dumps(
        plottable_record(metric), separators=(",", ":"), allow_nan=False
    )


def select_plottable(metrics: Iterable[Metric], desired_graphs: Sequence[str]) -> List[Metric]:
    """Keep metrics whose graph name is in ``desired_graphs``; empty keeps all."""
    if not desired_graphs:
        return list(metrics)
    wanted = set(desired_graphs)
    return [metric for metric in metrics if metric.graph_name in wanted]


def format_observation(observation: Observation) -> str:
    if isinstance(observation, ScalarObservation):
        return _fmt(observation.value)
    if isinstance(observation, (MeanErrorObservation, CounterObservation)):
        return "{" + _fmt(observation.mean) + "," + _fmt(observation.error) + "}"
    if isinstance(observation, SampleListObservation):
        return "[" + ",".join(_fmt(v) for v in observation.values) + "]"
    raise TypeError(f"Unsupported observation type {type(observation).__name__}")


def format_result_line(metric: Metric, observation: Observation) -> str:
    """Render ``[*]RESULT graph: trace= value units`` for one recording."""
    prefix = "*" if metric.important else ""
    line = (
        f"{prefix}{RESULT_MARKER}{metric.graph_name}: {metric.trace_name}= "
        f"{format_observation(observation)}"
    )
    if metric.units:
        line += f" {metric.units}"
    return line


def parse_plottable_lines(lines: Iterable[str]) -> List[Dict[str, object]]:
    """Extract PLOTTABLE_DATA records from mixed text output, skipping other lines."""
    records: List[Dict[str, object]] = []
    for line in lines:
        stripped = line.strip()
        if not stripped.startswith(PLOTTABLE_PREFIX):
            continue
        records.append(json.loads(stripped[len(PLOTTABLE_PREFIX):]))
    return records


def plottable_frame(text: str | Iterable[str]) -> pd.DataFrame:
    """One row per sample with the summary columns repeated, for post-processing."""
    lines = text.splitlines() if isinstance(text, str) else text
    rows: List[Dict[str, object]] = []
    for record in parse_plottable_lines(lines):
        base = {key: record.get(key) for key in ("graph_name", "trace_name", "units", "mean", "std")}
        samples = record.get("samples") or [{}]
        for sample in samples:
            row = dict(base)
            row["time_us"] = sample.get("time")
            row["value"] = sample.get("value")
            rows.append(normalise_row(row, PLOTTABLE_FIELDS))
    frame = pd.DataFrame(rows, columns=list(PLOTTABLE_FIELDS))
    for column in ("mean", "std", "time_us", "value"):
        frame[column] = pd.to_numeric(frame[column], errors="coerce")
    return frame


__all__ = [
    "PLOTTABLE_PREFIX",
    "RESULT_MARKER",
    "format_observation",
    "format_plottable_line",
    "format_result_line",
    "parse_plottable_lines",
    "plottable_frame",
    "plottable_record",
    "select_plottable",
]

"""Histogram-set encoding in the proto3 JSON form of the catapult HistogramSet.

Each metric becomes one histogram named ``measurement + modifier`` with the
user story attached as a ``stories`` diagnostic. Unit strings are folded onto
the proto unit enum; when the enum unit has a different scale (seconds vs.
milliseconds, kbps vs. bytes per second) the sample values are rescaled.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Dict, Iterable, List, NamedTuple

import numpy as np

from .observations import (
    FLOAT_MAX,
    ImproveDirection,
    MeanErrorObservation,
    Metric,
    coalesce_by_chart,
)
from .schemas import ResultRecord

log = logging.getLogger(__name__)


class ProtoUnit(NamedTuple):
    name: str
    scale: float = 1.0


UNIT_MAP: Dict[str, ProtoUnit] = {
    "ms": ProtoUnit("MS"),
    "s": ProtoUnit("MS", 1_000.0),
    "sec": ProtoUnit("MS", 1_000.0),
    "us": ProtoUnit("MS", 1e-3),
    "ns": ProtoUnit("MS", 1e-6),
    "%": ProtoUnit("N_PERCENT"),
    "bytes": ProtoUnit("SIZE_IN_BYTES"),
    "bps": ProtoUnit("BYTES_PER_SECOND", 1.0 / 8.0),
    "kbps": ProtoUnit("BYTES_PER_SECOND", 1_000.0 / 8.0),
    "bytes_per_second": ProtoUnit("BYTES_PER_SECOND"),
    "hz": ProtoUnit("HERTZ"),
    "fps": ProtoUnit("HERTZ"),
    "count": ProtoUnit("COUNT"),
    "frames": ProtoUnit("COUNT"),
    "packets": ProtoUnit("COUNT"),
    "sigma": ProtoUnit("SIGMA"),
    "j": ProtoUnit("J"),
    "w": ProtoUnit("W"),
    "a": ProtoUnit("A"),
    "v": ProtoUnit("V"),
    "unitless": ProtoUnit("UNITLESS"),
    "score": ProtoUnit("UNITLESS"),
    "ratio": ProtoUnit("UNITLESS"),
    "db": ProtoUnit("UNITLESS"),
    "dbov": ProtoUnit("UNITLESS"),
}
DEFAULT_UNIT = ProtoUnit("UNITLESS")

_DIRECTION_TO_PROTO = {
    ImproveDirection.SMALLER_IS_BETTER: "SMALLER_IS_BETTER",
    ImproveDirection.BIGGER_IS_BETTER: "BIGGER_IS_BETTER",
}
_PROTO_TO_DIRECTION = {value: key for key, value in _DIRECTION_TO_PROTO.items()}

STORIES = "stories"
IMPORTANT = "important"
UNITS = "units"


def proto_unit(units: str) -> ProtoUnit:
    unit = UNIT_MAP.get(units.strip().lower())
    if unit is None:
        log.debug("No histogram unit for %r, reporting as UNITLESS", units)
        return DEFAULT_UNIT
    return unit


def _generic_set(*values: object) -> Dict[str, object]:
    # Generic set values are themselves JSON-encoded.
    return {"genericSet": {"values": [json.dumps(v) for v in values]}}


def _generic_value(diagnostic: Dict[str, object] | None) -> object | None:
    if not diagnostic:
        return None
    values = diagnostic.get("genericSet", {}).get("values", [])
    return json.loads(values[0]) if values else None


def running_statistics(values: np.ndarray) -> Dict[str, float]:
    count = int(values.size)
    nonzero = np.abs(values[values != 0])
    with np.errstate(over="ignore", invalid="ignore"):
        return {
            "count": count,
            "max": float(np.max(values)),
            "meanlogs": float(np.mean(np.log(nonzero))) if nonzero.size else 0.0,
            "mean": float(np.mean(values)),
            "min": float(np.min(values)),
            "sum": float(np.sum(values)),
            "variance": float(np.var(values, ddof=1)) if count > 1 else 0.0,
        }


def _scaled_samples(metric: Metric, scale: float) -> np.ndarray:
    with np.errstate(over="ignore"):
        values = np.array([s.value for s in metric.samples()], dtype=float) * scale
    overflowed = ~np.isfinite(values)
    if overflowed.any():
        log.warning(
            "%d samples of %s overflowed converting %r to the histogram unit; clamping",
            int(overflowed.sum()),
            metric.graph_name,
            metric.units,
        )
        values = np.clip(values, -FLOAT_MAX, FLOAT_MAX)
    return values


def _histogram(metric: Metric) -> Dict[str, object]:
    unit = proto_unit(metric.units)
    errors = [o.error for o in metric.observations if isinstance(o, MeanErrorObservation)]
    if errors:
        log.warning(
            "Histogram for %s/%s keeps only the mean; dropping error term(s) %s",
            metric.graph_name,
            metric.trace_name,
            errors,
        )
    values = _scaled_samples(metric, unit.scale)
    unit_entry: Dict[str, str] = {"unit": unit.name}
    direction = _DIRECTION_TO_PROTO.get(metric.improve_direction)
    if direction is not None:
        unit_entry["improvementDirection"] = direction
    histogram: Dict[str, object] = {
        "name": metric.graph_name,
        "unit": unit_entry,
        "diagnostics": {
            "diagnosticMap": {
                STORIES: _generic_set(metric.trace_name),
                IMPORTANT: _generic_set(metric.important),
                UNITS: _generic_set(metric.units),
            }
        },
        "sampleValues": [float(v) for v in values],
    }
    if values.size:
        running = running_statistics(values)
        if all(math.isfinite(stat) for stat in running.values()):
            histogram["running"] = running
        else:
            log.warning(
                "Running statistics of %s/%s are not finite; omitting them",
                metric.graph_name,
                metric.trace_name,
            )
    return histogram


def build_histogram_set(metrics: Iterable[Metric]) -> Dict[str, object]:
    return {"histograms": [_histogram(metric) for metric in coalesce_by_chart(metrics)]}


def encode(metrics: Iterable[Metric]) -> str:
    return json.dumps(build_histogram_set(metrics), separators=(",", ":"), allow_nan=False)


def load_histogram_set(text: str) -> List[ResultRecord]:
    """Decode a histogram set, undoing unit rescaling when the raw unit is known."""
    document = json.loads(text)
    if not isinstance(document, dict) or "histograms" not in document:
        raise ValueError("Not a histogram set document: missing 'histograms'")
    records: List[ResultRecord] = []
    for histogram in document["histograms"]:
        diagnostics = histogram.get("diagnostics", {}).get("diagnosticMap", {})
        unit_entry = histogram.get("unit", {})
        raw_units = _generic_value(diagnostics.get(UNITS))
        if raw_units is None:
            raw_units = str(unit_entry.get("unit", DEFAULT_UNIT.name))
            scale = 1.0
        else:
            scale = proto_unit(str(raw_units)).scale
        story = _generic_value(diagnostics.get(STORIES))
        records.append(
            ResultRecord(
                graph_name=str(histogram["name"]),
                trace_name="" if story is None else str(story),
                units=str(raw_units),
                important=bool(_generic_value(diagnostics.get(IMPORTANT))),
                improve_direction=_PROTO_TO_DIRECTION.get(
                    unit_entry.get("improvementDirection"), ImproveDirection.NONE
                ),
                values=[float(v) / scale for v in histogram.get("sampleValues", [])],
            )
        )
    return records


__all__ = [
    "DEFAULT_UNIT",
    "ProtoUnit",
    "UNIT_MAP",
    "build_histogram_set",
    "encode",
    "load_histogram_set",
    "proto_unit",
    "running_statistics",
]

"""Metric keys, improve directions and the observation variants stored per metric."""

from __future__ import annotations

import logging
import math
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple, Union

import numpy as np

from .stats import SamplesStatsCounter, StatsSample

log = logging.getLogger(__name__)

FLOAT_MAX = sys.float_info.max


class ImproveDirection(Enum):
    NONE = "none"
    SMALLER_IS_BETTER = "smaller_is_better"
    BIGGER_IS_BETTER = "bigger_is_better"


class MetricKey(NamedTuple):
    measurement: str
    modifier: str
    user_story: str

    @property
    def graph_name(self) -> str:
        return self.measurement + self.modifier

    @property
    def trace_name(self) -> str:
        return self.user_story


def _finite(value: float, what: str) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"{what} must be finite, got {value!r}")
    return number


@dataclass(slots=True, frozen=True)
class ScalarObservation:
    value: float

    def chart_values(self) -> List[float]:
        return [self.value]

    def samples(self) -> List[StatsSample]:
        return [StatsSample(self.value)]


@dataclass(slots=True, frozen=True)
class MeanErrorObservation:
    mean: float
    error: float

    def chart_values(self) -> List[float]:
        return [self.mean]

    def samples(self) -> List[StatsSample]:
        # The error term has no sample representation.
        return [StatsSample(self.mean)]


@dataclass(slots=True, frozen=True)
class SampleListObservation:
    values: Tuple[float, ...] = field(default_factory=tuple)

    def chart_values(self) -> List[float]:
        return list(self.values)

    def samples(self) -> List[StatsSample]:
        return [StatsSample(v) for v in self.values]


@dataclass(slots=True, frozen=True)
class CounterObservation:
    """Snapshot of a counter's samples taken when the metric was recorded."""

    snapshot: Tuple[StatsSample, ...]

    def _values(self) -> np.ndarray:
        return np.array([sample.value for sample in self.snapshot], dtype=float)

    @property
    def mean(self) -> float:
        """Mean of the snapshot, 0 when empty; may overflow to inf for huge samples."""
        values = self._values()
        if values.size == 0:
            return 0.0
        with np.errstate(over="ignore", invalid="ignore"):
            return float(np.mean(values))

    @property
    def error(self) -> float:
        values = self._values()
        if values.size == 0:
            return 0.0
        with np.errstate(over="ignore", invalid="ignore"):
            return float(np.std(values))

    def chart_values(self) -> List[float]:
        return [self.mean]

    def samples(self) -> List[StatsSample]:
        return list(self.snapshot)


Observation = Union[
    ScalarObservation, MeanErrorObservation, SampleListObservation, CounterObservation
]


def scalar(value: float) -> ScalarObservation:
    return ScalarObservation(_finite(value, "value"))


def mean_and_error(mean: float, error: float) -> MeanErrorObservation:
    return MeanErrorObservation(_finite(mean, "mean"), _finite(error, "error"))


def sample_list(values: Iterable[float]) -> SampleListObservation:
    return SampleListObservation(tuple(_finite(v, "sample value") for v in values))


def from_counter(counter: SamplesStatsCounter) -> CounterObservation:
    snapshot = tuple(counter.get_samples())
    for sample in snapshot:
        _finite(sample.value, "counter sample")
    return CounterObservation(snapshot)


@dataclass(slots=True)
class Metric:
    """All observations recorded under one key plus its presentation metadata."""

    key: MetricKey
    units: str
    important: bool
    improve_direction: ImproveDirection = ImproveDirection.NONE
    observations: List[Observation] = field(default_factory=list)

    @property
    def graph_name(self) -> str:
        return self.key.graph_name

    @property
    def trace_name(self) -> str:
        return self.key.trace_name

    def chart_values(self) -> List[float]:
        values: List[float] = []
        for observation in self.observations:
            values.extend(observation.chart_values())
        return values

    def samples(self) -> List[StatsSample]:
        samples: List[StatsSample] = []
        for observation in self.observations:
            samples.extend(observation.samples())
        return samples

    def mean_and_std(self) -> Optional[Tuple[float, float]]:
        """Summary used by the plottable output, ``None`` when nothing was sampled."""
        if len(self.observations) == 1:
            only = self.observations[0]
            if isinstance(only, (MeanErrorObservation, CounterObservation)):
                if isinstance(only, CounterObservation) and not only.snapshot:
                    return None
                return only.mean, only.error
        values = np.array([sample.value for sample in self.samples()], dtype=float)
        if values.size == 0:
            return None
        with np.errstate(over="ignore", invalid="ignore"):
            return float(np.mean(values)), float(np.std(values))

    def same_presentation(self, other: "Metric") -> bool:
        return (
            self.units == other.units
            and self.important == other.important
            and self.improve_direction == other.improve_direction
        )

    def with_user_story(self, user_story: str) -> "Metric":
        renamed = self.copy()
        renamed.key = MetricKey(self.key.measurement, self.key.modifier, user_story)
        return renamed

    def copy(self) -> "Metric":
        return Metric(
            key=self.key,
            units=self.units,
            important=self.important,
            improve_direction=self.improve_direction,
            observations=list(self.observations),
        )


def json_safe(value: float, context: str) -> Optional[float]:
    """Clamp an overflowed statistic to the largest finite float; NaN becomes ``None``."""
    number = float(value)
    if math.isfinite(number):
        return number
    if math.isnan(number):
        log.warning("%s is not a number; leaving it out of the export", context)
        return None
    log.warning("%s overflowed; clamping to the largest finite float", context)
    return math.copysign(FLOAT_MAX, number)


def coalesce_by_chart(metrics: Iterable[Metric]) -> List[Metric]:
    """Merge metrics whose distinct keys land on the same (graph, trace) pair.

    ``("ab", "c", s)`` and ``("a", "bc", s)`` share a chart slot. With equal
    units, importance and direction the later metric's observations are
    appended to the earlier one. Otherwise the later metric moves to the
    trace ``"s (a/bc)"`` so its values keep their own units.
    """
    slots: Dict[Tuple[str, str], Metric] = {}
    for metric in metrics:
        slot = (metric.graph_name, metric.trace_name)
        existing = slots.get(slot)
        if existing is None:
            slots[slot] = metric
            continue
        if existing.same_presentation(metric):
            merged = existing.copy()
            merged.observations.extend(metric.observations)
            slots[slot] = merged
            continue
        key = metric.key
        story = f"{key.user_story} ({key.measurement}/{key.modifier})"
        suffix = 2
        while (metric.graph_name, story) in slots:
            story = f"{key.user_story} ({key.measurement}/{key.modifier}) #{suffix}"
            suffix += 1
        log.warning(
            "Metric %s (units=%r) shares chart %s/%s with %s (units=%r); exporting it as trace %r",
            key,
            metric.units,
            slot[0],
            slot[1],
            existing.key,
            existing.units,
            story,
        )
        renamed = metric.with_user_story(story)
        slots[(renamed.graph_name, renamed.trace_name)] = renamed
    return list(slots.values())


__all__ = [
    "coalesce_by_chart",
    "json_safe",
    "CounterObservation",
    "ImproveDirection",
    "MeanErrorObservation",
    "Metric",
    "MetricKey",
    "Observation",
    "SampleListObservation",
    "ScalarObservation",
    "from_counter",
    "mean_and_error",
    "sample_list",
    "scalar",
]

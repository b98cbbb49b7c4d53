"""Sample accumulator exposing count, mean, variance and percentiles."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Iterable, List, Optional

import numpy as np


@dataclass(slots=True, frozen=True)
class StatsSample:
    value: float
    time_us: Optional[int] = None


def _now_us() -> int:
    return time.monotonic_ns() // 1_000


class SamplesStatsCounter:
    """Thread-safe collection of samples with summary statistics.

    Statistics are computed lazily with numpy. Asking an empty counter for a
    statistic raises ``ValueError``; use :meth:`is_empty` first.
    """

    def __init__(self, samples: Iterable[float] | None = None) -> None:
        self._samples: List[StatsSample] = []
        self._lock = threading.RLock()
        if samples is not None:
            self.add_samples(samples)

    def add_sample(self, value: float, time_us: Optional[int] = None) -> None:
        sample = StatsSample(
            value=float(value),
            time_us=_now_us() if time_us is None else int(time_us),
        )
        with self._lock:
            self._samples.append(sample)

    def add_samples(self, values: Iterable[float]) -> None:
        for value in values:
            self.add_sample(value)

    def merge(self, other: "SamplesStatsCounter") -> None:
        incoming = other.get_samples()
        with self._lock:
            self._samples.extend(incoming)

    def is_empty(self) -> bool:
        with self._lock:
            return not self._samples

    def num_samples(self) -> int:
        with self._lock:
            return len(self._samples)

    def get_samples(self) -> List[StatsSample]:
        with self._lock:
            return list(self._samples)

    def values(self) -> np.ndarray:
        with self._lock:
            return np.array([s.value for s in self._samples], dtype=float)

    def _checked_values(self) -> np.ndarray:
        arr = self.values()
        if arr.size == 0:
            raise ValueError("SamplesStatsCounter has no samples")
        return arr

    def get_min(self) -> float:
        return float(np.min(self._checked_values()))

    def get_max(self) -> float:
        return float(np.max(self._checked_values()))

    def get_sum(self) -> float:
        return float(np.sum(self._checked_values()))

    def get_average(self) -> float:
        return float(np.mean(self._checked_values()))

    def get_variance(self) -> float:
        # Population variance, matching the dashboard's std convention.
        return float(np.var(self._checked_values()))

    def get_standard_deviation(self) -> float:
        return float(np.sqrt(self.get_variance()))

    def get_percentile(self, percentile: float) -> float:
        """Return the value at ``percentile`` in ``[0, 1]`` (linear interpolation)."""
        if not 0.0 <= percentile <= 1.0:
            raise ValueError(f"percentile must be within [0, 1], got {percentile}")
        return float(np.quantile(self._checked_values(), percentile))

    def __len__(self) -> int:
        return self.num_samples()

    def __repr__(self) -> str:
        return f"SamplesStatsCounter(num_samples={self.num_samples()})"


__all__ = ["SamplesStatsCounter", "StatsSample"]

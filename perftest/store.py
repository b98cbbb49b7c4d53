"""Thread-safe registry of recorded performance metrics and their renderings."""

from __future__ import annotations

import logging
import sys
import threading
import warnings
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, TextIO

from . import chart_json, histogram
from .config import OutputFormat, PerfConfig, get_config
from .io import write_text_atomic
from .observations import (
    ImproveDirection,
    Metric,
    MetricKey,
    Observation,
    from_counter,
    mean_and_error,
    sample_list,
    scalar,
)
from .plottable import format_plottable_line, format_result_line, select_plottable
from .stats import SamplesStatsCounter

log = logging.getLogger(__name__)

_ENCODERS = {
    OutputFormat.CHART_JSON: chart_json.encode,
    OutputFormat.HISTOGRAM_JSON: histogram.encode,
}


def _check_sink(sink: object) -> TextIO:
    if sink is None or not callable(getattr(sink, "write", None)):
        raise TypeError(
            f"Perf results output must be a writable text stream, got {type(sink).__name__}"
        )
    return sink  # type: ignore[return-value]


class ResultStore:
    """Insertion-ordered metrics keyed by ``(measurement, modifier, user_story)``.

    Recording the same key twice appends the new observation to the existing
    metric. The first recording fixes units, importance and improve direction.
    All public methods may be called from several threads.
    """

    def __init__(
        self,
        output: TextIO | None = None,
        config: PerfConfig | None = None,
    ) -> None:
        self._metrics: Dict[MetricKey, Metric] = {}
        self._slots: Dict[tuple[str, str], MetricKey] = {}
        self._output: TextIO | None = None if output is None else _check_sink(output)
        self._config = config
        self._lock = threading.RLock()

    @property
    def config(self) -> PerfConfig:
        return self._config if self._config is not None else get_config()

    @property
    def output(self) -> TextIO:
        with self._lock:
            return self._output if self._output is not None else sys.stdout

    def set_output(self, sink: TextIO) -> None:
        checked = _check_sink(sink)
        with self._lock:
            self._output = checked

    def record(
        self,
        measurement: str,
        modifier: str,
        user_story: str,
        observation: Observation,
        units: str,
        important: bool,
        improve_direction: ImproveDirection = ImproveDirection.NONE,
    ) -> Metric:
        key = MetricKey(measurement, modifier, user_story)
        echo: str | None = None
        with self._lock:
            metric = self._metrics.get(key)
            if metric is None:
                metric = Metric(
                    key=key,
                    units=units,
                    important=bool(important),
                    improve_direction=ImproveDirection(improve_direction),
                )
                self._warn_on_slot_collision(metric)
                self._metrics[key] = metric
            else:
                self._warn_on_metadata_conflict(metric, units, important, improve_direction)
            metric.observations.append(observation)
            snapshot = metric.copy()
            if self.config.echo_results:
                echo = format_result_line(metric, observation) + "\n"
                sink = self.output
        # Sink writes happen outside the lock.
        if echo is not None:
            sink.write(echo)
        return snapshot

    def _warn_on_slot_collision(self, metric: Metric) -> None:
        key = metric.key
        slot = (key.graph_name, key.trace_name)
        other = self._slots.setdefault(slot, key)
        if other == key:
            return
        existing = self._metrics[other]
        if not existing.same_presentation(metric):
            log.warning(
                "Metric %s (units=%r) shares chart %s/%s with %s (units=%r); "
                "it will be exported under its own trace",
                key,
                metric.units,
                slot[0],
                slot[1],
                other,
                existing.units,
            )
        else:
            log.warning(
                "Metric %s shares chart %s/%s with %s; observations will be merged on export",
                key,
                slot[0],
                slot[1],
                other,
            )

    @staticmethod
    def _warn_on_metadata_conflict(
        metric: Metric,
        units: str,
        important: bool,
        improve_direction: ImproveDirection,
    ) -> None:
        if (
            metric.units != units
            or metric.important != bool(important)
            or metric.improve_direction != ImproveDirection(improve_direction)
        ):
            log.warning(
                "Conflicting metadata for %s: keeping units=%r important=%s direction=%s",
                metric.key,
                metric.units,
                metric.important,
                metric.improve_direction.value,
            )

    def print_result(
        self,
        measurement: str,
        modifier: str,
        user_story: str,
        value: float | SamplesStatsCounter,
        units: str,
        important: bool,
        improve_direction: ImproveDirection = ImproveDirection.NONE,
    ) -> None:
        if isinstance(value, SamplesStatsCounter):
            self.print_result_counter(
                measurement, modifier, user_story, value, units, important, improve_direction
            )
            return
        self.record(
            measurement, modifier, user_story, scalar(value), units, important, improve_direction
        )

    def print_result_mean_and_error(
        self,
        measurement: str,
        modifier: str,
        user_story: str,
        mean: float,
        error: float,
        units: str,
        important: bool,
        improve_direction: ImproveDirection = ImproveDirection.NONE,
    ) -> None:
        warnings.warn(
            "print_result_mean_and_error is deprecated; record a SamplesStatsCounter instead",
            DeprecationWarning,
            stacklevel=2,
        )
        self.record(
            measurement,
            modifier,
            user_story,
            mean_and_error(mean, error),
            units,
            important,
            improve_direction,
        )

    def print_result_list(
        self,
        measurement: str,
        modifier: str,
        user_story: str,
        values: Iterable[float],
        units: str,
        important: bool,
        improve_direction: ImproveDirection = ImproveDirection.NONE,
    ) -> None:
        self.record(
            measurement,
            modifier,
            user_story,
            sample_list(values),
            units,
            important,
            improve_direction,
        )

    def print_result_counter(
        self,
        measurement: str,
        modifier: str,
        user_story: str,
        counter: SamplesStatsCounter,
        units: str,
        important: bool,
        improve_direction: ImproveDirection = ImproveDirection.NONE,
    ) -> None:
        self.record(
            measurement,
            modifier,
            user_story,
            from_counter(counter),
            units,
            important,
            improve_direction,
        )

    def metrics(self) -> List[Metric]:
        """Consistent snapshot of every metric, in insertion order."""
        with self._lock:
            return [metric.copy() for metric in self._metrics.values()]

    def _resolve_format(self, output_format: OutputFormat | str | None) -> OutputFormat:
        if output_format is None:
            return self.config.output_format
        return OutputFormat.parse(output_format)

    def get_perf_results(self, output_format: OutputFormat | str | None = None) -> str:
        return _ENCODERS[self._resolve_format(output_format)](self.metrics())

    def print_plottable_results(self, desired_graphs: Sequence[str] = ()) -> None:
        if isinstance(desired_graphs, str):
            desired_graphs = [desired_graphs]
        selected = select_plottable(self.metrics(), desired_graphs)
        with self._lock:
            sink = self.output
            for metric in selected:
                sink.write(format_plottable_line(metric) + "\n")
            if hasattr(sink, "flush"):
                sink.flush()

    def write_perf_results(
        self,
        output_path: str | Path,
        output_format: OutputFormat | str | None = None,
    ) -> bool:
        fmt = self._resolve_format(output_format)
        try:
            write_text_atomic(output_path, self.get_perf_results(fmt))
        except (OSError, ValueError) as exc:
            log.warning("Failed to write perf results to %s: %s", output_path, exc)
            return False
        log.info("Wrote %d perf metrics to %s", len(self), output_path)
        return True

    def clear(self) -> None:
        with self._lock:
            self._metrics.clear()
            self._slots.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._metrics)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._metrics


_default_store: Optional[ResultStore] = None
_default_lock = threading.Lock()


def get_default_store() -> ResultStore:
    """Lazily construct the process-wide store used by the module-level helpers."""
    global _default_store
    if _default_store is None:
        with _default_lock:
            if _default_store is None:
                _default_store = ResultStore()
    return _default_store


__all__ = ["ResultStore", "get_default_store"]

"""Recording and export of performance-test results for the perf dashboard.

The module-level helpers record into one lazily created, process-wide
:class:`ResultStore`. Code that prefers explicit ownership can construct its
own store and call the same methods on it.

Example::

    print_result("ramp_up_time_", "turn_over_tcp", "bwe_15s", 1234.2, "ms", False)

shows up on the dashboard as ``ramp_up_time_turn_over_tcp > bwe_15s``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence, TextIO

from .config import OutputFormat, PerfConfig, get_config, set_config
from .observations import (
    CounterObservation,
    ImproveDirection,
    MeanErrorObservation,
    Metric,
    MetricKey,
    Observation,
    SampleListObservation,
    ScalarObservation,
    from_counter,
    mean_and_error,
    sample_list,
    scalar,
)
from .schemas import ResultRecord
from .stats import SamplesStatsCounter, StatsSample
from .store import ResultStore, get_default_store


def print_result(
    measurement: str,
    modifier: str,
    user_story: str,
    value: float | SamplesStatsCounter,
    units: str,
    important: bool,
    improve_direction: ImproveDirection = ImproveDirection.NONE,
) -> None:
    """Record a scalar, or a counter's mean and standard deviation."""
    get_default_store().print_result(
        measurement, modifier, user_story, value, units, important, improve_direction
    )


def print_result_mean_and_error(
    measurement: str,
    modifier: str,
    user_story: str,
    mean: float,
    error: float,
    units: str,
    important: bool,
    improve_direction: ImproveDirection = ImproveDirection.NONE,
) -> None:
    """Record a pre-computed (mean, error) pair. Deprecated."""
    get_default_store().print_result_mean_and_error(
        measurement, modifier, user_story, mean, error, units, important, improve_direction
    )


def print_result_list(
    measurement: str,
    modifier: str,
    user_story: str,
    values: Iterable[float],
    units: str,
    important: bool,
    improve_direction: ImproveDirection = ImproveDirection.NONE,
) -> None:
    """Record a list of raw values; they are copied before the call returns."""
    get_default_store().print_result_list(
        measurement, modifier, user_story, values, units, important, improve_direction
    )


def print_result_counter(
    measurement: str,
    modifier: str,
    user_story: str,
    counter: SamplesStatsCounter,
    units: str,
    important: bool,
    improve_direction: ImproveDirection = ImproveDirection.NONE,
) -> None:
    get_default_store().print_result_counter(
        measurement, modifier, user_story, counter, units, important, improve_direction
    )


def get_perf_results(output_format: OutputFormat | str | None = None) -> str:
    """Serialize all results so far.

    Chart JSON by default; histogram-set JSON when ``output_format`` says so or,
    if it is omitted, when ``PerfConfig.write_histogram_proto_json`` is set.
    """
    return get_default_store().get_perf_results(output_format)


def print_plottable_results(desired_graphs: Sequence[str] = ()) -> None:
    """Print PLOTTABLE_DATA lines for ``desired_graphs`` (all metrics when empty)."""
    get_default_store().print_plottable_results(desired_graphs)


def write_perf_results(
    output_path: str | Path, output_format: OutputFormat | str | None = None
) -> bool:
    """Write :func:`get_perf_results` to ``output_path``; ``False`` if that failed."""
    return get_default_store().write_perf_results(output_path, output_format)


def set_perf_results_output(output: TextIO) -> None:
    get_default_store().set_output(output)


def clear_perf_results() -> None:
    """Only for use by tests."""
    get_default_store().clear()


__all__ = [
    "CounterObservation",
    "ImproveDirection",
    "MeanErrorObservation",
    "Metric",
    "MetricKey",
    "Observation",
    "OutputFormat",
    "PerfConfig",
    "ResultRecord",
    "ResultStore",
    "SampleListObservation",
    "SamplesStatsCounter",
    "ScalarObservation",
    "StatsSample",
    "clear_perf_results",
    "from_counter",
    "get_config",
    "get_default_store",
    "get_perf_results",
    "mean_and_error",
    "print_plottable_results",
    "print_result",
    "print_result_counter",
    "print_result_list",
    "print_result_mean_and_error",
    "sample_list",
    "scalar",
    "set_config",
    "set_perf_results_output",
    "write_perf_results",
]

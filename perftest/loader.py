"""Read saved perf results back, whichever encoding they were written in."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, List

import pandas as pd

from . import chart_json, histogram
from .config import OutputFormat, PerfConfig
from .observations import mean_and_error, sample_list, scalar
from .schemas import RESULT_RECORD_FIELDS, ResultRecord, rows_for_records
from .store import ResultStore


def detect_format(text: str) -> OutputFormat:
    document = json.loads(text)
    if isinstance(document, dict) and "charts" in document:
        return OutputFormat.CHART_JSON
    if isinstance(document, dict) and "histograms" in document:
        return OutputFormat.HISTOGRAM_JSON
    raise ValueError("Unrecognised perf results document")


def load_results(text: str) -> List[ResultRecord]:
    if detect_format(text) is OutputFormat.CHART_JSON:
        return chart_json.load_chart_json(text)
    return histogram.load_histogram_set(text)


def load_results_file(path: str | Path) -> List[ResultRecord]:
    return load_results(Path(path).read_text(encoding="utf-8"))


def store_from_records(records: Iterable[ResultRecord]) -> ResultStore:
    """Rebuild a store; graph names become measurements with an empty modifier."""
    store = ResultStore(config=PerfConfig(echo_results=False))
    for record in records:
        if record.std is not None and len(record.values) == 1:
            observation = mean_and_error(record.values[0], record.std)
        elif len(record.values) == 1:
            observation = scalar(record.values[0])
        else:
            observation = sample_list(record.values)
        store.record(
            record.graph_name,
            "",
            record.trace_name,
            observation,
            record.units,
            record.important,
            record.improve_direction,
        )
    return store


def results_frame(records: Iterable[ResultRecord]) -> pd.DataFrame:
    return pd.DataFrame(rows_for_records(records), columns=list(RESULT_RECORD_FIELDS))


__all__ = [
    "detect_format",
    "load_results",
    "load_results_file",
    "results_frame",
    "store_from_records",
]

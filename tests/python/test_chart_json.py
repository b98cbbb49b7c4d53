from __future__ import annotations

import json
import logging
import math
import sys

import pytest

from perftest import ImproveDirection, OutputFormat, PerfConfig, ResultStore, SamplesStatsCounter
from perftest.chart_json import load_chart_json


def _store() -> ResultStore:
    return ResultStore(config=PerfConfig(echo_results=False))


def _charts(store: ResultStore) -> dict:
    return json.loads(store.get_perf_results(OutputFormat.CHART_JSON))


def test_scalar_entry() -> None:
    store = _store()
    store.print_result(
        "ramp_up_time_",
        "turn_over_tcp",
        "bwe_15s",
        1234.2,
        "ms",
        False,
        ImproveDirection.SMALLER_IS_BETTER,
    )

    assert _charts(store) == {
        "format_version": "1.0",
        "charts": {
            "ramp_up_time_turn_over_tcp": {
                "bwe_15s": {
                    "type": "scalar",
                    "value": 1234.2,
                    "units": "ms",
                    "important": False,
                    "improvement_direction": "down",
                }
            }
        },
    }


def test_list_mean_error_and_counter_entries() -> None:
    store = _store()
    store.print_result_list("sizes", "", "story", [1.0, 2.0, 3.0], "bytes", True)
    with pytest.warns(DeprecationWarning):
        store.print_result_mean_and_error(
            "bitrate", "", "story", 300.0, 25.0, "kbps", False, ImproveDirection.BIGGER_IS_BETTER
        )
    store.print_result("jitter", "", "story", SamplesStatsCounter([1.0, 3.0]), "ms", False)
    store.print_result("empty", "", "story", SamplesStatsCounter(), "ms", False)

    charts = _charts(store)["charts"]
    assert charts["sizes"]["story"] == {
        "type": "list_of_scalar_values",
        "values": [1.0, 2.0, 3.0],
        "units": "bytes",
        "important": True,
    }
    assert charts["bitrate"]["story"] == {
        "type": "list_of_scalar_values",
        "values": [300.0],
        "std": 25.0,
        "units": "kbps",
        "important": False,
        "improvement_direction": "up",
    }
    assert charts["jitter"]["story"]["values"] == [2.0]
    assert charts["jitter"]["story"]["std"] == pytest.approx(1.0)
    assert charts["empty"]["story"]["values"] == [0.0]
    assert charts["empty"]["story"]["std"] == 0.0


def test_repeated_key_becomes_value_list() -> None:
    store = _store()
    store.print_result("latency", "", "call", 10.0, "ms", False)
    store.print_result_list("latency", "", "call", [11.0, 12.0], "ms", False)

    entry = _charts(store)["charts"]["latency"]["call"]
    assert entry["type"] == "list_of_scalar_values"
    assert entry["values"] == [10.0, 11.0, 12.0]


def test_graphs_and_traces_keep_insertion_order() -> None:
    store = _store()
    store.print_result("b_graph", "", "s2", 1.0, "ms", False)
    store.print_result("a_graph", "", "s1", 1.0, "ms", False)
    store.print_result("b_graph", "", "s1", 1.0, "ms", False)

    charts = _charts(store)["charts"]
    assert list(charts) == ["b_graph", "a_graph"]
    assert list(charts["b_graph"]) == ["s2", "s1"]


def test_colliding_slots_with_same_units_are_merged() -> None:
    store = _store()
    store.print_result("ab", "c", "story", 1.0, "ms", False)
    store.print_result("a", "bc", "story", 2.0, "ms", False)

    entry = _charts(store)["charts"]["abc"]["story"]
    assert entry["values"] == [1.0, 2.0]


def test_decode_recovers_metadata() -> None:
    store = _store()
    store.print_result("fps", "_avg", "call", 29.5, "fps", True, ImproveDirection.BIGGER_IS_BETTER)
    store.print_result_list("delay", "", "call", [1.0, 2.0], "ms", False)

    records = load_chart_json(store.get_perf_results(OutputFormat.CHART_JSON))
    assert [(r.graph_name, r.trace_name) for r in records] == [("fps_avg", "call"), ("delay", "call")]
    assert records[0].units == "fps"
    assert records[0].important is True
    assert records[0].improve_direction is ImproveDirection.BIGGER_IS_BETTER
    assert records[0].values == [29.5]
    assert records[1].improve_direction is ImproveDirection.NONE
    assert records[1].values == [1.0, 2.0]


def test_decode_rejects_other_documents() -> None:
    with pytest.raises(ValueError):
        load_chart_json('{"histograms": []}')
    with pytest.raises(ValueError):
        load_chart_json('{"format_version": "0.1", "charts": {}}')


def test_colliding_slots_with_different_presentation_stay_apart(
    caplog: pytest.LogCaptureFixture,
) -> None:
    store = _store()
    store.print_result("ab", "c", "story", 5.0, "ms", False)
    store.print_result("a", "bc", "story", 2.0, "s", True)

    with caplog.at_level(logging.WARNING, logger="perftest.observations"):
        records = load_chart_json(store.get_perf_results(OutputFormat.CHART_JSON))
    assert [(r.graph_name, r.trace_name) for r in records] == [
        ("abc", "story"),
        ("abc", "story (a/bc)"),
    ]
    assert (records[0].units, records[0].important, records[0].values) == ("ms", False, [5.0])
    assert (records[1].units, records[1].important, records[1].values) == ("s", True, [2.0])
    assert "units='s'" in caplog.text
    assert "units='ms'" in caplog.text


def test_repeated_collisions_get_numbered_traces() -> None:
    store = _store()
    store.print_result("ab", "c", "story", 1.0, "ms", False)
    store.print_result("abc", "", "story (a/bc)", 2.0, "ms", False)
    store.print_result("a", "bc", "story", 3.0, "s", False)

    charts = _charts(store)["charts"]["abc"]
    assert list(charts) == ["story", "story (a/bc)", "story (a/bc) #2"]
    assert charts["story (a/bc) #2"]["value"] == 3.0


def test_overflowing_counter_statistics_stay_valid_json(caplog: pytest.LogCaptureFixture) -> None:
    store = _store()
    store.print_result("big", "", "s", SamplesStatsCounter([1e308, 1e308]), "ms", False)

    with caplog.at_level(logging.WARNING, logger="perftest.observations"):
        entry = _charts(store)["charts"]["big"]["s"]
    assert entry["values"] == [sys.float_info.max]
    assert "std" not in entry or math.isfinite(entry["std"])
    assert "overflowed" in caplog.text

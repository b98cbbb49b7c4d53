from __future__ import annotations

import json
import logging
from pathlib import Path

import pandas as pd
import pytest

from perftest import ImproveDirection, OutputFormat, PerfConfig, ResultStore
from perftest.chart_json import load_chart_json
from perftest.cli import main
from perftest.loader import detect_format, load_results_file, results_frame, store_from_records


def _results_file(tmp_path: Path, output_format: OutputFormat) -> Path:
    store = ResultStore(config=PerfConfig(echo_results=False))
    store.print_result("fps_", "avg", "call", 29.0, "fps", True, ImproveDirection.BIGGER_IS_BETTER)
    store.print_result_list("delay_", "ms", "call", [10.0, 20.0], "ms", False)
    path = tmp_path / f"results_{output_format.value}.json"
    assert store.write_perf_results(path, output_format)
    return path


def test_detect_format(tmp_path: Path) -> None:
    chart = _results_file(tmp_path, OutputFormat.CHART_JSON)
    hist = _results_file(tmp_path, OutputFormat.HISTOGRAM_JSON)

    assert detect_format(chart.read_text(encoding="utf-8")) is OutputFormat.CHART_JSON
    assert detect_format(hist.read_text(encoding="utf-8")) is OutputFormat.HISTOGRAM_JSON
    with pytest.raises(ValueError):
        detect_format("[]")


def test_store_from_records_round_trip(tmp_path: Path) -> None:
    records = load_results_file(_results_file(tmp_path, OutputFormat.CHART_JSON))
    store = store_from_records(records)

    assert load_chart_json(store.get_perf_results(OutputFormat.CHART_JSON)) == records
    assert [m.graph_name for m in store.metrics()] == ["fps_avg", "delay_ms"]


def test_results_frame(tmp_path: Path) -> None:
    frame = results_frame(load_results_file(_results_file(tmp_path, OutputFormat.HISTOGRAM_JSON)))

    assert isinstance(frame, pd.DataFrame)
    assert frame["graph_name"].tolist() == ["fps_avg", "delay_ms"]
    assert frame["improve_direction"].tolist() == ["bigger_is_better", "none"]
    assert frame.loc[1, "mean"] == pytest.approx(15.0)


def test_cli_convert(tmp_path: Path) -> None:
    source = _results_file(tmp_path, OutputFormat.CHART_JSON)
    target = tmp_path / "converted.json"

    assert main(["convert", str(source), "--to", "histogram_json", "--output", str(target)]) == 0
    names = [h["name"] for h in json.loads(target.read_text(encoding="utf-8"))["histograms"]]
    assert names == ["fps_avg", "delay_ms"]


def test_cli_plottable(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = _results_file(tmp_path, OutputFormat.HISTOGRAM_JSON)

    assert main(["plottable", str(source), "--graph", "delay_ms"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert len(out) == 1
    assert out[0].startswith('PLOTTABLE_DATA: {"graph_name":"delay_ms"')


def test_cli_summary_csv(tmp_path: Path) -> None:
    source = _results_file(tmp_path, OutputFormat.CHART_JSON)
    csv_path = tmp_path / "summary.csv"

    assert main(["summary", str(source), "--csv", str(csv_path)]) == 0
    frame = pd.read_csv(csv_path)
    assert frame["count"].tolist() == [1, 2]


def test_cli_reports_bad_input(tmp_path: Path) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text("not json", encoding="utf-8")
    assert main(["summary", str(bad)]) == 1
    assert main(["summary", str(tmp_path / "missing.json")]) == 1


def test_cli_logs_instead_of_printing(
    tmp_path: Path, caplog: pytest.LogCaptureFixture, capsys: pytest.CaptureFixture[str]
) -> None:
    source = _results_file(tmp_path, OutputFormat.CHART_JSON)
    caplog.set_level(logging.INFO, logger="perftest.cli")

    assert main(["convert", str(source), "--output", str(tmp_path / "out.json")]) == 0
    assert main(["summary", str(source), "--csv", str(tmp_path / "summary.csv")]) == 0
    assert capsys.readouterr().out == ""
    assert "Converted 2 metrics to histogram_json" in caplog.text
    assert "Summary written to" in caplog.text

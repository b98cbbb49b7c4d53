"""Put the project root on sys.path and isolate process-wide perf state per test."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from perftest import config as perf_config  # noqa: E402
from perftest import store as perf_store  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_perf_state(monkeypatch: pytest.MonkeyPatch):
    for variable in (
        perf_config.ENV_HISTOGRAM_JSON,
        perf_config.ENV_ECHO_RESULTS,
        perf_config.ENV_OUTPUT_PATH,
    ):
        monkeypatch.delenv(variable, raising=False)
    monkeypatch.setattr(perf_store, "_default_store", None)
    perf_config.set_config(None)
    yield
    perf_config.set_config(None)

"""Process-level configuration for result recording and export."""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional

log = logging.getLogger(__name__)

ENV_HISTOGRAM_JSON = "PERFTEST_WRITE_HISTOGRAM_PROTO_JSON"
ENV_ECHO_RESULTS = "PERFTEST_ECHO_RESULTS"
ENV_OUTPUT_PATH = "PERFTEST_OUTPUT_PATH"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


class OutputFormat(Enum):
    CHART_JSON = "chart_json"
    HISTOGRAM_JSON = "histogram_json"

    @classmethod
    def parse(cls, name: str | OutputFormat) -> OutputFormat:
        if isinstance(name, OutputFormat):
            return name
        try:
            return cls(name.strip().lower().replace("-", "_"))
        except ValueError:
            choices = ", ".join(fmt.value for fmt in cls)
            raise ValueError(f"Unknown output format {name!r}; expected one of {choices}") from None


def _parse_bool(raw: str, variable: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{variable} must be a boolean, got {raw!r}")


@dataclass(slots=True, frozen=True)
class PerfConfig:
    write_histogram_proto_json: bool = False
    echo_results: bool = True
    output_path: Optional[Path] = field(default=None)

    @property
    def output_format(self) -> OutputFormat:
        if self.write_histogram_proto_json:
            return OutputFormat.HISTOGRAM_JSON
        return OutputFormat.CHART_JSON

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "PerfConfig":
        env = os.environ if environ is None else environ
        config = cls()
        if ENV_HISTOGRAM_JSON in env:
            config = replace(
                config,
                write_histogram_proto_json=_parse_bool(env[ENV_HISTOGRAM_JSON], ENV_HISTOGRAM_JSON),
            )
        if ENV_ECHO_RESULTS in env:
            config = replace(
                config, echo_results=_parse_bool(env[ENV_ECHO_RESULTS], ENV_ECHO_RESULTS)
            )
        if env.get(ENV_OUTPUT_PATH):
            config = replace(config, output_path=Path(env[ENV_OUTPUT_PATH]))
        return config


_config: PerfConfig | None = None
_config_lock = threading.Lock()


def get_config() -> PerfConfig:
    """Return the process configuration, reading the environment on first use."""
    global _config
    with _config_lock:
        if _config is None:
            _config = PerfConfig.from_env()
            log.debug("Loaded perf config from environment: %s", _config)
        return _config


def set_config(config: PerfConfig | None) -> None:
    """Install ``config``; ``None`` re-reads the environment on next access."""
    global _config
    if config is not None and not isinstance(config, PerfConfig):
        raise TypeError(f"Expected PerfConfig, got {type(config).__name__}")
    with _config_lock:
        _config = config


__all__ = [
    "ENV_ECHO_RESULTS",
    "ENV_HISTOGRAM_JSON",
    "ENV_OUTPUT_PATH",
    "OutputFormat",
    "PerfConfig",
    "get_config",
    "set_config",
]

"""argparse wiring for benchmark entry points that report perf results."""

from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path

from .config import PerfConfig, get_config, set_config
from .store import ResultStore, get_default_store

log = logging.getLogger(__name__)


def add_perf_arguments(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    group = parser.add_argument_group("perf results")
    group.add_argument(
        "--write_histogram_proto_json",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Export results as histogram-set JSON instead of dashboard chart JSON",
    )
    group.add_argument(
        "--isolated_script_test_perf_output",
        type=Path,
        default=None,
        help="Write perf results to this file when the run finishes",
    )
    group.add_argument(
        "--echo_perf_results",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Echo a RESULT line for every recorded metric (default: on)",
    )
    return parser


def config_from_args(args: argparse.Namespace, base: PerfConfig | None = None) -> PerfConfig:
    """Overlay explicitly given flags on ``base`` (the process config by default)."""
    config = base if base is not None else get_config()
    histogram_flag = getattr(args, "write_histogram_proto_json", None)
    if histogram_flag is not None:
        config = replace(config, write_histogram_proto_json=histogram_flag)
    echo_flag = getattr(args, "echo_perf_results", None)
    if echo_flag is not None:
        config = replace(config, echo_results=echo_flag)
    output_path = getattr(args, "isolated_script_test_perf_output", None)
    if output_path is not None:
        config = replace(config, output_path=Path(output_path))
    return config


def apply_args(args: argparse.Namespace) -> PerfConfig:
    config = config_from_args(args)
    set_config(config)
    return config


def finalise_results(
    config: PerfConfig | None = None,
    store: ResultStore | None = None,
) -> bool:
    """Write the store to ``config.output_path`` if one is configured."""
    config = config if config is not None else get_config()
    store = store if store is not None else get_default_store()
    if config.output_path is None:
        log.debug("No perf output path configured; skipping results file")
        return True
    ok = store.write_perf_results(config.output_path, config.output_format)
    if not ok:
        log.error("Perf results could not be written to %s", config.output_path)
    return ok


__all__ = ["add_perf_arguments", "apply_args", "config_from_args", "finalise_results"]

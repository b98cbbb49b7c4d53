"""Command-line tools for saved perf result files."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from .config import OutputFormat
from .loader import load_results_file, results_frame, store_from_records

log = logging.getLogger(__name__)


def cmd_convert(args: argparse.Namespace) -> int:
    store = store_from_records(load_results_file(args.input))
    target = OutputFormat.parse(args.to)
    if args.output is None:
        sys.stdout.write(store.get_perf_results(target) + "\n")
        return 0
    if not store.write_perf_results(args.output, target):
        log.error("Could not write %s", args.output)
        return 1
    log.info("Converted %d metrics to %s: %s", len(store), target.value, args.output)
    return 0


def cmd_plottable(args: argparse.Namespace) -> int:
    store = store_from_records(load_results_file(args.input))
    store.set_output(sys.stdout)
    store.print_plottable_results(args.graph or [])
    return 0


def cmd_summary(args: argparse.Namespace) -> int:
    frame = results_frame(load_results_file(args.input))
    if args.csv is not None:
        args.csv.parent.mkdir(parents=True, exist_ok=True)
        frame.to_csv(args.csv, index=False)
        log.info("Summary written to %s", args.csv)
        return 0
    if frame.empty:
        log.info("No metrics recorded")
        return 0
    print(frame.to_string(index=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="perftest", description="Inspect saved perf results")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    convert = subparsers.add_parser("convert", help="Re-encode a results file")
    convert.add_argument("input", type=Path)
    convert.add_argument(
        "--to",
        choices=[fmt.value for fmt in OutputFormat],
        default=OutputFormat.HISTOGRAM_JSON.value,
        help="Target encoding (default: histogram_json)",
    )
    convert.add_argument("--output", type=Path, default=None, help="Output file (default: stdout)")
    convert.set_defaults(func=cmd_convert)

    plottable = subparsers.add_parser("plottable", help="Print PLOTTABLE_DATA lines")
    plottable.add_argument("input", type=Path)
    plottable.add_argument(
        "--graph",
        action="append",
        help="Graph name to include; repeat for several (default: all)",
    )
    plottable.set_defaults(func=cmd_plottable)

    summary = subparsers.add_parser("summary", help="Tabulate metrics with pandas")
    summary.add_argument("input", type=Path)
    summary.add_argument("--csv", type=Path, default=None, help="Write the table as CSV")
    summary.set_defaults(func=cmd_summary)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    try:
        return args.func(args)
    except (OSError, ValueError) as exc:
        log.error("%s failed: %s", args.command, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())

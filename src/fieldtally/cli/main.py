# main.py
# SPDX-License-Identifier: MIT

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from ..core.aggregate import merge_reports
from ..core.config import FieldTallyConfig, load_config_from_path
from ..core.log import configure_logging
from ..core.naming import resolve_output_path
from ..core.runner import count_field, validate_input_dir
from ..sinks.report import format_summary, report_to_dict, write_report


def _build_parser() -> argparse.ArgumentParser:
    """Build the top-level fieldtally CLI argument parser.

    Returns:
        argparse.ArgumentParser: Parser with ``count`` and ``merge``
        subcommands.
    """
    parser = argparse.ArgumentParser(
        prog="fieldtally",
        description="Count the distribution of one field across JSONL files.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (e.g., DEBUG, INFO, WARNING). Overrides a config file's level; default INFO.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    count_p = subparsers.add_parser("count", help="Tally a field across a directory of JSONL/JSON files.")
    count_p.add_argument("directory", help="Directory to scan recursively.")
    count_p.add_argument("-c", "--config", help="Optional config file (TOML or JSON).")
    count_p.add_argument("--field-key", "--label-key", dest="field_key", help="Field to tally (default: label).")
    count_p.add_argument("-o", "--output", dest="output_dir", help="Output directory (default: current directory).")
    count_p.add_argument("--workers", type=int, help="Worker count (default: 2x CPU cores).")
    count_p.add_argument("--suffix", help="Output file suffix (default: _label_stats.json).")
    count_p.add_argument(
        "--full-parse",
        action="store_true",
        help="Decode every line as JSON instead of the fast substring scan.",
    )
    count_p.add_argument(
        "--executor-kind",
        choices=["thread", "process"],
        help="Worker pool implementation (default: thread).",
    )
    count_p.add_argument("--no-write", action="store_true", help="Do not write the report file.")
    count_p.add_argument("--json", action="store_true", help="Print the report JSON to stdout instead of a summary.")

    merge_p = subparsers.add_parser("merge", help="Merge report JSON files.")
    merge_p.add_argument("reports", nargs="+", type=Path, help="Paths to report JSON files.")
    merge_p.add_argument("--output", "-o", type=Path, help="Output file (defaults to stdout).")

    return parser


def _load_config(args: argparse.Namespace) -> FieldTallyConfig:
    """Build the run config from an optional file plus CLI overrides."""
    cfg = load_config_from_path(args.config) if args.config else FieldTallyConfig()
    workers = args.workers if args.workers is not None and args.workers > 0 else None
    return cfg.with_overrides(
        field_key=args.field_key,
        fast_parse=False if args.full_parse else None,
        max_workers=workers,
        executor_kind=args.executor_kind,
        output_dir=args.output_dir,
        suffix=args.suffix,
    )


def _cmd_count(args: argparse.Namespace) -> int:
    cfg = _load_config(args)
    if args.config:
        # An explicit --log-level wins over the file's level.
        logging_cfg = replace(cfg.logging, level=args.log_level) if args.log_level else cfg.logging
        logging_cfg.apply()
    validate_input_dir(args.directory)
    output_path: str | None = None
    if not args.no_write:
        output_path = resolve_output_path(args.directory, cfg.output.output_dir, cfg.output.suffix)

    report = count_field(cfg, args.directory)

    if output_path is not None:
        write_report(report, output_path)
    if args.json:
        print(json.dumps(report_to_dict(report), ensure_ascii=False, indent=2))
    else:
        print(
            format_summary(
                report,
                output_path,
                top_n=cfg.output.top_n,
                max_errors=cfg.output.max_errors_shown,
            )
        )
        if output_path is not None:
            print(f"Results saved to: {output_path}")
    return 0


def _cmd_merge(args: argparse.Namespace) -> int:
    """Merge report JSON files and write to stdout or a file."""
    report_dicts = [json.loads(path.read_text("utf-8")) for path in args.reports]
    merged = merge_reports(report_dicts)
    text = json.dumps(merged, ensure_ascii=False, indent=2)
    if args.output:
        args.output.write_text(text + "\n", encoding="utf-8")
    else:
        print(text)
    return 0


def _dispatch(args: argparse.Namespace) -> int:
    configure_logging(level=args.log_level or "INFO")
    if args.command == "count":
        return _cmd_count(args)
    if args.command == "merge":
        return _cmd_merge(args)
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the fieldtally command-line interface.

    Args:
        argv (Sequence[str] | None): Optional list of argument strings to
            parse instead of ``sys.argv[1:]``. Primarily useful for tests.

    Returns:
        int: Process exit code, where 0 indicates success and non-zero
        values indicate failure.
    """
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    try:
        return _dispatch(args)
    except Exception as exc:  # noqa: BLE001
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())

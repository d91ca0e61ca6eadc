# report.py
# SPDX-License-Identifier: MIT
"""Serialization and human-readable summaries of tally reports."""
from __future__ import annotations

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any

from ..core.log import get_logger
from ..core.records import Report

__all__ = [
    "TIMESTAMP_FORMAT",
    "report_to_dict",
    "write_report",
    "format_summary",
]

log = get_logger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
_RULE = "=" * 70
_MAX_VALUE_WIDTH = 50


def report_to_dict(report: Report, *, timestamp: datetime | None = None) -> dict[str, Any]:
    """Return the JSON document shape for ``report``.

    ``errors`` is only present when the run recorded at least one.
    """
    ts = timestamp or datetime.now()
    payload: dict[str, Any] = {
        "metadata": {
            "directory": report.directory,
            "field_key": report.field_key,
            "fast_parse": report.fast_parse,
            "files_processed": report.files_processed,
            "total_lines": report.total_lines,
            "unique_labels": report.unique_values,
            "processing_time_s": report.elapsed_seconds,
            "lines_per_second": report.lines_per_second,
            "errors_count": report.errors_count,
            "timestamp": ts.strftime(TIMESTAMP_FORMAT),
        },
        "label_counts": dict(report.counts),
        "sorted_labels": [entry.as_dict() for entry in report.ranked],
    }
    if report.errors:
        payload["errors"] = list(report.errors)
    return payload


def write_report(report: Report, out_path: str | os.PathLike[str], *, timestamp: datetime | None = None) -> Path:
    """Write ``report`` as indented JSON, replacing ``out_path`` atomically.

    Returns:
        Path: The written file.
    """
    path = Path(out_path)
    if path.parent != Path(""):
        path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f"{path.name}.tmp")
    text = json.dumps(report_to_dict(report, timestamp=timestamp), ensure_ascii=False, indent=2)
    try:
        with open(tmp_path, "w", encoding="utf-8", newline="") as fp:
            fp.write(text + "\n")
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    log.debug("Wrote report to %s", path)
    return path


def _truncate(value: str, width: int = _MAX_VALUE_WIDTH) -> str:
    if len(value) > width:
        return value[: width - 3] + "..."
    return value


def format_summary(
    report: Report,
    output_path: str | os.PathLike[str] | None = None,
    *,
    top_n: int = 10,
    max_errors: int = 3,
) -> str:
    """Render a console summary: totals, first errors, and the top values."""
    lines = [_RULE, "Tally complete!"]
    if output_path is not None:
        lines.append(f"Output file: {os.fspath(output_path)}")
    lines.extend(
        [
            f"Field: {report.field_key}",
            f"Files processed: {report.files_processed}",
            f"Lines counted: {report.total_lines}",
            f"Unique values: {report.unique_values}",
            f"Processing time: {report.elapsed_seconds:.2f} s",
            f"Speed: {report.lines_per_second:.0f} lines/s",
        ]
    )

    if report.errors:
        lines.append(f"Errors: {report.errors_count}")
        shown = report.errors[: max(0, max_errors)]
        lines.extend(f"  - {err}" for err in shown)
        hidden = report.errors_count - len(shown)
        if hidden > 0:
            lines.append(f"  ... and {hidden} more")

    top = report.top(top_n)
    if top:
        lines.append("")
        lines.append(f"Top {top_n} most common values:")
        for rank, entry in enumerate(top, start=1):
            pct = (entry.count / report.total_lines * 100) if report.total_lines else 0.0
            lines.append(f"  {rank:2d}. {_truncate(entry.value):<50} : {entry.count:10d} ({pct:.2f}%)")

    lines.append(_RULE)
    return "\n".join(lines)

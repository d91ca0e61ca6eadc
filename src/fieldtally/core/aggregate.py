# aggregate.py
# SPDX-License-Identifier: MIT
"""
Merging of per-file counts into one frequency table, and ranking.

Merges are plain per-key sums, so the final table does not depend on the
order in which workers finish. Ranking sorts by count descending and
breaks ties by value in code point order, which gives one ordering for
any table.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from .log import get_logger
from .records import RankedEntry, WorkerResult

log = get_logger(__name__)

__all__ = [
    "FrequencyAggregator",
    "merge_counts",
    "rank_counts",
    "merge_reports",
]


def merge_counts(into: dict[str, int], counts: Mapping[str, int]) -> dict[str, int]:
    """Add ``counts`` into ``into`` key by key and return ``into``."""
    for value, count in counts.items():
        into[value] = into.get(value, 0) + int(count)
    return into


def rank_counts(counts: Mapping[str, int]) -> tuple[RankedEntry, ...]:
    """Order a frequency table by count descending, then value ascending."""
    ordered = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return tuple(RankedEntry(value=value, count=count) for value, count in ordered)


class FrequencyAggregator:
    """Single-consumer accumulator for :class:`WorkerResult` values.

    Partial results are merged too: a file that failed part-way still
    contributes the lines read before the failure, and its error is kept
    alongside.
    """

    def __init__(self) -> None:
        self.counts: dict[str, int] = {}
        self.total_lines = 0
        self.results_seen = 0
        self._errors: list[tuple[str, str]] = []

    def add(self, result: WorkerResult) -> None:
        self.results_seen += 1
        if result.error is not None:
            self.add_error(result.path, str(result.error))
        merge_counts(self.counts, result.counts)
        self.total_lines += result.line_count

    def add_error(self, path: str, message: str) -> None:
        self._errors.append((path, message))

    @property
    def errors(self) -> tuple[str, ...]:
        """Error messages ordered by file path, then message."""
        return tuple(msg for _, msg in sorted(self._errors))

    @property
    def unique_values(self) -> int:
        return len(self.counts)

    def ranked(self) -> tuple[RankedEntry, ...]:
        return rank_counts(self.counts)

    def extend(self, results: Iterable[WorkerResult]) -> "FrequencyAggregator":
        for result in results:
            self.add(result)
        return self


def merge_reports(report_dicts: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
    """
    Merge report dictionaries written by :func:`fieldtally.sinks.report.write_report`.

    Counts, line totals, file totals, and errors are additive. Timing is
    not: the merged processing time is the longest input's, and the
    throughput is recomputed from it.

    Raises:
        ValueError: If the reports tally different field keys.
    """
    merged_counts: dict[str, int] = {}
    files = 0
    total_lines = 0
    errors: list[str] = []
    directories: list[str] = []
    field_key: str | None = None
    processing_time = 0.0

    for data in report_dicts:
        meta = data.get("metadata") or {}
        key = meta.get("field_key")
        if key is not None:
            if field_key is None:
                field_key = key
            elif key != field_key:
                raise ValueError(
                    f"Inconsistent field_key across reports ({field_key!r} vs {key!r})."
                )
        files += int(meta.get("files_processed", 0))
        total_lines += int(meta.get("total_lines", 0))
        processing_time = max(processing_time, float(meta.get("processing_time_s", 0.0)))
        if meta.get("directory"):
            directories.append(str(meta["directory"]))
        merge_counts(merged_counts, data.get("label_counts") or {})
        errors.extend(str(e) for e in data.get("errors") or ())

    ranked = rank_counts(merged_counts)
    merged: dict[str, Any] = {
        "metadata": {
            "directories": directories,
            "field_key": field_key,
            "files_processed": files,
            "total_lines": total_lines,
            "unique_labels": len(merged_counts),
            "processing_time_s": processing_time,
            "lines_per_second": (total_lines / processing_time) if processing_time > 0 else 0.0,
            "errors_count": len(errors),
            "reports_merged": len(report_dicts),
        },
        "label_counts": merged_counts,
        "sorted_labels": [entry.as_dict() for entry in ranked],
    }
    if errors:
        merged["errors"] = errors
    log.debug("Merged %d reports: %d unique values", len(report_dicts), len(merged_counts))
    return merged

# records.py
# SPDX-License-Identifier: MIT
"""Value types passed between the discovery, worker, and aggregation stages."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .errors import FileError

__all__ = [
    "Job",
    "WorkerResult",
    "RankedEntry",
    "Report",
]


@dataclass(frozen=True, slots=True)
class Job:
    """One unit of work: a single file to scan for ``field_key``."""

    file_path: str
    field_key: str


@dataclass(slots=True)
class WorkerResult:
    """Per-file outcome handed from a worker to the aggregator.

    Attributes:
        path (str): File the counts were read from.
        counts (dict[str, int]): Extracted value -> number of lines that
            yielded it.
        line_count (int): Lines that produced a value; always equals
            ``sum(counts.values())``.
        error (FileError | None): Set when the file could not be opened or
            failed part-way. ``counts`` then holds whatever was read before
            the failure.
    """

    path: str
    counts: dict[str, int] = field(default_factory=dict)
    line_count: int = 0
    error: FileError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class RankedEntry:
    value: str
    count: int

    def as_dict(self) -> dict[str, Any]:
        return {"label": self.value, "count": self.count}


@dataclass(frozen=True)
class Report:
    """Final, read-only result of one tally run.

    ``counts`` is the full frequency table (read-only) and ``ranked`` the same data
    ordered by count descending, then value ascending. ``errors`` lists
    per-file failures ordered by file path.
    """

    directory: str
    field_key: str
    fast_parse: bool
    files_processed: int
    total_lines: int
    unique_values: int
    elapsed_seconds: float
    lines_per_second: float
    counts: Mapping[str, int]
    ranked: tuple[RankedEntry, ...]
    errors: tuple[str, ...] = ()

    @property
    def errors_count(self) -> int:
        return len(self.errors)

    def top(self, n: int) -> tuple[RankedEntry, ...]:
        """Return the ``n`` most frequent entries."""
        return self.ranked[: max(0, n)]

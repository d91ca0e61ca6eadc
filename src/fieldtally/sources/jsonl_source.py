# jsonl_source.py
# SPDX-License-Identifier: MIT

"""Per-file scanning of JSON-lines data into value counts."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import BinaryIO

from ..core.config import ReadConfig
from ..core.errors import FileOpenError, FileReadError
from ..core.extract import FieldExtractor
from ..core.log import get_logger
from ..core.records import Job, WorkerResult

log = get_logger(__name__)

__all__ = ["process_file"]


@dataclass
class _ScanStats:
    lines_read: int = 0
    blank_lines: int = 0
    skipped_lines: int = 0


def _iter_lines(fp: BinaryIO, *, policy: ReadConfig, stats: _ScanStats) -> Iterator[str]:
    """Yield decoded lines without their line terminator.

    Raises:
        ValueError: When a line exceeds ``policy.max_line_bytes`` or cannot
            be decoded (UnicodeDecodeError is a ValueError).
    """
    max_line = policy.max_line_bytes
    read_limit = max_line + 1
    while True:
        raw = fp.readline(read_limit)
        if not raw:
            break
        stats.lines_read += 1
        if len(raw) > max_line and not raw.endswith(b"\n"):
            raise ValueError(f"line {stats.lines_read} exceeds max_line_bytes={max_line}")
        if raw.endswith(b"\n"):
            raw = raw[:-1]
            if raw.endswith(b"\r"):
                raw = raw[:-1]
        yield raw.decode("utf-8", errors=policy.decode_errors)


def process_file(job: Job, extractor: FieldExtractor, read: ReadConfig | None = None) -> WorkerResult:
    """Count the values of ``job.field_key`` in one file.

    Never raises for I/O problems: an unopenable file yields an empty
    result carrying :class:`FileOpenError`; a failure part-way yields the
    counts gathered so far carrying :class:`FileReadError`.

    Args:
        job (Job): File path and field key to extract.
        extractor (FieldExtractor): Strategy applied to every non-blank line.
        read (ReadConfig | None): Line size and decoding limits.

    Returns:
        WorkerResult: Per-file counts, counted line total, and optional error.
    """
    policy = read or ReadConfig()
    result = WorkerResult(path=job.file_path)
    counts = result.counts
    key = job.field_key
    stats = _ScanStats()

    try:
        fp = open(job.file_path, "rb")
    except OSError as exc:
        result.error = FileOpenError(job.file_path, exc)
        log.warning("%s", result.error)
        return result

    with fp:
        try:
            for line in _iter_lines(fp, policy=policy, stats=stats):
                if not line.strip():
                    stats.blank_lines += 1
                    continue
                value = extractor.extract(line, key)
                if not value:
                    stats.skipped_lines += 1
                    continue
                counts[value] = counts.get(value, 0) + 1
                result.line_count += 1
        except (OSError, ValueError) as exc:
            result.error = FileReadError(job.file_path, exc)
            log.warning("%s (kept %d counted lines)", result.error, result.line_count)
            return result

    log.debug(
        "Finished %s: counted=%d skipped=%d blank=%d",
        job.file_path,
        result.line_count,
        stats.skipped_lines,
        stats.blank_lines,
    )
    return result

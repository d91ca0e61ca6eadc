# runner.py
# SPDX-License-Identifier: MIT
"""Orchestration of one tally run: discover, fan out, aggregate, rank."""
from __future__ import annotations

import functools
import os
import stat
import time
from collections.abc import Sequence
from types import MappingProxyType

from ..sources.fs import discover_files
from ..sources.jsonl_source import process_file
from .aggregate import FrequencyAggregator
from .concurrency import WorkerPool, resolve_pool_config
from .config import FieldTallyConfig
from .errors import InputDirectoryError, NoMatchingFilesError, WorkerError
from .extract import make_extractor
from .log import get_logger
from .records import Job, Report

log = get_logger(__name__)

__all__ = ["validate_input_dir", "tally_files", "count_field"]


def validate_input_dir(directory: str | os.PathLike[str]) -> None:
    """Raise InputDirectoryError unless ``directory`` is an accessible directory."""
    try:
        st = os.stat(directory)
    except FileNotFoundError:
        raise InputDirectoryError(f"directory does not exist: {os.fspath(directory)}") from None
    except OSError as exc:
        raise InputDirectoryError(f"cannot access directory {os.fspath(directory)}: {exc}") from exc
    if not stat.S_ISDIR(st.st_mode):
        raise InputDirectoryError(f"{os.fspath(directory)} is not a directory")


def tally_files(files: Sequence[str], config: FieldTallyConfig) -> FrequencyAggregator:
    """Process ``files`` concurrently and return the filled aggregator.

    Per-file failures, including unexpected worker exceptions, are
    recorded on the aggregator and never abort the run.
    """
    key = config.extract.field_key
    extractor = make_extractor(config.extract.fast_parse)
    pool_cfg = resolve_pool_config(config, len(files))
    log.info(
        "Using %d %s workers (fast parse: %s, field: %r)",
        pool_cfg.max_workers,
        pool_cfg.kind,
        config.extract.fast_parse,
        key,
    )
    pool = WorkerPool(pool_cfg)
    worker_fn = functools.partial(process_file, extractor=extractor, read=config.read)
    aggregator = FrequencyAggregator()

    def _on_error(job: Job, exc: BaseException) -> None:
        err = WorkerError(job.file_path, exc)
        log.error("%s", err)
        aggregator.add_error(job.file_path, str(err))

    jobs = (Job(file_path=path, field_key=key) for path in files)
    pool.map_unordered(jobs, worker_fn, aggregator.add, on_error=_on_error)
    return aggregator


def count_field(config: FieldTallyConfig, directory: str | os.PathLike[str]) -> Report:
    """Tally ``config.extract.field_key`` across every JSON-lines file under ``directory``.

    Args:
        config (FieldTallyConfig): Run configuration.
        directory (str | os.PathLike[str]): Root of the tree to scan.

    Returns:
        Report: Totals, frequency table, ranking, and per-file errors.

    Raises:
        ValueError: If the configuration is invalid.
        InputDirectoryError: If ``directory`` is missing or not a directory.
        DiscoveryError: If the tree cannot be walked.
        NoMatchingFilesError: If no candidate files were found.
    """
    config.validate()
    validate_input_dir(directory)
    started = time.perf_counter()

    files = discover_files(directory, config.discovery)
    if not files:
        raise NoMatchingFilesError(f"no JSONL or JSON files found under {os.fspath(directory)}")

    log.info("Found %d JSONL/JSON files", len(files))
    aggregator = tally_files(files, config)
    elapsed = time.perf_counter() - started

    report = Report(
        directory=os.fspath(directory),
        field_key=config.extract.field_key,
        fast_parse=config.extract.fast_parse,
        files_processed=len(files),
        total_lines=aggregator.total_lines,
        unique_values=aggregator.unique_values,
        elapsed_seconds=elapsed,
        lines_per_second=(aggregator.total_lines / elapsed) if elapsed > 0 else 0.0,
        counts=MappingProxyType(dict(aggregator.counts)),
        ranked=aggregator.ranked(),
        errors=aggregator.errors,
    )
    log.info(
        "Counted %d lines across %d files (%d unique values, %d errors) in %.2fs",
        report.total_lines,
        report.files_processed,
        report.unique_values,
        report.errors_count,
        elapsed,
    )
    return report

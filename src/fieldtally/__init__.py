# __init__.py
# SPDX-License-Identifier: MIT
"""
Top-level package exports for :mod:`fieldtally`.

fieldtally walks a directory tree for JSON-lines files, pulls one field out
of every record, and reports how often each value occurs across the whole
corpus.

Public surface
--------------
The symbols listed in :data:`PRIMARY_API` are the recommended entry points
and are exported via :data:`__all__`. Typical callers:

- Build a configuration via :class:`FieldTallyConfig` or load one from
  TOML/JSON with :func:`load_config_from_path`.
- Run :func:`count_field` to get a :class:`Report`.
- Persist it with :func:`write_report` or print :func:`format_summary`.

Extraction strategies
---------------------
``extract.fast_parse=True`` (the default) uses :class:`FastFieldExtractor`,
a substring scan that never decodes the line. It can match the key inside
a nested object. ``fast_parse=False`` switches to
:class:`JsonFieldExtractor`, which decodes each line and renders numbers
and booleans canonically.

Examples:
    Minimal run::

        from fieldtally import FieldTallyConfig, count_field, format_summary

        cfg = FieldTallyConfig()
        cfg.extract.field_key = "category"
        report = count_field(cfg, "data/")
        print(format_summary(report))
"""

from __future__ import annotations

try:
    from importlib.metadata import version as _pkg_version

    __version__ = _pkg_version("fieldtally")
except Exception:  # PackageNotFoundError when running from a source checkout
    __version__ = "0.0.0+unknown"


from .core.aggregate import FrequencyAggregator, merge_reports, rank_counts
from .core.concurrency import ExecutorConfig, WorkerPool
from .core.config import FieldTallyConfig, load_config_from_path
from .core.errors import (
    DiscoveryError,
    FieldTallyError,
    FileOpenError,
    FileReadError,
    InputDirectoryError,
    NoMatchingFilesError,
    WorkerError,
)
from .core.extract import (
    FastFieldExtractor,
    FieldExtractor,
    JsonFieldExtractor,
    make_extractor,
    render_value,
)
from .core.log import configure_logging, get_logger
from .core.naming import build_output_basename, resolve_output_path
from .core.records import Job, RankedEntry, Report, WorkerResult
from .core.runner import count_field, tally_files
from .sinks.report import format_summary, report_to_dict, write_report
from .sources.fs import discover_files
from .sources.jsonl_source import process_file

PRIMARY_API = [
    "__version__",
    "FieldTallyConfig",
    "load_config_from_path",
    "count_field",
    "Report",
    "RankedEntry",
    "FieldExtractor",
    "FastFieldExtractor",
    "JsonFieldExtractor",
    "make_extractor",
    "render_value",
    "discover_files",
    "process_file",
    "rank_counts",
    "merge_reports",
    "write_report",
    "report_to_dict",
    "format_summary",
    "build_output_basename",
    "FieldTallyError",
    "InputDirectoryError",
    "DiscoveryError",
    "NoMatchingFilesError",
    "FileOpenError",
    "FileReadError",
    "WorkerError",
]

# Export the stable surface area only.
__all__ = list(PRIMARY_API)

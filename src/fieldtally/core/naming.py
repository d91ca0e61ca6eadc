# naming.py
# SPDX-License-Identifier: MIT
"""Helpers for deriving report file names and normalizing extensions."""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

from .config import DEFAULT_OUTPUT_SUFFIX
from .log import get_logger

__all__ = [
    "build_output_basename",
    "ensure_dir",
    "resolve_output_path",
    "normalize_extensions",
]

log = get_logger(__name__)

_FALLBACK_NAME = "data"
# Characters replaced with "_" or removed when a directory name becomes a file name.
_REPLACE_WITH_UNDERSCORE = (" ", "/", "\\")
_DROP = (":",)


def _sanitize_dir_name(name: str) -> str:
    for ch in _REPLACE_WITH_UNDERSCORE:
        name = name.replace(ch, "_")
    for ch in _DROP:
        name = name.replace(ch, "")
    return name


def build_output_basename(directory: str | os.PathLike[str], suffix: str | None = None) -> str:
    """Build the report file name for an input directory.

    Args:
        directory: Input directory; its absolute base name is used.
        suffix: Appended to the base name. Empty or None selects
            ``_label_stats.json``.

    Returns:
        str: File name such as ``my_dataset_label_stats.json``.
    """
    base = os.path.basename(os.path.abspath(os.fspath(directory)))
    if base in ("", ".", "/"):
        base = _FALLBACK_NAME
    return _sanitize_dir_name(base) + (suffix or DEFAULT_OUTPUT_SUFFIX)


def ensure_dir(dir_path: str | os.PathLike[str] | None) -> None:
    """Create ``dir_path`` (and parents) if missing.

    Raises:
        NotADirectoryError: If the path exists but is not a directory.
    """
    if not dir_path:
        return
    path = Path(dir_path)
    if not path.exists():
        path.mkdir(parents=True, exist_ok=True)
        log.info("Created output directory: %s", path)
    elif not path.is_dir():
        raise NotADirectoryError(f"output path {path} exists but is not a directory")


def resolve_output_path(
    directory: str | os.PathLike[str],
    output_dir: str | os.PathLike[str] | None,
    suffix: str | None = None,
) -> str:
    """Return where the report for ``directory`` should be written.

    Without ``output_dir`` the bare file name is returned, i.e. the
    current working directory. Otherwise ``output_dir`` is created when
    missing and the absolute joined path is returned.
    """
    file_name = build_output_basename(directory, suffix)
    if not output_dir:
        return file_name
    ensure_dir(output_dir)
    return os.path.join(os.path.abspath(os.fspath(output_dir)), file_name)


def normalize_extensions(exts: Iterable[str] | None) -> set[str] | None:
    """Normalize extension strings into dotted lowercase values.

    Args:
        exts (Iterable[str] | None): Iterable of extensions to normalize.

    Returns:
        set[str] | None: Lowercase extensions prefixed with ".", or None when
            no values remain after cleaning.
    """
    if not exts:
        return None
    out: set[str] = set()
    for ext in exts:
        if not ext:
            continue
        cleaned = ext.strip().lower()
        if not cleaned:
            continue
        out.add(cleaned if cleaned.startswith(".") else f".{cleaned}")
    return out or None

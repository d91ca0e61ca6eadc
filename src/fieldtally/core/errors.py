# errors.py
# SPDX-License-Identifier: MIT
"""Exception types raised while tallying field values.

Run-level errors (bad input directory, failed discovery, nothing to
process) propagate out of :func:`fieldtally.core.runner.count_field`.
Per-file errors are never raised past the worker; they travel inside a
:class:`~fieldtally.core.records.WorkerResult` and end up as strings in
the report's error list.
"""

from __future__ import annotations

from pathlib import Path

__all__ = [
    "FieldTallyError",
    "InputDirectoryError",
    "DiscoveryError",
    "NoMatchingFilesError",
    "FileError",
    "FileOpenError",
    "FileReadError",
    "WorkerError",
]


class FieldTallyError(RuntimeError):
    """Base class for all fieldtally errors."""


class InputDirectoryError(FieldTallyError):
    """Raised when the input root is missing or not a directory."""


class DiscoveryError(FieldTallyError):
    """Raised when the directory walk cannot traverse part of the tree."""


class NoMatchingFilesError(FieldTallyError):
    """Raised when discovery succeeds but finds no candidate files."""


class FileError(FieldTallyError):
    """Per-file failure; recorded in the report rather than raised."""

    def __init__(self, path: str | Path, cause: BaseException | str) -> None:
        self.path = str(path)
        self.cause = cause
        super().__init__(self._format())

    def _format(self) -> str:
        return f"failed to process file [{self.path}]: {self.cause}"

    def __reduce__(self):
        # Keep pickling working for process pools; the default reduce
        # replays args, which holds the formatted message only.
        return (type(self), (self.path, str(self.cause)))


class FileOpenError(FileError):
    """The file could not be opened; it contributes no counts."""

    def _format(self) -> str:
        return f"failed to open file [{self.path}]: {self.cause}"


class FileReadError(FileError):
    """The file failed mid-scan; counts read before the failure are kept."""

    def _format(self) -> str:
        return f"failed to read file [{self.path}]: {self.cause}"


class WorkerError(FileError):
    """A worker raised unexpectedly while processing the file."""

    def _format(self) -> str:
        return f"worker failed on file [{self.path}]: {self.cause}"

# fs.py
# SPDX-License-Identifier: MIT
"""Filesystem discovery of JSON-lines inputs."""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator
from pathlib import Path

from ..core.config import DiscoveryConfig
from ..core.errors import DiscoveryError
from ..core.log import get_logger
from ..core.naming import normalize_extensions

__all__ = [
    "file_extension",
    "iter_data_files",
    "discover_files",
]

log = get_logger(__name__)


def file_extension(name: str) -> str:
    """Return the lowercased suffix starting at the last dot, or ''.

    Unlike :attr:`pathlib.PurePath.suffix`, a leading-dot name such as
    ``.json`` counts as having the extension ``.json``.
    """
    idx = name.rfind(".")
    if idx == -1:
        return ""
    return name[idx:].lower()


def iter_data_files(
    root: os.PathLike[str] | str,
    *,
    include_exts: Iterable[str],
    follow_symlinks: bool = False,
) -> Iterator[Path]:
    """Yield files under ``root`` whose extension is in ``include_exts``.

    Args:
        root: Directory to walk recursively.
        include_exts: Extensions to accept; normalized to dotted lowercase.
        follow_symlinks: Whether to descend into symlinked directories.

    Yields:
        Path: Matching files, directory by directory in sorted order.

    Raises:
        DiscoveryError: When any directory in the tree cannot be listed.
    """
    wanted = normalize_extensions(include_exts) or set()
    walk_root = Path(root)

    def _on_error(exc: OSError) -> None:
        raise DiscoveryError(f"failed to walk {exc.filename or walk_root}: {exc}") from exc

    dirs_seen = 0
    for dirpath, dirnames, filenames in os.walk(walk_root, topdown=True, onerror=_on_error, followlinks=follow_symlinks):
        dirs_seen += 1
        dirnames.sort()
        filenames.sort()
        dpath = Path(dirpath)
        for fname in filenames:
            if file_extension(fname) not in wanted:
                continue
            yield dpath / fname
    log.debug("Walked %d directories under %s", dirs_seen, walk_root)


def discover_files(root: os.PathLike[str] | str, config: DiscoveryConfig | None = None) -> list[str]:
    """Collect every JSON-lines candidate under ``root``.

    Returns an empty list when nothing matches; the caller decides whether
    that is fatal.

    Raises:
        DiscoveryError: When the walk cannot traverse part of the tree.
    """
    cfg = config or DiscoveryConfig()
    return sorted(
        str(p)
        for p in iter_data_files(
            root,
            include_exts=cfg.include_exts,
            follow_symlinks=cfg.follow_symlinks,
        )
    )

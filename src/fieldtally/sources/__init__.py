# SPDX-License-Identifier: MIT

from .fs import discover_files
from .jsonl_source import process_file

__all__ = ["discover_files", "process_file"]

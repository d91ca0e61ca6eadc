# SPDX-License-Identifier: MIT

from .report import format_summary, report_to_dict, write_report

__all__ = ["format_summary", "report_to_dict", "write_report"]

# SPDX-License-Identifier: MIT
"""Core extraction, aggregation, and configuration for fieldtally."""

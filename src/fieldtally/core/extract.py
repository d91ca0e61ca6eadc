# extract.py
# SPDX-License-Identifier: MIT
"""Per-line field extraction strategies.

Two interchangeable extractors share the ``extract(line, key)`` contract:

* :class:`FastFieldExtractor` scans the raw text for ``"<key>":`` and
  reads the value that follows without tokenizing the line. It accepts
  lines that are not valid JSON and will happily match the key inside a
  nested object; that approximation is what keeps it fast.
* :class:`JsonFieldExtractor` decodes the line with :mod:`json` and
  renders the looked-up value through :func:`render_value`.

Both return ``None`` when the key is absent or the line is unusable.
"""

from __future__ import annotations

import json
import math
from typing import Any, Protocol, runtime_checkable

__all__ = [
    "FieldExtractor",
    "FastFieldExtractor",
    "JsonFieldExtractor",
    "render_value",
    "make_extractor",
]

_WHITESPACE = " \t\r\n"
_QUOTES = "\"'"
_VALUE_TERMINATORS = ",}\n"
# repr() switches to exponent notation at 1e16; below that an integral
# float can drop its trailing ".0" without losing information.
_INTEGRAL_FLOAT_LIMIT = 1e16


@runtime_checkable
class FieldExtractor(Protocol):
    """Turns one raw line into the text value of ``key``, if present."""

    name: str

    def extract(self, line: str, key: str) -> str | None:
        ...


def _scan_quoted(line: str, start: int, quote: str) -> int:
    """Return the index of the closing ``quote`` or ``len(line)``.

    A backslash skips exactly the next character; escapes are not decoded.
    """
    end = start + 1
    n = len(line)
    while end < n and line[end] != quote:
        if line[end] == "\\" and end + 1 < n:
            end += 2
            continue
        end += 1
    return end


class FastFieldExtractor:
    """Substring-based extractor; see module docstring for its trade-offs."""

    name = "fast"

    def extract(self, line: str, key: str) -> str | None:
        needle = f'"{key}":'
        pos = line.find(needle)
        if pos == -1:
            return None

        start = pos + len(needle)
        n = len(line)
        while start < n and line[start] in _WHITESPACE:
            start += 1
        if start >= n:
            return None

        first = line[start]
        if first in _QUOTES:
            end = _scan_quoted(line, start, first)
            if end < n:
                return line[start + 1 : end]
            # Unterminated quote: fall back to the bare-value scan below.

        end = start
        while end < n and line[end] not in _VALUE_TERMINATORS:
            end += 1
        value = line[start:end].strip()
        if len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0]:
            value = value[1:-1]
        return value

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def _render_float(value: float) -> str:
    if math.isfinite(value) and value.is_integer() and abs(value) < _INTEGRAL_FLOAT_LIMIT:
        return str(int(value))
    return repr(value)


def render_value(value: Any) -> str:
    """Render a decoded JSON value as canonical text.

    * strings pass through unchanged
    * booleans become ``"true"`` / ``"false"``
    * integers use their decimal form
    * floats use the shortest round-tripping form, dropping ``.0`` on
      integral values below 1e16 (``1.0`` -> ``"1"``, ``1.5`` -> ``"1.5"``,
      ``1e20`` -> ``"1e+20"``)
    * anything else (null, objects, arrays) becomes compact JSON text
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _render_float(value)
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


class JsonFieldExtractor:
    """Full-parse extractor: decode the line, then render the value."""

    name = "json"

    def extract(self, line: str, key: str) -> str | None:
        try:
            record = json.loads(line)
        except ValueError:
            return None
        if not isinstance(record, dict) or key not in record:
            return None
        return render_value(record[key])

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def make_extractor(fast_parse: bool) -> FieldExtractor:
    """Return the extractor for the requested strategy."""
    return FastFieldExtractor() if fast_parse else JsonFieldExtractor()

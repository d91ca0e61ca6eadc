from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path

import pytest

from fieldtally.core.config import ReadConfig
from fieldtally.core.errors import FileOpenError, FileReadError
from fieldtally.core.extract import FastFieldExtractor, JsonFieldExtractor
from fieldtally.core.records import Job
from fieldtally.sources.jsonl_source import process_file


class _ListHandler(logging.Handler):
    def __init__(self, level: int) -> None:
        super().__init__(level)
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@contextmanager
def _capture_source_logs(level: int = logging.DEBUG):
    logger = logging.getLogger("fieldtally.sources.jsonl_source")
    handler = _ListHandler(level)
    logger.addHandler(handler)
    old_level = logger.level
    logger.setLevel(level)
    try:
        yield handler.records
    finally:
        logger.removeHandler(handler)
        logger.setLevel(old_level)


def _job(path: Path, key: str = "label") -> Job:
    return Job(file_path=str(path), field_key=key)


@pytest.mark.parametrize("extractor", [FastFieldExtractor(), JsonFieldExtractor()], ids=["fast", "json"])
def test_process_file_counts_values_and_skips_missing(tmp_path: Path, extractor) -> None:
    path = tmp_path / "data.jsonl"
    path.write_text(
        "\n".join(
            [
                '{"label": "a", "x": 1}',
                '{"label": "b"}',
                "",
                "   ",
                '{"x": 1}',
                '{"label": "a"}',
                '{"label": ""}',
            ]
        )
        + "\n",
        encoding="utf-8",
    )

    result = process_file(_job(path), extractor)

    assert result.error is None
    assert result.ok
    assert result.counts == {"a": 2, "b": 1}
    assert result.line_count == 3
    assert result.path == str(path)


def test_process_file_handles_crlf_and_missing_final_newline(tmp_path: Path) -> None:
    path = tmp_path / "crlf.jsonl"
    path.write_bytes(b'{"label": 5}\r\n{"label": "x"}\r\n{"label": 5}')

    result = process_file(_job(path), FastFieldExtractor())

    assert result.error is None
    assert result.counts == {"5": 2, "x": 1}


def test_process_file_missing_file_reports_open_error(tmp_path: Path) -> None:
    path = tmp_path / "missing.jsonl"

    result = process_file(_job(path), FastFieldExtractor())

    assert isinstance(result.error, FileOpenError)
    assert str(path) in str(result.error)
    assert result.counts == {}
    assert result.line_count == 0


def test_process_file_oversized_line_keeps_partial_counts(tmp_path: Path) -> None:
    path = tmp_path / "big.jsonl"
    long_line = '{"label": "' + "x" * 200 + '"}'
    path.write_text(
        "\n".join(['{"label": "a"}', '{"label": "b"}', '{"label": "a"}', long_line, '{"label": "c"}']) + "\n",
        encoding="utf-8",
    )

    with _capture_source_logs(logging.WARNING) as records:
        result = process_file(_job(path), FastFieldExtractor(), ReadConfig(max_line_bytes=64))

    assert isinstance(result.error, FileReadError)
    assert str(path) in str(result.error)
    assert "max_line_bytes=64" in str(result.error)
    assert result.counts == {"a": 2, "b": 1}
    assert result.line_count == 3
    assert any(rec.levelno == logging.WARNING for rec in records)


def test_process_file_line_exactly_at_limit_is_accepted(tmp_path: Path) -> None:
    line = b'{"label":"abc"}'
    path = tmp_path / "edge.jsonl"
    path.write_bytes(line + b"\n" + line)

    result = process_file(_job(path), FastFieldExtractor(), ReadConfig(max_line_bytes=len(line)))

    assert result.error is None
    assert result.counts == {"abc": 2}


def test_process_file_invalid_utf8_keeps_scanning_by_default(tmp_path: Path) -> None:
    path = tmp_path / "bad.jsonl"
    path.write_bytes(b'{"label":"a"}\n{"label":"caf\xe9"}\n\xff\xfe\n' + b'{"label":"b"}\n' * 1000)

    result = process_file(_job(path), FastFieldExtractor())

    assert result.error is None
    assert result.counts == {"a": 1, "caf\ufffd": 1, "b": 1000}
    assert result.line_count == 1002


def test_process_file_strict_decode_policy_is_read_failure(tmp_path: Path) -> None:
    path = tmp_path / "bad.jsonl"
    path.write_bytes(b'{"label":"a"}\n{"label":"a"}\n\xff\xfe\n{"label":"b"}\n')

    result = process_file(_job(path), FastFieldExtractor(), ReadConfig(decode_errors="strict"))

    assert isinstance(result.error, FileReadError)
    assert result.counts == {"a": 2}
    assert result.line_count == 2


def test_process_file_full_parse_skips_malformed_without_error(tmp_path: Path) -> None:
    path = tmp_path / "mixed.jsonl"
    path.write_text('{"label": "x"\n{"label": "y"}\n[1, 2]\n', encoding="utf-8")

    result = process_file(_job(path), JsonFieldExtractor())

    assert result.error is None
    assert result.counts == {"y": 1}
    assert result.line_count == 1


def test_process_file_logs_debug_summary(tmp_path: Path) -> None:
    path = tmp_path / "ok.jsonl"
    path.write_text('{"label": "a"}\n{"x": 1}\n', encoding="utf-8")

    with _capture_source_logs(logging.DEBUG) as records:
        process_file(_job(path), FastFieldExtractor())

    assert any("counted=1" in rec.getMessage() and "skipped=1" in rec.getMessage() for rec in records)

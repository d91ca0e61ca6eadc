import json
import logging
from pathlib import Path

from fieldtally.cli.main import main


def _make_input(tmp_path: Path) -> Path:
    root = tmp_path / "my_dataset"
    (root / "sub").mkdir(parents=True)
    (root / "a.jsonl").write_text(
        '{"label": "cat", "lang": "en"}\n{"label": "dog", "lang": "fr"}\n',
        encoding="utf-8",
    )
    (root / "sub" / "b.json").write_text('{"label": "cat", "lang": "en"}\n', encoding="utf-8")
    return root


def test_cli_count_writes_report_to_output_dir(tmp_path: Path, capsys):
    root = _make_input(tmp_path)
    out_dir = tmp_path / "reports"

    rc = main(["count", str(root), "-o", str(out_dir), "--workers", "2"])

    assert rc == 0
    report_path = out_dir / "my_dataset_label_stats.json"
    assert report_path.exists()
    data = json.loads(report_path.read_text(encoding="utf-8"))
    assert data["label_counts"] == {"cat": 2, "dog": 1}
    assert data["metadata"]["files_processed"] == 2
    out = capsys.readouterr().out
    assert "Tally complete!" in out
    assert f"Results saved to: {report_path}" in out


def test_cli_count_defaults_to_current_directory(tmp_path: Path, monkeypatch, capsys):
    root = _make_input(tmp_path)
    cwd = tmp_path / "cwd"
    cwd.mkdir()
    monkeypatch.chdir(cwd)

    rc = main(["count", str(root)])

    assert rc == 0
    assert (cwd / "my_dataset_label_stats.json").exists()


def test_cli_count_json_no_write(tmp_path: Path, monkeypatch, capsys):
    root = _make_input(tmp_path)
    monkeypatch.chdir(tmp_path)

    rc = main(["count", str(root), "--json", "--no-write", "--full-parse", "--field-key", "lang"])

    assert rc == 0
    data = json.loads(capsys.readouterr().out)
    assert data["metadata"]["field_key"] == "lang"
    assert data["metadata"]["fast_parse"] is False
    assert data["label_counts"] == {"en": 2, "fr": 1}
    assert data["sorted_labels"][0] == {"label": "en", "count": 2}
    assert not list(tmp_path.glob("*_stats.json"))


def test_cli_count_label_key_alias_and_suffix(tmp_path: Path, capsys):
    root = _make_input(tmp_path)
    out_dir = tmp_path / "out"

    rc = main(["count", str(root), "--label-key", "lang", "-o", str(out_dir), "--suffix", "_lang.json"])

    assert rc == 0
    data = json.loads((out_dir / "my_dataset_lang.json").read_text(encoding="utf-8"))
    assert data["label_counts"] == {"en": 2, "fr": 1}


def _write_logging_config(tmp_path: Path, level: str) -> Path:
    path = tmp_path / "tally.toml"
    path.write_text(f'[logging]\nlevel = "{level}"\npropagate = true\n', encoding="utf-8")
    return path


def test_cli_log_level_flag_overrides_config_file(tmp_path: Path, capsys):
    root = _make_input(tmp_path)
    config_path = _write_logging_config(tmp_path, "WARNING")

    rc = main(["--log-level", "DEBUG", "count", str(root), "-c", str(config_path), "--no-write"])

    assert rc == 0
    assert logging.getLogger("fieldtally").level == logging.DEBUG


def test_cli_config_file_level_applies_without_flag(tmp_path: Path, capsys):
    root = _make_input(tmp_path)
    config_path = _write_logging_config(tmp_path, "WARNING")

    rc = main(["count", str(root), "-c", str(config_path), "--no-write"])

    assert rc == 0
    assert logging.getLogger("fieldtally").level == logging.WARNING


def test_cli_count_missing_directory_fails(tmp_path: Path, capsys):
    rc = main(["count", str(tmp_path / "missing"), "--no-write"])

    assert rc == 1
    assert "does not exist" in capsys.readouterr().err


def test_cli_count_no_matching_files_fails(tmp_path: Path, capsys):
    root = tmp_path / "empty"
    root.mkdir()
    (root / "notes.txt").write_text("hi", encoding="utf-8")

    rc = main(["count", str(root), "--no-write"])

    assert rc == 1
    assert "no JSONL or JSON files" in capsys.readouterr().err


def test_cli_merge_reports(tmp_path: Path, capsys):
    first = _make_input(tmp_path)
    second = tmp_path / "second"
    second.mkdir()
    (second / "c.jsonl").write_text('{"label": "dog"}\n{"label": "bird"}\n', encoding="utf-8")
    out_dir = tmp_path / "reports"
    assert main(["count", str(first), "-o", str(out_dir)]) == 0
    assert main(["count", str(second), "-o", str(out_dir)]) == 0
    capsys.readouterr()
    merged_path = tmp_path / "merged.json"

    rc = main(
        [
            "merge",
            str(out_dir / "my_dataset_label_stats.json"),
            str(out_dir / "second_label_stats.json"),
            "-o",
            str(merged_path),
        ]
    )

    assert rc == 0
    merged = json.loads(merged_path.read_text(encoding="utf-8"))
    assert merged["label_counts"] == {"cat": 2, "dog": 2, "bird": 1}
    assert merged["metadata"]["files_processed"] == 3
    assert merged["metadata"]["reports_merged"] == 2
    assert merged["sorted_labels"][:2] == [{"label": "cat", "count": 2}, {"label": "dog", "count": 2}]

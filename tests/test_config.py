import json
from pathlib import Path

import pytest

from fieldtally.core.config import (
    DEFAULT_INCLUDE_EXTS,
    DEFAULT_MAX_LINE_BYTES,
    FieldTallyConfig,
    load_config_from_path,
    resolve_worker_count,
)


def test_defaults_match_documented_values():
    cfg = FieldTallyConfig()

    assert cfg.extract.field_key == "label"
    assert cfg.extract.fast_parse is True
    assert cfg.discovery.include_exts == DEFAULT_INCLUDE_EXTS == (".jsonl", ".json")
    assert cfg.read.max_line_bytes == DEFAULT_MAX_LINE_BYTES == 10 * 1024 * 1024
    assert cfg.read.decode_errors == "replace"
    assert cfg.pipeline.max_workers is None
    assert cfg.pipeline.executor_kind == "thread"
    assert cfg.output.suffix == "_label_stats.json"
    assert cfg.output.top_n == 10
    cfg.validate()


def test_resolve_worker_count_defaults_to_twice_cpu(monkeypatch):
    monkeypatch.setattr("fieldtally.core.config.os.cpu_count", lambda: 4)
    assert resolve_worker_count(FieldTallyConfig()) == 8

    monkeypatch.setattr("fieldtally.core.config.os.cpu_count", lambda: None)
    assert resolve_worker_count(FieldTallyConfig()) == 2


def test_resolve_worker_count_honors_explicit_value():
    cfg = FieldTallyConfig().with_overrides(max_workers=3)
    assert resolve_worker_count(cfg) == 3


def test_with_overrides_returns_copy():
    base = FieldTallyConfig()

    derived = base.with_overrides(field_key="category", fast_parse=False, output_dir="out", suffix=".json")

    assert derived.extract.field_key == "category"
    assert derived.extract.fast_parse is False
    assert derived.output.output_dir == "out"
    assert derived.output.suffix == ".json"
    assert base.extract.field_key == "label"
    assert base.extract.fast_parse is True
    assert base.output.output_dir is None


def test_with_overrides_none_keeps_values():
    base = FieldTallyConfig().with_overrides(field_key="lang", max_workers=5)

    same = base.with_overrides()

    assert same.extract.field_key == "lang"
    assert same.pipeline.max_workers == 5


def test_to_dict_from_dict_roundtrip():
    cfg = FieldTallyConfig().with_overrides(field_key="lang", max_workers=2, executor_kind="process")
    cfg.discovery.include_exts = (".ndjson",)

    data = cfg.to_dict()
    restored = FieldTallyConfig.from_dict(data)

    assert data["discovery"]["include_exts"] == [".ndjson"]
    assert "output_dir" not in data["output"]
    assert restored.extract.field_key == "lang"
    assert restored.pipeline.max_workers == 2
    assert restored.pipeline.executor_kind == "process"
    assert restored.discovery.include_exts == (".ndjson",)


def test_from_dict_rejects_unknown_keys():
    with pytest.raises(ValueError, match="Unsupported options"):
        FieldTallyConfig.from_dict({"extract": {"feild_key": "x"}})


def test_load_config_from_toml(tmp_path: Path):
    path = tmp_path / "tally.toml"
    path.write_text(
        """
[extract]
field_key = "category"
fast_parse = false

[read]
max_line_bytes = 4096

[pipeline]
max_workers = 3

[output]
top_n = 5
""",
        encoding="utf-8",
    )

    cfg = load_config_from_path(path)

    assert cfg.extract.field_key == "category"
    assert cfg.extract.fast_parse is False
    assert cfg.read.max_line_bytes == 4096
    assert cfg.pipeline.max_workers == 3
    assert cfg.output.top_n == 5
    assert cfg.discovery.include_exts == (".jsonl", ".json")


def test_load_config_from_json(tmp_path: Path):
    path = tmp_path / "tally.json"
    FieldTallyConfig().with_overrides(field_key="tag").to_json(path)

    cfg = load_config_from_path(path)

    assert json.loads(path.read_text(encoding="utf-8"))["extract"]["field_key"] == "tag"
    assert cfg.extract.field_key == "tag"


def test_from_dict_parses_boolean_strings():
    cfg = FieldTallyConfig.from_dict({"extract": {"fast_parse": "false"}, "discovery": {"follow_symlinks": "Yes"}})

    assert cfg.extract.fast_parse is False
    assert cfg.discovery.follow_symlinks is True


@pytest.mark.parametrize("raw", ["maybe", 1, [True]])
def test_from_dict_rejects_non_boolean_values(raw):
    with pytest.raises(ValueError, match="Expected a boolean"):
        FieldTallyConfig.from_dict({"extract": {"fast_parse": raw}})


def test_load_config_rejects_other_extensions(tmp_path: Path):
    path = tmp_path / "tally.yaml"
    path.write_text("extract: {}\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Unsupported config extension"):
        load_config_from_path(path)


@pytest.mark.parametrize(
    "mutate",
    [
        lambda c: setattr(c.extract, "field_key", ""),
        lambda c: setattr(c.read, "max_line_bytes", 0),
        lambda c: setattr(c.pipeline, "max_workers", 0),
        lambda c: setattr(c.pipeline, "executor_kind", "fiber"),
        lambda c: setattr(c.discovery, "include_exts", ()),
    ],
    ids=["empty-key", "zero-line-limit", "zero-workers", "bad-executor", "no-extensions"],
)
def test_validate_rejects_unusable_settings(mutate):
    cfg = FieldTallyConfig()
    mutate(cfg)

    with pytest.raises(ValueError):
        cfg.validate()

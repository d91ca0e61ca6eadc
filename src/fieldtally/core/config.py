# config.py
# SPDX-License-Identifier: MIT
"""Configuration models and helpers for fieldtally runs.

This module defines declarative dataclasses for discovery, line reading,
extraction, worker pool, output, and logging settings, along with helpers
for serializing and loading configurations from JSON and TOML.

A single :class:`FieldTallyConfig` is built once per run and passed
explicitly to every component; nothing reads process-wide state.
"""
from __future__ import annotations

import json
import os
try:  # pragma: no cover - optional dependency
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore[no-redef]
from collections.abc import Sequence as ABCSequence
from dataclasses import dataclass, field, fields, is_dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Type, TypeVar, Union, get_args, get_origin, get_type_hints

from .log import PACKAGE_LOGGER_NAME, configure_logging

DEFAULT_FIELD_KEY = "label"
DEFAULT_INCLUDE_EXTS: Tuple[str, ...] = (".jsonl", ".json")
DEFAULT_MAX_LINE_BYTES = 10 * 1024 * 1024
DEFAULT_OUTPUT_SUFFIX = "_label_stats.json"
EXECUTOR_KINDS = frozenset({"thread", "process"})


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class DiscoveryConfig:
    """Controls which files the directory walk selects.

    Attributes:
        include_exts (tuple[str, ...]): Lowercase extensions (with the
            leading dot) that mark a file as JSON-lines data.
        follow_symlinks (bool): Whether to descend into symlinked
            directories.
    """
    include_exts: Tuple[str, ...] = DEFAULT_INCLUDE_EXTS
    follow_symlinks: bool = False


@dataclass(slots=True)
class ReadConfig:
    """Line reading limits for per-file scans.

    Attributes:
        max_line_bytes (int): Longest line accepted, in bytes, excluding
            the newline. A longer line fails the file.
        decode_errors (str): ``errors`` policy for UTF-8 decoding. The
            default ``"replace"`` keeps scanning past undecodable bytes;
            ``"strict"`` turns them into a read failure.
    """
    max_line_bytes: int = DEFAULT_MAX_LINE_BYTES
    decode_errors: str = "replace"


@dataclass(slots=True)
class ExtractConfig:
    """Which field to tally and how to pull it out of each line.

    Attributes:
        field_key (str): Top-level key whose value is counted.
        fast_parse (bool): Use the substring scanner instead of full JSON
            decoding.
    """
    field_key: str = DEFAULT_FIELD_KEY
    fast_parse: bool = True


@dataclass(slots=True)
class PipelineConfig:
    """Worker pool settings.

    Attributes:
        max_workers (int | None): Number of concurrent workers. None means
            twice the logical CPU count.
        executor_kind (str): ``"thread"`` or ``"process"``.
    """
    max_workers: Optional[int] = None
    executor_kind: str = "thread"


@dataclass(slots=True)
class OutputConfig:
    """Where and how the report is written and summarized.

    Attributes:
        output_dir (str | None): Directory for the report file; None
            writes to the current directory.
        suffix (str): Appended to the input directory's name to form the
            report file name.
        top_n (int): Number of ranked values shown in the summary.
        max_errors_shown (int): Number of errors listed in the summary.
    """
    output_dir: Optional[str] = None
    suffix: str = DEFAULT_OUTPUT_SUFFIX
    top_n: int = 10
    max_errors_shown: int = 3


@dataclass(slots=True)
class LoggingConfig:
    """Controls the package logger; set propagate=True/logger_name to
    integrate with host apps.
    """
    level: int | str = "INFO"
    propagate: bool = False
    fmt: Optional[str] = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    logger_name: str = PACKAGE_LOGGER_NAME

    def apply(self) -> None:
        """Apply this logging configuration to the package logger."""
        configure_logging(
            level=self.level,
            propagate=self.propagate,
            fmt=self.fmt,
            logger_name=self.logger_name or PACKAGE_LOGGER_NAME,
        )


# ---------------------------------------------------------------------------
# Master config
# ---------------------------------------------------------------------------

T = TypeVar("T")


@dataclass(slots=True)
class FieldTallyConfig:
    """Top-level configuration for a tally run.

    Attributes:
        discovery (DiscoveryConfig): File selection settings.
        read (ReadConfig): Line reading limits.
        extract (ExtractConfig): Field key and extraction strategy.
        pipeline (PipelineConfig): Worker pool settings.
        output (OutputConfig): Report location and summary settings.
        logging (LoggingConfig): Package logger settings.
    """
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    read: ReadConfig = field(default_factory=ReadConfig)
    extract: ExtractConfig = field(default_factory=ExtractConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> None:
        """Raise ValueError when settings cannot produce a meaningful run."""
        if not self.extract.field_key:
            raise ValueError("extract.field_key must be a non-empty string")
        if self.read.max_line_bytes < 1:
            raise ValueError("read.max_line_bytes must be >= 1")
        if self.pipeline.max_workers is not None and self.pipeline.max_workers < 1:
            raise ValueError("pipeline.max_workers must be >= 1 when set")
        kind = (self.pipeline.executor_kind or "").strip().lower()
        if kind not in EXECUTOR_KINDS:
            raise ValueError(
                f"Invalid executor_kind: {self.pipeline.executor_kind!r}. "
                f"Expected one of {sorted(EXECUTOR_KINDS)}"
            )
        if not self.discovery.include_exts:
            raise ValueError("discovery.include_exts must not be empty")

    def with_overrides(
        self,
        *,
        field_key: Optional[str] = None,
        fast_parse: Optional[bool] = None,
        max_workers: Optional[int] = None,
        executor_kind: Optional[str] = None,
        output_dir: Optional[str] = None,
        suffix: Optional[str] = None,
    ) -> "FieldTallyConfig":
        """Return a copy with the given settings replaced; None leaves a value as is."""
        extract = replace(
            self.extract,
            **_not_none(field_key=field_key, fast_parse=fast_parse),
        )
        pipeline = replace(
            self.pipeline,
            **_not_none(max_workers=max_workers, executor_kind=executor_kind),
        )
        output = replace(self.output, **_not_none(output_dir=output_dir, suffix=suffix))
        return replace(self, extract=extract, pipeline=pipeline, output=output)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize this configuration to a JSON-friendly mapping."""
        return _dataclass_to_dict(self)

    def to_json(self, path: Path | str) -> None:
        """Write this configuration as indented JSON."""
        Path(path).write_text(json.dumps(self.to_dict(), indent=2) + "\n", encoding="utf-8")

    @classmethod
    def from_dict(cls: Type[T], data: Mapping[str, Any]) -> T:
        """Instantiate a FieldTallyConfig from a mapping.

        Args:
            data (Mapping[str, Any]): Mapping produced by :meth:`to_dict`
                or loaded from JSON/TOML.

        Returns:
            FieldTallyConfig: Parsed configuration instance.
        """
        return _dataclass_from_dict(cls, data)

    @classmethod
    def from_json(cls: Type[T], path: Path | str) -> T:
        """Load a configuration from a JSON file."""
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls.from_dict(payload)  # type: ignore[attr-defined]

    @classmethod
    def from_toml(cls: Type[T], path: Path | str) -> T:
        """
        Load a FieldTallyConfig from a TOML file.

        The TOML layout mirrors this dataclass: top-level tables [discovery],
        [read], [extract], [pipeline], [output], and [logging].
        """
        with Path(path).open("rb") as fh:
            payload = tomllib.load(fh)
        return cls.from_dict(payload)  # type: ignore[attr-defined]


def load_config_from_path(path: str | Path) -> FieldTallyConfig:
    """Load a FieldTallyConfig from a JSON or TOML file.

    Args:
        path (Path | str): Path to a ``.toml`` or ``.json`` config file.

    Returns:
        FieldTallyConfig: Parsed configuration instance.

    Raises:
        ValueError: If the file extension is not ``.toml`` or ``.json``.
    """
    p = Path(path)
    suffix = p.suffix.lower()
    if suffix == ".toml":
        return FieldTallyConfig.from_toml(p)
    if suffix == ".json":
        return FieldTallyConfig.from_json(p)
    raise ValueError(f"Unsupported config extension {p.suffix!r}; expected .toml or .json.")


def resolve_worker_count(cfg: FieldTallyConfig) -> int:
    """Return the configured worker count, defaulting to 2x logical CPUs."""
    configured = cfg.pipeline.max_workers
    if configured:
        return max(1, int(configured))
    return max(1, (os.cpu_count() or 1) * 2)


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def _not_none(**kwargs: Any) -> Dict[str, Any]:
    return {k: v for k, v in kwargs.items() if v is not None}


def _dataclass_to_dict(obj: Any) -> Dict[str, Any]:
    """Serialize dataclasses to JSON-friendly dicts, skipping None fields."""
    result: Dict[str, Any] = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if value is None:
            continue
        result[f.name] = _serialize_value(value)
    return result


def _serialize_value(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_serialize_value(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _serialize_value(v) for k, v in value.items()}
    if is_dataclass(value):
        return _dataclass_to_dict(value)
    return str(value)


def _dataclass_from_dict(cls: Type[T], data: Mapping[str, Any] | None) -> T:
    """Instantiate a dataclass of type `cls` from a mapping.

    Unknown keys raise ValueError so typos in config files surface early.
    """
    if data is None:
        return cls()  # type: ignore[call-arg]
    type_hints = get_type_hints(cls)
    known = {f.name for f in fields(cls)}  # type: ignore[arg-type]
    unknown = sorted(k for k in data if k not in known)
    if unknown:
        raise ValueError(
            f"Unsupported options for {cls.__name__}: {', '.join(unknown)}. "
            f"Allowed keys: {', '.join(sorted(known))}"
        )

    kwargs: Dict[str, Any] = {}
    for f in fields(cls):  # type: ignore[arg-type]
        if f.name not in data:
            continue
        field_type = type_hints.get(f.name, f.type)
        kwargs[f.name] = _coerce_value(field_type, data[f.name])
    return cls(**kwargs)


def _coerce_value(expected_type: Any, value: Any) -> Any:
    """Coerce `value` into the shape implied by `expected_type`."""
    base_type, _ = _strip_optional(expected_type)
    if value is None:
        return None
    if isinstance(base_type, type) and is_dataclass(base_type):
        return _dataclass_from_dict(base_type, value)
    origin = get_origin(base_type)
    if origin in (list, tuple, ABCSequence):
        args = get_args(base_type)
        inner = args[0] if args else Any
        items = [_coerce_value(inner, v) for v in value]
        return tuple(items) if origin is tuple else list(items)
    if base_type is bool:
        return _coerce_bool(value)
    if base_type in {str, int, float}:
        return base_type(value)
    return value


_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
_FALSE_STRINGS = frozenset({"false", "0", "no", "off"})


def _coerce_bool(value: Any) -> bool:
    """Accept real booleans and the usual true/false spellings; reject the rest."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ValueError(f"Expected a boolean, got {value!r}")


def _strip_optional(typ: Any) -> Tuple[Any, bool]:
    """Strip Optional from a type annotation.

    Returns:
        tuple[Any, bool]: ``(base_type, is_optional)``.
    """
    origin = get_origin(typ)
    if origin is Union or (origin is not None and type(None) in get_args(typ)):
        args = [arg for arg in get_args(typ) if arg is not type(None)]
        if len(args) == 1:
            base, _ = _strip_optional(args[0])
            return base, True
    return typ, False


__all__ = [
    "DEFAULT_FIELD_KEY",
    "DEFAULT_INCLUDE_EXTS",
    "DEFAULT_MAX_LINE_BYTES",
    "DEFAULT_OUTPUT_SUFFIX",
    "DiscoveryConfig",
    "ReadConfig",
    "ExtractConfig",
    "PipelineConfig",
    "OutputConfig",
    "LoggingConfig",
    "FieldTallyConfig",
    "load_config_from_path",
    "resolve_worker_count",
]

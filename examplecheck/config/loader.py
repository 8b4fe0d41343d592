import json
import re
import tomllib
from pathlib import Path
from typing import Any, Mapping

import yaml

from .types import ConfigError, RunnerConfig, UnsupportedConfigFormatError

CONFIG_FILENAMES = (
    "examplecheck.yml",
    "examplecheck.yaml",
    "examplecheck.toml",
    "examplecheck.json",
)


def find_config(root: str | Path) -> Path | None:
    for name in CONFIG_FILENAMES:
        candidate = Path(root) / name
        if candidate.is_file():
            return candidate
    return None


def load_config(path: str | Path) -> RunnerConfig:
    pure_path = Path(path).expanduser().resolve()

    if not pure_path.exists():
        raise ConfigError(f"Config file not found: {pure_path}")

    if not pure_path.is_file():
        raise ConfigError(f"Config path is not a file: {pure_path}")

    fmt = _detect_format(pure_path)
    raw_file = _parse_file(pure_path, fmt)
    config = _build_runner_config(raw_file)
    validate_config(config)
    return config


def validate_config(config: RunnerConfig) -> None:
    if config.concurrency < 1:
        raise ConfigError(f"'concurrency' must be at least 1, got {config.concurrency}")

    if config.timeout_ms <= 0:
        raise ConfigError(f"'timeout_ms' must be positive, got {config.timeout_ms}")

    if config.excerpt_lines < 1:
        raise ConfigError(
            f"'excerpt_lines' must be at least 1, got {config.excerpt_lines}"
        )

    if len(config.command) < 1:
        raise ConfigError("'command' can't be empty")

    patterns = list(config.error_patterns)
    if config.chapter_pattern is not None:
        patterns.append(config.chapter_pattern)

    for pattern in patterns:
        try:
            re.compile(pattern)
        except re.error as exc:
            raise ConfigError(f"Invalid regular expression {pattern!r}: {exc}") from exc


def _detect_format(path: Path) -> str:
    fmt = path.suffix
    match fmt:
        case ".yaml" | ".yml":
            return "yaml"
        case ".toml":
            return "toml"
        case ".json":
            return "json"
        case _:
            raise UnsupportedConfigFormatError(
                f"Unsupported config extension: {fmt}\n Expected format: .yml/.yaml, .toml, .json"
            )


def _parse_file(path: Path, fmt: str) -> Mapping[str, Any]:
    match fmt:
        case "yaml":
            raw_file = _parse_yaml(path)
        case "toml":
            raw_file = _parse_toml(path)
        case "json":
            raw_file = _parse_json(path)
        case _:
            raise AssertionError("Unreachable")

    if not isinstance(raw_file, Mapping):
        raise ConfigError(
            f"{path}: parsed successfully but top-level value is not an object: {type(raw_file)}"
        )

    return raw_file


def _parse_yaml(path: Path) -> Any:
    try:
        raw_file = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path}: invalid YAML") from exc

    # An empty document means "all defaults"
    return {} if raw_file is None else raw_file


def _parse_toml(path: Path) -> Any:
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"{path}: invalid TOML") from exc


def _parse_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{path}: invalid JSON") from exc


def _build_runner_config(raw: Mapping[str, Any]) -> RunnerConfig:
    keys = {
        "concurrency",
        "timeout_ms",
        "command",
        "extension",
        "excluded_names",
        "chapter_pattern",
        "chapter_subdirs",
        "interactive_inputs",
        "error_patterns",
        "env",
        "excerpt_lines",
    }
    config = RunnerConfig()

    for key in raw.keys():
        if key not in keys:
            raise ConfigError(f"Can't process: {key}")

    if "concurrency" in raw:
        config.concurrency = _int_field(raw, "concurrency")

    if "timeout_ms" in raw:
        config.timeout_ms = _int_field(raw, "timeout_ms")

    if "excerpt_lines" in raw:
        config.excerpt_lines = _int_field(raw, "excerpt_lines")

    if "command" in raw:
        config.command = _str_list_field(raw, "command")

    if "extension" in raw:
        extension = raw["extension"]
        if not isinstance(extension, str) or len(extension.strip()) < 1:
            raise ConfigError("'extension' should be a non-empty string")
        extension = extension.strip()
        config.extension = extension if extension.startswith(".") else f".{extension}"

    if "excluded_names" in raw:
        config.excluded_names = _str_list_field(raw, "excluded_names", allow_empty=True)

    if "chapter_pattern" in raw:
        pattern = raw["chapter_pattern"]
        if pattern is not None and not isinstance(pattern, str):
            raise ConfigError("'chapter_pattern' should be a string or null")
        config.chapter_pattern = pattern

    if "chapter_subdirs" in raw:
        config.chapter_subdirs = _str_list_field(raw, "chapter_subdirs")

    if "interactive_inputs" in raw:
        config.interactive_inputs = _str_map_field(raw, "interactive_inputs")

    if "error_patterns" in raw:
        config.error_patterns = _str_list_field(raw, "error_patterns", allow_empty=True)

    if "env" in raw:
        config.env = _str_map_field(raw, "env")

    return config


def _int_field(raw: Mapping[str, Any], key: str) -> int:
    value = raw[key]
    # bool is a subclass of int
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"'{key}' should be an integer, got {type(value)}")
    return value


def _str_list_field(
    raw: Mapping[str, Any], key: str, *, allow_empty: bool = False
) -> list[str]:
    value = raw[key]
    if not isinstance(value, list):
        raise ConfigError(f"'{key}' should be a list")

    if not allow_empty and len(value) < 1:
        raise ConfigError(f"'{key}' can't be empty")

    items = []
    for item in value:
        if not isinstance(item, str):
            raise ConfigError(f"'{key}': {item} should be a string")

        if len(item.strip()) < 1:
            raise ConfigError(f"'{key}': an item is empty")

        items.append(item)

    return items


def _str_map_field(raw: Mapping[str, Any], key: str) -> dict[str, str]:
    value = raw[key]
    if not isinstance(value, Mapping):
        raise ConfigError(f"'{key}' should be a mapping")

    out = {}
    for name, item in value.items():
        if not isinstance(name, str):
            raise ConfigError(f"'{key}': {name} should be a string")

        if len(name.strip()) < 1:
            raise ConfigError(f"'{key}': a key can't be empty")

        if not isinstance(item, str):
            raise ConfigError(f"'{key}': {item} should be a string")

        out[name.strip()] = item

    return out

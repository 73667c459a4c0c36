"""Configuration loading and manipulation helpers."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Sequence

import yaml


class ConfigError(ValueError):
    """Raised when configuration values are missing, malformed or contradictory."""


def load_config(config_path: Path) -> Mapping[str, Any]:
    """
    Parse a YAML configuration file into a nested mapping.

    Typed validation happens later in ``src.pipelines.options.build_options``.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle) or {}
    if not isinstance(loaded, Mapping):
        raise ConfigError(f"Configuration root in {config_path} must be a mapping")
    return loaded


def clone_config(config: Mapping[str, Any]) -> dict[str, Any]:
    """Return a deep copy of the configuration mapping."""
    return copy.deepcopy(dict(config))


def merge_config(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """
    Deep-merge ``overrides`` into a copy of ``base``.

    Nested mappings are merged key by key; any other value replaces the base.
    """
    merged = clone_config(base)
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_config(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def set_by_dotted_path(
    config: MutableMapping[str, Any],
    dotted_key: str,
    value: Any,
) -> None:
    """
    Assign a value inside a nested mapping using dotted-path syntax.

    Examples
    --------
    >>> cfg = {"algorithm": {"max_prefs": 500}}
    >>> set_by_dotted_path(cfg, "algorithm.max_prefs", 100)
    >>> cfg["algorithm"]["max_prefs"]
    100
    """
    keys: Sequence[str] = dotted_key.split(".")
    current: MutableMapping[str, Any] = config
    for key in keys[:-1]:
        if key not in current or not isinstance(current[key], MutableMapping):
            current[key] = {}
        current = current[key]  # type: ignore[assignment]
    current[keys[-1]] = value


def get_by_dotted_path(config: Mapping[str, Any], dotted_key: str, default: Any = None) -> Any:
    """Fetch a value from a nested mapping using dotted-path syntax."""
    current: Any = config
    for key in dotted_key.split("."):
        if not isinstance(current, Mapping) or key not in current:
            return default
        current = current[key]
    return current


def parse_override(assignment: str) -> tuple[str, Any]:
    """
    Split a ``section.key=value`` override, parsing the value as YAML.

    >>> parse_override("algorithm.max_prefs=20")
    ('algorithm.max_prefs', 20)
    """
    key, sep, raw_value = assignment.partition("=")
    key = key.strip()
    if not sep or not key:
        raise ConfigError(f"Override must look like 'section.key=value', got {assignment!r}")
    return key, yaml.safe_load(raw_value) if raw_value.strip() else None

"""
Typed, validated options for the item-similarity pipeline.

Raw configuration (YAML defaults, config files, CLI overrides) is validated
once by ``build_options`` and passed around as an immutable value.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional

from src.data.readers import DEFAULT_DELIMITER, DEFAULT_FILENAME_PATTERN, ReadSchema
from src.reporting.writers import WriteSchema
from src.utils.config import ConfigError, get_by_dotted_path, merge_config


DEFAULT_RANDOM_SEED = 42

DEFAULT_CONFIG: Mapping[str, Any] = {
    "input": {
        "path": None,
        "path2": None,
        "filename_pattern": DEFAULT_FILENAME_PATTERN,
        "recursive": False,
    },
    "schema": {
        "delimiter": DEFAULT_DELIMITER,
        "row_id_position": 0,
        "column_id_position": 1,
        "strength_position": -1,
        "filter_position": -1,
        "filter1": None,
        "filter2": None,
    },
    "output": {
        "path": None,
        "row_key_delimiter": "\t",
        "column_id_strength_delimiter": ":",
        "tuple_delimiter": " ",
        "omit_strength": False,
        "write_all_datasets": False,
    },
    "algorithm": {
        "max_prefs": 500,
        "max_similarities_per_item": 100,
        "random_seed": DEFAULT_RANDOM_SEED,
    },
}


class SecondaryMode(str, Enum):
    NONE = "none"
    SECOND_INPUT = "input2"
    FILTER = "filter"


@dataclass(frozen=True)
class ItemSimilarityOptions:
    input_path: str
    output_path: Path
    read_schema: ReadSchema
    write_schema: WriteSchema
    secondary_mode: SecondaryMode = SecondaryMode.NONE
    input_path2: Optional[str] = None
    secondary_filter: Optional[str] = None
    filename_pattern: str = DEFAULT_FILENAME_PATTERN
    recursive: bool = False
    max_prefs: int = 500
    max_similarities_per_item: int = 100
    random_seed: Optional[int] = DEFAULT_RANDOM_SEED
    write_all_datasets: bool = False

    @property
    def secondary_locations(self) -> Optional[str]:
        if self.secondary_mode is SecondaryMode.SECOND_INPUT:
            return self.input_path2
        if self.secondary_mode is SecondaryMode.FILTER:
            return self.input_path
        return None

    @property
    def secondary_read_schema(self) -> Optional[ReadSchema]:
        if self.secondary_mode is SecondaryMode.NONE:
            return None
        return self.read_schema.with_filter(self.secondary_filter)

    @property
    def similarity_output(self) -> Path:
        return self.output_path / "indicator-matrix"

    @property
    def cross_similarity_output(self) -> Path:
        return self.output_path / "cross-indicator-matrix"

    @property
    def input_datasets_output(self) -> Path:
        return self.output_path.parent / "input-datasets"


def _int(config: Mapping[str, Any], key: str) -> int:
    value = get_by_dotted_path(config, key)
    if isinstance(value, bool):
        raise ConfigError(f"Option {key} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Option {key} must be an integer, got {value!r}") from exc


def _optional_str(config: Mapping[str, Any], key: str) -> Optional[str]:
    value = get_by_dotted_path(config, key)
    if value is None:
        return None
    value = str(value)
    return value or None


def build_options(config: Mapping[str, Any]) -> ItemSimilarityOptions:
    """
    Validate a nested configuration mapping and return typed options.

    ``config`` is merged over ``DEFAULT_CONFIG`` first, so partial mappings
    are accepted.

    Raises
    ------
    ConfigError
        If a required option is missing or an option value is invalid.
    """
    merged = merge_config(DEFAULT_CONFIG, config)

    input_path = _optional_str(merged, "input.path")
    if input_path is None:
        raise ConfigError("Option input.path is required")
    output_path = _optional_str(merged, "output.path")
    if output_path is None:
        raise ConfigError("Option output.path is required")

    max_prefs = _int(merged, "algorithm.max_prefs")
    if max_prefs <= 0:
        raise ConfigError("Option algorithm.max_prefs must be > 0")
    max_similarities = _int(merged, "algorithm.max_similarities_per_item")
    if max_similarities <= 0:
        raise ConfigError("Option algorithm.max_similarities_per_item must be > 0")

    seed_value = get_by_dotted_path(merged, "algorithm.random_seed")
    random_seed = None if seed_value is None else _int(merged, "algorithm.random_seed")

    delimiter = _optional_str(merged, "schema.delimiter")
    if delimiter is None:
        raise ConfigError("Option schema.delimiter must not be empty")
    try:
        re.compile(delimiter)
    except re.error as exc:
        raise ConfigError(f"Option schema.delimiter is not a valid regex: {exc}") from exc

    filename_pattern = _optional_str(merged, "input.filename_pattern") or DEFAULT_FILENAME_PATTERN
    try:
        re.compile(filename_pattern)
    except re.error as exc:
        raise ConfigError(f"Option input.filename_pattern is not a valid regex: {exc}") from exc

    row_position = _int(merged, "schema.row_id_position")
    column_position = _int(merged, "schema.column_id_position")
    strength_position = _int(merged, "schema.strength_position")
    filter_position = _int(merged, "schema.filter_position")
    if row_position < 0 or column_position < 0:
        raise ConfigError("Row and column id positions must be >= 0")
    if strength_position < -1 or filter_position < -1:
        raise ConfigError("Strength and filter positions must be >= 0, or -1 when absent")
    used = [p for p in (row_position, column_position, strength_position, filter_position) if p >= 0]
    if len(used) != len(set(used)):
        raise ConfigError(f"Field positions must be distinct, got {used}")

    filter1 = _optional_str(merged, "schema.filter1")
    filter2 = _optional_str(merged, "schema.filter2")
    if (filter1 is not None or filter2 is not None) and filter_position < 0:
        raise ConfigError("Options schema.filter1/filter2 require schema.filter_position")

    input_path2 = _optional_str(merged, "input.path2")
    if input_path2 is not None and filter2 is not None:
        raise ConfigError(
            "Options input.path2 and schema.filter2 both define the secondary dataset; "
            "configure only one of them"
        )
    if input_path2 is not None:
        secondary_mode = SecondaryMode.SECOND_INPUT
    elif filter2 is not None:
        secondary_mode = SecondaryMode.FILTER
    else:
        secondary_mode = SecondaryMode.NONE

    read_schema = ReadSchema(
        delimiter=delimiter,
        row_id_position=row_position,
        column_id_position=column_position,
        strength_position=strength_position,
        filter_position=filter_position,
        filter_value=filter1,
    )
    write_schema = WriteSchema(
        row_key_delimiter=str(get_by_dotted_path(merged, "output.row_key_delimiter")),
        column_id_strength_delimiter=str(
            get_by_dotted_path(merged, "output.column_id_strength_delimiter")
        ),
        tuple_delimiter=str(get_by_dotted_path(merged, "output.tuple_delimiter")),
        omit_strength=bool(get_by_dotted_path(merged, "output.omit_strength")),
    )

    return ItemSimilarityOptions(
        input_path=input_path,
        output_path=Path(output_path),
        read_schema=read_schema,
        write_schema=write_schema,
        secondary_mode=secondary_mode,
        input_path2=input_path2,
        secondary_filter=filter2 if secondary_mode is SecondaryMode.FILTER else None,
        filename_pattern=filename_pattern,
        recursive=bool(get_by_dotted_path(merged, "input.recursive")),
        max_prefs=max_prefs,
        max_similarities_per_item=max_similarities,
        random_seed=random_seed,
        write_all_datasets=bool(get_by_dotted_path(merged, "output.write_all_datasets")),
    )

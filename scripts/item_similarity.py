"""
Compute LLR co-occurrence item similarity from delimited interaction tuples.

Reads lines of (row id, column id[, strength][, filter tag]) and writes, per
item, the most similar items sorted by descending score. With a second input
or a second filter value, the cross-similarity to the secondary interactions
is written as well.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Sequence

PROJECT_ROOT = Path(__file__).resolve().parent.parent
project_root_str = str(PROJECT_ROOT)
if project_root_str not in sys.path:
    sys.path.insert(0, project_root_str)

from loguru import logger

from src.pipelines import build_options, run_item_similarity
from src.utils import ConfigError, load_config, merge_config, parse_override, set_by_dotted_path


# CLI flag -> dotted config key
CLI_OPTION_KEYS = {
    "input": "input.path",
    "input2": "input.path2",
    "output": "output.path",
    "filename_pattern": "input.filename_pattern",
    "recursive": "input.recursive",
    "in_delim": "schema.delimiter",
    "row_id_position": "schema.row_id_position",
    "item_id_position": "schema.column_id_position",
    "strength_position": "schema.strength_position",
    "filter_position": "schema.filter_position",
    "filter1": "schema.filter1",
    "filter2": "schema.filter2",
    "row_key_delim": "output.row_key_delimiter",
    "column_id_strength_delim": "output.column_id_strength_delimiter",
    "tuple_delim": "output.tuple_delimiter",
    "omit_strength": "output.omit_strength",
    "write_all_datasets": "output.write_all_datasets",
    "max_prefs": "algorithm.max_prefs",
    "max_similarities_per_item": "algorithm.max_similarities_per_item",
    "random_seed": "algorithm.random_seed",
}


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--config", type=Path, help="Path to a YAML configuration file.")
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="SECTION.KEY=VALUE",
        help="Override a configuration value (repeatable).",
    )

    io_group = parser.add_argument_group("input/output")
    io_group.add_argument("-i", "--input", help="Input file(s) or directory, comma separated.")
    io_group.add_argument("-i2", "--input2", help="Secondary input for cross-similarity.")
    io_group.add_argument("-o", "--output", help="Output directory.")
    io_group.add_argument("-fp", "--filename-pattern", help="Regex selecting files in input directories.")
    io_group.add_argument("-r", "--recursive", action="store_const", const=True, help="Search input directories recursively.")

    schema_group = parser.add_argument_group("input schema")
    schema_group.add_argument("--in-delim", help="Regex splitting input fields.")
    schema_group.add_argument("-rc", "--row-id-position", type=int, help="Field position of the row id.")
    schema_group.add_argument("-ic", "--item-id-position", type=int, help="Field position of the item id.")
    schema_group.add_argument("-sc", "--strength-position", type=int, help="Field position of the strength.")
    schema_group.add_argument("-fc", "--filter-position", type=int, help="Field position of the filter tag.")
    schema_group.add_argument("-f1", "--filter1", help="Filter tag selecting primary interactions.")
    schema_group.add_argument("-f2", "--filter2", help="Filter tag selecting secondary interactions.")

    out_group = parser.add_argument_group("output schema")
    out_group.add_argument("--row-key-delim", help="Delimiter after the row id.")
    out_group.add_argument("--column-id-strength-delim", help="Delimiter between id and score.")
    out_group.add_argument("--tuple-delim", help="Delimiter between id:score pairs.")
    out_group.add_argument("-os", "--omit-strength", action="store_const", const=True, help="Write ids without scores.")
    out_group.add_argument(
        "--write-all-datasets",
        action="store_const",
        const=True,
        help="Also write the input interaction matrices.",
    )

    algo_group = parser.add_argument_group("algorithm")
    algo_group.add_argument("-mppu", "--max-prefs", type=int, help="Max preferences considered per user.")
    algo_group.add_argument("-m", "--max-similarities-per-item", type=int, help="Max similar items kept per item.")
    algo_group.add_argument("--random-seed", type=int, help="Seed for preference down-sampling.")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> dict[str, Any]:
    """Layer the config file, explicit CLI flags and ``--set`` overrides."""
    config: dict[str, Any] = {}
    if args.config is not None:
        config = merge_config(config, load_config(args.config))
    for attribute, dotted_key in CLI_OPTION_KEYS.items():
        value = getattr(args, attribute)
        if value is not None:
            set_by_dotted_path(config, dotted_key, value)
    for assignment in args.overrides:
        key, value = parse_override(assignment)
        set_by_dotted_path(config, key, value)
    return config


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        options = build_options(build_config(args))
    except ConfigError as exc:
        logger.error("Invalid configuration: {}", exc)
        return 2

    if args.config is not None:
        logger.info("Starting item similarity with config at {}", args.config)
    result = run_item_similarity(options)
    for path in result.output_paths:
        logger.info("Output written to {}", path)
    return 0


if __name__ == "__main__":
    sys.exit(main())

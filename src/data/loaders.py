"""
Typed loading helpers that read primary and secondary interaction datasets.

The secondary read always happens after the primary read has finished, since
its row mapping is seeded from the primary row mapping.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from loguru import logger

from .alignment import align_datasets
from .datasets import IndexedDataset
from .readers import DEFAULT_FILENAME_PATTERN, ReadSchema, TupleReader, discover_input_files


@dataclass(frozen=True)
class LoadedDatasets:
    """
    Container for the aligned datasets of one run.

    ``primary`` is None when the primary input holds no data; ``secondary`` is
    None when no secondary dataset was requested.
    """

    primary: Optional[IndexedDataset]
    secondary: Optional[IndexedDataset] = None

    @property
    def has_data(self) -> bool:
        return self.primary is not None

    @property
    def has_secondary(self) -> bool:
        return self.secondary is not None


def load_indexed_datasets(
    primary_locations: str | Path | Sequence[str | Path],
    *,
    primary_schema: ReadSchema,
    secondary_locations: str | Path | Sequence[str | Path] | None = None,
    secondary_schema: ReadSchema | None = None,
    filename_pattern: str = DEFAULT_FILENAME_PATTERN,
    recursive: bool = False,
) -> LoadedDatasets:
    """
    Read the primary dataset and, when configured, an aligned secondary one.

    Parameters
    ----------
    primary_locations:
        Files or directories holding the primary interactions.
    secondary_locations:
        Files or directories for the secondary interactions. Passing the
        primary locations together with a differently filtered
        ``secondary_schema`` reads both datasets from the same files.
    """
    try:
        primary_files = discover_input_files(
            primary_locations, filename_pattern=filename_pattern, recursive=recursive
        )
    except FileNotFoundError as exc:
        logger.warning("Primary input is missing, nothing to read: {}", exc)
        return LoadedDatasets(primary=None)
    if not primary_files:
        logger.warning("No primary input files found at {}", primary_locations)
        return LoadedDatasets(primary=None)

    logger.info("Reading primary interactions from {} file(s)", len(primary_files))
    primary = TupleReader(primary_schema).read_tuples(primary_files)
    if primary.empty:
        logger.warning("Primary input contains no usable interactions.")
        return LoadedDatasets(primary=None)

    if secondary_locations is None:
        return LoadedDatasets(primary=primary)

    secondary_files = discover_input_files(
        secondary_locations, filename_pattern=filename_pattern, recursive=recursive
    )
    logger.info("Reading secondary interactions from {} file(s)", len(secondary_files))
    secondary = TupleReader(secondary_schema or primary_schema).read_tuples(
        secondary_files, existing_row_ids=primary.row_ids
    )
    if secondary.empty:
        logger.warning("Secondary input contains no usable interactions.")

    aligned = align_datasets(primary, secondary)
    return LoadedDatasets(primary=aligned.primary, secondary=aligned.secondary)

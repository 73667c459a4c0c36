"""
Row-space reconciliation between a primary and a secondary IndexedDataset.

Both matrices must describe one row universe before they reach the
similarity kernel: row ``i`` of A and row ``i`` of B name the same entity and
both matrices have the same number of rows. The secondary dataset is read
with its row mapping seeded from the primary one, which makes B's row
mapping an extension of A's; alignment then pads whichever matrix is short.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from .datasets import IndexedDataset


class AlignmentError(RuntimeError):
    """Raised when two datasets cannot share one row universe."""


@dataclass(frozen=True)
class AlignedDatasets:
    primary: IndexedDataset
    secondary: IndexedDataset

    @property
    def row_count(self) -> int:
        return self.primary.row_count


def align_datasets(primary: IndexedDataset, secondary: IndexedDataset) -> AlignedDatasets:
    """
    Give ``primary`` and ``secondary`` identical row cardinality and row ids.

    ``secondary`` must have been read with its row mapping seeded from
    ``primary.row_ids``. The authoritative row cardinality is the size of the
    secondary row mapping, which covers the rows of both reads.
    """
    if not secondary.row_ids.extends(primary.row_ids):
        raise AlignmentError(
            "Secondary row ids were not seeded from the primary row ids; "
            "row indices would refer to different entities."
        )

    row_ids = secondary.row_ids
    row_cardinality = len(row_ids)

    aligned_primary = primary
    if primary.row_count != row_cardinality:
        logger.debug(
            "Padding primary rows {} -> {}", primary.row_count, row_cardinality
        )
        aligned_primary = primary.with_row_cardinality(row_ids)

    aligned_secondary = secondary
    if secondary.row_count != row_cardinality:
        aligned_secondary = secondary.with_row_cardinality(row_ids)

    _verify_alignment(aligned_primary, aligned_secondary, primary)

    logger.info(
        "Aligned datasets | rows={} primary_columns={} secondary_columns={}",
        row_cardinality,
        aligned_primary.column_count,
        aligned_secondary.column_count,
    )
    return AlignedDatasets(primary=aligned_primary, secondary=aligned_secondary)


def _verify_alignment(
    primary: IndexedDataset, secondary: IndexedDataset, original_primary: IndexedDataset
) -> None:
    if primary.row_count != secondary.row_count:
        raise AlignmentError(
            f"Row counts differ after alignment: {primary.row_count} != {secondary.row_count}"
        )
    if len(primary.row_ids) != len(secondary.row_ids):
        raise AlignmentError("Row id mappings differ in size after alignment")
    for index, raw_id in enumerate(original_primary.row_ids):
        if secondary.row_ids.lookup(raw_id) != index or primary.row_ids.to_id(index) != raw_id:
            raise AlignmentError(f"Row '{raw_id}' is not at index {index} in both datasets")

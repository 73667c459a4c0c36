"""
Sparse interaction matrices paired with the index mappings of their axes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np
import scipy.sparse as sp

from .indexers import IndexMapping


class IndexedDatasetError(RuntimeError):
    """Raised when a matrix shape disagrees with the size of its index mappings."""


class CardinalityError(ValueError):
    """Raised when a row cardinality adjustment would shrink or reindex rows."""


@dataclass(frozen=True)
class IndexedDataset:
    """
    Interaction matrix whose rows and columns are named by index mappings.

    Parameters
    ----------
    matrix:
        ``rows x columns`` sparse matrix of non-negative strengths.
    row_ids:
        Mapping whose size equals the matrix row count.
    column_ids:
        Mapping whose size equals the matrix column count.
    """

    matrix: sp.csr_matrix
    row_ids: IndexMapping
    column_ids: IndexMapping

    def __post_init__(self) -> None:
        expected = (len(self.row_ids), len(self.column_ids))
        if self.matrix.shape != expected:
            raise IndexedDatasetError(
                f"Matrix shape {self.matrix.shape} does not match index sizes {expected}"
            )

    @classmethod
    def from_triples(
        cls,
        triples: Iterable[tuple[int, int, float]],
        *,
        row_ids: IndexMapping,
        column_ids: IndexMapping,
    ) -> "IndexedDataset":
        """
        Accumulate ``(row, column, strength)`` triples into a CSR matrix.

        Repeated cells are summed. The shape is taken from the mappings once
        the triples are exhausted, so any seeding must happen beforehand.
        """
        rows: list[int] = []
        cols: list[int] = []
        values: list[float] = []
        for row, col, strength in triples:
            rows.append(row)
            cols.append(col)
            values.append(strength)

        shape = (len(row_ids), len(column_ids))
        coo = sp.coo_matrix(
            (
                np.asarray(values, dtype=np.float64),
                (np.asarray(rows, dtype=np.int64), np.asarray(cols, dtype=np.int64)),
            ),
            shape=shape,
        )
        matrix = coo.tocsr()
        matrix.sum_duplicates()
        return cls(matrix=matrix, row_ids=row_ids, column_ids=column_ids)

    @property
    def shape(self) -> tuple[int, int]:
        return self.matrix.shape

    @property
    def row_count(self) -> int:
        return self.matrix.shape[0]

    @property
    def column_count(self) -> int:
        return self.matrix.shape[1]

    @property
    def nnz(self) -> int:
        return int(self.matrix.nnz)

    @property
    def empty(self) -> bool:
        return self.nnz == 0

    def with_row_cardinality(self, row_ids: IndexMapping) -> "IndexedDataset":
        """
        Return a copy padded with empty rows up to ``len(row_ids)``.

        ``row_ids`` must extend the current row mapping; existing rows are
        never dropped or reindexed.
        """
        new_rows = len(row_ids)
        if new_rows < self.row_count:
            raise CardinalityError(
                f"Cannot shrink row cardinality from {self.row_count} to {new_rows}"
            )
        if not row_ids.extends(self.row_ids):
            raise CardinalityError(
                "New row mapping does not preserve the existing row assignments"
            )

        matrix = self.matrix.copy()
        matrix.resize((new_rows, self.column_count))
        return IndexedDataset(matrix=matrix, row_ids=row_ids, column_ids=self.column_ids)

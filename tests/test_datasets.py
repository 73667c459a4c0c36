import numpy as np
import pytest
import scipy.sparse as sp

from src.data.datasets import CardinalityError, IndexedDataset, IndexedDatasetError
from src.data.indexers import build_index_mapping


def _dataset(rows, cols, triples):
    return IndexedDataset.from_triples(
        triples,
        row_ids=build_index_mapping(rows),
        column_ids=build_index_mapping(cols),
    )


def test_from_triples_sums_repeated_cells():
    dataset = _dataset(["u1"], ["item1"], [(0, 0, 2.0), (0, 0, 3.0)])

    assert dataset.shape == (1, 1)
    assert dataset.nnz == 1
    assert dataset.matrix[0, 0] == 5.0


def test_shape_must_match_mappings():
    with pytest.raises(IndexedDatasetError):
        IndexedDataset(
            matrix=sp.csr_matrix((2, 2)),
            row_ids=build_index_mapping(["u1"]),
            column_ids=build_index_mapping(["a", "b"]),
        )


def test_row_cardinality_padding_keeps_entries():
    dataset = _dataset(["u1", "u2"], ["a", "b", "c"], [(0, 0, 1.0), (1, 2, 4.0)])
    extended = build_index_mapping(["u3", "u4", "u5"], seed=dataset.row_ids)

    padded = dataset.with_row_cardinality(extended)

    assert padded.shape == (5, 3)
    assert padded.nnz == dataset.nnz
    np.testing.assert_array_equal(
        padded.matrix[:2].toarray(), dataset.matrix.toarray()
    )
    assert padded.matrix[2:].nnz == 0
    assert padded.column_ids is dataset.column_ids
    # The original dataset is left as it was.
    assert dataset.shape == (2, 3)


def test_row_cardinality_cannot_shrink():
    dataset = _dataset(["u1", "u2"], ["a"], [(0, 0, 1.0), (1, 0, 1.0)])

    with pytest.raises(CardinalityError):
        dataset.with_row_cardinality(build_index_mapping(["u1"]))


def test_row_cardinality_rejects_reindexed_rows():
    dataset = _dataset(["u1", "u2"], ["a"], [(0, 0, 1.0)])

    with pytest.raises(CardinalityError):
        dataset.with_row_cardinality(build_index_mapping(["u2", "u1", "u3"]))


def test_empty_dataset():
    dataset = _dataset([], [], [])

    assert dataset.shape == (0, 0)
    assert dataset.empty

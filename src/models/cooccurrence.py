"""
Co-occurrence similarity scored with Dunning's log-likelihood ratio.

``cooccurrences`` turns a ``users x items`` interaction matrix into an
``items x items`` similarity matrix and, for every secondary matrix sharing
the same rows, an ``items x secondary-items`` cross-similarity matrix.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
import scipy.sparse as sp
from loguru import logger


def _x_log_x(values: np.ndarray) -> np.ndarray:
    values = np.asarray(values, dtype=np.float64)
    safe = np.where(values > 0, values, 1.0)
    return np.where(values > 0, values * np.log(safe), 0.0)


def _entropy(*counts: np.ndarray) -> np.ndarray:
    total = _x_log_x(sum(counts))
    return total - sum(_x_log_x(count) for count in counts)


def log_likelihood_ratio(k11, k12, k21, k22) -> np.ndarray:
    """
    Vectorised LLR of a 2x2 contingency table.

    ``k11`` counts rows containing both things, ``k12`` and ``k21`` rows
    containing only one of them and ``k22`` rows containing neither.
    """
    k11, k12, k21, k22 = (np.asarray(k, dtype=np.float64) for k in (k11, k12, k21, k22))
    row_entropy = _entropy(k11 + k12, k21 + k22)
    column_entropy = _entropy(k11 + k21, k12 + k22)
    matrix_entropy = _entropy(k11, k12, k21, k22)
    # Round-off can push the difference slightly below zero.
    return np.maximum(2.0 * (row_entropy + column_entropy - matrix_entropy), 0.0)


def sample_down_and_binarize(
    matrix: sp.spmatrix, seed: int | None, max_prefs: int
) -> sp.csr_matrix:
    """
    Replace strengths with 1 and cap each row at ``max_prefs`` entries.

    Rows over the cap keep a random subset drawn from a generator seeded with
    ``seed``.
    """
    if max_prefs <= 0:
        raise ValueError("max_prefs must be greater than zero.")

    binary = sp.csr_matrix(matrix, dtype=np.float64, copy=True)
    binary.eliminate_zeros()
    binary.data[:] = 1.0

    counts = np.diff(binary.indptr)
    heavy_rows = np.flatnonzero(counts > max_prefs)
    if heavy_rows.size:
        rng = np.random.default_rng(seed)
        keep = np.ones(binary.nnz, dtype=bool)
        for row in heavy_rows:
            start, end = binary.indptr[row], binary.indptr[row + 1]
            drop = rng.choice(end - start, size=(end - start) - max_prefs, replace=False)
            keep[start + drop] = False
        binary.data[~keep] = 0.0
        binary.eliminate_zeros()
        logger.debug("Sampled down {} rows to {} preferences", heavy_rows.size, max_prefs)
    return binary


def _column_counts(matrix: sp.csr_matrix) -> np.ndarray:
    return np.asarray(matrix.sum(axis=0), dtype=np.float64).ravel()


def _top_indicators(
    cooccurrence: sp.spmatrix,
    *,
    row_counts: np.ndarray,
    column_counts: np.ndarray,
    num_users: int,
    max_similarities_per_item: int,
    exclude_self: bool,
) -> sp.csr_matrix:
    coo = cooccurrence.tocoo()
    rows, cols, k11 = coo.row, coo.col, coo.data.astype(np.float64)
    if exclude_self:
        mask = rows != cols
        rows, cols, k11 = rows[mask], cols[mask], k11[mask]

    k12 = row_counts[rows] - k11
    k21 = column_counts[cols] - k11
    k22 = num_users - row_counts[rows] - column_counts[cols] + k11
    scores = log_likelihood_ratio(k11, k12, k21, k22)

    positive = scores > 0
    rows, cols, scores = rows[positive], cols[positive], scores[positive]

    order = np.lexsort((cols, -scores, rows))
    rows, cols, scores = rows[order], cols[order], scores[order]
    rank = np.arange(rows.size) - np.searchsorted(rows, rows, side="left")
    keep = rank < max_similarities_per_item

    return sp.csr_matrix(
        (scores[keep], (rows[keep], cols[keep])), shape=cooccurrence.shape
    )


def cooccurrences(
    primary: sp.spmatrix,
    random_seed: int | None,
    max_similarities_per_item: int,
    max_prefs: int,
    secondaries: Sequence[sp.spmatrix] = (),
) -> list[sp.csr_matrix]:
    """
    Compute the self-similarity of ``primary`` and its cross-similarities.

    Returns
    -------
    list
        ``[A'A indicators]`` followed by one ``A'B`` indicator matrix per
        entry of ``secondaries``.
    """
    if max_similarities_per_item <= 0:
        raise ValueError("max_similarities_per_item must be greater than zero.")

    num_users = primary.shape[0]
    matrix_a = sample_down_and_binarize(primary, random_seed, max_prefs)
    counts_a = _column_counts(matrix_a)

    self_cooccurrence = (matrix_a.T @ matrix_a).tocsr()
    logger.debug(
        "Computed A'A co-occurrences | shape={} nnz={}",
        self_cooccurrence.shape,
        self_cooccurrence.nnz,
    )
    results = [
        _top_indicators(
            self_cooccurrence,
            row_counts=counts_a,
            column_counts=counts_a,
            num_users=num_users,
            max_similarities_per_item=max_similarities_per_item,
            exclude_self=True,
        )
    ]

    for offset, secondary in enumerate(secondaries, start=1):
        if secondary.shape[0] != num_users:
            raise ValueError(
                f"Secondary matrix has {secondary.shape[0]} rows, expected {num_users}."
            )
        seed = None if random_seed is None else random_seed + offset
        matrix_b = sample_down_and_binarize(secondary, seed, max_prefs)
        cross_cooccurrence = (matrix_a.T @ matrix_b).tocsr()
        results.append(
            _top_indicators(
                cross_cooccurrence,
                row_counts=counts_a,
                column_counts=_column_counts(matrix_b),
                num_users=num_users,
                max_similarities_per_item=max_similarities_per_item,
                exclude_self=False,
            )
        )

    return results

"""Similarity kernels."""

from .cooccurrence import (  # noqa: F401
    cooccurrences,
    log_likelihood_ratio,
    sample_down_and_binarize,
)

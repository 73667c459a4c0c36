"""
Item-similarity orchestration entry point.

Reads the primary (and optional secondary) interactions, aligns their row
spaces, calls the co-occurrence kernel and writes the indicator matrices.
Nothing is written until the kernel has returned, so a failed read or kernel
call leaves the output location untouched.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Sequence

import scipy.sparse as sp
from loguru import logger

from src.data import IndexedDataset, LoadedDatasets, load_indexed_datasets
from src.models import cooccurrences
from src.reporting import TextDelimitedWriter

from .options import ItemSimilarityOptions

SimilarityKernel = Callable[..., Sequence[sp.spmatrix]]


@dataclass
class ItemSimilarityResult:
    similarity: Optional[IndexedDataset] = None
    cross_similarity: Optional[IndexedDataset] = None
    output_paths: list[Path] = field(default_factory=list)
    runtime_seconds: float = 0.0

    @property
    def has_output(self) -> bool:
        return bool(self.output_paths)


def compute_indicators(
    datasets: LoadedDatasets,
    options: ItemSimilarityOptions,
    kernel: SimilarityKernel = cooccurrences,
) -> tuple[IndexedDataset, Optional[IndexedDataset]]:
    """
    Run ``kernel`` on aligned datasets and attach identifiers to its results.

    The self-similarity matrix is indexed by the primary column ids on both
    axes; the cross-similarity matrix by primary column ids (rows) and
    secondary column ids (columns).
    """
    primary = datasets.primary
    if primary is None:
        raise ValueError("compute_indicators requires a primary dataset")
    secondary = datasets.secondary

    secondaries = [secondary.matrix] if secondary is not None else []
    logger.info(
        "Computing co-occurrence indicators | primary={} secondary={}",
        primary.shape,
        secondary.shape if secondary is not None else None,
    )
    matrices = list(
        kernel(
            primary.matrix,
            options.random_seed,
            options.max_similarities_per_item,
            options.max_prefs,
            secondaries,
        )
    )
    expected = 1 + len(secondaries)
    if len(matrices) != expected:
        raise RuntimeError(
            f"Similarity kernel returned {len(matrices)} matrices, expected {expected}"
        )

    similarity = IndexedDataset(
        matrix=sp.csr_matrix(matrices[0]),
        row_ids=primary.column_ids,
        column_ids=primary.column_ids,
    )
    cross_similarity = None
    if secondary is not None:
        cross_similarity = IndexedDataset(
            matrix=sp.csr_matrix(matrices[1]),
            row_ids=primary.column_ids,
            column_ids=secondary.column_ids,
        )
    return similarity, cross_similarity


def run_item_similarity(
    options: ItemSimilarityOptions,
    *,
    kernel: SimilarityKernel = cooccurrences,
    writer: TextDelimitedWriter | None = None,
) -> ItemSimilarityResult:
    """
    Execute one full read, align, compute and write pass.

    Returns an empty result, without writing anything, when the primary
    input holds no data.
    """
    start_time = time.time()
    writer = writer or TextDelimitedWriter(options.write_schema)

    logger.info("Loading interactions from {}", options.input_path)
    datasets = load_indexed_datasets(
        options.input_path,
        primary_schema=options.read_schema,
        secondary_locations=options.secondary_locations,
        secondary_schema=options.secondary_read_schema,
        filename_pattern=options.filename_pattern,
        recursive=options.recursive,
    )
    if not datasets.has_data:
        logger.warning("No input data found; nothing to compute.")
        return ItemSimilarityResult(runtime_seconds=time.time() - start_time)

    similarity, cross_similarity = compute_indicators(datasets, options, kernel)
    result = ItemSimilarityResult(similarity=similarity, cross_similarity=cross_similarity)

    if options.write_all_datasets:
        dump_root = options.input_datasets_output
        result.output_paths.append(
            writer.write(datasets.primary, dump_root / "primary-interactions")
        )
        if datasets.secondary is not None:
            result.output_paths.append(
                writer.write(datasets.secondary, dump_root / "secondary-interactions")
            )

    result.output_paths.append(writer.write(similarity, options.similarity_output))
    logger.info("Wrote similarity matrix to {}", options.similarity_output)
    if cross_similarity is not None:
        result.output_paths.append(
            writer.write(cross_similarity, options.cross_similarity_output)
        )
        logger.info("Wrote cross-similarity matrix to {}", options.cross_similarity_output)

    result.runtime_seconds = time.time() - start_time
    logger.info("Item similarity finished in {:.2f}s", result.runtime_seconds)
    return result

"""Pipeline orchestration."""

from .item_similarity import (  # noqa: F401
    ItemSimilarityResult,
    compute_indicators,
    run_item_similarity,
)
from .options import ItemSimilarityOptions, SecondaryMode, build_options  # noqa: F401

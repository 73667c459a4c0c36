"""Identifier indexing, tuple reading and dataset alignment."""

from .alignment import AlignedDatasets, AlignmentError, align_datasets  # noqa: F401
from .datasets import CardinalityError, IndexedDataset, IndexedDatasetError  # noqa: F401
from .indexers import (  # noqa: F401
    FrozenIndexError,
    IndexMapping,
    IndexOutOfRangeError,
    build_index_mapping,
)
from .loaders import LoadedDatasets, load_indexed_datasets  # noqa: F401
from .readers import (  # noqa: F401
    InteractionRecord,
    MalformedLineError,
    ReadSchema,
    TupleReader,
    discover_input_files,
    parse_line,
)

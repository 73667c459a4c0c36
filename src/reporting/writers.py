"""Text-delimited writers for indexed similarity and interaction matrices."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import numpy as np

from src.data.datasets import IndexedDataset


PART_FILENAME = "part-00000"


@dataclass(frozen=True)
class WriteSchema:
    """
    Output line layout.

    A line reads ``row<row_key_delimiter>col<column_id_strength_delimiter>score``
    followed by more ``col:score`` pairs joined with ``tuple_delimiter``.
    """

    row_key_delimiter: str = "\t"
    column_id_strength_delimiter: str = ":"
    tuple_delimiter: str = " "
    omit_strength: bool = False


class TextDelimitedWriter:
    def __init__(self, schema: WriteSchema | None = None) -> None:
        self.schema = schema or WriteSchema()

    def format_lines(self, dataset: IndexedDataset) -> Iterator[str]:
        """Yield one line per non-empty row, entries ordered by descending value."""
        schema = self.schema
        matrix = dataset.matrix.tocsr()
        for row in range(matrix.shape[0]):
            start, end = matrix.indptr[row], matrix.indptr[row + 1]
            cols = matrix.indices[start:end]
            values = matrix.data[start:end]
            nonzero = values != 0
            cols, values = cols[nonzero], values[nonzero]
            if cols.size == 0:
                continue

            order = np.lexsort((cols, -values))
            if schema.omit_strength:
                entries = [dataset.column_ids.to_id(int(cols[i])) for i in order]
            else:
                entries = [
                    f"{dataset.column_ids.to_id(int(cols[i]))}"
                    f"{schema.column_id_strength_delimiter}{float(values[i])}"
                    for i in order
                ]
            yield (
                dataset.row_ids.to_id(row)
                + schema.row_key_delimiter
                + schema.tuple_delimiter.join(entries)
            )

    def write(self, dataset: IndexedDataset, directory: Path | str) -> Path:
        """Write ``dataset`` into ``directory/part-00000`` and return the file path."""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / PART_FILENAME
        with path.open("w", encoding="utf-8") as handle:
            for line in self.format_lines(dataset):
                handle.write(line + "\n")
        return path

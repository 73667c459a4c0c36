"""
Readers that turn delimited text tuples into indexed interaction matrices.

Each input line carries a row id, a column id and, optionally, a strength and
a filter tag at configured field positions. Lines that cannot be parsed are
skipped with a warning; a single bad line never aborts a read.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence

from loguru import logger

from .datasets import IndexedDataset
from .indexers import IndexMapping


DEFAULT_DELIMITER = r"[,\t ]"
DEFAULT_FILENAME_PATTERN = r"^part-.*"


class MalformedLineError(ValueError):
    """Raised by ``parse_line`` for a line that does not fit the schema."""


@dataclass(frozen=True)
class ReadSchema:
    """Field layout of the input text tuples."""

    delimiter: str = DEFAULT_DELIMITER
    row_id_position: int = 0
    column_id_position: int = 1
    strength_position: int = -1
    filter_position: int = -1
    filter_value: Optional[str] = None

    def with_filter(self, filter_value: Optional[str]) -> "ReadSchema":
        return ReadSchema(
            delimiter=self.delimiter,
            row_id_position=self.row_id_position,
            column_id_position=self.column_id_position,
            strength_position=self.strength_position,
            filter_position=self.filter_position,
            filter_value=filter_value,
        )

    @property
    def filtering(self) -> bool:
        return self.filter_position >= 0 and self.filter_value is not None


@dataclass(frozen=True)
class InteractionRecord:
    row_id: str
    column_id: str
    strength: float = 1.0
    filter_tag: Optional[str] = None


def parse_line(line: str, schema: ReadSchema) -> InteractionRecord:
    """Split one line into an ``InteractionRecord`` according to ``schema``."""
    fields = re.split(schema.delimiter, line.strip())
    needed = max(
        schema.row_id_position,
        schema.column_id_position,
        schema.strength_position,
        schema.filter_position,
    )
    if len(fields) <= needed:
        raise MalformedLineError(
            f"expected at least {needed + 1} fields, found {len(fields)}"
        )

    row_id = fields[schema.row_id_position]
    column_id = fields[schema.column_id_position]
    if not row_id or not column_id:
        raise MalformedLineError("empty row or column id")

    strength = 1.0
    if schema.strength_position >= 0:
        raw = fields[schema.strength_position]
        try:
            strength = float(raw)
        except ValueError as exc:
            raise MalformedLineError(f"unparsable strength {raw!r}") from exc
        if not math.isfinite(strength) or strength < 0:
            raise MalformedLineError(f"invalid strength {raw!r}")

    filter_tag = fields[schema.filter_position] if schema.filter_position >= 0 else None
    return InteractionRecord(
        row_id=row_id, column_id=column_id, strength=strength, filter_tag=filter_tag
    )


def _split_locations(locations: str | Path | Sequence[str | Path]) -> list[Path]:
    if isinstance(locations, (str, Path)):
        raw = [part.strip() for part in str(locations).split(",")]
        return [Path(part) for part in raw if part]
    return [Path(location) for location in locations]


def discover_input_files(
    locations: str | Path | Sequence[str | Path],
    *,
    filename_pattern: str = DEFAULT_FILENAME_PATTERN,
    recursive: bool = False,
) -> list[Path]:
    """
    Resolve input locations into a sorted list of files.

    A location naming a file is used directly. A directory contributes the
    files whose name matches ``filename_pattern``, descending into
    subdirectories when ``recursive`` is set.
    """
    pattern = re.compile(filename_pattern)
    files: list[Path] = []
    for location in _split_locations(locations):
        if location.is_file():
            files.append(location)
            continue
        if not location.is_dir():
            raise FileNotFoundError(f"Input location not found: {location}")

        candidates = location.rglob("*") if recursive else location.iterdir()
        matched = sorted(
            path for path in candidates if path.is_file() and pattern.match(path.name)
        )
        if not matched:
            logger.warning(
                "No files matching '{}' found under {}", filename_pattern, location
            )
        files.extend(matched)
    return files


class TupleReader:
    """
    Read interaction tuples from text files into an ``IndexedDataset``.

    Parameters
    ----------
    schema:
        Field layout and optional filter for the lines being read.
    """

    def __init__(self, schema: ReadSchema) -> None:
        self.schema = schema

    def iter_records(self, paths: Iterable[Path]) -> Iterator[InteractionRecord]:
        """Yield the records of ``paths`` that parse and pass the filter."""
        skipped = 0
        filtered = 0
        for path in paths:
            with Path(path).open("r", encoding="utf-8") as handle:
                for line_number, line in enumerate(handle, start=1):
                    if not line.strip():
                        continue
                    try:
                        record = parse_line(line, self.schema)
                    except MalformedLineError as exc:
                        skipped += 1
                        logger.warning(
                            "Skipping malformed line {}:{} ({})", path, line_number, exc
                        )
                        continue
                    if self.schema.filtering and record.filter_tag != self.schema.filter_value:
                        filtered += 1
                        continue
                    yield record

        if skipped:
            logger.warning("Skipped {} malformed lines while reading tuples.", skipped)
        if filtered:
            logger.debug(
                "Dropped {} lines not tagged '{}'.", filtered, self.schema.filter_value
            )

    def read_tuples(
        self,
        paths: Sequence[Path],
        *,
        existing_row_ids: IndexMapping | None = None,
    ) -> IndexedDataset:
        """
        Read ``paths`` into an IndexedDataset.

        When ``existing_row_ids`` is given, the row mapping is seeded from it so
        identifiers known from an earlier read keep their index. Both mappings
        are frozen once the matrix is built.
        """
        row_ids = (
            IndexMapping.seeded_from(existing_row_ids)
            if existing_row_ids is not None
            else IndexMapping()
        )
        column_ids = IndexMapping()

        triples = (
            (
                row_ids.to_index(record.row_id),
                column_ids.to_index(record.column_id),
                record.strength,
            )
            for record in self.iter_records(paths)
        )
        dataset = IndexedDataset.from_triples(
            triples, row_ids=row_ids, column_ids=column_ids
        )
        row_ids.freeze()
        column_ids.freeze()

        logger.info(
            "Read {} non-zero cells | rows={} columns={} files={}",
            dataset.nnz,
            dataset.row_count,
            dataset.column_count,
            len(paths),
        )
        return dataset

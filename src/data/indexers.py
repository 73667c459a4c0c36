"""
Indexing utilities that map raw identifiers to contiguous integer ranges.

Row and column axes of every interaction matrix are described by one of these
mappings. Identifiers keep the index they were first given for the lifetime of
the mapping; new identifiers are always appended at the next free integer.
"""

from __future__ import annotations

import threading
from typing import Iterable, Iterator


class IndexOutOfRangeError(IndexError):
    """Raised when an index has no identifier assigned to it."""


class FrozenIndexError(RuntimeError):
    """Raised when a finished mapping is asked to allocate a new identifier."""


class IndexMapping:
    """
    Bidirectional, append-only mapping between raw IDs and contiguous indices.

    Allocation and lookup happen under one lock so concurrent first sightings
    of an identifier always resolve to a single index.
    """

    def __init__(self) -> None:
        self._id_to_index: dict[str, int] = {}
        self._index_to_id: list[str] = []
        self._lock = threading.Lock()
        self._frozen = False

    @classmethod
    def seeded_from(cls, other: "IndexMapping") -> "IndexMapping":
        """
        Create an unfrozen mapping that starts with every pair of ``other``.

        ``other`` is left untouched; identifiers it already knows keep their
        index and new identifiers are appended after ``len(other)``.
        """
        mapping = cls()
        with other._lock:
            mapping._id_to_index = dict(other._id_to_index)
            mapping._index_to_id = list(other._index_to_id)
        return mapping

    def __len__(self) -> int:
        return len(self._index_to_id)

    def __contains__(self, raw_id: object) -> bool:
        return raw_id in self._id_to_index

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._index_to_id))

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"IndexMapping(size={len(self)}, {state})"

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def index_to_id(self) -> list[str]:
        return list(self._index_to_id)

    @property
    def id_to_index(self) -> dict[str, int]:
        return dict(self._id_to_index)

    def to_index(self, raw_id: str) -> int:
        """Return the index of ``raw_id``, allocating the next one if unseen."""
        index = self._id_to_index.get(raw_id)
        if index is not None:
            return index

        with self._lock:
            index = self._id_to_index.get(raw_id)
            if index is not None:
                return index
            if self._frozen:
                raise FrozenIndexError(
                    f"Cannot allocate an index for '{raw_id}': mapping is frozen"
                )
            index = len(self._index_to_id)
            self._index_to_id.append(raw_id)
            self._id_to_index[raw_id] = index
            return index

    def lookup(self, raw_id: str) -> int:
        try:
            return self._id_to_index[raw_id]
        except KeyError as exc:
            raise KeyError(f"ID '{raw_id}' missing from index mapping") from exc

    def to_id(self, index: int) -> str:
        if index < 0 or index >= len(self._index_to_id):
            raise IndexOutOfRangeError(
                f"Index {index} out of bounds for mapping of size {len(self)}"
            )
        return self._index_to_id[index]

    def freeze(self) -> "IndexMapping":
        """Mark construction as finished and return the mapping itself."""
        with self._lock:
            self._frozen = True
        return self

    def extends(self, other: "IndexMapping") -> bool:
        """True when every (id, index) pair of ``other`` is present here unchanged."""
        if len(other) > len(self):
            return False
        return self._index_to_id[: len(other)] == other._index_to_id


def build_index_mapping(
    values: Iterable[str], *, seed: IndexMapping | None = None
) -> IndexMapping:
    """
    Create an IndexMapping that preserves the order of first appearance.

    Parameters
    ----------
    values:
        Iterable of raw identifiers (user IDs, item IDs, etc.).
    seed:
        Optional finished mapping whose assignments are copied before any of
        ``values`` is allocated.
    """
    mapping = IndexMapping.seeded_from(seed) if seed is not None else IndexMapping()
    for value in values:
        mapping.to_index(value)
    return mapping

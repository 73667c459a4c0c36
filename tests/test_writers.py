import scipy.sparse as sp

from src.data.datasets import IndexedDataset
from src.data.indexers import build_index_mapping
from src.reporting.writers import PART_FILENAME, TextDelimitedWriter, WriteSchema


def _similarity_dataset() -> IndexedDataset:
    items = build_index_mapping(["iphone", "ipad", "galaxy"])
    matrix = sp.csr_matrix(
        ([1.5, 3.0, 1.5, 0.0], ([0, 0, 1, 1], [1, 2, 0, 2])), shape=(3, 3)
    )
    return IndexedDataset(matrix=matrix, row_ids=items, column_ids=items)


def test_format_lines_orders_by_descending_score():
    lines = list(TextDelimitedWriter().format_lines(_similarity_dataset()))

    assert lines == [
        "iphone\tgalaxy:3.0 ipad:1.5",
        "ipad\tiphone:1.5",
    ]


def test_format_lines_with_custom_delimiters_and_omitted_strength():
    schema = WriteSchema(row_key_delimiter=",", tuple_delimiter="|", omit_strength=True)

    lines = list(TextDelimitedWriter(schema).format_lines(_similarity_dataset()))

    assert lines == ["iphone,galaxy|ipad", "ipad,iphone"]


def test_write_creates_part_file(tmp_path):
    target = tmp_path / "out" / "indicator-matrix"

    path = TextDelimitedWriter().write(_similarity_dataset(), target)

    assert path == target / PART_FILENAME
    assert path.read_text(encoding="utf-8").splitlines() == [
        "iphone\tgalaxy:3.0 ipad:1.5",
        "ipad\tiphone:1.5",
    ]

from pathlib import Path

import numpy as np
import pytest
import scipy.sparse as sp

from src.pipelines.item_similarity import run_item_similarity
from src.pipelines.options import build_options


class RecordingKernel:
    """Kernel double that records its inputs and returns fixed indicators."""

    def __init__(self, fail: bool = False) -> None:
        self.calls = []
        self.fail = fail

    def __call__(self, primary, random_seed, max_similarities_per_item, max_prefs, secondaries=()):
        self.calls.append(
            {
                "primary": primary.toarray(),
                "random_seed": random_seed,
                "max_similarities_per_item": max_similarities_per_item,
                "max_prefs": max_prefs,
                "secondaries": [matrix.toarray() for matrix in secondaries],
            }
        )
        if self.fail:
            raise MemoryError("kernel ran out of memory")
        items = primary.shape[1]
        results = [sp.csr_matrix(np.eye(items)[::-1] * 2.0)]
        for matrix in secondaries:
            results.append(sp.csr_matrix(np.ones((items, matrix.shape[1]))))
        return results


def _write(path: Path, lines: list[str]) -> Path:
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def _options(tmp_path: Path, source: Path, **overrides):
    config = {
        "input": {"path": str(source)},
        "output": {"path": str(tmp_path / "out")},
        "algorithm": {"max_similarities_per_item": 10, "random_seed": 5},
    }
    for section, values in overrides.items():
        config.setdefault(section, {}).update(values)
    return build_options(config)


def test_single_dataset_end_to_end(tmp_path):
    source = _write(tmp_path / "input.csv", ["u1,i1", "u1,i2", "u2,i1"])
    options = _options(tmp_path, source)
    kernel = RecordingKernel()

    result = run_item_similarity(options, kernel=kernel)

    assert len(kernel.calls) == 1
    call = kernel.calls[0]
    assert call["primary"].tolist() == [[1.0, 1.0], [1.0, 0.0]]
    assert call["secondaries"] == []
    assert call["max_similarities_per_item"] == 10
    assert call["max_prefs"] == 500
    assert call["random_seed"] == 5

    assert result.similarity.row_ids.index_to_id == ["i1", "i2"]
    assert result.cross_similarity is None
    assert options.similarity_output == tmp_path / "out" / "indicator-matrix"
    assert options.similarity_output.is_dir()
    assert not options.cross_similarity_output.exists()
    lines = (options.similarity_output / "part-00000").read_text(encoding="utf-8").splitlines()
    assert lines == ["i1\ti2:2.0", "i2\ti1:2.0"]


def test_filter_based_cross_similarity(tmp_path):
    source = _write(
        tmp_path / "actions.csv",
        [
            "u1,purchase,iphone",
            "u1,view,ipad",
            "u2,view,iphone",
            "u3,purchase,galaxy",
            "u4,view,nexus",
        ],
    )
    options = _options(
        tmp_path,
        source,
        schema={"column_id_position": 2, "filter_position": 1, "filter1": "purchase", "filter2": "view"},
    )
    kernel = RecordingKernel()

    result = run_item_similarity(options, kernel=kernel)

    call = kernel.calls[0]
    assert call["primary"].shape == (4, 2)
    assert len(call["secondaries"]) == 1
    assert call["secondaries"][0].shape == (4, 3)
    assert result.cross_similarity.row_ids.index_to_id == ["iphone", "galaxy"]
    assert result.cross_similarity.column_ids.index_to_id == ["ipad", "iphone", "nexus"]
    cross_lines = (options.cross_similarity_output / "part-00000").read_text(encoding="utf-8").splitlines()
    assert cross_lines[0] == "iphone\tipad:1.0 iphone:1.0 nexus:1.0"


def test_write_all_datasets_dumps_inputs(tmp_path):
    source = _write(tmp_path / "a.csv", ["u1,i1", "u2,i2"])
    second = _write(tmp_path / "b.csv", ["u3,x1"])
    options = _options(
        tmp_path, source, input={"path2": str(second)}, output={"write_all_datasets": True}
    )

    result = run_item_similarity(options, kernel=RecordingKernel())

    dump_root = options.input_datasets_output
    primary_lines = (dump_root / "primary-interactions" / "part-00000").read_text(encoding="utf-8").splitlines()
    secondary_lines = (dump_root / "secondary-interactions" / "part-00000").read_text(encoding="utf-8").splitlines()
    assert primary_lines == ["u1\ti1:1.0", "u2\ti2:1.0"]
    assert secondary_lines == ["u3\tx1:1.0"]
    assert len(result.output_paths) == 4


def test_empty_primary_input_produces_no_output(tmp_path):
    source = _write(tmp_path / "input.csv", ["not-a-tuple"])
    options = _options(tmp_path, source)
    kernel = RecordingKernel()

    result = run_item_similarity(options, kernel=kernel)

    assert kernel.calls == []
    assert not result.has_output
    assert not options.output_path.exists()


def test_missing_primary_input_produces_no_output(tmp_path):
    options = _options(tmp_path, tmp_path / "nope")
    kernel = RecordingKernel()

    result = run_item_similarity(options, kernel=kernel)

    assert kernel.calls == []
    assert result.similarity is None
    assert not result.has_output
    assert not options.output_path.exists()


def test_kernel_failure_propagates_without_output(tmp_path):
    source = _write(tmp_path / "input.csv", ["u1,i1", "u2,i1"])
    options = _options(tmp_path, source, output={"write_all_datasets": True})

    with pytest.raises(MemoryError):
        run_item_similarity(options, kernel=RecordingKernel(fail=True))

    assert not options.output_path.exists()
    assert not options.input_datasets_output.exists()


def test_kernel_returning_wrong_number_of_matrices(tmp_path):
    source = _write(tmp_path / "input.csv", ["u1,i1"])
    options = _options(tmp_path, source)

    with pytest.raises(RuntimeError):
        run_item_similarity(options, kernel=lambda *args: [])


def test_default_kernel_end_to_end(tmp_path):
    source = _write(
        tmp_path / "input.csv",
        ["u1,a", "u1,b", "u2,a", "u2,b", "u3,c", "u4,c"],
    )
    options = _options(tmp_path, source)

    result = run_item_similarity(options)

    assert result.similarity.shape == (3, 3)
    lines = (options.similarity_output / "part-00000").read_text(encoding="utf-8").splitlines()
    assert [line.split("\t")[0] for line in lines] == ["a", "b"]
    assert lines[0].startswith("a\tb:5.545")

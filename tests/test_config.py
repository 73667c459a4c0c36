from pathlib import Path

import pytest

from src.utils import (
    ConfigError,
    clone_config,
    get_by_dotted_path,
    load_config,
    merge_config,
    parse_override,
    set_by_dotted_path,
)


def test_load_config_reads_yaml(tmp_path: Path) -> None:
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "input:\n  path: data/in.csv\nalgorithm:\n  max_prefs: 20\n", encoding="utf-8"
    )

    config = load_config(config_file)

    assert config["input"]["path"] == "data/in.csv"
    assert config["algorithm"]["max_prefs"] == 20


def test_load_config_missing_file() -> None:
    with pytest.raises(FileNotFoundError):
        load_config(Path("does_not_exist.yaml"))


def test_load_config_rejects_non_mapping(tmp_path: Path) -> None:
    config_file = tmp_path / "config.yaml"
    config_file.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(config_file)


def test_clone_and_set_by_dotted_path() -> None:
    original = {"algorithm": {"max_prefs": 500}}
    cloned = clone_config(original)

    set_by_dotted_path(cloned, "algorithm.max_prefs", 50)
    set_by_dotted_path(cloned, "schema.filter1", "purchase")

    assert original["algorithm"]["max_prefs"] == 500  # original untouched
    assert cloned["algorithm"]["max_prefs"] == 50
    assert get_by_dotted_path(cloned, "schema.filter1") == "purchase"
    assert get_by_dotted_path(cloned, "schema.filter2", "none") == "none"


def test_merge_config_is_deep() -> None:
    base = {"output": {"path": "out", "omit_strength": False}, "algorithm": {"max_prefs": 500}}

    merged = merge_config(base, {"output": {"omit_strength": True}})

    assert merged["output"] == {"path": "out", "omit_strength": True}
    assert merged["algorithm"]["max_prefs"] == 500
    assert base["output"]["omit_strength"] is False


def test_parse_override_parses_yaml_values() -> None:
    assert parse_override("algorithm.max_prefs=20") == ("algorithm.max_prefs", 20)
    assert parse_override("output.omit_strength=true") == ("output.omit_strength", True)
    assert parse_override("schema.filter2=view") == ("schema.filter2", "view")
    with pytest.raises(ConfigError):
        parse_override("algorithm.max_prefs")

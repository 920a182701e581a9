from __future__ import annotations

import json
from pathlib import Path

import pytest

from affinity import DEFAULT_CONFIG, build_affinity, build_config, default_affinity, load_config


def test_default_table_matches_configured_scores() -> None:
    aff = default_affinity()
    assert aff.score("P", "N") == 3
    assert aff.score("N", "P") == 5
    assert aff.score("N", "A") == 0
    assert aff.score("A", "B") == 4
    assert aff.score("B", "A") == 2
    assert aff.alphabet == frozenset("PNAB")


def test_terminal_pairs_always_score_one() -> None:
    aff = default_affinity()
    for cls in "PNABT":
        assert aff.score("T", cls) == 1
        assert aff.score(cls, "T") == 1


def test_unconfigured_pairs_default_to_zero() -> None:
    aff = default_affinity()
    assert aff.score("P", "Z") == 0
    assert aff.score("X", "Y") == 0


def test_table_is_asymmetric() -> None:
    aff = default_affinity()
    assert aff.score("P", "N") != aff.score("N", "P")


def test_overrides_merge_into_defaults() -> None:
    cfg = build_config({"AFFINITY": {"P": {"N": 9}, "C": {"C": 2}}})
    aff = build_affinity(cfg)
    assert aff.score("P", "N") == 9
    assert aff.score("P", "B") == 3
    assert aff.score("C", "C") == 2
    assert "C" in aff.alphabet
    # defaults untouched
    assert DEFAULT_CONFIG["AFFINITY"]["P"]["N"] == 3


def test_terminal_entries_in_config_are_ignored() -> None:
    aff = build_affinity(build_config({"AFFINITY": {"T": {"P": 7}, "P": {"T": 0}}}))
    assert aff.score("T", "P") == 1
    assert aff.score("P", "T") == 1
    assert "T" not in aff.alphabet


def test_custom_terminal_class() -> None:
    aff = build_affinity(build_config({"TERMINAL": "E"}))
    assert aff.score("E", "N") == 1
    assert aff.score("N", "E") == 1


@pytest.mark.parametrize(
    "overrides",
    [
        {"AFFINITY": {"P": {"N": "3"}}},
        {"AFFINITY": {"P": {"N": 1.5}}},
        {"AFFINITY": {"P": {"N": True}}},
        {"AFFINITY": {"PP": {"N": 1}}},
        {"AFFINITY": {"P": 4}},
        {"TERMINAL": "TT"},
    ],
)
def test_invalid_config_is_rejected(overrides: dict) -> None:
    with pytest.raises(ValueError):
        build_affinity(build_config(overrides))


def test_load_config_reads_json(tmp_path: Path) -> None:
    path = tmp_path / "affinity.json"
    path.write_text(json.dumps({"AFFINITY": {"A": {"A": 6}}}), encoding="utf-8")
    aff = build_affinity(load_config(path))
    assert aff.score("A", "A") == 6
    assert aff.score("N", "P") == 5


def test_load_config_requires_object(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


def test_load_config_without_path_returns_defaults() -> None:
    assert load_config(None) == build_config()

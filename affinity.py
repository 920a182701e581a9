#!/usr/bin/env python3
"""Class affinity table for chain unfolding.

The table scores every ordered pair of element classes. Pairs that touch the
terminal class always score 1; pairs that are not configured score 0. The
defaults below are the biochemical class table (P, N, A, B); a JSON file with
the same shape can override any subset of it.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, Mapping, Tuple

# =============== CONFIG ==============================================
DEFAULT_CONFIG = {
    "TERMINAL": "T",
    # AFFINITY[left][right]
    "AFFINITY": {
        "P": {"P": 1, "N": 3, "A": 1, "B": 3},
        "N": {"P": 5, "N": 1, "A": 0, "B": 1},
        "A": {"P": 0, "N": 1, "A": 0, "B": 4},
        "B": {"P": 1, "N": 3, "A": 2, "B": 3},
    },
}


def deep_update(dst: dict, src: dict) -> dict:
    """Recursively merge ``src`` into ``dst`` (in-place)."""

    for key, value in (src or {}).items():
        if isinstance(value, dict) and isinstance(dst.get(key), dict):
            deep_update(dst[key], value)
        else:
            dst[key] = copy.deepcopy(value)
    return dst


def build_config(overrides: dict | None = None) -> dict:
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    if overrides:
        deep_update(cfg, overrides)
    return cfg


def load_config(path: Path | None) -> dict:
    """Read JSON overrides from ``path`` and merge them over the defaults."""

    if path is None:
        return build_config()
    overrides = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(overrides, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")
    return build_config(overrides)

# =====================================================================


@dataclass(frozen=True)
class AffinityTable:
    scores: Mapping[Tuple[str, str], int] = field(default_factory=dict)
    terminal: str = "T"

    def score(self, left: str, right: str) -> int:
        if left == self.terminal or right == self.terminal:
            return 1
        return self.scores.get((left, right), 0)

    @property
    def alphabet(self) -> FrozenSet[str]:
        """Classes named by the configuration, terminal excluded."""
        names = {a for a, _ in self.scores} | {b for _, b in self.scores}
        names.discard(self.terminal)
        return frozenset(names)


def _check_class(name: object, where: str) -> str:
    if not isinstance(name, str) or len(name) != 1:
        raise ValueError(f"{where}: class names must be single characters, got {name!r}")
    return name


def build_affinity(cfg: dict | None = None) -> AffinityTable:
    """Validate a config dict (see ``DEFAULT_CONFIG``) and freeze it."""

    cfg = cfg if cfg is not None else build_config()
    terminal = _check_class(cfg.get("TERMINAL", "T"), "TERMINAL")
    rows = cfg.get("AFFINITY") or {}
    if not isinstance(rows, dict):
        raise ValueError("AFFINITY must map a class to {class: score}")

    scores: Dict[Tuple[str, str], int] = {}
    for left, row in rows.items():
        _check_class(left, "AFFINITY")
        if not isinstance(row, dict):
            raise ValueError(f"AFFINITY[{left!r}] must map a class to a score")
        for right, value in row.items():
            _check_class(right, f"AFFINITY[{left!r}]")
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"AFFINITY[{left!r}][{right!r}] must be an integer, got {value!r}")
            if terminal in (left, right):
                # terminal pairs are fixed at 1
                continue
            scores[(left, right)] = value
    return AffinityTable(scores=scores, terminal=terminal)


def default_affinity() -> AffinityTable:
    return build_affinity(build_config())

"""Builders and reference oracles for solver tests."""
from __future__ import annotations

import itertools
from pathlib import Path
from typing import List, Sequence, Tuple

from affinity import AffinityTable, default_affinity
from interval_solver import Chain, energy

# Worked example: removing index 2 last beats removing index 1 last (26 vs 25).
WORKED_WEIGHTS: Tuple[int, ...] = (2, 3)
WORKED_CLASSES = "PN"
WORKED_ENERGY = 26
WORKED_ORDER = [1, 2]


def instance_text(weights: Sequence[int], classes: str) -> str:
    """Render an instance in the CLI input layout."""

    lines = [str(len(weights))]
    if weights:
        lines.append(" ".join(str(w) for w in weights))
        lines.append(classes)
    return "\n".join(lines) + "\n"


def write_instance(path: Path, weights: Sequence[int], classes: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(instance_text(weights, classes), encoding="utf-8")
    return path


def make_chain(weights: Sequence[int], classes: str) -> Chain:
    return Chain(weights=tuple(weights), classes=classes)


def uniform_affinity(value: int = 1, alphabet: str = "PNAB") -> AffinityTable:
    """Every non-terminal pair scores ``value`` (lots of ties)."""

    scores = {(a, b): value for a in alphabet for b in alphabet}
    return AffinityTable(scores=scores, terminal="T")


def brute_force_best(chain: Chain, affinity: AffinityTable | None = None) -> int:
    """Best total over every removal order, replayed on live neighbours."""

    affinity = affinity or default_affinity()
    n = chain.n
    best = None
    for perm in itertools.permutations(range(1, n + 1)):
        alive = list(range(0, n + 2))
        total = 0
        for k in perm:
            pos = alive.index(k)
            total += energy(chain, affinity, alive[pos - 1], k, alive[pos + 1])
            alive.pop(pos)
        if best is None or total > best:
            best = total
    return best if best is not None else 0


def recursive_reference(
    chain: Chain,
    affinity: AffinityTable | None = None,
    left: int = 0,
    right: int | None = None,
) -> Tuple[int, List[int]]:
    """Unmemoised recursion over last-removed choices, with the same tie-break."""

    affinity = affinity or default_affinity()
    if right is None:
        right = chain.n + 1
    if right - left <= 1:
        return 0, []
    best_total = None
    best_seq: List[int] = []
    for k in range(left + 1, right):
        lt, ls = recursive_reference(chain, affinity, left, k)
        rt, rs = recursive_reference(chain, affinity, k, right)
        total = lt + rt + energy(chain, affinity, left, k, right)
        seq = ls + rs + [k]
        if best_total is None or total > best_total or (total == best_total and seq < best_seq):
            best_total, best_seq = total, seq
    return best_total, best_seq

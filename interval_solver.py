#!/usr/bin/env python3
"""Interval DP for maximum-energy chain unfolding.

A chain of N weighted, classed elements sits between two terminal sentinels
(positions 0 and N+1). Elements are removed one at a time; removing ``k``
while its live neighbours are ``left`` and ``right`` releases

    w(left) * Af(c(left), c(k)) * w(k) + w(k) * Af(c(k), c(right)) * w(right)

For every interval (left, right) the solver picks the element removed *last*.
At that moment its neighbours are exactly ``left`` and ``right``, so the two
sides are independent sub-problems:

    best(l, r) = max_k best(l, k) + best(k, r) + energy(l, k, r)

Ties are broken on the removal sequence ``seq(l, k) + seq(k, r) + [k]``,
keeping the lexicographically smallest one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from affinity import AffinityTable


@dataclass(frozen=True)
class Chain:
    weights: Tuple[int, ...]
    classes: str

    def __post_init__(self) -> None:
        if len(self.weights) != len(self.classes):
            raise ValueError(
                f"Chain has {len(self.weights)} weights but {len(self.classes)} classes"
            )

    @property
    def n(self) -> int:
        return len(self.weights)

    def weight(self, idx: int) -> int:
        if idx == 0 or idx == self.n + 1:
            return 1
        return self.weights[idx - 1]

    def cls(self, idx: int, terminal: str) -> str:
        if idx == 0 or idx == self.n + 1:
            return terminal
        return self.classes[idx - 1]


def energy(chain: Chain, affinity: AffinityTable, left: int, k: int, right: int) -> int:
    t = affinity.terminal
    w_k = chain.weight(k)
    c_k = chain.cls(k, t)
    e1 = chain.weight(left) * affinity.score(chain.cls(left, t), c_k) * w_k
    e2 = w_k * affinity.score(c_k, chain.cls(right, t)) * chain.weight(right)
    return e1 + e2


@dataclass
class SolveResult:
    chain: Chain
    energy: int
    order: List[int]
    best: List[List[int]] = field(repr=False)
    choice: List[List[int]] = field(repr=False)

    def best_at(self, left: int, right: int) -> int:
        return self.best[left][right]

    def choice_at(self, left: int, right: int) -> int:
        """Last-removed index of (left, right), or -1 for an empty interval."""
        return self.choice[left][right]


class IntervalSolver:
    """
    Bottom-up fill of the interval table.

    Each interval is solved exactly once, in order of increasing length, so
    both sub-intervals of (left, right) are final before it is visited. Per
    interval the solver keeps three records: the best total, the chosen
    last-removed index and the canonical removal sequence. Stored sequences
    let a tie be settled by building the two candidates from already-solved
    pieces instead of re-walking the choice table.
    """

    def __init__(self, chain: Chain, affinity: AffinityTable):
        self.chain = chain
        self.affinity = affinity
        size = chain.n + 2
        self.best: List[List[int]] = [[0] * size for _ in range(size)]
        self.choice: List[List[int]] = [[-1] * size for _ in range(size)]
        self.seqs: List[List[Tuple[int, ...]]] = [[()] * size for _ in range(size)]
        self._solved = False

    def _candidate(self, left: int, k: int, right: int) -> Tuple[int, ...]:
        return self.seqs[left][k] + self.seqs[k][right] + (k,)

    def _solve_interval(self, left: int, right: int) -> None:
        best_total: Optional[int] = None
        tied: List[int] = []
        for k in range(left + 1, right):
            total = (
                self.best[left][k]
                + self.best[k][right]
                + energy(self.chain, self.affinity, left, k, right)
            )
            if best_total is None or total > best_total:
                best_total = total
                tied = [k]
            elif total == best_total:
                tied.append(k)

        best_k = tied[0]
        best_seq = self._candidate(left, best_k, right)
        for k in tied[1:]:
            seq = self._candidate(left, k, right)
            if seq < best_seq:
                best_k, best_seq = k, seq

        self.best[left][right] = best_total
        self.choice[left][right] = best_k
        self.seqs[left][right] = best_seq

    def solve(self) -> SolveResult:
        last = self.chain.n + 1
        if not self._solved:
            for length in range(2, last + 1):
                for left in range(0, last - length + 1):
                    self._solve_interval(left, left + length)
            self._solved = True

        order = reconstruct_order(self.choice, 0, last)
        return SolveResult(
            chain=self.chain,
            energy=self.best[0][last],
            order=order,
            best=self.best,
            choice=self.choice,
        )

    def sequence(self, left: int, right: int) -> Tuple[int, ...]:
        return self.seqs[left][right]


def reconstruct_order(choice: Sequence[Sequence[int]], left: int, right: int) -> List[int]:
    """Emit ``seq(left, right)`` by walking the choice table.

    Post-order over the decomposition: left part, right part, then the
    last-removed index. Uses an explicit stack so long chains do not hit the
    recursion limit.
    """

    order: List[int] = []
    stack: List[Tuple[int, int, bool]] = [(left, right, False)]
    while stack:
        lo, hi, expanded = stack.pop()
        if hi - lo <= 1:
            continue
        k = choice[lo][hi]
        if expanded:
            order.append(k)
            continue
        stack.append((lo, hi, True))
        stack.append((k, hi, False))
        stack.append((lo, k, False))
    return order


@dataclass
class RemovalStep:
    step: int
    index: int
    cls: str
    weight: int
    left: int
    right: int
    energy: int
    cumulative: int


def replay_removals(chain: Chain, affinity: AffinityTable, order: Sequence[int]) -> List[RemovalStep]:
    """Remove elements in ``order`` against their live neighbours.

    Raises ``ValueError`` when ``order`` is not a permutation of 1..N.
    """

    n = chain.n
    if sorted(order) != list(range(1, n + 1)):
        raise ValueError(f"Removal order must be a permutation of 1..{n}, got {list(order)}")

    prev = list(range(-1, n + 1))
    nxt = list(range(1, n + 3))
    steps: List[RemovalStep] = []
    total = 0
    for step, k in enumerate(order, start=1):
        left, right = prev[k], nxt[k]
        gained = energy(chain, affinity, left, k, right)
        total += gained
        steps.append(
            RemovalStep(
                step=step,
                index=k,
                cls=chain.cls(k, affinity.terminal),
                weight=chain.weight(k),
                left=left,
                right=right,
                energy=gained,
                cumulative=total,
            )
        )
        nxt[left] = right
        prev[right] = left
    return steps


def solve_chain(weights: Sequence[int], classes: str, affinity: AffinityTable) -> SolveResult:
    chain = Chain(weights=tuple(weights), classes=classes)
    return IntervalSolver(chain, affinity).solve()

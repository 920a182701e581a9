#!/usr/bin/env python3
"""Maximum-energy chain unfolding.

Reads ``n``, ``n`` weights and an ``n``-character class string (whitespace
separated) and prints two lines: the maximum total energy and the removal
order that achieves it.

    $ printf '2\n2 3\nPN\n' | python unfold.py
    26
    1 2

Optional artefacts (JSON result, per-step trace CSV, timing on stderr) never
change what goes to stdout.
"""

from __future__ import annotations

import argparse
import csv
import json
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Tuple

from affinity import AffinityTable, build_affinity, load_config
from interval_solver import (
    Chain,
    IntervalSolver,
    RemovalStep,
    SolveResult,
    replay_removals,
)

TRACE_COLUMNS: Tuple[str, ...] = (
    "Step",
    "Index",
    "Class",
    "Weight",
    "Left",
    "Right",
    "Energy",
    "Cumulative",
)


class MalformedInputError(ValueError):
    """Input does not follow the ``n`` / weights / classes layout."""


@dataclass(frozen=True)
class Instance:
    weights: Tuple[int, ...]
    classes: str

    @property
    def n(self) -> int:
        return len(self.weights)

    def to_chain(self) -> Chain:
        return Chain(weights=self.weights, classes=self.classes)


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        description="Maximum-energy removal order for a classed, weighted chain",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    ap.add_argument("--input", default="-", help="Instance file ('-' reads stdin)")
    ap.add_argument("--config", type=Path, help="Optional JSON file with affinity overrides")
    ap.add_argument("--time", action="store_true", help="Print solve time to stderr")
    ap.add_argument("--json-out", type=Path, help="Also write the result as JSON")
    ap.add_argument("--trace-out", type=Path, help="Also write the per-step removal trace as CSV")
    return ap.parse_args(argv)


def _to_int(token: str, what: str) -> int:
    try:
        return int(token)
    except ValueError:
        raise MalformedInputError(f"{what} must be an integer, got {token!r}") from None


def parse_instance(text: str, alphabet: Iterable[str]) -> Instance:
    tokens = text.split()
    if not tokens:
        raise MalformedInputError("missing element count")
    n = _to_int(tokens[0], "element count")
    if n < 0:
        raise MalformedInputError(f"element count must be non-negative, got {n}")
    if len(tokens) < 1 + n:
        raise MalformedInputError(f"expected {n} weights, got {len(tokens) - 1}")
    weights = tuple(_to_int(tok, f"weight #{i}") for i, tok in enumerate(tokens[1:1 + n], start=1))

    rest = tokens[1 + n:]
    if n == 0 and not rest:
        return Instance(weights=(), classes="")
    if not rest:
        raise MalformedInputError(f"missing class string of length {n}")
    classes = rest[0]
    if len(rest) > 1:
        raise MalformedInputError(f"unexpected trailing tokens: {' '.join(rest[1:])}")
    if len(classes) != n:
        raise MalformedInputError(f"class string has {len(classes)} characters, expected {n}")

    allowed = set(alphabet)
    unknown = sorted({c for c in classes if c not in allowed})
    if unknown:
        raise MalformedInputError(
            f"unknown classes {', '.join(unknown)} (alphabet: {''.join(sorted(allowed))})"
        )
    return Instance(weights=weights, classes=classes)


def read_instance(source: str, alphabet: Iterable[str]) -> Instance:
    if source == "-":
        text = sys.stdin.read()
    else:
        text = Path(source).read_text(encoding="utf-8")
    return parse_instance(text, alphabet)


def solve_instance(instance: Instance, affinity: AffinityTable) -> SolveResult:
    return IntervalSolver(instance.to_chain(), affinity).solve()


def format_result(result: SolveResult) -> str:
    return f"{result.energy}\n{' '.join(str(k) for k in result.order)}\n"


def result_payload(instance: Instance, result: SolveResult) -> dict:
    return {
        "n": instance.n,
        "weights": list(instance.weights),
        "classes": instance.classes,
        "energy": result.energy,
        "order": list(result.order),
    }


def trace_rows(steps: Iterable[RemovalStep]) -> List[dict]:
    return [
        {
            "Step": st.step,
            "Index": st.index,
            "Class": st.cls,
            "Weight": st.weight,
            "Left": st.left,
            "Right": st.right,
            "Energy": st.energy,
            "Cumulative": st.cumulative,
        }
        for st in steps
    ]


def write_trace(rows: List[dict], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=TRACE_COLUMNS)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)


def main(argv: List[str] | None = None) -> None:
    args = parse_args(argv)
    try:
        affinity = build_affinity(load_config(args.config))
        instance = read_instance(args.input, affinity.alphabet)
    except MalformedInputError as exc:
        print(f"malformed input: {exc}", file=sys.stderr)
        sys.exit(2)
    except (OSError, ValueError) as exc:
        print(f"Error loading config or input: {exc}", file=sys.stderr)
        sys.exit(2)

    start = time.perf_counter()
    result = solve_instance(instance, affinity)
    elapsed = time.perf_counter() - start

    sys.stdout.write(format_result(result))
    sys.stdout.flush()
    if args.time:
        print(f"Time: {elapsed:.6f}s", file=sys.stderr)

    if args.json_out:
        args.json_out.parent.mkdir(parents=True, exist_ok=True)
        args.json_out.write_text(json.dumps(result_payload(instance, result), indent=2) + "\n", encoding="utf-8")
    if args.trace_out:
        steps = replay_removals(result.chain, affinity, result.order)
        write_trace(trace_rows(steps), args.trace_out)


if __name__ == "__main__":
    main()

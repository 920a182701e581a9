#!/usr/bin/env python3
"""Time the interval solver on random chains of several sizes in parallel."""
from __future__ import annotations

import argparse
import json
import os
import random
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from affinity import AffinityTable, build_affinity, load_config
from interval_solver import solve_chain


@dataclass
class BenchmarkCase:
    name: str
    size: int
    seed: int
    max_weight: int = 10

    def generate(self, alphabet: List[str]) -> Tuple[List[int], str]:
        """Deterministic random chain for this case."""
        if not alphabet:
            raise ValueError("Affinity alphabet is empty; nothing to sample classes from")
        rng = random.Random(self.seed)
        weights = [rng.randint(1, self.max_weight) for _ in range(self.size)]
        classes = "".join(rng.choice(alphabet) for _ in range(self.size))
        return weights, classes


@dataclass
class BenchmarkResult:
    name: str
    size: int
    seconds: Optional[float]
    energy: Optional[int]
    note: str = ""


def parse_args() -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Benchmark the interval solver on random chains")
    ap.add_argument("--plans", type=Path,
                    help="JSON array of cases with 'name', 'size' and optional 'seed'/'max_weight'")
    ap.add_argument("--sizes", type=int, nargs="+", default=[10, 50, 100, 200])
    ap.add_argument("--repeats", type=int, default=1)
    ap.add_argument("--seed", type=int, default=0)
    ap.add_argument("--max-weight", type=int, default=10)
    ap.add_argument("--config", type=Path, help="Optional JSON file with affinity overrides")
    ap.add_argument("--out-dir", type=Path, default=Path("benchmarks"))
    ap.add_argument("--workers", type=int, default=os.cpu_count() or 2)
    return ap.parse_args()


def load_plans(path: Path) -> List[BenchmarkCase]:
    data = json.loads(path.read_text(encoding="utf-8"))
    plans: List[BenchmarkCase] = []
    for idx, entry in enumerate(data):
        if not isinstance(entry, dict) or "name" not in entry or "size" not in entry:
            raise ValueError("Each plan must be an object with 'name' and 'size' fields")
        size = int(entry["size"])
        if size < 0:
            raise ValueError(f"Plan '{entry['name']}' has a negative size")
        plans.append(
            BenchmarkCase(
                name=str(entry["name"]),
                size=size,
                seed=int(entry.get("seed", idx)),
                max_weight=int(entry.get("max_weight", 10)),
            )
        )
    return plans


def default_plans(sizes: List[int], repeats: int, seed: int, max_weight: int) -> List[BenchmarkCase]:
    plans: List[BenchmarkCase] = []
    for size in sizes:
        for rep in range(max(1, repeats)):
            plans.append(
                BenchmarkCase(
                    name=f"n{size}_r{rep}",
                    size=size,
                    seed=seed + 1000 * size + rep,
                    max_weight=max_weight,
                )
            )
    return plans


def run_single(case: BenchmarkCase, affinity: AffinityTable) -> BenchmarkResult:
    try:
        weights, classes = case.generate(sorted(affinity.alphabet))
        start = time.perf_counter()
        result = solve_chain(weights, classes, affinity)
        elapsed = time.perf_counter() - start
    except Exception as exc:  # pragma: no cover - surfaced in the summary row
        return BenchmarkResult(case.name, case.size, None, None, note=str(exc))
    return BenchmarkResult(case.name, case.size, elapsed, result.energy)


def summarize_benchmarks(results: List[BenchmarkResult], out_dir: Path) -> Optional[BenchmarkResult]:
    slowest = None
    for res in results:
        if res.seconds is None:
            continue
        if slowest is None or res.seconds > slowest.seconds:
            slowest = res

    try:  # pragma: no cover - optional plotting dependency
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        timed = sorted((r for r in results if r.seconds is not None), key=lambda r: (r.size, r.name))
        if timed:
            out_dir.mkdir(parents=True, exist_ok=True)
            plt.figure(figsize=(8, 5))
            plt.plot([r.size for r in timed], [r.seconds for r in timed], "o", color="#4c72b0")
            plt.xlabel("Chain length N")
            plt.ylabel("Solve time (s)")
            plt.title("Interval solver runtime")
            plt.tight_layout()
            plt.savefig(out_dir / "runtime_vs_size.png", dpi=150)
            plt.close()
    except ImportError:
        pass

    return slowest


def main() -> None:
    args = parse_args()
    affinity = build_affinity(load_config(args.config))
    if args.plans:
        plans = load_plans(args.plans)
    else:
        plans = default_plans(args.sizes, args.repeats, args.seed, args.max_weight)
    args.out_dir.mkdir(parents=True, exist_ok=True)

    results: List[BenchmarkResult] = []
    with ProcessPoolExecutor(max_workers=args.workers) as pool:
        futures = {pool.submit(run_single, plan, affinity): plan for plan in plans}
        for fut in as_completed(futures):
            results.append(fut.result())

    print("name,size,seconds,energy")
    for res in sorted(results, key=lambda r: (r.size, r.name)):
        row = [
            res.name,
            str(res.size),
            "" if res.seconds is None else f"{res.seconds:.6f}",
            "" if res.energy is None else str(res.energy),
        ]
        print(",".join(row))
        if res.note:
            print(f"# {res.name}: {res.note}")

    slowest = summarize_benchmarks(results, args.out_dir)
    if slowest:
        print(f"# Slowest case: {slowest.name} (n={slowest.size}, {slowest.seconds:.3f}s)")


if __name__ == "__main__":
    main()

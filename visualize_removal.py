#!/usr/bin/env python3
"""Produce graphs of an optimal unfolding: decomposition tree and DP tables."""
from __future__ import annotations

import argparse
import math
from pathlib import Path
from typing import Dict, List, Tuple

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.lines import Line2D
import networkx as nx

from affinity import AffinityTable, build_affinity, load_config
from interval_solver import SolveResult, replay_removals
from unfold import read_instance, solve_instance

LAYOUT_CHOICES = ("tree", "spring")


def parse_args() -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Visualize an optimal removal order")
    ap.add_argument("--instance", default="instance.txt", help="Instance file ('-' reads stdin)")
    ap.add_argument("--config", type=Path, help="Optional JSON file with affinity overrides")
    ap.add_argument(
        "--out-dir",
        dest="out_dir",
        default=Path("removal_graphs"),
        type=Path,
        help="Directory for generated graph files",
    )
    ap.add_argument(
        "--out-prefix",
        dest="out_prefix",
        default="removal_tree",
        type=str,
        help="Base filename prefix for graph images (suffixes are added per layout)",
    )
    ap.add_argument(
        "--layouts",
        nargs="+",
        default=list(LAYOUT_CHOICES),
        choices=LAYOUT_CHOICES,
        help="One or more layout names to render",
    )
    ap.add_argument("--dpi", type=int, default=200, help="Output DPI")
    ap.add_argument(
        "--analysis-dir",
        dest="analysis_dir",
        type=Path,
        default=Path("removal_analysis"),
        help="Directory for table/step charts",
    )
    ap.add_argument("--skip-analysis", action="store_true", help="Skip generating heatmap/bar charts")
    return ap.parse_args()


def build_decomposition_tree(result: SolveResult, affinity: AffinityTable) -> nx.DiGraph:
    """One node per element; each last-removed index points at the
    last-removed indices of its two sub-intervals."""

    chain = result.chain
    graph = nx.DiGraph()
    last = chain.n + 1
    if chain.n == 0:
        return graph

    stack: List[Tuple[int, int, int, int | None]] = [(0, last, 0, None)]
    while stack:
        left, right, depth, parent = stack.pop()
        if right - left <= 1:
            continue
        k = result.choice_at(left, right)
        graph.add_node(
            k,
            label=f"{k}:{chain.cls(k, affinity.terminal)}",
            cls=chain.cls(k, affinity.terminal),
            weight=chain.weight(k),
            interval=(left, right),
            subtotal=result.best_at(left, right),
            depth=depth,
        )
        if parent is not None:
            graph.add_edge(parent, k)
        stack.append((k, right, depth + 1, k))
        stack.append((left, k, depth + 1, k))
    return graph


def _layout_tree(graph: nx.DiGraph) -> Dict[int, Tuple[float, float]]:
    return {node: (float(node), -float(graph.nodes[node]["depth"])) for node in graph.nodes}


def _layout_spring(graph: nx.DiGraph) -> Dict[int, Tuple[float, float]]:
    if len(graph.nodes) == 1:
        return {next(iter(graph.nodes)): (0.0, 0.0)}
    return nx.spring_layout(graph, seed=42)


LAYOUT_FNS = {
    "tree": _layout_tree,
    "spring": _layout_spring,
}


def _class_palette(graph: nx.DiGraph) -> Dict[str, str]:
    classes = sorted({graph.nodes[n]["cls"] for n in graph.nodes})
    cmap = plt.get_cmap("tab10", max(3, len(classes)))
    return {cls: matplotlib.colors.rgb2hex(cmap(idx)) for idx, cls in enumerate(classes)}


def draw_tree_variants(
    graph: nx.DiGraph,
    out_dir: Path,
    out_prefix: str,
    *,
    layouts: List[str],
    dpi: int,
) -> List[Path]:
    if not graph.nodes:
        raise RuntimeError("Nothing to visualize: the chain has no elements")
    palette = _class_palette(graph)
    generated: List[Path] = []
    out_dir.mkdir(parents=True, exist_ok=True)
    prefix = Path(out_prefix).stem or "removal_tree"

    for layout in layouts:
        out_path = out_dir / f"{prefix}_{layout}.png"
        positions = LAYOUT_FNS[layout](graph)
        _render_graph(graph, positions, out_path, palette, dpi=dpi, layout_name=layout)
        generated.append(out_path)
    return generated


def _render_graph(
    graph: nx.DiGraph,
    positions: Dict[int, Tuple[float, float]],
    out_path: Path,
    palette: Dict[str, str],
    *,
    dpi: int,
    layout_name: str,
) -> None:
    width = max(8.0, min(40.0, 0.6 * len(graph.nodes)))
    fig, ax = plt.subplots(figsize=(width, 7))
    node_colors = [palette[graph.nodes[n]["cls"]] for n in graph.nodes]
    weights = [graph.nodes[n]["weight"] for n in graph.nodes]
    top = max((abs(w) for w in weights), default=1) or 1
    node_sizes = [350 + 900 * abs(w) / top for w in weights]
    nx.draw_networkx_nodes(
        graph,
        positions,
        node_color=node_colors,
        node_size=node_sizes,
        alpha=0.92,
        ax=ax,
        linewidths=1.2,
        edgecolors="#2f2f2f",
    )
    labels = {n: graph.nodes[n]["label"] for n in graph.nodes}
    nx.draw_networkx_labels(graph, positions, labels=labels, font_size=8, ax=ax)
    if graph.edges:
        nx.draw_networkx_edges(graph, positions, arrows=True, alpha=0.6, ax=ax, edge_color="#555555")

    handles = [
        Line2D([0], [0], marker="o", linestyle="", markerfacecolor=color, markeredgecolor="#2f2f2f", label=cls)
        for cls, color in palette.items()
    ]
    if handles:
        ax.legend(handles=handles, loc="upper right", fontsize=8, title="Class")
    ax.set_title(f"Removal decomposition ({layout_name} layout); root is removed last")
    ax.set_axis_off()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(out_path, dpi=dpi)
    plt.close(fig)


def generate_analysis_charts(
    result: SolveResult,
    affinity: AffinityTable,
    out_dir: Path,
    out_prefix: str,
    *,
    dpi: int,
) -> List[Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    prefix = Path(out_prefix).stem or "removal_analysis"
    outputs: List[Path] = []

    heatmap_path = out_dir / f"{prefix}_best_table.png"
    _plot_best_heatmap(result, heatmap_path, dpi=dpi)
    outputs.append(heatmap_path)

    steps_path = out_dir / f"{prefix}_step_energy.png"
    _plot_step_energy(result, affinity, steps_path, dpi=dpi)
    outputs.append(steps_path)
    return outputs


def _plot_best_heatmap(result: SolveResult, out_path: Path, *, dpi: int) -> None:
    size = result.chain.n + 2
    matrix: List[List[float]] = []
    for left in range(size):
        row: List[float] = []
        for right in range(size):
            row.append(float(result.best_at(left, right)) if right - left >= 2 else float("nan"))
        matrix.append(row)

    fig, ax = plt.subplots(figsize=(max(5, size * 0.5), max(4, size * 0.45)))
    cax = ax.imshow(matrix, aspect="auto", cmap=plt.get_cmap("YlGnBu"))
    if size <= 16:
        for y in range(size):
            for x in range(size):
                value = matrix[y][x]
                if math.isnan(value):
                    continue
                ax.text(x, y, f"{value:.0f}", ha="center", va="center", fontsize=7)
    ax.set_xlabel("right")
    ax.set_ylabel("left")
    ax.set_title("best(left, right)")
    fig.colorbar(cax, ax=ax, label="Max energy")
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(out_path, dpi=dpi)
    plt.close(fig)


def _plot_step_energy(result: SolveResult, affinity: AffinityTable, out_path: Path, *, dpi: int) -> None:
    steps = replay_removals(result.chain, affinity, result.order)
    fig, ax = plt.subplots(figsize=(max(6, len(steps) * 0.35), 4))
    ax.bar([str(st.index) for st in steps], [st.energy for st in steps], color="#4c72b0")
    ax.set_xlabel("Removed index (in removal order)")
    ax.set_ylabel("Energy")
    ax.set_title(f"Energy per removal (total={result.energy})")
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(out_path, dpi=dpi)
    plt.close(fig)


def main() -> None:
    args = parse_args()
    affinity = build_affinity(load_config(args.config))
    instance = read_instance(args.instance, affinity.alphabet)
    result = solve_instance(instance, affinity)
    graph = build_decomposition_tree(result, affinity)
    outputs = draw_tree_variants(graph, args.out_dir, args.out_prefix, layouts=args.layouts, dpi=args.dpi)
    for path in outputs:
        print(f"Wrote graph to {path}")

    if not args.skip_analysis:
        for path in generate_analysis_charts(result, affinity, args.analysis_dir, args.out_prefix, dpi=args.dpi):
            print(f"Wrote analysis chart to {path}")


if __name__ == "__main__":
    main()

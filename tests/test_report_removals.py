from __future__ import annotations

import csv
import subprocess
import sys
from pathlib import Path

from affinity import default_affinity
from interval_solver import RemovalStep
from report_removals import build_report, build_summary_lines, energy_by_class, top_removals
from tests.utils import WORKED_CLASSES, WORKED_WEIGHTS, write_instance

ROOT = Path(__file__).resolve().parents[1]


def _step(step: int, index: int, cls: str, energy: int, cumulative: int) -> RemovalStep:
    return RemovalStep(step=step, index=index, cls=cls, weight=1, left=0, right=0, energy=energy, cumulative=cumulative)


def test_energy_by_class_and_top_removals() -> None:
    steps = [_step(1, 2, "N", 5, 5), _step(2, 1, "P", 9, 14), _step(3, 3, "N", 9, 23)]
    assert energy_by_class(steps) == {"N": 14, "P": 9}
    assert [st.index for st in top_removals(steps, 2)] == [1, 3]
    assert top_removals(steps, 0) == []


def test_summary_for_worked_example(tmp_path: Path) -> None:
    inst = write_instance(tmp_path / "instance.txt", WORKED_WEIGHTS, WORKED_CLASSES)
    steps, lines = build_report(str(inst), default_affinity(), top=1)
    assert [st.index for st in steps] == [1, 2]
    assert [st.energy for st in steps] == [20, 6]
    assert "Removals: 2 (total energy=26)" in lines
    assert "Replay matches solver maximum: YES" in lines
    assert "Order: 1 2" in lines
    assert "Energy per class: N=6, P=20" in lines
    assert any(line.startswith("Largest removals: #1 P between 0|2 (20)") for line in lines)


def test_summary_for_empty_chain() -> None:
    lines = build_summary_lines([], 0, top=3)
    assert "No elements to remove." in lines
    assert "Total energy: 0" in lines


def test_report_cli_writes_csv_and_summary(tmp_path: Path) -> None:
    inst = write_instance(tmp_path / "instance.txt", [3, 1, 4, 1, 5], "PNABP")
    report_path = tmp_path / "report.csv"
    summary_path = tmp_path / "summary.txt"

    subprocess.check_call(
        [
            sys.executable,
            str(ROOT / "report_removals.py"),
            "--instance",
            str(inst),
            "--out",
            str(report_path),
            "--summary",
            str(summary_path),
            "--top",
            "3",
        ],
        cwd=ROOT,
    )

    with report_path.open(encoding="utf-8", newline="") as handle:
        rows = list(csv.DictReader(handle))
    assert sorted(int(r["Index"]) for r in rows) == [1, 2, 3, 4, 5]
    assert [int(r["Step"]) for r in rows] == [1, 2, 3, 4, 5]

    summary_text = summary_path.read_text(encoding="utf-8")
    assert "Replay matches solver maximum: YES" in summary_text
    assert f"total energy={rows[-1]['Cumulative']}" in summary_text

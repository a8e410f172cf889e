#!/usr/bin/env python3
"""
Plot scanbench sweep results.

Reads <run-dir>/report.json written by run_sweep.py and renders
durations.svg: mean and median target time per workload size, with a
min..max band, stddev error bars, and failed sizes marked on the x axis.

Examples
- python3 scanbench/plot_results.py --run-dir results/sweep_2025-01-01T00-00-00Z
- python3 scanbench/plot_results.py --run-dir results/sweep_... --unit s --no-title
"""
from __future__ import annotations
import argparse
import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple


# Tableau 10 Palette. A vibrant, high-contrast, and widely-used professional color scheme.
COLOR_LIST = [
    "#1f77b4",  # blue
    "#ff7f0e",  # orange
    "#2ca02c",  # green
    "#d62728",  # red
]

UNIT_SCALE = {"s": 1.0, "ms": 1e3, "us": 1e6}


@dataclass
class SizePoint:
    size_bytes: int
    status: str
    min: float
    max: float
    mean: float
    median: float
    stddev: float

    @property
    def ok(self) -> bool:
        return self.status == "completed"


def _format_size(n: int) -> str:
    for unit, scale in (("G", 1 << 30), ("M", 1 << 20), ("K", 1 << 10)):
        if n >= scale:
            v = n / scale
            return f"{v:g}{unit}" if v < 100 else f"{v:.0f}{unit}"
    return str(n)


def load_report(run_dir: Path) -> Tuple[dict, List[SizePoint]]:
    data = json.loads((run_dir / "report.json").read_text())
    points: List[SizePoint] = []
    for r in data.get("results", []):
        st = r.get("stats") or {}
        nan = float("nan")
        points.append(SizePoint(
            size_bytes=int(r["size_bytes"]),
            status=str(r.get("status", "failed")),
            min=float(st.get("min", nan)),
            max=float(st.get("max", nan)),
            mean=float(st.get("mean", nan)),
            median=float(st.get("median", nan)),
            stddev=float(st.get("stddev", nan)),
        ))
    return data.get("config", {}), points


def plot_durations(run_dir: Path, config: dict, points: List[SizePoint], unit: str = "ms",
                   hide_title: bool = False) -> Optional[Path]:
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    if not points:
        return None
    scale = UNIT_SCALE[unit]
    centers = list(range(len(points)))
    ok = [p for p in points if p.ok]
    ok_x = [centers[i] for i, p in enumerate(points) if p.ok]

    fig, ax = plt.subplots(figsize=(max(6, len(points) * 1.2), 4))
    if ok:
        ax.fill_between(ok_x, [p.min * scale for p in ok], [p.max * scale for p in ok],
                        color=COLOR_LIST[0], alpha=0.15, label="min..max")
        ax.errorbar(ok_x, [p.mean * scale for p in ok], yerr=[p.stddev * scale for p in ok],
                    marker='o', linestyle='-', capsize=3, color=COLOR_LIST[0], label="mean ± stddev")
        ax.plot(ok_x, [p.median * scale for p in ok], marker='s', linestyle='--',
                color=COLOR_LIST[1], label="median")
    failed_x = [centers[i] for i, p in enumerate(points) if not p.ok]
    if failed_x:
        ymin = min((p.min * scale for p in ok if math.isfinite(p.min)), default=0.0)
        ax.scatter(failed_x, [ymin] * len(failed_x), marker='x', color=COLOR_LIST[3],
                   zorder=3, label="failed")

    ax.set_xticks(centers)
    ax.set_xticklabels([_format_size(p.size_bytes) for p in points], rotation=30, ha='right')
    ax.set_xlabel("Workload size (bytes)")
    ax.set_ylabel(f"Target time per iteration ({unit})")
    ax.grid(axis='y', linestyle='--', alpha=0.3)
    ax.legend(loc='best')
    if not hide_title:
        program = " ".join(config.get("program") or []) or "target"
        fig.suptitle(f"{program}: {config.get('iterations', '?')} iterations per size", fontsize=12)
    fig.tight_layout()

    out_file = run_dir / "durations.svg"
    fig.savefig(out_file, format="svg")
    plt.close(fig)
    return out_file


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--run-dir", type=Path, required=True, help="Sweep run directory (results/sweep_<ts>)")
    ap.add_argument("--unit", default="ms", choices=sorted(UNIT_SCALE), help="Time unit for the Y axis")
    ap.add_argument("--no-title", action="store_true", help="Hide the title on plots")
    args = ap.parse_args(argv)

    if not (args.run_dir / "report.json").exists():
        print(f"No report.json under {args.run_dir}")
        return 1
    config, points = load_report(args.run_dir)
    out = plot_durations(args.run_dir, config, points, unit=args.unit, hide_title=args.no_title)
    if out is None:
        print(f"No scenarios in {args.run_dir / 'report.json'}")
        return 1
    print("Wrote:")
    print("   ", out)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

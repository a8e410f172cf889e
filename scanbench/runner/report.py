from __future__ import annotations
import csv
import dataclasses as dc
import json
from pathlib import Path
from typing import List

from .types import Report, ScenarioResult, SweepParams
from .utils import format_bytes

CSV_COLUMNS = [
    "size_bytes", "seed", "status", "error", "setup_duration", "total_duration",
    "iterations", "min", "max", "mean", "median", "stddev",
]


class ReportBuilder:
    """Collects scenario results for one sweep; build() returns a frozen Report."""

    def __init__(self, params: SweepParams):
        # the recorded config never shares lists with the caller
        self._params = dc.replace(
            params,
            program=tuple(params.program),
            commands=tuple(params.commands),
            load_program=tuple(params.load_program),
            target_args=tuple(params.target_args),
        )
        self._results: List[ScenarioResult] = []

    def add(self, result: ScenarioResult) -> None:
        if self._results and result.size_bytes <= self._results[-1].size_bytes:
            raise ValueError(
                f"results must be added in increasing size order "
                f"({result.size_bytes} after {self._results[-1].size_bytes})")
        self._results.append(result)

    def build(self) -> Report:
        return Report(params=dc.replace(self._params), results=tuple(self._results))


def write_report(report: Report, out_dir: Path) -> List[Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    json_path = out_dir / "report.json"
    json_path.write_text(json.dumps(report.to_dict(), indent=2))

    csv_path = out_dir / "results.csv"
    with csv_path.open("w", newline="") as f:
        w = csv.DictWriter(f, fieldnames=CSV_COLUMNS)
        w.writeheader()
        for r in report.results:
            row = {
                "size_bytes": r.size_bytes,
                "seed": r.seed,
                "status": r.state.value,
                "error": r.error or "",
                "setup_duration": r.timing.setup_duration,
                "total_duration": r.timing.total_duration,
                "iterations": len(r.timing.durations),
            }
            if r.stats is not None:
                row.update(dc.asdict(r.stats))
            w.writerow(row)
    return [json_path, csv_path]


def _ms(v) -> str:
    return "-" if v is None else f"{v * 1000.0:.3f}"


def format_summary(report: Report) -> str:
    lines = [
        f"{'size':>12} {'status':>9} {'n':>4} {'setup ms':>10} {'min ms':>10} {'median ms':>10} "
        f"{'mean ms':>10} {'max ms':>10} {'stddev ms':>10}"
    ]
    for r in report.results:
        st = r.stats
        lines.append(
            f"{format_bytes(r.size_bytes):>12} {r.state.value:>9} {len(r.timing.durations):>4} "
            f"{_ms(r.timing.setup_duration):>10} "
            f"{_ms(st.min if st else None):>10} {_ms(st.median if st else None):>10} "
            f"{_ms(st.mean if st else None):>10} {_ms(st.max if st else None):>10} "
            f"{_ms(st.stddev if st else None):>10}"
        )
        if r.error:
            lines.append(f"{'':>12}   error: {r.error}")
    return "\n".join(lines)

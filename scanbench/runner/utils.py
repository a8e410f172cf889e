from __future__ import annotations
from datetime import datetime, timezone
from typing import Iterable
import shlex
import subprocess
import sys
from pathlib import Path


def ts_utc_compact() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%SZ")


def has_flag_or_kv(tokens: Iterable[str], name: str) -> bool:
    """Return True if name (flag) or name= (kv) appears in the token list."""
    name_eq = name + "="
    for tok in tokens or []:
        if tok == name or tok.startswith(name_eq):
            return True
    return False


def format_bytes(n: int) -> str:
    for unit, scale in (("GiB", 1 << 30), ("MiB", 1 << 20), ("KiB", 1 << 10)):
        if n >= scale and n % scale == 0:
            return f"{n // scale} {unit}"
    return f"{n} B"


# --- Plotting helper ---

def run_plot(run_dir: Path, no_title: bool = False) -> int:
    plot_script = Path(__file__).resolve().parents[1] / "plot_results.py"
    cmd = [sys.executable, str(plot_script), "--run-dir", str(run_dir)]
    if no_title:
        cmd += ["--no-title"]
    print(f"Auto-plot: {' '.join(shlex.quote(c) for c in cmd)}")
    return subprocess.call(cmd)

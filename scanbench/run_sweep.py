#!/usr/bin/env python3
"""
Sweep entrypoint for scanbench.

This file only defines CLI arguments and logging; the orchestration lives
under scanbench/runner/.
"""
from __future__ import annotations
import argparse
import logging
import os
from pathlib import Path
from typing import Optional, Sequence
import sys

# Support running both as a module (`python -m scanbench.run_sweep`) and as a script
if __package__ is None or __package__ == "":
    _REPO_ROOT = Path(__file__).resolve().parents[1]
    if str(_REPO_ROOT) not in sys.path:
        sys.path.insert(0, str(_REPO_ROOT))
    from scanbench.runner.config import parse_size
    from scanbench.runner.constants import (
        DEFAULT_ITERATIONS, DEFAULT_SEED, DEFAULT_SIZE_BYTES, DEFAULT_STEP_BYTES,
        DEFAULT_STEP_FACTOR, NTHREADS_NOT_APPLICABLE,
    )
    from scanbench.runner.exec import run_from_args
else:
    from .runner.config import parse_size
    from .runner.constants import (
        DEFAULT_ITERATIONS, DEFAULT_SEED, DEFAULT_SIZE_BYTES, DEFAULT_STEP_BYTES,
        DEFAULT_STEP_FACTOR, NTHREADS_NOT_APPLICABLE,
    )
    from .runner.exec import run_from_args


def _size_arg(value: str) -> int:
    try:
        return parse_size(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    # ProtocolWarning and friends end up in the log instead of bare stderr
    logging.captureWarnings(True)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Benchmark a memory scanner against a synthetic load")
    p.add_argument("--scanmem-program", required=True,
                   help="Target program command line; invoked as <program> --pid=<load pid> [-j=<n>]")
    p.add_argument("--scanmem-commands", required=True,
                   help="';'-separated commands fed to the target on stdin, should end with 'exit'")
    p.add_argument("--load-program",
                   help="Workload generator command line (defaults to the bundled synthetic_load.py)")
    p.add_argument("-t", "--nthreads", type=int, default=NTHREADS_NOT_APPLICABLE,
                   help="Thread count passed to the target as -j=<n>; -1 omits the flag")
    p.add_argument("--minbytes", type=_size_arg, default=DEFAULT_SIZE_BYTES,
                   help="Smallest workload size (accepts 0x.. and k/m/g suffixes)")
    p.add_argument("--maxbytes", type=_size_arg, default=DEFAULT_SIZE_BYTES,
                   help="Largest workload size")
    p.add_argument("--stepbytes", type=_size_arg, default=DEFAULT_STEP_BYTES,
                   help="Bytes added to the size on every step")
    p.add_argument("--stepfactor", type=float, default=DEFAULT_STEP_FACTOR,
                   help="Factor applied after adding stepbytes: next = floor((size + step) * factor)")
    p.add_argument("-n", "--iterations", type=int, default=DEFAULT_ITERATIONS,
                   help="Target runs per workload size")
    p.add_argument("-T", "--timeout", type=float, default=0.0,
                   help="Per-scenario deadline in seconds for all iterations; 0 disables it")
    p.add_argument("--seed", type=lambda s: int(s, 0), default=DEFAULT_SEED,
                   help="Seed for fill-random, used for every size")
    p.add_argument("--target-arg", action="append", default=[],
                   help="Extra argument for every target invocation (repeatable)")
    p.add_argument("-v", "--verbose", action="store_true", help="Echo all child process I/O")
    p.add_argument("--out", type=Path, default=Path("results"), help="Results root directory")
    p.add_argument("--dry-run", action="store_true", help="Print the planned sizes and exit")
    p.add_argument("--auto-plot", action="store_true", help="Render durations.svg after the sweep")
    p.add_argument("--log-level", default=os.environ.get("SCANBENCH_LOG_LEVEL", "INFO"),
                   help="Logging level")
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    return run_from_args(args)


if __name__ == "__main__":
    raise SystemExit(main())

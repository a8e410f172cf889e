from __future__ import annotations
import logging
import os
import shutil
import time
from pathlib import Path
from typing import List, Optional, Sequence

from .channel import Channel
from .constants import NTHREADS_NOT_APPLICABLE
from .errors import ConfigError, SpawnError
from .utils import has_flag_or_kv

LOGGER = logging.getLogger("scanbench.target")


def ensure_target_program(program: Sequence[str]) -> None:
    """Fail early when the target executable is not there."""
    if not program:
        raise ConfigError("target program is empty")
    exe = program[0]
    if os.sep in exe:
        path = Path(exe)
        if not path.exists():
            raise SpawnError(program, f"no such file: {path}")
        if not os.access(path, os.X_OK):
            raise SpawnError(program, f"not executable: {path}")
    elif shutil.which(exe) is None:
        raise SpawnError(program, f"{exe} not found on PATH")


def build_target_args(load_pid: int, nthreads: int = NTHREADS_NOT_APPLICABLE,
                      extra_args: Sequence[str] = ()) -> List[str]:
    for name in ("--pid", "-j"):
        if has_flag_or_kv(extra_args, name):
            raise ConfigError(f"{name} is set by the runner; drop it from the target args")
    args: List[str] = [f"--pid={load_pid}"]
    # targets without a thread option must not see -j at all
    if nthreads != NTHREADS_NOT_APPLICABLE:
        args.append(f"-j={nthreads}")
    args += list(extra_args)
    return args


def run_target(program: Sequence[str], commands: Sequence[str], load_pid: int,
               nthreads: int = NTHREADS_NOT_APPLICABLE, echo: bool = False,
               timeout: Optional[float] = None, extra_args: Sequence[str] = ()) -> float:
    """Run the target once against ``load_pid`` and return seconds from spawn to exit.

    Commands are written back to back; the target is not expected to
    acknowledge them and must exit on its own. ``timeout`` bounds the wait
    for that exit.
    """
    args = list(program[1:]) + build_target_args(load_pid, nthreads, extra_args)
    start = time.perf_counter()
    with Channel.spawn(program[0], args, echo=echo) as target:
        for command in commands:
            target.write_line(command)
        rc = target.close(timeout=timeout)
    elapsed = time.perf_counter() - start
    if rc:
        LOGGER.warning("Target pid %d exited with %d", target.pid, rc)
    return elapsed

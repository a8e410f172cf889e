from __future__ import annotations
import math
import re
import shlex
import warnings
from typing import List

from .constants import CMD_EXIT, NTHREADS_NOT_APPLICABLE
from .errors import ConfigError, ProtocolWarning
from .types import SweepParams

_SIZE_SUFFIXES = {"": 1, "k": 1 << 10, "m": 1 << 20, "g": 1 << 30}


def parse_size(spec: str) -> int:
    """Parse byte counts like "4096", "0x1000", "4k", "256m" or "1g"."""
    s = spec.strip().lower()
    m = re.match(r"^(0x[0-9a-f]+|\d+)\s*([kmg]?)i?b?$", s)
    if not m:
        raise ValueError(f"Invalid size: {spec}")
    return int(m.group(1), 0) * _SIZE_SUFFIXES[m.group(2)]


def parse_program(spec: str) -> List[str]:
    argv = shlex.split(spec)
    if not argv:
        raise ConfigError("empty program command line")
    return argv


def parse_commands(spec: str) -> List[str]:
    """Split the ';'-separated target command list.

    A list that does not end in ``exit`` still runs, but the target may then
    only stop at end of input, so a ProtocolWarning is issued.
    """
    commands = [c.strip() for c in spec.split(";") if c.strip()]
    if not commands or commands[-1] != CMD_EXIT:
        warnings.warn(
            f"target commands should end with '{CMD_EXIT}', got {commands[-1:] or 'nothing'}",
            ProtocolWarning,
            stacklevel=2,
        )
    return commands


def plan_sizes(min_bytes: int, max_bytes: int, step_bytes: int, step_factor: float) -> List[int]:
    """Workload sizes visited by a sweep, smallest first.

    Each step is ``floor((size + step_bytes) * step_factor)``; the sweep ends
    the first time that leaves ``[min_bytes, max_bytes]``. Parameters whose
    steps would not strictly grow the size inside the range are rejected up
    front.
    """
    if not math.isfinite(step_factor):
        raise ConfigError(f"stepfactor must be finite, got {step_factor}")
    if not (step_bytes > 0 or step_factor > 1.0):
        raise ConfigError(
            f"sweep does not progress: stepbytes={step_bytes} stepfactor={step_factor} "
            "(need stepbytes > 0 or stepfactor > 1.0)")
    if min_bytes < 0 or min_bytes > max_bytes:
        raise ConfigError(f"invalid sweep bounds: minbytes={min_bytes} maxbytes={max_bytes}")
    sizes: List[int] = []
    size = min_bytes
    while min_bytes <= size <= max_bytes:
        sizes.append(size)
        grown = (size + step_bytes) * step_factor
        if math.isinf(grown):
            # overflowed past any representable max_bytes
            break
        nxt = math.floor(grown)
        if min_bytes <= nxt <= max_bytes and nxt <= size:
            raise ConfigError(
                f"sweep stalls at {size} bytes: stepbytes={step_bytes} stepfactor={step_factor}")
        size = nxt
    return sizes


def validate_params(params: SweepParams) -> List[int]:
    """Check a whole sweep before anything is spawned; returns its sizes."""
    if not params.program:
        raise ConfigError("target program is required")
    if not params.load_program:
        raise ConfigError("load program is required")
    if params.iterations < 1:
        raise ConfigError(f"iterations must be >= 1, got {params.iterations}")
    if params.timeout_sec < 0:
        raise ConfigError(f"timeout must be >= 0, got {params.timeout_sec}")
    if params.nthreads < 1 and params.nthreads != NTHREADS_NOT_APPLICABLE:
        raise ConfigError(f"nthreads must be >= 1 or -1, got {params.nthreads}")
    return plan_sizes(params.min_bytes, params.max_bytes, params.step_bytes, params.step_factor)

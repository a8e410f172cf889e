from __future__ import annotations
import dataclasses as dc
import enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .constants import (
    DEFAULT_ITERATIONS,
    DEFAULT_SEED,
    DEFAULT_SIZE_BYTES,
    DEFAULT_STEP_BYTES,
    DEFAULT_STEP_FACTOR,
    NTHREADS_NOT_APPLICABLE,
)


@dc.dataclass
class SweepParams:
    # target program (argv prefix) and the commands fed to it on stdin
    program: List[str] = dc.field(default_factory=list)
    commands: List[str] = dc.field(default_factory=list)
    load_program: List[str] = dc.field(default_factory=list)
    min_bytes: int = DEFAULT_SIZE_BYTES
    max_bytes: int = DEFAULT_SIZE_BYTES
    step_bytes: int = DEFAULT_STEP_BYTES
    step_factor: float = DEFAULT_STEP_FACTOR
    iterations: int = DEFAULT_ITERATIONS
    nthreads: int = NTHREADS_NOT_APPLICABLE
    timeout_sec: float = 0.0  # 0 = no scenario deadline
    seed: int = DEFAULT_SEED
    echo: bool = False
    # Extra args appended to every target invocation
    target_args: List[str] = dc.field(default_factory=list)


class ScenarioState(enum.Enum):
    IDLE = "idle"
    LOAD_STARTING = "load_starting"
    LOAD_CONFIGURED = "load_configured"
    ITERATING = "iterating"
    TEARING_DOWN = "tearing_down"
    COMPLETED = "completed"
    FAILED = "failed"


@dc.dataclass(frozen=True)
class Timing:
    setup_duration: Optional[float]
    durations: Tuple[float, ...]
    total_duration: Optional[float]


@dc.dataclass(frozen=True)
class Stats:
    min: float
    max: float
    mean: float
    median: float
    stddev: float


@dc.dataclass(frozen=True)
class ScenarioResult:
    size_bytes: int
    seed: int
    state: ScenarioState
    timing: Timing
    # Only set for completed scenarios
    stats: Optional[Stats] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.state is ScenarioState.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "size_bytes": self.size_bytes,
            "seed": self.seed,
            "status": self.state.value,
            "error": self.error,
            "setup_duration": self.timing.setup_duration,
            "total_duration": self.timing.total_duration,
            "durations": list(self.timing.durations),
            "stats": dc.asdict(self.stats) if self.stats is not None else None,
        }


@dc.dataclass(frozen=True)
class Report:
    params: SweepParams
    results: Tuple[ScenarioResult, ...] = ()

    @property
    def failed(self) -> Sequence[ScenarioResult]:
        return [r for r in self.results if r.failed]

    def to_dict(self) -> Dict[str, Any]:
        p = self.params
        return {
            "config": {
                "program": list(p.program),
                "commands": list(p.commands),
                "load_program": list(p.load_program),
                "min_bytes": p.min_bytes,
                "max_bytes": p.max_bytes,
                "step_bytes": p.step_bytes,
                "step_factor": p.step_factor,
                "iterations": p.iterations,
                "nthreads": p.nthreads,
                "timeout_sec": p.timeout_sec,
                "seed": p.seed,
                "target_args": list(p.target_args),
            },
            "results": [r.to_dict() for r in self.results],
        }

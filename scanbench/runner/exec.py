from __future__ import annotations
import argparse
import json
import logging
import time
from pathlib import Path
from typing import Callable, List, Optional

from .config import parse_commands, parse_program, validate_params
from .constants import DEFAULT_LOAD_PROGRAM
from .errors import BenchmarkError, ConfigError, ScenarioTimeout, SpawnError
from .load import configure_load, start_load, stop_load
from .report import ReportBuilder, format_summary, write_report
from .stats import aggregate
from .target import ensure_target_program, run_target
from .types import Report, ScenarioResult, ScenarioState, SweepParams, Timing
from .utils import format_bytes, run_plot as _run_plot, ts_utc_compact

LOGGER = logging.getLogger("scanbench.exec")

SeedFunc = Callable[[int], int]


class Runner:
    def __init__(self, params: SweepParams, seed_fn: Optional[SeedFunc] = None):
        self.params = params
        # default policy: the same seed for every size
        self.seed_fn: SeedFunc = seed_fn or (lambda size_bytes: params.seed)
        self.state = ScenarioState.IDLE

    def _transition(self, size_bytes: int, state: ScenarioState) -> None:
        LOGGER.debug("Scenario %d: %s -> %s", size_bytes, self.state.value, state.value)
        self.state = state

    def _iterate(self, load_pid: int, durations: List[float]) -> None:
        p = self.params
        deadline = time.monotonic() + p.timeout_sec if p.timeout_sec > 0 else None
        for i in range(p.iterations):
            remaining = None
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise ScenarioTimeout(f"scenario deadline of {p.timeout_sec}s reached "
                                          f"before iteration {i + 1}")
            elapsed = run_target(p.program, p.commands, load_pid, nthreads=p.nthreads, echo=p.echo,
                                 timeout=remaining, extra_args=p.target_args)
            durations.append(elapsed)
            LOGGER.debug("  Iteration %d/%d: %.6fs", i + 1, p.iterations, elapsed)

    def run_scenario(self, size_bytes: int, seed: int) -> ScenarioResult:
        """Benchmark one workload size: set up the load once, time N target runs.

        Spawn, pipe and timeout errors end the scenario as FAILED with
        whatever durations were collected; the load is torn down either way.
        KeyboardInterrupt terminates the children and propagates.
        """
        p = self.params
        durations: List[float] = []
        setup: Optional[float] = None
        error: Optional[BenchmarkError] = None

        self.state = ScenarioState.IDLE
        self._transition(size_bytes, ScenarioState.LOAD_STARTING)
        start = time.perf_counter()
        try:
            load = start_load(p.load_program, echo=p.echo)
        except SpawnError as e:
            error = e
        else:
            with load:
                try:
                    configure_load(load, size_bytes, seed)
                    setup = time.perf_counter() - start
                    self._transition(size_bytes, ScenarioState.LOAD_CONFIGURED)
                    self._transition(size_bytes, ScenarioState.ITERATING)
                    self._iterate(load.pid, durations)
                except BenchmarkError as e:
                    error = e
                self._transition(size_bytes, ScenarioState.TEARING_DOWN)
                stop_load(load)
        total = time.perf_counter() - start
        timing = Timing(setup_duration=setup, durations=tuple(durations), total_duration=total)

        if error is not None:
            self._transition(size_bytes, ScenarioState.FAILED)
            LOGGER.error("Scenario %s failed after %d/%d iterations: %s",
                         format_bytes(size_bytes), len(durations), p.iterations, error)
            return ScenarioResult(size_bytes, seed, ScenarioState.FAILED, timing, error=str(error))
        self._transition(size_bytes, ScenarioState.COMPLETED)
        return ScenarioResult(size_bytes, seed, ScenarioState.COMPLETED, timing, stats=aggregate(durations))

    def run_sweep(self) -> Report:
        sizes = validate_params(self.params)
        try:
            ensure_target_program(self.params.program)
        except SpawnError as e:
            LOGGER.warning("%s; every scenario will fail", e)

        builder = ReportBuilder(self.params)
        for idx, size in enumerate(sizes, start=1):
            seed = self.seed_fn(size)
            LOGGER.info("Scenario %d/%d: size=%s seed=%d iterations=%d",
                        idx, len(sizes), format_bytes(size), seed, self.params.iterations)
            result = self.run_scenario(size, seed)
            if result.stats is not None:
                LOGGER.info("  median %.6fs mean %.6fs stddev %.6fs",
                            result.stats.median, result.stats.mean, result.stats.stddev)
            builder.add(result)
        return builder.build()


def run_sweep(params: SweepParams, seed_fn: Optional[SeedFunc] = None) -> Report:
    return Runner(params, seed_fn=seed_fn).run_sweep()


def params_from_args(args: argparse.Namespace) -> SweepParams:
    load_program = parse_program(args.load_program) if args.load_program else list(DEFAULT_LOAD_PROGRAM)
    return SweepParams(
        program=parse_program(args.scanmem_program),
        commands=parse_commands(args.scanmem_commands),
        load_program=load_program,
        min_bytes=args.minbytes,
        max_bytes=args.maxbytes,
        step_bytes=args.stepbytes,
        step_factor=args.stepfactor,
        iterations=args.iterations,
        nthreads=args.nthreads,
        timeout_sec=args.timeout,
        seed=args.seed,
        echo=args.verbose,
        target_args=list(args.target_arg or []),
    )


def run_from_args(args: argparse.Namespace) -> int:
    try:
        params = params_from_args(args)
        sizes = validate_params(params)
    except ConfigError as e:
        LOGGER.error("Invalid configuration: %s", e)
        return 2

    if getattr(args, 'dry_run', False):
        print("Planned runs:")
        print(json.dumps({
            "program": params.program,
            "commands": params.commands,
            "load_program": params.load_program,
            "iterations": params.iterations,
            "sizes": sizes,
        }, indent=2))
        try:
            ensure_target_program(params.program)
        except SpawnError as e:
            LOGGER.warning("%s", e)
        return 0

    run_dir = Path(args.out) / f"sweep_{ts_utc_compact()}"
    run_dir.mkdir(parents=True, exist_ok=True)
    (run_dir / "cli_args.json").write_text(json.dumps(vars(args), indent=2, default=str))

    try:
        report = Runner(params).run_sweep()
    except KeyboardInterrupt:
        LOGGER.error("Interrupted; results of the unfinished sweep are discarded")
        return 130

    write_report(report, run_dir)
    print(format_summary(report))
    if report.failed:
        LOGGER.warning("%d of %d scenarios failed", len(report.failed), len(report.results))
    if getattr(args, 'auto_plot', False):
        _run_plot(run_dir)
    print(f"Sweep finished: {run_dir}")
    return 0

from __future__ import annotations
import sys
import textwrap
from pathlib import Path
from typing import List

import pytest

from scanbench.runner.types import SweepParams


def write_script(path: Path, body: str) -> List[str]:
    path.write_text(textwrap.dedent(body))
    return [sys.executable, str(path)]


@pytest.fixture
def stub_load(tmp_path) -> List[str]:
    """Workload stub: acknowledges sizing and filling at once, exits on 'exit'."""
    return write_script(tmp_path / "stub_load.py", """
        import sys
        for line in sys.stdin:
            cmd = line.split()
            if not cmd:
                continue
            if cmd[0] in ("exit", "q"):
                break
            if cmd[0] in ("set-memory-size", "fill-random"):
                print("Done", flush=True)
    """)


@pytest.fixture
def target_log(tmp_path) -> Path:
    return tmp_path / "target_calls.log"


@pytest.fixture
def stub_target(tmp_path, target_log) -> List[str]:
    """Target stub: logs its argv and stdin, exits after reading 'exit'."""
    return write_script(tmp_path / "stub_target.py", f"""
        import sys
        seen = []
        for line in sys.stdin:
            seen.append(line.rstrip("\\n"))
            if seen[-1] == "exit":
                break
        with open({str(target_log)!r}, "a") as f:
            f.write(" ".join(sys.argv[1:]) + "|" + ";".join(seen) + "\\n")
    """)


@pytest.fixture
def hanging_target(tmp_path) -> List[str]:
    return write_script(tmp_path / "hanging_target.py", """
        import time
        time.sleep(60)
    """)


@pytest.fixture
def make_params(stub_load, stub_target):
    def _make(**overrides) -> SweepParams:
        values = dict(
            program=stub_target,
            commands=["= 1", "exit"],
            load_program=stub_load,
            min_bytes=4096,
            max_bytes=4096,
            step_bytes=4096,
            step_factor=1.0,
            iterations=3,
        )
        values.update(overrides)
        return SweepParams(**values)
    return _make

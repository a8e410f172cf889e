from __future__ import annotations
import logging
import subprocess
import threading
from typing import IO, List, Optional, Sequence

from .constants import TERMINATE_GRACE_SECS
from .errors import BenchmarkError, ChannelIOError, ScenarioTimeout, SpawnError

LOGGER = logging.getLogger("scanbench.channel")


class Channel:
    """A child process driven line by line over its standard streams.

    Use it as a context manager. Leaving the block always drains stdout and
    stderr and reaps the child exactly once; leaving it through
    KeyboardInterrupt (or SystemExit) terminates the child first so an
    operator abort never leaves orphans behind.
    """

    def __init__(self, proc: subprocess.Popen, argv: Sequence[str], echo: bool = False):
        self._proc = proc
        self.argv = list(argv)
        self.echo = echo
        self._closed = False
        self._drain_errors: List[BaseException] = []

    @classmethod
    def spawn(cls, command: str, args: Sequence[str] = (), echo: bool = False) -> "Channel":
        argv = [command] + list(args)
        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except (OSError, ValueError) as e:
            raise SpawnError(argv, str(e)) from e
        LOGGER.debug("Spawned pid %d: %s", proc.pid, " ".join(argv))
        return cls(proc, argv, echo=echo)

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def returncode(self) -> Optional[int]:
        return self._proc.returncode

    @property
    def closed(self) -> bool:
        return self._closed

    def _echo(self, direction: str, text: str) -> None:
        print(f"[{self.pid}] {direction} {text}", flush=True)

    def write_line(self, text: str) -> None:
        if self.echo:
            self._echo("<-", text)
        try:
            self._proc.stdin.write(text + "\n")
            self._proc.stdin.flush()
        except (OSError, ValueError) as e:
            raise ChannelIOError(f"write to pid {self.pid} failed: {e}") from e

    def read_line(self, waiting_for: str = "a line") -> str:
        """Read one stdout line without its newline; EOF raises ChannelIOError."""
        try:
            line = self._proc.stdout.readline()
        except (OSError, ValueError) as e:
            raise ChannelIOError(f"read from pid {self.pid} failed: {e}") from e
        if not line:
            raise ChannelIOError(f"pid {self.pid} closed stdout before sending {waiting_for}")
        if line.endswith("\n"):
            line = line[:-1]
        if self.echo:
            self._echo("->", line)
        return line

    def read_until_line(self, sentinel: str) -> None:
        """Block until stdout yields a line exactly equal to ``sentinel``."""
        while self.read_line(repr(sentinel)) != sentinel:
            pass

    def _pump(self, stream: IO[str], direction: str) -> threading.Thread:
        def drain() -> None:
            try:
                for line in stream:
                    line = line.rstrip("\n")
                    if self.echo:
                        self._echo(direction, line)
                    elif direction == "!>":
                        LOGGER.debug("pid %d stderr: %s", self.pid, line)
            except (OSError, ValueError) as e:
                self._drain_errors.append(e)

        t = threading.Thread(target=drain, name=f"drain-{self.pid}-{direction}", daemon=True)
        t.start()
        return t

    def terminate(self, grace: float = TERMINATE_GRACE_SECS) -> None:
        """Best-effort SIGTERM, escalating to SIGKILL after ``grace`` seconds."""
        if self._proc.poll() is not None:
            return
        LOGGER.warning("Terminating pid %d", self.pid)
        self._proc.terminate()
        try:
            self._proc.wait(timeout=grace)
        except subprocess.TimeoutExpired:
            self._proc.kill()
            self._proc.wait()

    def close(self, timeout: Optional[float] = None) -> Optional[int]:
        """Close stdin, drain both output streams and reap the child.

        Waits at most ``timeout`` seconds for the child to exit; on expiry
        the child is killed and ScenarioTimeout is raised. Safe to call
        more than once.
        """
        if self._closed:
            return self._proc.returncode
        self._closed = True
        proc = self._proc
        try:
            proc.stdin.close()
        except OSError as e:
            # peer already gone; unflushed input is irrelevant now
            LOGGER.debug("pid %d: closing stdin: %s", self.pid, e)

        pumps = [self._pump(proc.stdout, "->"), self._pump(proc.stderr, "!>")]
        exited = False
        try:
            proc.wait(timeout=timeout)
            exited = True
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()
            raise ScenarioTimeout(f"pid {self.pid} still running after {timeout:.3f}s, killed")
        except OSError as e:
            raise ChannelIOError(f"reaping pid {self.pid} failed: {e}") from e
        except BaseException:
            # interrupted while waiting: the pumps only finish once the child is gone
            self.terminate()
            raise
        finally:
            for t in pumps:
                # a killed child may have left its pipes to grandchildren
                t.join(None if exited else TERMINATE_GRACE_SECS)
            if any(t.is_alive() for t in pumps):
                LOGGER.warning("pid %d: output still open after shutdown, not drained", self.pid)
            else:
                proc.stdout.close()
                proc.stderr.close()

        if self._drain_errors:
            raise ChannelIOError(f"draining pid {self.pid} failed: {self._drain_errors[0]}")
        LOGGER.debug("pid %d exited with %s", self.pid, proc.returncode)
        return proc.returncode

    def __enter__(self) -> "Channel":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
            return
        if not issubclass(exc_type, Exception):
            self.terminate()
        try:
            self.close()
        except BenchmarkError as e:
            # keep the original exception; the shutdown failure is still reported
            LOGGER.error("Shutdown of pid %d failed: %s", self.pid, e)

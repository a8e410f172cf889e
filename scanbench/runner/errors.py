from __future__ import annotations


class BenchmarkError(RuntimeError):
    pass


class SpawnError(BenchmarkError):
    """The executable could not be started."""

    def __init__(self, argv, reason: str):
        self.argv = list(argv)
        self.reason = reason
        super().__init__(f"cannot start {' '.join(self.argv)}: {reason}")


class ChannelIOError(BenchmarkError):
    """Pipe failure talking to a child, usually because it exited early."""


class ScenarioTimeout(BenchmarkError):
    pass


class ConfigError(BenchmarkError):
    """Sweep parameters that cannot produce a finite, valid run."""


class ProtocolWarning(UserWarning):
    pass

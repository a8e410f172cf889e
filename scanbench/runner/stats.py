from __future__ import annotations
import statistics
from typing import Sequence

from .types import Stats


def aggregate(durations: Sequence[float]) -> Stats:
    """Summarise iteration durations.

    The median is the lower median: for an even count the smaller of the
    two middle values is reported, never their average. The standard
    deviation is the population one, sqrt(sum((x - mean)^2) / n).
    """
    if not durations:
        raise ValueError("cannot aggregate an empty duration sample")
    return Stats(
        min=min(durations),
        max=max(durations),
        mean=statistics.fmean(durations),
        median=statistics.median_low(durations),
        stddev=statistics.pstdev(durations),
    )

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

E6 = 1_000_000.0


def epoch_seconds(clock: Callable[[], int] = time.time_ns) -> float:
    """Current wall-clock time in seconds, microsecond resolution.

    A clock that fails or reports a time before the epoch yields 0.0.
    """
    try:
        now_ns = clock()
    except (OSError, OverflowError, ValueError):
        return 0.0
    if now_ns < 0:
        return 0.0
    return (now_ns // 1_000) / E6


@dataclass(frozen=True)
class Sample:
    timestamp: float  # seconds since the epoch
    rtt: float  # milliseconds

    @classmethod
    def from_rtt(
        cls, rtt_ns: int, clock: Callable[[], int] = time.time_ns
    ) -> "Sample":
        return cls(timestamp=epoch_seconds(clock), rtt=rtt_ns / E6)

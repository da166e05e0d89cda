"""
Wall clock helpers.

All timestamps in the tracker are integer epoch milliseconds. Components take
a `Clock` so tests can drive time explicitly.
"""

import time
from typing import Callable

Clock = Callable[[], int]


def now_ms() -> int:
    """Current epoch time in milliseconds."""
    return int(time.time() * 1000)


class ManualClock:
    """
    Clock that only moves when told to.

    Usage:
        clock = ManualClock(start=0)
        lifecycle = SessionLifecycle(clock=clock)
        clock.advance(10_000)
    """

    def __init__(self, start: int = 0):
        self.current = start

    def __call__(self) -> int:
        return self.current

    def advance(self, ms: int) -> int:
        self.current += ms
        return self.current

    def set(self, ms: int) -> None:
        self.current = ms

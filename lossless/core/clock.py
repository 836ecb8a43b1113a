"""
Time sources for the auction house.

Deadlines are whole seconds. The house reads time through a clock object so
tests and simulations can advance it explicitly.
"""

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int:
        ...


class SystemClock:
    """Wall-clock time in integer seconds."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """
    Clock that only moves when told to.

    Attributes:
        current: Current time in seconds
    """

    def __init__(self, start: int = 1_700_000_000):
        self.current = start

    def now(self) -> int:
        return self.current

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("Time cannot move backwards")
        self.current += seconds
        return self.current

"""
Clocks supplying the current time to cooldown checks
"""

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int:
        ...


class SystemClock:
    """Wall-clock time in whole unix seconds"""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """Clock that only moves when told to"""

    def __init__(self, start: int = 0):
        self._now = start

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("Clock cannot go backwards")
        self._now += seconds
        return self._now

    def set(self, timestamp: int) -> None:
        if timestamp < self._now:
            raise ValueError("Clock cannot go backwards")
        self._now = timestamp

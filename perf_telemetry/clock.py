"""Clock abstraction.

Every tracker reads time through a ``Clock`` so tests can drive virtual
time deterministically instead of sleeping.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> float:
        """Current time as epoch seconds."""
        ...


class SystemClock:
    """Wall clock backed by ``time.time``."""

    def now(self) -> float:
        return time.time()


class ManualClock:
    """Clock that only moves when told to (tests, replays)."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self._now = float(start)

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            raise ValueError("cannot move a clock backwards")
        self._now += seconds
        return self._now

    def set(self, timestamp: float) -> None:
        self._now = float(timestamp)

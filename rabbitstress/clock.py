"""Time sources for runs.

A run needs two readings: wall-clock timestamps for the snapshot, and a
monotonic counter for elapsed time (which drives the extended-duration stop
condition). ManualClock replaces both with values the caller controls.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime, timedelta


class Clock:
    """Real time: ``datetime.now(UTC)`` and ``time.monotonic()``."""

    def now(self) -> datetime:
        return datetime.now(UTC)

    def monotonic(self) -> float:
        return time.monotonic()


class ManualClock(Clock):
    """Clock that only moves when told to.

    ``now()`` is derived from the monotonic reading so that snapshot
    timestamps and durations always agree.

    Args:
        start: Wall-clock time at monotonic zero. Defaults to 2024-01-01 UTC.
        tick_s: Seconds added after every ``monotonic()`` reading. Lets a
            duration-bounded run observe time passing without sleeping.
    """

    def __init__(self, start: datetime | None = None, tick_s: float = 0.0):
        if tick_s < 0:
            raise ValueError(f"tick_s must be >= 0, got {tick_s}")
        self._start = start or datetime(2024, 1, 1, tzinfo=UTC)
        self._elapsed = 0.0
        self._tick_s = tick_s

    def now(self) -> datetime:
        return self._start + timedelta(seconds=self._elapsed)

    def monotonic(self) -> float:
        reading = self._elapsed
        self._elapsed += self._tick_s
        return reading

    def advance(self, seconds: float) -> None:
        """Move the clock forward by ``seconds``."""
        if seconds < 0:
            raise ValueError(f"Cannot move the clock backwards ({seconds}s)")
        self._elapsed += seconds

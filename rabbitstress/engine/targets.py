"""Run targets and the stop conditions derived from them.

Count-bounded runs check the counter before each batch and stop once it
strictly exceeds the target. The check happens before the batch that would
cross the target, so the final batch pushes the count past it: a round-robin
run overshoots by up to the plan length, a random or single-binding run ends
at exactly ``target + 1``.

Duration-bounded runs check elapsed time before every publish, so a pass in
flight when the window closes is cut short.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Any

from rabbitstress.clock import Clock
from rabbitstress.errors import ConfigurationError

DEFAULT_COUNT_TARGET = 1000
DEFAULT_DURATION_S = 3600.0


def is_valid_count(value: Any) -> bool:
    """True for finite, positive ints and floats. Booleans are not counts."""
    return (
        isinstance(value, numbers.Real)
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value > 0
    )


def is_valid_duration(value: Any) -> bool:
    """True for finite, non-negative ints and floats. Booleans are not durations."""
    return (
        isinstance(value, numbers.Real)
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value >= 0
    )


@dataclass(frozen=True)
class CountTarget:
    """Stop once more than ``count`` messages have been sent."""

    count: float = DEFAULT_COUNT_TARGET

    def __post_init__(self):
        if not is_valid_count(self.count):
            raise ConfigurationError(f"Count target must be a positive number, got {self.count!r}")


@dataclass(frozen=True)
class DurationTarget:
    """Stop once ``seconds`` of wall-clock time have elapsed."""

    seconds: float = DEFAULT_DURATION_S

    def __post_init__(self):
        if not is_valid_duration(self.seconds):
            raise ConfigurationError(
                f"Duration target must be a non-negative number of seconds, got {self.seconds!r}"
            )


RunTarget = CountTarget | DurationTarget


class StopCondition:
    """Decides when a run is over."""

    def before_batch(self, sent: int) -> bool:
        """True if the run must stop before starting the next batch."""
        raise NotImplementedError

    def before_publish(self, sent: int) -> bool:
        """True if the run must stop before the next publish inside a batch."""
        return False


class CountStop(StopCondition):
    def __init__(self, target: CountTarget):
        self._count = target.count

    def before_batch(self, sent: int) -> bool:
        return sent > self._count


class DurationStop(StopCondition):
    def __init__(self, target: DurationTarget, clock: Clock, started_at: float):
        self._seconds = target.seconds
        self._clock = clock
        self._started_at = started_at

    def _expired(self) -> bool:
        return self._clock.monotonic() - self._started_at >= self._seconds

    def before_batch(self, sent: int) -> bool:
        return self._expired()

    def before_publish(self, sent: int) -> bool:
        return self._expired()

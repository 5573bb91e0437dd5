"""Distribution strategies and the entry-selection policies behind them.

A selection policy is a pure algorithm: given the plan length, it yields
batches of plan indices forever. The engine publishes each batch in order
and consults the run's stop condition between (and for duration-bounded
runs, within) batches.

- RoundRobinSelection: every batch is a full pass ``0..n-1``
- RandomSelection: every batch is one uniformly random index
- SingleBindingSelection: one index drawn up front, repeated forever
"""

from __future__ import annotations

import random
from collections.abc import Iterator, Sequence
from enum import Enum
from typing import Protocol, runtime_checkable

from rabbitstress.errors import ConfigurationError


class Strategy(Enum):
    """How plan entries are chosen during a run."""

    ROUND_ROBIN = "round-robin"
    RANDOM = "random"
    SINGLE_BINDING = "single-binding"
    EXTENDED_DURATION = "extended-duration"

    @property
    def duration_bounded(self) -> bool:
        """True if the run stops on elapsed time rather than message count."""
        return self is Strategy.EXTENDED_DURATION

    @classmethod
    def parse(cls, value: Strategy | str) -> Strategy:
        if isinstance(value, Strategy):
            return value
        try:
            return cls(str(value).strip().lower().replace("_", "-"))
        except ValueError:
            choices = ", ".join(strategy.value for strategy in cls)
            raise ConfigurationError(
                f"Unknown strategy {value!r} (expected one of: {choices})"
            ) from None


@runtime_checkable
class SelectionPolicy(Protocol):
    """Yields batches of plan indices to publish, in order, forever."""

    def batches(self, plan_length: int) -> Iterator[Sequence[int]]:
        ...


class RoundRobinSelection:
    """Full passes over the plan in declaration order."""

    def batches(self, plan_length: int) -> Iterator[Sequence[int]]:
        full_pass = range(plan_length)
        while True:
            yield full_pass


class RandomSelection:
    """One uniformly random entry per batch.

    Args:
        rng: Random source. Pass a seeded ``random.Random`` for reproducible runs.
    """

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    def batches(self, plan_length: int) -> Iterator[Sequence[int]]:
        while True:
            yield (self._rng.randrange(plan_length),)


class SingleBindingSelection:
    """One entry, drawn at random when iteration starts, repeated forever.

    Attributes:
        chosen_index: The drawn index, or None before the first batch.
    """

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()
        self.chosen_index: int | None = None

    def batches(self, plan_length: int) -> Iterator[Sequence[int]]:
        self.chosen_index = self._rng.randrange(plan_length)
        batch = (self.chosen_index,)
        while True:
            yield batch


def selection_for(strategy: Strategy, rng: random.Random | None = None) -> SelectionPolicy:
    """Return a fresh selection policy for ``strategy``."""
    if strategy in (Strategy.ROUND_ROBIN, Strategy.EXTENDED_DURATION):
        return RoundRobinSelection()
    if strategy is Strategy.RANDOM:
        return RandomSelection(rng)
    if strategy is Strategy.SINGLE_BINDING:
        return SingleBindingSelection(rng)
    raise ConfigurationError(f"No selection policy for strategy {strategy!r}")

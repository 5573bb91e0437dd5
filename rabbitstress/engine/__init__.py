"""Distribution engine, strategies and run targets."""

from rabbitstress.engine.engine import DistributionEngine, EngineState, MessageCounter, RunResult
from rabbitstress.engine.strategies import (
    RandomSelection,
    RoundRobinSelection,
    SelectionPolicy,
    SingleBindingSelection,
    Strategy,
    selection_for,
)
from rabbitstress.engine.targets import (
    DEFAULT_COUNT_TARGET,
    DEFAULT_DURATION_S,
    CountTarget,
    DurationTarget,
    RunTarget,
)

__all__ = [
    "DEFAULT_COUNT_TARGET",
    "DEFAULT_DURATION_S",
    "CountTarget",
    "DistributionEngine",
    "DurationTarget",
    "EngineState",
    "MessageCounter",
    "RandomSelection",
    "RoundRobinSelection",
    "RunResult",
    "RunTarget",
    "SelectionPolicy",
    "SingleBindingSelection",
    "Strategy",
    "selection_for",
]

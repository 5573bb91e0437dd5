"""The distribution engine: executes one strategy over a dispatch plan.

The engine owns the message counter and a small state machine::

    IDLE -> RUNNING -> COMPLETED
              |
              +-> IDLE   (publish failure aborts the run)

A new run may start from IDLE or COMPLETED. Only one run may be in flight at
a time; re-entering while RUNNING raises RunInProgressError.

Publishing is strictly sequential: each publish returns before the next one
starts, and the counter moves exactly once per successful publish.
"""

from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from rabbitstress.broker.publisher import BrokerPublisher
from rabbitstress.clock import Clock
from rabbitstress.engine.strategies import Strategy, selection_for
from rabbitstress.engine.targets import (
    CountStop,
    CountTarget,
    DurationStop,
    DurationTarget,
    RunTarget,
    StopCondition,
)
from rabbitstress.errors import ConfigurationError, PublishError, RabbitStressError, RunInProgressError
from rabbitstress.topology.compiler import DispatchPlan

logger = logging.getLogger(__name__)


class EngineState(Enum):
    """Lifecycle of the distribution engine."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


class MessageCounter:
    """Messages successfully published in the current run. Never decremented."""

    def __init__(self) -> None:
        self._value = 0

    @property
    def value(self) -> int:
        return self._value

    def increment(self) -> None:
        self._value += 1

    def reset(self) -> None:
        self._value = 0

    def __int__(self) -> int:
        return self._value

    def __repr__(self) -> str:
        return f"MessageCounter({self._value})"


@dataclass(frozen=True)
class RunResult:
    """Outcome of a completed run.

    Attributes:
        strategy: Strategy that was executed.
        total_messages_sent: Counter value when the run stopped.
        start: Wall-clock start (UTC).
        end: Wall-clock end (UTC).
        elapsed_s: Monotonic seconds between start and end.
        selected_index: Plan index used by a single-binding run, else None.
    """

    strategy: Strategy
    total_messages_sent: int
    start: datetime
    end: datetime
    elapsed_s: float
    selected_index: int | None = None


class DistributionEngine:
    """Publishes dispatch-plan entries until a run's stop condition is met.

    Args:
        publisher: Broker publisher. Must already be connected when ``run``
            is called.
        clock: Time source. Defaults to real time.
        rng: Random source for the random and single-binding strategies.
    """

    def __init__(
        self,
        publisher: BrokerPublisher,
        clock: Clock | None = None,
        rng: random.Random | None = None,
    ):
        self._publisher = publisher
        self._clock = clock or Clock()
        self._rng = rng or random.Random()
        self._counter = MessageCounter()
        self._state = EngineState.IDLE
        self._state_lock = threading.Lock()

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def counter(self) -> MessageCounter:
        return self._counter

    @property
    def publisher(self) -> BrokerPublisher:
        return self._publisher

    def run(
        self,
        plan: DispatchPlan | None,
        target: RunTarget,
        strategy: Strategy | str,
    ) -> RunResult | None:
        """Execute ``strategy`` over ``plan`` until ``target`` is reached.

        Args:
            plan: Compiled plan, or None if nothing has been prepared.
            target: CountTarget for count-bounded strategies, DurationTarget
                for extended-duration.
            strategy: Strategy or its string name.

        Returns:
            The run result, or None when ``plan`` is None (not ready).

        Raises:
            ConfigurationError: Empty plan, unknown strategy, or a target that
                does not match the strategy.
            RunInProgressError: Another run is active on this engine.
            PublishError: A publish failed; the run is aborted and the counter
                keeps the partial count.
        """
        if plan is None:
            logger.info("Run skipped: no dispatch plan prepared")
            return None

        strategy = Strategy.parse(strategy)
        self._check_runnable(plan, target, strategy)

        with self._state_lock:
            if self._state is EngineState.RUNNING:
                raise RunInProgressError("A run is already in progress on this engine")
            self._state = EngineState.RUNNING

        try:
            result = self._execute(plan, target, strategy)
        except BaseException:
            self._state = EngineState.IDLE
            raise

        self._state = EngineState.COMPLETED
        return result

    def _check_runnable(self, plan: DispatchPlan, target: RunTarget, strategy: Strategy) -> None:
        if not plan:
            raise ConfigurationError("Dispatch plan is empty: there are no bindings to publish to")
        if strategy.duration_bounded and not isinstance(target, DurationTarget):
            raise ConfigurationError(f"Strategy {strategy.value} needs a DurationTarget, got {target!r}")
        if not strategy.duration_bounded and not isinstance(target, CountTarget):
            raise ConfigurationError(f"Strategy {strategy.value} needs a CountTarget, got {target!r}")

    def _execute(self, plan: DispatchPlan, target: RunTarget, strategy: Strategy) -> RunResult:
        default_payload = {"type": strategy.value}
        bodies = [
            self._publisher.encode(entry.payload if entry.payload is not None else default_payload)
            for entry in plan
        ]
        selection = selection_for(strategy, self._rng)

        self._counter.reset()
        start = self._clock.now()
        started_at = self._clock.monotonic()
        stop: StopCondition
        if isinstance(target, DurationTarget):
            stop = DurationStop(target, self._clock, started_at)
        else:
            stop = CountStop(target)

        logger.info(
            "Starting %s run: %d plan entries, target=%r",
            strategy.value, len(plan), target,
            extra={"strategy": strategy.value, "plan_entries": len(plan)},
        )

        self._publish_until(plan, bodies, selection.batches(len(plan)), stop)

        end = self._clock.now()
        elapsed_s = self._clock.monotonic() - started_at
        logger.info(
            "Finished %s run: %d messages in %.3fs",
            strategy.value, self._counter.value, elapsed_s,
            extra={
                "strategy": strategy.value,
                "messages_sent": self._counter.value,
                "elapsed_s": elapsed_s,
            },
        )
        return RunResult(
            strategy=strategy,
            total_messages_sent=self._counter.value,
            start=start,
            end=end,
            elapsed_s=elapsed_s,
            selected_index=getattr(selection, "chosen_index", None),
        )

    def _publish_until(self, plan, bodies, batches, stop: StopCondition) -> None:
        publish = self._publisher.publish
        for batch in batches:
            if stop.before_batch(self._counter.value):
                return
            for index in batch:
                if stop.before_publish(self._counter.value):
                    return
                entry = plan[index]
                try:
                    publish(entry.exchange_name, entry.routing_key, bodies[index])
                except RabbitStressError:
                    logger.error(
                        "Run aborted after %d messages: publish to %s/%s failed",
                        self._counter.value, entry.exchange_name, entry.routing_key,
                    )
                    raise
                except Exception as exc:
                    logger.error(
                        "Run aborted after %d messages: publish to %s/%s failed: %s",
                        self._counter.value, entry.exchange_name, entry.routing_key, exc,
                    )
                    raise PublishError(
                        f"Publish to {entry.exchange_name!r} with key {entry.routing_key!r} failed: {exc}"
                    ) from exc
                self._counter.increment()

"""Unit tests for the distribution engine."""

import json
import random
from datetime import datetime

import pytest

from rabbitstress.broker.dry_run import DryRunPublisher
from rabbitstress.clock import ManualClock
from rabbitstress.engine import (
    CountTarget,
    DistributionEngine,
    DurationTarget,
    EngineState,
    Strategy,
)
from rabbitstress.errors import ConfigurationError, PublishError, RunInProgressError
from rabbitstress.topology import Binding, DispatchPlan, Exchange, compile_plan


class FailingPublisher(DryRunPublisher):
    """Raises on the publish after ``fail_after`` successful ones."""

    def __init__(self, fail_after: int, error: Exception | None = None):
        super().__init__(keep_messages=True)
        self._fail_after = fail_after
        self._error = error or PublishError("channel closed by broker")

    def publish(self, exchange_name, routing_key, body):
        if self.total_published >= self._fail_after:
            raise self._error
        super().publish(exchange_name, routing_key, body)


def _plan(*keys: str, message=None) -> DispatchPlan:
    return compile_plan(
        [Exchange(name="x")],
        [Binding(source="x", routing_key=key) for key in keys],
        message=message,
    )


def _engine(publisher=None, clock=None, seed=7) -> DistributionEngine:
    publisher = publisher or DryRunPublisher(keep_messages=True)
    publisher.connect("amqp://test")
    return DistributionEngine(publisher, clock=clock or ManualClock(), rng=random.Random(seed))


# -------------------------------------------------------
# Readiness and state
# -------------------------------------------------------

class TestEngineState:
    def test_starts_idle(self):
        assert _engine().state is EngineState.IDLE

    def test_no_plan_is_a_noop(self):
        engine = _engine()

        assert engine.run(None, CountTarget(5), Strategy.ROUND_ROBIN) is None
        assert engine.state is EngineState.IDLE
        assert engine.publisher.total_published == 0

    def test_completed_after_run(self):
        engine = _engine()
        engine.run(_plan("k"), CountTarget(3), Strategy.ROUND_ROBIN)
        assert engine.state is EngineState.COMPLETED

    def test_can_run_again_after_completion(self):
        engine = _engine()
        engine.run(_plan("k"), CountTarget(3), Strategy.ROUND_ROBIN)

        result = engine.run(_plan("k"), CountTarget(3), Strategy.RANDOM)

        assert result.total_messages_sent == 4
        assert engine.state is EngineState.COMPLETED

    def test_empty_plan_rejected(self):
        with pytest.raises(ConfigurationError, match="empty"):
            _engine().run(DispatchPlan(), CountTarget(5), Strategy.ROUND_ROBIN)

    def test_count_strategy_needs_count_target(self):
        with pytest.raises(ConfigurationError):
            _engine().run(_plan("k"), DurationTarget(1.0), Strategy.ROUND_ROBIN)

    def test_duration_strategy_needs_duration_target(self):
        with pytest.raises(ConfigurationError):
            _engine().run(_plan("k"), CountTarget(5), Strategy.EXTENDED_DURATION)

    def test_accepts_strategy_name(self):
        result = _engine().run(_plan("k"), CountTarget(2), "single-binding")
        assert result.strategy is Strategy.SINGLE_BINDING

    def test_reentrant_run_rejected(self):
        class ReentrantPublisher(DryRunPublisher):
            engine = None

            def publish(self, exchange_name, routing_key, body):
                self.engine.run(_plan("k"), CountTarget(1), Strategy.RANDOM)

        publisher = ReentrantPublisher()
        engine = _engine(publisher)
        publisher.engine = engine

        with pytest.raises(RunInProgressError):
            engine.run(_plan("k"), CountTarget(1), Strategy.RANDOM)
        assert engine.state is EngineState.IDLE


# -------------------------------------------------------
# Count-bounded strategies
# -------------------------------------------------------

class TestRoundRobin:
    def test_single_entry_overshoots_by_one(self):
        engine = _engine()

        result = engine.run(_plan("k"), CountTarget(5), Strategy.ROUND_ROBIN)

        assert result.total_messages_sent == 6
        assert engine.publisher.routing_keys() == ["k"] * 6

    def test_full_passes_in_plan_order(self):
        engine = _engine()

        engine.run(_plan("a", "b", "c"), CountTarget(5), Strategy.ROUND_ROBIN)

        assert engine.publisher.routing_keys() == ["a", "b", "c", "a", "b", "c"]

    @pytest.mark.parametrize("target", [1, 2, 3, 4, 7, 10, 100])
    def test_stops_past_target_within_one_pass(self, target):
        plan = _plan("a", "b", "c")

        result = _engine().run(plan, CountTarget(target), Strategy.ROUND_ROBIN)

        assert target < result.total_messages_sent <= target + len(plan)
        assert result.total_messages_sent % len(plan) == 0

    def test_counter_matches_publishes(self):
        engine = _engine()
        result = engine.run(_plan("a", "b"), CountTarget(9), Strategy.ROUND_ROBIN)
        assert result.total_messages_sent == engine.publisher.total_published == engine.counter.value


class TestRandom:
    @pytest.mark.parametrize("target", [1, 5, 50])
    def test_ends_at_target_plus_one(self, target):
        result = _engine().run(_plan("a", "b", "c"), CountTarget(target), Strategy.RANDOM)
        assert result.total_messages_sent == target + 1

    def test_only_plan_keys_published(self):
        engine = _engine()
        engine.run(_plan("a", "b", "c"), CountTarget(200), Strategy.RANDOM)

        keys = engine.publisher.routing_keys()

        assert set(keys) <= {"a", "b", "c"}
        assert len(set(keys)) == 3

    def test_seeded_runs_are_reproducible(self):
        first = _engine(seed=99)
        second = _engine(seed=99)

        first.run(_plan("a", "b", "c"), CountTarget(30), Strategy.RANDOM)
        second.run(_plan("a", "b", "c"), CountTarget(30), Strategy.RANDOM)

        assert first.publisher.routing_keys() == second.publisher.routing_keys()


class TestSingleBinding:
    def test_every_message_targets_one_entry(self):
        engine = _engine()

        result = engine.run(_plan("a", "b", "c", "d"), CountTarget(20), Strategy.SINGLE_BINDING)

        keys = engine.publisher.routing_keys()
        assert result.total_messages_sent == 21
        assert len(set(keys)) == 1
        assert keys[0] == "abcd"[result.selected_index]

    def test_selected_index_only_for_single_binding(self):
        result = _engine().run(_plan("a"), CountTarget(2), Strategy.ROUND_ROBIN)
        assert result.selected_index is None


# -------------------------------------------------------
# Duration-bounded strategy
# -------------------------------------------------------

class TestExtendedDuration:
    def test_zero_duration_publishes_nothing(self):
        engine = _engine()

        result = engine.run(_plan("a", "b"), DurationTarget(0), Strategy.EXTENDED_DURATION)

        assert result.total_messages_sent == 0
        assert result.elapsed_s == 0
        assert engine.state is EngineState.COMPLETED

    def test_passes_in_order_until_window_closes(self):
        # Every clock reading advances one second: the start reading is 0,
        # the first pass check 1, then one reading per publish.
        engine = _engine(clock=ManualClock(tick_s=1.0))

        result = engine.run(_plan("a", "b", "c"), DurationTarget(5), Strategy.EXTENDED_DURATION)

        assert result.total_messages_sent == 3
        assert engine.publisher.routing_keys() == ["a", "b", "c"]

    def test_pass_cut_short_mid_way(self):
        engine = _engine(clock=ManualClock(tick_s=1.0))

        result = engine.run(_plan("a", "b", "c"), DurationTarget(7), Strategy.EXTENDED_DURATION)

        assert result.total_messages_sent == 4
        assert engine.publisher.routing_keys() == ["a", "b", "c", "a"]

    def test_elapsed_reported(self):
        result = _engine(clock=ManualClock(tick_s=0.5)).run(
            _plan("a"), DurationTarget(2), Strategy.EXTENDED_DURATION
        )
        assert result.elapsed_s >= 2


# -------------------------------------------------------
# Payloads and failures
# -------------------------------------------------------

class TestPublishing:
    def test_default_payload_names_strategy(self):
        engine = _engine()
        engine.run(_plan("k"), CountTarget(1), Strategy.RANDOM)

        body = json.loads(engine.publisher.messages[0].body)

        assert body == {"type": "random"}

    def test_message_template_used_as_payload(self):
        engine = _engine()
        engine.run(_plan("k", message={"type": "load", "seq": 1}), CountTarget(1), Strategy.RANDOM)

        assert json.loads(engine.publisher.messages[0].body) == {"type": "load", "seq": 1}

    def test_counter_reset_at_run_start(self):
        engine = _engine()
        engine.run(_plan("k"), CountTarget(3), Strategy.RANDOM)

        result = engine.run(_plan("k"), CountTarget(3), Strategy.RANDOM)

        assert result.total_messages_sent == 4

    def test_publish_failure_aborts_with_partial_count(self):
        engine = _engine(FailingPublisher(fail_after=4))

        with pytest.raises(PublishError):
            engine.run(_plan("a", "b"), CountTarget(100), Strategy.ROUND_ROBIN)

        assert engine.counter.value == 4
        assert engine.state is EngineState.IDLE

    def test_foreign_exception_wrapped_as_publish_error(self):
        engine = _engine(FailingPublisher(fail_after=1, error=OSError("socket reset")))

        with pytest.raises(PublishError) as excinfo:
            engine.run(_plan("a"), CountTarget(10), Strategy.RANDOM)

        assert isinstance(excinfo.value.__cause__, OSError)
        assert engine.counter.value == 1

    def test_unencodable_template_rejected_before_publishing(self):
        engine = _engine()

        with pytest.raises(ConfigurationError, match="JSON"):
            engine.run(_plan("k", message={"when": datetime(2024, 1, 1)}), CountTarget(3), Strategy.RANDOM)

        assert engine.publisher.total_published == 0
        assert engine.state is EngineState.IDLE

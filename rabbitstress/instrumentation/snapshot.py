"""Snapshots of completed runs.

A Snapshot freezes the session configuration a run used together with its
counters and timestamps. Snapshots are appended to a SnapshotHistory and are
never modified or removed afterwards; reconfiguring a session keeps them.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from rabbitstress.engine.engine import RunResult
from rabbitstress.engine.strategies import Strategy
from rabbitstress.topology.compiler import DispatchPlan
from rabbitstress.topology.models import Binding, Exchange

if TYPE_CHECKING:
    from rabbitstress.config import SessionConfig

logger = logging.getLogger(__name__)


def success_rate(total_messages_sent: int, target: float) -> int:
    """``floor(sent / target * 100)``. Not clamped: overshoot reports above 100."""
    return math.floor(total_messages_sent / target * 100)


@dataclass(frozen=True)
class Snapshot:
    """Immutable record of one completed run.

    Attributes:
        broker_address: Broker URL the run published to.
        exchanges: Exchanges as configured at snapshot time.
        bindings: Bindings as configured at snapshot time.
        dispatch_plan: The compiled plan the run drew from.
        strategy: Strategy executed.
        total_messages_sent: Messages published.
        target: Count target in force when the run happened.
        start_time: Run start (UTC).
        end_time: Run end (UTC).
        duration_seconds: Elapsed run time in seconds.
        success_rate_percent: ``floor(total / target * 100)``, unclamped.
        duration_limit_s: Time window of a duration-bounded run, else None.
    """

    broker_address: str
    exchanges: tuple[Exchange, ...]
    bindings: tuple[Binding, ...]
    dispatch_plan: DispatchPlan
    strategy: Strategy
    total_messages_sent: int
    target: float
    start_time: datetime
    end_time: datetime
    duration_seconds: float
    success_rate_percent: int
    duration_limit_s: float | None = None

    @property
    def messages_per_second(self) -> float:
        if self.duration_seconds <= 0:
            return 0.0
        return self.total_messages_sent / self.duration_seconds

    def __str__(self) -> str:
        lines = [
            f"Snapshot ({self.strategy.value})",
            f"  Broker: {self.broker_address}",
            f"  Plan: {len(self.dispatch_plan)} entries over {len(self.exchanges)} exchanges",
            f"  Messages sent: {self.total_messages_sent} / target {self.target}",
            f"  Success rate: {self.success_rate_percent}%",
            f"  Duration: {self.duration_seconds:.3f}s ({self.messages_per_second:.1f} msg/s)",
        ]
        if self.duration_limit_s is not None:
            lines.append(f"  Duration limit: {self.duration_limit_s}s")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "broker_address": self.broker_address,
            "exchanges": [exchange.to_dict() for exchange in self.exchanges],
            "bindings": [binding.to_dict() for binding in self.bindings],
            "dispatch_plan": self.dispatch_plan.to_list(),
            "strategy": self.strategy.value,
            "total_messages_sent": self.total_messages_sent,
            "target": self.target,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration_seconds": self.duration_seconds,
            "success_rate_percent": self.success_rate_percent,
            "duration_limit_s": self.duration_limit_s,
            "messages_per_second": self.messages_per_second,
        }


class SnapshotHistory:
    """Append-only, ordered collection of snapshots.

    Iteration, indexing and ``view()`` never expose a mutable container.
    """

    def __init__(self) -> None:
        self._snapshots: list[Snapshot] = []

    def append(self, snapshot: Snapshot) -> None:
        self._snapshots.append(snapshot)

    def view(self) -> tuple[Snapshot, ...]:
        return tuple(self._snapshots)

    @property
    def latest(self) -> Snapshot | None:
        return self._snapshots[-1] if self._snapshots else None

    def __len__(self) -> int:
        return len(self._snapshots)

    def __iter__(self) -> Iterator[Snapshot]:
        return iter(tuple(self._snapshots))

    def __getitem__(self, index: int) -> Snapshot:
        return self._snapshots[index]

    def __bool__(self) -> bool:
        return len(self._snapshots) > 0


class SnapshotRecorder:
    """Builds snapshots from a session configuration and a run result."""

    def __init__(self, history: SnapshotHistory | None = None):
        self.history = history if history is not None else SnapshotHistory()

    def record(
        self,
        config: SessionConfig,
        plan: DispatchPlan,
        result: RunResult,
    ) -> Snapshot:
        """Create a snapshot and append it to the history.

        Args:
            config: Session configuration in force for the run.
            plan: Plan the run executed.
            result: Counters and timestamps from the engine.

        Returns:
            The recorded snapshot.
        """
        snapshot = Snapshot(
            broker_address=config.address,
            exchanges=tuple(config.exchanges),
            bindings=tuple(config.bindings),
            dispatch_plan=plan,
            strategy=result.strategy,
            total_messages_sent=result.total_messages_sent,
            target=config.target,
            start_time=result.start,
            end_time=result.end,
            duration_seconds=result.elapsed_s,
            success_rate_percent=success_rate(result.total_messages_sent, config.target),
            duration_limit_s=config.duration_s if result.strategy.duration_bounded else None,
        )
        self.history.append(snapshot)
        logger.info(
            "Snapshot taken: strategy=%s sent=%d target=%s success=%d%%",
            snapshot.strategy.value,
            snapshot.total_messages_sent,
            snapshot.target,
            snapshot.success_rate_percent,
            extra={
                "broker": snapshot.broker_address,
                "strategy": snapshot.strategy.value,
                "messages_sent": snapshot.total_messages_sent,
                "target": snapshot.target,
                "success_rate_percent": snapshot.success_rate_percent,
            },
        )
        return snapshot

"""Compile exchanges and bindings into a dispatch plan.

The plan is the ordered list of publish operations a run draws from: one
entry per binding, in binding declaration order. Round-robin and
extended-duration runs walk it front to back, so the order must be stable
across runs.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from rabbitstress.errors import ConfigurationError
from rabbitstress.topology.models import Binding, Exchange, ExchangeKind, freeze, index_exchanges, thaw

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchEntry:
    """A single publish operation derived from one binding.

    Attributes:
        exchange_name: Exchange to publish to.
        exchange_kind: Declared type of that exchange.
        routing_key: Routing key taken from the binding.
        payload: Read-only message template, or None to let the run pick a
            default.
    """

    exchange_name: str
    exchange_kind: ExchangeKind
    routing_key: str
    payload: Mapping[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "exchange_name": self.exchange_name,
            "exchange_type": self.exchange_kind.value,
            "routing_key": self.routing_key,
            "payload": thaw(self.payload) if self.payload is not None else None,
        }


@dataclass(frozen=True)
class DispatchPlan:
    """Ordered, immutable sequence of dispatch entries."""

    entries: tuple[DispatchEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[DispatchEntry]:
        return iter(self.entries)

    def __getitem__(self, index: int) -> DispatchEntry:
        return self.entries[index]

    def __bool__(self) -> bool:
        return bool(self.entries)

    def routing_keys(self) -> list[str]:
        return [entry.routing_key for entry in self.entries]

    def to_list(self) -> list[dict[str, Any]]:
        return [entry.to_dict() for entry in self.entries]


def compile_plan(
    exchanges: Mapping[str, Exchange] | Iterable[Exchange],
    bindings: Iterable[Binding],
    message: Mapping[str, Any] | None = None,
) -> DispatchPlan:
    """Build a dispatch plan from a topology.

    Args:
        exchanges: Exchanges, either name-indexed or as a sequence.
        bindings: Bindings in declaration order.
        message: Template carried as the payload of every entry. Stored as a
            frozen copy: neither the caller nor anyone holding the plan (or a
            snapshot of it) can change what later runs publish.

    Returns:
        A plan with exactly one entry per binding, in binding order.

    Raises:
        ConfigurationError: If any binding names a source exchange that is
            not in ``exchanges``. The whole compile is rejected.
    """
    by_name = dict(exchanges) if isinstance(exchanges, Mapping) else index_exchanges(exchanges)
    bindings = list(bindings)

    missing = [binding.source for binding in bindings if binding.source not in by_name]
    if missing:
        unique = ", ".join(sorted(set(missing)))
        logger.error("Bindings reference unknown exchanges: %s", unique)
        raise ConfigurationError(f"Bindings reference unknown source exchanges: {unique}")

    payload = freeze(message) if message is not None else None
    entries = tuple(
        DispatchEntry(
            exchange_name=binding.source,
            exchange_kind=by_name[binding.source].kind,
            routing_key=binding.routing_key,
            payload=payload,
        )
        for binding in bindings
    )

    logger.debug(
        "Compiled dispatch plan: %d entries from %d exchanges", len(entries), len(by_name)
    )
    return DispatchPlan(entries=entries)

"""Publisher that never touches the network.

DryRunPublisher satisfies the publisher contract without a broker. Use it to
exercise a topology and strategy before pointing at a real RabbitMQ, or as a
baseline for the raw cost of the dispatch loop.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass

from rabbitstress.broker.publisher import BrokerPublisher
from rabbitstress.errors import PublishError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublishedMessage:
    """One message accepted by a DryRunPublisher."""

    exchange_name: str
    routing_key: str
    body: bytes


class DryRunPublisher(BrokerPublisher):
    """Counts publishes per (exchange, routing key).

    Args:
        keep_messages: Also retain every published message in order. Off by
            default; an extended-duration run can publish millions.
    """

    def __init__(self, keep_messages: bool = False):
        self._keep_messages = keep_messages
        self._open = False
        self.address: str | None = None
        self.connect_count: int = 0
        self.close_count: int = 0
        self.counts: Counter[tuple[str, str]] = Counter()
        self.messages: list[PublishedMessage] = []

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def total_published(self) -> int:
        return sum(self.counts.values())

    def connect(self, address: str) -> None:
        self.address = address
        self._open = True
        self.connect_count += 1
        logger.info("Dry-run publisher connected (address=%s)", address, extra={"broker": address})

    def publish(self, exchange_name: str, routing_key: str, body: bytes) -> None:
        if not self._open:
            raise PublishError("Cannot publish: dry-run publisher is not connected")
        self.counts[(exchange_name, routing_key)] += 1
        if self._keep_messages:
            self.messages.append(PublishedMessage(exchange_name, routing_key, body))

    def close(self) -> None:
        if self._open:
            self.close_count += 1
            logger.info("Dry-run publisher closed")
        self._open = False

    def routing_keys(self) -> list[str]:
        """Routing keys of retained messages, in publish order."""
        return [message.routing_key for message in self.messages]

    def reset(self) -> None:
        """Forget everything published so far."""
        self.counts.clear()
        self.messages.clear()

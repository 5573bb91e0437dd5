"""Contract between the orchestration core and a message broker.

The core only ever connects, publishes raw bytes to an exchange with a
routing key, and closes. Implementations translate their client library's
failures into the rabbitstress error taxonomy:

- connect: BrokerConnectionError, ChannelError
- publish: PublishError
- close: CloseError
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from rabbitstress.errors import ConfigurationError
from rabbitstress.topology.models import thaw


class BrokerPublisher(ABC):
    """Owns one connection and one channel to a broker.

    Publishing is fire-and-forget on an open channel; implementations must
    not wait for broker acknowledgements.
    """

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """True while a connection and channel are available for publishing."""

    @abstractmethod
    def connect(self, address: str) -> None:
        """Open a connection and a channel to ``address``.

        Raises:
            BrokerConnectionError: If the broker cannot be reached.
            ChannelError: If the channel cannot be opened.
        """

    @abstractmethod
    def publish(self, exchange_name: str, routing_key: str, body: bytes) -> None:
        """Publish one message.

        Raises:
            PublishError: If the message could not be handed to the broker.
        """

    @abstractmethod
    def close(self) -> None:
        """Close the channel, then the connection. No-op when nothing is open.

        Raises:
            CloseError: If either close fails.
        """

    def encode(self, payload: Mapping[str, Any]) -> bytes:
        """Serialize a message template to the bytes put on the wire.

        Raises:
            ConfigurationError: If the template cannot be serialized.
        """
        try:
            return json.dumps(thaw(payload)).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Message template cannot be encoded as JSON: {exc}") from exc

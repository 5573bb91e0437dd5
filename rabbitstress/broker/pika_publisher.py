"""RabbitMQ publisher backed by pika's BlockingConnection."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import pika
from pika.exceptions import AMQPError

from rabbitstress.broker.publisher import BrokerPublisher
from rabbitstress.errors import BrokerConnectionError, ChannelError, CloseError, PublishError

logger = logging.getLogger(__name__)


class PikaPublisher(BrokerPublisher):
    """Publishes over AMQP 0-9-1 using a blocking pika connection.

    Publisher confirms are not enabled, so ``publish`` returns as soon as the
    frame is written.

    Args:
        connection_factory: Callable taking ``pika.URLParameters`` and
            returning a connection. Defaults to ``pika.BlockingConnection``.
        content_type: Content type set on every published message.
        persistent: Mark messages persistent (delivery_mode=2).
    """

    def __init__(
        self,
        connection_factory: Callable[[pika.URLParameters], Any] | None = None,
        content_type: str = "application/json",
        persistent: bool = False,
    ):
        self._connection_factory = connection_factory or pika.BlockingConnection
        self._properties = pika.BasicProperties(
            content_type=content_type,
            delivery_mode=2 if persistent else None,
        )
        self._connection: Any = None
        self._channel: Any = None

    @property
    def is_open(self) -> bool:
        return (
            self._connection is not None
            and self._channel is not None
            and self._connection.is_open
            and self._channel.is_open
        )

    def connect(self, address: str) -> None:
        try:
            self._connection = self._connection_factory(pika.URLParameters(address))
        except (AMQPError, OSError, ValueError) as exc:
            logger.error("Could not connect to broker at %s: %s", address, exc)
            raise BrokerConnectionError(f"Could not connect to {address}: {exc}") from exc

        try:
            self._channel = self._connection.channel()
        except (AMQPError, OSError) as exc:
            logger.error("Could not open a channel on %s: %s", address, exc)
            connection, self._connection = self._connection, None
            try:
                connection.close()
            except (AMQPError, OSError):
                logger.warning("Closing the connection after a channel failure also failed")
            raise ChannelError(f"Could not open a channel on {address}: {exc}") from exc

        logger.info("Connected to broker at %s", address, extra={"broker": address})

    def publish(self, exchange_name: str, routing_key: str, body: bytes) -> None:
        if self._channel is None:
            raise PublishError("Cannot publish: no open channel")
        try:
            self._channel.basic_publish(
                exchange=exchange_name,
                routing_key=routing_key,
                body=body,
                properties=self._properties,
            )
        except (AMQPError, OSError) as exc:
            logger.error(
                "Publish to exchange=%s key=%s failed: %s", exchange_name, routing_key, exc
            )
            raise PublishError(
                f"Publish to {exchange_name!r} with key {routing_key!r} failed: {exc}"
            ) from exc

    def close(self) -> None:
        channel, self._channel = self._channel, None
        connection, self._connection = self._connection, None
        failure: Exception | None = None
        for handle in (channel, connection):
            if handle is None or not handle.is_open:
                continue
            try:
                handle.close()
            except (AMQPError, OSError) as exc:
                failure = failure or exc
        if failure is not None:
            logger.error("Error closing broker channel/connection: %s", failure)
            raise CloseError(f"Error closing broker channel/connection: {failure}") from failure
        if connection is not None:
            logger.info("Broker connection closed")

"""Broker publishers: the contract, a pika implementation and a dry-run stand-in."""

from rabbitstress.broker.dry_run import DryRunPublisher, PublishedMessage
from rabbitstress.broker.pika_publisher import PikaPublisher
from rabbitstress.broker.publisher import BrokerPublisher

__all__ = [
    "BrokerPublisher",
    "DryRunPublisher",
    "PikaPublisher",
    "PublishedMessage",
]

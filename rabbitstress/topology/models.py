"""Exchange and binding records.

Records are stored as supplied by the caller. ``from_dict`` accepts the shape
returned by the RabbitMQ management API (``GET /api/exchanges`` and
``GET /api/bindings``), so a topology exported from a live broker can be fed
in directly:

    {"name": "trekker_topic", "vhost": "/", "type": "topic", "durable": true,
     "auto_delete": false, "internal": false, "arguments": {}}

    {"source": "trekker_topic", "vhost": "/", "destination": "AuthQueue",
     "destination_type": "queue", "routing_key": "Auth", "arguments": {}}

camelCase spellings (``routingKey``, ``sourceExchange``, ``autoDelete`` ...)
are accepted as aliases. Keys that match neither form are logged and ignored.

Nested mappings (``arguments``, message templates) are frozen on the way in:
records end up in snapshots, which must never change after they are taken.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from rabbitstress.errors import ConfigurationError

logger = logging.getLogger(__name__)


def freeze(value: Any) -> Any:
    """Read-only copy: mappings become MappingProxyType, lists become tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    """Plain, mutable copy of a frozen value (dicts and lists)."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw(item) for item in value]
    return value


def _read(data: Mapping[str, Any], fields: Mapping[str, tuple[str, ...]], record: str) -> dict[str, Any]:
    """Pick each field from the first of its spellings present in ``data``."""
    values = {}
    for name, spellings in fields.items():
        for key in spellings:
            if key in data:
                values[name] = data[key]
                break

    known = {key for spellings in fields.values() for key in spellings}
    unknown = set(data) - known
    if unknown:
        logger.warning("Ignoring unknown %s keys: %s", record, ", ".join(sorted(unknown)))
    return values


class ExchangeKind(Enum):
    """AMQP exchange types."""

    TOPIC = "topic"
    DIRECT = "direct"
    FANOUT = "fanout"
    HEADERS = "headers"

    @classmethod
    def parse(cls, value: ExchangeKind | str) -> ExchangeKind:
        if isinstance(value, ExchangeKind):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            choices = ", ".join(kind.value for kind in cls)
            raise ConfigurationError(
                f"Unknown exchange type {value!r} (expected one of: {choices})"
            ) from None


_EXCHANGE_FIELDS = {
    "name": ("name",),
    "vhost": ("vhost",),
    "kind": ("type", "kind"),
    "durable": ("durable",),
    "auto_delete": ("auto_delete", "autoDelete"),
    "internal": ("internal",),
    "arguments": ("arguments",),
    "user_who_performed_action": ("user_who_performed_action",),
}

_BINDING_FIELDS = {
    "source": ("source", "sourceExchange", "source_exchange"),
    "routing_key": ("routing_key", "routingKey"),
    "destination": ("destination",),
    "destination_type": ("destination_type", "destinationType"),
    "vhost": ("vhost",),
    "arguments": ("arguments",),
    "properties_key": ("properties_key", "propertiesKey"),
}


@dataclass(frozen=True)
class Exchange:
    """A named routing point on the broker. Identity is the name.

    Attributes:
        name: Exchange name, unique within a session.
        vhost: Virtual host the exchange lives in.
        kind: Exchange type.
        durable: Survives broker restart.
        auto_delete: Deleted when the last binding is removed.
        internal: Cannot be published to directly by clients.
        arguments: Opaque broker arguments (read-only).
    """

    name: str
    vhost: str = "/"
    kind: ExchangeKind = ExchangeKind.TOPIC
    durable: bool = True
    auto_delete: bool = False
    internal: bool = False
    arguments: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "arguments", freeze(self.arguments))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Exchange:
        values = _read(data, _EXCHANGE_FIELDS, "exchange")
        name = values.get("name")
        if not name:
            raise ConfigurationError(f"Exchange record has no name: {dict(data)!r}")
        return cls(
            name=name,
            vhost=values.get("vhost", "/"),
            kind=ExchangeKind.parse(values.get("kind", "topic")),
            durable=bool(values.get("durable", True)),
            auto_delete=bool(values.get("auto_delete", False)),
            internal=bool(values.get("internal", False)),
            arguments=values.get("arguments") or {},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "vhost": self.vhost,
            "type": self.kind.value,
            "durable": self.durable,
            "auto_delete": self.auto_delete,
            "internal": self.internal,
            "arguments": thaw(self.arguments),
        }


@dataclass(frozen=True)
class Binding:
    """Links a source exchange to a destination via a routing key.

    A binding only makes sense when ``source`` names an exchange known to the
    session; the topology compiler enforces that.
    """

    source: str
    routing_key: str = ""
    destination: str = ""
    destination_type: str = "queue"
    vhost: str = "/"
    arguments: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "arguments", freeze(self.arguments))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Binding:
        values = _read(data, _BINDING_FIELDS, "binding")
        source = values.get("source")
        if not source:
            raise ConfigurationError(f"Binding record has no source: {dict(data)!r}")
        return cls(
            source=source,
            routing_key=values.get("routing_key", ""),
            destination=values.get("destination", ""),
            destination_type=values.get("destination_type", "queue"),
            vhost=values.get("vhost", "/"),
            arguments=values.get("arguments") or {},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "vhost": self.vhost,
            "destination": self.destination,
            "destination_type": self.destination_type,
            "routing_key": self.routing_key,
            "arguments": thaw(self.arguments),
        }


def coerce_exchanges(records: Iterable[Exchange | Mapping[str, Any]]) -> tuple[Exchange, ...]:
    """Accept Exchange objects or management-API dicts, return Exchanges."""
    return tuple(
        record if isinstance(record, Exchange) else Exchange.from_dict(record)
        for record in records
    )


def coerce_bindings(records: Iterable[Binding | Mapping[str, Any]]) -> tuple[Binding, ...]:
    """Accept Binding objects or management-API dicts, return Bindings."""
    return tuple(
        record if isinstance(record, Binding) else Binding.from_dict(record)
        for record in records
    )


def index_exchanges(exchanges: Iterable[Exchange]) -> dict[str, Exchange]:
    """Name-indexed mapping. A later exchange with the same name replaces an earlier one."""
    return {exchange.name: exchange for exchange in exchanges}

"""Exception hierarchy for rabbitstress.

Configuration problems are raised before any broker interaction. Broker
failures are raised by publisher implementations and propagate to the caller
of ``prepare``/``execute`` unchanged; nothing is retried.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rabbitstress.instrumentation.snapshot import Snapshot


class RabbitStressError(Exception):
    """Base class for every error raised by rabbitstress."""


class ConfigurationError(RabbitStressError, ValueError):
    """Invalid topology, target, strategy or configuration file."""


class RunInProgressError(RabbitStressError, RuntimeError):
    """A run was started while another run on the same session is active."""


class BrokerError(RabbitStressError):
    """Base class for failures reported by a broker publisher."""


class BrokerConnectionError(BrokerError, ConnectionError):
    """The broker could not be reached or refused the connection."""


class ChannelError(BrokerError):
    """A channel could not be opened on an established connection."""


class PublishError(BrokerError):
    """A publish call failed mid-run. The run is aborted."""


class CloseError(BrokerError):
    """Closing the channel or connection failed.

    Attributes:
        snapshot: Snapshot of the run that completed before teardown failed,
            or None when the close was not part of a completed run.
    """

    def __init__(self, message: str, snapshot: Snapshot | None = None):
        super().__init__(message)
        self.snapshot = snapshot

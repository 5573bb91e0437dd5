"""rabbitstress: load generation for RabbitMQ exchange/binding topologies.

Basic usage:
    from rabbitstress import StressTestSession

    session = StressTestSession("amqp://localhost", exchanges, bindings, target=10_000)
    session.prepare()
    snapshot = session.execute("round-robin")

Logging:
    The library is silent by default. Enable logging with:

    import rabbitstress
    rabbitstress.setup_logging("INFO")
"""

import logging

logging.getLogger("rabbitstress").addHandler(logging.NullHandler())

__version__ = "0.1.0"

from rabbitstress.logging_config import configure_from_env, setup_logging

from rabbitstress.errors import (
    BrokerConnectionError,
    BrokerError,
    ChannelError,
    CloseError,
    ConfigurationError,
    PublishError,
    RabbitStressError,
    RunInProgressError,
)
from rabbitstress.clock import Clock, ManualClock
from rabbitstress.topology import (
    Binding,
    DispatchEntry,
    DispatchPlan,
    Exchange,
    ExchangeKind,
    compile_plan,
)
from rabbitstress.broker import BrokerPublisher, DryRunPublisher, PikaPublisher
from rabbitstress.engine import (
    CountTarget,
    DistributionEngine,
    DurationTarget,
    EngineState,
    RunResult,
    Strategy,
)
from rabbitstress.instrumentation import (
    Snapshot,
    SnapshotHistory,
    SnapshotRecorder,
    plot_snapshots,
    snapshots_to_dataframe,
    write_csv_report,
    write_json_report,
)
from rabbitstress.config import SessionConfig
from rabbitstress.session import StressTestSession

__all__ = [
    "__version__",
    # Logging
    "configure_from_env",
    "setup_logging",
    # Errors
    "BrokerConnectionError",
    "BrokerError",
    "ChannelError",
    "CloseError",
    "ConfigurationError",
    "PublishError",
    "RabbitStressError",
    "RunInProgressError",
    # Time
    "Clock",
    "ManualClock",
    # Topology
    "Binding",
    "DispatchEntry",
    "DispatchPlan",
    "Exchange",
    "ExchangeKind",
    "compile_plan",
    # Broker
    "BrokerPublisher",
    "DryRunPublisher",
    "PikaPublisher",
    # Engine
    "CountTarget",
    "DistributionEngine",
    "DurationTarget",
    "EngineState",
    "RunResult",
    "Strategy",
    # Snapshots
    "Snapshot",
    "SnapshotHistory",
    "SnapshotRecorder",
    "plot_snapshots",
    "snapshots_to_dataframe",
    "write_csv_report",
    "write_json_report",
    # Session
    "SessionConfig",
    "StressTestSession",
]

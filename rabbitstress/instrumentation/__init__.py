"""Run snapshots and reporting."""

from rabbitstress.instrumentation.report import (
    plot_snapshots,
    snapshots_to_dataframe,
    write_csv_report,
    write_json_report,
)
from rabbitstress.instrumentation.snapshot import (
    Snapshot,
    SnapshotHistory,
    SnapshotRecorder,
    success_rate,
)

__all__ = [
    "Snapshot",
    "SnapshotHistory",
    "SnapshotRecorder",
    "plot_snapshots",
    "snapshots_to_dataframe",
    "success_rate",
    "write_csv_report",
    "write_json_report",
]

"""Export snapshot history for analysis.

One row per run: strategy, counts, timing and throughput. The DataFrame is
the common form; CSV, JSON and chart output are built from it.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path

import pandas as pd

from rabbitstress.instrumentation.snapshot import Snapshot

logger = logging.getLogger(__name__)

COLUMNS = [
    "run",
    "strategy",
    "broker_address",
    "plan_length",
    "total_messages_sent",
    "target",
    "success_rate_percent",
    "duration_seconds",
    "messages_per_second",
    "duration_limit_s",
    "start_time",
    "end_time",
]


def snapshots_to_dataframe(snapshots: Iterable[Snapshot]) -> pd.DataFrame:
    """Tabulate snapshots, numbering runs from 1 in history order."""
    rows = [
        {
            "run": run,
            "strategy": snapshot.strategy.value,
            "broker_address": snapshot.broker_address,
            "plan_length": len(snapshot.dispatch_plan),
            "total_messages_sent": snapshot.total_messages_sent,
            "target": snapshot.target,
            "success_rate_percent": snapshot.success_rate_percent,
            "duration_seconds": snapshot.duration_seconds,
            "messages_per_second": snapshot.messages_per_second,
            "duration_limit_s": snapshot.duration_limit_s,
            "start_time": snapshot.start_time,
            "end_time": snapshot.end_time,
        }
        for run, snapshot in enumerate(snapshots, start=1)
    ]
    return pd.DataFrame(rows, columns=COLUMNS)


def write_csv_report(snapshots: Iterable[Snapshot], path: str | Path) -> Path:
    """Write the run table as CSV. Returns the path written."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    snapshots_to_dataframe(snapshots).to_csv(path, index=False)
    logger.info("Wrote CSV report: %s", path)
    return path


def write_json_report(snapshots: Iterable[Snapshot], path: str | Path) -> Path:
    """Write full snapshot records (topology and plan included) as JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump([snapshot.to_dict() for snapshot in snapshots], f, indent=2, default=str)
    logger.info("Wrote JSON report: %s", path)
    return path


def plot_snapshots(snapshots: Iterable[Snapshot], path: str | Path) -> Path:
    """Chart throughput and success rate per run."""
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    df = snapshots_to_dataframe(snapshots)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fig, (ax_rate, ax_success) = plt.subplots(1, 2, figsize=(12, 5))
    labels = [f"{run}\n{strategy}" for run, strategy in zip(df["run"], df["strategy"])]

    ax_rate.bar(labels, df["messages_per_second"], color="steelblue", alpha=0.8)
    ax_rate.set_ylabel("Messages / second")
    ax_rate.set_title("Throughput per run")
    ax_rate.grid(True, alpha=0.2)

    ax_success.bar(labels, df["success_rate_percent"], color="seagreen", alpha=0.8)
    ax_success.axhline(100, color="red", linestyle="--", alpha=0.6)
    ax_success.set_ylabel("Success rate (%)")
    ax_success.set_title("Messages sent vs target")
    ax_success.grid(True, alpha=0.2)

    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)
    logger.info("Saved chart: %s", path)
    return path

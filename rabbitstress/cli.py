"""Command-line entry point: ``rabbit-stress`` / ``python -m rabbitstress``.

Example::

    rabbit-stress topology.json --strategy random --runs 3 --target 50000 \\
        --report-dir output/stress
"""

from __future__ import annotations

import argparse
import logging
import random
import sys
from pathlib import Path

from rabbitstress.broker.dry_run import DryRunPublisher
from rabbitstress.config import SessionConfig
from rabbitstress.engine.strategies import Strategy
from rabbitstress.errors import RabbitStressError
from rabbitstress.instrumentation.report import plot_snapshots, write_csv_report, write_json_report
from rabbitstress.logging_config import configure_from_env, setup_logging
from rabbitstress.session import StressTestSession

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rabbit-stress",
        description="Publish synthetic load across RabbitMQ exchange bindings",
    )
    parser.add_argument("config", type=Path, help="JSON file with address, exchanges and bindings")
    parser.add_argument(
        "--strategy",
        choices=[strategy.value for strategy in Strategy],
        default=Strategy.ROUND_ROBIN.value,
        help="Distribution strategy",
    )
    parser.add_argument("--runs", type=int, default=1, help="Number of consecutive runs")
    parser.add_argument("--target", type=int, default=None, help="Override the message target")
    parser.add_argument("--duration", type=float, default=None, help="Extended-duration window (s)")
    parser.add_argument("--address", type=str, default=None, help="Override the broker URL")
    parser.add_argument("--dry-run", action="store_true", help="Do not connect to a broker")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--report-dir", type=Path, default=None, help="Write CSV/JSON reports here")
    parser.add_argument("--no-viz", action="store_true", help="Skip the chart when writing reports")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Log level (default: RS_LOGGING, else WARNING)",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Write logs to a rotating file")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON with run context")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.log_level or args.log_file or args.json_logs:
        level = args.log_level or ("INFO" if args.log_file else "WARNING")
        setup_logging(level, log_file=args.log_file, json_output=args.json_logs)
    elif not configure_from_env():
        setup_logging("WARNING")

    if args.runs < 1:
        print("--runs must be >= 1", file=sys.stderr)
        return 2

    try:
        config = SessionConfig.from_file(args.config)
        session = StressTestSession.from_config(
            config,
            publisher=DryRunPublisher() if args.dry_run else None,
            rng=random.Random(args.seed) if args.seed is not None else None,
        )
        if args.address:
            session.update_configuration(address=args.address)
        if args.target is not None:
            session.update_target(args.target)
        if args.duration is not None:
            session.update_duration(args.duration)

        for run in range(1, args.runs + 1):
            session.prepare()
            snapshot = session.execute(args.strategy)
            print(f"Run {run}/{args.runs}")
            print(snapshot)
    except RabbitStressError as exc:
        logger.error("Stress test failed: %s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if args.report_dir is not None:
        snapshots = session.get_snapshots()
        write_csv_report(snapshots, args.report_dir / "snapshots.csv")
        write_json_report(snapshots, args.report_dir / "snapshots.json")
        if not args.no_viz:
            plot_snapshots(snapshots, args.report_dir / "snapshots.png")
        print(f"Reports written to {args.report_dir}")

    return 0

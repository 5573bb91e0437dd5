"""Logging setup for rabbitstress.

The ``rabbitstress`` logger only carries a NullHandler until an application
opts in. The ``rabbit-stress`` CLI builds its handler from ``--log-level``,
``--log-file`` and ``--json-logs``, falling back to the environment:

    RS_LOGGING: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    RS_LOG_FILE: Log to this file (size-rotated) instead of stderr
    RS_LOG_JSON: "1" for one JSON object per line

Library users call the same two functions::

    import rabbitstress

    rabbitstress.setup_logging("INFO", log_file="stress.log", json_output=True)
    rabbitstress.configure_from_env()

Run lifecycle records (connect, run start/finish, snapshot) carry context
attributes such as ``strategy`` and ``messages_sent``. The JSON formatter
lifts them to top-level keys so a log shipper can group records by run; the
text formatter leaves them out.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

__all__ = [
    "RUN_CONTEXT_FIELDS",
    "JsonFormatter",
    "configure_from_env",
    "setup_logging",
]

LOGGER_NAME = "rabbitstress"

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Extended-duration runs can log for hours; files always rotate.
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

RUN_CONTEXT_FIELDS = (
    "broker",
    "strategy",
    "plan_entries",
    "target",
    "messages_sent",
    "elapsed_s",
    "success_rate_percent",
)


class JsonFormatter(logging.Formatter):
    """One JSON object per record, run context included.

    Example output:
        {"timestamp": "2024-01-15T10:30:00.123456+00:00", "level": "INFO",
         "logger": "rabbitstress.engine.engine", "message": "Finished random run",
         "strategy": "random", "messages_sent": 1001, "elapsed_s": 0.84}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in RUN_CONTEXT_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def _get_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, level.upper(), logging.INFO)


def _get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def setup_logging(
    level: str | int = "INFO",
    log_file: str | Path | None = None,
    json_output: bool = False,
) -> logging.Handler:
    """Send rabbitstress records to stderr or a rotating file.

    Replaces whatever handler an earlier call installed, so calling it again
    (e.g. once per CLI invocation) never duplicates output.

    Args:
        level: Level name or int.
        log_file: Write here instead of stderr. Parent directories are
            created; the file rotates at 10 MB, keeping 5 backups.
        json_output: Emit JSON lines with run context instead of text.

    Returns:
        The installed handler.
    """
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = RotatingFileHandler(
            path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS
        )
    else:
        handler = logging.StreamHandler()

    if json_output:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, DATE_FORMAT))

    logger = _get_logger()
    for old in logger.handlers[:]:
        if not isinstance(old, logging.NullHandler):
            logger.removeHandler(old)
            old.close()

    level = _get_level(level)
    logger.setLevel(level)
    handler.setLevel(level)
    logger.addHandler(handler)
    return handler


def configure_from_env() -> bool:
    """Configure logging from RS_LOGGING, RS_LOG_FILE and RS_LOG_JSON.

    Returns:
        False, leaving logging untouched, when neither RS_LOGGING nor
        RS_LOG_FILE is set.
    """
    level = os.environ.get("RS_LOGGING", "").upper()
    log_file = os.environ.get("RS_LOG_FILE", "")
    if not level and not log_file:
        return False

    setup_logging(
        level=level or "INFO",
        log_file=log_file or None,
        json_output=os.environ.get("RS_LOG_JSON", "") == "1",
    )
    return True

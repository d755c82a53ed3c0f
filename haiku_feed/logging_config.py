"""JSON logging for the haiku pipeline and server.

Every component logs through an ``ExecutionLogger``, which stamps each record
with the component name and an execution id (one per process run, feed cycle
or client connection). ``StructuredFormatter`` turns a record, including any
keyword context, into a single JSON line on stdout.
"""

import json
import logging
import sys
import time
import uuid
from datetime import UTC, datetime
from typing import Any

LOGGER_PREFIX = "haiku_feed"

COMPONENTS = (
    "main",
    "feed_processor",
    "generator",
    "bedrock",
    "rate_limiter",
    "batch_processor",
    "deduplicator",
    "haiku_store",
    "translation",
    "translation_cache",
    "live_channel",
    "server",
)

# Third-party loggers held at WARNING whatever the configured level
QUIET_LOGGERS = ("aiohttp.access", "botocore", "urllib3")

# Record attributes set by logging itself; everything else came in via extra=
_RESERVED_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: fixed fields, then caller context."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        entry.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ExecutionLogger:
    """Component logger that adds ``execution_id`` and ``component`` to every record."""

    def __init__(self, execution_id: str, component: str = "main"):
        self.execution_id = execution_id
        self.component = component
        self.logger = logging.getLogger(f"{LOGGER_PREFIX}.{component}")
        self._started: float | None = None

    def log(self, level: int, message: str, **context) -> None:
        context.update(execution_id=self.execution_id, component=self.component)
        self.logger.log(level, message, extra=context)

    def debug(self, message: str, **context) -> None:
        self.log(logging.DEBUG, message, **context)

    def info(self, message: str, **context) -> None:
        self.log(logging.INFO, message, **context)

    def warning(self, message: str, **context) -> None:
        self.log(logging.WARNING, message, **context)

    def error(self, message: str, **context) -> None:
        self.log(logging.ERROR, message, **context)

    def log_execution_start(self, **context) -> None:
        """Mark the start of a run; the matching end record carries its duration."""
        self._started = time.monotonic()
        self.info(
            f"Starting {self.component} execution",
            execution_start=datetime.now(UTC).isoformat(),
            **context,
        )

    def log_execution_end(self, success: bool = True, **context) -> None:
        duration = None
        if self._started is not None:
            duration = round(time.monotonic() - self._started, 3)
            self._started = None
        self.info(
            f"Completed {self.component} execution",
            execution_end=datetime.now(UTC).isoformat(),
            execution_duration_seconds=duration,
            execution_success=success,
            **context,
        )

    def log_feed_processing(self, source_name: str, items_count: int) -> None:
        self.info(
            f"Processed feed: {items_count} items found",
            source_name=source_name,
            items_count=items_count,
        )

    def log_item_processing(self, item_title: str, action: str, success: bool = True) -> None:
        """Record what happened to one feed item; failures go out at WARNING."""
        self.log(
            logging.INFO if success else logging.WARNING,
            f"Item {action}: {item_title}",
            item_title=item_title,
            action=action,
            success=success,
        )

    def log_metrics(self, metrics: dict[str, Any]) -> None:
        self.info("Execution metrics", metrics=metrics)


def parse_log_level(log_level: str) -> int:
    """Map a level name such as ``"info"`` to its ``logging`` constant.

    Raises:
        ValueError: If the name is not a standard level
    """
    level = logging.getLevelNamesMapping().get(log_level.strip().upper())
    if level is None:
        raise ValueError(f"Unknown log level: {log_level!r}")
    return level


def setup_structured_logging(log_level: str = "INFO") -> None:
    """Send all logging to stdout as JSON lines at ``log_level``.

    Replaces any handlers already on the root logger, so calling it twice
    does not duplicate output.
    """
    level = parse_log_level(log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name in (LOGGER_PREFIX, *(f"{LOGGER_PREFIX}.{c}" for c in COMPONENTS)):
        component_logger = logging.getLogger(name)
        component_logger.setLevel(level)
        component_logger.propagate = True

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def create_execution_logger(component: str, execution_id: str | None = None) -> ExecutionLogger:
    """Return an ``ExecutionLogger`` for ``component``, minting an id if none is given."""
    return ExecutionLogger(execution_id or f"exec_{uuid.uuid4().hex[:12]}", component)

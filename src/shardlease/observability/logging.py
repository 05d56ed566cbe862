"""Console and JSON logging for election actors.

Provides:
- Actor/shard context propagation via context variables
- A console format matching the classic election trace:
  ``[7] [Jan 2 15:04:05] gained leadership``
- JSON-formatted logs for log aggregation systems

Usage:
    from shardlease.observability.logging import LogContext, configure_logging

    configure_logging(json_format=False, level="INFO")

    with LogContext(actor_id="7", shard="shard-5"):
        logger.info("gained leadership")  # [7] [Oct 18 12:00:01] gained leadership
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

# Each actor thread starts with a fresh context, so values bound inside the
# thread never leak into other actors.
actor_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("actor_id", default="")
shard_var: contextvars.ContextVar[str] = contextvars.ContextVar("shard", default="")

_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)


class JsonFormatter(logging.Formatter):
    """JSON log formatter with actor context.

    Output format:
    {
        "timestamp": "2026-10-18T12:34:56.789Z",
        "level": "INFO",
        "logger": "shardlease.election.actor",
        "message": "gained leadership",
        "thread": "election-shard-5-7",
        "actor_id": "7",
        "shard": "shard-5"
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "thread": record.threadName,
        }

        actor_id = actor_id_var.get()
        if actor_id:
            log_data["actor_id"] = actor_id

        shard = shard_var.get()
        if shard:
            log_data["shard"] = shard

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        # Extra fields passed via `extra=`
        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                try:
                    json.dumps(value)
                    log_data[key] = value
                except (TypeError, ValueError):
                    log_data[key] = str(value)

        return json.dumps(log_data, default=str, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter.

    Inside an actor:
    [7] [Oct 18 12:34:56] gained leadership

    Elsewhere:
    2026-10-18 12:34:56 | INFO     | shardlease.cli | Starting 30 actors
    """

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for console output."""
        now = datetime.now()
        message = record.getMessage()

        actor_id = actor_id_var.get()
        if actor_id:
            result = f"[{actor_id}] [{now:%b} {now.day} {now:%H:%M:%S}] {message}"
            if self.use_colors and record.levelno >= logging.WARNING:
                result = f"{self.COLORS[record.levelname]}{result}{self.RESET}"
        else:
            level = record.levelname
            if self.use_colors:
                level = f"{self.COLORS.get(level, '')}{level}{self.RESET}"
            result = f"{now:%Y-%m-%d %H:%M:%S} | {level:8} | {record.name} | {message}"

        if record.exc_info:
            result += "\n" + self.formatException(record.exc_info)

        return result


def configure_logging(
    json_format: bool = False,
    level: str = "INFO",
    use_colors: bool = True,
) -> None:
    """Configure process-wide logging.

    Args:
        json_format: Use JSON format instead of the console trace
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        use_colors: Use ANSI colors in console format
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)

    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(ConsoleFormatter(use_colors=use_colors))

    root_logger.addHandler(handler)

    # Per-request lines from the HTTP stack drown out the election trace
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


class LogContext:
    """Context manager binding actor context to log records.

    Usage:
        with LogContext(actor_id="3", shard="shard-5"):
            logger.info("lost acquisition race")
    """

    def __init__(self, actor_id: str | None = None, shard: str | None = None) -> None:
        self.actor_id = actor_id
        self.shard = shard
        self._tokens: list[tuple[contextvars.ContextVar[str], contextvars.Token[str]]] = []

    def __enter__(self) -> "LogContext":
        if self.actor_id is not None:
            self._tokens.append((actor_id_var, actor_id_var.set(self.actor_id)))
        if self.shard is not None:
            self._tokens.append((shard_var, shard_var.set(self.shard)))
        return self

    def __exit__(self, *args: Any) -> None:
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    return logging.getLogger(name)

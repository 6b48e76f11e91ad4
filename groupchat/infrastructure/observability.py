"""Structured Logging: JSON and plain formatters for operator-facing records.

Invariants:
    - Every record carries timestamp, level, logger name and message
    - Failure context (error_code, operation, user_id, group_id, path) appears
      in both formats whenever the caller passed it as `extra`
    - setup_logging is idempotent: a second call replaces its own handler
    - SQLAlchemy's engine and pool loggers stay at WARNING unless the app
      level is DEBUG (per-checkout chatter drowns request logs)

Design Decisions:
    - JSONFormatter over third-party libs: zero dependencies, full control
    - setup_logging called once on startup via lifespan
"""

import logging
import json
from datetime import datetime, timezone

CONTEXT_FIELDS = ("error_code", "operation", "user_id", "group_id", "path")
_HANDLER_NAME = "groupchat"
_SQLALCHEMY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool")


def record_context(record: logging.LogRecord) -> dict:
    """The failure-context extras set on this record, in a stable order."""
    return {
        key: record.__dict__[key]
        for key in CONTEXT_FIELDS
        if record.__dict__.get(key) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **record_context(record),
        }
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


class PlainFormatter(logging.Formatter):
    """Human-readable line with the context extras appended as key=value."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(name)s - %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = record_context(record)
        if not context:
            return line
        pairs = " ".join(f"{k}={v}" for k, v in context.items())
        head, sep, tail = line.partition("\n")
        return f"{head} [{pairs}]{sep}{tail}"


def setup_logging(level: str = "INFO", fmt: str = "json"):
    """Configure root logging for the application."""
    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(JSONFormatter() if fmt == "json" else PlainFormatter())
    root.addHandler(handler)

    resolved = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(resolved)
    for name in _SQLALCHEMY_LOGGERS:
        logging.getLogger(name).setLevel(
            resolved if resolved <= logging.DEBUG else logging.WARNING,
        )

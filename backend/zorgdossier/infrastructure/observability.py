"""Structured Logging — JSON and console formatters keyed on client and application ids.

Invariants:
    - Every JSON line carries timestamp (from the record), level, logger and message
    - Known `extra=` keys (client_id, application_id, operation, ...) are copied when set
    - setup_logging replaces root handlers, so repeated lifespans never duplicate output

Design Decisions:
    - Stdlib logging with a small JSON formatter: no extra dependency
    - Console format appends the client/application scope so local logs read
      like the audit trail
"""

import json
import logging
from datetime import datetime, timezone

CONTEXT_FIELDS = (
    "client_id", "application_id", "operation", "action", "error_code", "path",
    "attempt", "input_tokens", "output_tokens", "criterion_id",
)


def _context(record: logging.LogRecord) -> dict:
    return {
        key: record.__dict__[key]
        for key in CONTEXT_FIELDS
        if record.__dict__.get(key) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line for log shipping."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable lines with a [client/application] suffix when scoped."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        ctx = _context(record)
        scope = "/".join(
            str(ctx[key]) for key in ("client_id", "application_id") if key in ctx
        )
        return f"{line} [{scope}]" if scope else line


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter() if fmt == "json" else ConsoleFormatter())
    logging.root.handlers = [handler]
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))

"""One-line JSON logging for page helpers and pytest lifecycle events.

Page helpers log under ``qa.pages`` / ``qa.dates`` with structured ``extra``
fields (selector, state, timeout); this formatter flattens them into the
payload so CI log search can filter on them.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, TextIO

_STANDARD_FIELDS = set(logging.makeLogRecord({}).__dict__.keys()) | {"message", "asctime"}


def setup_logging(level: str = "INFO", stream: TextIO | None = None) -> logging.Handler:
    """Route the root logger to a single JSON handler and return it."""

    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
    return handler


class JsonFormatter(logging.Formatter):
    """Serialize log records as compact JSON with support for `extra` fields."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        data.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _STANDARD_FIELDS and not key.startswith("_")
        )
        if record.exc_info:
            data["exc"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)

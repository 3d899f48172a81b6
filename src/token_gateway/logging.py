"""Structured logging for the token gateway.

Every line is one JSON object with an ``event`` name.  Per-request context
(endpoint, channel, uid) is grouped under ``request`` so issuance and
rejection lines can be filtered on the same keys.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

REQUEST_FIELDS = ("endpoint", "channel", "uid")
DEFAULT_EVENT = "log"


class StructuredFormatter(logging.Formatter):
    """Emit one JSON object per record, request context nested."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event": getattr(record, "event", None) or DEFAULT_EVENT,
            "message": record.getMessage(),
        }
        context = {
            field: getattr(record, field)
            for field in REQUEST_FIELDS
            if getattr(record, field, None) is not None
        }
        if context:
            entry["request"] = context
        error_code = getattr(record, "error_code", None)
        if error_code is not None:
            entry["error_code"] = error_code
        return json.dumps(entry, default=str)


def setup_logging(level: str = "INFO") -> None:
    """Route everything through a single stderr handler with JSON output."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter())
    root.addHandler(handler)

    # uvicorn's access log duplicates the token_issued/token_rejected lines
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"token_gateway.{name}")

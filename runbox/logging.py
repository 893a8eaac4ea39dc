"""
JSON-lines logging for the host and for script console output.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from .config import get_settings

SCRIPT_CONSOLE_LOGGER = "script_runtime.console"

# Structured fields callers pass through ``extra=``.
CONTEXT_FIELDS = ("request_id", "function", "method", "path", "status")


class JsonFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, message and any request context."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (field, getattr(record, field))
            for field in CONTEXT_FIELDS
            if getattr(record, field, None) is not None
        )

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging() -> None:
    """Send every record to stdout as JSON; safe to call once per app instance."""

    settings = get_settings()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(settings.log_level.upper())

    logging.getLogger(SCRIPT_CONSOLE_LOGGER).setLevel(settings.script_console_log_level.upper())

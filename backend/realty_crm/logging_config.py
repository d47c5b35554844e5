"""
Structured JSON logging.

One JSON object per line on stdout. Records pick up the request id bound by
LoggingMiddleware and the intent bound by the command dispatcher, so every
line written while a command runs can be traced back to it:
    gcloud logging read 'jsonPayload.intent="UPDATE_CONTACT"'
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
intent_var: ContextVar[Optional[str]] = ContextVar("intent", default=None)

CONTEXT_FIELDS = (("request_id", request_id_var), ("intent", intent_var))

QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "openai", "google", "googlemaps")


def current_context() -> Dict[str, str]:
    """The context fields bound right now, skipping unset ones."""
    return {name: var.get() for name, var in CONTEXT_FIELDS if var.get()}


class JSONFormatter(logging.Formatter):
    """Cloud Logging compatible: `severity` and `message` are top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "severity": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **current_context(),
        }
        action = getattr(record, "action", None)
        if action:
            entry["action"] = action
        entry.update(getattr(record, "extra_data", None) or {})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_action(logger: logging.Logger, level: str, action: str, message: str, **fields: Any) -> None:
    """
    Log a named action with structured fields.

    Example:
        log_action(logger, "info", "contact_updated", "Updated email for John Smith",
                   contact_id="abc123", field="email")
    """
    logger.log(
        getattr(logging, level.upper(), logging.INFO),
        message,
        extra={"action": action, "extra_data": fields},
        stacklevel=2,
    )

"""
Structured logging configuration.

Every log line emitted while a request is in flight carries that
request's context: the correlation ID and method/path set by the
middleware, plus the notification channel once the dispatcher has
bound it.

    14:02:11 INFO     [3f9a2c1e email] backend.app.notifications.dispatcher: Dispatching via 'email'

Production (ENVIRONMENT=production) switches to one JSON object per line.

Usage:
    from backend.app.core.logging_config import setup_logging, get_logger

    setup_logging(settings)
    logger = get_logger(__name__)
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from backend.app.core.config import Settings, settings as default_settings

_request_context: ContextVar[Dict[str, Any]] = ContextVar("request_context", default={})

# LogRecord attributes passed via ``extra=`` that JSON output keeps
_EXTRA_FIELDS = ("channel", "strategy", "duration_ms", "status_code", "outcome")


def set_request_context(**kwargs: Any) -> None:
    """Replace the request context (middleware entry/exit)."""
    _request_context.set(dict(kwargs))


def bind_request_context(**kwargs: Any) -> None:
    """
    Add keys to the active request context.

    Inside a request the dict is updated in place, so values bound from the
    threadpool (where sync endpoints run) are visible to the middleware
    when it writes the access line. Outside a request a new context is set.
    """
    ctx = _request_context.get()
    if ctx:
        ctx.update(kwargs)
    else:
        _request_context.set(dict(kwargs))


def get_request_context() -> Dict[str, Any]:
    return _request_context.get()


class JSONFormatter(logging.Formatter):
    """One JSON object per line for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        ctx = get_request_context()
        if ctx:
            entry["request"] = dict(ctx)
        entry.update(
            {key: getattr(record, key) for key in _EXTRA_FIELDS if hasattr(record, key)}
        )
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = {
                "type": type(record.exc_info[1]).__name__,
                "message": str(record.exc_info[1]),
            }
        return json.dumps(entry, default=str)


class PrettyFormatter(logging.Formatter):
    """Coloured console output; ``[request-id channel]`` tag when in a request."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def _tag(self) -> str:
        ctx = get_request_context()
        parts = [str(ctx["request_id"])[:8]] if ctx.get("request_id") else []
        if ctx.get("channel"):
            parts.append(str(ctx["channel"]))
        return f" [{' '.join(parts)}]" if parts else ""

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        line = (
            f"{color}{self.formatTime(record, '%H:%M:%S')} {record.levelname:8s}{self.RESET}"
            f"{self._tag()} {record.name}: {record.getMessage()}"
        )
        if record.exc_info and record.exc_info[1]:
            line += f"\n  {type(record.exc_info[1]).__name__}: {record.exc_info[1]}"
        return line


def setup_logging(app_settings: Optional[Settings] = None) -> None:
    """Install a single stdout handler on the root logger."""
    cfg = app_settings or default_settings

    root = logging.getLogger()
    root.setLevel(getattr(logging, cfg.LOG_LEVEL.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if cfg.is_production else PrettyFormatter())
    root.addHandler(handler)

    # uvicorn's own access log duplicates RequestLoggingMiddleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)

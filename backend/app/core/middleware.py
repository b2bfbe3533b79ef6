"""
Request middleware — correlation IDs and one access line per request.

The access line names the notification channel when the request went
through the dispatcher, and classifies the result:

    POST /notify → 200 (0.8ms) channel=email outcome=sent
    POST /notify → 400 (0.5ms) channel=pager outcome=rejected
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from backend.app.core.logging_config import get_request_context, set_request_context

logger = logging.getLogger(__name__)

_QUIET_PREFIXES = ("/docs", "/redoc", "/openapi", "/favicon", "/health/live")


def _outcome(status_code: int) -> str:
    if status_code < 400:
        return "sent"
    if status_code < 500:
        return "rejected"
    return "failed"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Sets X-Request-ID / X-Process-Time and logs the dispatched channel."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:16]
        path = request.url.path
        set_request_context(request_id=request_id, method=request.method, endpoint=path)

        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Process-Time"] = (
                f"{(time.perf_counter() - start) * 1000:.1f}ms"
            )
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            channel = get_request_context().get("channel")
            if not path.startswith(_QUIET_PREFIXES):
                self._log(request.method, path, status_code, duration_ms, channel)
            set_request_context()

    @staticmethod
    def _log(method: str, path: str, status_code: int, duration_ms: float, channel) -> None:
        outcome = _outcome(status_code)
        suffix = f" channel={channel} outcome={outcome}" if channel else ""
        logger.log(
            logging.WARNING if status_code >= 400 else logging.INFO,
            "%s %s → %d (%.1fms)%s",
            method, path, status_code, duration_ms, suffix,
            extra={
                "duration_ms": duration_ms,
                "status_code": status_code,
                "channel": channel,
                "outcome": outcome,
            },
        )

"""
Centralised error handling — exception hierarchy + FastAPI handlers.

Provides:
    • Domain-specific exception classes
    • Consistent JSON error response format
    • Automatic logging of unhandled errors
    • Request context in error responses (non-production)

Usage:
    from backend.app.core.errors import (
        NotifyAPIError,
        ChannelNotFoundError,
        ValidationError,
        StrategyFailureError,
        register_error_handlers,
    )

    raise ChannelNotFoundError("pager", available=["email", "sms"])
"""

from __future__ import annotations

import logging
import traceback
from typing import Any, Dict, Iterable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.app.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Exception Hierarchy
# ═══════════════════════════════════════════════════════════════════════════

class NotifyAPIError(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        *,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}


class ChannelNotFoundError(NotifyAPIError):
    """No strategy is registered under the requested channel (400)."""

    def __init__(self, channel: str, available: Optional[Iterable[str]] = None):
        details: Dict[str, Any] = {"channel": channel}
        if available is not None:
            details["available_channels"] = sorted(available)
        super().__init__(
            message=f"Unknown notification channel '{channel}'",
            status_code=400,
            error_code="CHANNEL_NOT_FOUND",
            details=details,
        )
        self.channel = channel


class ValidationError(NotifyAPIError):
    """Input validation failed (422)."""

    def __init__(self, message: str, *, field: Optional[str] = None, **details: Any):
        d = {**details}
        if field:
            d["field"] = field
        super().__init__(
            message=message,
            status_code=422,
            error_code="VALIDATION_ERROR",
            details=d,
        )


class StrategyFailureError(NotifyAPIError):
    """A strategy could not complete its send action (502)."""

    def __init__(self, channel: str, message: str = "", **details: Any):
        super().__init__(
            message=f"Notification via '{channel}' failed: {message}",
            status_code=502,
            error_code="STRATEGY_FAILURE",
            details={"channel": channel, **details},
        )
        self.channel = channel


class RegistryFrozenError(NotifyAPIError):
    """Registration attempted after the registry was frozen (500)."""

    def __init__(self, channel: str):
        super().__init__(
            message=f"Cannot register '{channel}': strategy registry is frozen",
            status_code=500,
            error_code="REGISTRY_FROZEN",
            details={"channel": channel},
        )


class ConfigurationError(NotifyAPIError):
    """Startup configuration is invalid (500)."""

    def __init__(self, message: str, **details: Any):
        super().__init__(
            message=message,
            status_code=500,
            error_code="CONFIGURATION_ERROR",
            details=details,
        )


# ═══════════════════════════════════════════════════════════════════════════
# Error Response Builder
# ═══════════════════════════════════════════════════════════════════════════

def _build_error_response(
    status_code: int,
    error_code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None,
    cfg: Settings = default_settings,
) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: Dict[str, Any] = {
        "error": {
            "code": error_code,
            "message": message,
            "status": status_code,
        }
    }

    if details:
        body["error"]["details"] = details

    # Include request path in non-production
    if request and not cfg.is_production:
        body["error"]["path"] = str(request.url.path)
        body["error"]["method"] = request.method

    return JSONResponse(status_code=status_code, content=body)


# ═══════════════════════════════════════════════════════════════════════════
# FastAPI Exception Handlers
# ═══════════════════════════════════════════════════════════════════════════

def register_error_handlers(app: FastAPI, app_settings: Optional[Settings] = None) -> None:
    """
    Register all exception handlers on the FastAPI app.

    ``app_settings`` decides whether responses carry the request path and,
    for unhandled errors, the exception text and traceback.
    """
    cfg = app_settings or default_settings

    @app.exception_handler(NotifyAPIError)
    async def handle_notify_error(request: Request, exc: NotifyAPIError):
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            "API Error [%s]: %s | details=%s",
            exc.error_code, exc.message, exc.details,
        )
        return _build_error_response(
            exc.status_code, exc.error_code, exc.message,
            exc.details, request, cfg,
        )

    @app.exception_handler(ValueError)
    async def handle_value_error(request: Request, exc: ValueError):
        logger.warning("ValueError: %s", exc)
        return _build_error_response(
            422, "VALIDATION_ERROR", str(exc), request=request, cfg=cfg,
        )

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.critical(
            "Unhandled exception: %s\n%s",
            exc, traceback.format_exc(),
        )
        message = str(exc) if cfg.DEBUG else "Internal server error"
        details = (
            {"traceback": traceback.format_exc().split("\n")}
            if cfg.DEBUG else None
        )
        return _build_error_response(
            500, "INTERNAL_ERROR", message, details, request, cfg,
        )

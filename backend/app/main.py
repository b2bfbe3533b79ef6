"""
FastAPI application entry point.

Run with:
    uvicorn backend.app.main:app --reload --port 8000

Or from the project root:
    python -m backend.app.main
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# ── Core infrastructure ──
from backend.app.core.config import Settings, settings as default_settings
from backend.app.core.logging_config import setup_logging, get_logger
from backend.app.core.errors import register_error_handlers
from backend.app.core.middleware import RequestLoggingMiddleware
from backend.app.core.health import HealthStatus, run_health_check

# ── Notifications ──
from backend.app.notifications.dispatcher import NotificationDispatcher
from backend.app.notifications.registry import StrategyRegistry, build_registry

# ── API routers ──
from backend.app.api.v1.notify import router as notify_router

# ── Initialise logging ──
setup_logging(default_settings)
logger = get_logger(__name__)


def create_app(
    registry: Optional[StrategyRegistry] = None,
    app_settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the application.

    The registry is populated and frozen here, before the first request,
    so a bad NOTIFY_CHANNELS value fails at startup. Pass ``registry`` to
    serve a prebuilt one instead. ``app_settings`` reaches logging, error
    responses and health reports as well as the registry.
    """
    cfg = app_settings or default_settings
    if app_settings is not None:
        setup_logging(cfg)

    if registry is None:
        registry = build_registry(cfg.NOTIFY_CHANNELS, freeze=cfg.NOTIFY_FREEZE_REGISTRY)
    dispatcher = NotificationDispatcher(registry)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage startup and shutdown events."""
        logger.info(
            "Starting %s v%s [%s] channels=%s",
            cfg.APP_NAME, cfg.APP_VERSION, cfg.ENVIRONMENT,
            ",".join(registry.channels()),
        )
        yield
        logger.info("Shutting down %s", cfg.APP_NAME)

    app = FastAPI(
        title=cfg.APP_NAME,
        description=(
            "Notification dispatch service. Sends a message to a recipient "
            "through a channel strategy (email, SMS, chat) selected by name."
        ),
        version=cfg.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.registry = registry
    app.state.dispatcher = dispatcher
    app.state.settings = cfg

    # ── Middleware stack (order matters — outermost first) ──
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.CORS_ORIGINS if not cfg.CORS_ALLOW_ALL else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    # ── Error handlers ──
    register_error_handlers(app, cfg)

    # ── Register routers ──
    app.include_router(notify_router)

    # ── Root & health endpoints ──

    @app.get("/", tags=["root"])
    async def root(request: Request):
        return {
            "service": cfg.APP_NAME,
            "version": cfg.APP_VERSION,
            "environment": cfg.ENVIRONMENT,
            "channels": request.app.state.registry.channels(),
            "docs": "/docs",
        }

    @app.get("/health", tags=["health"])
    async def health_check(request: Request):
        """Deep health probe — registry and configured channels."""
        report = await run_health_check(request.app.state.registry, cfg)
        return report.to_dict()

    @app.get("/health/live", tags=["health"])
    async def liveness():
        """Kubernetes liveness probe — is the process alive?"""
        return {"status": "alive"}

    @app.get("/health/ready", tags=["health"])
    async def readiness(request: Request):
        """Kubernetes readiness probe — can we serve traffic?"""
        report = await run_health_check(request.app.state.registry, cfg)
        if report.status == HealthStatus.UNHEALTHY:
            return JSONResponse(status_code=503, content=report.to_dict())
        return report.to_dict()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "backend.app.main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        workers=default_settings.WORKERS,
        reload=default_settings.RELOAD,
    )

"""
Health check aggregation — deep health probe for the dispatch service.

Checks:
    • Strategy registry population
    • Configured channels vs. registered channels

Returns a structured health report suitable for:
    - Kubernetes liveness/readiness probes
    - Load balancer health checks
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from backend.app.core.config import Settings, settings as default_settings
from backend.app.notifications.registry import StrategyRegistry

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"  # partial functionality
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    name: str
    status: HealthStatus = HealthStatus.HEALTHY
    latency_ms: float = 0.0
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "latency_ms": round(self.latency_ms, 2),
        }
        if self.message:
            d["message"] = self.message
        if self.details:
            d["details"] = self.details
        return d


@dataclass
class HealthReport:
    status: HealthStatus = HealthStatus.HEALTHY
    version: str = ""
    environment: str = ""
    timestamp: str = ""
    uptime_seconds: float = 0.0
    components: List[ComponentHealth] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "version": self.version,
            "environment": self.environment,
            "timestamp": self.timestamp or datetime.now(timezone.utc).isoformat(),
            "uptime_seconds": round(self.uptime_seconds, 1),
            "components": [c.to_dict() for c in self.components],
        }


# Track application start time
_start_time = time.monotonic()


async def check_registry(registry: StrategyRegistry) -> ComponentHealth:
    """A registry without any channel cannot serve a single request."""
    comp = ComponentHealth(name="strategy_registry")
    start = time.monotonic()

    channels = registry.channels()
    if channels:
        comp.status = HealthStatus.HEALTHY
        comp.message = f"{len(channels)} channel(s) registered"
    else:
        comp.status = HealthStatus.UNHEALTHY
        comp.message = "No notification channels registered"

    comp.details = {"channels": channels, "frozen": registry.frozen}
    comp.latency_ms = (time.monotonic() - start) * 1000
    return comp


async def check_configured_channels(
    registry: StrategyRegistry,
    expected: Sequence[str],
) -> ComponentHealth:
    """Compare the configured channel list against what is registered."""
    comp = ComponentHealth(name="configured_channels")
    start = time.monotonic()

    missing = [name for name in expected if name not in registry]
    if missing:
        comp.status = HealthStatus.DEGRADED
        comp.message = f"Configured but not registered: {', '.join(missing)}"
    else:
        comp.status = HealthStatus.HEALTHY
        comp.message = "All configured channels registered"

    comp.details = {"expected": list(expected), "missing": missing}
    comp.latency_ms = (time.monotonic() - start) * 1000
    return comp


async def run_health_check(
    registry: StrategyRegistry,
    app_settings: Optional[Settings] = None,
) -> HealthReport:
    """Run all health checks against the app's settings and aggregate a report."""
    cfg = app_settings or default_settings
    expected: Sequence[str] = cfg.NOTIFY_CHANNELS
    report = HealthReport(
        version=cfg.APP_VERSION,
        environment=cfg.ENVIRONMENT,
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime_seconds=time.monotonic() - _start_time,
    )

    checks = [
        check_registry(registry),
        check_configured_channels(registry, expected),
    ]

    for coro in checks:
        comp = await coro
        report.components.append(comp)

    statuses = [c.status for c in report.components]
    if HealthStatus.UNHEALTHY in statuses:
        report.status = HealthStatus.UNHEALTHY
    elif HealthStatus.DEGRADED in statuses:
        report.status = HealthStatus.DEGRADED
    else:
        report.status = HealthStatus.HEALTHY

    if report.status != HealthStatus.HEALTHY:
        logger.warning("Health check %s", report.status.value)

    return report

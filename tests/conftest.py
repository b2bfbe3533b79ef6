"""
Shared test strategies and registries.

    recorder()          — strategy that records (to, message) calls
    raiser(exc)         — strategy whose send() raises ``exc``
    recording_registry  — frozen registry of email/sms/slack recorders
"""

from __future__ import annotations

import threading
from typing import Dict, List, Tuple

import pytest

from backend.app.core.logging_config import set_request_context
from backend.app.notifications.registry import StrategyRegistry


class RecordingStrategy:
    """Remembers every call instead of writing output."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, str]] = []
        self._lock = threading.Lock()

    def send(self, to: str, message: str) -> None:
        with self._lock:
            self.calls.append((to, message))


class RaisingStrategy:
    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    def send(self, to: str, message: str) -> None:
        raise self.exc


@pytest.fixture
def recorder():
    return RecordingStrategy


@pytest.fixture
def raiser():
    return RaisingStrategy


@pytest.fixture
def recording_registry() -> Tuple[StrategyRegistry, Dict[str, RecordingStrategy]]:
    registry = StrategyRegistry()
    recorders = {name: RecordingStrategy() for name in ("email", "sms", "slack")}
    for name, strategy in recorders.items():
        registry.register(name, strategy)
    registry.freeze()
    return registry, recorders


@pytest.fixture(autouse=True)
def _clear_request_context():
    """Dispatcher calls outside a request bind a channel into the log context."""
    set_request_context()
    yield
    set_request_context()

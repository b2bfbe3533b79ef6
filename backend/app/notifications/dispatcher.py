"""
dispatcher.py — Resolve a channel and hand the message to its strategy.

The dispatcher performs no recovery: ChannelNotFoundError from the
registry and any exception raised by a strategy reach the caller
unchanged. The HTTP layer turns them into responses.
"""

from __future__ import annotations

import logging

from backend.app.core.errors import ValidationError
from backend.app.core.logging_config import bind_request_context
from backend.app.notifications.registry import StrategyRegistry

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Single entry point for sending a notification by channel name."""

    def __init__(self, registry: StrategyRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> StrategyRegistry:
        return self._registry

    def send(self, channel: str, to: str, message: str) -> None:
        """
        Send ``message`` to ``to`` through the strategy registered as ``channel``.

        ``to`` and ``message`` are passed through untouched.
        """
        if not isinstance(channel, str) or not channel:
            raise ValidationError("channel must be a non-empty string", field="channel")

        bind_request_context(channel=channel)
        strategy = self._registry.resolve(channel)

        logger.info(
            "Dispatching via '%s' (%s)",
            channel, type(strategy).__name__,
            extra={"channel": channel, "strategy": type(strategy).__name__},
        )
        strategy.send(to, message)

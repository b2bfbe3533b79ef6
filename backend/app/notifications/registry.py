"""
registry.py — Channel name → notification strategy lookup table.

═══════════════════════════════════════════════════════════════════════════
LIFECYCLE
═══════════════════════════════════════════════════════════════════════════

    build_registry(["email", "sms", "slack"])
        │
        ├── register("email", EmailStrategy())
        ├── register("sms",   SmsStrategy())
        ├── register("slack", ChatStrategy())
        │
        └── freeze()   →  read-only for the rest of the process

    resolve(name)  →  exact, case-sensitive match or ChannelNotFoundError

═══════════════════════════════════════════════════════════════════════════
CONCURRENCY
═══════════════════════════════════════════════════════════════════════════

Lookups read an immutable snapshot and take no lock. Writes build a new
mapping under a lock and swap it in (copy-on-write), so a lookup running
alongside a registration sees either the old or the new table, never a
half-updated one. After freeze() every write is rejected.
"""

from __future__ import annotations

import logging
import threading
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Type

from backend.app.core.errors import (
    ChannelNotFoundError,
    ConfigurationError,
    RegistryFrozenError,
    ValidationError,
)
from backend.app.notifications.channels import (
    ChatStrategy,
    ConsoleStrategy,
    EmailStrategy,
    NotificationStrategy,
    SmsStrategy,
)

logger = logging.getLogger(__name__)


# Built-in channel name → strategy class
BUILTIN_STRATEGIES: Dict[str, Type[ConsoleStrategy]] = {
    "email": EmailStrategy,
    "sms":   SmsStrategy,
    "slack": ChatStrategy,
}

DEFAULT_CHANNELS: List[str] = list(BUILTIN_STRATEGIES)


class StrategyRegistry:
    """Maps channel identifiers to live strategy instances."""

    def __init__(self) -> None:
        self._strategies: Mapping[str, NotificationStrategy] = MappingProxyType({})
        self._lock = threading.Lock()
        self._frozen = False

    # ── Writes ──

    def register(self, name: str, strategy: NotificationStrategy) -> None:
        """
        Register ``strategy`` under ``name``.

        The last registration for a name wins; overriding logs a warning.
        Raises RegistryFrozenError once the registry has been frozen.
        """
        if not isinstance(name, str) or not name:
            raise ValidationError("Channel name must be a non-empty string", field="name")
        if not callable(getattr(strategy, "send", None)):
            raise ValidationError(
                f"Strategy for '{name}' has no send(to, message) method",
                field="strategy",
            )

        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(name)
            updated = dict(self._strategies)
            previous = updated.get(name)
            updated[name] = strategy
            self._strategies = MappingProxyType(updated)

        if previous is not None:
            logger.warning(
                "Channel '%s' re-registered: %r replaces %r",
                name, strategy, previous,
                extra={"channel": name},
            )
        else:
            logger.debug("Registered channel '%s' → %r", name, strategy, extra={"channel": name})

    def freeze(self) -> None:
        """Make the registry read-only."""
        with self._lock:
            self._frozen = True
        logger.info("Strategy registry frozen with channels: %s", ", ".join(self.channels()))

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ── Reads ──

    def resolve(self, name: str) -> NotificationStrategy:
        """Return the strategy for ``name`` or raise ChannelNotFoundError."""
        strategies = self._strategies
        try:
            return strategies[name]
        except KeyError:
            raise ChannelNotFoundError(name, available=strategies.keys()) from None

    def channels(self) -> List[str]:
        return sorted(self._strategies)

    def __contains__(self, name: object) -> bool:
        return name in self._strategies

    def __len__(self) -> int:
        return len(self._strategies)

    def __iter__(self) -> Iterator[str]:
        return iter(self.channels())


def build_registry(
    channels: Optional[Iterable[str]] = None,
    *,
    freeze: bool = True,
) -> StrategyRegistry:
    """
    Build a registry from built-in channel names.

    Parameters
    ----------
    channels : iterable of str | None
        Built-in names to register. Defaults to every built-in.
    freeze : bool
        Freeze the registry once populated.

    Raises
    ------
    ConfigurationError
        If the list is empty or names a channel with no built-in strategy.
    """
    names = list(DEFAULT_CHANNELS if channels is None else channels)
    if not names:
        raise ConfigurationError("No notification channels configured")

    unknown = [n for n in names if n not in BUILTIN_STRATEGIES]
    if unknown:
        raise ConfigurationError(
            f"Unknown notification channel(s) in configuration: {', '.join(unknown)}",
            unknown=unknown,
            supported=sorted(BUILTIN_STRATEGIES),
        )

    registry = StrategyRegistry()
    for name in names:
        registry.register(name, BUILTIN_STRATEGIES[name]())

    if freeze:
        registry.freeze()

    return registry

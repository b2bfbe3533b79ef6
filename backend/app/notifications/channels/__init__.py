"""
channels — Per-channel notification strategies.

Each channel module exposes a strategy class implementing:
    send(to, message) → None

Strategies are stateless. Lookup by channel name lives in registry.
"""

from backend.app.notifications.channels.base import ConsoleStrategy, NotificationStrategy
from backend.app.notifications.channels.chat import ChatStrategy
from backend.app.notifications.channels.email import EmailStrategy
from backend.app.notifications.channels.sms import SmsStrategy

__all__ = [
    "NotificationStrategy",
    "ConsoleStrategy",
    "EmailStrategy",
    "SmsStrategy",
    "ChatStrategy",
]

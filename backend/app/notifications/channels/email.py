"""
email.py — Email notification channel.

Output line:
    Sending Email to alice@example.com: hi
"""

from __future__ import annotations

from backend.app.notifications.channels.base import ConsoleStrategy


class EmailStrategy(ConsoleStrategy):
    """Email channel, registered as ``email``."""

    label = "Sending Email"

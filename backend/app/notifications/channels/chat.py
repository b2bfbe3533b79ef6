"""
chat.py — Chat (Slack) notification channel.

Recipients are channel names (``#general``) or user handles; the value is
opaque here.
"""

from __future__ import annotations

from backend.app.notifications.channels.base import ConsoleStrategy


class ChatStrategy(ConsoleStrategy):
    """Slack-style chat channel, registered as ``slack``."""

    label = "Sending Slack message"

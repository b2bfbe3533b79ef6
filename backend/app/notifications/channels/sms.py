"""
sms.py — SMS notification channel.

The recipient is passed through as given; no E.164 normalisation.
"""

from __future__ import annotations

from backend.app.notifications.channels.base import ConsoleStrategy


class SmsStrategy(ConsoleStrategy):
    label = "Sending SMS"

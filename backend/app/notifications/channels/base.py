"""
base.py — Strategy protocol and the console-writing base class.

Every channel implements one capability:

    send(to: str, message: str) -> None

The built-in channels do no network I/O. Each writes a single
human-readable line to a diagnostic stream (stdout unless another stream
is injected) and returns. A real transport can replace any of them as
long as it keeps the same signature; failures should be raised as
StrategyFailureError so the HTTP layer can report them.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, Protocol, TextIO, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class NotificationStrategy(Protocol):
    """A channel able to deliver one message to one recipient."""

    def send(self, to: str, message: str) -> None:  # pragma: no cover - Protocol
        ...


class ConsoleStrategy:
    """
    Writes ``<label> to <to>: <message>`` to a text stream.

    Subclasses only set ``label``. The stream is looked up at send time so
    that a replaced ``sys.stdout`` is honoured.
    """

    label: str = "Sending notification"

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def format_line(self, to: str, message: str) -> str:
        return f"{self.label} to {to}: {message}"

    def send(self, to: str, message: str) -> None:
        out = self.stream
        out.write(self.format_line(to, message) + "\n")
        out.flush()
        logger.debug(
            "%s wrote %d-char message",
            type(self).__name__, len(message),
            extra={"strategy": type(self).__name__},
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

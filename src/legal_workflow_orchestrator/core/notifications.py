"""User-visible notifications.

Best-effort reactions (e.g. attaching a workflow to a new document) report
failures here instead of raising.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal, Protocol

logger = logging.getLogger(__name__)

Severity = Literal["info", "warning", "error"]


@dataclass(frozen=True, slots=True)
class Notification:
    severity: Severity
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_json(self) -> dict[str, object]:
        return {
            "severity": self.severity,
            "message": self.message,
            "createdAt": self.created_at.isoformat(),
        }


class Notifier(Protocol):
    """Sink for messages meant for the end user."""

    def notify(self, severity: Severity, message: str) -> None: ...


class LoggingNotifier(Notifier):
    """Forward notifications to the log only."""

    def notify(self, severity: Severity, message: str) -> None:
        level = {"info": logging.INFO, "warning": logging.WARNING}.get(severity, logging.ERROR)
        logger.log(level, message, extra={"notification": True})


class MemoryNotifier(LoggingNotifier):
    """Log notifications and keep the most recent ones for display."""

    def __init__(self, maxlen: int = 200) -> None:
        self._items: deque[Notification] = deque(maxlen=maxlen)

    def notify(self, severity: Severity, message: str) -> None:
        super().notify(severity, message)
        self._items.append(Notification(severity=severity, message=message))

    def history(self) -> list[Notification]:
        return list(self._items)

    def clear(self) -> None:
        self._items.clear()

"""Non-blocking user notifications.

Reference-data and dashboard reads never raise to their callers; when they
degrade they emit a notification instead, which the presentation layer shows
as a toast and the CLI prints to stderr.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Protocol

import structlog

LOGGER = structlog.get_logger(__name__)

Level = Literal["info", "warning", "error"]


@dataclass(frozen=True, slots=True)
class Notification:
    level: Level
    title: str
    description: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class Notifier(Protocol):
    def notify(self, level: Level, title: str, description: str) -> None: ...


class LoggingNotifier:
    """Write notifications to the structured log only."""

    def notify(self, level: Level, title: str, description: str) -> None:
        log = getattr(LOGGER, level, LOGGER.info)
        log("notification.emitted", title=title, description=description)


class CollectingNotifier:
    """Keep notifications in memory for later display; also logs them."""

    def __init__(self, *, max_items: int = 100) -> None:
        self._max_items = max_items
        self._items: list[Notification] = []
        self._log = LoggingNotifier()

    def notify(self, level: Level, title: str, description: str) -> None:
        self._items.append(Notification(level=level, title=title, description=description))
        if len(self._items) > self._max_items:
            del self._items[: len(self._items) - self._max_items]
        self._log.notify(level, title, description)

    @property
    def items(self) -> list[Notification]:
        return list(self._items)

    def drain(self) -> list[Notification]:
        items, self._items = self._items, []
        return items


__all__ = ["CollectingNotifier", "Level", "LoggingNotifier", "Notification", "Notifier"]

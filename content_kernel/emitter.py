"""
Content Kernel — Event Emitter

Append-only, ordered notification log with optional subscribers.

GUARANTEES:
  - Entries are never updated; only clear() removes them, when the
    owning engine resets to an empty store
  - Order of append is the order observers see
  - A failing subscriber never undoes the transition it was told about
    and never prevents later subscribers from being called
"""

from __future__ import annotations

import logging
from typing import Callable, List, Tuple

from .events import Notification

logger = logging.getLogger(__name__)

Subscriber = Callable[[Notification], None]


class EventEmitter:
    """In-memory notification log."""

    def __init__(self) -> None:
        self._log: List[Notification] = []
        self._subscribers: List[Subscriber] = []

    @property
    def events(self) -> Tuple[Notification, ...]:
        """Immutable view of everything appended so far."""
        return tuple(self._log)

    def __len__(self) -> int:
        return len(self._log)

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def append(self, event: Notification) -> None:
        """Record ``event`` and notify subscribers."""
        self._log.append(event)
        for subscriber in self._subscribers:
            try:
                subscriber(event)
            except Exception:
                logger.warning(
                    "Subscriber %r failed on %s event", subscriber, event.event_type,
                    exc_info=True,
                )

    def clear(self) -> None:
        """Drop every entry. Subscribers stay registered."""
        self._log.clear()

from __future__ import annotations
from logging import Logger, getLogger as logging_getLogger
from typing import Callable, List, Optional

from ..log import SqlCallEvent

EventHandler = Callable[[SqlCallEvent], None]


class EventHost:
    """
    Ordered multicast register of execution-event subscribers.

    ``publish`` calls every subscriber synchronously, in registration order,
    over a snapshot of the list. A subscriber that raises is logged and
    skipped; the remaining subscribers still receive the event and the
    publisher never sees the failure.
    """

    def __init__(self, logger: Optional[Logger] = None) -> None:
        self.logger = logger or logging_getLogger(__name__)
        self._handlers: List[EventHandler] = []

    def add(self, handler: EventHandler) -> None:
        if handler is None:
            return
        self._handlers.append(handler)

    def remove(self, handler: EventHandler) -> None:
        """Remove the most recent registration of ``handler``; unknown handlers are ignored."""
        for i in range(len(self._handlers) - 1, -1, -1):
            if self._handlers[i] is handler or self._handlers[i] == handler:
                del self._handlers[i]
                return

    def clear(self) -> None:
        self._handlers.clear()

    @property
    def handlers(self) -> tuple:
        return tuple(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)

    def __contains__(self, handler: object) -> bool:
        return any(h is handler or h == handler for h in self._handlers)

    def publish(self, event: SqlCallEvent) -> None:
        for handler in tuple(self._handlers):
            try:
                handler(event)
            except Exception as e:
                self.logger.error(f"Event subscriber {handler!r} failed: {e}")

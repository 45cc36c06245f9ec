"""Event sources that feed a SessionTracker.

An event source is anything with ``subscribe(event_type, handler)`` that
returns an unsubscribe callable.  In a browser this is the DOM; on the
server (replays, tests) it is the EventBus below.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)

EventHandler = Callable[[dict[str, Any]], None]
Unsubscribe = Callable[[], None]


class EventSource(Protocol):
    def subscribe(self, event_type: str, handler: EventHandler) -> Unsubscribe:
        """Register *handler* for *event_type*; the return value removes it."""
        ...


class EventBus:
    """Minimal synchronous pub/sub used to replay recorded browser events."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}

    def subscribe(self, event_type: str, handler: EventHandler) -> Unsubscribe:
        self._handlers.setdefault(event_type, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def emit(self, event_type: str, payload: dict[str, Any] | None = None) -> int:
        """Dispatch *payload* to every handler of *event_type*; returns the handler count."""
        handlers = list(self._handlers.get(event_type, []))
        for handler in handlers:
            handler(payload or {})
        logger.debug("Dispatched %s to %d handler(s)", event_type, len(handlers))
        return len(handlers)

    def handler_count(self, event_type: str) -> int:
        return len(self._handlers.get(event_type, []))

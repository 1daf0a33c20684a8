"""Event Dispatcher - routes server notifications to subscribers.

Notifications are delivered synchronously, in registration order. A
subscriber that raises is logged and skipped; the remaining subscribers
still receive the event. Subscribers returning a coroutine have it
scheduled as a task so the reader loop never waits on them.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import Any

# Type for event callbacks
EventHandler = Callable[[Any], Any]

WILDCARD = "*"


class EventDispatcher:
    """Event name -> ordered subscriber list.

    Subscribing to ``"*"`` receives every event, after the specific
    subscribers; wildcard handlers are called with ``(name, payload)``.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._subscriptions: dict[str, list[EventHandler]] = {}
        self._tasks: set[asyncio.Task[Any]] = set()

    def on(self, event: str, handler: EventHandler) -> Callable[[], None]:
        """Subscribe to an event.

        Returns:
            Unsubscribe function
        """
        self._subscriptions.setdefault(event, []).append(handler)

        def unsubscribe() -> None:
            self.off(event, handler)

        return unsubscribe

    def once(self, event: str, handler: EventHandler) -> Callable[[], None]:
        """Subscribe for a single delivery."""

        def wrapper(*args: Any) -> Any:
            unsubscribe()
            return handler(*args)

        unsubscribe = self.on(event, wrapper)
        return unsubscribe

    def off(self, event: str, handler: EventHandler | None = None) -> None:
        """Remove one handler, or every handler of ``event`` if none is given."""
        if handler is None:
            self._subscriptions.pop(event, None)
            return
        handlers = self._subscriptions.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)
            if not handlers:
                del self._subscriptions[event]

    def listeners(self, event: str) -> list[EventHandler]:
        return list(self._subscriptions.get(event, []))

    def dispatch(self, event: str, payload: Any = None) -> int:
        """Deliver an event to its subscribers.

        Returns:
            Number of subscribers that were called
        """
        # Copies so handlers may unsubscribe during delivery
        specific_subs = list(self._subscriptions.get(event, []))
        wildcard_subs = [] if event == WILDCARD else list(self._subscriptions.get(WILDCARD, []))

        for handler in specific_subs:
            self._call(event, handler, payload)

        for handler in wildcard_subs:
            self._call(event, handler, event, payload)

        return len(specific_subs) + len(wildcard_subs)

    def clear(self) -> None:
        """Remove all subscribers."""
        self._subscriptions = {}

    def _call(self, event: str, handler: EventHandler, *args: Any) -> None:
        try:
            result = handler(*args)
        except Exception:
            self._logger.exception(f"Error in subscriber for {event}")
            return

        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(lambda t: self._task_done(event, t))

    def _task_done(self, event: str, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._logger.error(f"Error in async subscriber for {event}", exc_info=exc)

"""
Page Event Bus.

In-process publish/subscribe used by page components to coordinate
side panels: show, hide and toggle requests for the drawer, and the
"shown" announcements of competing panels.
"""

import inspect
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any

from notebook.backend.core.logging import get_logger, log_with_source

logger = get_logger(__name__)

Handler = Callable[[Any], Awaitable[None] | None]


class PubSub:
    """Topic-based publish/subscribe. Handlers may be sync or async."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, topic: str, handler: Handler) -> Callable[[], None]:
        """
        Register a handler for a topic.

        Returns:
            Callable that removes the subscription
        """
        self._handlers[topic].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[topic]:
                self._handlers[topic].remove(handler)

        return unsubscribe

    async def publish(self, topic: str, payload: Any = None) -> int:
        """
        Call every handler of a topic in subscription order.

        Returns:
            Number of handlers called
        """
        handlers = list(self._handlers.get(topic, ()))
        log_with_source(logger, "drawer", "debug", "Bus publish", topic=topic, handlers=len(handlers))
        for handler in handlers:
            result = handler(payload)
            if inspect.isawaitable(result):
                await result
        return len(handlers)

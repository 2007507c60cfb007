from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Hashable, List

from core.errors import InvalidArgumentError

logger = logging.getLogger("kvcache")

ExpirationHandler = Callable[[Hashable, Any], None]


class ExpirationNotifier:
    """Subscriber list for items evicted by the sweeper.

    Handlers receive ``(key, value)`` once per removed item. They may be called
    from the sweeper thread and from callers of ``CacheStore.sweep()`` at the
    same time, with no ordering across keys.
    """

    def __init__(self) -> None:
        self._handlers: List[ExpirationHandler] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._handlers)

    def subscribe(self, handler: ExpirationHandler) -> ExpirationHandler:
        if not callable(handler):
            raise InvalidArgumentError("handler must be callable.", argument="handler")
        with self._lock:
            self._handlers.append(handler)
        return handler

    def unsubscribe(self, handler: ExpirationHandler) -> bool:
        with self._lock:
            try:
                self._handlers.remove(handler)
            except ValueError:
                return False
            return True

    def notify(self, key: Hashable, value: Any) -> int:
        """Call every handler; return how many of them raised."""
        with self._lock:
            handlers = list(self._handlers)

        failures = 0
        for handler in handlers:
            try:
                handler(key, value)
            except Exception:
                failures += 1
                logger.exception(
                    "item_expired_handler_error",
                    extra={"key": repr(key), "handler": getattr(handler, "__qualname__", repr(handler))},
                )
        return failures

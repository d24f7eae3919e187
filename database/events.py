import logging
import threading
from typing import Callable, Dict, List

__all__ = ["EventBus", "TRANSACTIONS_CHANGED", "CATEGORIES_CHANGED"]

logger = logging.getLogger(__name__)

TRANSACTIONS_CHANGED = "transactions_changed"
CATEGORIES_CHANGED = "categories_changed"


class EventBus:
    """Topic-based change notifications published by the DAOs after each commit."""

    def __init__(self):
        self._subscribers: Dict[str, List[Callable[[], None]]] = {}
        self._lock = threading.Lock()

    def subscribe(self, name: str, handler: Callable[[], None]) -> None:
        with self._lock:
            self._subscribers.setdefault(name, []).append(handler)

    def unsubscribe(self, name: str, handler: Callable[[], None]) -> None:
        with self._lock:
            handlers = self._subscribers.get(name)
            if handlers and handler in handlers:
                handlers.remove(handler)

    def publish(self, name: str) -> int:
        """Call every handler of `name`; returns how many were called.

        Handlers are snapshotted first so they may unsubscribe while running.
        """
        with self._lock:
            handlers = list(self._subscribers.get(name, ()))
        for handler in handlers:
            handler()
        logger.debug("Published %s to %d handler(s)", name, len(handlers))
        return len(handlers)

    def subscriber_count(self, name: str) -> int:
        with self._lock:
            return len(self._subscribers.get(name, ()))

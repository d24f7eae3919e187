"""Reactive reads: queries that re-emit whenever the tables they read change.

A subscription emits the current value immediately, then again after every
publish of one of its topics on the EventBus, until it is disposed.
"""
import logging
import threading
from concurrent.futures import Executor
from typing import Callable, Generic, Iterable, Optional, TypeVar

from database.events import EventBus

logger = logging.getLogger(__name__)

T = TypeVar("T")
A = TypeVar("A")
B = TypeVar("B")

OnNext = Callable[[T], None]
OnError = Callable[[Exception], None]

_MISSING = object()


class Subscription:
    """Handle for a live subscription. dispose() is required and idempotent."""

    def __init__(self, on_dispose: Optional[Callable[[], None]] = None):
        self._on_dispose = on_dispose
        self._disposed = False
        self._lock = threading.Lock()

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            callback, self._on_dispose = self._on_dispose, None
        if callback is not None:
            callback()


class CompositeSubscription(Subscription):
    """Disposes all of its children together."""

    def __init__(self, children: Iterable[Subscription] = ()):
        self._children: list[Subscription] = list(children)
        super().__init__(self._dispose_children)

    def add(self, child: Subscription) -> Subscription:
        if self.disposed:
            child.dispose()
        else:
            self._children.append(child)
        return child

    def _dispose_children(self):
        children, self._children = self._children, []
        for child in children:
            child.dispose()


def _log_error(e: Exception) -> None:
    logger.error("Live query failed with no error handler: %s", e)


class _LiveSubscription(Subscription, Generic[T]):
    def __init__(self, query: "LiveQuery[T]", on_next: OnNext, on_error: Optional[OnError],
                 executor: Optional[Executor]):
        super().__init__(self._detach)
        self._query = query
        self._on_next = on_next
        self._on_error = on_error or _log_error
        self._executor = executor
        self._ticket_lock = threading.Lock()
        self._latest_ticket = 0

    def attach(self):
        for topic in self._query.topics:
            self._query.bus.subscribe(topic, self.emit)
        self.emit()

    def _detach(self):
        for topic in self._query.topics:
            self._query.bus.unsubscribe(topic, self.emit)

    def emit(self):
        with self._ticket_lock:
            self._latest_ticket += 1
            ticket = self._latest_ticket
        if self._executor is None:
            self._run(ticket)
        else:
            self._executor.submit(self._run, ticket)

    def _superseded(self, ticket: int) -> bool:
        with self._ticket_lock:
            return self.disposed or ticket != self._latest_ticket

    def _run(self, ticket: int):
        if self._superseded(ticket):
            return
        try:
            value = self._query.get()
            if self._superseded(ticket):
                return
            self._on_next(value)
        except Exception as e:
            if not self.disposed:
                self._on_error(e)


class LiveQuery(Generic[T]):
    def __init__(self, bus: EventBus, topics: Iterable[str], fetch: Callable[[], T],
                 label: str = ""):
        self.bus = bus
        self.topics = tuple(topics)
        self._fetch = fetch
        self.label = label

    def __repr__(self):
        return f"LiveQuery({self.label or self._fetch!r}, topics={self.topics})"

    def get(self) -> T:
        """Run the query once."""
        return self._fetch()

    def map(self, fn: Callable[[T], A]) -> "LiveQuery[A]":
        return LiveQuery(self.bus, self.topics, lambda: fn(self._fetch()), self.label)

    def subscribe(self, on_next: OnNext, on_error: Optional[OnError] = None,
                  executor: Optional[Executor] = None) -> Subscription:
        """Emit now and after every change. Fetches run on `executor` when given.

        Errors raised by the fetch or by on_next go to on_error. Results of a
        fetch overtaken by a newer change are dropped.
        """
        sub = _LiveSubscription(self, on_next, on_error, executor)
        sub.attach()
        logger.debug("Subscribed to %r", self)
        return sub


class CombinedQuery(Generic[T]):
    """Latest values of two live inputs joined by a pure combine function."""

    def __init__(self, first, second, combine: Callable[[A, B], T]):
        self._first = first
        self._second = second
        self._combine = combine

    def get(self) -> T:
        return self._combine(self._first.get(), self._second.get())

    def subscribe(self, on_next: OnNext, on_error: Optional[OnError] = None,
                  executor: Optional[Executor] = None) -> Subscription:
        lock = threading.Lock()
        latest = [_MISSING, _MISSING]
        composite = CompositeSubscription()

        def handler(index: int):
            def handle(value):
                with lock:
                    latest[index] = value
                    if composite.disposed or any(v is _MISSING for v in latest):
                        return
                    on_next(self._combine(latest[0], latest[1]))
            return handle

        composite.add(self._first.subscribe(handler(0), on_error, executor))
        composite.add(self._second.subscribe(handler(1), on_error, executor))
        return composite


def combine_latest(first, second, combine: Callable[[A, B], T]) -> CombinedQuery[T]:
    """Recompute only when either input emits, once both have emitted."""
    return CombinedQuery(first, second, combine)

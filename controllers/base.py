import logging
import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import replace
from typing import Callable, Generic, TypeVar

from database.errors import StoreError
from database.live_query import CompositeSubscription, Subscription

logger = logging.getLogger(__name__)

S = TypeVar("S")

Dispatch = Callable[[Callable[[], None]], None]


def call_now(fn: Callable[[], None]) -> None:
    fn()


def error_message(exc: Exception) -> str:
    if isinstance(exc, StoreError):
        return f"Could not load data: {exc}"
    return f"Something went wrong: {exc}"


class ViewController(Generic[S]):
    """Holds one view's state and the store subscriptions feeding it.

    Store work runs on `executor`; state changes reach listeners through
    `dispatch` (e.g. ``lambda fn: widget.after(0, fn)`` to hop onto the Tk
    thread). Subscriptions live from start() to stop(), tied to the view.
    """

    def __init__(self, initial_state: S, executor: Executor | None = None,
                 dispatch: Dispatch | None = None):
        self._state = initial_state
        self._state_lock = threading.RLock()
        self._listeners: list[Callable[[S], None]] = []
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=4, thread_name_prefix=type(self).__name__
        )
        self._dispatch = dispatch or call_now
        self._subscriptions = CompositeSubscription()
        self._active = False

    # ── State ────────────────────────────────────────────────────────────────

    @property
    def state(self) -> S:
        with self._state_lock:
            return self._state

    @property
    def is_active(self) -> bool:
        return self._active

    def observe(self, listener: Callable[[S], None]) -> Subscription:
        """Call listener with the current state now and after every change."""
        self._listeners.append(listener)
        listener(self.state)
        return Subscription(lambda: self._listeners.remove(listener))

    def _update(self, **changes) -> None:
        with self._state_lock:
            self._state = replace(self._state, **changes)
        self._dispatch(self._notify)

    def _notify(self):
        state = self.state
        for listener in list(self._listeners):
            listener(state)

    # ── Lifecycle ────────────────────────────────────────────────────────────

    def start(self) -> None:
        """Subscribe to the store. A second start while active is a no-op."""
        with self._state_lock:
            if self._active:
                return
            self._active = True
            self._subscriptions = CompositeSubscription()
        logger.debug("%s started", type(self).__name__)
        self._on_start()

    def stop(self) -> None:
        """Dispose every subscription held for the view."""
        with self._state_lock:
            if not self._active:
                return
            self._active = False
            subscriptions = self._subscriptions
        self._on_stop()
        subscriptions.dispose()
        logger.debug("%s stopped", type(self).__name__)

    def close(self) -> None:
        self.stop()
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)

    def retry(self) -> None:
        """Clear the error and resubscribe from scratch."""
        self.stop()
        with self._state_lock:
            self._state = replace(self._state, error=None)
        self.start()

    def clear_error(self) -> None:
        self._update(error=None)

    def _hold(self, subscription: Subscription) -> Subscription:
        return self._subscriptions.add(subscription)

    def _on_start(self) -> None:
        raise NotImplementedError

    def _on_stop(self) -> None:
        pass

    # ── Failures ─────────────────────────────────────────────────────────────

    def _fail(self, exc: Exception, **changes) -> None:
        """Turn a failure into view state. Only the first error is shown until cleared.

        `changes` are applied alongside; without any, loading simply stops.
        """
        if not changes:
            changes = {"is_loading": False}
        if isinstance(exc, StoreError):
            logger.error("%s: %s", type(self).__name__, exc)
        else:
            logger.error("%s: unexpected failure", type(self).__name__, exc_info=exc)
        with self._state_lock:
            if self._state.error is None:
                changes["error"] = error_message(exc)
            self._state = replace(self._state, **changes)
        self._dispatch(self._notify)

    def _run_in_background(self, fn: Callable[[], None], **fail_changes) -> None:
        def task():
            try:
                fn()
            except Exception as e:
                self._fail(e, **fail_changes)
        self._executor.submit(task)

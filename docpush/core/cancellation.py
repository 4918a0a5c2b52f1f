"""
Cooperative Cancellation for Blocking Push Calls.

A push call runs on the caller's thread for its whole retry lifetime. Other
threads stop it through a CancellationToken:

- The pusher checks the token before and after each delivery attempt
- An in-flight delivery is aborted through a callback registered on the token
- Backoff sleeps wait on the token instead of time.sleep
- The token for the running call is bound to a ContextVar, so error
  handlers can sleep cancellably without the token in their signature
"""

import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar

from docpush.core.errors import PushCancelled


class CancellationToken:
    """
    Thread-safe cancellation signal shared between a push call and its owner.

    Usage:
        token = CancellationToken()
        worker = threading.Thread(
            target=pusher.push_doc_ids, args=(ids,), kwargs={"cancel_token": token}
        )
        worker.start()
        ...
        token.cancel()
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    def cancel(self) -> None:
        """
        Signal cancellation; wakes any thread waiting on this token and runs
        the registered callbacks once, on the cancelling thread.
        """
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
        for callback in callbacks:
            callback()

    def add_callback(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` on cancel; runs it now if already cancelled."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def remove_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    @contextmanager
    def on_cancel(self, callback: Callable[[], None]) -> Iterator[None]:
        """Register ``callback`` for the duration of the block."""
        self.add_callback(callback)
        try:
            yield
        finally:
            self.remove_callback(callback)

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block up to ``timeout`` seconds. Returns True if cancelled."""
        return self._event.wait(timeout)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise PushCancelled()


_current_token: ContextVar[CancellationToken | None] = ContextVar(
    "cancellation_token", default=None
)


def get_current_token() -> CancellationToken | None:
    """Token bound to the running push call, if any."""
    return _current_token.get()


@contextmanager
def cancellation_scope(token: CancellationToken | None) -> Iterator[CancellationToken | None]:
    """Bind ``token`` as the current token for the duration of the block."""
    reset = _current_token.set(token)
    try:
        yield token
    finally:
        _current_token.reset(reset)


def cancellable_sleep(seconds: float) -> None:
    """
    Sleep for ``seconds``, waking early if the current token is cancelled.

    Raises:
        PushCancelled: the token was cancelled before or during the sleep
    """
    token = _current_token.get()
    if token is None:
        if seconds > 0:
            time.sleep(seconds)
        return

    token.raise_if_cancelled()
    if seconds > 0 and token.wait(seconds):
        raise PushCancelled("Push cancelled during backoff")

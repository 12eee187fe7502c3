"""
Delivery onto the UI-owning execution context.

Worker threads never call listeners directly; they post() a callable and the
thread that owns the UI drains the queue.
"""
import queue
import time
from typing import Callable


class UiDispatcher:
    def post(self, fn: Callable[[], None]):
        raise NotImplementedError


class QueueDispatcher(UiDispatcher):
    """Single-consumer queue. Only the owning thread should call drain()/run_until()."""

    def __init__(self):
        self._q: queue.Queue[Callable[[], None]] = queue.Queue()

    def post(self, fn: Callable[[], None]):
        self._q.put(fn)

    def drain(self) -> int:
        """Run everything queued so far. Returns the number of callables run."""
        n = 0
        while True:
            try:
                fn = self._q.get_nowait()
            except queue.Empty:
                return n
            fn()
            n += 1

    def run_until(self, predicate: Callable[[], bool], timeout: float | None = None) -> bool:
        """Run posted callables until predicate() holds. False on timeout."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while not predicate():
            if deadline is None:
                wait = None
            else:
                wait = deadline - time.monotonic()
                if wait <= 0:
                    return False
            try:
                fn = self._q.get(timeout=wait)
            except queue.Empty:
                return predicate()
            fn()
        return True

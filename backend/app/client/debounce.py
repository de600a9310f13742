"""Debounced draft writes backed by a single pending timer."""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional, Protocol, Tuple

from app.core.config import settings

logger = logging.getLogger(__name__)


class Timer(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], Timer]


def thread_timer(delay_seconds: float, callback: Callable[[], None]) -> Timer:
    timer = threading.Timer(delay_seconds, callback)
    timer.daemon = True
    return timer


class Debouncer:
    """Runs only the most recently scheduled call once ``delay_ms`` passes quietly.

    ``flush`` runs the pending call immediately on the caller's thread,
    ``cancel`` drops it and ``close`` flushes and refuses further work.
    """

    def __init__(self, delay_ms: Optional[int] = None, *, timer_factory: TimerFactory = thread_timer) -> None:
        self.delay_ms = settings.draft_debounce_ms if delay_ms is None else delay_ms
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._timer: Optional[Timer] = None
        self._pending: Optional[Tuple[Callable[..., Any], tuple, dict]] = None
        # Bumped on every schedule and take; a timer only fires for its own generation.
        self._generation = 0
        self._closed = False

    @property
    def pending(self) -> bool:
        return self._pending is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def schedule(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        with self._lock:
            if self._closed:
                raise RuntimeError("Debouncer is closed")
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            generation = self._generation
            self._pending = (func, args, kwargs)
            self._timer = self._timer_factory(self.delay_ms / 1000.0, lambda: self._fire(generation))
            self._timer.start()

    def flush(self) -> bool:
        call = self._take()
        if call is None:
            return False
        func, args, kwargs = call
        func(*args, **kwargs)
        return True

    def cancel(self) -> bool:
        return self._take() is not None

    def close(self, *, flush: bool = True) -> None:
        if flush:
            self.flush()
        else:
            self.cancel()
        with self._lock:
            self._closed = True

    def _take(self) -> Optional[Tuple[Callable[..., Any], tuple, dict]]:
        with self._lock:
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            call, self._pending = self._pending, None
        return call

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                # Superseded after this timer woke but before it got the lock.
                return
            self._timer = None
            call, self._pending = self._pending, None
        if call is None:
            return
        func, args, kwargs = call
        try:
            func(*args, **kwargs)
        except Exception:  # timer thread has no caller to report to
            logger.exception("Debounced write failed")

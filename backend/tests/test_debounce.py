from __future__ import annotations

from typing import Callable, List

import pytest

from app.client.debounce import Debouncer


class _ManualTimer:
    def __init__(self, delay: float, callback: Callable[[], None]):
        self.delay = delay
        self.callback = callback
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self.callback()


class _TimerFactory:
    def __init__(self):
        self.timers: List[_ManualTimer] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> _ManualTimer:
        timer = _ManualTimer(delay, callback)
        self.timers.append(timer)
        return timer


@pytest.fixture()
def timers() -> _TimerFactory:
    return _TimerFactory()


def test_only_latest_call_runs(timers) -> None:
    calls: list[str] = []
    debouncer = Debouncer(500, timer_factory=timers)

    debouncer.schedule(calls.append, "first")
    debouncer.schedule(calls.append, "second")

    assert len(timers.timers) == 2
    assert timers.timers[0].cancelled is True
    assert timers.timers[1].delay == 0.5

    timers.timers[1].fire()
    assert calls == ["second"]
    assert debouncer.pending is False


def test_flush_runs_pending_call_immediately(timers) -> None:
    calls: list[int] = []
    debouncer = Debouncer(500, timer_factory=timers)
    debouncer.schedule(calls.append, 1)

    assert debouncer.flush() is True
    assert calls == [1]
    assert timers.timers[0].cancelled is True
    assert debouncer.flush() is False


def test_cancel_drops_pending_call(timers) -> None:
    calls: list[int] = []
    debouncer = Debouncer(500, timer_factory=timers)
    debouncer.schedule(calls.append, 1)

    assert debouncer.cancel() is True
    timers.timers[0].fire()
    assert calls == []


def test_close_flushes_and_refuses_new_work(timers) -> None:
    calls: list[int] = []
    debouncer = Debouncer(500, timer_factory=timers)
    debouncer.schedule(calls.append, 7)

    debouncer.close()

    assert calls == [7]
    assert debouncer.closed is True
    with pytest.raises(RuntimeError):
        debouncer.schedule(calls.append, 8)


def test_close_without_flush_discards(timers) -> None:
    calls: list[int] = []
    debouncer = Debouncer(500, timer_factory=timers)
    debouncer.schedule(calls.append, 7)

    debouncer.close(flush=False)

    assert calls == []


def test_failing_write_on_timer_is_logged_not_raised(timers, caplog) -> None:
    def explode() -> None:
        raise OSError("disk full")

    debouncer = Debouncer(500, timer_factory=timers)
    debouncer.schedule(explode)

    timers.timers[0].fire()

    assert "Debounced write failed" in caplog.text


def test_default_delay_comes_from_settings(timers) -> None:
    debouncer = Debouncer(timer_factory=timers)

    assert debouncer.delay_ms == 500


def test_superseded_timer_waking_late_does_nothing(timers) -> None:
    calls: list[str] = []
    debouncer = Debouncer(500, timer_factory=timers)
    debouncer.schedule(calls.append, "a")
    debouncer.schedule(calls.append, "b")

    # A thread timer that already woke cannot be cancelled; its callback still runs.
    timers.timers[0].callback()

    assert calls == []
    assert debouncer.pending is True

    timers.timers[1].fire()
    assert calls == ["b"]


def test_timer_waking_after_flush_does_not_write_again(timers) -> None:
    calls: list[str] = []
    debouncer = Debouncer(500, timer_factory=timers)
    debouncer.schedule(calls.append, "draft")
    debouncer.flush()
    debouncer.schedule(calls.append, "next")

    timers.timers[0].callback()

    assert calls == ["draft"]
    assert debouncer.pending is True

"""Interval scheduling primitives.

An IntervalScheduler invokes a callback roughly every ``period`` seconds until
the returned handle is cancelled. Timing is best-effort, not real-time.
"""
from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)


class IntervalHandle(Protocol):
    @property
    def active(self) -> bool:
        ...

    def cancel(self) -> None:
        ...


class IntervalScheduler(Protocol):
    def schedule(self, period: float, callback: Callable[[], object]) -> IntervalHandle:
        ...


def _run_guarded(callback: Callable[[], object]) -> None:
    # A failing tick must not stop future ticks
    try:
        callback()
    except Exception:
        logger.exception("Interval callback %r failed", callback)


class ThreadIntervalHandle:
    """Handle for a repeating callback driven by a daemon thread."""

    def __init__(self, period: float, callback: Callable[[], object]) -> None:
        self._period = period
        self._callback = callback
        self._stopped = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name=f"tidykit-interval-{period:g}s", daemon=True
        )

    def start(self) -> None:
        self._thread.start()

    def _run(self) -> None:
        # Event.wait returns True once cancel() has been called
        while not self._stopped.wait(self._period):
            _run_guarded(self._callback)

    @property
    def active(self) -> bool:
        return not self._stopped.is_set()

    def cancel(self, timeout: float = 1.0) -> None:
        self._stopped.set()
        # A tick may cancel its own handle; a thread cannot join itself
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    @property
    def alive(self) -> bool:
        return self._thread.is_alive()


class ThreadingIntervalScheduler:
    """Runs each scheduled callback on its own daemon thread."""

    def schedule(self, period: float, callback: Callable[[], object]) -> ThreadIntervalHandle:
        handle = ThreadIntervalHandle(period, callback)
        handle.start()
        logger.debug("Scheduled %r every %ss on a background thread", callback, period)
        return handle


class LoopIntervalHandle:
    """Handle for a repeating callback re-armed with loop.call_later."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        period: float,
        callback: Callable[[], object],
    ) -> None:
        self._loop = loop
        self._period = period
        self._callback = callback
        self._timer: asyncio.TimerHandle | None = None
        self._active = True

    def start(self) -> None:
        self._timer = self._loop.call_later(self._period, self._tick)

    def _tick(self) -> None:
        if not self._active:
            return
        _run_guarded(self._callback)
        if self._active:
            self._timer = self._loop.call_later(self._period, self._tick)

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        self._active = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class AsyncioIntervalScheduler:
    """Runs callbacks on an asyncio event loop, one tick at a time.

    Suits cooperative hosts: callbacks never run concurrently with other code
    on the same loop. Uses the running loop when none is given.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def schedule(self, period: float, callback: Callable[[], object]) -> LoopIntervalHandle:
        loop = self._loop if self._loop is not None else asyncio.get_running_loop()
        handle = LoopIntervalHandle(loop, period, callback)
        handle.start()
        return handle

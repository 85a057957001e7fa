"""Shared pytest fixtures for the tidykit test suite."""
from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from tidykit.domain.entities import CacheOptions
from tidykit.infrastructure.cache import ExpiringCache


class FakeClock:
    """Clock whose time only moves when a test advances it."""

    def __init__(self, start: float = 1000.0) -> None:
        self.current = start

    def now(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


class ManualHandle:
    def __init__(self, period: float, callback: Callable[[], object]) -> None:
        self.period = period
        self.callback = callback
        self.active = True
        self.cancel_calls = 0

    def cancel(self) -> None:
        self.cancel_calls += 1
        self.active = False


class ManualScheduler:
    """Records scheduled callbacks; tests fire them explicitly."""

    def __init__(self) -> None:
        self.handles: list[ManualHandle] = []

    def schedule(self, period: float, callback: Callable[[], object]) -> ManualHandle:
        handle = ManualHandle(period, callback)
        self.handles.append(handle)
        return handle

    def fire(self) -> None:
        for handle in self.handles:
            if handle.active:
                handle.callback()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def make_cache(clock: FakeClock, scheduler: ManualScheduler):  # type: ignore[no-untyped-def]
    """Factory building an ExpiringCache wired to the fake clock and scheduler."""
    created: list[ExpiringCache] = []

    def _make(options: CacheOptions | dict[str, Any] | None = None) -> ExpiringCache:
        cache = ExpiringCache(options, clock=clock, scheduler=scheduler)
        created.append(cache)
        return cache

    yield _make
    for cache in created:
        cache.destroy()

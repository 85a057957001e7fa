from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Source of timestamps in seconds used for expiry arithmetic."""

    def now(self) -> float:
        ...


class MonotonicClock:
    """Clock backed by time.monotonic(), looked up on every call."""

    def now(self) -> float:
        return time.monotonic()


def remaining(expires_at: float, now: float) -> float:
    """Return seconds left until expires_at; may be zero or negative once passed."""
    return expires_at - now

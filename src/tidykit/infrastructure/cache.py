"""Bounded string-keyed cache with per-entry expiry and periodic sweeping.

Reads through get()/take() treat entries past their expiry as absent.
keys(), has() and get_ttl() look at what is physically stored and do not
apply that check; only sweep() reclaims expired entries.
"""
from __future__ import annotations

import logging
import math
import threading
import weakref
from collections.abc import Callable, Iterable, Mapping
from typing import Any, TypeVar

from tidykit.domain.entities import CacheEntry, CacheOptions
from tidykit.domain.exceptions import CacheDestroyedError, ValidationError
from tidykit.domain.janitor import ResourceJanitor
from tidykit.infrastructure.scheduler import (
    IntervalHandle,
    IntervalScheduler,
    ThreadingIntervalScheduler,
)
from tidykit.infrastructure.time_utils import Clock, MonotonicClock, remaining

logger = logging.getLogger(__name__)

R = TypeVar("R")


def _schedule_sweep(cache: ExpiringCache, scheduler: IntervalScheduler, period: float) -> IntervalHandle:
    """Schedule cache.sweep() through a weak reference.

    The scheduler must not keep the cache alive: once a cache is collected
    without destroy(), the next tick cancels its own handle.
    """
    sweep_ref = weakref.WeakMethod(cache.sweep)
    handles: list[IntervalHandle] = []

    def tick() -> None:
        sweep = sweep_ref()
        if sweep is not None:
            sweep()
            return
        logger.debug("Cache was dropped without destroy(); stopping its sweep")
        if handles:
            handles[0].cancel()

    handles.append(scheduler.schedule(period, tick))
    return handles[0]


def _check_key(key: object) -> str:
    if not isinstance(key, str):
        raise ValidationError(f"cache key must be a str, got {type(key).__name__}")
    return key


def _check_seconds(name: str, value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if value < 0:
        raise ValidationError(f"{name} must not be negative, got {value!r}")
    return float(value)


class ExpiringCache:
    """In-process TTL cache owning a background sweep.

    Instances are safe to share with the sweep thread: every operation runs
    under the instance's own lock.
    """

    def __init__(
        self,
        options: CacheOptions | Mapping[str, Any] | None = None,
        *,
        clock: Clock | None = None,
        scheduler: IntervalScheduler | None = None,
        janitor: ResourceJanitor | None = None,
    ) -> None:
        self._options = options if isinstance(options, CacheOptions) else CacheOptions.overlay(options)
        self._clock = clock if clock is not None else MonotonicClock()
        self._store: dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._destroyed = False
        self._janitor = janitor if janitor is not None else ResourceJanitor()

        scheduler = scheduler if scheduler is not None else ThreadingIntervalScheduler()
        self._janitor.add_task(_schedule_sweep(self, scheduler, self._options.check_interval))

    @property
    def options(self) -> CacheOptions:
        return self._options

    def _locked(self, fn: Callable[[], R]) -> R:
        with self._lock:
            if self._destroyed:
                raise CacheDestroyedError("cache has been destroyed")
            return fn()

    def _expiry_for(self, ttl: float, now: float) -> float:
        # 0 is "never expires" both as an explicit ttl and as the default
        return 0.0 if ttl == 0 else now + ttl

    def _live_entry(self, key: str, now: float) -> CacheEntry | None:
        entry = self._store.get(key)
        if entry is None or entry.is_expired(now):
            return None
        return entry

    def set(self, key: str, value: Any, ttl: float | None = None) -> bool:
        """Store value under key.

        ttl overrides the default (0 = never expire). Returns False without
        touching the cache when a new key would exceed max_keys; replacing an
        existing key always succeeds.
        """
        _check_key(key)
        effective_ttl = self._options.default_ttl if ttl is None else _check_seconds("ttl", ttl)

        def _set() -> bool:
            max_keys = self._options.max_keys
            if max_keys > 0 and key not in self._store and len(self._store) >= max_keys:
                logger.debug("Rejecting %r: cache is at max_keys=%d", key, max_keys)
                return False
            now = self._clock.now()
            self._store[key] = CacheEntry(key=key, value=value, expires_at=self._expiry_for(effective_ttl, now))
            return True

        return self._locked(_set)

    def set_multiple(self, items: Iterable[Mapping[str, Any] | tuple]) -> bool:  # type: ignore[type-arg]
        """Apply set() to each item in order; stop at the first failure.

        Items are mappings with "key", "value" and optional "ttl", or
        (key, value[, ttl]) tuples. Items set before a failure stay set.
        """
        for item in items:
            if isinstance(item, Mapping):
                if "key" not in item or "value" not in item:
                    raise ValidationError(f"cache item needs 'key' and 'value': {item!r}")
                ok = self.set(item["key"], item["value"], item.get("ttl"))
            elif isinstance(item, tuple) and len(item) in (2, 3):
                ok = self.set(*item)
            else:
                raise ValidationError(f"unsupported cache item: {item!r}")
            if not ok:
                return False
        return True

    def get(self, key: str, default: Any = None) -> Any:
        """Return the live value for key, or default when missing or expired."""
        _check_key(key)

        def _get() -> Any:
            entry = self._live_entry(key, self._clock.now())
            return default if entry is None else entry.value

        return self._locked(_get)

    def take(self, key: str, default: Any = None) -> Any:
        """Like get(), but a hit also removes the entry."""
        _check_key(key)

        def _take() -> Any:
            entry = self._live_entry(key, self._clock.now())
            if entry is None:
                return default
            del self._store[key]
            return entry.value

        return self._locked(_take)

    def get_multiple(self, keys: Iterable[str]) -> dict[str, Any]:
        """Independent get() per key; misses map to None rather than being omitted."""
        return {key: self.get(key) for key in keys}

    def delete(self, key: str) -> int:
        _check_key(key)

        def _delete() -> int:
            return 1 if self._store.pop(key, None) is not None else 0

        return self._locked(_delete)

    def multiple_delete(self, keys: Iterable[str]) -> int:
        return sum(self.delete(key) for key in keys)

    def ttl(self, key: str, seconds: float) -> bool:
        """Move an existing entry's expiry to now + seconds. False if key is absent."""
        _check_key(key)
        seconds = _check_seconds("seconds", seconds)

        def _ttl() -> bool:
            entry = self._store.get(key)
            if entry is None:
                return False
            entry.expires_at = self._clock.now() + seconds
            return True

        return self._locked(_ttl)

    def get_ttl(self, key: str) -> float | None:
        """Seconds until key expires.

        None for a missing key and math.inf for an entry that never expires.
        Expiry is not checked first, so an expired entry that has not been
        swept yet yields zero or a negative number.
        """
        _check_key(key)

        def _get_ttl() -> float | None:
            entry = self._store.get(key)
            if entry is None:
                return None
            if entry.expires_at == 0:
                return math.inf
            return remaining(entry.expires_at, self._clock.now())

        return self._locked(_get_ttl)

    def keys(self) -> set[str]:
        """All stored keys, including expired ones not yet swept."""
        return self._locked(lambda: set(self._store))

    def has(self, key: str) -> bool:
        """Presence test that ignores expiry, mirroring keys()."""
        _check_key(key)
        return self._locked(lambda: key in self._store)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def __len__(self) -> int:
        return self._locked(lambda: len(self._store))

    def sweep(self) -> int:
        """Remove every entry whose non-zero expiry is at or before now."""

        def _sweep() -> int:
            now = self._clock.now()
            expired = [k for k, entry in self._store.items() if entry.is_expired(now)]
            for k in expired:
                del self._store[k]
            return len(expired)

        with self._lock:
            if self._destroyed:
                # A tick may race with destroy(); nothing left to sweep
                return 0
            removed = _sweep()
        if removed:
            logger.debug("Swept %d expired cache entries", removed)
        return removed

    def get_stats(self) -> dict[str, Any]:
        def _stats() -> dict[str, Any]:
            now = self._clock.now()
            expired = sum(1 for entry in self._store.values() if entry.is_expired(now))
            return {
                "entries": len(self._store),
                "expired_unswept": expired,
                "max_keys": self._options.max_keys,
                "default_ttl": self._options.default_ttl,
                "check_interval": self._options.check_interval,
            }

        return self._locked(_stats)

    def destroy(self) -> None:
        """Clear all entries and cancel the sweep. The cache cannot be reused."""
        with self._lock:
            if self._destroyed:
                return
            self._destroyed = True
            self._store.clear()
        self._janitor.clean()
        self._janitor.destroy()

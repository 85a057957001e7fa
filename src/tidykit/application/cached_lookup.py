from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from tidykit.application.async_bridge import wait_for_deferred
from tidykit.domain.deferred import Deferred
from tidykit.domain.exceptions import LookupCancelledError, LookupFailedError
from tidykit.domain.janitor import ResourceJanitor
from tidykit.infrastructure.cache import ExpiringCache

logger = logging.getLogger(__name__)

_MISSING = object()


class Fetcher(Protocol):
    async def fetch(self, key: str) -> Any:
        ...


class CachedLookupService:
    """Looks facts up once through a fetcher and serves repeats from a cache.

    The cache is injected so several services (or a whole process) can share
    one instance. Concurrent lookups of the same key share one fetch and one
    Deferred.
    """

    def __init__(self, fetcher: Fetcher, cache: ExpiringCache, *, ttl: float | None = None) -> None:
        self._fetcher = fetcher
        self._cache = cache
        self._ttl = ttl  # None -> the cache's default_ttl
        self._janitor = ResourceJanitor()
        self._in_flight: dict[str, Deferred] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def lookup(self, key: str) -> Deferred:
        """Return a Deferred for key's value.

        A cache hit is returned already fulfilled. Otherwise a fetch task is
        started on the running event loop.
        """
        cached = self._cache.get(key, _MISSING)
        if cached is not _MISSING:
            return Deferred.resolved(cached)

        pending = self._in_flight.get(key)
        if pending is not None:
            return pending

        def executor(resolve: Any, reject: Any) -> None:
            task = asyncio.get_running_loop().create_task(self._fetch(key, resolve, reject))
            task_id = self._janitor.add_task(task)
            self._tasks.add(task)

            def on_done(done: asyncio.Task[None]) -> None:
                self._tasks.discard(done)
                self._janitor.remove_task(task_id)
                if done.cancelled():
                    self._in_flight.pop(key, None)
                    reject(LookupCancelledError(f"Lookup for {key!r} was cancelled"))

            task.add_done_callback(on_done)

        deferred = Deferred(executor)
        if deferred.is_pending:
            self._in_flight[key] = deferred
        return deferred

    async def _fetch(self, key: str, resolve: Any, reject: Any) -> None:
        try:
            value = await self._fetcher.fetch(key)
        except Exception as exc:
            logger.warning("Lookup for %r failed: %s", key, exc)
            self._in_flight.pop(key, None)
            reject(exc)
            return

        self._in_flight.pop(key, None)
        if not self._cache.set(key, value, self._ttl):
            logger.info("Cache full; %r served without being cached", key)
        resolve(value)

    async def get(self, key: str) -> Any:
        """Await key's value, raising the rejection reason on failure."""
        success, values = await wait_for_deferred(self.lookup(key))
        if success:
            return values[0] if values else None
        if values and isinstance(values[0], BaseException):
            raise values[0]
        raise LookupFailedError(key, values)

    def invalidate(self, key: str) -> int:
        return self._cache.delete(key)

    async def close(self) -> None:
        """Cancel in-flight fetches and close the fetcher when it supports it."""
        tasks = list(self._tasks)
        self._janitor.clean()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        close = getattr(self._fetcher, "close", None)
        if close is not None:
            await close()

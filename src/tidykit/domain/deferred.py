"""Single-shot deferred results with chained callbacks.

A Deferred starts PENDING and settles exactly once. Resolution is driven by
explicit resolve()/reject() calls; nothing here blocks or suspends.

Fulfillment callbacks form a waterfall: each receives the previous callback's
output. ``and_then`` and ``catch`` return the same instance rather than a new
one, so every caller chaining on an instance joins the same waterfall.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from tidykit.domain.value_objects import DeferredStatus

logger = logging.getLogger(__name__)

Callback = Callable[..., Any]
Executor = Callable[[Callable[..., None], Callable[..., None]], Any]


def _as_values(output: Any) -> tuple:  # type: ignore[type-arg]
    """Normalise a callback return value into the next argument tuple."""
    if output is None:
        return ()
    if isinstance(output, tuple):
        return output
    return (output,)


def _first_value(values: tuple) -> Any:  # type: ignore[type-arg]
    """Collapse a value tuple to one item for aggregate results."""
    if not values:
        return None
    if len(values) == 1:
        return values[0]
    return values


class Deferred:
    """A future settled by explicit resolve()/reject() calls."""

    def __init__(self, executor: Executor) -> None:
        self._status = DeferredStatus.PENDING
        self._values: tuple = ()  # type: ignore[type-arg]
        self._on_fulfilled: list[Callback] = []
        self._on_rejected: list[Callback] = []
        self._finalizer: Callback | None = None

        # The executor runs inline; a failure while pending becomes a rejection
        try:
            executor(self.resolve, self.reject)
        except Exception as exc:
            if self._status is DeferredStatus.PENDING:
                logger.debug("Executor raised %r; rejecting", exc)
                self.reject(exc)
            else:
                logger.warning("Executor raised %r after settling; ignored", exc)

    def __repr__(self) -> str:
        return f"<Deferred {self._status.value} {self._values!r}>"

    @classmethod
    def resolved(cls, *values: Any) -> Deferred:
        return cls(lambda resolve, _reject: resolve(*values))

    @classmethod
    def rejected(cls, *values: Any) -> Deferred:
        return cls(lambda _resolve, reject: reject(*values))

    @property
    def status(self) -> DeferredStatus:
        return self._status

    @property
    def values(self) -> tuple:  # type: ignore[type-arg]
        """The current result tuple; meaningful once settled."""
        return self._values

    @property
    def is_pending(self) -> bool:
        return self._status is DeferredStatus.PENDING

    def settled(self) -> tuple[bool, tuple]:  # type: ignore[type-arg]
        """Return (success, values) for a settled deferred.

        Raises RuntimeError while still pending; nothing here can wait.
        """
        if self._status is DeferredStatus.PENDING:
            raise RuntimeError("Deferred is still pending")
        return self._status is DeferredStatus.FULFILLED, self._values

    def resolve(self, *values: Any) -> None:
        if self._status is not DeferredStatus.PENDING:
            logger.warning("resolve() called on a %s deferred; ignored", self._status.value)
            return

        self._values = values
        current = values
        # Index loop: callbacks appended mid-chain still run
        index = 0
        while index < len(self._on_fulfilled):
            callback = self._on_fulfilled[index]
            index += 1
            try:
                output = callback(*current)
            except Exception as exc:
                if self._status is DeferredStatus.PENDING:
                    self.reject(exc)
                    return
                raise
            if self._status is not DeferredStatus.PENDING:
                # A callback settled us (e.g. via reject); the chain stops here
                return
            current = _as_values(output)
            self._values = current

        self._status = DeferredStatus.FULFILLED
        self._values = current
        self._run_finalizer()

    def reject(self, *values: Any) -> None:
        if self._status is not DeferredStatus.PENDING:
            logger.warning("reject() called on a %s deferred; ignored", self._status.value)
            return

        self._values = values
        self._status = DeferredStatus.REJECTED
        for callback in list(self._on_rejected):
            callback(*values)
        self._run_finalizer()

    def and_then(self, fn: Callback) -> Deferred:
        """Append fn to the fulfillment waterfall, or call it now if already fulfilled."""
        if self._status is DeferredStatus.FULFILLED:
            fn(*self._values)
        else:
            self._on_fulfilled.append(fn)
        return self

    def catch(self, fn: Callback) -> Deferred:
        if self._status is DeferredStatus.REJECTED:
            fn(*self._values)
        else:
            self._on_rejected.append(fn)
        return self

    def finally_(self, fn: Callback) -> Deferred:
        """Register the one finalizer, run with the settled values.

        Runs immediately when already settled. A second registration is
        logged and ignored.
        """
        if self._finalizer is not None:
            logger.error("finally_() may only be set once; ignoring %r", fn)
            return self
        self._finalizer = fn
        if self._status is not DeferredStatus.PENDING:
            fn(*self._values)
        return self

    def destroy(self) -> None:
        """Clear all internal state. The instance is inert afterwards."""
        self._status = None  # type: ignore[assignment]
        self._values = None  # type: ignore[assignment]
        self._on_fulfilled = None  # type: ignore[assignment]
        self._on_rejected = None  # type: ignore[assignment]
        self._finalizer = None

    def _run_finalizer(self) -> None:
        if self._finalizer is not None:
            self._finalizer(*self._values)

    @classmethod
    def all(cls, deferreds: Iterable[Deferred]) -> Deferred:
        """Fulfill with every input's value, in input order, once all have fulfilled.

        Rejects with the first rejection seen. Inputs still pending at that
        point are not cancelled; their later results are ignored.
        """
        inputs = list(deferreds)

        def executor(resolve: Callable[..., None], reject: Callable[..., None]) -> None:
            if not inputs:
                resolve([])
                return

            results: list[Any] = [None] * len(inputs)
            remaining = len(inputs)
            failed = False

            def on_fulfilled(index: int) -> Callback:
                def record(*values: Any) -> tuple:  # type: ignore[type-arg]
                    nonlocal remaining
                    results[index] = _first_value(values)
                    remaining -= 1
                    if remaining == 0 and not failed:
                        resolve(results)
                    # Pass values through so the input's own waterfall is unchanged
                    return values

                return record

            def on_rejected(*values: Any) -> None:
                nonlocal failed
                if not failed:
                    failed = True
                    reject(*values)

            for index, deferred in enumerate(inputs):
                deferred.and_then(on_fulfilled(index))
                deferred.catch(on_rejected)

        return cls(executor)

    @classmethod
    def race(cls, deferreds: Iterable[Deferred]) -> Deferred:
        """Settle the same way as whichever input settles first."""
        inputs = list(deferreds)

        def executor(resolve: Callable[..., None], reject: Callable[..., None]) -> None:
            settled = False

            def on_fulfilled(*values: Any) -> tuple:  # type: ignore[type-arg]
                nonlocal settled
                if not settled:
                    settled = True
                    resolve(*values)
                return values

            def on_rejected(*values: Any) -> None:
                nonlocal settled
                if not settled:
                    settled = True
                    reject(*values)

            for deferred in inputs:
                deferred.and_then(on_fulfilled)
                deferred.catch(on_rejected)

        return cls(executor)

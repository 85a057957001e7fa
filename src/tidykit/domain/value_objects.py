from __future__ import annotations

from enum import Enum


class DeferredStatus(str, Enum):
    """Lifecycle states of a Deferred. PENDING moves to exactly one terminal state."""

    PENDING = "pending"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"


class TaskKind(str, Enum):
    """Cleanup variants a ResourceJanitor knows how to dispatch."""

    CALLBACK = "callback"  # invoke with no arguments
    CANCELLABLE = "cancellable"  # cancel() while still active
    DISPOSABLE = "disposable"  # destroy() or close()
    DESTRUCTOR = "destructor"  # destructor(payload)
    INERT = "inert"  # nothing to do

"""tidykit: expiring cache, resource janitor and deferred results."""
from __future__ import annotations

from tidykit.domain.deferred import Deferred
from tidykit.domain.entities import CacheEntry, CacheOptions
from tidykit.domain.janitor import ResourceJanitor, Task
from tidykit.domain.value_objects import DeferredStatus, TaskKind
from tidykit.infrastructure.cache import ExpiringCache

__all__ = [
    "CacheEntry",
    "CacheOptions",
    "Deferred",
    "DeferredStatus",
    "ExpiringCache",
    "ResourceJanitor",
    "Task",
    "TaskKind",
]

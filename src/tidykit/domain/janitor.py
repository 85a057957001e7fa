"""Deterministic teardown of heterogeneous resources.

A ResourceJanitor owns a set of pending cleanup tasks. ``clean()`` runs and
forgets them all, ``remove_task()`` forgets without running, and
``destroy()`` drops everything without running anything.
"""
from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from tidykit.domain.ids import new_task_id
from tidykit.domain.value_objects import TaskKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Task:
    """A cleanup action tagged with how the janitor must run it."""

    kind: TaskKind
    target: Any
    payload: Any = None
    # The value handed to add_task, when it was not already a Task
    source: Any = field(default=None, repr=False)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Task):
            return NotImplemented
        return (
            self.kind is other.kind
            and self.target is other.target
            and self.payload is other.payload
        )

    def __hash__(self) -> int:
        return hash((self.kind, id(self.target), id(self.payload)))

    @classmethod
    def from_callback(cls, fn: Callable[[], object]) -> Task:
        return cls(TaskKind.CALLBACK, fn)

    @classmethod
    def from_cancellable(cls, handle: Any) -> Task:
        """Wrap anything with cancel(), e.g. an interval handle or asyncio.Task."""
        return cls(TaskKind.CANCELLABLE, handle)

    @classmethod
    def from_disposable(cls, obj: Any) -> Task:
        """Wrap an object torn down through destroy() or close()."""
        return cls(TaskKind.DISPOSABLE, obj)

    @classmethod
    def from_destructor(cls, destructor: Callable[[Any], object], payload: Any) -> Task:
        return cls(TaskKind.DESTRUCTOR, destructor, payload)

    @classmethod
    def wrap(cls, value: Any) -> Task:
        """Classify a raw value into a Task, once, at insertion time."""
        if isinstance(value, Task):
            return value
        return dataclasses.replace(cls._classify(value), source=value)

    @classmethod
    def _classify(cls, value: Any) -> Task:
        if callable(value):
            return cls.from_callback(value)
        if callable(getattr(value, "cancel", None)):
            return cls.from_cancellable(value)
        if callable(getattr(value, "destroy", None)) or callable(getattr(value, "close", None)):
            return cls.from_disposable(value)
        if isinstance(value, Mapping) and callable(value.get("destructor")):
            return cls.from_destructor(value["destructor"], value.get("payload"))
        return cls(TaskKind.INERT, value)

    def matches(self, value: Any) -> bool:
        """Return True if value is this task or the object it was built from."""
        if isinstance(value, Task):
            return self == value
        for candidate in (self.source, self.target):
            if candidate is None:
                continue
            if candidate is value:
                return True
            try:
                if candidate == value:
                    return True
            except Exception:
                continue
        return False

    def run(self) -> None:
        if self.kind is TaskKind.CALLBACK:
            self.target()
        elif self.kind is TaskKind.CANCELLABLE:
            if _is_active(self.target):
                self.target.cancel()
        elif self.kind is TaskKind.DISPOSABLE:
            teardown = getattr(self.target, "destroy", None)
            if not callable(teardown):
                teardown = self.target.close
            teardown()
        elif self.kind is TaskKind.DESTRUCTOR:
            self.target(self.payload)


def _is_active(handle: Any) -> bool:
    """Best-effort check that a cancellable handle has not been released yet."""
    active = getattr(handle, "active", None)
    if active is not None and not callable(active):
        return bool(active)
    for probe in ("cancelled", "done"):
        check = getattr(handle, probe, None)
        if callable(check) and check():
            return False
    return True


class ResourceJanitor:
    """Owns cleanup tasks until they are cleaned or removed."""

    def __init__(self, id_factory: Callable[[], str] = new_task_id) -> None:
        self._new_id = id_factory
        self._tasks: dict[str, Task] = {}

    def __enter__(self) -> ResourceJanitor:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.clean()

    def __len__(self) -> int:
        return len(self._tasks)

    def task_ids(self) -> list[str]:
        return list(self._tasks)

    def add_task(self, task: Any) -> str:
        """Register a cleanup task of any supported shape and return its id.

        The same value may be registered several times; each registration gets
        its own id.
        """
        task_id = self._new_id()
        while task_id in self._tasks:
            task_id = self._new_id()
        self._tasks[task_id] = Task.wrap(task)
        return task_id

    def remove_task(self, id_or_task: Any) -> int:
        """Deregister a task without running it.

        An id removes that entry only. Any other value removes every entry
        built from it. Returns the number of entries removed.
        """
        if isinstance(id_or_task, str) and id_or_task in self._tasks:
            del self._tasks[id_or_task]
            return 1
        matching = [tid for tid, task in self._tasks.items() if task.matches(id_or_task)]
        for tid in matching:
            del self._tasks[tid]
        return len(matching)

    def clean(self) -> None:
        """Run every registered task and leave the janitor empty and reusable.

        Tasks are independent; no ordering between them is guaranteed.
        """
        tasks, self._tasks = self._tasks, {}
        first_error: Exception | None = None
        for task_id, task in tasks.items():
            if task.kind is TaskKind.INERT:
                logger.debug("Skipping inert task %s (%r)", task_id, task.target)
                continue
            try:
                task.run()
            except Exception as exc:
                # Keep tearing down the rest; the first failure is re-raised below
                logger.exception("Cleanup task %s failed", task_id)
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error

    def destroy(self) -> None:
        """Drop all state without running any task. The janitor is unusable afterwards."""
        self._tasks = None  # type: ignore[assignment]
        self._new_id = None  # type: ignore[assignment]

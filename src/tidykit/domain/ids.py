from __future__ import annotations

from uuid import uuid4

TASK_ID_LENGTH = 12


def new_task_id() -> str:
    """Return a short random identifier for a janitor task.

    Not cryptographically secure; uniqueness only has to hold within a single
    janitor's lifetime, and the janitor re-draws on a collision.
    """
    return uuid4().hex[:TASK_ID_LENGTH]

from __future__ import annotations

import asyncio
from typing import Any

from tidykit.domain.deferred import Deferred


async def wait_for_deferred(deferred: Deferred) -> tuple[bool, tuple]:  # type: ignore[type-arg]
    """Suspend the calling coroutine until deferred settles.

    Returns (success, values). The callbacks attached here pass values through
    unchanged, so other consumers of the same waterfall see the same inputs.
    """
    if not deferred.is_pending:
        return deferred.settled()

    loop = asyncio.get_running_loop()
    future: asyncio.Future[tuple[bool, tuple]] = loop.create_future()  # type: ignore[type-arg]

    def on_fulfilled(*values: Any) -> tuple:  # type: ignore[type-arg]
        if not future.done():
            future.set_result((True, values))
        return values

    def on_rejected(*values: Any) -> None:
        if not future.done():
            future.set_result((False, values))

    deferred.and_then(on_fulfilled).catch(on_rejected)
    return await future

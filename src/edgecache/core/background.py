"""Detached tasks whose outcome is only observed for logging.

Cache writes to the networked backend must not delay the response, yet a
failed write must still be visible. ``spawn_logged`` schedules a coroutine
on the running loop, keeps a strong reference until it finishes and logs
any exception from a done-callback.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any

from edgecache.core.logging import get_logger

log = get_logger(__name__)


def spawn_logged(
    coro: Coroutine[Any, Any, Any],
    *,
    name: str,
    registry: set[asyncio.Task[Any]] | None = None,
    **log_context: Any,
) -> asyncio.Task[Any]:
    """Run ``coro`` as a detached task and log its failure, if any.

    Args:
        coro: Coroutine to schedule.
        name: Task name, also used as the log event prefix.
        registry: Optional set holding pending tasks. The task removes
            itself on completion, so the owner can drain the set on shutdown.
        **log_context: Extra fields attached to the failure log line.
    """
    task = asyncio.get_running_loop().create_task(coro, name=name)
    if registry is not None:
        registry.add(task)

    def _done(finished: asyncio.Task[Any]) -> None:
        if registry is not None:
            registry.discard(finished)
        if finished.cancelled():
            log.debug(f"{name}_cancelled", **log_context)
            return
        exc = finished.exception()
        if exc is not None:
            log.warning(f"{name}_failed", error=str(exc), error_type=type(exc).__name__, **log_context)

    task.add_done_callback(_done)
    return task


async def drain(registry: set[asyncio.Task[Any]], timeout: float | None = 5.0) -> None:
    """Wait for every pending task in ``registry`` (best effort)."""
    pending = list(registry)
    if not pending:
        return
    done, not_done = await asyncio.wait(pending, timeout=timeout)
    if not not_done:
        return
    for task in not_done:
        task.cancel()
    await asyncio.gather(*not_done, return_exceptions=True)
    log.warning("background_drain_timeout", cancelled=len(not_done))


__all__ = ["spawn_logged", "drain"]

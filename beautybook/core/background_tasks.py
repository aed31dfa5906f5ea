"""Detached background tasks for post-commit side effects.

Notifications, system chat messages and push token cleanup run outside the
request that triggered them. A task spawned here shares no error channel
with its caller: exceptions are logged with the supplied context and then
dropped.
"""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from beautybook.core.exceptions import SideEffectFailure

logger = logging.getLogger(__name__)


class BackgroundTaskRunner:
    """Spawns supervised fire-and-forget asyncio tasks."""

    def __init__(self) -> None:
        # The event loop only keeps weak references to tasks
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of tasks still running."""
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str, **context: Any) -> asyncio.Task:
        """Schedule a coroutine without awaiting it.

        Args:
            coro: Side effect to run
            name: Short effect name used in logs (e.g. "notify_customer")
            **context: Extra log context such as booking_id

        Returns:
            asyncio.Task: The scheduled task
        """
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._on_done(t, name, context))
        return task

    def _on_done(self, task: asyncio.Task, name: str, context: dict[str, Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning(f"Background task '{name}' was cancelled (context={context})")
            return

        exc = task.exception()
        if exc is not None:
            failure = SideEffectFailure(name, booking_id=context.get("booking_id"), cause=exc)
            logger.error(f"{failure} (context={context})", exc_info=exc)

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for all pending tasks, including ones spawned while waiting."""
        while self._tasks:
            pending = list(self._tasks)
            done, not_done = await asyncio.wait(pending, timeout=timeout)
            if not_done:
                logger.warning(f"{len(not_done)} background task(s) still running after {timeout}s")
                return


# Process-wide runner used by the API and drained on shutdown
background_runner = BackgroundTaskRunner()

"""Background bookkeeping tasks.

Writes that must not delay a reply (persisting messages, pausing after an
operator reply) run as tasks owned by a group. Failures are logged and
counted when the task finishes, never dropped.
"""

import asyncio
from collections.abc import Coroutine
from typing import Any

from closer.observability.logging import get_logger
from closer.observability.metrics import BACKGROUND_TASK_FAILURES

logger = get_logger(__name__)


class BackgroundTaskGroup:
    """Owns fire-and-forget tasks so their errors surface in logs."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, name: str, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        """Schedule coro on the running loop under name."""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning("background_task_cancelled", task=task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            BACKGROUND_TASK_FAILURES.labels(task=task.get_name()).inc()
            logger.error(
                "background_task_failed",
                task=task.get_name(),
                error=str(exc),
                error_type=type(exc).__name__,
            )

    async def wait(self) -> None:
        """Wait until every spawned task (including ones spawned meanwhile) finishes."""
        while True:
            pending = [t for t in self._tasks if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

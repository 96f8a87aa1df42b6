"""Single-flight gate: concurrent callers share one in-flight execution.

The first ``run()`` starts ``func`` as a task and records it as pending; any
``run()`` while it is pending returns that same task. The pending handle is
cleared in ``finally``, so a raising ``func`` never blocks later calls.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SingleFlight(Generic[T]):
    def __init__(
        self,
        func: Callable[[], Awaitable[T]],
        on_complete: Callable[[T], None] | None = None,
        name: str = "single-flight",
    ) -> None:
        self._func = func
        self._on_complete = on_complete
        self._name = name
        self._pending: asyncio.Task[T] | None = None
        self.last_result: T | None = None
        self.executions = 0

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def run(self) -> asyncio.Task[T]:
        """Start an execution, or return the one already in flight."""
        if self._pending is not None:
            return self._pending
        task = asyncio.get_running_loop().create_task(self._execute(), name=self._name)
        self._pending = task
        task.add_done_callback(self._log_failure)
        return task

    async def call(self) -> T:
        """Run (or join) and wait for the shared result.

        The shared task is shielded so cancelling one caller leaves it running
        for the others.
        """
        return await asyncio.shield(self.run())

    async def _execute(self) -> T:
        self.executions += 1
        try:
            result = await self._func()
            self.last_result = result
            if self._on_complete is not None:
                try:
                    self._on_complete(result)
                except Exception:
                    logger.exception("%s completion callback failed", self._name)
            return result
        finally:
            self._pending = None

    def _log_failure(self, task: asyncio.Task[T]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("%s execution failed: %r", self._name, exc)

"""Trigger sources for the monitor pipeline.

TriggerMerger folds the periodic timer and manual check requests into one
FIFO queue. Throttle drops triggers that arrive too soon after the last one it
accepted.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class TriggerSource(str, Enum):
    PERIODIC = "periodic"
    MANUAL = "manual"


@dataclass
class Trigger:
    source: TriggerSource
    at: float  # loop.time() at arrival
    waiter: asyncio.Future[Any] | None = field(default=None, repr=False)


# ── Merger ───────────────────────────────────────────────────────────────────


class TriggerMerger:
    """Single ordered trigger stream fed by a periodic timer and manual pushes."""

    def __init__(self, interval: float, immediate: bool = True) -> None:
        self.interval = interval
        self.immediate = immediate
        self._queue: asyncio.Queue[Trigger] = asyncio.Queue()
        self._timer: asyncio.Task[None] | None = None
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def start(self) -> None:
        """Start the periodic timer. Idempotent; must be called inside a running loop."""
        if self._timer is not None or self._stopped:
            return
        self._timer = asyncio.get_running_loop().create_task(
            self._tick_loop(), name="connwatch-timer",
        )
        logger.debug("Trigger timer started (interval=%ss, immediate=%s)", self.interval, self.immediate)

    def push_manual(self) -> asyncio.Future[Any]:
        """Enqueue a manual trigger and return its waiter, resolved with the check result."""
        loop = asyncio.get_running_loop()
        waiter = loop.create_future()
        self._queue.put_nowait(Trigger(TriggerSource.MANUAL, at=loop.time(), waiter=waiter))
        return waiter

    async def next(self) -> Trigger:
        return await self._queue.get()

    def stop(self) -> list[Trigger]:
        """Cancel the timer and return triggers that were never consumed."""
        self._stopped = True
        if self._timer is not None:
            self._timer.cancel()
        drained: list[Trigger] = []
        while not self._queue.empty():
            drained.append(self._queue.get_nowait())
        return drained

    async def _tick_loop(self) -> None:
        loop = asyncio.get_running_loop()
        if not self.immediate:
            await asyncio.sleep(self.interval)
        while True:
            self._queue.put_nowait(Trigger(TriggerSource.PERIODIC, at=loop.time()))
            await asyncio.sleep(self.interval)


# ── Throttle ─────────────────────────────────────────────────────────────────


class Throttle:
    """Leading-edge throttle: accept a trigger, then reject others for ``interval``.

    ``opened_by`` records the source of the trigger that opened the current
    window. A window opened by the periodic timer never holds off a manual
    check: ``accept`` lets the manual trigger through and it opens a new window.
    """

    def __init__(self, interval: float, clock: Callable[[], float] | None = None) -> None:
        self.interval = interval
        self._clock = clock
        self._last_accepted: float | None = None
        self.opened_by: TriggerSource | None = None

    def accept(self, at: float | None = None, source: TriggerSource | None = None) -> bool:
        if at is None:
            at = self._clock() if self._clock else asyncio.get_running_loop().time()
        if (
            self._last_accepted is not None
            and at - self._last_accepted < self.interval
            and not (source is TriggerSource.MANUAL and self.opened_by is TriggerSource.PERIODIC)
        ):
            return False
        self._last_accepted = at
        self.opened_by = source
        return True

    def reset(self) -> None:
        self._last_accepted = None
        self.opened_by = None

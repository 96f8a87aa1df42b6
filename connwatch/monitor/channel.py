"""Multicast status channel with replay of the latest value.

Each subscriber gets its own bounded queue, primed with the current value.
``publish`` fans out to every queue; when a slow subscriber's queue is full its
oldest value is dropped so the newest one always gets through.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from connwatch.monitor.status import ConnectivityStatus

logger = logging.getLogger(__name__)

_CLOSED = object()


class Subscription:
    """Async iterator over the channel's values. Use as ``async with`` or iterate directly."""

    def __init__(self, channel: StatusChannel, queue: asyncio.Queue[Any]) -> None:
        self._channel = channel
        self._queue = queue
        self._done = False

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> ConnectivityStatus:
        if self._done:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            self.close()
            raise StopAsyncIteration
        return item

    async def get(self, timeout: float | None = None) -> ConnectivityStatus:
        """Next value; raises asyncio.TimeoutError or StopAsyncIteration."""
        if timeout is None:
            return await self.__anext__()
        return await asyncio.wait_for(self.__anext__(), timeout=timeout)

    def pending(self) -> list[ConnectivityStatus]:
        """Drain and return the values already queued, without waiting."""
        items: list[ConnectivityStatus] = []
        while not self._queue.empty():
            item = self._queue.get_nowait()
            if item is _CLOSED:
                self.close()
                break
            items.append(item)
        return items

    @property
    def closed(self) -> bool:
        return self._done

    def close(self) -> None:
        if not self._done:
            self._done = True
            self._channel._detach(self._queue)

    async def aclose(self) -> None:
        self.close()

    async def __aenter__(self) -> Subscription:
        return self

    async def __aexit__(self, *exc: object) -> None:
        self.close()


class StatusChannel:
    def __init__(
        self,
        initial: ConnectivityStatus = ConnectivityStatus.UNKNOWN,
        maxsize: int = 64,
    ) -> None:
        self._latest = initial
        self._maxsize = maxsize
        self._queues: list[asyncio.Queue[Any]] = []
        self._closed = False
        self.published = 0

    @property
    def latest(self) -> ConnectivityStatus:
        return self._latest

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        return len(self._queues)

    def subscribe(self) -> Subscription:
        queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=self._maxsize)
        queue.put_nowait(self._latest)
        if self._closed:
            self._offer(queue, _CLOSED)
        else:
            self._queues.append(queue)
        return Subscription(self, queue)

    def publish(self, value: ConnectivityStatus) -> None:
        if self._closed:
            logger.debug("Dropping %s published after close", value.value)
            return
        self._latest = value
        self.published += 1
        for queue in self._queues:
            self._offer(queue, value)

    def close(self) -> None:
        """End every subscription; later publishes are ignored."""
        if self._closed:
            return
        self._closed = True
        for queue in self._queues:
            self._offer(queue, _CLOSED)
        self._queues.clear()

    def _offer(self, queue: asyncio.Queue[Any], item: Any) -> None:
        try:
            queue.put_nowait(item)
        except asyncio.QueueFull:
            queue.get_nowait()  # slow consumer, drop oldest
            queue.put_nowait(item)

    def _detach(self, queue: asyncio.Queue[Any]) -> None:
        try:
            self._queues.remove(queue)
        except ValueError:
            pass

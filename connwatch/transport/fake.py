"""Scripted in-memory transport for tests and offline demos."""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Union

from connwatch.transport.client import TransportResponse

# A status code to respond with, or an exception (instance or class) to raise
Outcome = Union[int, BaseException, type[BaseException]]


@dataclass
class FakeCall:
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    at: float = 0.0


class FakeTransport:
    """HttpTransport test double.

    Outcomes are consumed in order; the last one repeats once the script is
    exhausted. Every call is recorded before the delay, so a call that later
    times out still counts.
    """

    def __init__(self, outcomes: Iterable[Outcome] = (200,), delay: float = 0.0) -> None:
        self.delay = delay
        self.calls: list[FakeCall] = []
        self._outcomes: deque[Outcome] = deque()
        self._last: Outcome = 200
        self.script(*outcomes)

    def script(self, *outcomes: Outcome) -> None:
        """Replace the pending outcomes."""
        self._outcomes = deque(outcomes)
        if outcomes:
            self._last = outcomes[-1]

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def _next_outcome(self) -> Outcome:
        if self._outcomes:
            return self._outcomes.popleft()
        return self._last

    async def get(
        self, url: str, headers: Mapping[str, str] | None = None,
    ) -> TransportResponse:
        loop = asyncio.get_running_loop()
        self.calls.append(FakeCall(url=url, headers=dict(headers or {}), at=loop.time()))
        outcome = self._next_outcome()
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, type) and issubclass(outcome, BaseException):
            raise outcome()
        return TransportResponse(status_code=outcome)

"""Connectivity monitor — wires triggers, throttle, gate, probe and channel.

    timer ─┐
           ├─ TriggerMerger ─ Throttle ─ SingleFlight ─ Probe
  manual ──┘                                 │
                                        StatusChannel ─ subscribers

One monitor is built at the composition point (API lifespan, CLI command) and
disposed explicitly. Construction does no I/O; the timer and the pipeline
start on ``start()``, the first ``status()`` subscription inside a running
loop, or the first ``check_now()``.
"""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Any

from connwatch.config import MonitorConfig
from connwatch.monitor.channel import StatusChannel, Subscription
from connwatch.monitor.gate import SingleFlight
from connwatch.monitor.probe import Probe
from connwatch.monitor.status import ConnectivityStatus, ProbeResult
from connwatch.monitor.triggers import Throttle, Trigger, TriggerMerger
from connwatch.transport.client import HttpTransport, HttpxTransport

logger = logging.getLogger(__name__)


class MonitorDisposedError(RuntimeError):
    """Raised when a disposed monitor is asked to check."""


class ConnectivityMonitor:
    def __init__(
        self,
        config: MonitorConfig | None = None,
        transport: HttpTransport | None = None,
    ) -> None:
        self.config = config or MonitorConfig()
        self._owns_transport = transport is None
        self.transport: HttpTransport = transport or HttpxTransport(timeout=self.config.timeout)
        self.probe = Probe(self.config, self.transport)

        self._channel = StatusChannel(initial=ConnectivityStatus.UNKNOWN)
        self._gate: SingleFlight[ProbeResult] = SingleFlight(
            self.probe.run, on_complete=self._on_probe_complete, name="connwatch-probe",
        )
        self._merger = TriggerMerger(
            self.config.check_frequency, immediate=self.config.check_on_start,
        )
        self._throttle = Throttle(self.config.throttle_interval)
        self._pipeline: asyncio.Task[None] | None = None
        self._disposed = False

        # Diagnostics
        self.probes_run = 0
        self.last_check: str | None = None
        self.last_change: str | None = None

    # ── Public surface ───────────────────────────────────────────────────────

    @property
    def current(self) -> ConnectivityStatus:
        return self._channel.latest

    @property
    def last_result(self) -> ProbeResult | None:
        return self._gate.last_result

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def running(self) -> bool:
        return self._pipeline is not None and not self._disposed

    async def start(self) -> None:
        """Start the periodic timer and the trigger pipeline."""
        self._ensure_started()

    def status(self) -> Subscription:
        """Subscribe to the status feed: the latest value first, then live updates."""
        sub = self._channel.subscribe()
        if not self._disposed:
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                return sub  # starts with the first check or start() instead
            self._ensure_started()
        return sub

    async def check_now(self) -> ConnectivityStatus:
        """Trigger a probe (or join the one in flight) and return its status."""
        if self._disposed:
            raise MonitorDisposedError("Connectivity monitor has been disposed")
        self._ensure_started()
        return await self._merger.push_manual()

    def dispose(self) -> None:
        """Stop the timer and pipeline and close the status channel.

        A probe already in flight finishes; its result is dropped by the closed
        channel.
        """
        if self._disposed:
            return
        self._disposed = True
        leftover = self._merger.stop()
        if self._pipeline is not None:
            self._pipeline.cancel()
        for trigger in leftover:
            self._resolve_waiter(trigger, self.current)
        self._channel.close()
        logger.info("Connectivity monitor disposed (%d probes run)", self.probes_run)

    async def stop(self) -> None:
        """Dispose, then wait for background work and release the transport."""
        self.dispose()
        if self._pipeline is not None:
            try:
                await self._pipeline
            except asyncio.CancelledError:
                pass
        if self._gate.pending:
            await asyncio.gather(self._gate.run(), return_exceptions=True)
        if self._owns_transport and isinstance(self.transport, HttpxTransport):
            await self.transport.aclose()

    async def __aenter__(self) -> ConnectivityMonitor:
        await self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.stop()

    def snapshot(self) -> dict[str, Any]:
        last = self.last_result
        return {
            "status": self.current.value,
            "url": self.config.url,
            "probes_run": self.probes_run,
            "last_check": self.last_check,
            "last_change": self.last_change,
            "last_result": last.to_dict() if last else None,
            "pending": self._gate.pending,
            "disposed": self._disposed,
        }

    # ── Pipeline ─────────────────────────────────────────────────────────────

    def _ensure_started(self) -> None:
        if self._disposed or self._pipeline is not None:
            return
        loop = asyncio.get_running_loop()
        self._pipeline = loop.create_task(self._run_pipeline(), name="connwatch-pipeline")
        self._merger.start()
        logger.info(
            "Connectivity monitor started: %s (every %ss, timeout %ss, throttle %ss)",
            self.config.url, self.config.check_frequency,
            self.config.timeout, self.config.throttle_interval,
        )

    async def _run_pipeline(self) -> None:
        while True:
            trigger = await self._merger.next()
            accepted = self._throttle.accept(trigger.at, trigger.source)

            if accepted or self._gate.pending:
                task = self._gate.run()
                if trigger.waiter is not None:
                    task.add_done_callback(partial(self._resolve_from_task, trigger))
                continue

            logger.debug("Throttled %s trigger", trigger.source.value)
            if trigger.waiter is not None:
                # Manual checks throttled by another manual check observe its probe
                last = self._gate.last_result
                self._resolve_waiter(trigger, last.status if last else self.current)

    def _on_probe_complete(self, result: ProbeResult) -> None:
        if self._disposed:
            logger.debug("Ignoring %s probe result after dispose", result.status.value)
            return
        previous = self.current
        self.probes_run += 1
        self.last_check = result.timestamp
        if result.status != previous:
            self.last_change = result.timestamp
            log = logger.warning if result.status != ConnectivityStatus.ONLINE else logger.info
            log("Connectivity %s → %s (%s)", previous.value, result.status.value, result.message)
        else:
            logger.debug("Connectivity still %s (%sms)", result.status.value, result.latency_ms)
        self._channel.publish(result.status)

    def _resolve_from_task(self, trigger: Trigger, task: asyncio.Task[ProbeResult]) -> None:
        if task.cancelled() or task.exception() is not None:
            self._resolve_waiter(trigger, ConnectivityStatus.OFFLINE)
            return
        self._resolve_waiter(trigger, task.result().status)

    @staticmethod
    def _resolve_waiter(trigger: Trigger, status: ConnectivityStatus) -> None:
        if trigger.waiter is not None and not trigger.waiter.done():
            trigger.waiter.set_result(status)

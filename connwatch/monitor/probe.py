"""Probe — one bounded-time reachability check against the configured URL.

Outcome classification, in priority order:
  2xx response                  → online
  any other response            → offline
  timeout                       → slow (slow detection on) or offline
  connection failure            → offline
  malformed URL / anything else → offline, logged

Timeouts and connection failures are retried up to ``max_retries`` times,
except that with slow detection on a timeout returns ``slow`` immediately.
Nothing is ever raised to the caller.
"""

from __future__ import annotations

import asyncio
import logging
import time

from connwatch.config import MonitorConfig
from connwatch.monitor.status import ConnectivityStatus, FailureKind, ProbeResult
from connwatch.transport.client import HttpTransport, parse_endpoint
from connwatch.transport.errors import (
    MalformedConfigurationError,
    TransportConnectionError,
    TransportTimeout,
)

logger = logging.getLogger(__name__)


class Probe:
    """Runs GET requests against ``config.url`` through a pluggable transport."""

    def __init__(self, config: MonitorConfig, transport: HttpTransport) -> None:
        self.config = config
        self.transport = transport

    async def status(self) -> ConnectivityStatus:
        """Run the probe and return only its status."""
        return (await self.run()).status

    async def run(self) -> ProbeResult:
        cfg = self.config
        t0 = time.perf_counter()
        attempts = 0

        def elapsed_ms() -> float:
            return round((time.perf_counter() - t0) * 1000, 1)

        while True:
            attempts += 1
            try:
                parse_endpoint(cfg.url)
                resp = await asyncio.wait_for(
                    self.transport.get(cfg.url, headers=cfg.headers), timeout=cfg.timeout,
                )
            except (asyncio.TimeoutError, TimeoutError, TransportTimeout):
                if cfg.check_slow_connection:
                    logger.debug("Probe timed out after %ss, reporting slow", cfg.timeout)
                    return ProbeResult(
                        status=ConnectivityStatus.SLOW, latency_ms=elapsed_ms(),
                        attempts=attempts, failure=FailureKind.TIMEOUT,
                        message=f"Timed out after {cfg.timeout}s",
                    )
                if attempts <= cfg.max_retries:
                    logger.debug(
                        "Probe timed out (attempt %d/%d), retrying in %ss",
                        attempts, cfg.max_retries + 1, cfg.retry_delay,
                    )
                    await asyncio.sleep(cfg.retry_delay)
                    continue
                return ProbeResult(
                    status=ConnectivityStatus.OFFLINE, latency_ms=elapsed_ms(),
                    attempts=attempts, failure=FailureKind.TIMEOUT,
                    message=f"Timed out after {cfg.timeout}s",
                )
            except MalformedConfigurationError as e:
                logger.error("Probe cannot run: %s", e)
                return ProbeResult(
                    status=ConnectivityStatus.OFFLINE, latency_ms=elapsed_ms(),
                    attempts=attempts, failure=FailureKind.MALFORMED_CONFIG,
                    message=str(e),
                )
            except (TransportConnectionError, OSError) as e:
                if attempts <= cfg.max_retries:
                    logger.debug(
                        "Probe connection failed (attempt %d/%d): %s, retrying in %ss",
                        attempts, cfg.max_retries + 1, e, cfg.retry_delay,
                    )
                    await asyncio.sleep(cfg.retry_delay)
                    continue
                return ProbeResult(
                    status=ConnectivityStatus.OFFLINE, latency_ms=elapsed_ms(),
                    attempts=attempts, failure=FailureKind.CONNECTION,
                    message=f"Connection error: {e}",
                )
            except Exception as e:
                logger.exception("Probe failed permanently")
                return ProbeResult(
                    status=ConnectivityStatus.OFFLINE, latency_ms=elapsed_ms(),
                    attempts=attempts, failure=FailureKind.UNCLASSIFIED,
                    message=f"Error: {type(e).__name__}: {e}",
                )

            if 200 <= resp.status_code < 300:
                return ProbeResult(
                    status=ConnectivityStatus.ONLINE, latency_ms=elapsed_ms(),
                    attempts=attempts, status_code=resp.status_code,
                    message=f"{resp.status_code} OK",
                )
            return ProbeResult(
                status=ConnectivityStatus.OFFLINE, latency_ms=elapsed_ms(),
                attempts=attempts, status_code=resp.status_code,
                failure=FailureKind.NON_SUCCESS,
                message=f"Unexpected status {resp.status_code}",
            )

"""API routes for the connectivity monitor.

Endpoints:
  GET  /api/connectivity         — current status + last probe diagnostics
  POST /api/connectivity/check   — run (or join) a probe now
  GET  /api/connectivity/stream  — SSE stream of status values
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import StreamingResponse

from connwatch.config import settings
from connwatch.monitor import ConnectivityMonitor, MonitorDisposedError, Subscription

logger = logging.getLogger(__name__)

connectivity_router = APIRouter(prefix="/connectivity", tags=["connectivity"])


def _monitor(request: Request) -> ConnectivityMonitor:
    return request.app.state.monitor


@connectivity_router.get("")
def connectivity_status(request: Request) -> dict[str, Any]:
    """Latest known status without triggering a probe."""
    return _monitor(request).snapshot()


@connectivity_router.post("/check")
async def connectivity_check(request: Request) -> dict[str, Any]:
    """Trigger an immediate check and return its result."""
    monitor = _monitor(request)
    try:
        status = await monitor.check_now()
    except MonitorDisposedError:
        raise HTTPException(status_code=503, detail="Connectivity monitor is shut down")
    return {"status": status.value, "snapshot": monitor.snapshot()}


# ── SSE stream ───────────────────────────────────────────────────────────────


async def status_events(
    sub: Subscription,
    keepalive: float,
    request: Request | None = None,
) -> AsyncIterator[str]:
    """Render a subscription as SSE frames until it closes or the client leaves."""
    try:
        while True:
            if request is not None and await request.is_disconnected():
                break
            try:
                status = await sub.get(timeout=keepalive)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            except StopAsyncIteration:
                break
            yield f"event: status\ndata: {json.dumps({'status': status.value})}\n\n"
    finally:
        sub.close()


@connectivity_router.get("/stream")
async def connectivity_stream(request: Request) -> StreamingResponse:
    """Server-Sent Events: the current status, then every new probe result."""
    sub = _monitor(request).status()
    return StreamingResponse(
        status_events(sub, settings.stream_keepalive, request),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )

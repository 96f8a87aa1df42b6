"""FastAPI server exposing the connectivity monitor."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from connwatch import __version__
from connwatch.api.connectivity_routes import connectivity_router
from connwatch.config import settings
from connwatch.monitor import ConnectivityMonitor

logger = logging.getLogger(__name__)


def create_app(monitor: ConnectivityMonitor | None = None) -> FastAPI:
    """Build the app. A monitor passed in is started and stopped with the app."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        mon = monitor or ConnectivityMonitor(settings.monitor_config())
        app.state.monitor = mon
        await mon.start()

        yield

        # Shutdown
        await mon.stop()

    app = FastAPI(
        title="connwatch",
        version=__version__,
        description="HTTP reachability monitor with a live status stream.",
        lifespan=lifespan,
    )

    @app.get("/health", tags=["system"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(connectivity_router, prefix="/api")

    return app

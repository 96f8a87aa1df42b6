"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from connwatch.config import MonitorConfig
from connwatch.transport.fake import FakeTransport

TEST_URL = "http://connectivity.test/generate_204"


@pytest.fixture
def make_config() -> Callable[..., MonitorConfig]:
    """Fast-timing config: no initial tick, a long interval, no throttle unless asked."""

    def _make(**overrides: Any) -> MonitorConfig:
        values: dict[str, Any] = {
            "url": TEST_URL,
            "timeout": 1.0,
            "check_frequency": 60.0,
            "throttle_interval": 0.0,
            "retry_delay": 0.01,
            "check_on_start": False,
        }
        values.update(overrides)
        return MonitorConfig(**values)

    return _make


@pytest.fixture
def transport() -> FakeTransport:
    """A transport that answers 204 to everything."""
    return FakeTransport([204])

from __future__ import annotations

import logging

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings

from connwatch.transport.client import parse_endpoint
from connwatch.transport.errors import MalformedConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CHECK_URL = "https://www.gstatic.com/generate_204"


class MonitorConfig(BaseModel):
    """Immutable probe configuration, built once per monitor.

    All durations are in seconds.
    """

    model_config = {"frozen": True}

    url: str = DEFAULT_CHECK_URL
    headers: dict[str, str] | None = None
    timeout: float = Field(default=15.0, gt=0)
    check_frequency: float = Field(default=15.0, gt=0)
    # Independent of check_frequency so a manual check right after a tick still runs
    throttle_interval: float = Field(default=0.3, ge=0)
    check_slow_connection: bool = False
    max_retries: int = Field(default=0, ge=0)
    retry_delay: float = Field(default=1.0, ge=0)
    check_on_start: bool = True

    @model_validator(mode="after")
    def _warn_on_suspicious_values(self) -> MonitorConfig:
        # Bad URLs are reported, not raised: the monitor still runs and reports offline.
        try:
            parse_endpoint(self.url)
        except MalformedConfigurationError as e:
            logger.warning("%s, every check will report offline", e)

        if self.timeout > self.check_frequency:
            logger.warning(
                "Probe timeout (%ss) exceeds check frequency (%ss)",
                self.timeout, self.check_frequency,
            )
        return self


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "CONNWATCH_",
        "extra": "ignore",
    }

    # Probe target
    url: str = DEFAULT_CHECK_URL
    headers: dict[str, str] = {}  # JSON in env, e.g. {"Authorization": "Bearer ..."}

    # Timing (seconds)
    timeout: float = 15.0
    check_frequency: float = 15.0
    throttle_interval: float = 0.3
    retry_delay: float = 1.0

    # Behaviour
    check_slow_connection: bool = False
    max_retries: int = 0
    check_on_start: bool = True

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    stream_keepalive: float = 30.0  # seconds between SSE keepalive comments

    # Logging
    log_level: str = "INFO"

    def monitor_config(self, **overrides: object) -> MonitorConfig:
        """Build a MonitorConfig from these settings, applying non-None overrides."""
        values: dict[str, object] = {
            "url": self.url,
            "headers": self.headers or None,
            "timeout": self.timeout,
            "check_frequency": self.check_frequency,
            "throttle_interval": self.throttle_interval,
            "check_slow_connection": self.check_slow_connection,
            "max_retries": self.max_retries,
            "retry_delay": self.retry_delay,
            "check_on_start": self.check_on_start,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return MonitorConfig(**values)


settings = Settings()

"""Status model shared by the probe, the gate and the status channel."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ConnectivityStatus(str, Enum):
    UNKNOWN = "unknown"  # no check has completed yet
    ONLINE = "online"
    OFFLINE = "offline"
    SLOW = "slow"  # timed out with slow detection enabled


class FailureKind(str, Enum):
    TIMEOUT = "timeout"
    CONNECTION = "connection"
    NON_SUCCESS = "non_success"
    MALFORMED_CONFIG = "malformed_config"
    UNCLASSIFIED = "unclassified"


@dataclass
class ProbeResult:
    """Outcome of a single probe execution, retries included."""

    status: ConnectivityStatus
    latency_ms: float = 0.0
    attempts: int = 1
    status_code: int | None = None
    failure: FailureKind | None = None
    message: str = ""
    timestamp: str = ""

    def __post_init__(self) -> None:
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat()

    @property
    def ok(self) -> bool:
        return self.status == ConnectivityStatus.ONLINE

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        data["failure"] = self.failure.value if self.failure else None
        return data

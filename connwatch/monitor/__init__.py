"""Connectivity monitoring engine — probe, triggers, single-flight gate, status channel."""

from connwatch.monitor.channel import StatusChannel, Subscription
from connwatch.monitor.gate import SingleFlight
from connwatch.monitor.monitor import ConnectivityMonitor, MonitorDisposedError
from connwatch.monitor.probe import Probe
from connwatch.monitor.status import ConnectivityStatus, FailureKind, ProbeResult
from connwatch.monitor.triggers import Throttle, Trigger, TriggerMerger, TriggerSource

__all__ = [
    "ConnectivityMonitor",
    "ConnectivityStatus",
    "FailureKind",
    "MonitorDisposedError",
    "Probe",
    "ProbeResult",
    "SingleFlight",
    "StatusChannel",
    "Subscription",
    "Throttle",
    "Trigger",
    "TriggerMerger",
    "TriggerSource",
]

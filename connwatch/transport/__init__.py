"""HTTP transport capability — production httpx client and a scripted fake."""

from connwatch.transport.client import HttpTransport, HttpxTransport, TransportResponse, parse_endpoint
from connwatch.transport.errors import (
    MalformedConfigurationError,
    TransportConnectionError,
    TransportError,
    TransportTimeout,
)
from connwatch.transport.fake import FakeCall, FakeTransport

__all__ = [
    "FakeCall",
    "FakeTransport",
    "HttpTransport",
    "HttpxTransport",
    "MalformedConfigurationError",
    "TransportConnectionError",
    "TransportError",
    "TransportResponse",
    "TransportTimeout",
    "parse_endpoint",
]

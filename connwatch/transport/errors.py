"""Failures a transport may raise from ``get``.

Anything not derived from these is treated by the probe as unclassified.
"""

from __future__ import annotations


class TransportError(Exception):
    """Base class for classified transport failures."""


class TransportTimeout(TransportError):
    """The request did not complete in time."""


class TransportConnectionError(TransportError):
    """Raised when the endpoint is unreachable (DNS, refused, reset)."""


class MalformedConfigurationError(TransportError):
    """Raised when the configured URL cannot be used for a request."""

    def __init__(self, url: str, reason: str = "") -> None:
        self.url = url
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"Invalid URL {url!r}{detail}")

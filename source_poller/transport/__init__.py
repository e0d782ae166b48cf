"""Status transports.

Implements the transport-agnostic adapter pattern:
- StatusClient: Abstract base class defining the fetch contract
- HttpStatusClient: httpx-based client for the sources REST API
"""

from source_poller.transport.base import (
    APIResponseError,
    ConnectionLostError,
    ConnectivityError,
    NotConnectedError,
    ResponseDecodeError,
    StatusClient,
    TransportError,
)
from source_poller.transport.http import HttpStatusClient

__all__ = [
    "APIResponseError",
    "ConnectionLostError",
    "ConnectivityError",
    "HttpStatusClient",
    "NotConnectedError",
    "ResponseDecodeError",
    "StatusClient",
    "TransportError",
]

"""StatusClient abstract base class.

Defines the contract every status transport must implement.  The poller
interacts exclusively with this interface and never knows
whether the fetch goes over httpx, a recorded fixture or a test fake.

Contract:
    ``fetch_status(source_id, client_secret)`` is a coroutine that
    returns a ``FetchResult``.  Transports report failures through
    ``FetchResult.error`` rather than raising; connectivity failures
    that are worth retrying must be reported as ``ConnectivityError``
    subclasses with ``status_code=None``.
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

from source_poller.core.exceptions import (
    ContractError,
    SourcePollerError,
    TransientError,
)

if TYPE_CHECKING:
    from source_poller.models.source import FetchResult


class StatusClient(abc.ABC):
    """Abstract base class for source status transports.

    Pollers hold clients by weak reference, so a concrete client must be
    an ordinary (weak-referenceable) object owned by the caller.

    Example usage::

        async with HttpStatusClient(TransportConfig.from_env()) as client:
            result = await client.fetch_status("src_123", "src_client_secret_abc")
    """

    @abc.abstractmethod
    async def fetch_status(self, source_id: str, client_secret: str) -> FetchResult:
        """Fetch the current state of *source_id*.

        Args:
            source_id: Identifier of the source to fetch.
            client_secret: Secret that authorises the fetch.

        Returns:
            A ``FetchResult`` with the HTTP status code (if a response
            arrived), the parsed source (on 200) and/or an error.
        """


# ---------------------------------------------------------------------------
# Transport exceptions
# ---------------------------------------------------------------------------


class TransportError(SourcePollerError):
    """Base exception for transport failures.

    Attributes:
        message: Human-readable error description.
        retryable: Whether the poller should retry the fetch.
    """

    default_stage = "transport"
    default_code = "TRANSPORT_FAILED"

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(
            message,
            retryable=retryable,
            code=self.default_code,
            stage=self.default_stage,
        )


class ConnectivityError(TransportError, TransientError):
    """The network is temporarily unavailable. Retried without counting."""

    default_code = "TRANSPORT_CONNECTIVITY"

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=True)


class NotConnectedError(ConnectivityError):
    """No route to the API host (offline, DNS failure, refused)."""

    default_code = "NOT_CONNECTED"


class ConnectionLostError(ConnectivityError):
    """The connection dropped while the request was in flight."""

    default_code = "CONNECTION_LOST"


class ResponseDecodeError(TransportError, ContractError):
    """The API answered with a body that is not a valid source."""

    default_code = "RESPONSE_DECODE_FAILED"


class APIResponseError(TransportError):
    """The API answered with a non-200 status.

    Attributes:
        status_code: HTTP status code of the response.
        error_type: Error ``type`` from the API error envelope, if any.
    """

    default_code = "API_RESPONSE_ERROR"

    def __init__(self, status_code: int, message: str, *, error_type: str = "") -> None:
        self.status_code = status_code
        self.error_type = error_type
        super().__init__(message, retryable=status_code >= 500)

    def __str__(self) -> str:
        return f"[HTTP {self.status_code}] {self.message}"

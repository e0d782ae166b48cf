"""HTTP status transport built on ``httpx``.

Fetches ``GET {api_base_url}/v1/sources/{source_id}?client_secret=...``
and converts every outcome into a ``FetchResult``:

- 200 with a valid body  → ``FetchResult(200, source)``
- 200 with a bad body    → ``FetchResult(None, error=ResponseDecodeError)``
- any other status       → ``FetchResult(code, error=APIResponseError)``
- host unreachable       → ``FetchResult(None, error=NotConnectedError)``
- connection dropped     → ``FetchResult(None, error=ConnectionLostError)``
- other httpx failures   → ``FetchResult(None, error=TransportError)``
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError as PydanticValidationError

from source_poller.core.config import TransportConfig
from source_poller.core.constants import HTTP_OK
from source_poller.models.source import FetchResult, Source
from source_poller.transport.base import (
    APIResponseError,
    ConnectionLostError,
    NotConnectedError,
    ResponseDecodeError,
    StatusClient,
    TransportError,
)

if TYPE_CHECKING:
    from types import TracebackType

logger = logging.getLogger("source_poller.transport.http")

_SOURCES_PATH = "/v1/sources/{source_id}"

#: httpx errors raised when the connection drops mid-request.
_CONNECTION_LOST_ERRORS: tuple[type[httpx.HTTPError], ...] = (
    httpx.RemoteProtocolError,
    httpx.ReadError,
    httpx.WriteError,
)


class HttpStatusClient(StatusClient):
    """Fetch source status over HTTP with ``httpx.AsyncClient``.

    The client owns its ``httpx.AsyncClient`` unless one is injected
    (tests inject one backed by ``httpx.MockTransport``).  Use it as an
    async context manager or call ``aclose()`` when done.
    """

    def __init__(
        self,
        config: TransportConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or TransportConfig()
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=self._config.api_base_url,
            timeout=self._config.request_timeout_s,
            headers={"User-Agent": self._config.user_agent},
        )

    @property
    def config(self) -> TransportConfig:
        """Return the transport configuration (read-only)."""
        return self._config

    async def __aenter__(self) -> HttpStatusClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying ``httpx.AsyncClient`` if this client owns it."""
        if self._owns_http_client:
            await self._http.aclose()

    async def fetch_status(self, source_id: str, client_secret: str) -> FetchResult:
        """Fetch one source and classify the outcome (never raises ``httpx`` errors)."""
        path = _SOURCES_PATH.format(source_id=quote(source_id, safe=""))
        try:
            response = await self._http.get(path, params={"client_secret": client_secret})
        except httpx.ConnectError as exc:
            logger.debug("Source fetch not connected | source_id=%s | error=%s", source_id, exc)
            return FetchResult(error=NotConnectedError(f"Cannot reach sources API: {exc}"))
        except _CONNECTION_LOST_ERRORS as exc:
            logger.debug("Source fetch connection lost | source_id=%s | error=%s", source_id, exc)
            return FetchResult(error=ConnectionLostError(f"Connection lost: {exc}"))
        except httpx.HTTPError as exc:
            logger.debug("Source fetch failed | source_id=%s | error=%r", source_id, exc)
            return FetchResult(error=TransportError(f"Source fetch failed: {exc!r}"))

        if response.status_code != HTTP_OK:
            return FetchResult(
                status_code=response.status_code,
                error=_api_error(response),
            )

        try:
            source = Source.model_validate(response.json())
        except (ValueError, PydanticValidationError) as exc:
            msg = f"Invalid source payload for {source_id!r}: {exc}"
            return FetchResult(error=ResponseDecodeError(msg))

        logger.debug(
            "Source fetched | source_id=%s | status=%s",
            source.id,
            source.status.value,
        )
        return FetchResult(status_code=HTTP_OK, source=source)


def _api_error(response: httpx.Response) -> APIResponseError:
    """Build an ``APIResponseError`` from a non-200 response.

    Reads the ``{"error": {"type": ..., "message": ...}}`` envelope when
    present, falling back to the HTTP reason phrase.
    """
    envelope: dict[str, Any] = {}
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        envelope = body["error"]

    message = str(envelope.get("message") or response.reason_phrase or "request failed")
    return APIResponseError(
        response.status_code,
        message,
        error_type=str(envelope.get("type", "")),
    )

"""Source poller — re-fetch a source until its status is terminal.

A ``SourcePoller`` owns one single-shot timer and at most one in-flight
fetch.  Each poll cycle fetches the source through the injected
``StatusClient``, classifies the outcome and either reschedules itself
or stops:

=====================================  ==========================================
Outcome                                Action
=====================================  ==========================================
HTTP 4xx                               notify ``(latest_source, error)``, stop
HTTP 200                               notify if first/changed status; reset
                                       interval and retry count; reschedule
                                       while pending, otherwise stop
HTTP 500                               double interval (capped), count a retry
any other HTTP status                  reset interval, count a retry
no response, connectivity error        retry at the current interval, uncounted
no response, any other error           notify ``(latest_source, error)``, stop
=====================================  ==========================================

Before each fetch the poller gives up silently (no notification) once
the client has been released, ``POLL_TIMEOUT_S`` has elapsed or
``MAX_RETRIES`` counted failures have accumulated.

State machine::

    IDLE ──construct/resume──▶ SCHEDULED ──timer, guards pass──▶ FETCHING
      ▲                            │                               │
      └──────── suspend ───────────┤◀────── retryable outcome ─────┤
                                   ▼                               ▼
                                STOPPED ◀──── terminal outcome ─────┘

All mutation happens in timer and fetch-completion callbacks delivered
by the scheduler (the running ``asyncio`` loop by default), so the state
machine is serialized without locks.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import weakref
from typing import TYPE_CHECKING, Any, Protocol

from source_poller.core.constants import (
    DEFAULT_POLL_INTERVAL_S,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_OK,
    MAX_POLL_INTERVAL_S,
    MAX_RETRIES,
    POLL_TIMEOUT_S,
    is_client_error,
)
from source_poller.core.exceptions import ValidationError, error_fields
from source_poller.models.source import FetchResult, Source, SourceStatus
from source_poller.transport.base import (
    APIResponseError,
    ConnectivityError,
    ResponseDecodeError,
    TransportError,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine
    from types import TracebackType

    from source_poller.polling.lifecycle import LifecycleSignals, Subscription
    from source_poller.transport.base import StatusClient

    UpdateCallback = Callable[[Source | None, BaseException | None], None]
    StopCallback = Callable[["StopReason"], None]

logger = logging.getLogger("source_poller.polling.poller")


class PollerState(enum.Enum):
    """Where the poller is in its poll cycle."""

    IDLE = "idle"
    SCHEDULED = "scheduled"
    FETCHING = "fetching"
    STOPPED = "stopped"


class StopReason(enum.Enum):
    """Why a poller stopped.

    Values:
        TERMINAL_STATUS:   A 200 response carried a non-pending status.
        CLIENT_ERROR:      The API answered 4xx.
        TRANSPORT_ERROR:   The fetch failed without a retryable cause.
        TIMED_OUT:         ``POLL_TIMEOUT_S`` elapsed (silent).
        RETRIES_EXHAUSTED: ``MAX_RETRIES`` counted failures (silent).
        CLIENT_RELEASED:   The status client was garbage-collected (silent).
        CANCELLED:         ``stop()`` or ``close()`` was called.
    """

    TERMINAL_STATUS = "terminal_status"
    CLIENT_ERROR = "client_error"
    TRANSPORT_ERROR = "transport_error"
    TIMED_OUT = "timed_out"
    RETRIES_EXHAUSTED = "retries_exhausted"
    CLIENT_RELEASED = "client_released"
    CANCELLED = "cancelled"


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Serialized execution context for one or more pollers.

    ``asyncio.AbstractEventLoop`` satisfies this protocol; tests pass a
    manual-clock implementation.
    """

    def time(self) -> float: ...

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...

    def create_task(
        self, coro: Coroutine[Any, Any, FetchResult]
    ) -> asyncio.Future[FetchResult]: ...


def should_continue_polling(source: Source | None) -> bool:
    """Return ``True`` iff *source* is present and still pending."""
    if source is None:
        return False
    return source.status is SourceStatus.PENDING


def _weak_callback(method: Callable[..., None]) -> Callable[..., None]:
    """Wrap a bound method so the scheduler does not keep its owner alive."""
    ref = weakref.WeakMethod(method)

    def _call(*args: Any) -> None:
        bound = ref()
        if bound is not None:
            bound(*args)

    return _call


class SourcePoller:
    """Poll one source until it reaches a terminal status.

    The first poll is scheduled with zero delay on construction; no
    fetch happens synchronously inside ``__init__``.  Construct the
    poller from code running on the event loop (or pass ``scheduler``).

    The poller is only referenced weakly by its timers, fetch callbacks
    and lifecycle registration: the caller must keep a reference for as
    long as polling should continue.  Dropping the last reference
    cancels everything, as does ``close()`` or leaving a ``with`` block.

    Args:
        client: Status transport.  Held by weak reference; its
            disappearance stops polling silently.
        source_id: Identifier of the source to poll.
        client_secret: Secret that authorises fetching the source.
        on_update: Called with ``(source, None)`` for every novel status
            and with ``(latest_source, error)`` on a non-retryable error.
        lifecycle: Optional lifecycle signal source; backgrounding
            suspends the poller and foregrounding resumes it.
        scheduler: Execution context (defaults to the running loop).
        on_stop: Optional hook called once with the ``StopReason``.

    Raises:
        ValidationError: If ``source_id`` or ``client_secret`` is empty.
    """

    def __init__(
        self,
        client: StatusClient,
        source_id: str,
        client_secret: str,
        on_update: UpdateCallback,
        *,
        lifecycle: LifecycleSignals | None = None,
        scheduler: Scheduler | None = None,
        on_stop: StopCallback | None = None,
    ) -> None:
        self._timer: TimerHandle | None = None
        self._fetch: asyncio.Future[FetchResult] | None = None
        self._subscription: Subscription | None = None
        self._state = PollerState.IDLE

        if not source_id:
            msg = "SourcePoller: source_id must not be empty"
            raise ValidationError(msg, stage="poller", code="POLLER_INVALID_ARGUMENT")
        if not client_secret:
            msg = "SourcePoller: client_secret must not be empty"
            raise ValidationError(msg, stage="poller", code="POLLER_INVALID_ARGUMENT")

        self._client_ref: weakref.ref[StatusClient] = weakref.ref(client)
        self._source_id = source_id
        self._client_secret = client_secret
        self._on_update = on_update
        self._on_stop = on_stop
        self._scheduler: Scheduler = scheduler or asyncio.get_running_loop()

        self._latest_source: Source | None = None
        self._interval = DEFAULT_POLL_INTERVAL_S
        self._retry_count = 0
        self._started_at = self._scheduler.time()
        self._stop_reason: StopReason | None = None

        if lifecycle is not None:
            self._subscription = lifecycle.subscribe(self)

        logger.info("Source polling started | source_id=%s", source_id)
        self._poll_after(0)

    def __del__(self) -> None:
        self._cancel_pending()
        if self._subscription is not None:
            self._subscription.close()

    def __enter__(self) -> SourcePoller:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def source_id(self) -> str:
        return self._source_id

    @property
    def state(self) -> PollerState:
        return self._state

    @property
    def stop_reason(self) -> StopReason | None:
        """Why the poller stopped, or ``None`` while it is still live."""
        return self._stop_reason

    @property
    def latest_source(self) -> Source | None:
        """The last source observed with HTTP 200."""
        return self._latest_source

    @property
    def current_interval(self) -> float:
        """Delay in seconds before the next scheduled poll."""
        return self._interval

    @property
    def retry_count(self) -> int:
        return self._retry_count

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def stop(self) -> None:
        """Stop polling for good.  Idempotent."""
        self._finish(StopReason.CANCELLED)

    def close(self) -> None:
        """Stop polling and deregister from the lifecycle source."""
        self.stop()
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    def suspend(self) -> None:
        """Cancel the pending poll and in-flight fetch, keeping the poller resumable."""
        if self._state is PollerState.STOPPED:
            return
        self._cancel_pending()
        self._state = PollerState.IDLE
        logger.debug("Source polling suspended | source_id=%s", self._source_id)

    def resume(self) -> None:
        """Poll immediately unless a poll is already scheduled or in flight."""
        if self._state is PollerState.STOPPED:
            return
        if self._timer is not None or self._fetch is not None:
            return
        logger.debug("Source polling resumed | source_id=%s", self._source_id)
        self._poll_after(0)

    # LifecycleObserver
    def on_foregrounded(self) -> None:
        self.resume()

    def on_backgrounded(self) -> None:
        self.suspend()

    # ------------------------------------------------------------------
    # Poll cycle
    # ------------------------------------------------------------------

    def _poll_after(self, delay: float) -> None:
        if self._state is PollerState.STOPPED:
            return
        self._timer = self._scheduler.call_later(delay, _weak_callback(self._poll))
        self._state = PollerState.SCHEDULED
        logger.debug("Poll scheduled | source_id=%s | delay=%.1fs", self._source_id, delay)

    def _poll(self) -> None:
        self._timer = None
        if self._state is PollerState.STOPPED:
            return

        client = self._client_ref()
        elapsed = self._scheduler.time() - self._started_at
        if client is None:
            self._finish(StopReason.CLIENT_RELEASED)
            return
        if elapsed >= POLL_TIMEOUT_S:
            self._finish(StopReason.TIMED_OUT)
            return
        if self._retry_count >= MAX_RETRIES:
            self._finish(StopReason.RETRIES_EXHAUSTED)
            return

        self._state = PollerState.FETCHING
        fetch = self._scheduler.create_task(
            client.fetch_status(self._source_id, self._client_secret)
        )
        self._fetch = fetch
        fetch.add_done_callback(_weak_callback(self._on_fetch_done))

    def _on_fetch_done(self, fetch: asyncio.Future[FetchResult]) -> None:
        # Completions of cancelled or superseded fetches are ignored.
        if fetch is not self._fetch:
            return
        self._fetch = None
        self._state = PollerState.IDLE

        if fetch.cancelled():
            result = FetchResult(error=TransportError("Source fetch was cancelled"))
        elif fetch.exception() is not None:
            result = FetchResult(error=fetch.exception())
        else:
            result = fetch.result()
        self._continue_with(result)

    def _continue_with(self, result: FetchResult) -> None:
        status_code = result.status_code

        if status_code is None:
            if isinstance(result.error, ConnectivityError):
                logger.warning(
                    "Connectivity error, retrying | source_id=%s | interval=%.1fs | error=%s",
                    self._source_id,
                    self._interval,
                    result.error,
                )
                self._poll_after(self._interval)
                return
            error = result.error or TransportError("Source fetch returned no response")
            self._fail(error, StopReason.TRANSPORT_ERROR)
            return

        if is_client_error(status_code):
            error = result.error or APIResponseError(status_code, "Source fetch rejected")
            self._fail(error, StopReason.CLIENT_ERROR)
            return

        if status_code == HTTP_OK:
            if result.source is None:
                error = result.error or ResponseDecodeError("HTTP 200 without a source payload")
                self._fail(error, StopReason.TRANSPORT_ERROR)
                return
            self._observe(result.source)
            return

        if status_code == HTTP_INTERNAL_SERVER_ERROR:
            self._interval = min(self._interval * 2, MAX_POLL_INTERVAL_S)
        else:
            self._interval = DEFAULT_POLL_INTERVAL_S
        self._retry_count += 1
        logger.warning(
            "Source fetch failed, retrying | source_id=%s | http=%d | retry=%d/%d | interval=%.1fs",
            self._source_id,
            status_code,
            self._retry_count,
            MAX_RETRIES,
            self._interval,
        )
        self._poll_after(self._interval)

    def _observe(self, source: Source) -> None:
        previous = self._latest_source
        novel = previous is None or source.status != previous.status
        self._interval = DEFAULT_POLL_INTERVAL_S
        self._latest_source = source
        self._retry_count = 0
        if novel:
            logger.info(
                "Source status changed | source_id=%s | status=%s",
                self._source_id,
                source.status.value,
            )

        if not should_continue_polling(source):
            self._finish(StopReason.TERMINAL_STATUS, (source, None) if novel else None)
            return
        # The next poll is scheduled before notifying so a raising
        # callback cannot strand the poller without a timer.
        self._poll_after(self._interval)
        if novel:
            self._on_update(source, None)

    def _fail(self, error: BaseException, reason: StopReason) -> None:
        fields = error_fields(error)
        logger.warning(
            "Source polling failed | source_id=%s | reason=%s | category=%s | code=%s | error=%s",
            self._source_id,
            reason.value,
            fields["category"],
            fields["code"],
            error,
        )
        self._finish(reason, (self._latest_source, error))

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def _finish(
        self,
        reason: StopReason,
        update: tuple[Source | None, BaseException | None] | None = None,
    ) -> None:
        """Stop with *reason*, delivering a last *update* before ``on_stop``.

        The poller is already ``STOPPED`` when the final update runs, so a
        ``stop()`` from inside the callback keeps the original reason.
        ``on_stop`` fires even if the update callback raises.
        """
        if self._state is PollerState.STOPPED:
            return
        self._cancel_pending()
        self._state = PollerState.STOPPED
        self._stop_reason = reason
        logger.info(
            "Source polling stopped | source_id=%s | reason=%s | retries=%d",
            self._source_id,
            reason.value,
            self._retry_count,
        )
        try:
            if update is not None:
                self._on_update(*update)
        finally:
            if self._on_stop is not None:
                self._on_stop(reason)

    def _cancel_pending(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
        fetch, self._fetch = self._fetch, None
        if fetch is not None and not fetch.done():
            fetch.cancel()

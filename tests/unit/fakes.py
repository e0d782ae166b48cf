"""Test doubles for the poller: a manual-clock scheduler and scripted clients."""

from __future__ import annotations

import asyncio
from collections import deque
from typing import TYPE_CHECKING, Any

from source_poller.models.source import FetchResult, Source, SourceStatus
from source_poller.transport.base import StatusClient

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine, Iterable


class ManualTimer:
    """Timer handle returned by ``ManualScheduler.call_later``."""

    def __init__(self, when: float, callback: Callable[..., Any], args: tuple[Any, ...]) -> None:
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose clock only moves when ``advance()`` is called.

    Tasks still run on the real event loop, so tests ``await settle()``
    after advancing to let fetches complete.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self.delays: list[float] = []
        self._timers: list[ManualTimer] = []

    def time(self) -> float:
        return self.now

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ManualTimer:
        timer = ManualTimer(self.now + delay, callback, args)
        self._timers.append(timer)
        self.delays.append(delay)
        return timer

    def create_task(self, coro: Coroutine[Any, Any, FetchResult]) -> asyncio.Future[FetchResult]:
        return asyncio.get_running_loop().create_task(coro)

    def pending(self) -> list[ManualTimer]:
        """Return timers that have neither fired nor been cancelled."""
        return [t for t in self._timers if not t.cancelled]

    def advance(self, seconds: float) -> None:
        """Move the clock forward and fire every timer that falls due."""
        self.now += seconds
        due = sorted((t for t in self.pending() if t.when <= self.now), key=lambda t: t.when)
        for timer in due:
            self._timers.remove(timer)
            if not timer.cancelled:
                timer.callback(*timer.args)


async def settle() -> None:
    """Let fetch tasks and their done-callbacks run."""
    for _ in range(5):
        await asyncio.sleep(0)


class ScriptedClient(StatusClient):
    """Returns queued ``FetchResult`` objects in order, one per fetch."""

    def __init__(self, results: Iterable[FetchResult] = ()) -> None:
        self.results: deque[FetchResult] = deque(results)
        self.calls: list[tuple[str, str]] = []

    def queue(self, *results: FetchResult) -> None:
        self.results.extend(results)

    async def fetch_status(self, source_id: str, client_secret: str) -> FetchResult:
        self.calls.append((source_id, client_secret))
        return self.results.popleft()


class BlockingClient(StatusClient):
    """Fetches wait on a future the test resolves by hand."""

    def __init__(self) -> None:
        self.calls = 0
        self.pending: asyncio.Future[FetchResult] | None = None

    async def fetch_status(self, source_id: str, client_secret: str) -> FetchResult:
        self.calls += 1
        self.pending = asyncio.get_running_loop().create_future()
        return await self.pending


class RaisingClient(StatusClient):
    """Every fetch raises the given exception."""

    def __init__(self, exc: BaseException) -> None:
        self.exc = exc

    async def fetch_status(self, source_id: str, client_secret: str) -> FetchResult:
        raise self.exc


def make_source(status: SourceStatus, source_id: str = "src_123") -> Source:
    return Source(id=source_id, status=status, type="three_d_secure")


def ok(status: SourceStatus) -> FetchResult:
    """A 200 response carrying a source in *status*."""
    return FetchResult(status_code=200, source=make_source(status))


class UpdateRecorder:
    """Collects ``on_update`` calls."""

    def __init__(self) -> None:
        self.calls: list[tuple[Source | None, BaseException | None]] = []

    def __call__(self, source: Source | None, error: BaseException | None) -> None:
        self.calls.append((source, error))

    @property
    def statuses(self) -> list[SourceStatus | None]:
        return [source.status if source else None for source, _ in self.calls]

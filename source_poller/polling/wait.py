"""Await a source's final state.

``wait_for_source`` wraps a ``SourcePoller`` in a coroutine for callers
that want a single answer instead of a stream of updates.  Unlike the
update callback it also reports *why* polling ended, so a silent
give-up (timeout, retry budget) is distinguishable from success.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING

from source_poller.polling.poller import SourcePoller, StopReason

if TYPE_CHECKING:
    from source_poller.models.source import Source
    from source_poller.polling.lifecycle import LifecycleSignals
    from source_poller.polling.poller import Scheduler
    from source_poller.transport.base import StatusClient


@dataclass(frozen=True, slots=True)
class PollOutcome:
    """Final result of ``wait_for_source``.

    Attributes:
        source: Last source observed with HTTP 200, if any.
        error: Error surfaced by the poller, if polling ended on one.
        reason: Why polling stopped.
    """

    source: Source | None
    error: BaseException | None
    reason: StopReason

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` when polling ended on a terminal status."""
        return self.reason is StopReason.TERMINAL_STATUS


async def wait_for_source(
    client: StatusClient,
    source_id: str,
    client_secret: str,
    *,
    lifecycle: LifecycleSignals | None = None,
    scheduler: Scheduler | None = None,
) -> PollOutcome:
    """Poll *source_id* until the poller stops and return the outcome.

    Cancelling the awaiting task closes the poller.

    Args:
        client: Status transport (must outlive the call).
        source_id: Identifier of the source to poll.
        client_secret: Secret that authorises fetching the source.
        lifecycle: Optional lifecycle signal source.
        scheduler: Execution context (defaults to the running loop).

    Returns:
        A ``PollOutcome`` with the latest source, surfaced error and
        stop reason.
    """
    stopped: asyncio.Future[StopReason] = asyncio.get_running_loop().create_future()
    errors: list[BaseException] = []

    def _on_update(_source: Source | None, error: BaseException | None) -> None:
        if error is not None:
            errors.append(error)

    def _on_stop(reason: StopReason) -> None:
        if not stopped.done():
            stopped.set_result(reason)

    with SourcePoller(
        client,
        source_id,
        client_secret,
        _on_update,
        lifecycle=lifecycle,
        scheduler=scheduler,
        on_stop=_on_stop,
    ) as poller:
        reason = await stopped

    return PollOutcome(
        source=poller.latest_source,
        error=errors[-1] if errors else None,
        reason=reason,
    )

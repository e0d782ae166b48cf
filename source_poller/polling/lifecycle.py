"""Host-application lifecycle signals.

The poller should stop hitting the network while the host application
is in the background and pick up again when it returns.  Instead of a
process-wide notification bus, a ``LifecycleSignals`` instance is
created by the host and injected into each poller.

Observers are held by weak reference, so an abandoned poller is never
kept alive by its registration, and ``Subscription`` releases the
registration deterministically (``close()`` or ``with``).

Usage::

    signals = LifecycleSignals()
    poller = SourcePoller(client, source_id, secret, on_update, lifecycle=signals)
    ...
    signals.emit(LifecycleEvent.DID_ENTER_BACKGROUND)  # poller suspends
    signals.emit(LifecycleEvent.WILL_ENTER_FOREGROUND)  # poller resumes
"""

from __future__ import annotations

import enum
import logging
import weakref
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from types import TracebackType

logger = logging.getLogger("source_poller.polling.lifecycle")


class LifecycleEvent(enum.Enum):
    """Host application lifecycle events.

    ``DID_BECOME_ACTIVE`` and ``WILL_ENTER_FOREGROUND`` are foreground
    signals; ``WILL_RESIGN_ACTIVE`` and ``DID_ENTER_BACKGROUND`` are
    background signals.
    """

    DID_BECOME_ACTIVE = "did_become_active"
    WILL_ENTER_FOREGROUND = "will_enter_foreground"
    WILL_RESIGN_ACTIVE = "will_resign_active"
    DID_ENTER_BACKGROUND = "did_enter_background"

    @property
    def is_foreground(self) -> bool:
        return self in (LifecycleEvent.DID_BECOME_ACTIVE, LifecycleEvent.WILL_ENTER_FOREGROUND)


class LifecycleObserver(Protocol):
    """Anything that reacts to foreground/background transitions."""

    def on_foregrounded(self) -> None: ...

    def on_backgrounded(self) -> None: ...


class Subscription:
    """Registration of one observer with a ``LifecycleSignals`` source.

    ``close()`` is idempotent; the subscription is also a context
    manager that closes on exit.
    """

    def __init__(self, signals: LifecycleSignals, observer: LifecycleObserver) -> None:
        self._signals: weakref.ref[LifecycleSignals] = weakref.ref(signals)
        self._observer: weakref.ref[LifecycleObserver] = weakref.ref(observer)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Deregister the observer (no-op if already closed)."""
        if self._closed:
            return
        self._closed = True
        signals = self._signals()
        if signals is not None:
            signals._remove(self)

    def observer(self) -> LifecycleObserver | None:
        """Return the observer, or ``None`` if it has been garbage-collected."""
        return self._observer()

    def __enter__(self) -> Subscription:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class LifecycleSignals:
    """Lifecycle signal source injected into pollers.

    The host application calls ``foregrounded()`` / ``backgrounded()``
    (or ``emit()`` with a raw ``LifecycleEvent``) from the same event
    loop the pollers run on.
    """

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []

    def __len__(self) -> int:
        """Return the number of live registrations."""
        return sum(1 for sub in self._subscriptions if sub.observer() is not None)

    def subscribe(self, observer: LifecycleObserver) -> Subscription:
        """Register *observer* and return its ``Subscription``."""
        subscription = Subscription(self, observer)
        self._subscriptions.append(subscription)
        return subscription

    def emit(self, event: LifecycleEvent) -> None:
        """Deliver *event* to every live observer."""
        logger.debug("Lifecycle event | event=%s | observers=%d", event.value, len(self))
        for subscription in list(self._subscriptions):
            observer = subscription.observer()
            if observer is None:
                self._remove(subscription)
                continue
            if event.is_foreground:
                observer.on_foregrounded()
            else:
                observer.on_backgrounded()

    def foregrounded(self) -> None:
        """The host application returned to the foreground."""
        self.emit(LifecycleEvent.WILL_ENTER_FOREGROUND)

    def backgrounded(self) -> None:
        """The host application moved to the background."""
        self.emit(LifecycleEvent.DID_ENTER_BACKGROUND)

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

"""Source polling state machine and its lifecycle integration.

- SourcePoller: Polls one source until it reaches a terminal status
- LifecycleSignals: Injected foreground/background signal source
- wait_for_source: Coroutine wrapper returning the final ``PollOutcome``
"""

from source_poller.polling.lifecycle import (
    LifecycleEvent,
    LifecycleObserver,
    LifecycleSignals,
    Subscription,
)
from source_poller.polling.poller import (
    PollerState,
    Scheduler,
    SourcePoller,
    StopReason,
    should_continue_polling,
)
from source_poller.polling.wait import PollOutcome, wait_for_source

__all__ = [
    "LifecycleEvent",
    "LifecycleObserver",
    "LifecycleSignals",
    "PollOutcome",
    "PollerState",
    "Scheduler",
    "SourcePoller",
    "StopReason",
    "Subscription",
    "should_continue_polling",
    "wait_for_source",
]

"""Polling contract constants — single source of truth.

These values are part of the poller's contract and are deliberately not
configurable at call sites.  Every poller in the process backs off,
times out and gives up on the same schedule.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Poll schedule
# ---------------------------------------------------------------------------

DEFAULT_POLL_INTERVAL_S: float = 1.5
"""Delay before the next poll after a clean or non-500 response."""

MAX_POLL_INTERVAL_S: float = 24.0
"""Upper bound for the exponential backoff applied on HTTP 500."""

POLL_TIMEOUT_S: float = 300.0
"""Total polling duration after which the poller gives up silently."""

MAX_RETRIES: int = 5
"""Consecutive counted failures after which the poller gives up silently."""

# ---------------------------------------------------------------------------
# HTTP status codes the classifier cares about
# ---------------------------------------------------------------------------

HTTP_OK: int = 200
HTTP_CLIENT_ERROR_MIN: int = 400
HTTP_SERVER_ERROR_MIN: int = 500
HTTP_INTERNAL_SERVER_ERROR: int = 500


def is_client_error(status_code: int) -> bool:
    """Return ``True`` for codes in ``[400, 500)``."""
    return HTTP_CLIENT_ERROR_MIN <= status_code < HTTP_SERVER_ERROR_MIN

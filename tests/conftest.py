"""Shared pytest fixtures for the source poller test suite."""

import pytest

from source_poller.polling.lifecycle import LifecycleSignals
from source_poller.transport.base import StatusClient

# ---------------------------------------------------------------------------
# Lifecycle fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def signals() -> LifecycleSignals:
    """Return a fresh lifecycle signal source with no observers."""
    return LifecycleSignals()


# ---------------------------------------------------------------------------
# Transport fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def status_client_cls() -> type[StatusClient]:
    """Return the abstract transport class for contract checks."""
    return StatusClient

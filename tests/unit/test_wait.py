"""Tests for the wait_for_source coroutine wrapper."""

from __future__ import annotations

import asyncio
import unittest

from source_poller.core.constants import MAX_POLL_INTERVAL_S, MAX_RETRIES
from source_poller.models.source import FetchResult, SourceStatus
from source_poller.polling.poller import StopReason
from source_poller.polling.wait import wait_for_source
from source_poller.transport.base import APIResponseError
from tests.unit.fakes import BlockingClient, ManualScheduler, ScriptedClient, ok, settle


class TestWaitForSource(unittest.IsolatedAsyncioTestCase):
    async def test_terminal_status(self) -> None:
        client = ScriptedClient([ok(SourceStatus.CHARGEABLE)])
        outcome = await asyncio.wait_for(wait_for_source(client, "src_123", "secret"), 1.0)

        assert outcome.is_terminal is True
        assert outcome.reason is StopReason.TERMINAL_STATUS
        assert outcome.source is not None
        assert outcome.source.status is SourceStatus.CHARGEABLE
        assert outcome.error is None

    async def test_client_error_surfaces(self) -> None:
        client = ScriptedClient([FetchResult(status_code=403)])
        outcome = await asyncio.wait_for(wait_for_source(client, "src_123", "secret"), 1.0)

        assert outcome.is_terminal is False
        assert outcome.reason is StopReason.CLIENT_ERROR
        assert isinstance(outcome.error, APIResponseError)
        assert outcome.source is None

    async def test_give_up_reports_reason_without_error(self) -> None:
        scheduler = ManualScheduler()
        client = ScriptedClient([FetchResult(status_code=500) for _ in range(MAX_RETRIES)])
        task = asyncio.create_task(
            wait_for_source(client, "src_123", "secret", scheduler=scheduler)
        )
        await settle()
        for _ in range(MAX_RETRIES + 1):
            scheduler.advance(MAX_POLL_INTERVAL_S)
            await settle()

        outcome = await asyncio.wait_for(task, 1.0)
        assert outcome.reason is StopReason.RETRIES_EXHAUSTED
        assert outcome.error is None
        assert outcome.source is None

    async def test_cancel_closes_poller(self) -> None:
        scheduler = ManualScheduler()
        client = BlockingClient()
        task = asyncio.create_task(
            wait_for_source(client, "src_123", "secret", scheduler=scheduler)
        )
        await settle()
        scheduler.advance(0)
        await settle()
        assert client.calls == 1

        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task
        assert client.pending is not None
        assert client.pending.cancelled()
        assert scheduler.pending() == []

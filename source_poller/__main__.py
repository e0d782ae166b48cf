"""Command-line entry point — watch one source until it settles.

Usage::

    python -m source_poller SOURCE_ID CLIENT_SECRET [--verbose]

Configuration comes from the environment (see ``TransportConfig``).
This module is purely wiring: all behaviour lives in the package.

Exit codes:
    0  the source reached a terminal status
    1  polling stopped on an error
    2  polling gave up (timeout, retry budget) without an answer
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from source_poller.core.config import TransportConfig
from source_poller.core.exceptions import error_fields
from source_poller.polling.poller import StopReason
from source_poller.polling.wait import PollOutcome, wait_for_source
from source_poller.transport.http import HttpStatusClient

logger = logging.getLogger("source_poller.cli")

EXIT_TERMINAL = 0
EXIT_ERROR = 1
EXIT_GAVE_UP = 2

_ERROR_REASONS = (StopReason.CLIENT_ERROR, StopReason.TRANSPORT_ERROR)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="source_poller",
        description="Poll a source until it reaches a terminal status.",
    )
    parser.add_argument("source_id", help="Identifier of the source to poll")
    parser.add_argument("client_secret", help="Client secret of the source")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


async def _watch(source_id: str, client_secret: str) -> PollOutcome:
    config = TransportConfig.from_env()
    async with HttpStatusClient(config) as client:
        return await wait_for_source(client, source_id, client_secret)


def exit_code_for(outcome: PollOutcome) -> int:
    """Map a ``PollOutcome`` to the process exit code."""
    if outcome.is_terminal:
        return EXIT_TERMINAL
    if outcome.reason in _ERROR_REASONS:
        return EXIT_ERROR
    return EXIT_GAVE_UP


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    outcome = asyncio.run(_watch(args.source_id, args.client_secret))

    status = outcome.source.status.value if outcome.source else "unknown"
    if outcome.error is not None:
        fields = error_fields(outcome.error)
        logger.error(
            "Polling failed | status=%s | category=%s | code=%s | error=%s",
            status,
            fields["category"],
            fields["code"],
            outcome.error,
        )
    print(f"{args.source_id}: {status} ({outcome.reason.value})")
    return exit_code_for(outcome)


if __name__ == "__main__":
    sys.exit(main())

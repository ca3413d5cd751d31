"""FIFO serialization of mutating graph operations.

Mutations are chained through tickets: each operation waits for the ticket of
the operation queued before it and publishes its own ticket for the next one.
The ticket is always released, whether the operation returns, raises or is
cancelled, so a failing mutation never blocks the queue.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def _release(ticket: asyncio.Future[None]) -> None:
    if not ticket.done():
        ticket.set_result(None)


class WriteSerializer:
    """Admit at most one mutating operation at a time, in arrival order.

    Usage:
        serializer = WriteSerializer()
        result = await serializer.run(lambda: manager_body(...))
    """

    def __init__(self) -> None:
        self._tail: asyncio.Future[None] | None = None
        self._pending = 0

    @property
    def pending(self) -> int:
        """Number of operations currently running or queued."""
        return self._pending

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation`` after every previously queued operation finished.

        Args:
            operation: Zero-argument callable returning the awaitable body.

        Returns:
            Whatever the operation returns. Exceptions propagate unchanged.
        """
        wait_for = self._tail
        ticket: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._tail = ticket
        self._pending += 1

        try:
            if wait_for is not None and not wait_for.done():
                # shield: cancelling this waiter must not resolve the previous ticket
                await asyncio.shield(wait_for)
            return await operation()
        finally:
            self._pending -= 1
            if wait_for is None or wait_for.done():
                _release(ticket)
            else:
                # Cancelled while queued: hand over only once the predecessor is done.
                logger.debug("queued_write_cancelled", pending=self._pending)
                wait_for.add_done_callback(lambda _: _release(ticket))
            if self._tail is ticket and ticket.done():
                self._tail = None


__all__ = ["WriteSerializer"]

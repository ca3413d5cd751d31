"""Unit tests for WriteSerializer.

Tests cover:
1. Strict FIFO admission of queued operations
2. Mutual exclusion between operations that await internally
3. Queue progress after failures and cancellations
"""

import asyncio

import pytest

from knowledge_graph_server.knowledge.serializer import WriteSerializer


class TestOrdering:
    """Operations start in arrival order and never overlap."""

    @pytest.mark.asyncio
    async def test_operations_run_in_arrival_order(self) -> None:
        serializer = WriteSerializer()
        events: list[str] = []

        def make(label: str, delay: float):
            async def operation() -> str:
                events.append(f"start:{label}")
                await asyncio.sleep(delay)
                events.append(f"end:{label}")
                return label

            return operation

        results = await asyncio.gather(
            serializer.run(make("a", 0.02)),
            serializer.run(make("b", 0.0)),
            serializer.run(make("c", 0.01)),
        )

        assert results == ["a", "b", "c"]
        assert events == [
            "start:a",
            "end:a",
            "start:b",
            "end:b",
            "start:c",
            "end:c",
        ]

    @pytest.mark.asyncio
    async def test_pending_counts_running_and_queued(self) -> None:
        serializer = WriteSerializer()
        gate = asyncio.Event()

        async def blocked() -> None:
            await gate.wait()

        first = asyncio.create_task(serializer.run(blocked))
        second = asyncio.create_task(serializer.run(blocked))
        await asyncio.sleep(0)

        assert serializer.pending == 2

        gate.set()
        await asyncio.gather(first, second)
        assert serializer.pending == 0


class TestFailureIsolation:
    """A failing or cancelled operation never blocks its successors."""

    @pytest.mark.asyncio
    async def test_exception_propagates_and_queue_continues(self) -> None:
        serializer = WriteSerializer()

        async def failing() -> None:
            raise RuntimeError("boom")

        async def succeeding() -> str:
            return "ok"

        first = asyncio.create_task(serializer.run(failing))
        second = asyncio.create_task(serializer.run(succeeding))

        with pytest.raises(RuntimeError, match="boom"):
            await first
        assert await second == "ok"

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_jump_the_queue(self) -> None:
        serializer = WriteSerializer()
        gate = asyncio.Event()
        events: list[str] = []

        async def holder() -> None:
            events.append("holder:start")
            await gate.wait()
            events.append("holder:end")

        async def follower() -> None:
            events.append("follower")

        running = asyncio.create_task(serializer.run(holder))
        await asyncio.sleep(0)
        cancelled = asyncio.create_task(serializer.run(follower))
        last = asyncio.create_task(serializer.run(follower))
        await asyncio.sleep(0)

        cancelled.cancel()
        await asyncio.sleep(0)
        # The last operation must still wait for the holder
        assert events == ["holder:start"]

        gate.set()
        await asyncio.gather(running, last)
        with pytest.raises(asyncio.CancelledError):
            await cancelled

        assert events == ["holder:start", "holder:end", "follower"]
        assert serializer.pending == 0

"""Tests for the work queue."""

import asyncio

import pytest

from issuekeeper.models import RecordKey
from issuekeeper.reconciler.queue import WorkQueue

A = RecordKey("default", "a")
B = RecordKey("default", "b")


class TestWorkQueue:
    """Tests for WorkQueue delivery guarantees."""

    @pytest.mark.asyncio
    async def test_fifo_delivery(self):
        queue = WorkQueue()
        queue.add(A)
        queue.add(B)

        assert await queue.get() == A
        assert await queue.get() == B

    @pytest.mark.asyncio
    async def test_duplicate_adds_collapse(self):
        queue = WorkQueue()
        queue.add(A)
        queue.add(A)

        assert len(queue) == 1
        assert await queue.get() == A
        assert len(queue) == 0

    @pytest.mark.asyncio
    async def test_key_not_handed_out_while_processing(self):
        queue = WorkQueue()
        queue.add(A)
        key = await queue.get()
        queue.add(A)

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(queue.get(), timeout=0.05)
        assert queue.is_processing(A)

        queue.done(key)
        assert await asyncio.wait_for(queue.get(), timeout=1) == A

    @pytest.mark.asyncio
    async def test_done_without_readd_does_not_requeue(self):
        queue = WorkQueue()
        queue.add(A)
        queue.done(await queue.get())

        assert len(queue) == 0
        assert not queue.is_processing(A)

    @pytest.mark.asyncio
    async def test_add_after_delivers_later(self):
        queue = WorkQueue()
        queue.add_after(A, 0.02)

        assert queue.is_scheduled(A)
        assert len(queue) == 0
        assert await asyncio.wait_for(queue.get(), timeout=1) == A
        assert not queue.is_scheduled(A)

    @pytest.mark.asyncio
    async def test_add_after_keeps_earliest_deadline(self):
        queue = WorkQueue()
        queue.add_after(A, 0.02)
        queue.add_after(A, 60)

        assert await asyncio.wait_for(queue.get(), timeout=1) == A

    @pytest.mark.asyncio
    async def test_add_after_replaces_later_deadline(self):
        queue = WorkQueue()
        queue.add_after(A, 60)
        queue.add_after(A, 0.02)

        assert await asyncio.wait_for(queue.get(), timeout=1) == A

    @pytest.mark.asyncio
    async def test_add_after_zero_adds_now(self):
        queue = WorkQueue()
        queue.add_after(A, 0)

        assert len(queue) == 1
        assert not queue.is_scheduled(A)

    @pytest.mark.asyncio
    async def test_shutdown_releases_all_waiters(self):
        queue = WorkQueue()
        waiters = [asyncio.create_task(queue.get()) for _ in range(3)]
        await asyncio.sleep(0)

        queue.shutdown()

        assert await asyncio.wait_for(asyncio.gather(*waiters), timeout=1) == [None, None, None]

    @pytest.mark.asyncio
    async def test_shutdown_cancels_delayed_adds_and_ignores_new(self):
        queue = WorkQueue()
        queue.add_after(A, 60)

        queue.shutdown()
        queue.add(B)

        assert queue.shutting_down
        assert not queue.is_scheduled(A)
        assert len(queue) == 0
        assert await queue.get() is None

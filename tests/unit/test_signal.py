"""Tests for iterable_emitter.signal module."""

import asyncio

import pytest

from iterable_emitter.signal import ContinuationSignal


class TestContinuationSignal:
    """Tests for ContinuationSignal."""

    def test_notify_without_waiters(self):
        signal = ContinuationSignal()
        signal.notify()
        assert signal.notifications == 1
        assert not signal.waiting

    @pytest.mark.asyncio
    async def test_notify_wakes_waiter(self):
        signal = ContinuationSignal()
        waiter = asyncio.create_task(signal.wait())
        await asyncio.sleep(0)
        assert signal.waiting
        assert not waiter.done()

        signal.notify()
        await asyncio.wait_for(waiter, timeout=1.0)
        assert not signal.waiting

    @pytest.mark.asyncio
    async def test_notify_wakes_all_waiters(self):
        signal = ContinuationSignal()
        waiters = [asyncio.create_task(signal.wait()) for _ in range(3)]
        await asyncio.sleep(0)
        signal.notify()
        await asyncio.wait_for(asyncio.gather(*waiters), timeout=1.0)

    @pytest.mark.asyncio
    async def test_notification_not_remembered(self):
        """Test that a notify before wait() does not satisfy it."""
        signal = ContinuationSignal()
        signal.notify()
        waiter = asyncio.create_task(signal.wait())
        await asyncio.sleep(0.01)
        assert not waiter.done()
        signal.notify()
        await asyncio.wait_for(waiter, timeout=1.0)

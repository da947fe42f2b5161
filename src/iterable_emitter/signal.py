"""Continuation signal used to wake suspended iteration handles."""

from __future__ import annotations

import asyncio


class ContinuationSignal:
    """Single-slot wake channel.

    ``wait()`` suspends until the next ``notify()``. A notification wakes
    every handle waiting at that moment and is not remembered afterwards, so
    waiters must re-check the condition they are waiting on.
    """

    def __init__(self) -> None:
        self._event: asyncio.Event | None = None
        self._notifications = 0

    @property
    def notifications(self) -> int:
        """Number of times ``notify()`` was called."""
        return self._notifications

    @property
    def waiting(self) -> bool:
        """Check whether any coroutine is currently suspended in ``wait()``."""
        return self._event is not None

    def notify(self) -> None:
        """Wake all current waiters."""
        self._notifications += 1
        event, self._event = self._event, None
        if event is not None:
            event.set()

    async def wait(self) -> None:
        """Suspend until the next notification."""
        if self._event is None:
            self._event = asyncio.Event()
        await self._event.wait()


__all__ = ["ContinuationSignal"]

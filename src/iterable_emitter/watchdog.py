"""Inactivity watchdog for adapters configured with ``timeout_ms``."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from iterable_emitter.exceptions import StallTimeoutError
from iterable_emitter.logging import EmitterLogger
from iterable_emitter.state import StreamState


class InactivityWatchdog:
    """Fails the stream when a whole window passes without a data event.

    Every ``timeout_ms`` the watchdog checks the ``active`` heartbeat in the
    shared state. A set heartbeat is cleared and the check re-armed; a clear
    one means no data arrived during the window and ``fail`` is called with
    a :class:`StallTimeoutError`. This holds while the source is paused too:
    a consumer that stops pulling for a whole window fails the stream.
    """

    def __init__(
        self,
        state: StreamState,
        timeout_ms: int,
        fail: Callable[[BaseException], Any],
        log: EmitterLogger,
    ) -> None:
        self.timeout_ms = timeout_ms
        self._state = state
        self._fail = fail
        self._log = log
        self._handle: asyncio.TimerHandle | None = None
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self) -> bool:
        """Arm the first check on the running event loop.

        Returns:
            True if the watchdog is armed, False if no loop is running yet
            or the watchdog was already stopped.
        """
        if self._stopped or self._handle is not None:
            return self._handle is not None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return False
        self._schedule(loop)
        self._log.debug("watchdog_started", {"timeout_ms": self.timeout_ms})
        return True

    def stop(self) -> None:
        """Cancel the pending check. The watchdog cannot be restarted."""
        self._stopped = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            self._log.debug("watchdog_stopped")

    def _schedule(self, loop: asyncio.AbstractEventLoop) -> None:
        self._handle = loop.call_later(self.timeout_ms / 1000, self._tick)

    def _tick(self) -> None:
        self._handle = None
        state = self._state
        if state.done or self._stopped:
            return
        if not state.active:
            self._log.warn("stall_detected", {"timeout_ms": self.timeout_ms})
            self._stopped = True
            self._fail(StallTimeoutError(self.timeout_ms))
            return
        state.active = False
        self._schedule(asyncio.get_running_loop())


__all__ = ["InactivityWatchdog"]

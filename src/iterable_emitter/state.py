"""Shared stream state for an adapter.

One :class:`StreamState` is created per adapter and handed by reference to
the buffer, the event bridge, the watchdog and every iteration handle.
Flags and counters are written by the bridge, the buffer and the watchdog;
iteration handles only maintain ``live_iterator_count``.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import TracebackType

from pydantic import BaseModel


class StreamStats(BaseModel):
    """Point-in-time snapshot of an adapter's state."""

    done: bool = False
    error: bool = False
    error_message: str | None = None
    length: int = 0
    paused: bool = False
    active: bool = False
    live_iterators: int = 0
    total_received: int = 0
    total_ingested: int = 0
    total_returned: int = 0
    total_filtered: int = 0


@dataclass
class StreamState:
    """Mutable flags and counters of one adapter."""

    done: bool = False
    error: bool = False
    error_value: BaseException | None = None
    error_traceback: TracebackType | None = None
    paused: bool = False
    # Heartbeat: set on every data event, cleared by the watchdog
    active: bool = False
    live_iterator_count: int = 0

    total_received: int = 0
    total_ingested: int = 0
    total_returned: int = 0
    total_filtered: int = 0

    def producing(self, length: int) -> bool:
        """Check whether a consumer may still obtain items.

        True while no error was recorded and the stream is either still open
        or completed with ``length`` items left to drain.
        """
        return not self.error and (not self.done or length > 0)

    def record_error(self, error: BaseException) -> bool:
        """Record ``error`` unless one is already recorded.

        Returns:
            True if ``error`` became the stream's error.
        """
        if self.error:
            return False
        self.error = True
        self.error_value = error
        self.error_traceback = error.__traceback__
        return True

    def snapshot(self, length: int) -> StreamStats:
        return StreamStats(
            done=self.done,
            error=self.error,
            error_message=str(self.error_value) if self.error_value is not None else None,
            length=length,
            paused=self.paused,
            active=self.active,
            live_iterators=self.live_iterator_count,
            total_received=self.total_received,
            total_ingested=self.total_ingested,
            total_returned=self.total_returned,
            total_filtered=self.total_filtered,
        )


__all__ = ["StreamState", "StreamStats"]

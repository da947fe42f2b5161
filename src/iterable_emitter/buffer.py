"""Flow-controlled item buffer."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterator
from typing import Any, Final

from iterable_emitter.logging import EmitterLogger
from iterable_emitter.state import StreamState


class _Missing:
    """Returned by ``shift()`` when the buffer is empty."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Final = _Missing()


class FlowControlBuffer:
    """FIFO buffer that pauses and resumes its source around two watermarks.

    The source is paused when a push brings the length to ``high_water_mark``
    and resumed by the first shift that starts with the length at or below
    ``low_water_mark``. The ``paused`` flag lives in the shared
    :class:`StreamState`.
    """

    def __init__(
        self,
        state: StreamState,
        *,
        high_water_mark: int,
        low_water_mark: int,
        pause: Callable[[], Any],
        resume: Callable[[], Any],
        log: EmitterLogger,
    ) -> None:
        """Initialize the buffer.

        Args:
            state: Shared stream state; receives the paused flag and counters.
            high_water_mark: Length at which ``pause`` is invoked.
            low_water_mark: Length at or below which ``resume`` is invoked.
            pause: Pauses the source.
            resume: Resumes the source.
            log: Logger of the owning adapter.
        """
        self.high_water_mark = high_water_mark
        self.low_water_mark = low_water_mark
        self._state = state
        self._pause = pause
        self._resume = resume
        self._log = log
        self._items: deque[Any] = deque()

    def push(self, item: Any) -> int:
        """Append ``item`` to the tail.

        Returns:
            The new length.
        """
        self._items.append(item)
        self._state.total_ingested += 1
        length = len(self._items)
        self._log.debug("item_pushed", item)
        if length >= self.high_water_mark and not self._state.paused:
            self._pause_source()
        return length

    def shift(self) -> Any:
        """Remove and return the head item, or ``MISSING`` if empty."""
        if self._state.paused and len(self._items) <= self.low_water_mark:
            self._resume_source()

        if not self._items:
            return MISSING

        item = self._items.popleft()
        self._state.total_returned += 1
        self._log.debug("item_shifted", item)
        return item

    def peek_length(self) -> int:
        return len(self._items)

    def clear(self) -> int:
        """Discard all buffered items.

        Returns:
            Number of items discarded.
        """
        discarded = len(self._items)
        self._items.clear()
        if discarded:
            self._log.debug("buffer_cleared", {"discarded": discarded})
        return discarded

    def _pause_source(self) -> None:
        self._state.paused = True
        self._pause()
        self._log.debug("source_paused")

    def _resume_source(self) -> None:
        self._state.paused = False
        self._resume()
        self._log.debug("source_resumed")

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        """Iterate over buffered items without removing them."""
        return iter(self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items


__all__ = ["MISSING", "FlowControlBuffer"]

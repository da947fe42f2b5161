"""Pull-iteration over an adapter's buffer."""

from __future__ import annotations

from collections.abc import Callable
from types import TracebackType
from typing import Any
from uuid import uuid4

from iterable_emitter.buffer import FlowControlBuffer
from iterable_emitter.logging import EmitterLogger
from iterable_emitter.signal import ContinuationSignal
from iterable_emitter.state import StreamState


class IterationHandle:
    """One traversal over the shared buffer.

    Handles over the same adapter compete for items: each item is returned
    by exactly one ``__anext__`` call. While the buffer is empty and the
    stream is open, ``__anext__`` suspends until the continuation signal
    fires. Once the stream is done and the buffer drained the handle stops;
    if the stream failed, the recorded error is raised instead, even when
    items were still buffered.

    A handle finishes exactly once: on a clean end, on raising the recorded
    error, on ``aclose()``, or when it is garbage collected unfinished, as
    after a ``break`` out of ``async for``. Cancelling a pending
    ``__anext__`` leaves the handle open. Finishing a handle never
    unsubscribes the adapter from its source.
    """

    def __init__(
        self,
        state: StreamState,
        buffer: FlowControlBuffer,
        signal: ContinuationSignal,
        log: EmitterLogger,
        *,
        on_first_pull: Callable[[], Any] | None = None,
    ) -> None:
        self.handle_id = str(uuid4())
        self._state = state
        self._buffer = buffer
        self._signal = signal
        self._log = log
        self._on_first_pull = on_first_pull
        self._finished = False
        self._pulled = 0

        state.live_iterator_count += 1
        self._log.info("iteration_started", {"handle_id": self.handle_id})

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def pulled(self) -> int:
        """Number of items this handle returned."""
        return self._pulled

    def __aiter__(self) -> IterationHandle:
        return self

    async def __anext__(self) -> Any:
        if self._finished:
            raise StopAsyncIteration
        if self._on_first_pull is not None:
            self._on_first_pull()
            self._on_first_pull = None

        state = self._state
        buffer = self._buffer
        while state.producing(len(buffer)):
            if not len(buffer):
                await self._signal.wait()
                continue
            self._pulled += 1
            return buffer.shift()

        self._finish("iteration_completed")
        error = state.error_value
        if error is not None:
            # Restart from the recorded traceback so repeated raises do not grow it
            raise error.with_traceback(state.error_traceback)
        raise StopAsyncIteration

    async def aclose(self) -> None:
        """Abandon the traversal."""
        self._finish("iteration_abandoned")

    async def __aenter__(self) -> IterationHandle:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def __del__(self) -> None:
        # Covers `async for ... break`, which drops the handle without aclose()
        if not getattr(self, "_finished", True):
            self._finish("iteration_abandoned")

    def _finish(self, message: str) -> None:
        if self._finished:
            return
        self._finished = True
        self._state.live_iterator_count -= 1
        self._log.info(message, {"handle_id": self.handle_id, "pulled": self._pulled})


__all__ = ["IterationHandle"]

"""Adapter turning an event source into an async-iterable sequence."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import TracebackType
from typing import Any, NamedTuple
from uuid import uuid4

from iterable_emitter.bridge import EventBridge
from iterable_emitter.buffer import FlowControlBuffer
from iterable_emitter.exceptions import ConfigurationError
from iterable_emitter.iteration import IterationHandle
from iterable_emitter.logging import EmitterLogger
from iterable_emitter.options import EmitterOptions, validate_options
from iterable_emitter.signal import ContinuationSignal
from iterable_emitter.state import StreamState, StreamStats
from iterable_emitter.watchdog import InactivityWatchdog

ErrorListener = Callable[[BaseException], Any]


class ErrorInfo(NamedTuple):
    """Whether the stream failed, and with which error."""

    error: bool
    value: BaseException | None


def _control(source: Any, method: str | None, function: Callable[..., Any] | None, role: str):
    if function is not None:
        return lambda: function(source)
    bound = getattr(source, method, None) if method else None
    if not callable(bound):
        raise ConfigurationError(
            f"{role}_method {method!r} is not a callable attribute of the source"
        )
    return bound


class IterableEmitter:
    """Async-iterable view of a push-based event source.

    Data events are buffered in emission order and handed out one at a time
    to ``async for`` consumers. The source is paused when the buffer reaches
    the high watermark and resumed once consumers drain it to the low
    watermark. A resolution event ends iteration after the buffer is drained;
    a rejection event, an inactivity stall or data after completion discards
    the buffer and makes every consumer raise the recorded error.

    Example:
        >>> stream = IterableEmitter(
        ...     socket_reader,
        ...     data_event="data",
        ...     resolution_events="end",
        ...     pause_method="pause",
        ...     resume_method="resume",
        ... )
        >>> async for chunk in stream:
        ...     handle(chunk)

    Args:
        source: Object offering ``on(event, handler)`` and
            ``remove_listener(event, handler)`` (or ``off``).
        options: Options as a mapping or :class:`EmitterOptions`.
        **option_kwargs: Options as keyword arguments.

    Raises:
        ConfigurationError: If the options are invalid or do not fit the source.
    """

    def __init__(
        self,
        source: Any,
        options: EmitterOptions | Mapping[str, Any] | None = None,
        **option_kwargs: Any,
    ) -> None:
        self._instance_id = str(uuid4())
        self._options = validate_options(options, **option_kwargs)
        opts = self._options

        self._state = StreamState()
        self._log = EmitterLogger(
            self._instance_id,
            sink=opts.logger,
            min_severity=opts.min_severity,
            stats_provider=lambda: self.stats,
        )
        self._log.info("options_validated", opts.model_dump(exclude={"logger"}))

        pause = _control(source, opts.pause_method, opts.pause_function, "pause")
        resume = _control(source, opts.resume_method, opts.resume_function, "resume")

        self._buffer = FlowControlBuffer(
            self._state,
            high_water_mark=opts.high_water_mark,
            low_water_mark=opts.low_water_mark,
            pause=pause,
            resume=resume,
            log=self._log,
        )
        self._signal = ContinuationSignal()
        self._error_listeners: list[ErrorListener] = []

        self._watchdog: InactivityWatchdog | None = None
        self._bridge = EventBridge(
            source,
            opts,
            self._state,
            self._buffer,
            self._signal,
            self._log,
            on_terminal=self._on_terminal,
            on_error=self._broadcast_error,
        )
        if opts.timeout_ms:
            self._watchdog = InactivityWatchdog(
                self._state, opts.timeout_ms, self._bridge.fail, self._log
            )

        self._bridge.subscribe()
        if self._watchdog is not None:
            self._watchdog.start()

    @property
    def instance_id(self) -> str:
        return self._instance_id

    @property
    def options(self) -> EmitterOptions:
        return self._options

    @property
    def source(self) -> Any:
        return self._bridge.source

    @property
    def done(self) -> bool:
        return self._state.done

    @property
    def error(self) -> ErrorInfo:
        return ErrorInfo(self._state.error, self._state.error_value)

    @property
    def error_value(self) -> BaseException | None:
        return self._state.error_value

    @property
    def length(self) -> int:
        return len(self._buffer)

    @property
    def total_received(self) -> int:
        """Data events received before the stream ended, filtered ones included."""
        return self._state.total_received

    @property
    def total_ingested(self) -> int:
        """Items pushed to the buffer."""
        return self._state.total_ingested

    @property
    def total_returned(self) -> int:
        """Items handed to consumers."""
        return self._state.total_returned

    @property
    def total_filtered(self) -> int:
        """Data events rejected by ``pre_filter``."""
        return self._state.total_filtered

    @property
    def paused(self) -> bool:
        return self._state.paused

    @property
    def active(self) -> bool:
        return self._state.active

    @property
    def live_iterators(self) -> int:
        return self._state.live_iterator_count

    @property
    def stats(self) -> StreamStats:
        return self._state.snapshot(len(self._buffer))

    def __len__(self) -> int:
        return len(self._buffer)

    def iterator(self) -> IterationHandle:
        """Create a new iteration handle over the shared buffer."""
        return IterationHandle(
            self._state,
            self._buffer,
            self._signal,
            self._log,
            on_first_pull=self._start_watchdog,
        )

    def __aiter__(self) -> IterationHandle:
        return self.iterator()

    def add_error_listener(self, listener: ErrorListener) -> None:
        """Call ``listener`` with the error once the stream fails."""
        self._error_listeners.append(listener)

    def remove_error_listener(self, listener: ErrorListener) -> None:
        self._error_listeners.remove(listener)

    def close(self, error: BaseException | None = None) -> None:
        """End the stream from the consumer side.

        Without ``error`` the stream completes and buffered items can still
        be drained. With ``error`` the stream fails as if the source had
        rejected. Has no effect once the stream is done.
        """
        if self._state.done:
            return
        self._log.info("closed", {"error": str(error) if error else None})
        if error is None:
            self._bridge.finish()
        else:
            self._bridge.fail(error)

    async def __aenter__(self) -> IterableEmitter:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def _start_watchdog(self) -> None:
        if self._watchdog is not None:
            self._watchdog.start()

    def _on_terminal(self) -> None:
        if self._watchdog is not None:
            self._watchdog.stop()

    def _broadcast_error(self, error: BaseException) -> None:
        for listener in list(self._error_listeners):
            listener(error)

    def __repr__(self) -> str:
        state = self._state
        return (
            f"IterableEmitter(id={self._instance_id!r}, length={len(self._buffer)}, "
            f"done={state.done}, error={state.error}, paused={state.paused})"
        )


__all__ = ["ErrorInfo", "IterableEmitter"]

"""Bridge from the source's named events to buffer and state transitions.

The bridge subscribes three kinds of handlers to the source: one for the
data event, one per resolution event and one per rejection event. The kind
of every event is decided once, when subscribing.
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from iterable_emitter.buffer import FlowControlBuffer
from iterable_emitter.exceptions import (
    ConfigurationError,
    ProtocolViolationError,
    UpstreamRejectionError,
)
from iterable_emitter.logging import EmitterLogger
from iterable_emitter.options import EmitterOptions
from iterable_emitter.signal import ContinuationSignal
from iterable_emitter.state import StreamState


@runtime_checkable
class EventSource(Protocol):
    """Interface the adapter requires from a source.

    ``off`` is accepted in place of ``remove_listener``.
    """

    def on(self, event: str, handler: Callable[..., Any]) -> Any: ...

    def remove_listener(self, event: str, handler: Callable[..., Any]) -> Any: ...


@dataclass(frozen=True)
class ListenerRegistration:
    """One handler subscribed to one event of a source."""

    source: Any
    event: str
    handler: Callable[..., Any]


def unsubscriber(source: Any) -> Callable[[str, Callable[..., Any]], Any]:
    """Return the source's listener removal method.

    Raises:
        ConfigurationError: If the source cannot subscribe or unsubscribe handlers.
    """
    if not callable(getattr(source, "on", None)):
        raise ConfigurationError("source must provide an on(event, handler) method")
    for name in ("remove_listener", "off"):
        method = getattr(source, name, None)
        if callable(method):
            return method
    raise ConfigurationError(
        "source must provide a remove_listener(event, handler) or off(event, handler) method"
    )


class EventBridge:
    """Routes source events into the buffer and the stream state.

    Args:
        source: The event source.
        options: Validated adapter options.
        state: Shared stream state.
        buffer: The adapter's buffer.
        signal: Notified whenever a suspended consumer may proceed.
        log: Logger of the owning adapter.
        on_terminal: Called once when the stream becomes done.
        on_error: Called once with the recorded error.
    """

    def __init__(
        self,
        source: Any,
        options: EmitterOptions,
        state: StreamState,
        buffer: FlowControlBuffer,
        signal: ContinuationSignal,
        log: EmitterLogger,
        *,
        on_terminal: Callable[[], Any] | None = None,
        on_error: Callable[[BaseException], Any] | None = None,
    ) -> None:
        self.source = source
        self._options = options
        self._state = state
        self._buffer = buffer
        self._signal = signal
        self._log = log
        self._on_terminal = on_terminal
        self._on_error = on_error
        self._remove_listener = unsubscriber(source)
        self._registrations: list[ListenerRegistration] = []
        self._subscribed = False

    @property
    def registrations(self) -> tuple[ListenerRegistration, ...]:
        """Handlers currently subscribed to the source."""
        return tuple(self._registrations)

    def subscribe(self) -> None:
        """Subscribe all handlers to the source. Only the first call has an effect."""
        if self._subscribed:
            return
        self._subscribed = True

        self._listen(self._options.data_event, self.on_data)
        for event in self._options.resolution_events:
            self._listen(event, functools.partial(self.on_resolution, event))
        for event in self._options.rejection_events:
            self._listen(event, functools.partial(self.on_rejection, event))

        self._log.debug(
            "listeners_subscribed", [registration.event for registration in self._registrations]
        )

    def unsubscribe(self) -> None:
        """Remove every handler from the source. Idempotent."""
        registrations, self._registrations = self._registrations, []
        for registration in registrations:
            self._remove_listener(registration.event, registration.handler)
            self._log.debug("listener_removed", {"event": registration.event})

    def _listen(self, event: str, handler: Callable[..., Any]) -> None:
        self.source.on(event, handler)
        self._registrations.append(ListenerRegistration(self.source, event, handler))

    def on_data(self, *args: Any) -> None:
        """Handle one data event."""
        state = self._state
        state.active = True
        self._log.debug("data_event", args)

        if state.done:
            self._log.error("data_after_completion", payload=args)
            if not state.error:
                self.fail(ProtocolViolationError(args))
            return

        if state.paused:
            self._log.warn("data_while_paused")

        # Counters move only once pre_filter and transform have returned
        options = self._options
        if options.pre_filter is not None and not options.pre_filter(*args):
            state.total_received += 1
            state.total_filtered += 1
            self._log.debug("data_filtered")
            return

        if options.transform is not None:
            item = options.transform(*args)
        elif len(args) == 1:
            item = args[0]
        else:
            item = args

        state.total_received += 1
        self._buffer.push(item)
        self._signal.notify()

    def on_resolution(self, event: str, *args: Any) -> None:
        """Handle one of the resolution events."""
        self._log.info("resolution_event", {"event": event, "args": args})
        self.finish()

    def on_rejection(self, event: str, *args: Any) -> None:
        """Handle one of the rejection events."""
        error = UpstreamRejectionError.from_event(event, args)
        self._log.error("rejection_event", error=error, payload={"event": event})
        self.fail(error)

    def finish(self) -> None:
        """Mark the stream done, drop the subscriptions and wake consumers.

        Buffered items stay available.
        """
        first = not self._state.done
        self._state.done = True
        self.unsubscribe()
        if first and self._on_terminal is not None:
            self._on_terminal()
        self._signal.notify()

    def fail(self, error: BaseException) -> None:
        """Record ``error``, discard the buffer and finish the stream.

        Only the first recorded error is kept; later calls have no effect.
        """
        if not self._state.record_error(error):
            self._log.debug("error_ignored", {"error": str(error)})
            return
        self._buffer.clear()
        self.finish()
        if self._on_error is not None:
            self._on_error(error)


__all__ = ["EventBridge", "EventSource", "ListenerRegistration", "unsubscriber"]

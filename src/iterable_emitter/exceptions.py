"""Exceptions raised by iterable-emitter.

``ConfigurationError`` is raised synchronously while an adapter is being
constructed. The other errors are recorded in the adapter's state when they
occur and surface later, from the next ``__anext__`` of every iteration
handle, and through the adapter's error listeners.
"""

from __future__ import annotations

from typing import Any


class IterableEmitterError(Exception):
    """Base exception for iterable-emitter errors."""

    pass


class ConfigurationError(IterableEmitterError, ValueError):
    """Raised when adapter options are invalid or do not fit the source."""

    pass


class UpstreamRejectionError(IterableEmitterError):
    """Raised when the source emits one of its rejection events."""

    def __init__(self, message: str, *, event: str, payload: Any = None) -> None:
        """Initialize the error.

        Args:
            message: Human-readable description.
            event: Name of the rejection event that fired.
            payload: First argument emitted with the event, if any.
        """
        self.event = event
        self.payload = payload
        super().__init__(message)

    @classmethod
    def from_event(cls, event: str, args: tuple[Any, ...]) -> UpstreamRejectionError:
        """Build the error from a rejection event's arguments.

        An exception payload becomes the ``__cause__``; a string payload becomes
        the message; without arguments a message is synthesized from the event name.
        """
        if not args:
            return cls(f"Source emitted '{event}'", event=event)
        payload = args[0]
        if isinstance(payload, BaseException):
            error = cls(f"Source emitted '{event}': {payload}", event=event, payload=payload)
            error.__cause__ = payload
            return error
        if isinstance(payload, str):
            return cls(payload, event=event, payload=payload)
        return cls(f"Source emitted '{event}': {payload!r}", event=event, payload=payload)


class StallTimeoutError(IterableEmitterError):
    """Raised when no data event arrived within the inactivity window."""

    def __init__(self, timeout_ms: int) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(f"No data event received within {timeout_ms}ms")


class ProtocolViolationError(IterableEmitterError):
    """Raised when the source emits data after it signalled completion."""

    def __init__(self, args_received: tuple[Any, ...] = ()) -> None:
        self.args_received = args_received
        super().__init__("data received after completion")


__all__ = [
    "ConfigurationError",
    "IterableEmitterError",
    "ProtocolViolationError",
    "StallTimeoutError",
    "UpstreamRejectionError",
]

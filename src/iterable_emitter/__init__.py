"""
iterable-emitter: consume push-based event sources with ``async for``.

This package adapts any object emitting named events (data, completion,
failure) into an async-iterable sequence with watermark-based backpressure:
the source is paused when too many items are buffered and resumed once
consumers catch up.
"""

from iterable_emitter.bridge import EventSource, ListenerRegistration
from iterable_emitter.buffer import MISSING, FlowControlBuffer
from iterable_emitter.config import Settings, configure_settings, get_settings
from iterable_emitter.emitter import ErrorInfo, IterableEmitter
from iterable_emitter.exceptions import (
    ConfigurationError,
    IterableEmitterError,
    ProtocolViolationError,
    StallTimeoutError,
    UpstreamRejectionError,
)
from iterable_emitter.iteration import IterationHandle
from iterable_emitter.logging import LogRecord, LogSeverity, setup_logging
from iterable_emitter.options import EmitterOptions, validate_options
from iterable_emitter.state import StreamStats

__version__ = "0.1.0"

__all__ = [
    # Adapter
    "IterableEmitter",
    "IterationHandle",
    "ErrorInfo",
    "EventSource",
    "ListenerRegistration",
    # Options
    "EmitterOptions",
    "validate_options",
    "Settings",
    "get_settings",
    "configure_settings",
    # Buffer and state
    "FlowControlBuffer",
    "MISSING",
    "StreamStats",
    # Logging
    "LogRecord",
    "LogSeverity",
    "setup_logging",
    # Errors
    "IterableEmitterError",
    "ConfigurationError",
    "UpstreamRejectionError",
    "StallTimeoutError",
    "ProtocolViolationError",
]

"""Logging configuration for iterable-emitter.

Adapters write their runtime events through structlog onto the stdlib
``iterable_emitter`` logger. The package only attaches a ``NullHandler``,
so nothing is printed until the application configures logging, for
example with :func:`setup_logging`. An adapter constructed with a
``logger`` option additionally hands a structured :class:`LogRecord` to
that callable for each event at or above its configured minimum severity.
"""

from __future__ import annotations

import copy
import logging
import sys
from collections.abc import Callable
from datetime import UTC, datetime
from enum import Enum
from typing import IO, TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, ConfigDict, Field

from iterable_emitter.state import StreamStats

if TYPE_CHECKING:
    from iterable_emitter.config import Settings


PACKAGE_LOGGER = "iterable_emitter"

# Package logger
logger = logging.getLogger(PACKAGE_LOGGER)
logger.addHandler(logging.NullHandler())

_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_log_level,
    structlog.processors.KeyValueRenderer(key_order=["event", "instance_id"]),
]


def setup_logging(
    settings: Settings | None = None,
    *,
    log_level: str | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Attach a console handler to the package logger.

    Level and format come from ``settings`` (or :func:`get_settings`);
    ``log_level`` overrides the level. Calling it again replaces the
    handler installed by the previous call.

    Args:
        settings: Settings to read ``log_level`` and ``log_format`` from.
        log_level: Level name overriding the settings.
        stream: Output stream, stderr by default.

    Returns:
        The package logger.
    """
    if settings is None:
        from iterable_emitter.config import get_settings

        settings = get_settings()
    level = logging.getLevelName((log_level or settings.log_level).upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(settings.log_format))
    handler.set_name("iterable_emitter.console")

    for existing in [h for h in logger.handlers if h.get_name() == handler.get_name()]:
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger writing to the package logger or one of its children."""
    qualified = PACKAGE_LOGGER
    if name and name != PACKAGE_LOGGER:
        qualified = name if name.startswith(f"{PACKAGE_LOGGER}.") else f"{PACKAGE_LOGGER}.{name}"
    return structlog.wrap_logger(
        logging.getLogger(qualified),
        processors=_PROCESSORS,
        wrapper_class=structlog.stdlib.BoundLogger,
    )


class LogSeverity(str, Enum):
    """Severity of a record handed to an adapter's logger callable."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @classmethod
    def parse(cls, value: str | LogSeverity) -> LogSeverity:
        """Parse a severity name, case-insensitively. ``WARNING`` is accepted for ``WARN``."""
        if isinstance(value, LogSeverity):
            return value
        if not isinstance(value, str):
            raise ValueError(f"log level must be a string, got {type(value).__name__}")
        name = value.strip().upper()
        if name == "WARNING":
            name = "WARN"
        try:
            return cls(name)
        except ValueError:
            raise ValueError(
                f"log level must be one of DEBUG, INFO, WARN, ERROR, got {value!r}"
            ) from None


_SEVERITY_RANK = {
    LogSeverity.DEBUG: 10,
    LogSeverity.INFO: 20,
    LogSeverity.WARN: 30,
    LogSeverity.ERROR: 40,
}


class LogRecord(BaseModel):
    """Structured record handed to an adapter's ``logger`` callable."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    severity: LogSeverity
    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    instance_id: str
    payload: Any = None
    stats: StreamStats | None = None
    error: BaseException | None = None


LogSink = Callable[[LogRecord], Any]


def _snapshot(payload: Any) -> Any:
    # Records must not change if the caller later mutates what was logged.
    try:
        return copy.deepcopy(payload)
    except (TypeError, copy.Error):
        return payload


class EmitterLogger:
    """Per-adapter logger writing to structlog and an optional sink.

    Args:
        instance_id: Identifier of the owning adapter, added to every event.
        sink: Optional callable receiving a :class:`LogRecord` per event.
        min_severity: Lowest severity handed to ``sink``.
        stats_provider: Returns the adapter's current stats; attached to
            DEBUG records only.
    """

    def __init__(
        self,
        instance_id: str,
        sink: LogSink | None = None,
        min_severity: LogSeverity = LogSeverity.ERROR,
        stats_provider: Callable[[], StreamStats] | None = None,
    ) -> None:
        self.instance_id = instance_id
        self._sink = sink
        self._min_rank = min_severity.rank
        self._stats_provider = stats_provider
        self._log = get_logger("emitter").bind(instance_id=instance_id)

    def enabled_for(self, severity: LogSeverity) -> bool:
        """Check whether records of ``severity`` reach the sink."""
        return self._sink is not None and severity.rank >= self._min_rank

    def debug(self, message: str, payload: Any = None) -> None:
        self._log.debug(message, payload=payload)
        if self.enabled_for(LogSeverity.DEBUG):
            stats = self._stats_provider() if self._stats_provider else None
            self._send(LogSeverity.DEBUG, message, payload, stats=stats)

    def info(self, message: str, payload: Any = None) -> None:
        self._log.info(message, payload=payload)
        if self.enabled_for(LogSeverity.INFO):
            self._send(LogSeverity.INFO, message, payload)

    def warn(self, message: str, payload: Any = None) -> None:
        self._log.warning(message, payload=payload)
        if self.enabled_for(LogSeverity.WARN):
            self._send(LogSeverity.WARN, message, payload)

    def error(self, message: str, error: BaseException | None = None, payload: Any = None) -> None:
        self._log.error(message, error=str(error) if error else None, payload=payload)
        if self.enabled_for(LogSeverity.ERROR):
            self._send(LogSeverity.ERROR, message, payload, error=error)

    def _send(
        self,
        severity: LogSeverity,
        message: str,
        payload: Any,
        *,
        stats: StreamStats | None = None,
        error: BaseException | None = None,
    ) -> None:
        sink = self._sink
        if sink is None:
            return
        record = LogRecord(
            severity=severity,
            message=message,
            instance_id=self.instance_id,
            payload=_snapshot(payload) if payload is not None else None,
            stats=stats,
            error=error,
        )
        sink(record)


__all__ = [
    "EmitterLogger",
    "LogRecord",
    "LogSeverity",
    "LogSink",
    "get_logger",
    "logger",
    "setup_logging",
]

"""
Pytest configuration and shared fixtures for iterable-emitter tests.

This module provides:
- FakeSource, a minimal synchronous event source with pause/resume
- Factories for adapters over a FakeSource with sensible default options
- A log sink collecting LogRecord values
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from typing import Any

import pytest

from iterable_emitter import IterableEmitter, LogRecord
from iterable_emitter.config import reset_settings
from iterable_emitter.logging import logger as package_logger


class FakeSource:
    """Synchronous event source in the style of a Node.js EventEmitter."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Callable[..., Any]]] = defaultdict(list)
        self.paused = False
        self.pause_calls = 0
        self.resume_calls = 0

    def on(self, event: str, handler: Callable[..., Any]) -> FakeSource:
        self._listeners[event].append(handler)
        return self

    def remove_listener(self, event: str, handler: Callable[..., Any]) -> FakeSource:
        self._listeners[event].remove(handler)
        return self

    def emit(self, event: str, *args: Any) -> bool:
        handlers = list(self._listeners[event])
        for handler in handlers:
            handler(*args)
        return bool(handlers)

    def listener_count(self, event: str | None = None) -> int:
        if event is None:
            return sum(len(handlers) for handlers in self._listeners.values())
        return len(self._listeners[event])

    def pause(self) -> None:
        self.paused = True
        self.pause_calls += 1

    def resume(self) -> None:
        self.paused = False
        self.resume_calls += 1

    def emit_many(self, items: list[Any], event: str = "data") -> None:
        for item in items:
            self.emit(event, item)


DEFAULT_OPTIONS: dict[str, Any] = {
    "data_event": "data",
    "resolution_events": "done",
    "pause_method": "pause",
    "resume_method": "resume",
}


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Make every test read settings from a clean environment."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(autouse=True)
def _restore_package_logger():
    """Undo handler and level changes made by setup_logging."""
    handlers = list(package_logger.handlers)
    level, propagate = package_logger.level, package_logger.propagate
    yield
    package_logger.handlers[:] = handlers
    package_logger.setLevel(level)
    package_logger.propagate = propagate


@pytest.fixture
def source() -> FakeSource:
    """Provide a fresh FakeSource."""
    return FakeSource()


@pytest.fixture
def make_emitter(source: FakeSource) -> Callable[..., IterableEmitter]:
    """Provide a factory building adapters over the ``source`` fixture.

    Keyword arguments override DEFAULT_OPTIONS.
    """

    def factory(**overrides: Any) -> IterableEmitter:
        return IterableEmitter(source, {**DEFAULT_OPTIONS, **overrides})

    return factory


@pytest.fixture
def log_records() -> list[LogRecord]:
    """Provide a list to pass as ``logger=log_records.append``."""
    return []

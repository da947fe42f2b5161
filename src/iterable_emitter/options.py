"""Adapter options and their validation.

:func:`validate_options` turns whatever the caller passed into an immutable
:class:`EmitterOptions`, raising :class:`ConfigurationError` on the first
problem it finds. It runs once per adapter, at construction.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
    model_validator,
)

from iterable_emitter.config import get_settings
from iterable_emitter.exceptions import ConfigurationError
from iterable_emitter.logging import LogSeverity, LogSink

PositiveInt = Annotated[StrictInt, Field(gt=0)]


def _default_low_water_mark(data: dict[str, Any]) -> int:
    # Fit the configured default under a smaller caller-chosen high watermark
    low = get_settings().low_water_mark
    high = data.get("high_water_mark")
    if high is not None and low > high:
        return max(1, high // 2)
    return low


def _event_names(value: Any, field: str) -> tuple[str, ...]:
    if isinstance(value, str):
        names: Iterable[Any] = (value,)
    elif isinstance(value, Iterable) and not isinstance(value, (bytes, Mapping)):
        names = value
    else:
        raise ValueError(f"{field} must be a string or an iterable of strings")
    names = list(names)
    for name in names:
        if not isinstance(name, str) or not name:
            raise ValueError(f"{field} must only contain non-empty strings, got {name!r}")
    # Ordered de-duplication
    return tuple(dict.fromkeys(names))


class EmitterOptions(BaseModel):
    """Validated, immutable options of one adapter."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    high_water_mark: PositiveInt = Field(
        default_factory=lambda: get_settings().high_water_mark,
        description="Buffer length at which the source is paused",
    )
    low_water_mark: PositiveInt = Field(
        default_factory=_default_low_water_mark,
        description="Buffer length at or below which a paused source is resumed",
    )
    data_event: StrictStr = Field(min_length=1, description="Name of the data event")
    resolution_events: tuple[str, ...] = Field(
        description="Event name(s) signalling the source is done"
    )
    rejection_events: tuple[str, ...] = Field(
        default=("error",), description="Event name(s) signalling the source failed"
    )
    transform: Callable[..., Any] | None = Field(
        default=None, description="Builds the buffered item from the data event arguments"
    )
    pre_filter: Callable[..., Any] | None = Field(
        default=None, description="Returns whether a data event should be buffered"
    )
    pause_method: StrictStr | None = Field(
        default=None, description="Name of the source method that pauses data events"
    )
    pause_function: Callable[..., Any] | None = Field(
        default=None, description="Called with the source to pause data events"
    )
    resume_method: StrictStr | None = Field(
        default=None, description="Name of the source method that resumes data events"
    )
    resume_function: Callable[..., Any] | None = Field(
        default=None, description="Called with the source to resume data events"
    )
    timeout_ms: Annotated[StrictInt, Field(ge=0)] | None = Field(
        default=None, description="Inactivity window in milliseconds; 0 or None disables it"
    )
    logger: LogSink | None = Field(default=None, description="Receives LogRecord values")
    log_level: LogSeverity | None = Field(
        default=None, description="Minimum severity handed to logger"
    )

    @field_validator("resolution_events", mode="before")
    @classmethod
    def normalize_resolution_events(cls, v: Any) -> tuple[str, ...]:
        names = _event_names(v, "resolution_events")
        if not names:
            raise ValueError("resolution_events must name at least one event")
        return names

    @field_validator("rejection_events", mode="before")
    @classmethod
    def normalize_rejection_events(cls, v: Any) -> tuple[str, ...]:
        return _event_names(v, "rejection_events")

    @field_validator("log_level", mode="before")
    @classmethod
    def parse_log_level(cls, v: Any) -> LogSeverity | None:
        if v is None:
            return None
        return LogSeverity.parse(v)

    @model_validator(mode="after")
    def validate_combinations(self) -> EmitterOptions:
        """Check constraints spanning several options."""
        if self.low_water_mark > self.high_water_mark:
            raise ValueError(
                f"low_water_mark ({self.low_water_mark}) must not exceed "
                f"high_water_mark ({self.high_water_mark})"
            )
        if (self.pause_method is None) == (self.pause_function is None):
            raise ValueError("specify either pause_method or pause_function but not both")
        if (self.resume_method is None) == (self.resume_function is None):
            raise ValueError("specify either resume_method or resume_function but not both")
        overlap = (
            {self.data_event} & set(self.resolution_events + self.rejection_events)
            or set(self.resolution_events) & set(self.rejection_events)
        )
        if overlap:
            raise ValueError(f"event name(s) {sorted(overlap)} used for more than one role")
        return self

    @property
    def min_severity(self) -> LogSeverity:
        """Lowest severity handed to ``logger``; ERROR unless ``log_level`` is set."""
        return self.log_level or LogSeverity.ERROR


def _describe(exc: ValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error["loc"])
    message = error["msg"].removeprefix("Value error, ")
    if error["type"] == "extra_forbidden":
        return f"unknown option '{location}'"
    return f"{location}: {message}" if location else message


def validate_options(
    options: EmitterOptions | Mapping[str, Any] | None = None, **overrides: Any
) -> EmitterOptions:
    """Validate adapter options.

    Args:
        options: An :class:`EmitterOptions` (returned unchanged when no
            overrides are given) or a mapping of option names to values.
        **overrides: Options given as keyword arguments; they take precedence
            over ``options``.

    Returns:
        The validated options.

    Raises:
        ConfigurationError: If any option is missing, unknown or invalid.
    """
    if isinstance(options, EmitterOptions):
        if not overrides:
            return options
        raw = {name: getattr(options, name) for name in options.model_fields_set}
    elif options is None:
        raw = {}
    elif isinstance(options, Mapping):
        raw = dict(options)
    else:
        raise ConfigurationError(
            f"options must be a mapping or EmitterOptions, got {type(options).__name__}"
        )
    raw.update(overrides)

    try:
        return EmitterOptions.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(_describe(e)) from e


__all__ = ["EmitterOptions", "validate_options"]

"""Pydantic-powered models for recorded performance automation.

A :class:`Recording` is the time-ordered log of parameter changes a
performer made while a track played: tempo and filter tweaks plus the
per-layer mute, volume, and solo controls. Recordings are immutable once
captured; every edit (merge, trim, import) produces a new value.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional, Union
import uuid

from pydantic import BaseModel, ConfigDict, Field, model_validator

EventValue = Union[bool, int, float]


class EventType(str, Enum):
    """Kinds of performance gestures captured by the recorder."""

    TWEAK = "tweak"
    LAYER_MUTE = "layer_mute"
    LAYER_VOLUME = "layer_volume"
    LAYER_SOLO = "layer_solo"


class TweakParam(str, Enum):
    """Scalar performance parameters exposed by the tweaks panel."""

    BPM = "bpm"
    SWING = "swing"
    FILTER = "filter"
    REVERB = "reverb"
    DELAY = "delay"


LAYER_EVENT_TYPES = frozenset(
    {EventType.LAYER_MUTE, EventType.LAYER_VOLUME, EventType.LAYER_SOLO}
)
BOOLEAN_EVENT_TYPES = frozenset({EventType.LAYER_MUTE, EventType.LAYER_SOLO})


@dataclass(frozen=True)
class TweakParamSpec:
    """Describes a tweak parameter in musician-facing language."""

    key: TweakParam
    label: str
    minimum: float
    maximum: float
    step: float
    unit: str
    default: float

    def clamp(self, value: float) -> float:
        """Ensure *value* stays within the declared bounds."""

        if value < self.minimum:
            return self.minimum
        if value > self.maximum:
            return self.maximum
        return value


TWEAK_PARAMS: Dict[TweakParam, TweakParamSpec] = {
    spec.key: spec
    for spec in (
        TweakParamSpec(TweakParam.BPM, "BPM", 60, 200, 1, "", 82),
        TweakParamSpec(TweakParam.SWING, "Swing", 0, 100, 1, "%", 8),
        TweakParamSpec(TweakParam.FILTER, "Filter", 100, 10_000, 100, " Hz", 8000),
        TweakParamSpec(TweakParam.REVERB, "Reverb", 0, 100, 1, "%", 25),
        TweakParamSpec(TweakParam.DELAY, "Delay", 0, 100, 1, "%", 20),
    )
}


def new_identifier() -> str:
    """Return an opaque unique token for events and recordings."""

    return str(uuid.uuid4())


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class RecordingEvent(BaseModel):
    """Single parameter change captured at an offset from the recording start."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, use_enum_values=False)

    id: str = Field(default_factory=new_identifier)
    timestamp_ms: int = Field(..., ge=0, description="Offset from recording start in ms")
    type: EventType
    param: Optional[TweakParam] = Field(None, description="Tweak parameter for tweak events")
    layer_id: Optional[str] = Field(None, alias="layerId", description="Affected layer")
    old_value: EventValue = Field(..., alias="oldValue")
    new_value: EventValue = Field(..., alias="newValue")

    @model_validator(mode="after")
    def validate_variant(self) -> RecordingEvent:  # type: ignore[override]
        if self.type is EventType.TWEAK:
            if self.param is None:
                raise ValueError("Tweak events require `param`")
            if self.layer_id is not None:
                raise ValueError("Tweak events must not carry `layerId`")
        else:
            if self.layer_id is None:
                raise ValueError(f"{self.type.value} events require `layerId`")
            if self.param is not None:
                raise ValueError(f"{self.type.value} events must not carry `param`")

        if self.type in BOOLEAN_EVENT_TYPES:
            if not isinstance(self.old_value, bool) or not isinstance(self.new_value, bool):
                raise ValueError(f"{self.type.value} events require boolean values")
        elif not _is_number(self.old_value) or not _is_number(self.new_value):
            raise ValueError(f"{self.type.value} events require numeric values")
        return self

    @property
    def coalesce_key(self) -> tuple[str, str, str]:
        """Return the ``(type, param, layer)`` key used for debounce coalescing."""

        return event_key(self.type, self.param, self.layer_id)

    def to_payload(self) -> Dict[str, object]:
        """Return the wire representation, omitting fields the variant does not use."""

        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Recording(BaseModel):
    """A complete capture session owned by a track."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_identifier)
    track_id: str
    name: Optional[str] = Field(None, max_length=255)
    duration_ms: int = Field(0, ge=0)
    events: List[RecordingEvent] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def sorted_events(self) -> List[RecordingEvent]:
        """Return the events ordered by timestamp (stable for equal timestamps)."""

        return sorted(self.events, key=lambda event: event.timestamp_ms)


def event_key(
    event_type: EventType | str,
    param: TweakParam | str | None = None,
    layer_id: str | None = None,
) -> tuple[str, str, str]:
    """Build the coalescing key shared by the recorder and stats helpers."""

    type_value = EventType(event_type).value
    param_value = TweakParam(param).value if param is not None else ""
    return (type_value, param_value, layer_id or "")


def create_recording_event(
    timestamp_ms: int,
    event_type: EventType | str,
    old_value: EventValue,
    new_value: EventValue,
    *,
    param: TweakParam | str | None = None,
    layer_id: str | None = None,
) -> RecordingEvent:
    """Create a validated event with a freshly generated identifier."""

    return RecordingEvent(
        id=new_identifier(),
        timestamp_ms=timestamp_ms,
        type=EventType(event_type),
        param=param,
        layer_id=layer_id,
        old_value=old_value,
        new_value=new_value,
    )


def create_recording(
    track_id: str,
    events: Iterable[RecordingEvent],
    duration_ms: int,
    name: str | None = None,
) -> Recording:
    """Build a new recording with events sorted ascending by timestamp."""

    ordered = sorted(events, key=lambda event: event.timestamp_ms)
    return Recording(track_id=track_id, name=name, duration_ms=duration_ms, events=ordered)


def get_events_in_range(
    events: Iterable[RecordingEvent], start_ms: float, end_ms: float
) -> List[RecordingEvent]:
    """Return events whose timestamp lies in ``[start_ms, end_ms]``."""

    return [event for event in events if start_ms <= event.timestamp_ms <= end_ms]


def get_next_event(events: Iterable[RecordingEvent], after_ms: float) -> RecordingEvent | None:
    """Return the first event strictly after *after_ms*, if any."""

    for event in events:
        if event.timestamp_ms > after_ms:
            return event
    return None


__all__ = [
    "BOOLEAN_EVENT_TYPES",
    "EventType",
    "EventValue",
    "LAYER_EVENT_TYPES",
    "Recording",
    "RecordingEvent",
    "TWEAK_PARAMS",
    "TweakParam",
    "TweakParamSpec",
    "create_recording",
    "create_recording_event",
    "event_key",
    "get_events_in_range",
    "get_next_event",
    "new_identifier",
]

"""Timeline helpers shared by exports, position displays, and event markers."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

import numpy as np

from .models import EventType, Recording, RecordingEvent, TweakParam

EVENT_TYPE_COLORS: Dict[EventType, str] = {
    EventType.TWEAK: "#06b6d4",
    EventType.LAYER_MUTE: "#f59e0b",
    EventType.LAYER_VOLUME: "#10b981",
    EventType.LAYER_SOLO: "#8b5cf6",
}

TWEAK_PARAM_COLORS: Dict[TweakParam, str] = {
    TweakParam.BPM: "#06b6d4",
    TweakParam.SWING: "#14b8a6",
    TweakParam.FILTER: "#f59e0b",
    TweakParam.REVERB: "#8b5cf6",
    TweakParam.DELAY: "#ec4899",
}


def format_recording_time(ms: float) -> str:
    """Format a millisecond offset as zero-padded ``MM:SS``.

    Seconds are floored, never rounded, so an export, a CSV row, and the
    player's position readout always agree for the same offset. Minutes are
    not wrapped at the hour.
    """

    total_seconds = int(max(0.0, ms) // 1000)
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"


def event_color(event: RecordingEvent) -> str:
    """Return the marker color for *event*, preferring per-parameter colors."""

    if event.type is EventType.TWEAK and event.param is not None:
        return TWEAK_PARAM_COLORS[event.param]
    return EVENT_TYPE_COLORS[event.type]


def _on_off(value: object) -> str:
    return "On" if value else "Off"


def event_label(event: RecordingEvent) -> str:
    """Return a short human-readable description of *event*."""

    if event.type is EventType.TWEAK:
        param = event.param.value if event.param is not None else "?"
        return f"{param}: {event.old_value} -> {event.new_value}"
    if event.type is EventType.LAYER_MUTE:
        return f"Mute: {_on_off(event.new_value)}"
    if event.type is EventType.LAYER_VOLUME:
        return f"Volume: {event.new_value}"
    return f"Solo: {_on_off(event.new_value)}"


@dataclass
class EventGroup:
    """Cluster of events close enough to share a single timeline marker."""

    start_ms: int
    end_ms: int
    events: List[RecordingEvent] = field(default_factory=list)


def group_events(recording: Recording, *, threshold_ms: float | None = None) -> List[EventGroup]:
    """Group sorted events whose gap to the previous group is below the threshold.

    The default threshold is 1% of the recording duration.
    """

    if threshold_ms is None:
        threshold_ms = recording.duration_ms / 100.0
    groups: List[EventGroup] = []
    for event in recording.sorted_events():
        last = groups[-1] if groups else None
        if last is not None and event.timestamp_ms - last.end_ms < threshold_ms:
            last.events.append(event)
            last.end_ms = event.timestamp_ms
        else:
            groups.append(
                EventGroup(start_ms=event.timestamp_ms, end_ms=event.timestamp_ms, events=[event])
            )
    return groups


def event_density(recording: Recording, bucket_count: int = 10) -> np.ndarray:
    """Return event counts per equal slice of the recording duration."""

    if bucket_count <= 0:
        raise ValueError("bucket_count must be positive")
    if recording.duration_ms <= 0:
        return np.zeros(bucket_count, dtype=np.int64)
    timestamps = np.fromiter(
        (event.timestamp_ms for event in recording.events), dtype=np.float64
    )
    counts, _edges = np.histogram(
        timestamps, bins=bucket_count, range=(0.0, float(recording.duration_ms))
    )
    return counts.astype(np.int64)


__all__ = [
    "EVENT_TYPE_COLORS",
    "EventGroup",
    "TWEAK_PARAM_COLORS",
    "event_color",
    "event_density",
    "event_label",
    "format_recording_time",
    "group_events",
]

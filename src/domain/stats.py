"""On-demand summary statistics for recordings."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Optional

from .models import Recording


@dataclass(frozen=True)
class RecordingStats:
    """Counts and density figures shown next to a saved recording."""

    total_events: int
    events_by_type: Dict[str, int] = field(default_factory=dict)
    events_by_param: Dict[str, int] = field(default_factory=dict)
    average_events_per_second: float = 0.0
    first_event_ms: Optional[int] = None
    last_event_ms: Optional[int] = None


def get_recording_stats(recording: Recording) -> RecordingStats:
    """Scan ``recording.events`` and summarise them.

    Nothing is cached on the recording; the scan runs on every call.
    """

    events = recording.events
    by_type = Counter(event.type.value for event in events)
    by_param = Counter(event.param.value for event in events if event.param is not None)
    timestamps = [event.timestamp_ms for event in events]

    duration_seconds = recording.duration_ms / 1000.0
    average = len(events) / duration_seconds if duration_seconds > 0 else 0.0

    return RecordingStats(
        total_events=len(events),
        events_by_type=dict(by_type),
        events_by_param=dict(by_param),
        average_events_per_second=average,
        first_event_ms=min(timestamps) if timestamps else None,
        last_event_ms=max(timestamps) if timestamps else None,
    )


__all__ = ["RecordingStats", "get_recording_stats"]

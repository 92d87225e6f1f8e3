"""Pure transforms that derive new recordings from existing ones.

Inputs are never mutated. Every function returns a fresh :class:`Recording`
with its own identifier so the player treats the result as a different
recording.
"""
from __future__ import annotations

import math
from typing import List, Sequence

from .models import Recording, RecordingEvent, new_identifier


def merge_recordings(recordings: Sequence[Recording], *, track_id: str = "") -> Recording:
    """Concatenate recordings back to back.

    Each input's events are offset by the summed duration of the inputs
    before it. With two or more inputs every event receives a new
    identifier; a single input keeps its event identifiers and name.
    """

    if not recordings:
        return Recording(track_id=track_id, duration_ms=0, events=[])

    first = recordings[0]
    if len(recordings) == 1:
        return Recording(
            track_id=first.track_id,
            name=first.name,
            duration_ms=first.duration_ms,
            events=list(first.events),
        )

    merged: List[RecordingEvent] = []
    offset = 0
    for recording in recordings:
        for event in recording.events:
            merged.append(
                event.model_copy(
                    update={
                        "id": new_identifier(),
                        "timestamp_ms": event.timestamp_ms + offset,
                    }
                )
            )
        offset += recording.duration_ms

    merged.sort(key=lambda event: event.timestamp_ms)
    return Recording(
        track_id=first.track_id,
        name=f"Merged ({len(recordings)} recordings)",
        duration_ms=offset,
        events=merged,
    )


def trim_recording(recording: Recording, start_ms: float, end_ms: float) -> Recording:
    """Keep the ``[start_ms, end_ms]`` window and rebase timestamps to zero.

    Bounds are clamped to the recording; an empty window yields a
    zero-duration recording instead of an error. Fractional bounds keep only
    the whole milliseconds that fall inside them.
    """

    clamped_start = max(0, start_ms)
    clamped_end = min(recording.duration_ms, end_ms)

    if clamped_start >= clamped_end:
        return Recording(
            track_id=recording.track_id,
            name=recording.name,
            duration_ms=0,
            events=[],
        )

    first_ms = math.ceil(clamped_start)
    last_ms = math.floor(clamped_end)
    kept = [
        event.model_copy(update={"timestamp_ms": event.timestamp_ms - first_ms})
        for event in recording.events
        if first_ms <= event.timestamp_ms <= last_ms
    ]
    return Recording(
        track_id=recording.track_id,
        name=recording.name,
        duration_ms=max(0, last_ms - first_ms),
        events=kept,
    )


def remove_event(recording: Recording, event_id: str) -> Recording:
    """Return a copy of *recording* without the event identified by *event_id*."""

    remaining = [event for event in recording.events if event.id != event_id]
    if len(remaining) == len(recording.events):
        raise KeyError(f"Event {event_id!r} not found in recording {recording.id!r}")
    return Recording(
        track_id=recording.track_id,
        name=recording.name,
        duration_ms=recording.duration_ms,
        events=remaining,
        created_at=recording.created_at,
    )


def rename_recording(recording: Recording, name: str | None) -> Recording:
    """Return a copy of *recording* carrying a new display name."""

    return Recording(
        track_id=recording.track_id,
        name=name,
        duration_ms=recording.duration_ms,
        events=list(recording.events),
        created_at=recording.created_at,
    )


__all__ = ["merge_recordings", "remove_event", "rename_recording", "trim_recording"]

"""Helpers that hydrate recordings exported via :mod:`recording_export_service`."""
from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any, List, Mapping

from pydantic import ValidationError

from .models import (
    BOOLEAN_EVENT_TYPES,
    EventType,
    Recording,
    RecordingEvent,
    TweakParam,
    new_identifier,
)

logger = logging.getLogger(__name__)

DEFAULT_IMPORT_NAME = "Imported Recording"
KNOWN_EVENT_TYPES = frozenset(member.value for member in EventType)
KNOWN_TWEAK_PARAMS = frozenset(member.value for member in TweakParam)


class RecordingValidationError(ValueError):
    """Raised when an imported document is missing or mistypes a field.

    ``field`` names the offending key and ``index`` the event position, or
    ``None`` when the problem is at the top level of the document.
    """

    def __init__(self, message: str, *, field: str | None = None, index: int | None = None) -> None:
        super().__init__(message)
        self.field = field
        self.index = index


def _is_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return isinstance(value, int) or math.isfinite(value)


def _first(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in payload:
            return payload[key]
    return None


def _check_variant(
    event_type: EventType,
    param: Any,
    layer_id: Any,
    old_value: Any,
    new_value: Any,
    index: int,
) -> None:
    """Reject fields that do not belong to *event_type*, naming the first offender."""

    def reject(field: str, problem: str) -> None:
        raise RecordingValidationError(
            f"Invalid event at index {index}: {problem}", field=field, index=index
        )

    if event_type is EventType.TWEAK:
        if not isinstance(param, str) or param not in KNOWN_TWEAK_PARAMS:
            reject("param", "tweak events require a known param")
        if layer_id is not None:
            reject("layerId", "tweak events must not carry layerId")
    else:
        if not isinstance(layer_id, str) or not layer_id:
            reject("layerId", f"{event_type.value} events require layerId")
        if param is not None:
            reject("param", f"{event_type.value} events must not carry param")

    boolean = event_type in BOOLEAN_EVENT_TYPES
    for field, value in (("oldValue", old_value), ("newValue", new_value)):
        if boolean and not isinstance(value, bool):
            reject(field, f"{event_type.value} events require boolean values")
        if not boolean and not _is_number(value):
            reject(field, f"{event_type.value} events require finite numeric values")


def _parse_event(raw: object, index: int) -> RecordingEvent:
    if not isinstance(raw, Mapping):
        raise RecordingValidationError(
            f"Invalid event at index {index}: expected an object", index=index
        )
    timestamp = raw.get("timestamp_ms")
    if not _is_number(timestamp):
        raise RecordingValidationError(
            f"Invalid event at index {index}: missing timestamp_ms",
            field="timestamp_ms",
            index=index,
        )
    event_type = raw.get("type")
    if not isinstance(event_type, str) or event_type not in KNOWN_EVENT_TYPES:
        raise RecordingValidationError(
            f"Invalid event at index {index}: invalid type",
            field="type",
            index=index,
        )
    param = raw.get("param")
    layer_id = _first(raw, "layerId", "layer_id")
    old_value = _first(raw, "oldValue", "old_value")
    new_value = _first(raw, "newValue", "new_value")
    _check_variant(EventType(event_type), param, layer_id, old_value, new_value, index)
    try:
        return RecordingEvent(
            id=raw.get("id") or new_identifier(),
            timestamp_ms=int(timestamp),
            type=event_type,
            param=param,
            layer_id=layer_id,
            old_value=old_value,
            new_value=new_value,
        )
    except ValidationError as exc:
        errors = exc.errors()
        location = errors[0]["loc"] if errors else ()
        field = str(location[0]) if location else None
        raise RecordingValidationError(
            f"Invalid event at index {index}: {errors[0]['msg'] if errors else exc}",
            field=field,
            index=index,
        ) from exc


def import_from_json(contents: str | bytes, *, track_id: str | None = None) -> Recording:
    """Parse an exported JSON document into a new :class:`Recording`.

    The import is all-or-nothing: the first malformed field aborts it with a
    :class:`RecordingValidationError`. Events without an identifier receive a
    fresh one; ``track_id`` overrides the value stored in the document.
    """

    try:
        data = json.loads(contents)
    except json.JSONDecodeError as exc:
        raise RecordingValidationError(f"Invalid recording file: {exc.msg}") from exc
    if not isinstance(data, Mapping):
        raise RecordingValidationError("Invalid recording file: expected an object")

    raw_events = data.get("events")
    if not isinstance(raw_events, list):
        raise RecordingValidationError(
            "Invalid recording file: missing events array", field="events"
        )
    duration = data.get("duration_ms")
    if not _is_number(duration):
        raise RecordingValidationError(
            "Invalid recording file: missing duration_ms", field="duration_ms"
        )

    events: List[RecordingEvent] = [
        _parse_event(raw, index) for index, raw in enumerate(raw_events)
    ]
    try:
        return Recording(
            track_id=track_id or data.get("track_id") or "",
            name=data.get("name") or DEFAULT_IMPORT_NAME,
            duration_ms=int(duration),
            events=events,
        )
    except ValidationError as exc:
        errors = exc.errors()
        location = errors[0]["loc"] if errors else ()
        raise RecordingValidationError(
            f"Invalid recording file: {errors[0]['msg'] if errors else exc}",
            field=str(location[0]) if location else None,
        ) from exc


class RecordingImportService:
    """Load recording documents from disk."""

    def import_file(self, path: Path, *, track_id: str | None = None) -> Recording:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Recording file '{path}' not found")
        try:
            recording = import_from_json(path.read_text(encoding="utf-8"), track_id=track_id)
        except RecordingValidationError as exc:
            logger.warning(
                "Rejected recording import from %s (field=%s, index=%s): %s",
                path,
                exc.field,
                exc.index,
                exc,
            )
            raise
        logger.info("Imported %d events from %s", len(recording.events), path)
        return recording


__all__ = [
    "DEFAULT_IMPORT_NAME",
    "RecordingImportService",
    "RecordingValidationError",
    "import_from_json",
]

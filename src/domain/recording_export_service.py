"""Export recordings as shareable JSON or CSV documents."""
from __future__ import annotations

import csv
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
import io
import json
import logging
from pathlib import Path
import re
from typing import Any, Dict, List, Sequence

from .models import Recording, RecordingEvent
from .timeline import format_recording_time

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_NAME = "Untitled Recording"
DEFAULT_FILENAME_STEM = "recording"
EXPORT_EXTENSIONS = ("json", "csv")
CSV_HEADER = (
    "timestamp_ms",
    "timestamp_formatted",
    "type",
    "param",
    "layer_id",
    "old_value",
    "new_value",
)

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def recording_to_export_dict(recording: Recording) -> Dict[str, Any]:
    """Return the human-readable export payload for *recording*."""

    dates = recording.model_dump(mode="json", include={"created_at", "updated_at"})
    events: List[Dict[str, Any]] = []
    for event in recording.events:
        payload = event.to_payload()
        payload["timestamp_formatted"] = format_recording_time(event.timestamp_ms)
        events.append(payload)
    return {
        "name": recording.name or DEFAULT_EXPORT_NAME,
        "track_id": recording.track_id,
        "duration_ms": recording.duration_ms,
        "duration_formatted": format_recording_time(recording.duration_ms),
        "event_count": len(recording.events),
        "created_at": dates["created_at"],
        "updated_at": dates["updated_at"],
        "events": events,
    }


def export_to_json(recording: Recording) -> str:
    """Serialize *recording* to the indented JSON export format."""

    return json.dumps(recording_to_export_dict(recording), indent=2)


def _render_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _csv_row(event: RecordingEvent) -> List[str]:
    return [
        str(event.timestamp_ms),
        format_recording_time(event.timestamp_ms),
        event.type.value,
        event.param.value if event.param is not None else "",
        event.layer_id or "",
        _render_value(event.old_value),
        _render_value(event.new_value),
    ]


def _format_csv_line(fields: Sequence[str]) -> str:
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="").writerow(fields)
    return buffer.getvalue()


def export_to_csv(recording: Recording) -> str:
    """Serialize the events of *recording* as CSV with one row per event."""

    lines = [_format_csv_line(CSV_HEADER)]
    lines.extend(_format_csv_line(_csv_row(event)) for event in recording.events)
    return "\n".join(lines)


def generate_filename(
    recording: Recording | str | None,
    extension: str,
    *,
    today: date | None = None,
) -> str:
    """Return ``<slug>-<YYYY-MM-DD>.<extension>`` for a recording or plain name."""

    if extension not in EXPORT_EXTENSIONS:
        raise ValueError(f"Unsupported export extension {extension!r}")
    name = recording.name if isinstance(recording, Recording) else recording
    slug = _SLUG_PATTERN.sub("-", (name or DEFAULT_FILENAME_STEM).lower()).strip("-")
    stamp = (today or datetime.now(UTC).date()).isoformat()
    return f"{slug}-{stamp}.{extension}"


@dataclass(frozen=True)
class RecordingExportResult:
    """Paths written by :class:`RecordingExportService`."""

    destination_dir: Path
    paths: Dict[str, Path] = field(default_factory=dict)

    @property
    def json_path(self) -> Path | None:
        return self.paths.get("json")

    @property
    def csv_path(self) -> Path | None:
        return self.paths.get("csv")


class RecordingExportService:
    """Write export artifacts for a recording into a directory."""

    def __init__(self, *, today: date | None = None) -> None:
        self._today = today

    def export(
        self,
        recording: Recording,
        destination_dir: Path,
        *,
        formats: Sequence[str] = EXPORT_EXTENSIONS,
    ) -> RecordingExportResult:
        destination_dir = Path(destination_dir)
        destination_dir.mkdir(parents=True, exist_ok=True)
        paths: Dict[str, Path] = {}
        for extension in formats:
            filename = generate_filename(recording, extension, today=self._today)
            destination = destination_dir / filename
            destination.write_text(self._render(recording, extension), encoding="utf-8")
            paths[extension] = destination
            logger.info(
                "Exported recording %s (%d events) to %s",
                recording.id,
                len(recording.events),
                destination,
            )
        return RecordingExportResult(destination_dir=destination_dir, paths=paths)

    @staticmethod
    def _render(recording: Recording, extension: str) -> str:
        if extension == "json":
            return export_to_json(recording)
        return export_to_csv(recording)


__all__ = [
    "CSV_HEADER",
    "DEFAULT_EXPORT_NAME",
    "RecordingExportResult",
    "RecordingExportService",
    "export_to_csv",
    "export_to_json",
    "generate_filename",
    "recording_to_export_dict",
]

"""Local storage for recordings, filed per track.

Documents are written with the same wire names as the export format
(``layerId``, ``oldValue``, ``newValue``) and live at
``<base_path>/<track_id>/<recording_id>.json``. Recordings with an empty
``track_id`` are filed under :data:`UNASSIGNED_TRACK_DIR`.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from .models import Recording

logger = logging.getLogger(__name__)

UNASSIGNED_TRACK_DIR = "_unassigned"
RECORDING_SUFFIX = ".json"


class RecordingSerializer:
    @staticmethod
    def to_dict(recording: Recording) -> Dict[str, Any]:
        """Dump *recording*; events omit the fields their variant leaves unset."""

        payload = recording.model_dump(mode="json", by_alias=True)
        payload["events"] = [event.to_payload() for event in recording.events]
        return payload

    @staticmethod
    def from_dict(payload: Dict[str, Any]) -> Recording:
        return Recording.model_validate(payload)


class RecordingFileAdapter:
    """Keep recording documents on disk, one directory per owning track."""

    def __init__(self, base_path: Path) -> None:
        self.base_path = Path(base_path)

    def track_dir(self, track_id: str) -> Path:
        return self.base_path / (track_id or UNASSIGNED_TRACK_DIR)

    def path_for(self, recording: Recording) -> Path:
        return self.track_dir(recording.track_id) / f"{recording.id}{RECORDING_SUFFIX}"

    def save(self, recording: Recording, filename: str | None = None) -> Path:
        """Write *recording* and return its path.

        ``filename`` is taken relative to ``base_path`` and overrides the
        per-track location.
        """

        destination = self.base_path / filename if filename else self.path_for(recording)
        destination.parent.mkdir(parents=True, exist_ok=True)
        text = json.dumps(RecordingSerializer.to_dict(recording), indent=2)
        destination.write_text(text, encoding="utf-8")
        logger.debug("Saved recording %s to %s", recording.id, destination)
        return destination

    def load(self, filename: str | Path) -> Recording:
        source = self.base_path / filename
        return RecordingSerializer.from_dict(json.loads(source.read_text(encoding="utf-8")))

    def load_recording(self, track_id: str, recording_id: str) -> Recording:
        source = self.track_dir(track_id) / f"{recording_id}{RECORDING_SUFFIX}"
        if not source.exists():
            raise FileNotFoundError(f"Recording '{recording_id}' not stored for track '{track_id}'")
        return self.load(source.relative_to(self.base_path))

    def list_recordings(self, track_id: str) -> List[Recording]:
        """Return the track's stored recordings, oldest first."""

        directory = self.track_dir(track_id)
        if not directory.is_dir():
            return []
        recordings = [
            self.load(path.relative_to(self.base_path))
            for path in sorted(directory.glob(f"*{RECORDING_SUFFIX}"))
        ]
        recordings.sort(key=lambda recording: recording.created_at)
        return recordings

    def delete(self, track_id: str, recording_id: str) -> bool:
        """Remove a stored recording; returns ``False`` when nothing was stored."""

        target = self.track_dir(track_id) / f"{recording_id}{RECORDING_SUFFIX}"
        if not target.exists():
            return False
        target.unlink()
        logger.info("Deleted recording %s of track %s", recording_id, track_id or "<unassigned>")
        return True


__all__ = [
    "RECORDING_SUFFIX",
    "RecordingFileAdapter",
    "RecordingSerializer",
    "UNASSIGNED_TRACK_DIR",
]

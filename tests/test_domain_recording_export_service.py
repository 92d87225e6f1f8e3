import json
from datetime import date
from pathlib import Path

import pytest

from domain.models import Recording, create_recording_event
from domain.recording_export_service import (
    RecordingExportService,
    export_to_csv,
    export_to_json,
    generate_filename,
)

TODAY = date(2026, 1, 24)


def test_json_export_contains_summary_fields(sample_recording: Recording):
    text = export_to_json(sample_recording)
    data = json.loads(text)

    assert data["name"] == "My Session"
    assert data["track_id"] == "track-1"
    assert data["duration_ms"] == 10_000
    assert data["duration_formatted"] == "00:10"
    assert data["event_count"] == 2
    assert data["created_at"] == "2026-01-24T12:00:00Z"
    assert data["updated_at"] == "2026-01-24T12:30:00Z"
    assert [event["timestamp_formatted"] for event in data["events"]] == ["00:01", "00:03"]
    assert data["events"][0]["param"] == "bpm"
    assert "layerId" not in data["events"][0]
    assert data["events"][1]["layerId"] == "l1"
    assert '\n  "name"' in text


def test_json_export_defaults_name(sample_recording: Recording):
    untitled = sample_recording.model_copy(update={"name": None})
    assert json.loads(export_to_json(untitled))["name"] == "Untitled Recording"


def test_csv_export_rows(sample_recording: Recording):
    lines = export_to_csv(sample_recording).split("\n")
    assert lines == [
        "timestamp_ms,timestamp_formatted,type,param,layer_id,old_value,new_value",
        "1000,00:01,tweak,bpm,,82,85",
        "3000,00:03,layer_mute,,l1,false,true",
    ]


def test_csv_export_of_empty_recording_is_header_only():
    recording = Recording(track_id="t", duration_ms=0)
    assert export_to_csv(recording) == (
        "timestamp_ms,timestamp_formatted,type,param,layer_id,old_value,new_value"
    )


def test_csv_export_quotes_layer_ids_with_commas():
    event = create_recording_event(90_500, "layer_volume", 0.8, 0.25, layer_id="pad, left")
    recording = Recording(track_id="t", duration_ms=100_000, events=[event])
    assert export_to_csv(recording).split("\n")[1] == '90500,01:30,layer_volume,,"pad, left",0.8,0.25'


@pytest.mark.parametrize(
    "name, expected",
    [
        ("My Session", "my-session-2026-01-24.json"),
        ("My @ Session! #1", "my-session-1-2026-01-24.json"),
        ("MySession", "mysession-2026-01-24.json"),
        ("---Session---", "session-2026-01-24.json"),
        (None, "recording-2026-01-24.json"),
    ],
)
def test_generate_filename(name, expected):
    assert generate_filename(name, "json", today=TODAY) == expected


def test_generate_filename_from_recording(sample_recording: Recording):
    assert generate_filename(sample_recording, "csv", today=TODAY) == "my-session-2026-01-24.csv"
    with pytest.raises(ValueError):
        generate_filename(sample_recording, "wav", today=TODAY)


def test_export_service_writes_both_formats(tmp_path: Path, sample_recording: Recording):
    service = RecordingExportService(today=TODAY)
    result = service.export(sample_recording, tmp_path / "exports")

    assert result.json_path == tmp_path / "exports" / "my-session-2026-01-24.json"
    assert result.csv_path == tmp_path / "exports" / "my-session-2026-01-24.csv"
    assert json.loads(result.json_path.read_text(encoding="utf-8"))["event_count"] == 2
    assert result.csv_path.read_text(encoding="utf-8").startswith("timestamp_ms,")


def test_export_service_single_format(tmp_path: Path, sample_recording: Recording):
    result = RecordingExportService(today=TODAY).export(
        sample_recording, tmp_path, formats=["csv"]
    )
    assert result.json_path is None
    assert result.csv_path is not None and result.csv_path.exists()

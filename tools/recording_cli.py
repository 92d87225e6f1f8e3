"""CLI helper that exports, trims, merges, and summarises recorded automation."""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Sequence

from domain.models import Recording
from domain.persistence import RecordingSerializer
from domain.recording_export_service import EXPORT_EXTENSIONS, RecordingExportService
from domain.recording_import_service import (
    RecordingValidationError,
    import_from_json,
)
from domain.recording_transforms import merge_recordings, trim_recording
from domain.stats import get_recording_stats
from domain.timeline import format_recording_time

logger = logging.getLogger("tools.recording_cli")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Export, trim, merge, and inspect recorded performance automation.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity for diagnostic output.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    export_parser = subparsers.add_parser("export", help="Write JSON and/or CSV exports.")
    export_parser.add_argument("recording", type=Path, help="Recording JSON document.")
    export_parser.add_argument(
        "--output-dir",
        type=Path,
        required=True,
        help="Directory receiving the exported files.",
    )
    export_parser.add_argument(
        "--format",
        action="append",
        choices=list(EXPORT_EXTENSIONS),
        dest="formats",
        help="Export format; repeat for several. Defaults to both.",
    )

    trim_parser = subparsers.add_parser("trim", help="Keep a time window of a recording.")
    trim_parser.add_argument("recording", type=Path, help="Recording JSON document.")
    trim_parser.add_argument("--start-ms", type=float, required=True)
    trim_parser.add_argument("--end-ms", type=float, required=True)
    trim_parser.add_argument("--output", type=Path, required=True)

    merge_parser = subparsers.add_parser("merge", help="Concatenate recordings back to back.")
    merge_parser.add_argument("recordings", type=Path, nargs="+", help="Recording JSON documents.")
    merge_parser.add_argument("--output", type=Path, required=True)

    stats_parser = subparsers.add_parser("stats", help="Print event counts as JSON.")
    stats_parser.add_argument("recording", type=Path, help="Recording JSON document.")
    return parser.parse_args(argv)


def _load_recording(path: Path) -> Recording:
    path = path.expanduser().resolve()
    if not path.exists():
        raise SystemExit(f"Recording file '{path}' does not exist.")
    text = path.read_text(encoding="utf-8")
    try:
        return RecordingSerializer.from_dict(json.loads(text))
    except ValueError:
        logger.debug("%s is not a stored recording; trying the export format", path)
    try:
        return import_from_json(text)
    except RecordingValidationError as exc:
        raise SystemExit(f"Invalid recording file '{path}': {exc}") from exc


def _write_recording(recording: Recording, destination: Path) -> Path:
    destination = destination.expanduser().resolve()
    destination.parent.mkdir(parents=True, exist_ok=True)
    payload = RecordingSerializer.to_dict(recording)
    destination.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return destination


def _run_export(args: argparse.Namespace) -> int:
    recording = _load_recording(args.recording)
    formats = args.formats or list(EXPORT_EXTENSIONS)
    result = RecordingExportService().export(
        recording, args.output_dir.expanduser().resolve(), formats=formats
    )
    for extension, path in result.paths.items():
        print(f"Exported {extension.upper()} to {path}")
    return 0


def _run_trim(args: argparse.Namespace) -> int:
    recording = _load_recording(args.recording)
    trimmed = trim_recording(recording, args.start_ms, args.end_ms)
    destination = _write_recording(trimmed, args.output)
    print(
        f"Trimmed to {format_recording_time(trimmed.duration_ms)} "
        f"({len(trimmed.events)} events) -> {destination}"
    )
    return 0


def _run_merge(args: argparse.Namespace) -> int:
    recordings = [_load_recording(path) for path in args.recordings]
    merged = merge_recordings(recordings)
    destination = _write_recording(merged, args.output)
    print(
        f"Merged {len(recordings)} recordings into {format_recording_time(merged.duration_ms)} "
        f"({len(merged.events)} events) -> {destination}"
    )
    return 0


def _run_stats(args: argparse.Namespace) -> int:
    stats = get_recording_stats(_load_recording(args.recording))
    summary = {
        "total_events": stats.total_events,
        "events_by_type": stats.events_by_type,
        "events_by_param": stats.events_by_param,
        "average_events_per_second": stats.average_events_per_second,
        "first_event_ms": stats.first_event_ms,
        "last_event_ms": stats.last_event_ms,
    }
    print(json.dumps(summary, indent=2))
    return 0


COMMANDS = {
    "export": _run_export,
    "trim": _run_trim,
    "merge": _run_merge,
    "stats": _run_stats,
}


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return COMMANDS[args.command](args)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())

"""Domain package exposing recording models, transforms, and export helpers."""
from .models import (
    EventType,
    Recording,
    RecordingEvent,
    TWEAK_PARAMS,
    TweakParam,
    TweakParamSpec,
    create_recording,
    create_recording_event,
    get_events_in_range,
    get_next_event,
)
from .persistence import RecordingFileAdapter, RecordingSerializer
from .recording_export_service import (
    RecordingExportResult,
    RecordingExportService,
    export_to_csv,
    export_to_json,
    generate_filename,
)
from .recording_import_service import (
    RecordingImportService,
    RecordingValidationError,
    import_from_json,
)
from .recording_transforms import (
    merge_recordings,
    remove_event,
    rename_recording,
    trim_recording,
)
from .stats import RecordingStats, get_recording_stats
from .timeline import (
    EVENT_TYPE_COLORS,
    TWEAK_PARAM_COLORS,
    EventGroup,
    event_color,
    event_density,
    event_label,
    format_recording_time,
    group_events,
)

__all__ = [
    "EventType",
    "Recording",
    "RecordingEvent",
    "TWEAK_PARAMS",
    "TweakParam",
    "TweakParamSpec",
    "create_recording",
    "create_recording_event",
    "get_events_in_range",
    "get_next_event",
    "RecordingFileAdapter",
    "RecordingSerializer",
    "RecordingExportResult",
    "RecordingExportService",
    "export_to_csv",
    "export_to_json",
    "generate_filename",
    "RecordingImportService",
    "RecordingValidationError",
    "import_from_json",
    "merge_recordings",
    "remove_event",
    "rename_recording",
    "trim_recording",
    "RecordingStats",
    "get_recording_stats",
    "EVENT_TYPE_COLORS",
    "TWEAK_PARAM_COLORS",
    "EventGroup",
    "event_color",
    "event_density",
    "event_label",
    "format_recording_time",
    "group_events",
]

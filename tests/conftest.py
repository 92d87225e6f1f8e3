import sys
from datetime import UTC, datetime
from pathlib import Path

import pytest

from domain.models import EventType, Recording, RecordingEvent, TweakParam
from performance.scheduler import ManualFrameScheduler
from performance.transport import ManualTransportClock

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture()
def sample_recording() -> Recording:
    return Recording(
        id="rec-1",
        track_id="track-1",
        name="My Session",
        duration_ms=10_000,
        events=[
            RecordingEvent(
                id="e1",
                timestamp_ms=1000,
                type=EventType.TWEAK,
                param=TweakParam.BPM,
                old_value=82,
                new_value=85,
            ),
            RecordingEvent(
                id="e2",
                timestamp_ms=3000,
                type=EventType.LAYER_MUTE,
                layer_id="l1",
                old_value=False,
                new_value=True,
            ),
        ],
        created_at=datetime(2026, 1, 24, 12, 0, tzinfo=UTC),
        updated_at=datetime(2026, 1, 24, 12, 30, tzinfo=UTC),
    )


@pytest.fixture()
def transport() -> ManualTransportClock:
    return ManualTransportClock(seconds=0.0, playing=True, bpm=82.0)


@pytest.fixture()
def scheduler() -> ManualFrameScheduler:
    return ManualFrameScheduler(start_ms=1_000.0)

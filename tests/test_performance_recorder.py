import pytest

from domain.models import EventType, TweakParam
from performance.config import RecorderConfig
from performance.recorder import PerformanceRecorder, RecordingState
from performance.scheduler import ManualFrameScheduler
from performance.transport import ManualTransportClock


@pytest.fixture()
def recorder(transport: ManualTransportClock, scheduler: ManualFrameScheduler) -> PerformanceRecorder:
    return PerformanceRecorder(transport, scheduler)


def test_start_requires_playing_transport(transport, recorder):
    transport.stop()
    assert recorder.start() is False
    assert recorder.is_recording is False


def test_start_captures_reference_times(transport, scheduler, recorder):
    transport.set_position(12.5)
    assert recorder.start() is True

    state = recorder.state
    assert state.is_recording is True
    assert state.start_time == 12.5
    assert state.start_perf_time == scheduler.now_ms()
    assert state.elapsed_ms == 0


def test_capture_is_ignored_while_idle(recorder):
    assert recorder.capture_tweak("bpm", 82, 90) is None
    assert recorder.events == []


def test_timestamps_are_relative_to_start(scheduler, recorder):
    recorder.start()
    scheduler.advance(1234)
    event = recorder.capture_layer_volume("bass", 0.8, 0.6)

    assert event is not None
    assert event.timestamp_ms == 1234
    assert event.type is EventType.LAYER_VOLUME
    assert event.layer_id == "bass"


def test_rapid_changes_to_one_key_coalesce(scheduler, recorder):
    recorder.start()
    first = recorder.capture_tweak(TweakParam.BPM, 82, 83)
    scheduler.advance(10)
    second = recorder.capture_tweak(TweakParam.BPM, 83, 85)

    events = recorder.events
    assert len(events) == 1
    assert events[0].old_value == 82
    assert events[0].new_value == 85
    assert events[0].id == first.id == second.id
    assert events[0].timestamp_ms == 0


def test_separated_changes_create_new_events(scheduler, recorder):
    recorder.start()
    recorder.capture_tweak("bpm", 82, 83)
    scheduler.advance(100)
    recorder.capture_tweak("bpm", 83, 85)

    events = recorder.events
    assert len(events) == 2
    assert (events[0].old_value, events[0].new_value) == (82, 83)
    assert (events[1].old_value, events[1].new_value) == (83, 85)
    assert events[1].timestamp_ms == 100
    assert events[0].id != events[1].id


def test_continuous_drag_extends_the_window(scheduler, recorder):
    recorder.start()
    for step in range(6):
        recorder.capture_tweak("filter", 8000 - step * 100, 8000 - (step + 1) * 100)
        scheduler.advance(30)

    events = recorder.events
    assert len(events) == 1
    assert events[0].old_value == 8000
    assert events[0].new_value == 7400


def test_distinct_keys_do_not_coalesce(recorder):
    recorder.start()
    recorder.capture_layer_mute("l1", False, True)
    recorder.capture_layer_mute("l2", False, True)
    recorder.capture_layer_solo("l1", False, True)
    recorder.capture_tweak("swing", 8, 12)

    assert len(recorder.events) == 4


def test_debounce_timer_closes_gesture(scheduler, recorder):
    recorder.start()
    recorder.capture_tweak("delay", 20, 25)
    assert scheduler.pending_timers == 1
    scheduler.advance(10)
    recorder.capture_tweak("delay", 25, 30)
    assert scheduler.pending_timers == 1

    scheduler.advance(60)
    assert scheduler.pending_timers == 0


def test_custom_coalesce_window(transport, scheduler):
    recorder = PerformanceRecorder(
        transport, scheduler, config=RecorderConfig(coalesce_window_ms=200)
    )
    recorder.start()
    recorder.capture_tweak("reverb", 25, 30)
    scheduler.advance(150)
    recorder.capture_tweak("reverb", 30, 40)
    assert len(recorder.events) == 1


def test_stop_returns_events_and_duration(scheduler, recorder):
    recorder.start()
    scheduler.advance(500)
    recorder.capture_layer_mute("l1", False, True)
    scheduler.advance(2000)

    result = recorder.stop()
    assert result.duration_ms == 2500
    assert len(result.events) == 1
    assert recorder.is_recording is False
    assert recorder.events == result.events
    assert scheduler.pending_frames == 0
    assert scheduler.pending_timers == 0


def test_start_keeps_buffer_until_cleared(scheduler, recorder):
    recorder.start()
    recorder.capture_tweak("bpm", 82, 90)
    recorder.stop()

    recorder.start()
    assert len(recorder.events) == 1

    scheduler.advance(40)
    recorder.clear()
    assert recorder.events == []
    assert recorder.elapsed_ms == 0
    assert recorder.is_recording is True


def test_frame_updates_track_elapsed_time(scheduler, recorder):
    seen: list[RecordingState] = []
    recorder.add_listener(seen.append)
    recorder.start()

    scheduler.step(16)
    scheduler.step(16)
    assert recorder.elapsed_ms == 32
    assert seen[-1].elapsed_ms == 32
    assert seen[0].is_recording is True

    recorder.stop()
    scheduler.step(16)
    assert recorder.elapsed_ms == 32
    recorder.remove_listener(seen.append)


def test_get_recording_for_save_sorts_and_uses_elapsed(scheduler, recorder):
    recorder.start()
    scheduler.advance(300)
    recorder.capture_tweak("bpm", 82, 90)
    scheduler.advance(700)
    recorder.capture_layer_solo("l1", False, True)
    recorder.stop()

    recording = recorder.get_recording_for_save("track-7", name="Take 1")
    assert recording.track_id == "track-7"
    assert recording.name == "Take 1"
    assert recording.duration_ms == 1000
    assert [event.timestamp_ms for event in recording.events] == [300, 1000]


def test_invalid_values_are_rejected(recorder):
    recorder.start()
    with pytest.raises(ValueError):
        recorder.capture_layer_mute("l1", 0.5, 1.0)  # type: ignore[arg-type]


def test_recorders_do_not_share_config_state(transport, scheduler):
    config = RecorderConfig(coalesce_window_ms=80)
    first = PerformanceRecorder(transport, scheduler, config=config)
    second = PerformanceRecorder(transport, scheduler, config=config)

    first.config.coalesce_window_ms = 10
    assert second.config.coalesce_window_ms == 80
    assert config.coalesce_window_ms == 80

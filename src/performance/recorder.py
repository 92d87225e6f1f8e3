"""Capture performance gestures into a time-ordered event log.

The recorder timestamps every change relative to the moment capture
started, using the host scheduler's wall clock. Rapid repeated changes to
the same control (a slider drag) are coalesced into one event that keeps
the value from before the gesture and the value it settled on.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
from typing import Any, Callable, Dict, List, Tuple

from domain.models import (
    EventType,
    EventValue,
    Recording,
    RecordingEvent,
    TweakParam,
    create_recording,
    create_recording_event,
)

from .config import RecorderConfig
from .scheduler import FrameScheduler
from .transport import TransportClock

logger = logging.getLogger(__name__)

CoalesceKey = Tuple[str, str, str]


@dataclass
class RecordingState:
    """Transient state of one capture session."""

    is_recording: bool = False
    start_time: float = 0.0
    start_perf_time: float = 0.0
    events: List[RecordingEvent] = field(default_factory=list)
    elapsed_ms: int = 0


@dataclass(frozen=True)
class CaptureResult:
    """Events and duration returned when a capture session stops."""

    events: List[RecordingEvent]
    duration_ms: int


@dataclass
class _CoalesceRun:
    index: int
    last_capture_ms: float
    timer: Any = None


class PerformanceRecorder:
    """Record parameter changes while the transport plays."""

    def __init__(
        self,
        transport: TransportClock,
        scheduler: FrameScheduler,
        *,
        config: RecorderConfig | None = None,
        on_change: Callable[[RecordingState], None] | None = None,
    ) -> None:
        self._transport = transport
        self._scheduler = scheduler
        self._config = replace(config) if config is not None else RecorderConfig()
        self._state = RecordingState()
        self._runs: Dict[CoalesceKey, _CoalesceRun] = {}
        self._frame_handle: Any = None
        self._listeners: List[Callable[[RecordingState], None]] = []
        if on_change is not None:
            self._listeners.append(on_change)

    @property
    def config(self) -> RecorderConfig:
        return self._config

    @property
    def state(self) -> RecordingState:
        """Return a copy of the current capture state."""

        return replace(self._state, events=list(self._state.events))

    @property
    def is_recording(self) -> bool:
        return self._state.is_recording

    @property
    def events(self) -> List[RecordingEvent]:
        return list(self._state.events)

    @property
    def elapsed_ms(self) -> int:
        return self._state.elapsed_ms

    def add_listener(self, listener: Callable[[RecordingState], None]) -> None:
        """Register a function invoked with a state copy after every change."""

        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[RecordingState], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Session control
    # ------------------------------------------------------------------
    def start(self) -> bool:
        """Begin capturing if the transport is playing.

        Previously buffered events are kept; call :meth:`clear` first for a
        fresh session. Returns ``False`` when the call was skipped.
        """

        if self._state.is_recording:
            return False
        snapshot = self._transport.get_snapshot()
        if not snapshot.playing:
            logger.debug("Ignoring recorder start while the transport is stopped")
            return False

        self._state.is_recording = True
        self._state.start_time = snapshot.seconds
        self._state.start_perf_time = self._scheduler.now_ms()
        self._state.elapsed_ms = 0
        self._runs.clear()
        if self._config.frame_updates:
            self._frame_handle = self._scheduler.request_frame(self._on_frame)
        logger.info("Recording started at transport %.3fs", snapshot.seconds)
        self._notify()
        return True

    def stop(self) -> CaptureResult:
        """Stop capturing and return the buffered events and elapsed duration.

        The buffer is left intact so the take can be inspected or saved.
        """

        if self._state.is_recording:
            self._state.elapsed_ms = self._elapsed_now()
            self._state.is_recording = False
            self._cancel_frame()
            self._close_all_runs()
            logger.info(
                "Recording stopped after %d ms with %d events",
                self._state.elapsed_ms,
                len(self._state.events),
            )
            self._notify()
        return CaptureResult(events=list(self._state.events), duration_ms=self._state.elapsed_ms)

    def clear(self) -> None:
        """Drop buffered events and reset the elapsed time."""

        self._close_all_runs()
        self._state.events = []
        self._state.elapsed_ms = 0
        self._notify()

    # ------------------------------------------------------------------
    # Capture
    # ------------------------------------------------------------------
    def capture_event(
        self,
        event_type: EventType | str,
        target: TweakParam | str,
        old_value: EventValue,
        new_value: EventValue,
    ) -> RecordingEvent | None:
        """Record a change of *target* (a tweak param or a layer id).

        Returns the stored event, or ``None`` when not recording.
        """

        if not self._state.is_recording:
            logger.debug("Ignoring %s capture while not recording", event_type)
            return None

        event_type = EventType(event_type)
        now = self._scheduler.now_ms()
        timestamp_ms = max(0, int(now - self._state.start_perf_time))
        if event_type is EventType.TWEAK:
            candidate = create_recording_event(
                timestamp_ms, event_type, old_value, new_value, param=target
            )
        else:
            candidate = create_recording_event(
                timestamp_ms, event_type, old_value, new_value, layer_id=str(target)
            )

        key = candidate.coalesce_key
        window = self._config.coalesce_window_ms
        run = self._runs.get(key)
        if run is not None and now - run.last_capture_ms < window:
            existing = self._state.events[run.index]
            stored = existing.model_copy(update={"new_value": candidate.new_value})
            self._state.events[run.index] = stored
            run.last_capture_ms = now
        else:
            if run is not None:
                self._scheduler.cancel(run.timer)
            stored = candidate
            self._state.events.append(stored)
            run = _CoalesceRun(index=len(self._state.events) - 1, last_capture_ms=now)
            self._runs[key] = run

        self._scheduler.cancel(run.timer)
        run.timer = self._scheduler.call_later(window, lambda: self._close_run(key))
        self._notify()
        return stored

    def capture_tweak(self, param: TweakParam | str, old_value: float, new_value: float) -> RecordingEvent | None:
        return self.capture_event(EventType.TWEAK, param, old_value, new_value)

    def capture_layer_mute(self, layer_id: str, old_value: bool, new_value: bool) -> RecordingEvent | None:
        return self.capture_event(EventType.LAYER_MUTE, layer_id, old_value, new_value)

    def capture_layer_volume(self, layer_id: str, old_value: float, new_value: float) -> RecordingEvent | None:
        return self.capture_event(EventType.LAYER_VOLUME, layer_id, old_value, new_value)

    def capture_layer_solo(self, layer_id: str, old_value: bool, new_value: bool) -> RecordingEvent | None:
        return self.capture_event(EventType.LAYER_SOLO, layer_id, old_value, new_value)

    def get_recording_for_save(self, track_id: str, name: str | None = None) -> Recording:
        """Build a :class:`Recording` from the buffered take."""

        return create_recording(track_id, self._state.events, self._state.elapsed_ms, name)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _elapsed_now(self) -> int:
        return max(0, int(self._scheduler.now_ms() - self._state.start_perf_time))

    def _on_frame(self) -> None:
        self._frame_handle = None
        if not self._state.is_recording:
            return
        self._state.elapsed_ms = self._elapsed_now()
        self._notify()
        self._frame_handle = self._scheduler.request_frame(self._on_frame)

    def _cancel_frame(self) -> None:
        if self._frame_handle is not None:
            self._scheduler.cancel_frame(self._frame_handle)
            self._frame_handle = None

    def _close_run(self, key: CoalesceKey) -> None:
        self._runs.pop(key, None)

    def _close_all_runs(self) -> None:
        for run in self._runs.values():
            self._scheduler.cancel(run.timer)
        self._runs.clear()

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.state
        for listener in list(self._listeners):
            listener(snapshot)


__all__ = ["CaptureResult", "PerformanceRecorder", "RecordingState"]

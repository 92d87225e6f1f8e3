"""Deterministic replay of recorded automation against a parameter sink.

The player follows the transport clock: every frame it converts the clock
reading into a position inside the recording and applies, in timestamp
order, each event that has come due. A forward-only cursor guarantees an
event is applied at most once per play session.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
import logging
from typing import Any, Callable, List

import numpy as np

from domain.models import EventType, Recording, RecordingEvent
from domain.timeline import format_recording_time

from .config import PlayerConfig
from .scheduler import FrameScheduler
from .transport import ParameterSink, TransportClock

logger = logging.getLogger(__name__)


@dataclass
class PlaybackState:
    """Transient replay state; reset whenever a different recording is loaded."""

    is_playing: bool = False
    current_time_ms: int = 0
    next_event_index: int = 0
    last_applied_index: int = -1
    playback_start_time_ref: float = 0.0


class AutomationPlayer:
    """Replay a :class:`Recording` in lock-step with the transport clock."""

    def __init__(
        self,
        transport: TransportClock,
        sink: ParameterSink | None = None,
        *,
        scheduler: FrameScheduler | None = None,
        config: PlayerConfig | None = None,
        recording: Recording | None = None,
        on_change: Callable[[PlaybackState], None] | None = None,
    ) -> None:
        self._transport = transport
        self._sink = sink
        self._scheduler = scheduler
        self._config = replace(config) if config is not None else PlayerConfig()
        self._state = PlaybackState()
        self._recording: Recording | None = None
        self._events: List[RecordingEvent] = []
        self._timestamps = np.zeros(0, dtype=np.int64)
        self._frame_handle: Any = None
        self._in_tick = False
        self._deferred: List[Callable[[], None]] = []
        self._listeners: List[Callable[[PlaybackState], None]] = []
        if on_change is not None:
            self._listeners.append(on_change)
        if recording is not None:
            self.load(recording)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def state(self) -> PlaybackState:
        """Return a copy of the current playback state."""

        return replace(self._state)

    @property
    def recording(self) -> Recording | None:
        return self._recording

    @property
    def events(self) -> List[RecordingEvent]:
        """Return the loaded events in replay order."""

        return list(self._events)

    @property
    def is_playing(self) -> bool:
        return self._state.is_playing

    @property
    def current_time_ms(self) -> int:
        return self._state.current_time_ms

    @property
    def next_event_index(self) -> int:
        return self._state.next_event_index

    @property
    def last_applied_index(self) -> int:
        return self._state.last_applied_index

    @property
    def position_label(self) -> str:
        """Return the playhead as ``MM:SS`` using the shared export formatter."""

        return format_recording_time(self._state.current_time_ms)

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._config.enabled = bool(value)
        if not value:
            self.pause()

    @property
    def sink(self) -> ParameterSink | None:
        return self._sink

    @sink.setter
    def sink(self, sink: ParameterSink | None) -> None:
        self._sink = sink

    def add_listener(self, listener: Callable[[PlaybackState], None]) -> None:
        """Register a function invoked with a state copy after every change."""

        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[PlaybackState], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Transport controls
    # ------------------------------------------------------------------
    def load(self, recording: Recording | None) -> None:
        """Swap the loaded recording, resetting state when its identity changes."""

        if self._in_tick:
            self._deferred.append(lambda: self.load(recording))
            return
        previous_id = self._recording.id if self._recording is not None else None
        new_id = recording.id if recording is not None else None
        self._recording = recording
        self._events = recording.sorted_events() if recording is not None else []
        self._timestamps = np.fromiter(
            (event.timestamp_ms for event in self._events),
            dtype=np.int64,
            count=len(self._events),
        )
        if previous_id != new_id:
            self._cancel_frame()
            self._state = PlaybackState()
            self._notify()

    def play(self) -> bool:
        """Start replay from the current position if the transport is playing.

        Returns ``False`` when the call was skipped.
        """

        if self._recording is None or not self._config.enabled:
            logger.debug("Ignoring play without an enabled recording")
            return False
        snapshot = self._transport.get_snapshot()
        if not snapshot.playing:
            logger.debug("Ignoring play while the transport is stopped")
            return False

        self._state.playback_start_time_ref = (
            snapshot.seconds - self._state.current_time_ms / 1000.0
        )
        self._state.last_applied_index = self._state.next_event_index - 1
        if not self._state.is_playing:
            self._state.is_playing = True
            logger.info(
                "Playing recording %s from %d ms",
                self._recording.id,
                self._state.current_time_ms,
            )
            self._request_frame()
        self._notify()
        return True

    def pause(self) -> None:
        """Stop applying events; position and cursor are kept."""

        if self._in_tick:
            self._deferred.append(self.pause)
            return
        self._cancel_frame()
        if self._state.is_playing:
            self._state.is_playing = False
            logger.info("Paused playback at %d ms", self._state.current_time_ms)
            self._notify()

    def seek(self, position_ms: float) -> None:
        """Move the playhead, clamped to the recording, without re-applying events."""

        if self._in_tick:
            self._deferred.append(lambda: self.seek(position_ms))
            return
        if self._recording is None:
            return
        clamped = int(max(0, min(position_ms, self._recording.duration_ms)))
        self._state.current_time_ms = clamped
        next_index = int(np.searchsorted(self._timestamps, clamped, side="right"))
        self._state.next_event_index = next_index
        self._state.last_applied_index = next_index - 1
        if self._state.is_playing:
            snapshot = self._transport.get_snapshot()
            self._state.playback_start_time_ref = snapshot.seconds - clamped / 1000.0
        self._notify()

    def reset(self) -> None:
        """Stop playback and rewind to the start."""

        if self._in_tick:
            self._deferred.append(self.reset)
            return
        self._cancel_frame()
        self._state = PlaybackState()
        self._notify()

    # ------------------------------------------------------------------
    # Frame processing
    # ------------------------------------------------------------------
    def tick(self) -> List[RecordingEvent]:
        """Apply every event that has come due since the previous frame.

        Returns the events applied during this call. Controls invoked from a
        sink callback while the frame runs are queued and honoured, in call
        order, once all of the frame's due events have been applied.
        """

        if self._in_tick or not self._state.is_playing or self._recording is None:
            return []

        snapshot = self._transport.get_snapshot()
        if not snapshot.playing:
            self.pause()
            return []

        applied: List[RecordingEvent] = []
        self._in_tick = True
        try:
            recording_time_ms = int(
                round((snapshot.seconds - self._state.playback_start_time_ref) * 1000.0)
            )
            duration_ms = self._recording.duration_ms
            self._state.current_time_ms = min(max(0, recording_time_ms), duration_ms)

            index = self._state.last_applied_index + 1
            while index < len(self._events):
                event = self._events[index]
                if event.timestamp_ms > recording_time_ms:
                    break
                self._apply_event(event)
                self._state.last_applied_index = index
                self._state.next_event_index = index + 1
                applied.append(event)
                index += 1
        finally:
            self._in_tick = False

        if recording_time_ms >= duration_ms:
            self.pause()
        self._run_deferred()
        self._notify()
        return applied

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _apply_event(self, event: RecordingEvent) -> None:
        sink = self._sink
        if sink is None:
            return
        if event.type is EventType.TWEAK:
            self._dispatch(sink, "on_tweak_change", event.param, event.new_value)
        elif event.type is EventType.LAYER_MUTE:
            self._dispatch(sink, "on_layer_mute_change", event.layer_id, event.new_value)
        elif event.type is EventType.LAYER_VOLUME:
            self._dispatch(sink, "on_layer_volume_change", event.layer_id, event.new_value)
        elif event.type is EventType.LAYER_SOLO:
            self._dispatch(sink, "on_layer_solo_change", event.layer_id, event.new_value)
        self._dispatch(sink, "on_event_triggered", event)

    @staticmethod
    def _dispatch(sink: ParameterSink, name: str, *args: Any) -> None:
        handler = getattr(sink, name, None)
        if handler is not None:
            handler(*args)

    def _run_deferred(self) -> None:
        while self._deferred:
            action = self._deferred.pop(0)
            action()

    def _request_frame(self) -> None:
        if self._scheduler is None or self._frame_handle is not None:
            return
        self._frame_handle = self._scheduler.request_frame(self._on_frame)

    def _on_frame(self) -> None:
        self._frame_handle = None
        if not self._state.is_playing:
            return
        self.tick()
        if self._state.is_playing:
            self._request_frame()

    def _cancel_frame(self) -> None:
        if self._frame_handle is not None and self._scheduler is not None:
            self._scheduler.cancel_frame(self._frame_handle)
        self._frame_handle = None

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.state
        for listener in list(self._listeners):
            listener(snapshot)


__all__ = ["AutomationPlayer", "PlaybackState"]

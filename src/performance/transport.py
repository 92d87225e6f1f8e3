"""Contracts for the musical transport clock and the parameter sink."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from domain.models import RecordingEvent, TweakParam


@dataclass(frozen=True)
class TransportSnapshot:
    """Point-in-time reading of the transport: elapsed seconds, play state, tempo."""

    seconds: float = 0.0
    playing: bool = False
    bpm: float = 120.0


class TransportClock(Protocol):
    """Read-only musical time source shared by recorders and players."""

    def get_snapshot(self) -> TransportSnapshot:
        """Return the current transport reading."""


class ManualTransportClock:
    """Transport clock driven explicitly, for offline replays and rehearsal tests."""

    def __init__(self, *, seconds: float = 0.0, playing: bool = False, bpm: float = 120.0) -> None:
        self.seconds = float(seconds)
        self.playing = playing
        self.bpm = float(bpm)

    def get_snapshot(self) -> TransportSnapshot:
        return TransportSnapshot(seconds=self.seconds, playing=self.playing, bpm=self.bpm)

    def start(self) -> None:
        self.playing = True

    def stop(self) -> None:
        self.playing = False

    def advance(self, seconds: float) -> None:
        """Move the transport forward by *seconds*."""

        self.seconds += seconds

    def set_position(self, seconds: float) -> None:
        self.seconds = float(seconds)


class ParameterSink(Protocol):
    """Receiver for replayed parameter values.

    Every handler is optional; the player skips any the sink does not define.
    """

    def on_tweak_change(self, param: TweakParam, value: float) -> None: ...

    def on_layer_mute_change(self, layer_id: str, muted: bool) -> None: ...

    def on_layer_volume_change(self, layer_id: str, volume: float) -> None: ...

    def on_layer_solo_change(self, layer_id: str, soloed: bool) -> None: ...

    def on_event_triggered(self, event: RecordingEvent) -> None: ...


@dataclass
class CallbackParameterSink:
    """Parameter sink assembled from optional callables."""

    on_tweak_change: Optional[Callable[[TweakParam, float], None]] = None
    on_layer_mute_change: Optional[Callable[[str, bool], None]] = None
    on_layer_volume_change: Optional[Callable[[str, float], None]] = None
    on_layer_solo_change: Optional[Callable[[str, bool], None]] = None
    on_event_triggered: Optional[Callable[[RecordingEvent], None]] = None


__all__ = [
    "CallbackParameterSink",
    "ManualTransportClock",
    "ParameterSink",
    "TransportClock",
    "TransportSnapshot",
]

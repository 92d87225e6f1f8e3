"""Live capture and transport-synchronised replay of performance automation."""

from .config import PlayerConfig, RecorderConfig
from .player import AutomationPlayer, PlaybackState
from .recorder import CaptureResult, PerformanceRecorder, RecordingState
from .scheduler import AsyncioFrameScheduler, FrameScheduler, ManualFrameScheduler
from .transport import (
    CallbackParameterSink,
    ManualTransportClock,
    ParameterSink,
    TransportClock,
    TransportSnapshot,
)

__all__ = [
    "AutomationPlayer",
    "PlaybackState",
    "PerformanceRecorder",
    "RecordingState",
    "CaptureResult",
    "PlayerConfig",
    "RecorderConfig",
    "AsyncioFrameScheduler",
    "FrameScheduler",
    "ManualFrameScheduler",
    "CallbackParameterSink",
    "ManualTransportClock",
    "ParameterSink",
    "TransportClock",
    "TransportSnapshot",
]

"""Runtime configuration for capture and replay sessions."""
from __future__ import annotations

from dataclasses import dataclass

DEFAULT_COALESCE_WINDOW_MS = 50.0


@dataclass
class RecorderConfig:
    """Capture settings shared by every recorder on a track."""

    coalesce_window_ms: float = DEFAULT_COALESCE_WINDOW_MS
    frame_updates: bool = True

    def __post_init__(self) -> None:
        if self.coalesce_window_ms < 0:
            raise ValueError("coalesce_window_ms must be non-negative")


@dataclass
class PlayerConfig:
    """Replay settings; a disabled player ignores ``play()``."""

    enabled: bool = True


__all__ = ["DEFAULT_COALESCE_WINDOW_MS", "PlayerConfig", "RecorderConfig"]

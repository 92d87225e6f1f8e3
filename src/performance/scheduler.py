"""Host frame schedulers that drive recorders and players once per frame."""
from __future__ import annotations

import asyncio
import heapq
import itertools
from typing import Any, Callable, Dict, List, Protocol, Tuple

FrameCallback = Callable[[], None]


class FrameScheduler(Protocol):
    """Per-frame callbacks, cancellable timers, and a millisecond wall clock."""

    def now_ms(self) -> float:
        """Return a monotonic wall-clock reading in milliseconds."""

    def request_frame(self, callback: FrameCallback) -> Any:
        """Run *callback* once on the next frame and return a cancellable handle."""

    def cancel_frame(self, handle: Any) -> None:
        """Cancel a pending frame callback."""

    def call_later(self, delay_ms: float, callback: FrameCallback) -> Any:
        """Run *callback* after *delay_ms* and return a cancellable handle."""

    def cancel(self, handle: Any) -> None:
        """Cancel a pending delayed callback."""


class ManualFrameScheduler:
    """Deterministic scheduler whose clock only moves when told to.

    ``advance`` moves the clock and fires due timers in order; ``run_frame``
    runs the callbacks queued for the next frame. Callbacks requested while a
    frame runs are queued for the following frame.
    """

    def __init__(self, *, start_ms: float = 0.0, frame_interval_ms: float = 16.0) -> None:
        if frame_interval_ms <= 0:
            raise ValueError("frame_interval_ms must be positive")
        self._now = float(start_ms)
        self.frame_interval_ms = float(frame_interval_ms)
        self._ids = itertools.count(1)
        self._frames: Dict[int, FrameCallback] = {}
        self._timers: List[Tuple[float, int]] = []
        self._timer_callbacks: Dict[int, FrameCallback] = {}

    def now_ms(self) -> float:
        return self._now

    def request_frame(self, callback: FrameCallback) -> int:
        handle = next(self._ids)
        self._frames[handle] = callback
        return handle

    def cancel_frame(self, handle: Any) -> None:
        self._frames.pop(handle, None)

    def call_later(self, delay_ms: float, callback: FrameCallback) -> int:
        handle = next(self._ids)
        heapq.heappush(self._timers, (self._now + max(0.0, delay_ms), handle))
        self._timer_callbacks[handle] = callback
        return handle

    def cancel(self, handle: Any) -> None:
        self._timer_callbacks.pop(handle, None)

    @property
    def pending_frames(self) -> int:
        return len(self._frames)

    @property
    def pending_timers(self) -> int:
        return len(self._timer_callbacks)

    def advance(self, ms: float) -> None:
        """Move the clock forward by *ms*, firing timers that fall due."""

        target = self._now + max(0.0, ms)
        while self._timers and self._timers[0][0] <= target:
            due, handle = heapq.heappop(self._timers)
            callback = self._timer_callbacks.pop(handle, None)
            if callback is None:
                continue
            self._now = max(self._now, due)
            callback()
        self._now = target

    def run_frame(self) -> int:
        """Run the queued frame callbacks and return how many ran."""

        pending = list(self._frames.items())
        self._frames.clear()
        for _handle, callback in pending:
            callback()
        return len(pending)

    def step(self, ms: float | None = None) -> int:
        """Advance one frame interval (or *ms*) and run the queued frames."""

        self.advance(self.frame_interval_ms if ms is None else ms)
        return self.run_frame()


class AsyncioFrameScheduler:
    """Frame scheduler backed by an asyncio event loop."""

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        frame_interval_ms: float = 16.0,
    ) -> None:
        if frame_interval_ms <= 0:
            raise ValueError("frame_interval_ms must be positive")
        self._loop = loop
        self.frame_interval_ms = float(frame_interval_ms)

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now_ms(self) -> float:
        return self.loop.time() * 1000.0

    def request_frame(self, callback: FrameCallback) -> asyncio.TimerHandle:
        return self.loop.call_later(self.frame_interval_ms / 1000.0, callback)

    def cancel_frame(self, handle: Any) -> None:
        if handle is not None:
            handle.cancel()

    def call_later(self, delay_ms: float, callback: FrameCallback) -> asyncio.TimerHandle:
        return self.loop.call_later(max(0.0, delay_ms) / 1000.0, callback)

    def cancel(self, handle: Any) -> None:
        if handle is not None:
            handle.cancel()


__all__ = [
    "AsyncioFrameScheduler",
    "FrameCallback",
    "FrameScheduler",
    "ManualFrameScheduler",
]

import asyncio
from typing import Callable, List, Optional, Protocol

FrameCallback = Callable[[float], None]  # receives a timestamp in ms


class FrameHandle:
    def __init__(self, callback: FrameCallback):
        self.callback = callback
        self.cancelled = False
        self._timer: Optional[asyncio.TimerHandle] = None

    def cancel(self) -> None:
        self.cancelled = True
        if self._timer is not None:
            self._timer.cancel()

    def fire(self, timestamp_ms: float) -> None:
        if self.cancelled:
            return
        self.cancelled = True  # one-shot
        self.callback(timestamp_ms)


class FrameScheduler(Protocol):
    def request_frame(self, callback: FrameCallback) -> FrameHandle:
        ...


class AsyncioFrameScheduler:
    """Fires callbacks on the running event loop at roughly `fps` frames per second."""

    def __init__(self, fps: float = 60.0, loop: Optional[asyncio.AbstractEventLoop] = None):
        if fps <= 0:
            raise ValueError("fps must be > 0")
        self.interval_s = 1.0 / fps
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now_ms(self) -> float:
        return self.loop.time() * 1000.0

    def request_frame(self, callback: FrameCallback) -> FrameHandle:
        handle = FrameHandle(callback)
        handle._timer = self.loop.call_later(self.interval_s, lambda: handle.fire(self.now_ms()))
        return handle


class ManualFrameScheduler:
    """
    Simulated display clock.
    tick(t) fires every frame requested before the tick, all with timestamp t.
    Frames requested from inside a callback wait for the next tick.
    """

    def __init__(self):
        self._pending: List[FrameHandle] = []
        self.now_ms = 0.0

    @property
    def pending(self) -> int:
        return sum(1 for h in self._pending if not h.cancelled)

    def request_frame(self, callback: FrameCallback) -> FrameHandle:
        handle = FrameHandle(callback)
        self._pending.append(handle)
        return handle

    def tick(self, timestamp_ms: float) -> int:
        self.now_ms = timestamp_ms
        due, self._pending = self._pending, []
        fired = 0
        for h in due:
            if not h.cancelled:
                h.fire(timestamp_ms)
                fired += 1
        return fired

    def run_until_idle(self, step_ms: float = 1000.0 / 60.0, max_frames: int = 1_000_000) -> float:
        for _ in range(max_frames):
            if not self.pending:
                return self.now_ms
            self.tick(self.now_ms + step_ms)
        raise RuntimeError("frames still pending after max_frames")

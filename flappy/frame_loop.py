"""
frame_loop.py: Frame timing and the cancellable once-per-refresh callback loop.
"""

from typing import Callable, Dict, Optional

from .constants import FRAME_MS, MAX_FRAME_DELTA_MS


FrameCallback = Callable[[float], None]


class SimulationClock:
    """Turns wall-clock frame timestamps (ms) into a capped, normalized step."""

    def __init__(self, frame_ms: float = FRAME_MS, max_delta_ms: float = MAX_FRAME_DELTA_MS):
        self.frame_ms = frame_ms
        self.max_delta_ms = max_delta_ms
        self.last_time: Optional[float] = None

    def reset(self, now: float):
        self.last_time = now

    def tick(self, now: float) -> float:
        """Returns the step since the previous tick, 1.0 being one 60Hz frame."""
        if self.last_time is None:
            self.last_time = now
            return 0.0

        delta = min(max(now - self.last_time, 0.0), self.max_delta_ms)
        self.last_time = now
        return delta / self.frame_ms


class FrameScheduler:
    """
    A "run this once on the next display refresh" queue.
    The display loop calls pump() once per refresh.
    """

    def __init__(self):
        self._next_handle = 0
        self._pending: Dict[int, FrameCallback] = {}

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def request_frame(self, callback: FrameCallback) -> int:
        self._next_handle += 1
        self._pending[self._next_handle] = callback
        return self._next_handle

    def cancel_frame(self, handle: int):
        """Cancelling an unknown or already-run handle is a no-op."""
        self._pending.pop(handle, None)

    def pump(self, now: float) -> int:
        """
        Runs the callbacks that were pending when the pump began.
        Callbacks requested during the pump wait for the next one.
        """
        ran = 0
        for handle in sorted(self._pending):
            callback = self._pending.pop(handle, None)
            if callback is None:
                continue  # cancelled by an earlier callback
            callback(now)
            ran += 1
        return ran


class RepeatingTask:
    """
    Re-arms a callback every frame until cancelled.
    At most one callback is pending in the scheduler at any time.
    """

    def __init__(self, scheduler: FrameScheduler, callback: FrameCallback):
        self.scheduler = scheduler
        self.callback = callback
        self.armed = False
        self._handle: Optional[int] = None

    def start(self):
        self.cancel()
        self.armed = True
        self._handle = self.scheduler.request_frame(self._run)

    def cancel(self):
        self.armed = False
        if self._handle is not None:
            self.scheduler.cancel_frame(self._handle)
            self._handle = None

    def _run(self, now: float):
        self._handle = None
        if not self.armed:
            return

        self.callback(now)

        # The callback may have cancelled or restarted the task
        if self.armed and self._handle is None:
            self._handle = self.scheduler.request_frame(self._run)

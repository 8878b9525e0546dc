# slideshow/scheduling.py
"""Frame and timer scheduling for viewport behaviours.

The gesture engine never talks to an event loop directly. It asks a scheduler
for animation frames and one-shot timers and keeps the returned handles so
they can be cancelled on teardown.
"""
import asyncio
import heapq
import itertools

FRAME_INTERVAL = 1 / 60


class LoopScheduler:
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop=None, frame_interval=FRAME_INTERVAL):
        self.loop = loop or asyncio.get_running_loop()
        self.frame_interval = frame_interval

    def request_frame(self, callback):
        return self.loop.call_later(self.frame_interval, callback)

    def cancel_frame(self, handle):
        handle.cancel()

    def call_later(self, delay, callback):
        return self.loop.call_later(delay, callback)

    def cancel(self, handle):
        handle.cancel()


class ManualScheduler:
    """Deterministic scheduler driven by an explicit virtual clock.

    Frames queue up until ``run_frame`` is called; timers fire when ``advance``
    moves the clock past their deadline. Used for headless replay of recorded
    gestures and in tests.
    """

    def __init__(self):
        self.now = 0.0
        self._frames = {}
        self._timers = []
        self._cancelled = set()
        self._ids = itertools.count(1)

    @property
    def pending_frames(self):
        return len(self._frames)

    @property
    def pending_timers(self):
        return sum(1 for _, handle, _ in self._timers if handle not in self._cancelled)

    def request_frame(self, callback):
        handle = next(self._ids)
        self._frames[handle] = callback
        return handle

    def cancel_frame(self, handle):
        self._frames.pop(handle, None)

    def run_frame(self):
        """Run every callback requested before this frame started."""
        frames, self._frames = self._frames, {}
        for callback in frames.values():
            callback()
        return len(frames)

    def call_later(self, delay, callback):
        handle = next(self._ids)
        heapq.heappush(self._timers, (self.now + delay, handle, callback))
        return handle

    def cancel(self, handle):
        self._cancelled.add(handle)

    def advance(self, seconds):
        deadline = self.now + seconds
        while self._timers and self._timers[0][0] <= deadline:
            when, handle, callback = heapq.heappop(self._timers)
            if handle in self._cancelled:
                self._cancelled.discard(handle)
                continue
            self.now = when
            callback()
        self.now = deadline

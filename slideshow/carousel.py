# slideshow/carousel.py
import itertools
import random
from dataclasses import dataclass

SWIPE_THRESHOLD = 50
MAX_DOTS = 10
HEART_LIFETIME = 2.0


class Carousel:
    """Wrap-around position over an ordered list of photos."""

    def __init__(self, count, index=0):
        self.count = max(0, count)
        self.index = 0
        self.go_to(index)

    @property
    def position(self):
        """1-based position for display, 0 when empty."""
        return self.index + 1 if self.count else 0

    @property
    def show_dots(self):
        return 1 < self.count <= MAX_DOTS

    @property
    def previous_index(self):
        if not self.count:
            return 0
        return self.index - 1 if self.index > 0 else self.count - 1

    @property
    def next_index(self):
        if not self.count:
            return 0
        return self.index + 1 if self.index < self.count - 1 else 0

    def previous(self):
        self.index = self.previous_index
        return self.index

    def next(self):
        self.index = self.next_index
        return self.index

    def go_to(self, index):
        if self.count:
            self.index = min(max(0, index), self.count - 1)
        return self.index

    def swipe(self, start_x, end_x):
        """Horizontal swipe: leftwards goes forward, rightwards goes back."""
        diff = start_x - end_x
        if abs(diff) > SWIPE_THRESHOLD:
            return self.next() if diff > 0 else self.previous()
        return self.index


@dataclass(frozen=True)
class FloatingHeart:
    id: int
    left: float


class ReactionTray:
    """Hearts floating up from the reaction button, each gone after two seconds."""

    def __init__(self, scheduler, rng=None):
        self.scheduler = scheduler
        self.rng = rng or random.Random()
        self.hearts = []
        self._ids = itertools.count()
        self._timers = {}

    def react(self):
        heart = FloatingHeart(id=next(self._ids), left=self.rng.random() * 60 + 10)
        self.hearts.append(heart)
        self._timers[heart.id] = self.scheduler.call_later(
            HEART_LIFETIME, lambda: self._expire(heart.id)
        )
        return heart

    def _expire(self, heart_id):
        self._timers.pop(heart_id, None)
        self.hearts = [h for h in self.hearts if h.id != heart_id]

    def close(self):
        for handle in self._timers.values():
            self.scheduler.cancel(handle)
        self._timers.clear()

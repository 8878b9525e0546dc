# slideshow/gestures.py
"""Pinch and ctrl+wheel zoom for a single image viewport.

A ``GestureEngine`` owns the contact map, the two-finger session snapshot and
the current transform of one viewport. Pointer and wheel handlers only mutate
that state; the transform reaches the layer at most once per animation frame.
"""
import logging
import math
from dataclasses import dataclass
from typing import NamedTuple, Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_SCALE = 3.0
WHEEL_RESET_DELAY = 0.18
WHEEL_ZOOM_DIVISOR = 200.0
RESET_TRANSITION = 'transform 220ms ease-out'
RESET_DURATION = 0.22
NO_TRANSITION = 'none'


class GestureState:
    IDLE = 'idle'
    ZOOMING = 'zooming'
    RESETTING = 'resetting'


class Point(NamedTuple):
    x: float
    y: float


def clamp(value, low, high):
    return min(high, max(low, value))


def distance(a: Point, b: Point) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


def midpoint(a: Point, b: Point) -> Point:
    return Point((a.x + b.x) / 2, (a.y + b.y) / 2)


@dataclass(frozen=True)
class Transform:
    scale: float = 1.0
    translate_x: float = 0.0
    translate_y: float = 0.0

    def css(self):
        return (
            f'translate3d({self.translate_x}px, {self.translate_y}px, 0) '
            f'scale({self.scale})'
        )

    def clamped(self, width, height, max_scale):
        """Bound scale to [1, max_scale] and keep the content edges on screen."""
        scale = clamp(self.scale, 1.0, max_scale)
        max_x = (scale - 1) * width / 2
        max_y = (scale - 1) * height / 2
        return Transform(
            scale=scale,
            translate_x=clamp(self.translate_x, -max_x, max_x),
            translate_y=clamp(self.translate_y, -max_y, max_y),
        )


IDENTITY = Transform()


@dataclass(frozen=True)
class GestureSession:
    """Snapshot taken when the second contact lands."""
    contacts: tuple
    start_distance: float
    start_midpoint: Point
    start_transform: Transform
    width: float
    height: float


class GestureEngine:
    """Zoom-and-pan behaviour attached to one viewport.

    ``viewport.measure()`` returns ``(width, height)`` or ``None`` when the
    viewport is not laid out. ``layer.apply(transform, transition)`` receives
    the CSS transform string and the transition to use for it.
    """

    def __init__(self, viewport, layer, scheduler, max_scale=DEFAULT_MAX_SCALE):
        if max_scale < 1:
            raise ValueError(f"max_scale must be at least 1, got {max_scale}")
        self.viewport = viewport
        self.layer = layer
        self.scheduler = scheduler
        self.max_scale = float(max_scale)

        self.contacts = {}
        self.session: Optional[GestureSession] = None
        self.transform = IDENTITY
        self.interacting = False
        self.state = GestureState.IDLE

        self._frame = None
        self._wheel_timer = None
        self._settle_timer = None
        self._closed = False

        self.schedule_redraw()

    # Pointer contacts

    def contact_begin(self, contact_id, x, y):
        size = self.viewport.measure()
        if size is None:
            return

        self.contacts[contact_id] = Point(x, y)
        if len(self.contacts) != 2:
            return

        first, second = list(self.contacts.items())[:2]
        width, height = size
        self.session = GestureSession(
            contacts=(first[0], second[0]),
            start_distance=max(1.0, distance(first[1], second[1])),
            start_midpoint=midpoint(first[1], second[1]),
            start_transform=self.transform,
            width=width,
            height=height,
        )
        self._begin_interaction()
        self.schedule_redraw()

    def contact_move(self, contact_id, x, y):
        if contact_id not in self.contacts:
            return
        self.contacts[contact_id] = Point(x, y)

        session = self.session
        if session is None or len(self.contacts) != 2:
            return
        # A leftover pair after the original pair split never re-bases the session.
        if set(self.contacts) != set(session.contacts):
            return

        p1, p2 = (self.contacts[cid] for cid in session.contacts)
        next_distance = max(1.0, distance(p1, p2))
        next_midpoint = midpoint(p1, p2)
        start = session.start_transform

        raw = Transform(
            scale=start.scale * next_distance / session.start_distance,
            translate_x=start.translate_x + (next_midpoint.x - session.start_midpoint.x),
            translate_y=start.translate_y + (next_midpoint.y - session.start_midpoint.y),
        )
        self.transform = raw.clamped(session.width, session.height, self.max_scale)
        self.schedule_redraw()

    def contact_end(self, contact_id):
        self.contacts.pop(contact_id, None)
        if self.interacting and len(self.contacts) < 2:
            self.reset()

    contact_cancel = contact_end

    # Wheel

    def wheel(self, delta_y, modifier_held):
        """Ctrl+wheel zoom. Plain wheel events are left to page scrolling."""
        if not modifier_held or self._closed:
            return False

        size = self.viewport.measure()
        if size is None:
            return True

        self._begin_interaction()
        width, height = size
        raw = Transform(
            scale=self.transform.scale * math.exp(-delta_y / WHEEL_ZOOM_DIVISOR),
            translate_x=self.transform.translate_x,
            translate_y=self.transform.translate_y,
        )
        self.transform = raw.clamped(width, height, self.max_scale)
        self.schedule_redraw()

        if self._wheel_timer is not None:
            self.scheduler.cancel(self._wheel_timer)
        self._wheel_timer = self.scheduler.call_later(WHEEL_RESET_DELAY, self._wheel_idle)
        return True

    def _wheel_idle(self):
        self._wheel_timer = None
        self.reset()

    # Transform lifecycle

    def _begin_interaction(self):
        if self._settle_timer is not None:
            self.scheduler.cancel(self._settle_timer)
            self._settle_timer = None
        self.interacting = True
        self.state = GestureState.ZOOMING

    def reset(self):
        """Drop the session and animate back to the identity transform."""
        self.transform = IDENTITY
        self.interacting = False
        self.session = None
        self.state = GestureState.RESETTING
        self.schedule_redraw()

    def schedule_redraw(self):
        if self._frame is not None or self._closed:
            return
        self._frame = self.scheduler.request_frame(self.redraw)

    def redraw(self):
        self._frame = None
        transition = NO_TRANSITION if self.interacting else RESET_TRANSITION
        self.layer.apply(self.transform.css(), transition)

        if self.state == GestureState.RESETTING and self._settle_timer is None:
            self._settle_timer = self.scheduler.call_later(RESET_DURATION, self._settled)

    def _settled(self):
        self._settle_timer = None
        if self.state == GestureState.RESETTING:
            self.state = GestureState.IDLE

    def close(self):
        """Cancel the pending frame and timers. Safe to call twice."""
        if self._frame is not None:
            self.scheduler.cancel_frame(self._frame)
            self._frame = None
        for name in ('_wheel_timer', '_settle_timer'):
            handle = getattr(self, name)
            if handle is not None:
                self.scheduler.cancel(handle)
                setattr(self, name, None)
        if not self._closed:
            logger.debug("Gesture engine closed with %d contacts", len(self.contacts))
        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

"""
Sweep events for Fortune's algorithm.

Site events are the input points themselves, consumed in (y, x) order.
Circle events predict the point where a beach line arc shrinks to zero width;
they live in a heap and are invalidated lazily: a stale event stays in the heap
with its ``live`` flag cleared and is discarded when it reaches the top.
"""

import heapq
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .geometry import Point


@dataclass(frozen=True)
class Site:
    """An input point owning exactly one cell."""
    x: float
    y: float
    identifier: int
    index: int = -1  # position in the caller's input, -1 for keyed input

    @property
    def point(self) -> Point:
        return Point(self.x, self.y)


@dataclass(eq=False)
class CircleEvent:
    """Predicted disappearance of the beach section ``section``."""
    x: float
    y: float  # sweep position that triggers the event (bottom of the circle)
    y_center: float
    section: int  # beach line handle of the vanishing arc
    site: Site
    sequence: int = 0
    live: bool = True

    @property
    def center(self) -> Point:
        return Point(self.x, self.y_center)


def site_order_key(site: Site) -> Tuple[float, float]:
    """Sites are processed top to bottom, left to right on ties."""
    return site.y, site.x


def circle_order_key(event: CircleEvent) -> Tuple[float, float, int]:
    """Circle events by trigger y, then x, then creation order."""
    return event.y, event.x, event.sequence


def site_precedes_circle(site: Site, event: CircleEvent) -> bool:
    """
    Return True if the site event has to be processed before the circle event.

    A circle event at exactly the same coordinates as the site wins the tie.
    """
    return site.y < event.y or (site.y == event.y and site.x < event.x)


def compute_circle_event(left: Site, middle: Site, right: Site, sweep_y: float,
                         collinear_tolerance: float = 1e-12,
                         epsilon: float = 1e-9) -> Optional[Tuple[float, float, float]]:
    """
    Compute the circle event for three consecutive beach sections.

    The circumcircle of the three sites is computed with the origin moved to
    the middle site. Its bottom-most point is the sweep position at which the
    middle arc vanishes and its center becomes a diagram vertex.

    Args:
        left: Site of the left beach section
        middle: Site of the section that might vanish
        right: Site of the right beach section
        sweep_y: Current sweep position
        collinear_tolerance: Relative tolerance on the sine of the angle
            between the two edge vectors
        epsilon: Tolerance in coordinate units for rejecting events above
            the sweep

    Returns:
        Tuple of (x, trigger y, center y) or None if the arc does not converge
    """
    # same site on both sides, the breakpoints diverge
    if left is right or (left.x == right.x and left.y == right.y):
        return None

    bx = middle.x
    by = middle.y
    ax = left.x - bx
    ay = left.y - by
    cx = right.x - bx
    cy = right.y - by

    ha = ax * ax + ay * ay
    hc = cx * cx + cy * cy

    # l -> m -> r clockwise or collinear: the middle arc does not collapse.
    # d has the reverse sign of the orientation.
    d = 2 * (ax * cy - ay * cx)
    tolerance = 2 * collinear_tolerance * math.sqrt(ha) * math.sqrt(hc)
    if d >= -tolerance:
        return None

    x = (cy * ha - ay * hc) / d
    y = (ax * hc - cx * ha) / d
    if not (math.isfinite(x) and math.isfinite(y)):
        return None

    y_center = y + by
    trigger = y_center + math.sqrt(x * x + y * y)

    # events above the sweep line are already behind us
    if trigger < sweep_y - epsilon:
        return None

    return x + bx, trigger, y_center


class CircleEventQueue:
    """Priority queue of circle events with lazy invalidation."""

    def __init__(self):
        self._heap: List[Tuple[float, float, int, CircleEvent]] = []
        self._sequence = 0
        self._live = 0

    def __len__(self) -> int:
        return self._live

    def push(self, event: CircleEvent) -> CircleEvent:
        event.sequence = self._sequence
        self._sequence += 1
        heapq.heappush(self._heap, (*circle_order_key(event), event))
        self._live += 1
        return event

    def invalidate(self, event: CircleEvent) -> None:
        """Mark an event stale; it is dropped once it reaches the top."""
        if event.live:
            event.live = False
            self._live -= 1

    def peek(self) -> Optional[CircleEvent]:
        """Return the earliest live event without removing it."""
        heap = self._heap
        while heap and not heap[0][3].live:
            heapq.heappop(heap)
        return heap[0][3] if heap else None

    def pop(self) -> Optional[CircleEvent]:
        """Remove and return the earliest live event."""
        event = self.peek()
        if event is not None:
            heapq.heappop(self._heap)
            event.live = False
            self._live -= 1
        return event

"""Tests for site and circle events."""

import math

import pytest

from py_voronoi.core.events import (
    CircleEvent, CircleEventQueue, Site, circle_order_key, compute_circle_event,
    site_order_key, site_precedes_circle
)


def make_event(x, y, section=0):
    return CircleEvent(x=x, y=y, y_center=y - 1, section=section, site=Site(x, y - 1, section))


class TestSiteOrdering:
    """Test site event ordering."""

    def test_top_to_bottom_left_to_right(self):
        """Sites are ordered by y, then x."""
        sites = [Site(5, 1, 0), Site(0, 1, 1), Site(3, 0, 2), Site(-1, 2, 3)]
        ordered = sorted(sites, key=site_order_key)
        assert [(site.x, site.y) for site in ordered] == [(3, 0), (0, 1), (5, 1), (-1, 2)]

    def test_site_point(self):
        assert Site(1.5, 2.5, 0).point == (1.5, 2.5)


class TestSiteBeforeCircle:
    """Test the site/circle precedence rule."""

    def test_earlier_y_wins(self):
        assert site_precedes_circle(Site(10, 0.5, 0), make_event(0, 1))
        assert not site_precedes_circle(Site(0, 1.5, 0), make_event(10, 1))

    def test_same_y_smaller_x_wins(self):
        assert site_precedes_circle(Site(0, 1, 0), make_event(1, 1))
        assert not site_precedes_circle(Site(2, 1, 0), make_event(1, 1))

    def test_exact_tie_goes_to_circle(self):
        """A circle event at the same coordinates is processed first."""
        assert not site_precedes_circle(Site(1, 1, 0), make_event(1, 1))


class TestComputeCircleEvent:
    """Test circle event prediction."""

    def test_converging_triple(self):
        """Circle through (2,0), (1,1), (0,0) has center (1,0) and radius 1."""
        left, middle, right = Site(2, 0, 0), Site(1, 1, 1), Site(0, 0, 2)
        x, trigger, y_center = compute_circle_event(left, middle, right, sweep_y=1.0)
        assert x == pytest.approx(1.0)
        assert y_center == pytest.approx(0.0)
        assert trigger == pytest.approx(1.0)

    @pytest.mark.parametrize("scale", [1.0, 1e-6, 1e6])
    def test_converging_triple_at_any_scale(self, scale):
        """A right angle at the middle site is never mistaken for a collinear triple."""
        left = Site(0, 0, 0)
        middle = Site(0.5 * scale, -0.5 * scale, 1)
        right = Site(scale, 0, 2)
        event = compute_circle_event(left, middle, right, sweep_y=-1.0)
        assert event == pytest.approx((0.5 * scale, 0.5 * scale, 0.0), rel=1e-9, abs=1e-9 * scale)

    def test_diverging_triple(self):
        """Clockwise triples do not collapse."""
        left, middle, right = Site(0, 0, 0), Site(1, 1, 1), Site(2, 0, 2)
        assert compute_circle_event(left, middle, right, sweep_y=1.0) is None

    @pytest.mark.parametrize("points", [
        [(0, 0), (5, 0), (10, 0)],
        [(0, 0), (1, 1), (2, 2)],
        [(10, 0), (5, 5), (0, 10)],
        [(1e6, 1e6), (1e6 + 1, 1e6 + 1), (1e6 + 2, 1e6 + 2)],
    ])
    def test_collinear_triples(self, points):
        """Collinear (or numerically collinear) sites never produce an event."""
        left, middle, right = [Site(x, y, i) for i, (x, y) in enumerate(points)]
        assert compute_circle_event(left, middle, right, sweep_y=0.0) is None
        assert compute_circle_event(right, middle, left, sweep_y=0.0) is None

    def test_same_outer_site(self):
        """Two sections of the same site cannot converge."""
        outer = Site(0, 0, 0)
        assert compute_circle_event(outer, Site(1, 1, 1), outer, sweep_y=1.0) is None

    def test_event_above_sweep_rejected(self):
        """Events already passed by the sweep are discarded."""
        left, middle, right = Site(2, 0, 0), Site(1, 1, 1), Site(0, 0, 2)
        assert compute_circle_event(left, middle, right, sweep_y=1.5) is None
        assert compute_circle_event(left, middle, right, sweep_y=1.0 + 1e-12) is not None

    def test_result_is_finite(self):
        """Nearly collinear but converging sites give finite values."""
        left, middle, right = Site(10, 0, 0), Site(5, 1e-3, 1), Site(0, 0, 2)
        result = compute_circle_event(left, middle, right, sweep_y=0.0)
        assert result is not None
        assert all(math.isfinite(value) for value in result)


class TestCircleEventQueue:
    """Test the lazily invalidated priority queue."""

    def test_order(self):
        """Events pop by trigger y, then x."""
        queue = CircleEventQueue()
        queue.push(make_event(0, 3))
        queue.push(make_event(5, 1))
        queue.push(make_event(1, 1))
        popped = [(event.x, event.y) for event in iter(queue.pop, None)]
        assert popped == [(1, 1), (5, 1), (0, 3)]

    def test_ties_by_creation(self):
        """Identical coordinates keep creation order."""
        queue = CircleEventQueue()
        first = queue.push(make_event(1, 1, section=7))
        second = queue.push(make_event(1, 1, section=3))
        assert circle_order_key(first) < circle_order_key(second)
        assert queue.pop() is first
        assert queue.pop() is second

    def test_invalidated_events_are_skipped(self):
        """Stale events stay in the heap but are never returned."""
        queue = CircleEventQueue()
        stale = queue.push(make_event(0, 1))
        live = queue.push(make_event(0, 2))
        queue.invalidate(stale)

        assert len(queue) == 1
        assert not stale.live
        assert queue.peek() is live
        assert queue.pop() is live
        assert queue.pop() is None
        assert len(queue) == 0

    def test_invalidate_twice(self):
        """Invalidating an event twice keeps the live count right."""
        queue = CircleEventQueue()
        event = queue.push(make_event(0, 1))
        queue.invalidate(event)
        queue.invalidate(event)
        assert len(queue) == 0
        assert queue.peek() is None

    def test_popped_event_is_no_longer_live(self):
        queue = CircleEventQueue()
        event = queue.push(make_event(0, 1))
        assert queue.pop() is event
        assert not event.live
        queue.invalidate(event)
        assert len(queue) == 0

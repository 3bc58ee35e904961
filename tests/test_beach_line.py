"""Tests for the beach line arena."""

import math

import pytest

from py_voronoi.core.beach_line import BeachLine
from py_voronoi.core.events import Site


def site_coordinates(beach_line):
    return [(site.x, site.y) for site in beach_line.sites()]


class TestBreakPoints:
    """Test break point geometry."""

    def test_outer_break_points(self):
        """The left-most and right-most arcs are unbounded."""
        beach_line = BeachLine()
        handle = beach_line.insert_after(None, Site(0, 0, 0))
        assert beach_line.left_break_point(handle, 1.0) == -math.inf
        assert beach_line.right_break_point(handle, 1.0) == math.inf

    def test_site_on_directrix(self):
        """An arc of a site on the sweep line is a vertical ray."""
        beach_line = BeachLine()
        handle = beach_line.insert_after(None, Site(3, 0, 0))
        assert beach_line.right_break_point(handle, 0.0) == 3

    def test_same_y_break_point_is_midway(self):
        """Sites sharing y meet halfway between them."""
        beach_line = BeachLine()
        left = beach_line.insert_after(None, Site(0, 0, 0))
        right = beach_line.insert_after(left, Site(4, 0, 1))
        assert beach_line.left_break_point(right, 2.0) == 2.0
        assert beach_line.right_break_point(left, 2.0) == 2.0

    def test_break_point_is_equidistant(self):
        """The break point is as far from both sites as from the sweep line."""
        beach_line = BeachLine()
        left_site = Site(0, 0, 0)
        right_site = Site(3, 1, 1)
        left = beach_line.insert_after(None, left_site)
        right = beach_line.insert_after(left, right_site)
        directrix = 4.0

        x = beach_line.left_break_point(right, directrix)
        # point of the right parabola above x
        y = ((x - right_site.x) ** 2 + right_site.y ** 2 - directrix ** 2) / (2 * (right_site.y - directrix))
        to_left = math.hypot(x - left_site.x, y - left_site.y)
        to_right = math.hypot(x - right_site.x, y - right_site.y)
        assert to_left == pytest.approx(to_right)
        assert to_right == pytest.approx(directrix - y)


class TestInsertion:
    """Test arc insertion."""

    def test_empty_beach_line(self):
        beach_line = BeachLine()
        assert beach_line.locate(0.0, 0.0) == (None, None)
        assert len(beach_line) == 0

    def test_first_site(self):
        """The first site becomes the only section."""
        beach_line = BeachLine()
        new, left, right = beach_line.insert_around_arc_above(Site(1, 1, 0))
        assert (left, right) == (None, None)
        assert list(beach_line) == [new]

    def test_split(self):
        """A site below an arc splits it in two."""
        beach_line = BeachLine()
        first, _, _ = beach_line.insert_around_arc_above(Site(0, 0, 0))
        new, left, right = beach_line.insert_around_arc_above(Site(0, 5, 1))

        assert left == first
        assert right not in (first, new)
        assert beach_line.section(right).site is beach_line.section(first).site
        assert site_coordinates(beach_line) == [(0, 0), (0, 5), (0, 0)]
        assert beach_line.left_of(new) == left
        assert beach_line.right_of(new) == right

    def test_same_row(self):
        """Sites sharing the first row are appended to the right."""
        beach_line = BeachLine()
        first, _, _ = beach_line.insert_around_arc_above(Site(0, 0, 0))
        new, left, right = beach_line.insert_around_arc_above(Site(5, 0, 1))
        assert (left, right) == (first, None)
        assert site_coordinates(beach_line) == [(0, 0), (5, 0)]

    def test_exactly_on_break_point(self):
        """A site right below a break point lands between the two arcs."""
        beach_line = BeachLine()
        first, _, _ = beach_line.insert_around_arc_above(Site(0, 0, 0))
        second, _, _ = beach_line.insert_around_arc_above(Site(2, 0, 1))
        new, left, right = beach_line.insert_around_arc_above(Site(1, 1, 2))
        assert (left, right) == (first, second)
        assert site_coordinates(beach_line) == [(0, 0), (1, 1), (2, 0)]

    def test_locate_walks_both_ways(self):
        """Locating works regardless of the last touched section."""
        beach_line = BeachLine()
        for identifier, x in enumerate([0, 10, 20, 30]):
            beach_line.insert_around_arc_above(Site(x, 0, identifier))
        handles = list(beach_line)

        # last insertion was the right-most arc, walk left
        assert beach_line.locate(1.0, 1.0) == (handles[0], handles[0])
        assert beach_line.locate(15.0, 1.0) == (handles[1], handles[2])

        # splitting the left-most arc moves the search start to the left
        beach_line.insert_around_arc_above(Site(1, 2, 4))
        assert beach_line.locate(29.0, 2.0) == (handles[3], handles[3])


class TestRemoval:
    """Test arc removal and slot reuse."""

    def test_remove_relinks_neighbours(self):
        beach_line = BeachLine()
        first, _, _ = beach_line.insert_around_arc_above(Site(0, 0, 0))
        middle, left, right = beach_line.insert_around_arc_above(Site(0, 5, 1))

        removed = beach_line.remove(middle)

        assert removed.site.identifier == 1
        assert middle not in beach_line
        assert len(beach_line) == 2
        assert beach_line.right_of(left) == right
        assert beach_line.left_of(right) == left
        with pytest.raises(KeyError):
            beach_line.section(middle)

    def test_remove_head(self):
        beach_line = BeachLine()
        first, _, _ = beach_line.insert_around_arc_above(Site(0, 0, 0))
        second, _, _ = beach_line.insert_around_arc_above(Site(5, 0, 1))
        beach_line.remove(first)
        assert list(beach_line) == [second]
        assert beach_line.left_of(second) is None

    def test_free_slots_are_reused(self):
        """Removed handles are handed out again instead of growing the arena."""
        beach_line = BeachLine()
        beach_line.insert_around_arc_above(Site(0, 0, 0))
        middle, left, _ = beach_line.insert_around_arc_above(Site(0, 5, 1))
        beach_line.remove(middle)

        reused = beach_line.insert_after(left, Site(1, 6, 2))
        assert reused == middle
        assert beach_line.section(reused).site.identifier == 2
        assert beach_line.section(reused).circle_event is None

"""Tests for geometry primitives."""

import math

import pytest

from py_voronoi.core.geometry import (
    Point, Rectangle, equal_with_epsilon, greater_than_with_epsilon, less_than_with_epsilon
)


class TestPoint:
    """Test point arithmetic."""

    def test_distance(self):
        """Test Euclidean distance."""
        assert Point(0, 0).distance_to(Point(3, 4)) == 5.0
        assert Point(1, 1).squared_distance_to((4, 5)) == 25.0

    def test_midpoint(self):
        """Test midpoint between two points."""
        assert Point(0, 0).midpoint(Point(10, -4)) == Point(5, -2)

    def test_is_close(self):
        """Test tolerant equality."""
        assert Point(1.0, 2.0).is_close(Point(1.0 + 1e-12, 2.0))
        assert not Point(1.0, 2.0).is_close(Point(1.001, 2.0))

    def test_tuple_behaviour(self):
        """Points unpack and compare like tuples."""
        x, y = Point(3.0, 7.0)
        assert (x, y) == (3.0, 7.0)
        assert Point(3.0, 7.0) == (3.0, 7.0)


class TestEpsilonComparisons:
    """Test tolerant comparisons."""

    def test_equal(self):
        assert equal_with_epsilon(1.0, 1.0 + 1e-10)
        assert not equal_with_epsilon(1.0, 1.0 + 1e-8)

    def test_greater_and_less(self):
        assert greater_than_with_epsilon(1.0 + 1e-8, 1.0)
        assert not greater_than_with_epsilon(1.0 + 1e-10, 1.0)
        assert less_than_with_epsilon(1.0, 1.0 + 1e-8)
        assert not less_than_with_epsilon(1.0, 1.0 + 1e-10)


class TestRectangle:
    """Test bounding box behaviour."""

    def test_dimensions(self):
        """Test width, height and area."""
        box = Rectangle(-5, -5, 15, 5)
        assert box.width == 20
        assert box.height == 10
        assert box.area == 200

    def test_from_size(self):
        """Test origin anchored rectangles."""
        assert Rectangle.from_size(10, 8) == Rectangle(0.0, 0.0, 10.0, 8.0)

    def test_from_points(self):
        """Test the minimal enclosing rectangle."""
        box = Rectangle.from_points([(1, 5), (-2, 3), (4, -1)])
        assert box == Rectangle(-2.0, -1.0, 4.0, 5.0)

    def test_from_no_points(self):
        with pytest.raises(ValueError):
            Rectangle.from_points([])

    def test_corners_walk_order(self):
        """Corners follow the left, bottom, right, top walk."""
        box = Rectangle(0, 0, 10, 8)
        assert box.corners() == [Point(0, 0), Point(0, 8), Point(10, 8), Point(10, 0)]

    def test_contains(self):
        """Boundary points are inside."""
        box = Rectangle(0, 0, 10, 10)
        assert box.contains((0, 0))
        assert box.contains((10, 5))
        assert not box.contains((10.1, 5))
        assert box.contains((10 + 1e-10, 5), epsilon=1e-9)

    @pytest.mark.parametrize("bounds", [
        (0, 0, 0, 10),
        (0, 0, 10, 0),
        (5, 0, 1, 10),
        (0, 0, math.inf, 10),
        (0, math.nan, 10, 10),
    ])
    def test_validate_rejects_degenerate_boxes(self, bounds):
        """Degenerate or non-finite boxes are refused."""
        with pytest.raises(ValueError):
            Rectangle(*bounds).validate()

    def test_validate_accepts_box(self):
        Rectangle(-1, -1, 1, 1).validate()

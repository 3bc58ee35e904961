"""Planar geometry primitives used by the sweep line."""

import math
from dataclasses import dataclass
from typing import Iterable, List, NamedTuple

import numpy as np

# Default tolerance for coordinate comparisons
EPSILON = 1e-9


def equal_with_epsilon(a: float, b: float, epsilon: float = EPSILON) -> bool:
    """Return True if a equals b within epsilon."""
    return abs(a - b) < epsilon


def greater_than_with_epsilon(a: float, b: float, epsilon: float = EPSILON) -> bool:
    """Return True if a is greater than b by more than epsilon."""
    return a - b > epsilon


def less_than_with_epsilon(a: float, b: float, epsilon: float = EPSILON) -> bool:
    """Return True if a is less than b by more than epsilon."""
    return b - a > epsilon


class Point(NamedTuple):
    """Immutable 2D point (or vector)."""
    x: float
    y: float

    def squared_distance_to(self, other: "Point") -> float:
        dx = self.x - other[0]
        dy = self.y - other[1]
        return dx * dx + dy * dy

    def distance_to(self, other: "Point") -> float:
        return math.sqrt(self.squared_distance_to(other))

    def midpoint(self, other: "Point") -> "Point":
        return Point((self.x + other[0]) / 2, (self.y + other[1]) / 2)

    def is_close(self, other: "Point", epsilon: float = EPSILON) -> bool:
        """Check whether both coordinates agree within epsilon."""
        return (equal_with_epsilon(self.x, other[0], epsilon) and
                equal_with_epsilon(self.y, other[1], epsilon))


@dataclass(frozen=True)
class Rectangle:
    """
    Axis-aligned rectangle.

    The sweep runs towards increasing y, so ``min_y`` is the side the sweep
    starts from ("top" in screen coordinates) and ``max_y`` the side it ends
    at ("bottom").
    """
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def from_size(cls, width: float, height: float) -> "Rectangle":
        """Rectangle anchored at the origin."""
        return cls(0.0, 0.0, float(width), float(height))

    @classmethod
    def from_points(cls, points: Iterable) -> "Rectangle":
        """Smallest rectangle containing all points."""
        coordinates = np.asarray(list(points), dtype=float)
        if coordinates.size == 0:
            raise ValueError("Cannot build a rectangle from an empty point set")
        lower = coordinates.min(axis=0)
        upper = coordinates.max(axis=0)
        return cls(float(lower[0]), float(lower[1]), float(upper[0]), float(upper[1]))

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def area(self) -> float:
        return self.width * self.height

    def corners(self) -> List[Point]:
        """
        Corners in the order the cell closing walk visits them.

        The walk runs down the left side, along the bottom (max y), up the
        right side and back along the top (min y).
        """
        return [
            Point(self.min_x, self.min_y),
            Point(self.min_x, self.max_y),
            Point(self.max_x, self.max_y),
            Point(self.max_x, self.min_y),
        ]

    def contains(self, point, epsilon: float = 0.0) -> bool:
        """Check whether a point lies inside or on the boundary."""
        x, y = point[0], point[1]
        return (self.min_x - epsilon <= x <= self.max_x + epsilon and
                self.min_y - epsilon <= y <= self.max_y + epsilon)

    def validate(self) -> None:
        """
        Ensure the rectangle can serve as a bounding box.

        Raises:
            ValueError: If a bound is not finite or the rectangle has no area
        """
        bounds = (self.min_x, self.min_y, self.max_x, self.max_y)
        if not all(math.isfinite(value) for value in bounds):
            raise ValueError(f"Bounding box has non-finite bounds: {bounds}")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Bounding box must have positive width and height, "
                f"got width={self.width}, height={self.height}"
            )

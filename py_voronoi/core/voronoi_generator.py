"""
Voronoi diagram generation with Fortune's sweep-line algorithm.

A sweep line moves through increasing y. Site events insert new arcs into the
beach line, circle events remove arcs that shrank to zero width and create
diagram vertices. The edges traced by the break points between arcs become
the edges of the diagram, which is clipped and closed against the bounding
box once all events are consumed.

Fortune, Steven. "A sweepline algorithm for Voronoi diagrams."
Algorithmica 2.1-4 (1987): 153.
"""

import math
from collections import deque
from dataclasses import dataclass
from typing import Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np
import structlog

from .beach_line import BeachLine
from .diagram import Edge, VoronoiDiagram
from .events import (
    CircleEvent, CircleEventQueue, Site, compute_circle_event, site_order_key,
    site_precedes_circle
)
from .geometry import EPSILON, Rectangle
from .post_processing import finalize

logger = structlog.get_logger()


@dataclass
class VoronoiOptions:
    """Numerical options of the sweep."""
    epsilon: float = EPSILON  # coordinate tolerance relative to the bounding box size
    collinear_tolerance: float = 1e-12  # relative tolerance for collinear triples
    verify: bool = True  # check diagram invariants after post-processing

    @classmethod
    def from_settings(cls, settings=None) -> "VoronoiOptions":
        """Build options from application settings."""
        if settings is None:
            from ..config import settings
        return cls(epsilon=settings.epsilon,
                   collinear_tolerance=settings.collinear_tolerance)

    def validate(self) -> None:
        if not (self.epsilon > 0 and math.isfinite(self.epsilon)):
            raise ValueError(f"epsilon must be a positive number, got {self.epsilon}")
        if not (self.collinear_tolerance >= 0 and math.isfinite(self.collinear_tolerance)):
            raise ValueError(
                f"collinear_tolerance must be non-negative, got {self.collinear_tolerance}"
            )


class PendingSite(NamedTuple):
    """Input point waiting for its site event."""
    x: float
    y: float
    index: int  # input position, -1 for keyed input
    key: Optional[int]  # caller supplied identifier


SiteInput = Union[Sequence, np.ndarray, Mapping[int, Sequence]]


def _as_rectangle(bounding_box) -> Rectangle:
    if isinstance(bounding_box, Rectangle):
        rectangle = bounding_box
    else:
        values = [float(value) for value in bounding_box]
        if len(values) != 4:
            raise ValueError(
                f"Bounding box needs (min_x, min_y, max_x, max_y), got {bounding_box!r}"
            )
        rectangle = Rectangle(*values)
    rectangle.validate()
    return rectangle


def _as_coordinates(points) -> np.ndarray:
    coordinates = np.asarray(points, dtype=float)
    if coordinates.size == 0:
        return np.empty((0, 2))
    if coordinates.ndim != 2 or coordinates.shape[1] != 2:
        raise ValueError(f"Sites must be an (n, 2) collection of points, got shape {coordinates.shape}")
    if not np.all(np.isfinite(coordinates)):
        bad = int(np.argmax(~np.all(np.isfinite(coordinates), axis=1)))
        raise ValueError(f"Site {bad} has non-finite coordinates: {tuple(coordinates[bad])}")
    return coordinates


def prepare_sites(sites: SiteInput, bounding_box: Rectangle) -> List[PendingSite]:
    """
    Validate input points and order them for the sweep.

    Args:
        sites: Sequence of points, (n, 2) array or mapping of identifier to point
        bounding_box: Box every site must lie in

    Returns:
        Pending sites sorted by (y, x), input order kept for ties

    Raises:
        ValueError: On malformed or non-finite points, or points outside the box
    """
    if isinstance(sites, Mapping):
        keys = list(sites.keys())
        for key in keys:
            if isinstance(key, bool) or not isinstance(key, (int, np.integer)):
                raise ValueError(f"Site identifiers must be integers, got {key!r}")
        coordinates = _as_coordinates([sites[key] for key in keys])
        indices = [-1] * len(keys)
        keys = [int(key) for key in keys]
    else:
        coordinates = _as_coordinates(sites)
        indices = list(range(len(coordinates)))
        keys = [None] * len(coordinates)

    if len(coordinates):
        box = bounding_box
        inside = ((coordinates[:, 0] >= box.min_x) & (coordinates[:, 0] <= box.max_x) &
                  (coordinates[:, 1] >= box.min_y) & (coordinates[:, 1] <= box.max_y))
        if not np.all(inside):
            bad = int(np.argmin(inside))
            label = keys[bad] if keys[bad] is not None else bad
            raise ValueError(
                f"Site {label} at {tuple(coordinates[bad])} lies outside the bounding box {box}"
            )

    pending = [
        PendingSite(float(x), float(y), index, key)
        for (x, y), index, key in zip(coordinates.tolist(), indices, keys)
    ]
    pending.sort(key=site_order_key)
    return pending


class VoronoiGenerator:
    """
    Single-use driver of the sweep.

    Owns the beach line, the circle event queue and the diagram under
    construction; nothing is shared between two generators.
    """

    def __init__(self, sites: SiteInput, bounding_box, options: Optional[VoronoiOptions] = None):
        self.options = options or VoronoiOptions()
        self.options.validate()
        self.bounding_box = _as_rectangle(bounding_box)
        self.pending = prepare_sites(sites, self.bounding_box)
        # working tolerance in coordinate units
        self.epsilon = self.options.epsilon * max(self.bounding_box.width, self.bounding_box.height)

        self.diagram = VoronoiDiagram(self.bounding_box)
        self.beach_line = BeachLine(self.epsilon)
        self.circle_events = CircleEventQueue()
        # edge traced by the break point on the left of each beach section
        self.edges: Dict[int, Edge] = {}
        self.sweep_y = -math.inf
        self.duplicates = 0
        self._next_identifier = 0

    def generate(self) -> VoronoiDiagram:
        """Run the sweep and post-process the diagram."""
        logger.info("Generating Voronoi diagram",
                    sites=len(self.pending), bounding_box=self.bounding_box)

        pending = deque(self.pending)
        previous: Optional[PendingSite] = None
        processed_circles = 0

        while True:
            circle = self.circle_events.peek()
            if circle is not None and not self._owns(circle):
                self.circle_events.invalidate(circle)
                continue

            if pending and (circle is None or site_precedes_circle(pending[0], circle)):
                candidate = pending.popleft()
                if previous is not None and candidate.x == previous.x and candidate.y == previous.y:
                    self._skip_duplicate(candidate, previous)
                    continue
                self._process_site(candidate)
                previous = candidate
            elif circle is not None:
                self.circle_events.pop()
                self._process_circle(circle)
                processed_circles += 1
            else:
                break

        finalize(self.diagram, self.epsilon)
        if self.options.verify:
            self.diagram.check_integrity()

        logger.info("Voronoi diagram generated",
                    cells=len(self.diagram),
                    edges=len(self.diagram.edges),
                    vertices=len(self.diagram.vertices),
                    circle_events=processed_circles,
                    duplicates=self.duplicates)
        return self.diagram

    def _owns(self, event: CircleEvent) -> bool:
        """Check that the event's section still exists and still points at it."""
        return (event.section in self.beach_line and
                self.beach_line.section(event.section).circle_event is event)

    def _skip_duplicate(self, duplicate: PendingSite, kept: PendingSite) -> None:
        self.duplicates += 1
        if duplicate.index >= 0:
            self.diagram.input_cells[duplicate.index] = self.diagram.input_cells[kept.index]
        elif duplicate.key is not None:
            self.diagram.aliases[duplicate.key] = kept.key

    def _make_site(self, pending: PendingSite) -> Site:
        if pending.key is not None:
            identifier = pending.key
        else:
            identifier = self._next_identifier
            self._next_identifier += 1
        return Site(pending.x, pending.y, identifier, pending.index)

    def _process_site(self, pending: PendingSite) -> None:
        site = self._make_site(pending)
        self.sweep_y = site.y
        diagram = self.diagram
        beach_line = self.beach_line

        diagram.create_cell(site)
        new, left, right = beach_line.insert_around_arc_above(site)

        # first section on the beach line
        if left is None:
            return

        left_site = beach_line.section(left).site

        # new section is the right-most one, only possible while every
        # section so far sits on the same y
        if right is None:
            self.edges[new] = diagram.create_edge(left_site, site)
            return

        right_site = beach_line.section(right).site

        # new section split an existing one
        if left_site is right_site:
            self._detach_circle_event(left)
            edge = diagram.create_edge(left_site, site)
            self.edges[new] = edge
            self.edges[right] = edge
            self._attach_circle_event(left)
            self._attach_circle_event(right)
            return

        # new section falls exactly on the break point between two sections:
        # that transition disappears at the circumcenter of the three sites
        self._detach_circle_event(left)
        self._detach_circle_event(right)
        vertex = diagram.create_vertex(*self._circumcenter(left_site, site, right_site))
        self.edges[right].set_start_point(diagram.cell_of(left_site), diagram.cell_of(right_site), vertex)
        self.edges[new] = diagram.create_edge(left_site, site, None, vertex)
        self.edges[right] = diagram.create_edge(site, right_site, None, vertex)
        self._attach_circle_event(left)
        self._attach_circle_event(right)

    def _circumcenter(self, left: Site, middle: Site, right: Site) -> Tuple[float, float]:
        ax, ay = left.x, left.y
        bx = middle.x - ax
        by = middle.y - ay
        cx = right.x - ax
        cy = right.y - ay
        d = 2 * (bx * cy - by * cx)
        if d == 0.0:
            # break point on the beach line right above the new site
            focus = left if left.y != middle.y else right
            dx = middle.x - focus.x
            return middle.x, (dx * dx + focus.y * focus.y - middle.y * middle.y) / (2 * (focus.y - middle.y))
        hb = bx * bx + by * by
        hc = cx * cx + cy * cy
        return (cy * hb - by * hc) / d + ax, (bx * hc - cx * hb) / d + ay

    def _process_circle(self, event: CircleEvent) -> None:
        self.sweep_y = event.y
        diagram = self.diagram
        beach_line = self.beach_line
        epsilon = self.epsilon

        x = event.x
        y = event.y_center
        vertex = diagram.create_vertex(x, y)

        def collapses_here(handle: Optional[int]) -> bool:
            circle = beach_line.section(handle).circle_event if handle is not None else None
            return (circle is not None and
                    abs(x - circle.x) < epsilon and
                    abs(y - circle.y_center) < epsilon)

        # (site, edge on the left) of every section involved, left to right
        section = event.section
        previous = beach_line.left_of(section)
        following = beach_line.right_of(section)
        transitions = deque([self._detach_section(section)])

        # more than two edges may meet at this vertex when sites are
        # co-circular, collect every section collapsing here
        left = previous
        while collapses_here(left):
            previous = beach_line.left_of(left)
            transitions.appendleft(self._detach_section(left))
            left = previous

        right = following
        while collapses_here(right):
            following = beach_line.right_of(right)
            transitions.append(self._detach_section(right))
            right = following

        if left is None or right is None:
            raise RuntimeError(f"Circle event {event} collapsed an outermost beach section")

        # the surviving neighbours bound the sequence, their circle events
        # are recomputed below
        self._detach_circle_event(left)
        self._detach_circle_event(right)
        transitions.appendleft((beach_line.section(left).site, self.edges.get(left)))
        transitions.append((beach_line.section(right).site, self.edges[right]))

        for (left_site, _), (right_site, edge) in zip(list(transitions)[:-1], list(transitions)[1:]):
            edge.set_start_point(diagram.cell_of(left_site), diagram.cell_of(right_site), vertex)

        left_site = transitions[0][0]
        right_site = transitions[-1][0]
        self.edges[right] = diagram.create_edge(left_site, right_site, None, vertex)

        self._attach_circle_event(left)
        self._attach_circle_event(right)

    def _detach_section(self, handle: int) -> Tuple[Site, Edge]:
        """Remove a collapsed section, returning its site and left edge."""
        self._detach_circle_event(handle)
        section = self.beach_line.remove(handle)
        return section.site, self.edges.pop(handle)

    def _detach_circle_event(self, handle: int) -> None:
        section = self.beach_line.section(handle)
        if section.circle_event is not None:
            self.circle_events.invalidate(section.circle_event)
            section.circle_event = None

    def _attach_circle_event(self, handle: int) -> None:
        """Schedule the collapse of a section if its neighbours converge."""
        beach_line = self.beach_line
        left = beach_line.left_of(handle)
        right = beach_line.right_of(handle)
        if left is None or right is None:
            return

        section = beach_line.section(handle)
        prediction = self.try_compute_circle_event(
            beach_line.section(left).site, section.site, beach_line.section(right).site
        )
        if prediction is None:
            return

        self._detach_circle_event(handle)
        x, trigger, y_center = prediction
        section.circle_event = self.circle_events.push(
            CircleEvent(x, trigger, y_center, handle, section.site)
        )

    def try_compute_circle_event(self, left: Site, middle: Site,
                                 right: Site) -> Optional[Tuple[float, float, float]]:
        """Circle event for three consecutive sites at the current sweep position."""
        return compute_circle_event(left, middle, right, self.sweep_y,
                                    self.options.collinear_tolerance, self.epsilon)


def generate_voronoi_diagram(sites: SiteInput, bounding_box,
                             options: Optional[VoronoiOptions] = None) -> VoronoiDiagram:
    """
    Generate the Voronoi diagram of a set of sites clipped to a bounding box.

    Args:
        sites: Points as a sequence, an (n, 2) array or a mapping of integer
            identifier to point. Duplicate coordinates produce a single cell.
        bounding_box: Rectangle or (min_x, min_y, max_x, max_y)
        options: Numerical options, defaults to VoronoiOptions()

    Returns:
        The finished diagram, one closed cell per distinct site

    Raises:
        ValueError: If the box is degenerate or a site is malformed or outside it
    """
    return VoronoiGenerator(sites, bounding_box, options).generate()

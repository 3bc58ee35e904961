"""
Voronoi diagram model.

Cells own ordered lists of half-edges, each half-edge being a cell-relative
view of an Edge shared by two cells. Edges grow during the sweep (their end
points are set as circle events fire) and are clipped and closed against the
bounding box by the post-processor.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np

from .events import Site
from .geometry import EPSILON, Point, Rectangle

OUTSIDE = -1
ON_LINE = 0
INSIDE = 1

OUTER_CELL_ID = -1


@dataclass(eq=False)
class Cell:
    """A Voronoi cell and its bounding half-edges."""
    site: Optional[Site]
    half_edges: List["HalfEdge"] = field(default_factory=list)
    closed: bool = True  # False once an edge of this cell touched the box

    @property
    def identifier(self) -> int:
        return self.site.identifier if self.site is not None else OUTER_CELL_ID

    @property
    def is_outer(self) -> bool:
        return self.site is None

    @property
    def is_border_cell(self) -> bool:
        """True if the cell has at least one edge on the bounding box."""
        return any(half_edge.edge.is_border for half_edge in self.half_edges)

    def prepare_half_edges(self) -> int:
        """
        Drop half-edges of discarded edges and sort the rest by angle.

        Returns:
            Number of remaining half-edges
        """
        self.half_edges = [
            half_edge for half_edge in self.half_edges
            if half_edge.edge.start is not None and half_edge.edge.end is not None
        ]
        self.half_edges.sort(key=lambda half_edge: half_edge.angle, reverse=True)
        return len(self.half_edges)

    def neighbor_ids(self) -> List[int]:
        """Identifiers of the cells sharing an edge with this cell."""
        neighbors = []
        for half_edge in self.half_edges:
            other = half_edge.edge.other_cell(self)
            if not other.is_outer:
                neighbors.append(other.identifier)
        return neighbors

    def polygon(self) -> np.ndarray:
        """Ring of polygon vertices as an (n, 2) array, without repeating the first."""
        if not self.half_edges:
            return np.empty((0, 2))
        return np.array([half_edge.start for half_edge in self.half_edges], dtype=float)

    def area(self) -> float:
        """Unsigned polygon area (shoelace formula)."""
        vertices = self.polygon()
        if len(vertices) < 3:
            return 0.0
        x = vertices[:, 0]
        y = vertices[:, 1]
        signed = np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))
        return abs(float(signed)) / 2.0

    def centroid(self) -> Point:
        """
        Centroid of the cell polygon.

        Falls back to the mean of the vertices for degenerate polygons.
        """
        vertices = self.polygon()
        if len(vertices) == 0:
            return self.site.point
        if len(vertices) < 3:
            mean = vertices.mean(axis=0)
            return Point(float(mean[0]), float(mean[1]))

        x = vertices[:, 0]
        y = vertices[:, 1]
        x_next = np.roll(x, -1)
        y_next = np.roll(y, -1)
        cross = x * y_next - x_next * y
        area = cross.sum()
        extent = float(np.ptp(vertices, axis=0).max())
        if abs(area) <= 1e-12 * extent * extent:
            mean = vertices.mean(axis=0)
            return Point(float(mean[0]), float(mean[1]))

        cx = float(((x + x_next) * cross).sum() / (3.0 * area))
        cy = float(((y + y_next) * cross).sum() / (3.0 * area))
        return Point(cx, cy)

    def bounding_box(self) -> Rectangle:
        """Smallest axis-aligned rectangle containing the cell."""
        return Rectangle.from_points(self.polygon())

    def point_position(self, point, epsilon: float = EPSILON) -> int:
        """
        Locate a point relative to the (convex) cell.

        Returns:
            OUTSIDE (-1), ON_LINE (0) or INSIDE (1)
        """
        px, py = point[0], point[1]
        on_line = False
        sides = set()
        for half_edge in self.half_edges:
            x0, y0 = half_edge.start
            x1, y1 = half_edge.end
            length = math.hypot(x1 - x0, y1 - y0)
            if length == 0.0:
                continue
            r = (py - y0) * (x1 - x0) - (px - x0) * (y1 - y0)
            # r / length is the signed distance to the edge line
            if abs(r) <= epsilon * length:
                on_line = True
                continue
            sides.add(r > 0)
            if len(sides) > 1:
                return OUTSIDE
        if not self.half_edges:
            return OUTSIDE
        return ON_LINE if on_line else INSIDE

    def __repr__(self) -> str:
        return f"Cell(identifier={self.identifier}, half_edges={len(self.half_edges)})"


@dataclass(eq=False)
class Edge:
    """
    Boundary segment between two cells.

    ``right_cell`` is the diagram's outer cell for edges running along the
    bounding box.
    """
    left_cell: Cell
    right_cell: Cell
    start: Optional[Point] = None
    end: Optional[Point] = None

    @property
    def left_site(self) -> Optional[Site]:
        return self.left_cell.site

    @property
    def right_site(self) -> Optional[Site]:
        return self.right_cell.site

    @property
    def cells(self) -> Tuple[Cell, Cell]:
        return self.left_cell, self.right_cell

    @property
    def is_border(self) -> bool:
        return self.right_cell.is_outer or self.left_cell.is_outer

    @property
    def length(self) -> float:
        if self.start is None or self.end is None:
            return math.inf
        return self.start.distance_to(self.end)

    def other_cell(self, cell: Cell) -> Cell:
        return self.right_cell if cell is self.left_cell else self.left_cell

    def set_start_point(self, left_cell: Cell, right_cell: Cell, vertex: Point) -> None:
        """
        Set the end of the edge that begins at ``vertex`` seen from left_cell.

        The first point ever set becomes ``start`` and fixes the orientation
        of the edge; later points go to whichever end is still open for the
        given orientation.
        """
        if self.start is None and self.end is None:
            self.start = vertex
            self.left_cell = left_cell
            self.right_cell = right_cell
        elif self.left_cell is right_cell:
            self.end = vertex
        else:
            self.start = vertex

    def set_end_point(self, left_cell: Cell, right_cell: Cell, vertex: Point) -> None:
        self.set_start_point(right_cell, left_cell, vertex)

    def __repr__(self) -> str:
        return (f"Edge({self.left_cell.identifier}|{self.right_cell.identifier}, "
                f"start={self.start}, end={self.end})")


class HalfEdge:
    """An edge as seen from one of its two cells."""

    __slots__ = ("edge", "cell", "angle")

    def __init__(self, edge: Edge, cell: Cell, other: Cell):
        self.edge = edge
        self.cell = cell
        if not other.is_outer:
            # direction towards the neighbouring site
            self.angle = math.atan2(other.site.y - cell.site.y, other.site.x - cell.site.x)
        else:
            start, end = edge.start, edge.end
            if edge.left_cell is cell:
                self.angle = math.atan2(end.x - start.x, start.y - end.y)
            else:
                self.angle = math.atan2(start.x - end.x, end.y - start.y)

    @property
    def start(self) -> Optional[Point]:
        return self.edge.start if self.edge.left_cell is self.cell else self.edge.end

    @property
    def end(self) -> Optional[Point]:
        return self.edge.end if self.edge.left_cell is self.cell else self.edge.start

    def __repr__(self) -> str:
        return f"HalfEdge(cell={self.cell.identifier}, start={self.start}, end={self.end})"


class VoronoiDiagram:
    """Cells, edges and vertices of a Voronoi diagram clipped to a bounding box."""

    def __init__(self, bounding_box: Rectangle):
        self.bounding_box = bounding_box
        self.outer = Cell(site=None)
        self._cells: Dict[int, Cell] = {}
        self.edges: List[Edge] = []
        self.vertices: List[Point] = []
        # input index -> cell identifier, duplicates share an identifier
        self.input_cells: Dict[int, int] = {}
        # dropped duplicate key -> surviving identifier, for keyed input
        self.aliases: Dict[int, int] = {}

    @property
    def cells(self) -> List[Cell]:
        """Cells in the order their sites were processed."""
        return list(self._cells.values())

    @property
    def sites(self) -> List[Site]:
        return [cell.site for cell in self._cells.values()]

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[Cell]:
        return iter(self._cells.values())

    def create_cell(self, site: Site) -> Cell:
        if site.identifier in self._cells:
            raise ValueError(f"Duplicate site identifier {site.identifier}")
        cell = Cell(site)
        self._cells[site.identifier] = cell
        if site.index >= 0:
            self.input_cells[site.index] = site.identifier
        return cell

    def get_cell(self, identifier: int) -> Cell:
        """Cell by identifier; keys of dropped duplicates resolve to the kept cell."""
        return self._cells[self.aliases.get(identifier, identifier)]

    def cell_of(self, site: Site) -> Cell:
        return self._cells[site.identifier]

    def cell_for_input(self, index: int) -> Cell:
        """Cell generated for the input point at ``index``."""
        return self._cells[self.input_cells[index]]

    def create_vertex(self, x: float, y: float) -> Point:
        vertex = Point(x, y)
        self.vertices.append(vertex)
        return vertex

    def create_edge(self, left_site: Site, right_site: Site,
                    start: Optional[Point] = None, end: Optional[Point] = None) -> Edge:
        """Create an edge between two sites and register it with both cells."""
        left_cell = self.cell_of(left_site)
        right_cell = self.cell_of(right_site)
        edge = Edge(left_cell, right_cell)
        self.edges.append(edge)
        if start is not None:
            edge.set_start_point(left_cell, right_cell, start)
        if end is not None:
            edge.set_end_point(left_cell, right_cell, end)
        left_cell.half_edges.append(HalfEdge(edge, left_cell, right_cell))
        right_cell.half_edges.append(HalfEdge(edge, right_cell, left_cell))
        return edge

    def create_border_edge(self, cell: Cell, start: Point, end: Point) -> Edge:
        """Create an edge between a cell and the outside along the bounding box."""
        edge = Edge(cell, self.outer, start, end)
        self.edges.append(edge)
        return edge

    def find_cell(self, point) -> Optional[Cell]:
        """Cell containing ``point``, i.e. the cell of the nearest site."""
        if not self._cells:
            return None
        cells = self.cells
        coordinates = np.array([[cell.site.x, cell.site.y] for cell in cells])
        distances = np.sum((coordinates - np.asarray(point, dtype=float)) ** 2, axis=1)
        return cells[int(np.argmin(distances))]

    def cell_neighbors(self) -> Dict[int, List[int]]:
        """Sorted neighbour identifiers for every cell."""
        return {
            identifier: sorted(set(cell.neighbor_ids()))
            for identifier, cell in self._cells.items()
        }

    def vertex_array(self) -> np.ndarray:
        """Vertex coordinates as an (n, 2) array."""
        if not self.vertices:
            return np.empty((0, 2))
        return np.array(self.vertices, dtype=float)

    def check_integrity(self, tolerance: float = 1e-6) -> None:
        """
        Verify the post-processing invariants.

        Cells must tile the bounding box, so their areas have to add up to
        the area of the box.

        Args:
            tolerance: Allowed error relative to the size of the bounding box

        Raises:
            RuntimeError: If an edge, cell or vertex breaks an invariant
        """
        box = self.bounding_box
        slack = tolerance * max(box.width, box.height)
        for edge in self.edges:
            if edge.left_cell is edge.right_cell:
                raise RuntimeError(f"{edge} references the same cell twice")
            if edge.left_cell.is_outer and edge.right_cell.is_outer:
                raise RuntimeError(f"{edge} does not reference any site cell")
            if edge.start is None or edge.end is None:
                raise RuntimeError(f"{edge} was left unterminated")
            for point in (edge.start, edge.end):
                if not box.contains(point, slack):
                    raise RuntimeError(f"{edge} has an end point outside {box}")

        for vertex in self.vertices:
            if not box.contains(vertex, slack):
                raise RuntimeError(f"Vertex {vertex} lies outside {box}")

        for cell in self._cells.values():
            half_edges = cell.half_edges
            if len(half_edges) < 3:
                raise RuntimeError(f"{cell} is not a closed polygon")
            for current, following in zip(half_edges, half_edges[1:] + half_edges[:1]):
                if current.edge.left_cell is not cell and current.edge.right_cell is not cell:
                    raise RuntimeError(f"{current} belongs to an edge of another cell")
                if not current.end.is_close(following.start, slack):
                    raise RuntimeError(
                        f"{cell} is not closed between {current.end} and {following.start}"
                    )

        if self._cells:
            total = sum(cell.area() for cell in self._cells.values())
            if abs(total - box.area) > tolerance * box.area:
                raise RuntimeError(f"Cell areas sum to {total}, the bounding box covers {box.area}")

    def __repr__(self) -> str:
        return (f"VoronoiDiagram(cells={len(self._cells)}, edges={len(self.edges)}, "
                f"vertices={len(self.vertices)})")

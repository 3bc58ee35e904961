"""
Post-processing of a swept Voronoi diagram.

After the sweep, edges between cells on the convex hull are still open rays
and vertices may lie far outside the bounding box. This module:

1. Connects dangling edges to the bounding box along the bisector of their
   two sites
2. Clips edges sticking out of the box (Liang-Barsky)
3. Discards edges outside the box or collapsed to a point
4. Closes border cells by walking the box perimeter
5. Prunes vertices no longer referenced by an edge
"""

from typing import List, Optional, Tuple

import structlog

from .diagram import Cell, Edge, HalfEdge, VoronoiDiagram
from .geometry import (
    EPSILON, Point, Rectangle, equal_with_epsilon, greater_than_with_epsilon, less_than_with_epsilon
)

logger = structlog.get_logger()

# Sides of the bounding box in walking order
LEFT, BOTTOM, RIGHT, TOP = 0, 1, 2, 3


def connect_edge(diagram: VoronoiDiagram, edge: Edge) -> bool:
    """
    Give a dangling edge a finite end point on the bounding box.

    The edge lies on the perpendicular bisector of its two sites. Its
    direction relative to the left site decides which side of the box the
    missing point is taken from.

    Returns:
        False if the edge cannot intersect the bounding box
    """
    if edge.end is not None:
        return True

    box = diagram.bounding_box
    xl, xr = box.min_x, box.max_x
    yt, yb = box.min_y, box.max_y

    start = edge.start
    left_site = edge.left_site
    right_site = edge.right_site
    lx, ly = left_site.x, left_site.y
    rx, ry = right_site.x, right_site.y
    fx = (lx + rx) / 2
    fy = (ly + ry) / 2

    # both cells will need closing, whether the edge is connected or dropped
    edge.left_cell.closed = False
    edge.right_cell.closed = False

    # bisector y = fm * x + fb, None for a vertical bisector
    fm: Optional[float] = None
    fb = 0.0
    if ry != ly:
        fm = (lx - rx) / (ry - ly)
        fb = fy - fm * fx

    if fm is None:
        if fx < xl or fx >= xr:
            return False
        if lx > rx:
            # downward
            if start is None or start.y < yt:
                start = diagram.create_vertex(fx, yt)
            elif start.y >= yb:
                return False
            end = diagram.create_vertex(fx, yb)
        else:
            # upward
            if start is None or start.y > yb:
                start = diagram.create_vertex(fx, yb)
            elif start.y < yt:
                return False
            end = diagram.create_vertex(fx, yt)
    elif fm < -1 or fm > 1:
        # closer to vertical, connect to the top or bottom side
        if lx > rx:
            # downward
            if start is None or start.y < yt:
                start = diagram.create_vertex((yt - fb) / fm, yt)
            elif start.y >= yb:
                return False
            end = diagram.create_vertex((yb - fb) / fm, yb)
        else:
            # upward
            if start is None or start.y > yb:
                start = diagram.create_vertex((yb - fb) / fm, yb)
            elif start.y < yt:
                return False
            end = diagram.create_vertex((yt - fb) / fm, yt)
    else:
        # closer to horizontal, connect to the left or right side
        if ly < ry:
            # rightward
            if start is None or start.x < xl:
                start = diagram.create_vertex(xl, fm * xl + fb)
            elif start.x >= xr:
                return False
            end = diagram.create_vertex(xr, fm * xr + fb)
        else:
            # leftward
            if start is None or start.x > xr:
                start = diagram.create_vertex(xr, fm * xr + fb)
            elif start.x < xl:
                return False
            end = diagram.create_vertex(xl, fm * xl + fb)

    edge.start = start
    edge.end = end
    return True


def _clip_parameter(p: float, q: float, t0: float, t1: float) -> Optional[Tuple[float, float]]:
    """One Liang-Barsky boundary test for the inequality p * t <= q."""
    if p == 0.0:
        return (t0, t1) if q >= 0 else None
    r = q / p
    if p < 0:
        if r > t1:
            return None
        if r > t0:
            t0 = r
    else:
        if r < t0:
            return None
        if r < t1:
            t1 = r
    return t0, t1


def clip_edge(diagram: VoronoiDiagram, edge: Edge) -> bool:
    """
    Clip a finite edge to the bounding box.

    Clipped ends get fresh vertices since the original ones may be shared
    with other edges.

    Returns:
        False if the edge lies completely outside the bounding box
    """
    box = diagram.bounding_box
    ax, ay = edge.start
    bx, by = edge.end
    dx = bx - ax
    dy = by - ay

    interval: Optional[Tuple[float, float]] = (0.0, 1.0)
    for p, q in ((-dx, ax - box.min_x), (dx, box.max_x - ax),
                 (-dy, ay - box.min_y), (dy, box.max_y - ay)):
        interval = _clip_parameter(p, q, *interval)
        if interval is None:
            return False
    t0, t1 = interval

    if t0 > 0:
        edge.start = diagram.create_vertex(ax + t0 * dx, ay + t0 * dy)
    if t1 < 1:
        edge.end = diagram.create_vertex(ax + t1 * dx, ay + t1 * dy)

    if t0 > 0 or t1 < 1:
        edge.left_cell.closed = False
        edge.right_cell.closed = False

    return True


def clip_edges(diagram: VoronoiDiagram, epsilon: float = EPSILON) -> int:
    """
    Connect dangling edges, clip them to the box and drop useless ones.

    An edge is dropped if it is wholly outside the bounding box or looks more
    like a point than a line. Dropped edges lose both end points so their
    half-edges are pruned when cells are prepared.

    Returns:
        Number of edges removed
    """
    kept: List[Edge] = []
    removed = 0
    for edge in diagram.edges:
        if (not connect_edge(diagram, edge) or
                not clip_edge(diagram, edge) or
                (equal_with_epsilon(edge.start.x, edge.end.x, epsilon) and
                 equal_with_epsilon(edge.start.y, edge.end.y, epsilon))):
            edge.start = None
            edge.end = None
            removed += 1
        else:
            kept.append(edge)
    diagram.edges = kept
    logger.debug("Edges clipped", kept=len(kept), removed=removed)
    return removed


def _border_side(diagram: VoronoiDiagram, point: Point, epsilon: float) -> Optional[int]:
    """Side of the box the closing walk continues along from ``point``."""
    box = diagram.bounding_box
    if equal_with_epsilon(point.x, box.min_x, epsilon) and less_than_with_epsilon(point.y, box.max_y, epsilon):
        return LEFT
    if equal_with_epsilon(point.y, box.max_y, epsilon) and less_than_with_epsilon(point.x, box.max_x, epsilon):
        return BOTTOM
    if equal_with_epsilon(point.x, box.max_x, epsilon) and greater_than_with_epsilon(point.y, box.min_y, epsilon):
        return RIGHT
    if equal_with_epsilon(point.y, box.min_y, epsilon) and greater_than_with_epsilon(point.x, box.min_x, epsilon):
        return TOP
    return None


def _reaches_on_side(diagram: VoronoiDiagram, side: int, start: Point, target: Point,
                     epsilon: float) -> bool:
    """Whether walking ``side`` from ``start`` runs into ``target``."""
    box = diagram.bounding_box
    if side == LEFT:
        return equal_with_epsilon(target.x, box.min_x, epsilon) and target.y >= start.y - epsilon
    if side == BOTTOM:
        return equal_with_epsilon(target.y, box.max_y, epsilon) and target.x >= start.x - epsilon
    if side == RIGHT:
        return equal_with_epsilon(target.x, box.max_x, epsilon) and target.y <= start.y + epsilon
    return equal_with_epsilon(target.y, box.min_y, epsilon) and target.x <= start.x + epsilon


def _walk_border(diagram: VoronoiDiagram, cell: Cell, start: Point, target: Point,
                 epsilon: float) -> List[HalfEdge]:
    """Border half-edges leading from ``start`` to ``target`` along the box."""
    side = _border_side(diagram, start, epsilon)
    if side is None:
        raise RuntimeError(f"Cannot close {cell}: {start} is not on the bounding box")

    # corner reached at the end of each side
    corners = diagram.bounding_box.corners()
    side_end = [corners[1], corners[2], corners[3], corners[0]]

    half_edges = []
    current = start
    # at most one partial side, three full sides and a final partial side
    for _ in range(5):
        if _reaches_on_side(diagram, side, current, target, epsilon):
            edge = diagram.create_border_edge(cell, current, target)
            half_edges.append(HalfEdge(edge, cell, diagram.outer))
            return half_edges
        corner = side_end[side]
        if not current.is_close(corner, epsilon):
            vertex = diagram.create_vertex(corner.x, corner.y)
            edge = diagram.create_border_edge(cell, current, vertex)
            half_edges.append(HalfEdge(edge, cell, diagram.outer))
            current = vertex
        side = (side + 1) % 4

    raise RuntimeError(f"Cannot close {cell}: {target} is not reachable along the bounding box")


def _close_with_box(diagram: VoronoiDiagram, cell: Cell) -> None:
    """Make the whole bounding box the polygon of a lonely cell."""
    corners = [diagram.create_vertex(corner.x, corner.y) for corner in diagram.bounding_box.corners()]
    for start, end in zip(corners, corners[1:] + corners[:1]):
        edge = diagram.create_border_edge(cell, start, end)
        cell.half_edges.append(HalfEdge(edge, cell, diagram.outer))
    cell.closed = True


def close_cells(diagram: VoronoiDiagram, epsilon: float = EPSILON) -> int:
    """
    Close every open cell along the bounding box.

    Half-edges are pruned and ordered by angle first. Wherever the end of
    one half-edge does not meet the start of the next, border edges are
    inserted walking the box perimeter until the gap is closed.

    Returns:
        Number of border edges added
    """
    added = 0
    for cell in diagram.cells:
        if not cell.prepare_half_edges():
            if len(diagram) == 1:
                _close_with_box(diagram, cell)
                added += len(cell.half_edges)
            continue
        if cell.closed:
            continue

        half_edges = cell.half_edges
        count = len(half_edges)
        closed_ring: List[HalfEdge] = []
        for index, half_edge in enumerate(half_edges):
            closed_ring.append(half_edge)
            va = half_edge.end
            vz = half_edges[(index + 1) % count].start
            if not va.is_close(vz, epsilon):
                border = _walk_border(diagram, cell, va, vz, epsilon)
                closed_ring.extend(border)
                added += len(border)
        cell.half_edges = closed_ring
        cell.closed = True

    logger.debug("Cells closed", border_edges=added)
    return added


def prune_vertices(diagram: VoronoiDiagram) -> int:
    """
    Keep only vertices that are end points of a remaining edge.

    Returns:
        Number of vertices removed
    """
    referenced = set()
    for edge in diagram.edges:
        referenced.add(edge.start)
        referenced.add(edge.end)

    vertices = []
    seen = set()
    for vertex in diagram.vertices:
        if vertex in referenced and vertex not in seen:
            seen.add(vertex)
            vertices.append(vertex)
    removed = len(diagram.vertices) - len(vertices)
    diagram.vertices = vertices
    return removed


def finalize(diagram: VoronoiDiagram, epsilon: float = EPSILON,
             bounding_box: Optional[Rectangle] = None) -> None:
    """
    Clip edges, close cells and prune vertices in place.

    Args:
        diagram: Diagram as left by the sweep
        epsilon: Tolerance in coordinate units
        bounding_box: Box to clip against, defaults to diagram.bounding_box
    """
    if bounding_box is not None:
        diagram.bounding_box = bounding_box
    clip_edges(diagram, epsilon)
    close_cells(diagram, epsilon)
    prune_vertices(diagram)

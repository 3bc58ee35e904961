"""
Planar Voronoi diagrams with Fortune's sweep-line algorithm.
"""

from .core import (
    Point, Rectangle, Site, Cell, Edge, HalfEdge, VoronoiDiagram,
    INSIDE, ON_LINE, OUTSIDE,
    VoronoiGenerator, VoronoiOptions, generate_voronoi_diagram,
)

__version__ = "0.1.0"

__all__ = ['Point', 'Rectangle', 'Site', 'Cell', 'Edge', 'HalfEdge', 'VoronoiDiagram',
           'INSIDE', 'ON_LINE', 'OUTSIDE',
           'VoronoiGenerator', 'VoronoiOptions', 'generate_voronoi_diagram']

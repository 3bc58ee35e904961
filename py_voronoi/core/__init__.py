"""
Core Voronoi diagram construction.
"""

from .geometry import Point, Rectangle
from .events import Site, CircleEvent
from .diagram import Cell, Edge, HalfEdge, VoronoiDiagram, INSIDE, ON_LINE, OUTSIDE
from .voronoi_generator import VoronoiGenerator, VoronoiOptions, generate_voronoi_diagram

__all__ = ['Point', 'Rectangle', 'Site', 'CircleEvent',
           'Cell', 'Edge', 'HalfEdge', 'VoronoiDiagram', 'INSIDE', 'ON_LINE', 'OUTSIDE',
           'VoronoiGenerator', 'VoronoiOptions', 'generate_voronoi_diagram']

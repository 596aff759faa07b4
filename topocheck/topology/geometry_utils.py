"""Geometry helpers on top of Shapely.

Classification, multipart decomposition and endpoint extraction shared by
the topology checks.
"""

from typing import Optional

from shapely.geometry import LineString, MultiLineString, MultiPolygon, Point, Polygon
from shapely.geometry.base import BaseGeometry, BaseMultipartGeometry

from topocheck.topology.types import GeometryKind

Coord = tuple[float, float]

_KIND_BY_TYPE = {
    "Point": GeometryKind.POINT,
    "MultiPoint": GeometryKind.POINT,
    "LineString": GeometryKind.LINE,
    "LinearRing": GeometryKind.LINE,
    "MultiLineString": GeometryKind.LINE,
    "Polygon": GeometryKind.POLYGON,
    "MultiPolygon": GeometryKind.POLYGON,
}


def geometry_kind(geometry: Optional[BaseGeometry]) -> GeometryKind:
    """Classify a geometry as point, line or polygon."""
    if geometry is None:
        return GeometryKind.UNKNOWN
    return _KIND_BY_TYPE.get(geometry.geom_type, GeometryKind.UNKNOWN)


def is_convertible(geometry: Optional[BaseGeometry]) -> bool:
    """Whether the geometry can take part in predicates at all.

    Empty geometries carry no coordinates and are treated like geometries
    the engine failed to import.
    """
    if geometry is None:
        return False
    return not geometry.is_empty


def is_multipart(geometry: BaseGeometry) -> bool:
    return isinstance(geometry, BaseMultipartGeometry)


def line_parts(geometry: BaseGeometry) -> list[LineString]:
    """Decompose a (multi)line into its simple parts."""
    if isinstance(geometry, MultiLineString):
        return [part for part in geometry.geoms if not part.is_empty]
    if isinstance(geometry, LineString):
        return [geometry]
    return []


def polygon_parts(geometry: BaseGeometry) -> list[Polygon]:
    """Decompose a (multi)polygon into its simple parts."""
    if isinstance(geometry, MultiPolygon):
        return [part for part in geometry.geoms if not part.is_empty]
    if isinstance(geometry, Polygon):
        return [geometry]
    return []


def line_endpoints(line: LineString) -> tuple[Coord, Coord]:
    """First and last vertex of a line, as exact 2D coordinates."""
    coords = line.coords
    start = coords[0]
    end = coords[-1]
    return (start[0], start[1]), (end[0], end[1])


def endpoint_geometries(geometry: BaseGeometry) -> list[Point]:
    """Start and end points of every part of a (multi)line."""
    points = []
    for part in line_parts(geometry):
        start, end = line_endpoints(part)
        points.append(Point(start))
        points.append(Point(end))
    return points

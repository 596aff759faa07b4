"""Pytest fixtures for topology engine testing."""

import pytest
from shapely.geometry import LineString, MultiPoint, Point, Polygon, box

from topocheck.config import Settings
from topocheck.topology.engine import TopologyEngine
from topocheck.topology.layers import VectorLayer
from topocheck.topology.types import GeometryKind


@pytest.fixture
def settings() -> Settings:
    return Settings(progress_interval=100, max_features_per_layer=50_000)


@pytest.fixture
def engine(settings) -> TopologyEngine:
    return TopologyEngine(settings)


@pytest.fixture
def node_lines() -> VectorLayer:
    """Two lines meeting only at (0,0), joined at (10,0) by a third line that ends free at (5,5).

    End vertex multiplicities: (0,0) -> 2, (10,0) -> 3, (5,5) -> 1.
    """
    return VectorLayer.from_features(
        "roads",
        [
            LineString([(0, 0), (10, 0)]),
            LineString([(0, 0), (5, -5), (10, 0)]),
            LineString([(10, 0), (5, 5)]),
        ],
        geometry_kind=GeometryKind.LINE,
    )


@pytest.fixture
def hole_ring_polygons() -> VectorLayer:
    """Four polygons enclosing a 10 x 10 hole at (10,10)-(20,20)."""
    return VectorLayer.from_features(
        "parcels",
        [
            box(0, 0, 30, 10),
            box(0, 20, 30, 30),
            box(0, 10, 10, 20),
            box(20, 10, 30, 20),
        ],
        geometry_kind=GeometryKind.POLYGON,
    )


@pytest.fixture
def overlapping_polygons() -> VectorLayer:
    """Two polygons sharing a 5 x 5 square, plus one isolated polygon."""
    return VectorLayer.from_features(
        "zones",
        [
            box(0, 0, 10, 10),
            box(5, 5, 15, 15),
            box(20, 20, 30, 30),
        ],
        geometry_kind=GeometryKind.POLYGON,
    )


@pytest.fixture
def single_polygon() -> VectorLayer:
    return VectorLayer.from_features(
        "boundary",
        [box(0, 0, 10, 10)],
        geometry_kind=GeometryKind.POLYGON,
    )


@pytest.fixture
def outside_point() -> VectorLayer:
    """One point well outside ``single_polygon``."""
    return VectorLayer.from_features(
        "wells",
        [Point(50, 50)],
        geometry_kind=GeometryKind.POINT,
    )


@pytest.fixture
def bowtie() -> Polygon:
    """Self-intersecting polygon, invalid."""
    return Polygon([(0, 0), (10, 10), (10, 0), (0, 10), (0, 0)])


@pytest.fixture
def large_multipoint_layer() -> VectorLayer:
    """10,000 multipoint features; every one is a multipart error."""
    return VectorLayer.from_features(
        "samples",
        [MultiPoint([(i, 0), (i, 1)]) for i in range(10_000)],
        geometry_kind=GeometryKind.POINT,
    )

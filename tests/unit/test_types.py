"""Unit tests for topology value types, extent clipping and run context."""

import pytest
from shapely.geometry import LineString, Point, box

from topocheck.topology.checks.base import clip_to_extent, point_in_extent
from topocheck.topology.context import CancellationToken, RunContext
from topocheck.topology.geometry_utils import endpoint_geometries, geometry_kind, is_convertible
from topocheck.topology.layers import VectorLayer
from topocheck.topology.types import ErrorKind, FeatureLayer, GeometryKind, Rectangle, TopologyError


class TestRectangle:
    def test_from_geometry(self):
        rect = Rectangle.from_geometry(LineString([(1, 2), (5, -1)]))
        assert rect.as_tuple() == (1, -1, 5, 2)
        assert (rect.width, rect.height) == (4, 3)

    def test_combine(self):
        combined = Rectangle(0, 0, 1, 1).combine(Rectangle(5, -2, 6, 0))
        assert combined.as_tuple() == (0, -2, 6, 1)

    def test_contains(self):
        assert Rectangle(0, 0, 10, 10).contains(Rectangle(1, 1, 2, 2))
        assert not Rectangle(0, 0, 10, 10).contains(Rectangle(9, 9, 11, 11))


class TestTopologyError:
    def test_to_dict(self):
        layer = VectorLayer.from_features("wells", [Point(1, 2)])
        ref = FeatureLayer(layer, layer.get_feature(1))
        error = TopologyError(
            kind=ErrorKind.DANGLE,
            bbox=Rectangle(1, 2, 1, 2),
            conflict_geometry=Point(1, 2),
            feature_pairs=(ref, ref),
        )
        data = error.to_dict()

        assert error.name == "dangling end"
        assert data["error"] == "dangling end"
        assert data["bbox"] == [1, 2, 1, 2]
        assert data["conflict_geometry"]["type"] == "Point"
        assert data["features"][0] == {"layer": "wells", "layer_id": layer.layer_id, "feature_id": 1}

    def test_layer_wide_reference(self):
        layer = VectorLayer("parcels")
        ref = FeatureLayer(layer)
        assert ref.feature_id is None
        assert ref.geometry is None


class TestClipToExtent:
    def test_no_extent(self):
        geom = box(0, 0, 1, 1)
        assert clip_to_extent(geom, None) is geom

    def test_disjoint_suppressed(self):
        assert clip_to_extent(box(0, 0, 1, 1), box(5, 5, 6, 6)) is None

    def test_inside_unchanged(self):
        geom = box(1, 1, 2, 2)
        assert clip_to_extent(geom, box(0, 0, 10, 10)) is geom

    def test_partial_clipped(self):
        clipped = clip_to_extent(box(0, 0, 10, 10), box(5, 5, 20, 20))
        assert clipped.area == pytest.approx(25.0)

    def test_self_intersecting_conflict_clipped_after_repair(self, bowtie):
        extent = box(-1, -1, 4, 11)
        clipped = clip_to_extent(bowtie, extent)

        assert clipped is not None
        assert not clipped.is_empty
        assert extent.covers(clipped)

    def test_point_never_clipped(self):
        point = Point(1, 1)
        assert point_in_extent(point, box(0, 0, 2, 2)) is point
        assert point_in_extent(point, box(5, 5, 6, 6)) is None


class TestGeometryUtils:
    def test_geometry_kind(self):
        assert geometry_kind(Point(0, 0)) == GeometryKind.POINT
        assert geometry_kind(box(0, 0, 1, 1)) == GeometryKind.POLYGON
        assert geometry_kind(None) == GeometryKind.UNKNOWN

    def test_empty_not_convertible(self):
        assert is_convertible(Point(0, 0))
        assert not is_convertible(LineString())
        assert not is_convertible(None)

    def test_endpoints(self):
        ends = endpoint_geometries(LineString([(0, 0), (5, 5), (10, 0)]))
        assert [(p.x, p.y) for p in ends] == [(0, 0), (10, 0)]
        assert endpoint_geometries(Point(0, 0)) == []


class TestCancellationToken:
    def test_consume_once(self):
        token = CancellationToken()
        assert token.consume() is False

        token.cancel()
        assert token.is_set
        assert token.consume() is True
        assert token.consume() is False
        assert not token.is_set


class TestRunContextScan:
    def test_progress_and_cancel(self):
        counts = []
        ctx = RunContext(progress_interval=2, progress_callbacks=[counts.append])

        seen = []
        for item in ctx.scan(range(1, 8)):
            seen.append(item)
            if item == 4:
                ctx.token.cancel()

        assert seen == [1, 2, 3, 4]
        assert counts == [2, 4]
        assert ctx.canceled

    def test_create_index_fills_working_set(self):
        layer = VectorLayer.from_features("wells", [Point(0, 0), None, Point(1, 1)])
        ctx = RunContext()
        index = ctx.ensure_index(layer)

        assert len(index) == 2
        assert sorted(ctx.feature_map2) == [1, 3]
        assert ctx.ensure_index(layer) is index

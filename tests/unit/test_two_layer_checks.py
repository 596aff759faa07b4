"""Unit tests for two-layer topology rules."""

import pytest
from shapely.geometry import LineString, Point, box

from topocheck.topology.layers import VectorLayer
from topocheck.topology.rules import RuleName
from topocheck.topology.types import ErrorKind, GeometryKind


@pytest.fixture
def road() -> VectorLayer:
    return VectorLayer.from_features(
        "roads",
        [LineString([(0, 0), (10, 0)])],
        geometry_kind=GeometryKind.LINE,
    )


def _point_layer(name, *coords) -> VectorLayer:
    return VectorLayer.from_features(
        name,
        [Point(xy) for xy in coords],
        geometry_kind=GeometryKind.POINT,
    )


class TestOverlapWithLayer:
    def test_overlap_between_layers(self, engine):
        zones = VectorLayer.from_features("zones", [box(0, 0, 10, 10)])
        parks = VectorLayer.from_features("parks", [box(5, 5, 15, 15), box(40, 40, 50, 50)])
        errors = engine.run_test(RuleName.OVERLAP_WITH.value, zones, parks)

        assert len(errors) == 1
        error = errors[0]
        assert error.kind == ErrorKind.INTERSECTION
        assert error.bbox.as_tuple() == (0, 0, 15, 15)
        assert error.conflict_geometry.area == pytest.approx(25.0)
        assert error.feature_pairs[0].layer is zones
        assert error.feature_pairs[1].layer is parks
        assert error.feature_pairs[1].feature_id == 1

    def test_same_layer_never_compares_feature_with_itself(self, engine, overlapping_polygons):
        errors = engine.run_test(RuleName.OVERLAP_WITH.value, overlapping_polygons, overlapping_polygons)

        pairs = sorted((e.feature_pairs[0].feature_id, e.feature_pairs[1].feature_id) for e in errors)
        assert pairs == [(1, 2), (2, 1)]

    def test_kind_mismatch_returns_nothing(self, engine, road, single_polygon):
        assert engine.run_test(RuleName.OVERLAP_WITH.value, road, single_polygon) == []

    def test_invalid_first_layer_polygon_skipped(self, engine, bowtie):
        zones = VectorLayer.from_features("zones", [bowtie, box(20, 0, 30, 10)])
        parks = VectorLayer.from_features("parks", [box(5, -5, 15, 3), box(25, 5, 35, 15)])
        errors = engine.run_test(RuleName.OVERLAP_WITH.value, zones, parks)

        assert len(errors) == 1
        assert errors[0].feature_pairs[0].feature_id == 2
        assert errors[0].conflict_geometry.area == pytest.approx(25.0)

    def test_invalid_second_layer_polygon_skipped(self, engine, bowtie):
        zones = VectorLayer.from_features("zones", [box(5, -5, 15, 3)])
        parks = VectorLayer.from_features("parks", [bowtie])

        assert engine.run_test(RuleName.OVERLAP_WITH.value, zones, parks) == []


class TestPointCoveredBySegment:
    def test_point_at_line_end_is_covered(self, engine, road):
        points = _point_layer("nodes", (10, 0))
        assert engine.run_test(RuleName.COVERED_BY.value, points, road) == []

    def test_point_on_polygon_boundary_is_covered(self, engine, single_polygon):
        points = _point_layer("posts", (0, 5))
        assert engine.run_test(RuleName.COVERED_BY.value, points, single_polygon) == []

    def test_distant_point_reported(self, engine, road):
        points = _point_layer("nodes", (10, 0), (50, 50))
        errors = engine.run_test(RuleName.COVERED_BY.value, points, road)

        assert len(errors) == 1
        assert errors[0].kind == ErrorKind.NOT_COVERED_BY_SEGMENT
        assert errors[0].feature_pairs[0].feature_id == 2

    def test_point_second_layer_not_accepted(self, engine):
        points = _point_layer("nodes", (0, 0))
        others = _point_layer("others", (5, 5))
        assert engine.run_test(RuleName.COVERED_BY.value, points, others) == []


class TestPointCoveredByLineEnds:
    def test_endpoints_covered(self, engine, road):
        points = _point_layer("nodes", (0, 0), (10, 0))
        assert engine.run_test(RuleName.COVERED_BY_ENDPOINTS.value, points, road) == []

    def test_point_on_line_interior_reported(self, engine, road):
        points = _point_layer("nodes", (5, 0))
        errors = engine.run_test(RuleName.COVERED_BY_ENDPOINTS.value, points, road)

        assert len(errors) == 1
        assert errors[0].kind == ErrorKind.NOT_COVERED_BY_LINE_ENDS
        assert errors[0].conflict_geometry.equals(Point(5, 0))


class TestLineEndsCoveredByPoints:
    def test_both_ends_covered_by_different_points(self, engine, road):
        points = _point_layer("nodes", (0, 0), (10, 0))
        assert engine.run_test(RuleName.ENDPOINTS_COVERED_BY.value, road, points) == []

    def test_one_end_uncovered(self, engine, road):
        points = _point_layer("nodes", (0, 0))
        errors = engine.run_test(RuleName.ENDPOINTS_COVERED_BY.value, road, points)

        assert len(errors) == 1
        assert errors[0].kind == ErrorKind.LINE_ENDS_NOT_COVERED
        assert errors[0].conflict_geometry.equals(LineString([(0, 0), (10, 0)]))

    def test_no_points_nearby(self, engine, road):
        points = _point_layer("nodes", (100, 100))
        assert len(engine.run_test(RuleName.ENDPOINTS_COVERED_BY.value, road, points)) == 1


class TestPointInPolygon:
    def test_point_outside_polygon(self, engine, outside_point, single_polygon):
        errors = engine.run_test(RuleName.INSIDE.value, outside_point, single_polygon)

        assert len(errors) == 1
        assert errors[0].kind == ErrorKind.POINT_NOT_IN_POLYGON
        assert errors[0].conflict_geometry.equals(Point(50, 50))

    def test_point_inside_polygon(self, engine, single_polygon):
        points = _point_layer("wells", (5, 5))
        assert engine.run_test(RuleName.INSIDE.value, points, single_polygon) == []

    def test_point_on_boundary_is_not_inside(self, engine, single_polygon):
        points = _point_layer("wells", (0, 5))
        assert len(engine.run_test(RuleName.INSIDE.value, points, single_polygon)) == 1


class TestPolygonContainsPoint:
    def test_polygon_without_point(self, engine, single_polygon, outside_point):
        errors = engine.run_test(RuleName.CONTAINS.value, single_polygon, outside_point)

        assert len(errors) == 1
        assert errors[0].kind == ErrorKind.POLYGON_MISSING_POINT
        assert errors[0].conflict_geometry.equals(box(0, 0, 10, 10))
        assert errors[0].feature_pairs[0].layer is single_polygon

    def test_polygon_with_point(self, engine, single_polygon):
        points = _point_layer("wells", (5, 5))
        assert engine.run_test(RuleName.CONTAINS.value, single_polygon, points) == []

    def test_roles_swapped_kind_mismatch(self, engine, single_polygon, outside_point):
        assert engine.run_test(RuleName.CONTAINS.value, outside_point, single_polygon) == []

"""Unit tests for layer input validation schemas."""

import pytest
from pydantic import ValidationError

from topocheck.models.schemas.layer import ExtentPayload, LayerPayload, validate_layer_features
from topocheck.models.schemas.validation import ValidateRequest


def _point(x, y, **extra):
    return {"type": "Feature", "geometry": {"type": "Point", "coordinates": [x, y]}, **extra}


class TestValidateLayerFeatures:
    def test_valid_features(self):
        validated, warnings, errors = validate_layer_features([_point(0, 0), _point(1, 1, id=5)], "wells")

        assert errors == []
        assert warnings == []
        assert validated[1]["id"] == 5

    def test_unsupported_geometry_type(self):
        feature = {"type": "Feature", "geometry": {"type": "GeometryCollection", "geometries": []}}
        _, _, errors = validate_layer_features([feature], "wells")

        assert len(errors) == 1
        assert errors[0].startswith("wells.feature[0]")
        assert "unsupported geometry type" in errors[0]

    def test_non_object_feature(self):
        _, _, errors = validate_layer_features([_point(0, 0), "nope"], "wells")
        assert errors == ["wells.feature[1]: must be an object, got str"]

    def test_features_not_a_list(self):
        _, _, errors = validate_layer_features({"type": "FeatureCollection"}, "wells")
        assert errors == ["wells: features must be an array"]

    def test_null_geometry_warns(self):
        validated, warnings, errors = validate_layer_features([{"type": "Feature", "geometry": None}], "wells")

        assert errors == []
        assert len(validated) == 1
        assert "has no geometry" in warnings[0]

    def test_mixed_kinds_warn(self):
        line = {"type": "Feature", "geometry": {"type": "LineString", "coordinates": [[0, 0], [1, 1]]}}
        _, warnings, errors = validate_layer_features([_point(0, 0), line], "mixed")

        assert errors == []
        assert "mixed geometry kinds" in warnings[0]


class TestLayerPayload:
    def test_name_stripped(self):
        assert LayerPayload(name="  roads ").name == "roads"

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            LayerPayload(name="   ")


class TestExtentPayload:
    def test_to_rectangle(self):
        rect = ExtentPayload(xmin=0, ymin=1, xmax=2, ymax=3).to_rectangle()
        assert rect.as_tuple() == (0, 1, 2, 3)

    def test_inverted_bounds_rejected(self):
        with pytest.raises(ValidationError):
            ExtentPayload(xmin=5, ymin=0, xmax=1, ymax=1)

    def test_non_finite_rejected(self):
        with pytest.raises(ValidationError):
            ExtentPayload(xmin=0, ymin=0, xmax=float("inf"), ymax=1)


class TestValidateRequest:
    def test_extent_scope_requires_extent(self):
        with pytest.raises(ValidationError, match="extent is required"):
            ValidateRequest(rule="must not overlap", layer1={"name": "zones"}, scope="extent")

    def test_defaults(self):
        request = ValidateRequest(rule="must not overlap", layer1={"name": "zones"})
        assert request.scope.value == "layer"
        assert request.layer2 is None
        assert request.same_layer is False

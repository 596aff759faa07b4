"""GeoJSON layer input schemas and validation."""

import math
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from topocheck.topology.types import GeometryKind, Rectangle

SUPPORTED_GEOMETRY_TYPES = {
    "Point",
    "MultiPoint",
    "LineString",
    "MultiLineString",
    "Polygon",
    "MultiPolygon",
}

_KIND_BY_GEOMETRY_TYPE = {
    "Point": GeometryKind.POINT,
    "MultiPoint": GeometryKind.POINT,
    "LineString": GeometryKind.LINE,
    "MultiLineString": GeometryKind.LINE,
    "Polygon": GeometryKind.POLYGON,
    "MultiPolygon": GeometryKind.POLYGON,
}


class GeoJSONFeature(BaseModel):
    """A single GeoJSON Feature. A null geometry is allowed and skipped by the checks."""

    type: Literal["Feature"] = "Feature"
    id: int | str | None = None
    geometry: dict[str, Any] | None = None
    properties: dict[str, Any] | None = None

    @field_validator("geometry")
    @classmethod
    def geometry_supported(cls, v: dict[str, Any] | None) -> dict[str, Any] | None:
        if v is None:
            return v

        geom_type = v.get("type")
        if geom_type not in SUPPORTED_GEOMETRY_TYPES:
            raise ValueError(
                f"unsupported geometry type '{geom_type}', must be one of {sorted(SUPPORTED_GEOMETRY_TYPES)}"
            )
        if not isinstance(v.get("coordinates"), list):
            raise ValueError("geometry coordinates must be an array")
        return v

    @property
    def geometry_kind(self) -> GeometryKind:
        if self.geometry is None:
            return GeometryKind.UNKNOWN
        return _KIND_BY_GEOMETRY_TYPE[self.geometry["type"]]


class LayerPayload(BaseModel):
    """A named layer posted as a list of GeoJSON features."""

    name: str = Field(..., min_length=1)
    layer_id: str | None = None
    geometry_kind: GeometryKind | None = None
    features: list[Any] = Field(
        default_factory=list,
        description="GeoJSON Feature objects",
    )

    @field_validator("name")
    @classmethod
    def name_not_whitespace(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("layer name cannot be empty or whitespace")
        return v.strip()


class ExtentPayload(BaseModel):
    """Current view extent in layer coordinates."""

    xmin: float
    ymin: float
    xmax: float
    ymax: float

    @model_validator(mode="after")
    def check_bounds(self) -> "ExtentPayload":
        values = (self.xmin, self.ymin, self.xmax, self.ymax)
        if not all(math.isfinite(v) for v in values):
            raise ValueError("extent bounds must be finite numbers")
        if self.xmin > self.xmax or self.ymin > self.ymax:
            raise ValueError("extent minimum must not exceed maximum")
        return self

    def to_rectangle(self) -> Rectangle:
        return Rectangle(self.xmin, self.ymin, self.xmax, self.ymax)


def _format_validation_error(e: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(x) for x in err.get('loc', []))}: {err.get('msg', '')}"
        for err in e.errors()
    )


def validate_layer_features(
    features: list[Any],
    layer_name: str,
) -> tuple[list[dict], list[str], list[str]]:
    """
    Validate the features of one layer.

    Returns:
        (validated_features, warnings, errors)
        - If errors is non-empty, the layer must be rejected
        - warnings are non-fatal issues (null geometries, mixed kinds)
    """
    warnings = []
    errors = []
    validated_features = []

    if not isinstance(features, list):
        errors.append(f"{layer_name}: features must be an array")
        return [], warnings, errors

    kinds: set[GeometryKind] = set()
    for i, item in enumerate(features):
        if not isinstance(item, dict):
            errors.append(f"{layer_name}.feature[{i}]: must be an object, got {type(item).__name__}")
            continue

        try:
            feature = GeoJSONFeature.model_validate(item)
        except ValidationError as e:
            errors.append(f"{layer_name}.feature[{i}]: {_format_validation_error(e)}")
            continue

        if feature.geometry is None:
            warnings.append(f"{layer_name}.feature[{i}]: has no geometry and will be skipped")
        else:
            kinds.add(feature.geometry_kind)

        validated_features.append(feature.model_dump())

    if len(kinds) > 1:
        warnings.append(
            f"{layer_name}: mixed geometry kinds {sorted(k.value for k in kinds)}; "
            f"the layer kind is taken from the first feature"
        )

    return validated_features, warnings, errors

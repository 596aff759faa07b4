"""Rule listing and validation request/response schemas."""

from typing import Any

from pydantic import BaseModel, Field, model_validator

from topocheck.models.schemas.layer import ExtentPayload, LayerPayload
from topocheck.topology.types import ValidationScope


class RuleDescriptor(BaseModel):
    """What a rule checks and which layers it accepts."""

    name: str
    description: str
    use_second_layer: bool
    use_spatial_index: bool
    layer1_kinds: list[str]
    layer2_kinds: list[str]


class RuleListResponse(BaseModel):
    rules: list[RuleDescriptor]


class ValidateRequest(BaseModel):
    """Request body for running one topology rule."""

    rule: str = Field(..., min_length=1)
    layer1: LayerPayload
    layer2: LayerPayload | None = None
    same_layer: bool = Field(
        False,
        description="Use layer1 as the second layer of a two-layer rule",
    )
    scope: ValidationScope = ValidationScope.LAYER
    extent: ExtentPayload | None = None

    @model_validator(mode="after")
    def extent_required_for_extent_scope(self) -> "ValidateRequest":
        if self.scope == ValidationScope.EXTENT and self.extent is None:
            raise ValueError("extent is required when scope is 'extent'")
        return self


class FeatureReference(BaseModel):
    layer: str
    layer_id: str
    feature_id: int | None = None


class TopologyErrorItem(BaseModel):
    """One topology violation, with its conflict geometry as GeoJSON."""

    error: str
    bbox: list[float]
    conflict_geometry: dict[str, Any]
    features: list[FeatureReference]


class ValidateResponse(BaseModel):
    rule: str
    scope: ValidationScope
    layer1_feature_count: int
    layer2_feature_count: int | None = None
    error_count: int
    errors: list[TopologyErrorItem]
    warnings: list[str] = Field(default_factory=list)

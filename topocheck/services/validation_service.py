"""Validation service: turns posted layers into topology runs."""

import logging

from topocheck.config import Settings
from topocheck.core.exceptions import (
    InvalidLayerError,
    LayerTooLargeError,
    MissingLayerError,
    UnknownRuleError,
)
from topocheck.models.schemas.layer import LayerPayload, validate_layer_features
from topocheck.models.schemas.validation import (
    RuleDescriptor,
    RuleListResponse,
    TopologyErrorItem,
    ValidateRequest,
    ValidateResponse,
)
from topocheck.topology.engine import TopologyEngine
from topocheck.topology.layers import VectorLayer
from topocheck.topology.rules import TopologyRule
from topocheck.topology.types import GeometryKind

logger = logging.getLogger(__name__)


class ValidationService:
    """Business logic for listing rules and validating layers.

    Unlike the engine, which soft-fails on caller mistakes, the service
    rejects them with typed HTTP errors before a run starts.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine = TopologyEngine(settings)

    def list_rules(self) -> RuleListResponse:
        return RuleListResponse(
            rules=[RuleDescriptor(**descriptor) for descriptor in self.engine.registry.describe()]
        )

    def build_layer(self, payload: LayerPayload) -> tuple[VectorLayer, list[str]]:
        """
        Validate a posted layer and load it into a VectorLayer.
        Raises LayerTooLargeError if it has too many features.
        Raises InvalidLayerError if any feature is malformed.
        """
        limit = self.settings.max_features_per_layer
        if len(payload.features) > limit:
            raise LayerTooLargeError(payload.name, len(payload.features), limit)

        validated, warnings, errors = validate_layer_features(payload.features, payload.name)
        if errors:
            raise InvalidLayerError(errors)

        try:
            layer = VectorLayer.from_geojson(
                payload.name,
                {"type": "FeatureCollection", "features": validated},
                geometry_kind=payload.geometry_kind,
                layer_id=payload.layer_id,
            )
        except ValueError as e:
            raise InvalidLayerError([f"{payload.name}: {e}"]) from e

        return layer, warnings

    def _kind_warnings(
        self, rule: TopologyRule, layer: VectorLayer, allowed: tuple[GeometryKind, ...], role: str
    ) -> list[str]:
        if layer.geometry_kind in allowed:
            return []
        return [
            f"Rule '{rule.name}' expects {role} of kind {[k.value for k in allowed]}, "
            f"got '{layer.geometry_kind.value}'; no errors will be reported"
        ]

    def validate(self, request: ValidateRequest) -> ValidateResponse:
        """
        Run one rule on the posted layers.
        Raises UnknownRuleError if the rule is not registered.
        Raises MissingLayerError if a two-layer rule has no second layer.
        """
        rule = self.engine.registry.get(request.rule)
        if rule is None:
            raise UnknownRuleError(request.rule)

        layer1, warnings = self.build_layer(request.layer1)
        warnings += self._kind_warnings(rule, layer1, rule.layer1_kinds, "layer1")

        layer2 = None
        if rule.use_second_layer:
            if request.same_layer:
                layer2 = layer1
            elif request.layer2 is None:
                raise MissingLayerError(rule.name)
            else:
                layer2, layer2_warnings = self.build_layer(request.layer2)
                warnings += layer2_warnings
            warnings += self._kind_warnings(rule, layer2, rule.layer2_kinds, "layer2")
        elif request.layer2 is not None:
            warnings.append(f"Rule '{rule.name}' uses one layer; layer2 was ignored")

        extent = request.extent.to_rectangle() if request.extent is not None else None

        logger.info(
            f"Validating '{layer1.name}' ({len(layer1)} features) with rule '{rule.name}'"
        )
        errors = self.engine.run_test(rule.name, layer1, layer2, request.scope, extent)

        return ValidateResponse(
            rule=rule.name,
            scope=request.scope,
            layer1_feature_count=len(layer1),
            layer2_feature_count=len(layer2) if layer2 is not None else None,
            error_count=len(errors),
            errors=[TopologyErrorItem.model_validate(error.to_dict()) for error in errors],
            warnings=warnings,
        )

"""Rule registry for topology validation."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from topocheck.topology.checks import single_layer, two_layer
from topocheck.topology.context import RunContext
from topocheck.topology.layers import VectorLayer
from topocheck.topology.types import GeometryKind, TopologyError

CheckFunction = Callable[
    [RunContext, VectorLayer, Optional[VectorLayer], bool],
    list[TopologyError],
]

ALL_KINDS = (GeometryKind.POINT, GeometryKind.LINE, GeometryKind.POLYGON)


class RuleName(str, Enum):
    """User-facing rule names."""

    INVALID_GEOMETRIES = "must not have invalid geometries"
    DANGLES = "must not have dangles"
    DUPLICATES = "must not have duplicates"
    PSEUDOS = "must not have pseudos"
    OVERLAPS = "must not overlap"
    GAPS = "must not have gaps"
    MULTIPART = "must not have multi-part geometries"
    OVERLAP_WITH = "must not overlap with"
    COVERED_BY = "must be covered by"
    COVERED_BY_ENDPOINTS = "must be covered by endpoints of"
    ENDPOINTS_COVERED_BY = "end points must be covered by"
    INSIDE = "must be inside"
    CONTAINS = "must contain"


@dataclass(frozen=True)
class TopologyRule:
    """A topology check together with the metadata the dispatcher needs."""

    name: str
    check: CheckFunction
    description: str
    use_second_layer: bool = False
    use_spatial_index: bool = False
    layer1_kinds: tuple[GeometryKind, ...] = ALL_KINDS
    layer2_kinds: tuple[GeometryKind, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "use_second_layer": self.use_second_layer,
            "use_spatial_index": self.use_spatial_index,
            "layer1_kinds": [kind.value for kind in self.layer1_kinds],
            "layer2_kinds": [kind.value for kind in self.layer2_kinds],
        }


class RuleRegistry:
    """Ordered catalog of every topology rule, keyed by rule name."""

    def __init__(self):
        self.rules: dict[str, TopologyRule] = {}
        self._register_all_rules()

    def __contains__(self, rule_name: str) -> bool:
        return rule_name in self.rules

    def __len__(self) -> int:
        return len(self.rules)

    def _register_all_rules(self):
        self._register_single_layer_rules()
        self._register_two_layer_rules()

    def _add(self, rule: TopologyRule):
        self.rules[rule.name] = rule

    def _register_single_layer_rules(self):
        """Rules that inspect one layer on its own."""

        self._add(TopologyRule(
            name=RuleName.INVALID_GEOMETRIES.value,
            check=single_layer.check_valid,
            description="Every geometry must pass the validity predicate",
        ))

        self._add(TopologyRule(
            name=RuleName.DANGLES.value,
            check=single_layer.check_dangling_lines,
            description="Line endpoints must touch another line endpoint",
            layer1_kinds=(GeometryKind.LINE,),
        ))

        self._add(TopologyRule(
            name=RuleName.DUPLICATES.value,
            check=single_layer.check_duplicates,
            description="No two features may have equal geometries",
            use_spatial_index=True,
        ))

        self._add(TopologyRule(
            name=RuleName.PSEUDOS.value,
            check=single_layer.check_pseudos,
            description="Exactly two line endpoints must not meet at one node",
            layer1_kinds=(GeometryKind.LINE,),
        ))

        self._add(TopologyRule(
            name=RuleName.OVERLAPS.value,
            check=single_layer.check_overlaps,
            description="Polygons must not share interior area",
            use_spatial_index=True,
            layer1_kinds=(GeometryKind.POLYGON,),
        ))

        self._add(TopologyRule(
            name=RuleName.GAPS.value,
            check=single_layer.check_gaps,
            description="Polygon coverage must not contain holes",
            layer1_kinds=(GeometryKind.POLYGON,),
        ))

        self._add(TopologyRule(
            name=RuleName.MULTIPART.value,
            check=single_layer.check_multipart,
            description="Features must be single-part geometries",
        ))

    def _register_two_layer_rules(self):
        """Rules relating features of layer1 to features of layer2."""

        self._add(TopologyRule(
            name=RuleName.OVERLAP_WITH.value,
            check=two_layer.check_overlap_with_layer,
            description="Polygons must not overlap polygons of the second layer",
            use_second_layer=True,
            use_spatial_index=True,
            layer1_kinds=(GeometryKind.POLYGON,),
            layer2_kinds=(GeometryKind.POLYGON,),
        ))

        self._add(TopologyRule(
            name=RuleName.COVERED_BY.value,
            check=two_layer.check_point_covered_by_segment,
            description="Points must touch a line or polygon boundary of the second layer",
            use_second_layer=True,
            use_spatial_index=True,
            layer1_kinds=(GeometryKind.POINT,),
            layer2_kinds=(GeometryKind.LINE, GeometryKind.POLYGON),
        ))

        self._add(TopologyRule(
            name=RuleName.COVERED_BY_ENDPOINTS.value,
            check=two_layer.check_point_covered_by_line_ends,
            description="Points must lie on an endpoint of a line of the second layer",
            use_second_layer=True,
            use_spatial_index=True,
            layer1_kinds=(GeometryKind.POINT,),
            layer2_kinds=(GeometryKind.LINE,),
        ))

        self._add(TopologyRule(
            name=RuleName.ENDPOINTS_COVERED_BY.value,
            check=two_layer.check_line_ends_covered_by_points,
            description="Both ends of every line must be covered by points of the second layer",
            use_second_layer=True,
            use_spatial_index=True,
            layer1_kinds=(GeometryKind.LINE,),
            layer2_kinds=(GeometryKind.POINT,),
        ))

        self._add(TopologyRule(
            name=RuleName.INSIDE.value,
            check=two_layer.check_point_in_polygon,
            description="Points must lie inside a polygon of the second layer",
            use_second_layer=True,
            use_spatial_index=True,
            layer1_kinds=(GeometryKind.POINT,),
            layer2_kinds=(GeometryKind.POLYGON,),
        ))

        self._add(TopologyRule(
            name=RuleName.CONTAINS.value,
            check=two_layer.check_polygon_contains_point,
            description="Polygons must contain at least one point of the second layer",
            use_second_layer=True,
            use_spatial_index=True,
            layer1_kinds=(GeometryKind.POLYGON,),
            layer2_kinds=(GeometryKind.POINT,),
        ))

    def get(self, rule_name: str) -> Optional[TopologyRule]:
        return self.rules.get(rule_name)

    def rule_names(self) -> list[str]:
        return list(self.rules)

    def describe(self) -> list[dict[str, Any]]:
        """Rule descriptors in registration order, for populating rule pickers."""
        return [rule.to_dict() for rule in self.rules.values()]

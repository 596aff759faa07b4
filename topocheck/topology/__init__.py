"""Topology engine package.

Vector layers, spatial indexing and the rule dispatcher that runs the
single-layer and two-layer topology checks.
"""

from topocheck.topology.types import (
    ErrorKind,
    Feature,
    FeatureLayer,
    GeometryKind,
    Rectangle,
    TopologyError,
    ValidationScope,
)
from topocheck.topology.layers import VectorLayer
from topocheck.topology.context import CancellationToken, RunContext
from topocheck.topology.rules import RuleName, RuleRegistry, TopologyRule
from topocheck.topology.engine import TopologyEngine

__all__ = [
    "ErrorKind",
    "Feature",
    "FeatureLayer",
    "GeometryKind",
    "Rectangle",
    "TopologyError",
    "ValidationScope",
    "VectorLayer",
    "CancellationToken",
    "RunContext",
    "RuleName",
    "RuleRegistry",
    "TopologyRule",
    "TopologyEngine",
]

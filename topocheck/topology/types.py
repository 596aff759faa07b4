"""Type definitions for the topology engine.

Contains enums and data classes used throughout the topology module.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from shapely.geometry import MultiPoint, Polygon, box, mapping
from shapely.geometry.base import BaseGeometry

if TYPE_CHECKING:
    from topocheck.topology.layers import VectorLayer


class GeometryKind(str, Enum):
    """Geometry classification of a layer."""

    POINT = "point"
    LINE = "line"
    POLYGON = "polygon"
    UNKNOWN = "unknown"


class ValidationScope(str, Enum):
    """Which features a rule run looks at."""

    LAYER = "layer"
    EXTENT = "extent"


class ErrorKind(str, Enum):
    """Kinds of topology violations reported by the checks."""

    INVALID = "invalid geometry"
    DANGLE = "dangling end"
    DUPLICATE = "duplicate geometry"
    PSEUDO = "pseudo node"
    OVERLAP = "overlaps"
    GAP = "gaps"
    MULTIPART = "multipart feature"
    INTERSECTION = "intersecting geometries"
    NOT_COVERED_BY_SEGMENT = "point not covered by segment"
    NOT_COVERED_BY_LINE_ENDS = "point not covered"
    LINE_ENDS_NOT_COVERED = "line ends not covered by point"
    POINT_NOT_IN_POLYGON = "point not in polygon"
    POLYGON_MISSING_POINT = "polygon does not contain point"


@dataclass(frozen=True)
class Rectangle:
    """Axis-aligned bounding rectangle."""

    xmin: float
    ymin: float
    xmax: float
    ymax: float

    @classmethod
    def from_geometry(cls, geometry: BaseGeometry) -> "Rectangle":
        xmin, ymin, xmax, ymax = geometry.bounds
        return cls(xmin, ymin, xmax, ymax)

    @property
    def width(self) -> float:
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        return self.ymax - self.ymin

    def combine(self, other: "Rectangle") -> "Rectangle":
        """Smallest rectangle covering both rectangles."""
        return Rectangle(
            min(self.xmin, other.xmin),
            min(self.ymin, other.ymin),
            max(self.xmax, other.xmax),
            max(self.ymax, other.ymax),
        )

    def contains(self, other: "Rectangle") -> bool:
        return (
            self.xmin <= other.xmin
            and self.ymin <= other.ymin
            and self.xmax >= other.xmax
            and self.ymax >= other.ymax
        )

    def to_polygon(self) -> Polygon:
        return box(self.xmin, self.ymin, self.xmax, self.ymax)

    def to_query_geometry(self) -> BaseGeometry:
        """Geometry whose envelope is exactly this rectangle.

        Corner points stay well-formed when the rectangle is degenerate,
        e.g. the bounding box of a single point.
        """
        return MultiPoint([(self.xmin, self.ymin), (self.xmax, self.ymax)])

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.xmin, self.ymin, self.xmax, self.ymax)


@dataclass(frozen=True)
class Feature:
    """A single feature: stable id, geometry (possibly null) and attributes."""

    id: int
    geometry: Optional[BaseGeometry]
    attributes: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def has_geometry(self) -> bool:
        return self.geometry is not None


@dataclass(frozen=True)
class FeatureLayer:
    """A feature together with the layer it was read from.

    ``feature`` is None for errors that concern a layer as a whole (gaps).
    """

    layer: "VectorLayer"
    feature: Optional[Feature] = None

    @property
    def feature_id(self) -> Optional[int]:
        return self.feature.id if self.feature is not None else None

    @property
    def geometry(self) -> Optional[BaseGeometry]:
        return self.feature.geometry if self.feature is not None else None


@dataclass(frozen=True)
class TopologyError:
    """One located topology violation."""

    kind: ErrorKind
    bbox: Rectangle
    conflict_geometry: BaseGeometry
    feature_pairs: tuple[FeatureLayer, ...]

    @property
    def name(self) -> str:
        return self.kind.value

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "error": self.kind.value,
            "bbox": list(self.bbox.as_tuple()),
            "conflict_geometry": mapping(self.conflict_geometry),
            "features": [
                {
                    "layer": fl.layer.name,
                    "layer_id": fl.layer.layer_id,
                    "feature_id": fl.feature_id,
                }
                for fl in self.feature_pairs
            ],
        }

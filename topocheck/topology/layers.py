"""In-memory vector layers acting as the feature store for topology runs."""

import logging
import uuid
from typing import Any, Iterator, Optional

from shapely.errors import ShapelyError
from shapely.geometry import shape
from shapely.geometry.base import BaseGeometry

from topocheck.topology.geometry_utils import geometry_kind
from topocheck.topology.types import Feature, GeometryKind, Rectangle

logger = logging.getLogger(__name__)


class VectorLayer:
    """A named, typed collection of features.

    Features are kept in insertion order, which is also the iteration order
    used to build working sets. ``layer_id`` is the stable identity used to
    key spatial indexes; two layer objects with the same id are the same
    layer.
    """

    def __init__(
        self,
        name: str,
        geometry_kind: Optional[GeometryKind] = None,
        layer_id: Optional[str] = None,
    ):
        self.name = name
        self.layer_id = layer_id or str(uuid.uuid4())
        self._geometry_kind = geometry_kind
        self._features: dict[int, Feature] = {}

    def __len__(self) -> int:
        return len(self._features)

    def __iter__(self) -> Iterator[Feature]:
        return iter(self._features.values())

    def __repr__(self) -> str:
        return f"VectorLayer(name={self.name!r}, kind={self.geometry_kind.value}, features={len(self)})"

    @property
    def geometry_kind(self) -> GeometryKind:
        """Declared kind, or the kind of the first feature with a geometry."""
        if self._geometry_kind is not None:
            return self._geometry_kind
        for feature in self._features.values():
            kind = geometry_kind(feature.geometry)
            if kind != GeometryKind.UNKNOWN:
                return kind
        return GeometryKind.UNKNOWN

    def add_feature(
        self,
        geometry: Optional[BaseGeometry],
        attributes: Optional[dict[str, Any]] = None,
        fid: Optional[int] = None,
    ) -> Feature:
        """Append a feature; ids are assigned sequentially when not given."""
        if fid is None:
            fid = max(self._features, default=0) + 1
        if fid in self._features:
            raise ValueError(f"Duplicate feature id {fid} in layer '{self.name}'")

        feature = Feature(id=fid, geometry=geometry, attributes=dict(attributes or {}))
        self._features[fid] = feature
        return feature

    def get_feature(self, fid: int) -> Optional[Feature]:
        return self._features.get(fid)

    def get_features(self, extent: Optional[Rectangle] = None) -> Iterator[Feature]:
        """Iterate features, optionally only those intersecting ``extent``.

        The extent filter is exact: a feature is returned when its geometry
        intersects the extent rectangle, not merely its bounding box.
        Features without a geometry never match an extent.
        """
        if extent is None:
            yield from self._features.values()
            return

        extent_polygon = extent.to_polygon()
        for feature in self._features.values():
            geometry = feature.geometry
            if geometry is None or geometry.is_empty:
                continue
            if extent_polygon.intersects(geometry):
                yield feature

    @classmethod
    def from_features(
        cls,
        name: str,
        geometries: list[Optional[BaseGeometry]],
        geometry_kind: Optional[GeometryKind] = None,
        layer_id: Optional[str] = None,
    ) -> "VectorLayer":
        """Build a layer from bare geometries, numbering features from 1."""
        layer = cls(name, geometry_kind=geometry_kind, layer_id=layer_id)
        for geometry in geometries:
            layer.add_feature(geometry)
        return layer

    @classmethod
    def from_geojson(
        cls,
        name: str,
        collection: dict[str, Any],
        geometry_kind: Optional[GeometryKind] = None,
        layer_id: Optional[str] = None,
    ) -> "VectorLayer":
        """Build a layer from a GeoJSON FeatureCollection dict.

        Integer feature ids are kept; other features are numbered after the
        highest integer id anywhere in the collection, in collection order.

        Raises:
            ValueError: if the collection or one of its geometries is malformed,
                or an integer id repeats
        """
        if collection.get("type") != "FeatureCollection":
            raise ValueError("GeoJSON input must be a FeatureCollection")

        parsed: list[tuple[Optional[int], Optional[BaseGeometry], dict[str, Any]]] = []
        for index, item in enumerate(collection.get("features", [])):
            raw_geometry = item.get("geometry")
            try:
                geometry = shape(raw_geometry) if raw_geometry else None
            except (ShapelyError, AttributeError, KeyError, TypeError, ValueError) as e:
                raise ValueError(f"feature[{index}]: invalid geometry: {e}") from e

            raw_id = item.get("id")
            fid = raw_id if isinstance(raw_id, int) and not isinstance(raw_id, bool) else None
            parsed.append((fid, geometry, item.get("properties") or {}))

        # Auto ids start past every explicit id so none can be taken early.
        next_id = max((fid for fid, _, _ in parsed if fid is not None), default=0) + 1
        layer = cls(name, geometry_kind=geometry_kind, layer_id=layer_id)
        for fid, geometry, properties in parsed:
            if fid is None:
                fid = next_id
                next_id += 1
            layer.add_feature(geometry, properties, fid=fid)

        logger.debug(f"Loaded {len(layer)} features into layer '{name}' ({layer.geometry_kind.value})")
        return layer

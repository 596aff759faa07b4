"""Rectangle-keyed spatial index over feature ids, backed by a Shapely STRtree."""

from typing import Iterable

from shapely.strtree import STRtree

from topocheck.topology.types import Feature, Rectangle


class SpatialIndex:
    """Maps feature bounding boxes to feature ids.

    STRtree is immutable once built, so features are collected with
    ``insert_feature`` and the tree is packed lazily on the first query.
    """

    def __init__(self):
        self._ids: list[int] = []
        self._geometries: list = []
        self._tree: STRtree | None = None

    def __len__(self) -> int:
        return len(self._ids)

    @classmethod
    def build(cls, features: Iterable[Feature]) -> "SpatialIndex":
        index = cls()
        for feature in features:
            index.insert_feature(feature)
        return index

    def insert_feature(self, feature: Feature) -> None:
        if feature.geometry is None or feature.geometry.is_empty:
            return
        self._ids.append(feature.id)
        self._geometries.append(feature.geometry)
        self._tree = None

    def intersects(self, rect: Rectangle) -> list[int]:
        """Ids of features whose bounding box intersects ``rect``."""
        if not self._ids:
            return []
        if self._tree is None:
            self._tree = STRtree(self._geometries)

        hits = self._tree.query(rect.to_query_geometry())
        return [self._ids[i] for i in sorted(hits)]

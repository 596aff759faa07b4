"""Per-run state for topology checks.

A ``RunContext`` owns the working sets and the spatial index cache of a
single ``run_test`` call. The engine creates a fresh one for every run, so
nothing prepared for one run (including indexes of since-edited layers) can
leak into the next.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, Optional, TypeVar

from shapely.geometry import Polygon

from topocheck.topology.layers import VectorLayer
from topocheck.topology.spatial_index import SpatialIndex
from topocheck.topology.types import FeatureLayer, Rectangle

logger = logging.getLogger(__name__)

T = TypeVar("T")

ProgressCallback = Callable[[int], None]


class CancellationToken:
    """Cooperative cancellation flag shared between the engine and a run.

    ``consume`` reports a pending cancellation once and clears it, so a
    later run starts uncanceled.
    """

    def __init__(self):
        self._canceled = False

    def cancel(self) -> None:
        self._canceled = True

    @property
    def is_set(self) -> bool:
        return self._canceled

    def consume(self) -> bool:
        if self._canceled:
            self._canceled = False
            return True
        return False


@dataclass
class RunContext:
    """Working sets, index cache and progress/cancel plumbing for one run."""

    token: CancellationToken = field(default_factory=CancellationToken)
    extent: Optional[Rectangle] = None
    progress_interval: int = 100
    gap_buffer_distance: float = 2.0
    gap_buffer_quad_segs: int = 3
    progress_callbacks: list[ProgressCallback] = field(default_factory=list)

    feature_list1: list[FeatureLayer] = field(default_factory=list)
    feature_map2: dict[int, FeatureLayer] = field(default_factory=dict)
    layer_indexes: dict[str, SpatialIndex] = field(default_factory=dict)
    canceled: bool = False
    processed: int = 0

    @property
    def extent_polygon(self) -> Optional[Polygon]:
        return self.extent.to_polygon() if self.extent is not None else None

    def emit_progress(self, count: int) -> None:
        for callback in self.progress_callbacks:
            callback(count)

    def is_canceled(self) -> bool:
        return self.token.consume()

    def scan(self, items: Iterable[T]) -> Iterator[T]:
        """Yield primary items, reporting progress and honouring cancellation.

        Progress is emitted every ``progress_interval`` items, counted across
        all scans of the run so an index build and the check after it report
        one increasing sequence. Iteration stops at the first check point
        after a cancellation request; whatever the caller accumulated so far
        is its partial result.
        """
        for count, item in enumerate(items, start=1):
            self.processed += 1
            if self.processed % self.progress_interval == 0:
                self.emit_progress(self.processed)
            if self.is_canceled():
                self.canceled = True
                logger.info(f"Topology run canceled after {count - 1} features")
                return
            yield item

    def fill_feature_list(self, layer: VectorLayer, extent: Optional[Rectangle] = None) -> None:
        """Populate Working Set 1 with the layer's features that have a geometry."""
        for feature in layer.get_features(extent):
            if feature.has_geometry:
                self.feature_list1.append(FeatureLayer(layer, feature))

    def create_index(
        self, layer: VectorLayer, extent: Optional[Rectangle] = None
    ) -> Optional[SpatialIndex]:
        """Build a spatial index for ``layer``, filling Working Set 2 as a side effect.

        Returns None when the run was canceled while indexing.
        """
        index = SpatialIndex()
        for feature in self.scan(layer.get_features(extent)):
            if feature.has_geometry:
                index.insert_feature(feature)
                self.feature_map2[feature.id] = FeatureLayer(layer, feature)

        if self.canceled:
            return None
        return index

    def ensure_index(
        self, layer: VectorLayer, extent: Optional[Rectangle] = None
    ) -> Optional[SpatialIndex]:
        """Return the cached index for ``layer``, building it on first use."""
        if layer.layer_id not in self.layer_indexes:
            index = self.create_index(layer, extent)
            if index is None:
                return None
            self.layer_indexes[layer.layer_id] = index
        return self.layer_indexes[layer.layer_id]

    def index_for(self, layer: VectorLayer) -> Optional[SpatialIndex]:
        return self.layer_indexes.get(layer.layer_id)

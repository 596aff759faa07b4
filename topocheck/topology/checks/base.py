"""Extent clipping policy shared by all topology checks."""

import logging
from typing import Optional

from shapely.errors import GEOSException
from shapely.geometry import Polygon
from shapely.geometry.base import BaseGeometry
from shapely.validation import make_valid

from topocheck.topology.geometry_utils import is_convertible
from topocheck.topology.types import FeatureLayer

logger = logging.getLogger(__name__)


def clip_to_extent(
    conflict: BaseGeometry,
    extent_polygon: Optional[Polygon],
) -> Optional[BaseGeometry]:
    """Restrict a conflict geometry to the current view extent.

    Returns None when the conflict lies entirely outside the extent and the
    error should be suppressed, the intersection with the extent when the
    conflict reaches past it, and the conflict unchanged otherwise. A conflict
    GEOS cannot clip (e.g. a self-intersecting ring) is repaired with
    ``make_valid`` first; if that fails too the error is suppressed.
    """
    if extent_polygon is None:
        return conflict
    try:
        return _clip(conflict, extent_polygon)
    except GEOSException as e:
        logger.info(f"Clipping an invalid conflict geometry after repair: {e}")
    try:
        return _clip(make_valid(conflict), extent_polygon)
    except GEOSException as e:
        logger.warning(f"Conflict geometry could not be clipped to the extent: {e}")
        return None


def _clip(conflict: BaseGeometry, extent_polygon: Polygon) -> Optional[BaseGeometry]:
    if extent_polygon.disjoint(conflict):
        return None
    if not extent_polygon.contains(conflict):
        clipped = conflict.intersection(extent_polygon)
        if clipped.is_empty:
            return None
        return clipped
    return conflict


def point_in_extent(
    conflict: BaseGeometry,
    extent_polygon: Optional[Polygon],
) -> Optional[BaseGeometry]:
    """Disjoint suppression only; point conflicts are never clipped."""
    if extent_polygon is not None and extent_polygon.disjoint(conflict):
        return None
    return conflict


def usable_geometry(
    feature_layer: FeatureLayer,
    test_name: str,
    role: str = "first",
) -> Optional[BaseGeometry]:
    """Geometry of a working-set entry, or None (logged) when it cannot be used."""
    geometry = feature_layer.geometry
    if geometry is None:
        logger.info(f"Missing {role} geometry of feature {feature_layer.feature_id} in {test_name} test")
        return None
    if not is_convertible(geometry):
        logger.info(f"Skipping unusable {role} geometry of feature {feature_layer.feature_id} in {test_name} test")
        return None
    return geometry

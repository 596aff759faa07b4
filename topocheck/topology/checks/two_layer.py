"""Topology checks relating the features of one layer to those of another.

Working Set 1 holds the features of ``layer1``; candidates from ``layer2``
come from its spatial index and Working Set 2.
"""

import logging
from typing import Callable, Iterator, Optional

from shapely.errors import GEOSException
from shapely.geometry.base import BaseGeometry

from topocheck.topology.checks.base import clip_to_extent, point_in_extent, usable_geometry
from topocheck.topology.context import RunContext
from topocheck.topology.geometry_utils import endpoint_geometries
from topocheck.topology.layers import VectorLayer
from topocheck.topology.spatial_index import SpatialIndex
from topocheck.topology.types import (
    ErrorKind,
    FeatureLayer,
    GeometryKind,
    Rectangle,
    TopologyError,
)

logger = logging.getLogger(__name__)


def _holds(predicate: Callable[[BaseGeometry], bool], other: BaseGeometry, test_name: str) -> bool:
    try:
        return predicate(other)
    except GEOSException as e:
        logger.warning(f"Predicate failed in {test_name} test: {e}")
        return False


def _second_layer_index(
    ctx: RunContext, layer2: VectorLayer, test_name: str
) -> Optional[SpatialIndex]:
    index = ctx.index_for(layer2)
    if index is None:
        logger.warning(f"No spatial index for layer '{layer2.name}' in {test_name} test")
    return index


def _candidates(
    ctx: RunContext,
    index: SpatialIndex,
    bbox: Rectangle,
    test_name: str,
) -> Iterator[tuple[FeatureLayer, BaseGeometry]]:
    """Second-layer features whose bounding box intersects ``bbox``."""
    for candidate_id in index.intersects(bbox):
        candidate = ctx.feature_map2[candidate_id]
        geometry = usable_geometry(candidate, test_name, role="second")
        if geometry is not None:
            yield candidate, geometry


def check_overlap_with_layer(
    ctx: RunContext,
    layer1: VectorLayer,
    layer2: VectorLayer,
    is_extent: bool,
) -> list[TopologyError]:
    """Polygons of layer1 overlapping polygons of layer2."""
    errors: list[TopologyError] = []
    if layer1.geometry_kind != GeometryKind.POLYGON or layer2.geometry_kind != GeometryKind.POLYGON:
        return errors

    index = _second_layer_index(ctx, layer2, "overlap with layer")
    if index is None:
        return errors

    skip_itself = layer1.layer_id == layer2.layer_id
    extent_polygon = ctx.extent_polygon if is_extent else None

    for current in ctx.scan(ctx.feature_list1):
        g1 = usable_geometry(current, "overlap with layer")
        if g1 is None:
            continue
        if not g1.is_valid:
            logger.debug(f"Skipping invalid geometry of feature {current.feature_id} in overlap with layer test")
            continue
        bbox = Rectangle.from_geometry(g1)

        for candidate, g2 in _candidates(ctx, index, bbox, "overlap with layer"):
            if skip_itself and candidate.feature_id == current.feature_id:
                continue
            if not g2.is_valid:
                logger.info(f"Skipping invalid second geometry of feature {candidate.feature_id} in overlap with layer test")
                continue
            if not _holds(g1.overlaps, g2, "overlap with layer"):
                continue

            try:
                conflict = g1.intersection(g2)
            except GEOSException as e:
                logger.warning(f"Intersection failed in overlap with layer test: {e}")
                continue
            if conflict.is_empty:
                continue
            conflict = clip_to_extent(conflict, extent_polygon)
            if conflict is None:
                continue

            errors.append(
                TopologyError(
                    kind=ErrorKind.INTERSECTION,
                    bbox=bbox.combine(Rectangle.from_geometry(g2)),
                    conflict_geometry=conflict,
                    feature_pairs=(current, candidate),
                )
            )

    return errors


def check_point_covered_by_segment(
    ctx: RunContext,
    layer1: VectorLayer,
    layer2: VectorLayer,
    is_extent: bool,
) -> list[TopologyError]:
    """Points that touch no line or polygon of layer2."""
    errors: list[TopologyError] = []
    if layer1.geometry_kind != GeometryKind.POINT:
        return errors
    if layer2.geometry_kind not in (GeometryKind.LINE, GeometryKind.POLYGON):
        return errors

    index = _second_layer_index(ctx, layer2, "covering")
    if index is None:
        return errors

    extent_polygon = ctx.extent_polygon if is_extent else None

    for current in ctx.scan(ctx.feature_list1):
        g1 = usable_geometry(current, "covering")
        if g1 is None:
            continue
        bbox = Rectangle.from_geometry(g1)

        touched = any(
            _holds(g1.touches, g2, "covering")
            for _, g2 in _candidates(ctx, index, bbox, "covering")
        )
        if touched:
            continue

        conflict = point_in_extent(g1, extent_polygon)
        if conflict is None:
            continue

        errors.append(
            TopologyError(
                kind=ErrorKind.NOT_COVERED_BY_SEGMENT,
                bbox=bbox,
                conflict_geometry=conflict,
                feature_pairs=(current, current),
            )
        )

    return errors


def check_point_covered_by_line_ends(
    ctx: RunContext,
    layer1: VectorLayer,
    layer2: VectorLayer,
    is_extent: bool,
) -> list[TopologyError]:
    """Points that coincide with no start or end point of a line in layer2."""
    errors: list[TopologyError] = []
    if layer1.geometry_kind != GeometryKind.POINT or layer2.geometry_kind != GeometryKind.LINE:
        return errors

    index = _second_layer_index(ctx, layer2, "point covered by line ends")
    if index is None:
        return errors

    extent_polygon = ctx.extent_polygon if is_extent else None

    for current in ctx.scan(ctx.feature_list1):
        g1 = usable_geometry(current, "point covered by line ends")
        if g1 is None:
            continue
        bbox = Rectangle.from_geometry(g1)

        touched = False
        for _, g2 in _candidates(ctx, index, bbox, "point covered by line ends"):
            if any(_holds(g1.intersects, end, "point covered by line ends") for end in endpoint_geometries(g2)):
                touched = True
                break
        if touched:
            continue

        conflict = point_in_extent(g1, extent_polygon)
        if conflict is None:
            continue

        errors.append(
            TopologyError(
                kind=ErrorKind.NOT_COVERED_BY_LINE_ENDS,
                bbox=bbox,
                conflict_geometry=conflict,
                feature_pairs=(current, current),
            )
        )

    return errors


def check_line_ends_covered_by_points(
    ctx: RunContext,
    layer1: VectorLayer,
    layer2: VectorLayer,
    is_extent: bool,
) -> list[TopologyError]:
    """Lines whose start and end are not each covered by some point of layer2.

    The two ends are covered independently; one point feature need not cover
    both. Every part of a multi-line must have both of its ends covered.
    """
    errors: list[TopologyError] = []
    if layer1.geometry_kind != GeometryKind.LINE or layer2.geometry_kind != GeometryKind.POINT:
        return errors

    index = _second_layer_index(ctx, layer2, "line ends covered by points")
    if index is None:
        return errors

    extent_polygon = ctx.extent_polygon if is_extent else None

    for current in ctx.scan(ctx.feature_list1):
        g1 = usable_geometry(current, "line ends covered by points")
        if g1 is None:
            continue

        ends = endpoint_geometries(g1)
        if not ends:
            logger.info(f"Skipping non-line geometry of feature {current.feature_id} in line ends test")
            continue
        bbox = Rectangle.from_geometry(g1)

        covered = [False] * len(ends)
        for _, g2 in _candidates(ctx, index, bbox, "line ends covered by points"):
            for i, end in enumerate(ends):
                if not covered[i] and _holds(g2.intersects, end, "line ends covered by points"):
                    covered[i] = True
            if all(covered):
                break
        if all(covered):
            continue

        conflict = clip_to_extent(g1, extent_polygon)
        if conflict is None:
            continue

        errors.append(
            TopologyError(
                kind=ErrorKind.LINE_ENDS_NOT_COVERED,
                bbox=bbox,
                conflict_geometry=conflict,
                feature_pairs=(current, current),
            )
        )

    return errors


def check_point_in_polygon(
    ctx: RunContext,
    layer1: VectorLayer,
    layer2: VectorLayer,
    is_extent: bool,
) -> list[TopologyError]:
    """Points not contained by any polygon of layer2."""
    errors: list[TopologyError] = []
    if layer1.geometry_kind != GeometryKind.POINT or layer2.geometry_kind != GeometryKind.POLYGON:
        return errors

    index = _second_layer_index(ctx, layer2, "point in polygon")
    if index is None:
        return errors

    extent_polygon = ctx.extent_polygon if is_extent else None

    for current in ctx.scan(ctx.feature_list1):
        g1 = usable_geometry(current, "point in polygon")
        if g1 is None:
            continue
        bbox = Rectangle.from_geometry(g1)

        inside = any(
            _holds(g2.contains, g1, "point in polygon")
            for _, g2 in _candidates(ctx, index, bbox, "point in polygon")
        )
        if inside:
            continue

        conflict = point_in_extent(g1, extent_polygon)
        if conflict is None:
            continue

        errors.append(
            TopologyError(
                kind=ErrorKind.POINT_NOT_IN_POLYGON,
                bbox=bbox,
                conflict_geometry=conflict,
                feature_pairs=(current, current),
            )
        )

    return errors


def check_polygon_contains_point(
    ctx: RunContext,
    layer1: VectorLayer,
    layer2: VectorLayer,
    is_extent: bool,
) -> list[TopologyError]:
    """Polygons containing no point of layer2. The extent never clips these."""
    errors: list[TopologyError] = []
    if layer1.geometry_kind != GeometryKind.POLYGON or layer2.geometry_kind != GeometryKind.POINT:
        return errors

    index = _second_layer_index(ctx, layer2, "polygon contains point")
    if index is None:
        return errors

    for current in ctx.scan(ctx.feature_list1):
        g1 = usable_geometry(current, "polygon contains point")
        if g1 is None:
            continue
        bbox = Rectangle.from_geometry(g1)

        contains = any(
            _holds(g1.contains, g2, "polygon contains point")
            for _, g2 in _candidates(ctx, index, bbox, "polygon contains point")
        )
        if contains:
            continue

        errors.append(
            TopologyError(
                kind=ErrorKind.POLYGON_MISSING_POINT,
                bbox=bbox,
                conflict_geometry=g1,
                feature_pairs=(current, current),
            )
        )

    return errors

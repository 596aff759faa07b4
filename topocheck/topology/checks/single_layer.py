"""Topology checks that look at a single layer.

Every check has the signature ``check(ctx, layer1, layer2, is_extent)`` and
returns the errors found in the working sets prepared in ``ctx``; ``layer2``
is ignored.
"""

import logging
from typing import Optional

from shapely.errors import GEOSException
from shapely.geometry import Point
from shapely.ops import unary_union
from shapely.validation import explain_validity

from topocheck.topology.checks.base import clip_to_extent, point_in_extent, usable_geometry
from topocheck.topology.context import RunContext
from topocheck.topology.geometry_utils import (
    Coord,
    is_multipart,
    line_endpoints,
    line_parts,
    polygon_parts,
)
from topocheck.topology.layers import VectorLayer
from topocheck.topology.types import (
    ErrorKind,
    FeatureLayer,
    GeometryKind,
    Rectangle,
    TopologyError,
)

logger = logging.getLogger(__name__)


def check_valid(
    ctx: RunContext,
    layer1: VectorLayer,
    layer2: Optional[VectorLayer],
    is_extent: bool,
) -> list[TopologyError]:
    """One error per feature whose geometry fails the validity predicate."""
    errors: list[TopologyError] = []

    for current in ctx.scan(ctx.feature_list1):
        geometry = usable_geometry(current, "validity")
        if geometry is None:
            continue

        if not geometry.is_valid:
            logger.debug(f"Feature {current.feature_id} is invalid: {explain_validity(geometry)}")
            errors.append(
                TopologyError(
                    kind=ErrorKind.INVALID,
                    bbox=Rectangle.from_geometry(geometry),
                    conflict_geometry=geometry,
                    feature_pairs=(current, current),
                )
            )

    return errors


def check_multipart(
    ctx: RunContext,
    layer1: VectorLayer,
    layer2: Optional[VectorLayer],
    is_extent: bool,
) -> list[TopologyError]:
    """One error per feature stored as a multi-geometry, whatever its part count."""
    errors: list[TopologyError] = []

    for current in ctx.scan(ctx.feature_list1):
        geometry = usable_geometry(current, "multipart")
        if geometry is None:
            continue

        if is_multipart(geometry):
            errors.append(
                TopologyError(
                    kind=ErrorKind.MULTIPART,
                    bbox=Rectangle.from_geometry(geometry),
                    conflict_geometry=geometry,
                    feature_pairs=(current, current),
                )
            )

    return errors


def _collect_end_vertices(ctx: RunContext, test_name: str) -> dict[Coord, list[int]]:
    """Multiset of line endpoints keyed by exact coordinate, valued by feature id.

    Every part of a multi-line contributes its own two endpoints. Keys are
    compared with exact float equality; near-coincident endpoints stay
    distinct.
    """
    end_vertices: dict[Coord, list[int]] = {}

    for current in ctx.scan(ctx.feature_list1):
        geometry = usable_geometry(current, test_name)
        if geometry is None:
            continue

        parts = line_parts(geometry)
        if not parts:
            logger.info(f"Skipping non-line geometry of feature {current.feature_id} in {test_name} test")
            continue

        for part in parts:
            start, end = line_endpoints(part)
            end_vertices.setdefault(start, []).append(current.feature_id)
            end_vertices.setdefault(end, []).append(current.feature_id)

    return end_vertices


def _end_vertex_errors(
    ctx: RunContext,
    layer1: VectorLayer,
    end_vertices: dict[Coord, list[int]],
    multiplicity: int,
    kind: ErrorKind,
    is_extent: bool,
) -> list[TopologyError]:
    errors: list[TopologyError] = []
    extent_polygon = ctx.extent_polygon if is_extent else None

    for coord in sorted(end_vertices):
        feature_ids = end_vertices[coord]
        if len(feature_ids) != multiplicity:
            continue

        conflict = point_in_extent(Point(coord), extent_polygon)
        if conflict is None:
            continue

        reference = FeatureLayer(layer1, layer1.get_feature(feature_ids[0]))
        errors.append(
            TopologyError(
                kind=kind,
                bbox=Rectangle.from_geometry(conflict),
                conflict_geometry=conflict,
                feature_pairs=(reference, reference),
            )
        )

    return errors


def check_dangling_lines(
    ctx: RunContext,
    layer1: VectorLayer,
    layer2: Optional[VectorLayer],
    is_extent: bool,
) -> list[TopologyError]:
    """Line endpoints touched by no other endpoint."""
    if layer1.geometry_kind != GeometryKind.LINE:
        return []

    end_vertices = _collect_end_vertices(ctx, "dangling line")
    return _end_vertex_errors(ctx, layer1, end_vertices, 1, ErrorKind.DANGLE, is_extent)


def check_pseudos(
    ctx: RunContext,
    layer1: VectorLayer,
    layer2: Optional[VectorLayer],
    is_extent: bool,
) -> list[TopologyError]:
    """Nodes where exactly two line endpoints meet and the lines could be merged."""
    if layer1.geometry_kind != GeometryKind.LINE:
        return []

    end_vertices = _collect_end_vertices(ctx, "pseudo line")
    return _end_vertex_errors(ctx, layer1, end_vertices, 2, ErrorKind.PSEUDO, is_extent)


def check_duplicates(
    ctx: RunContext,
    layer1: VectorLayer,
    layer2: Optional[VectorLayer],
    is_extent: bool,
) -> list[TopologyError]:
    """Features whose geometries are exactly equal.

    A feature found as the duplicate of an earlier one is consumed and never
    reported again as the primary of its own pair.
    """
    errors: list[TopologyError] = []
    index = ctx.index_for(layer1)
    if index is None:
        logger.warning(f"No spatial index for layer '{layer1.name}' in duplicate geometry test")
        return errors

    extent_polygon = ctx.extent_polygon if is_extent else None
    duplicate_ids: set[int] = set()

    for current in ctx.scan(list(ctx.feature_map2.values())):
        if current.feature_id in duplicate_ids:
            continue

        g1 = usable_geometry(current, "duplicate geometry")
        if g1 is None:
            continue
        bbox = Rectangle.from_geometry(g1)

        for candidate_id in index.intersects(bbox):
            if candidate_id == current.feature_id:
                continue

            candidate = ctx.feature_map2[candidate_id]
            g2 = usable_geometry(candidate, "duplicate geometry", role="second")
            if g2 is None:
                continue

            try:
                is_duplicate = g1.equals(g2)
            except GEOSException as e:
                logger.warning(f"Equality test failed for features {current.feature_id} and {candidate_id}: {e}")
                continue
            if not is_duplicate:
                continue
            duplicate_ids.add(candidate_id)

            conflict = clip_to_extent(g1, extent_polygon)
            if conflict is None:
                continue

            errors.append(
                TopologyError(
                    kind=ErrorKind.DUPLICATE,
                    bbox=bbox,
                    conflict_geometry=conflict,
                    feature_pairs=(current, candidate),
                )
            )

    return errors


def check_overlaps(
    ctx: RunContext,
    layer1: VectorLayer,
    layer2: Optional[VectorLayer],
    is_extent: bool,
) -> list[TopologyError]:
    """Pairs of polygons sharing interior area without one containing the other."""
    errors: list[TopologyError] = []
    if layer1.geometry_kind != GeometryKind.POLYGON:
        return errors

    index = ctx.index_for(layer1)
    if index is None:
        logger.warning(f"No spatial index for layer '{layer1.name}' in overlaps test")
        return errors

    extent_polygon = ctx.extent_polygon if is_extent else None
    overlapped_ids: set[int] = set()

    for current in ctx.scan(list(ctx.feature_map2.values())):
        if current.feature_id in overlapped_ids:
            continue

        g1 = usable_geometry(current, "overlaps")
        if g1 is None:
            continue
        if not g1.is_valid:
            logger.debug(f"Skipping invalid geometry of feature {current.feature_id} in overlaps test")
            continue
        bbox = Rectangle.from_geometry(g1)

        for candidate_id in index.intersects(bbox):
            if candidate_id == current.feature_id:
                continue

            candidate = ctx.feature_map2[candidate_id]
            g2 = usable_geometry(candidate, "overlaps", role="second")
            if g2 is None:
                continue
            if not g2.is_valid:
                logger.info(f"Skipping invalid second geometry of feature {candidate_id} in overlaps test")
                continue

            if not g1.overlaps(g2):
                continue
            overlapped_ids.add(candidate_id)

            conflict = clip_to_extent(g1.intersection(g2), extent_polygon)
            if conflict is None:
                continue

            errors.append(
                TopologyError(
                    kind=ErrorKind.OVERLAP,
                    bbox=bbox,
                    conflict_geometry=conflict,
                    feature_pairs=(current, candidate),
                )
            )

    return errors


def check_gaps(
    ctx: RunContext,
    layer1: VectorLayer,
    layer2: Optional[VectorLayer],
    is_extent: bool,
) -> list[TopologyError]:
    """Holes left inside the coverage of a polygon layer.

    All valid polygon parts are merged with a cascaded union. The union's
    bounding rectangle, buffered outward, is a frame enclosing everything;
    subtracting the union from the frame leaves the outer ring of the frame
    plus one polygon per interior gap. The outer ring is recognised as the
    part touching the frame's exterior.
    """
    errors: list[TopologyError] = []
    if layer1.geometry_kind != GeometryKind.POLYGON:
        return errors

    parts = []
    for current in ctx.scan(ctx.feature_list1):
        geometry = current.geometry
        if geometry is None or geometry.is_empty:
            continue
        if not geometry.is_valid:
            logger.debug(f"Skipping invalid geometry of feature {current.feature_id} in gaps test")
            continue
        parts.extend(polygon_parts(geometry))

    if not parts:
        return errors

    logger.debug(f"Computing cascaded union of {len(parts)} polygon parts")
    coverage = unary_union(parts)
    if coverage.is_empty:
        return errors

    frame = Rectangle.from_geometry(coverage).to_polygon().buffer(
        ctx.gap_buffer_distance, quad_segs=ctx.gap_buffer_quad_segs
    )
    difference = frame.difference(coverage)
    if difference.is_empty:
        return errors

    frame_ring = frame.exterior
    extent_polygon = ctx.extent_polygon if is_extent else None
    layer_reference = FeatureLayer(layer1)

    for gap in getattr(difference, "geoms", [difference]):
        if gap.is_empty or gap.intersects(frame_ring):
            continue

        conflict = clip_to_extent(gap, extent_polygon)
        if conflict is None:
            continue

        errors.append(
            TopologyError(
                kind=ErrorKind.GAP,
                bbox=Rectangle.from_geometry(conflict),
                conflict_geometry=conflict,
                feature_pairs=(layer_reference, layer_reference),
            )
        )

    return errors

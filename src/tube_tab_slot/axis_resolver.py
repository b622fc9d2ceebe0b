"""
Match a tube body to the construction line it was built along.

The body's dominant cylinder gives an axis direction and a point on the axis.
Candidate lines come first from the tube feature's own sub-tree, then from
every profile feature preceding the tube, most recent first. A candidate must
be near-parallel to the axis AND pass close to the axis point: direction
alone cannot tell apart two parallel tubes side by side.
"""
import logging
from typing import Iterable, Iterator, List, Optional, Tuple

import numpy as np

from tube_tab_slot.contracts import (
    AxisLine,
    BodyRecord,
    FeatureKind,
    FeatureRecord,
    SketchData,
    TabSlotConfig,
    to_vec3,
)
from tube_tab_slot.document import DocumentAdapter, iter_kind
from tube_tab_slot.errors import AxisMatchNotFound
from tube_tab_slot.tube_profile import dominant_cylinder
from tube_tab_slot.vectors import point_line_distance, unit_vector

logger = logging.getLogger(__name__)


def sketch_axis_lines(sketch: SketchData) -> List[AxisLine]:
    """All straight segments of a sketch, converted to model space."""
    lines = []
    for seg in sketch.lines:
        lines.append(AxisLine(
            sketch_name=sketch.name,
            segment_id=seg.segment_id,
            start=to_vec3(sketch.frame.to_model(seg.start)),
            end=to_vec3(sketch.frame.to_model(seg.end)),
        ))
    return lines


def subtree_lines(member: FeatureRecord) -> Iterator[AxisLine]:
    for sub in iter_kind(member.sub_features, FeatureKind.PROFILE):
        if sub.sketch is not None:
            yield from sketch_axis_lines(sub.sketch)


def preceding_lines(member: FeatureRecord, document: DocumentAdapter) -> Iterator[AxisLine]:
    """Lines of profile features created before ``member``, newest first."""
    preceding = list(iter_kind(document.features_before(member.name), FeatureKind.PROFILE))
    for feat in reversed(preceding):
        if feat.sketch is not None:
            yield from sketch_axis_lines(feat.sketch)


def line_matches_axis(
    line: AxisLine,
    axis_direction,
    axis_origin=None,
    config: Optional[TabSlotConfig] = None,
) -> Tuple[bool, bool, float, Optional[float]]:
    """Test one candidate against the body axis.

    Returns (direction_ok, proximity_ok, dot, distance). ``proximity_ok`` is
    False whenever ``axis_origin`` is unknown.
    """
    if config is None:
        config = TabSlotConfig()
    line_dir = line.direction
    dot = abs(float(np.dot(line_dir, unit_vector(axis_direction))))
    if dot < config.direction_cos_threshold:
        return False, False, dot, None
    if axis_origin is None:
        return True, False, dot, None
    distance = point_line_distance(axis_origin, line.start, line_dir)
    return True, distance <= config.axis_proximity_tol_m, dot, distance


def find_matching_line(
    candidates: Iterable[AxisLine],
    axis_direction,
    axis_origin=None,
    config: Optional[TabSlotConfig] = None,
) -> Tuple[Optional[AxisLine], Optional[AxisLine]]:
    """Scan candidates in order.

    Returns (match, fallback): the first line passing both the direction and
    proximity tests, and the first line passing the direction test only.
    Scanning stops at the first full match.
    """
    fallback = None
    for line in candidates:
        direction_ok, proximity_ok, dot, distance = line_matches_axis(
            line, axis_direction, axis_origin, config,
        )
        if not direction_ok:
            logger.debug(
                "%s/%d: direction rejected (dot=%.4f)",
                line.sketch_name, line.segment_id, dot,
            )
            continue
        if proximity_ok:
            logger.debug(
                "%s/%d: match (dot=%.4f, dist=%.6f m)",
                line.sketch_name, line.segment_id, dot, distance,
            )
            return line, fallback
        logger.debug(
            "%s/%d: direction ok (dot=%.4f), proximity rejected (dist=%s)",
            line.sketch_name, line.segment_id, dot,
            "unknown" if distance is None else f"{distance:.6f} m",
        )
        if fallback is None:
            fallback = line
    return None, fallback


def resolve_axis_line(
    body: BodyRecord,
    member: FeatureRecord,
    document: DocumentAdapter,
    config: Optional[TabSlotConfig] = None,
) -> AxisLine:
    """Find the construction line ``body`` was modelled along.

    Raises:
        AxisMatchNotFound: no candidate passes the direction test.
    """
    if config is None:
        config = TabSlotConfig()

    cylinder = dominant_cylinder(body)
    if cylinder is None:
        line = _first_unchecked_line(member, document)
        if line is None:
            raise AxisMatchNotFound(
                f"Body '{body.name}' has no cylindrical face and member "
                f"'{member.name}' has no construction line"
            )
        logger.warning(
            "Body '%s' has no cylindrical face; using unchecked line %s/%d",
            body.name, line.sketch_name, line.segment_id,
        )
        return line

    axis_dir = unit_vector(cylinder.direction)
    axis_origin = np.asarray(cylinder.origin, dtype=float)

    match, sub_fallback = find_matching_line(
        subtree_lines(member), axis_dir, axis_origin, config,
    )
    if match is not None:
        logger.info(
            "Body '%s': axis line %s/%d found in member sub-tree",
            body.name, match.sketch_name, match.segment_id,
        )
        return match

    match, doc_fallback = find_matching_line(
        preceding_lines(member, document), axis_dir, axis_origin, config,
    )
    if match is not None:
        logger.info(
            "Body '%s': axis line %s/%d found in preceding sketches",
            body.name, match.sketch_name, match.segment_id,
        )
        return match

    fallback = sub_fallback if sub_fallback is not None else doc_fallback
    if fallback is not None:
        logger.warning(
            "Body '%s': no line within %.4f m of the axis; using direction-only match %s/%d",
            body.name, config.axis_proximity_tol_m,
            fallback.sketch_name, fallback.segment_id,
        )
        return fallback

    raise AxisMatchNotFound(
        f"Could not find a matching sketch line for body '{body.name}' "
        f"(structural member '{member.name}'). No sketch line passed both "
        f"direction and proximity checks."
    )


def _first_unchecked_line(
    member: FeatureRecord,
    document: DocumentAdapter,
) -> Optional[AxisLine]:
    for line in subtree_lines(member):
        return line
    for line in preceding_lines(member, document):
        return line
    return None

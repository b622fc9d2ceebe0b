"""
Cross-section reference plane for the tab tube, and signed offsets from it.

The plane comes from the tab tube's own sub-tree when one is perpendicular
to the tube axis, otherwise from the document's default planes. Each
placement point is expressed as a signed distance along the plane normal,
then the two points are classified near/far.
"""
import logging
from dataclasses import replace
from typing import Optional, Tuple

import numpy as np

from tube_tab_slot.contracts import (
    FeatureKind,
    FeatureRecord,
    PlacementResult,
    SidePlacement,
    TabSlotConfig,
    to_vec3,
)
from tube_tab_slot.document import DocumentAdapter, iter_kind
from tube_tab_slot.errors import PlaneResolutionFailure
from tube_tab_slot.vectors import unit_vector

logger = logging.getLogger(__name__)


def find_member_plane(
    member: FeatureRecord,
    tab_direction,
    config: Optional[TabSlotConfig] = None,
) -> Optional[FeatureRecord]:
    """Reference plane in ``member``'s sub-tree perpendicular to the tube axis.

    A plane whose frame cannot be read is taken as-is.
    """
    if config is None:
        config = TabSlotConfig()
    axis = unit_vector(tab_direction)
    for plane in iter_kind(member.sub_features, FeatureKind.REFERENCE_PLANE):
        if plane.plane_frame is None:
            logger.warning("Plane '%s' has no readable frame; accepting it unchecked", plane.name)
            return plane
        dot = abs(float(np.dot(unit_vector(plane.plane_frame.z_axis), axis)))
        if dot > config.direction_cos_threshold:
            return plane
        logger.debug("Plane '%s' skipped: normal . axis = %.4f", plane.name, dot)
    return None


def find_default_plane(document: DocumentAdapter, tab_direction) -> Optional[FeatureRecord]:
    """Default plane whose normal is best aligned with the tube axis."""
    axis = unit_vector(tab_direction)
    best_plane = None
    best_dot = 0.0
    for plane in document.default_planes():
        if plane.plane_frame is None:
            continue
        dot = abs(float(np.dot(unit_vector(plane.plane_frame.z_axis), axis)))
        if dot > best_dot:
            best_dot = dot
            best_plane = plane
    return best_plane


def resolve_base_plane(
    member: FeatureRecord,
    tab_direction,
    document: DocumentAdapter,
    config: Optional[TabSlotConfig] = None,
) -> Tuple[FeatureRecord, np.ndarray, np.ndarray]:
    """Return (plane, normal, origin) for the tab cross-section.

    Raises:
        PlaneResolutionFailure: no plane found, or the chosen plane has no frame.
    """
    plane = find_member_plane(member, tab_direction, config)
    if plane is None:
        logger.info("No perpendicular plane under '%s'; trying default planes", member.name)
        plane = find_default_plane(document, tab_direction)
    if plane is None:
        raise PlaneResolutionFailure("Failed to find base plane for tab placement.")

    frame = plane.plane_frame
    if frame is None:
        raise PlaneResolutionFailure(
            f"Base plane '{plane.name}' has no placement frame to measure offsets from."
        )
    return plane, unit_vector(frame.z_axis), np.asarray(frame.origin, dtype=float)


def apply_plane_offsets(
    placement: PlacementResult,
    normal,
    origin,
) -> PlacementResult:
    """Attach the plane and each point's signed offset along ``normal``."""
    normal = np.asarray(normal, dtype=float)
    origin = np.asarray(origin, dtype=float)
    offset1 = float(np.dot(np.asarray(placement.point1) - origin, normal))
    offset2 = float(np.dot(np.asarray(placement.point2) - origin, normal))
    return replace(
        placement,
        plane_normal=to_vec3(normal),
        plane_origin=to_vec3(origin),
        offset1=offset1,
        offset2=offset2,
    )


def classify_sides(
    placement: PlacementResult,
    config: Optional[TabSlotConfig] = None,
) -> Tuple[SidePlacement, SidePlacement]:
    """Split the two placement points into (near, far).

    The point closer to the slot-axis crossing midpoint, measured along the
    plane normal, is near. The fixed offset correction is added to both.
    """
    if config is None:
        config = TabSlotConfig()
    if placement.plane_normal is None or placement.offset1 is None:
        raise PlaneResolutionFailure("Placement has no plane offsets; resolve the base plane first.")

    normal = np.asarray(placement.plane_normal)
    midpoint = placement.crossing_midpoint
    dist1 = abs(float(np.dot(np.asarray(placement.point1) - midpoint, normal)))
    dist2 = abs(float(np.dot(np.asarray(placement.point2) - midpoint, normal)))

    first = (placement.point1, placement.offset1 + config.plane_offset_correction_m)
    second = (placement.point2, placement.offset2 + config.plane_offset_correction_m)
    if dist1 > dist2:
        first, second = second, first

    near = SidePlacement(far_side=False, point=first[0], start_offset=first[1])
    far = SidePlacement(far_side=True, point=second[0], start_offset=second[1])
    return near, far

"""
Tab and slot cross-section profiles.

A profile is a short annular sector on the base plane: outer arc, inner arc
and two radial lines joining matching endpoints. The sector is centred on
the direction of the slot tube projected into the plane (the line where the
plane containing both tube axes meets the base plane); the far side sits
half a turn round from the near side.

The slot variant is grown by the clearance radially and angularly so the tab
always fits inside it.
"""
import math
from typing import Dict, Optional

import numpy as np
from shapely.geometry import Polygon

from tube_tab_slot.contracts import (
    Arc2D,
    FeatureRecord,
    Frame,
    ProfileGeometry,
    Segment2D,
    TabSlotConfig,
    Vec2,
    to_vec3,
)
from tube_tab_slot.document import DocumentAdapter


def profile_base_angle(frame: Frame, slot_direction, far_side: bool) -> float:
    """Angle of the projected slot direction in the plane's 2D frame."""
    local = frame.to_local_direction(slot_direction)
    angle = math.atan2(float(local[1]), float(local[0]))
    if far_side:
        angle += math.pi
    return angle


def generate_profile(
    frame: Frame,
    center,
    outer_radius: float,
    wall_thickness: float,
    slot_direction,
    far_side: bool,
    clearance: float = 0.0,
    config: Optional[TabSlotConfig] = None,
) -> ProfileGeometry:
    """Build the arc+line boundary on the plane described by ``frame``.

    Args:
        frame: Base plane placement (sketch frame).
        center: Tube centre in model space; projected into the plane.
        outer_radius: Tube outer radius.
        wall_thickness: Tube wall thickness.
        slot_direction: Slot tube axis direction in model space.
        far_side: Put the sector opposite the projected slot direction.
        clearance: 0 for the tab boss, the slot clearance for the cut.
        config: Arc width and defaults.

    Returns:
        ProfileGeometry in plane-local 2D coordinates.
    """
    if config is None:
        config = TabSlotConfig()

    local_center = frame.to_local(center)
    cx, cy = float(local_center[0]), float(local_center[1])
    base_angle = profile_base_angle(frame, slot_direction, far_side)

    outer = outer_radius + clearance
    inner = (outer_radius - wall_thickness) - clearance
    half_angle = (config.tab_arc_width_m / 2.0) / outer_radius
    if clearance > 0:
        half_angle = max(
            half_angle,
            (config.tab_arc_width_m / 2.0 + clearance) / outer,
        )

    outer_arc = Arc2D(outer, base_angle - half_angle, base_angle + half_angle)
    inner_arc = Arc2D(inner, base_angle - half_angle, base_angle + half_angle)
    c = (cx, cy)
    lines = (
        Segment2D(outer_arc.start_point(c), inner_arc.start_point(c)),
        Segment2D(outer_arc.end_point(c), inner_arc.end_point(c)),
    )
    return ProfileGeometry(
        center=c,
        outer_arc=outer_arc,
        inner_arc=inner_arc,
        lines=lines,
        far_side=far_side,
        clearance=clearance,
    )


def generate_tab_and_slot(
    frame: Frame,
    center,
    outer_radius: float,
    wall_thickness: float,
    slot_direction,
    far_side: bool,
    config: Optional[TabSlotConfig] = None,
):
    """Return (tab_profile, slot_profile) for one side."""
    if config is None:
        config = TabSlotConfig()
    tab = generate_profile(
        frame, center, outer_radius, wall_thickness, slot_direction,
        far_side, clearance=0.0, config=config,
    )
    slot = generate_profile(
        frame, center, outer_radius, wall_thickness, slot_direction,
        far_side, clearance=config.slot_clearance_m, config=config,
    )
    return tab, slot


def sector_polygon(
    center: Vec2,
    outer_radius: float,
    inner_radius: float,
    start_angle: float,
    end_angle: float,
    segments: int = 16,
) -> Polygon:
    """Shapely polygon of an annular sector, arcs sampled counter-clockwise."""
    angles = np.linspace(start_angle, end_angle, segments + 1)
    outer = [
        (center[0] + outer_radius * math.cos(a), center[1] + outer_radius * math.sin(a))
        for a in angles
    ]
    inner = [
        (center[0] + inner_radius * math.cos(a), center[1] + inner_radius * math.sin(a))
        for a in angles[::-1]
    ]
    return Polygon(outer + inner)


def profile_polygon(profile: ProfileGeometry, segments: int = 16) -> Polygon:
    return sector_polygon(
        profile.center,
        profile.outer_arc.radius,
        profile.inner_arc.radius,
        profile.outer_arc.start_angle,
        profile.outer_arc.end_angle,
        segments,
    )


def profile_model_points(profile: ProfileGeometry, frame: Frame) -> Dict[str, tuple]:
    """Centre and arc endpoints lifted back to model space."""
    c = profile.center
    local = {
        "center": c,
        "outer_start": profile.outer_arc.start_point(c),
        "outer_end": profile.outer_arc.end_point(c),
        "inner_start": profile.inner_arc.start_point(c),
        "inner_end": profile.inner_arc.end_point(c),
    }
    return {k: to_vec3(frame.to_model((v[0], v[1], 0.0))) for k, v in local.items()}


def draw_profile(
    document: DocumentAdapter,
    plane: FeatureRecord,
    profile: ProfileGeometry,
) -> str:
    """Issue the sketch commands for ``profile`` on ``plane``; returns the sketch name."""
    c = profile.center
    document.begin_sketch(plane)
    document.add_arc(c, profile.outer_arc.start_point(c), profile.outer_arc.end_point(c))
    document.add_arc(c, profile.inner_arc.start_point(c), profile.inner_arc.end_point(c))
    for line in profile.lines:
        document.add_line(line.start, line.end)
    return document.end_sketch()

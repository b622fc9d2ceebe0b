"""
Tab placement points at the crossing of two tube axes.

Pure geometry: no document access. Near-parallel tubes are clamped through a
floor on the sine of the crossing angle rather than rejected, so the result
is always finite.
"""
import logging
from typing import Optional, Tuple

import numpy as np

from tube_tab_slot.contracts import AxisLine, PlacementResult, TabSlotConfig, to_vec3
from tube_tab_slot.vectors import closest_approach_midpoint, unit_vector

logger = logging.getLogger(__name__)


def crossing_factors(
    tab_dir,
    slot_dir,
    tab_radius: float,
    slot_radius: float,
    min_sin_angle: float = 1e-10,
) -> Tuple[float, float, float]:
    """Return (sin_angle, half_length, tab_shift).

    ``half_length`` runs along the slot axis from the closest-approach point
    to the tab tube's outer surface. ``tab_shift`` moves the result back along
    the tab axis. It divides by the sine as well: the value standing in for
    the complementary cosine is the sine itself.
    """
    sin_angle = float(np.linalg.norm(np.cross(tab_dir, slot_dir)))
    if sin_angle < min_sin_angle:
        sin_angle = min_sin_angle
    cos_angle = sin_angle
    half_length = tab_radius / sin_angle
    tab_shift = slot_radius / cos_angle if cos_angle > min_sin_angle else 0.0
    return sin_angle, half_length, tab_shift


def solve_placement(
    tab_axis: AxisLine,
    slot_axis: AxisLine,
    tab_radius: float,
    slot_radius: float,
    config: Optional[TabSlotConfig] = None,
) -> PlacementResult:
    """Compute the near/far placement points for a tab on ``tab_axis``.

    For sign -1 (point1) and +1 (point2)::

        slot_axis_point = closest + sign * half_length * slot_dir
        point           = slot_axis_point - tab_shift * tab_dir
    """
    if config is None:
        config = TabSlotConfig()

    tab_start = np.asarray(tab_axis.start, dtype=float)
    slot_start = np.asarray(slot_axis.start, dtype=float)
    tab_dir = unit_vector(np.asarray(tab_axis.end) - tab_start)
    slot_dir = unit_vector(np.asarray(slot_axis.end) - slot_start)

    closest = closest_approach_midpoint(tab_start, tab_dir, slot_start, slot_dir)
    sin_angle, half_length, tab_shift = crossing_factors(
        tab_dir, slot_dir, tab_radius, slot_radius, config.min_sin_angle,
    )

    slot_points = []
    points = []
    for sign in (-1.0, 1.0):
        slot_axis_point = closest + slot_dir * (sign * half_length)
        slot_points.append(slot_axis_point)
        points.append(slot_axis_point - tab_dir * tab_shift)

    logger.debug(
        "Placement: tab_r=%.3f mm slot_r=%.3f mm sin=%.6f half_len=%.3f mm tab_shift=%.3f mm",
        tab_radius * 1000.0, slot_radius * 1000.0, sin_angle,
        half_length * 1000.0, tab_shift * 1000.0,
    )

    return PlacementResult(
        point1=to_vec3(points[0]),
        point2=to_vec3(points[1]),
        slot_axis_point1=to_vec3(slot_points[0]),
        slot_axis_point2=to_vec3(slot_points[1]),
        slot_direction=to_vec3(slot_dir),
        sin_angle=sin_angle,
        half_length=half_length,
        tab_shift=tab_shift,
    )

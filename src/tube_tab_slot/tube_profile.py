"""Tube radius and wall thickness from a body's cylindrical faces."""
import logging
from typing import Optional, Tuple

import numpy as np

from tube_tab_slot.contracts import BodyRecord, CylinderSurface, TabSlotConfig, TubeDescriptor
from tube_tab_slot.errors import TubeProfileNotFound

logger = logging.getLogger(__name__)


def dominant_cylinder(body: BodyRecord) -> Optional[CylinderSurface]:
    """Cylindrical surface of the largest-area cylindrical face, if any."""
    best = None
    best_area = 0.0
    for face in body.cylinders:
        if face.area > best_area:
            best = face.cylinder
            best_area = face.area
    return best


def extract_tube_profile(
    body: BodyRecord,
    config: Optional[TabSlotConfig] = None,
) -> Tuple[float, float]:
    """Return (outer_radius, wall_thickness) for a tube body.

    Outer radius is the largest cylinder radius on the body. Wall thickness is
    the spread between largest and smallest radius; a body with a single
    radius gets ``config.default_wall_thickness_m`` as an approximation.
    """
    if config is None:
        config = TabSlotConfig()

    radii = [f.cylinder.radius for f in body.cylinders if f.cylinder.radius > 0]
    if not radii:
        raise TubeProfileNotFound(f"Body '{body.name}' has no cylindrical faces")

    max_radius = max(radii)
    min_radius = min(radii)
    if max_radius - min_radius > 1e-12:
        return max_radius, max_radius - min_radius

    logger.warning(
        "Body '%s' has a single cylinder radius %.4f m; assuming %.4f m wall",
        body.name, max_radius, config.default_wall_thickness_m,
    )
    return max_radius, min(config.default_wall_thickness_m, max_radius * 0.5)


def describe_tube(
    body: BodyRecord,
    config: Optional[TabSlotConfig] = None,
) -> TubeDescriptor:
    """Axis and radii of a tube body as a TubeDescriptor."""
    cylinder = dominant_cylinder(body)
    if cylinder is None:
        raise TubeProfileNotFound(f"Body '{body.name}' has no cylindrical faces")
    outer_radius, wall_thickness = extract_tube_profile(body, config)
    direction = np.asarray(cylinder.direction, dtype=float)
    direction = direction / np.linalg.norm(direction)
    return TubeDescriptor(
        axis_origin=cylinder.origin,
        axis_direction=tuple(float(x) for x in direction),
        outer_radius=outer_radius,
        wall_thickness=wall_thickness,
    )

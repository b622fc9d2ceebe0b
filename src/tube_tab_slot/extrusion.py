"""Boss-extrude and cut parameters from a signed plane offset."""
from typing import Optional

from tube_tab_slot.contracts import ExtrusionSpec, StartCondition, TabSlotConfig


def build_extrusion(
    signed_offset: float,
    depth: float,
    target_body: str,
    is_cut: bool,
    config: Optional[TabSlotConfig] = None,
) -> ExtrusionSpec:
    """Single-direction blind extrusion scoped to ``target_body`` only.

    A zero offset starts at the sketch plane; otherwise the start is offset
    by ``|signed_offset|`` and flipped when the offset is negative. Bosses
    merge into the tab body; cuts run in the reversed direction.
    """
    if config is None:
        config = TabSlotConfig()
    if depth <= 0:
        raise ValueError(f"Extrusion depth must be positive, got {depth}")

    if abs(signed_offset) < config.start_offset_epsilon_m:
        start_condition = StartCondition.SKETCH_PLANE
        magnitude = 0.0
        flip = False
    else:
        start_condition = StartCondition.OFFSET
        magnitude = abs(signed_offset)
        flip = signed_offset < 0

    return ExtrusionSpec(
        start_condition=start_condition,
        start_offset=magnitude,
        flip_start_offset=flip,
        depth=depth,
        target_body=target_body,
        is_cut=is_cut,
        merge=not is_cut,
        reverse_direction=is_cut,
    )


def tab_boss(signed_offset: float, depth: float, tab_body: str,
             config: Optional[TabSlotConfig] = None) -> ExtrusionSpec:
    return build_extrusion(signed_offset, depth, tab_body, is_cut=False, config=config)


def slot_cut(signed_offset: float, depth: float, slot_body: str,
             config: Optional[TabSlotConfig] = None) -> ExtrusionSpec:
    return build_extrusion(signed_offset, depth, slot_body, is_cut=True, config=config)

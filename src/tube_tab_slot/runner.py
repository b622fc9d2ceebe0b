"""
Tab & slot orchestration.

One confirmed invocation runs every resolution step first (selection, tube
axes and radii, placement, base plane, profiles, extrusion parameters). Only
when all of it has succeeded are creation commands issued, in the fixed order
tab sketch -> tab extrude -> slot sketch -> slot cut, near side then far side.
Any error therefore leaves the document untouched.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from tube_tab_slot.axis_resolver import resolve_axis_line
from tube_tab_slot.contracts import (
    BodyRecord,
    CreatedFeature,
    ExtrusionSpec,
    FeatureRecord,
    ProfileGeometry,
    ResolvedTube,
    SidePlacement,
    TabMode,
    TabSlotConfig,
    TabSlotOptions,
    TabSlotRunResult,
)
from tube_tab_slot.document import DocumentAdapter
from tube_tab_slot.errors import (
    AmbiguousSelection,
    SelectionCountError,
    SelectionTypeError,
    TubeFeatureNotFound,
)
from tube_tab_slot.extrusion import slot_cut, tab_boss
from tube_tab_slot.observers import PlacementObserver
from tube_tab_slot.placement import solve_placement
from tube_tab_slot.plane_resolver import (
    apply_plane_offsets,
    classify_sides,
    resolve_base_plane,
)
from tube_tab_slot.profile import draw_profile, generate_tab_and_slot, profile_model_points
from tube_tab_slot.tube_profile import describe_tube

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SidePlan:
    """Fully validated geometry for one side, ready to be created."""

    side: SidePlacement
    tab_profile: ProfileGeometry
    slot_profile: ProfileGeometry
    tab_spec: ExtrusionSpec
    slot_spec: ExtrusionSpec


def resolve_selection(
    document: DocumentAdapter,
    selection: Sequence[object],
) -> Tuple[BodyRecord, BodyRecord]:
    """Return (tab_body, slot_body) from an ordered two-entity selection."""
    if len(selection) != 2:
        raise SelectionCountError(
            f"Please select exactly 2 bodies (tab first, slot second). "
            f"Currently {len(selection)} selected."
        )
    bodies = []
    for index, entity in enumerate(selection):
        body = document.body_for_selection(entity)
        if body is None:
            raise SelectionTypeError(
                f"Selection {index + 1} is not a body or a face of a body. "
                f"Select faces on the two tubes."
            )
        bodies.append(body)
    return bodies[0], bodies[1]


def resolve_tube(
    document: DocumentAdapter,
    body: BodyRecord,
    config: Optional[TabSlotConfig] = None,
) -> ResolvedTube:
    member = document.member_for_body(body)
    if member is None:
        raise TubeFeatureNotFound(
            f"Could not find a structural-member feature for body '{body.name}'."
        )
    axis_line = resolve_axis_line(body, member, document, config)
    descriptor = describe_tube(body, config)
    return ResolvedTube(body=body, member=member, axis_line=axis_line, descriptor=descriptor)


def ensure_distinct_axes(tab: ResolvedTube, slot: ResolvedTube) -> None:
    if tab.axis_line.identity == slot.axis_line.identity:
        sketch_name, segment_id = tab.axis_line.identity
        raise AmbiguousSelection(
            f"Tab and slot resolved to the same sketch line (sketch '{sketch_name}', "
            f"segment ID {segment_id}). Make sure you selected two different tube bodies."
        )


def plan_tab_slot(
    document: DocumentAdapter,
    selection: Sequence[object],
    options: TabSlotOptions,
    config: Optional[TabSlotConfig] = None,
    observer: Optional[PlacementObserver] = None,
) -> Tuple[TabSlotRunResult, FeatureRecord, List[SidePlan]]:
    """Resolve everything needed for a run without touching the document."""
    if config is None:
        config = TabSlotConfig()
    if observer is None:
        observer = PlacementObserver()
    options.validate()

    tab_body, slot_body = resolve_selection(document, selection)
    tab = resolve_tube(document, tab_body, config)
    slot = resolve_tube(document, slot_body, config)
    ensure_distinct_axes(tab, slot)
    logger.info(
        "Tab body '%s' on %s/%d (r=%.4f m, wall=%.4f m); slot body '%s' on %s/%d (r=%.4f m)",
        tab_body.name, tab.axis_line.sketch_name, tab.axis_line.segment_id,
        tab.descriptor.outer_radius, tab.descriptor.wall_thickness,
        slot_body.name, slot.axis_line.sketch_name, slot.axis_line.segment_id,
        slot.descriptor.outer_radius,
    )

    placement = solve_placement(
        tab.axis_line, slot.axis_line,
        tab.descriptor.outer_radius, slot.descriptor.outer_radius, config,
    )
    plane, normal, origin = resolve_base_plane(
        tab.member, tab.axis_line.direction, document, config,
    )
    placement = apply_plane_offsets(placement, normal, origin)
    observer.on_placement(placement)

    near, far = classify_sides(placement, config)
    observer.on_sides(near, far)

    # Both sides share the tube centre found from the near point.
    center = tab.axis_line.project(near.point)
    frame = plane.plane_frame

    plans = []
    for side, wanted in ((near, options.mode.includes_near), (far, options.mode.includes_far)):
        if not wanted:
            continue
        tab_profile, slot_profile = generate_tab_and_slot(
            frame, center,
            tab.descriptor.outer_radius, tab.descriptor.wall_thickness,
            placement.slot_direction, side.far_side, config,
        )
        observer.on_profile("tab", side, profile_model_points(tab_profile, frame))
        observer.on_profile("slot", side, profile_model_points(slot_profile, frame))
        plans.append(SidePlan(
            side=side,
            tab_profile=tab_profile,
            slot_profile=slot_profile,
            tab_spec=tab_boss(side.start_offset, options.tab_depth_m, tab_body.name, config),
            slot_spec=slot_cut(side.start_offset, options.tab_depth_m, slot_body.name, config),
        ))

    result = TabSlotRunResult(
        tab=tab,
        slot=slot,
        placement=placement,
        plane_name=plane.name,
        sides=(near, far),
    )
    return result, plane, plans


def run_tab_slot(
    document: DocumentAdapter,
    selection: Sequence[object],
    options: Optional[TabSlotOptions] = None,
    config: Optional[TabSlotConfig] = None,
    observer: Optional[PlacementObserver] = None,
) -> TabSlotRunResult:
    """Create the tab bosses and slot cuts for the selected tube pair.

    Args:
        document: Host document adapter; the only thing mutated.
        selection: Two entities, tab tube first and slot tube second.
        options: Mode and depth; defaults when omitted.
        config: Fixed geometric constants.
        observer: Receives intermediate points for diagnostics.

    Returns:
        TabSlotRunResult listing created features in creation order.
    """
    if options is None:
        options = TabSlotOptions()

    result, plane, plans = plan_tab_slot(document, selection, options, config, observer)

    for plan in plans:
        sketch = draw_profile(document, plane, plan.tab_profile)
        feature = document.boss_extrude(sketch, plan.tab_spec)
        result.created_features.append(
            CreatedFeature("tab", plan.side.far_side, sketch, feature)
        )

        sketch = draw_profile(document, plane, plan.slot_profile)
        feature = document.cut_extrude(sketch, plan.slot_spec)
        result.created_features.append(
            CreatedFeature("slot", plan.side.far_side, sketch, feature)
        )

    document.rebuild()
    logger.info(
        "Created %d tab/slot features (%s, depth %.1f mm)",
        len(result.created_features), options.mode.value, options.tab_depth_mm,
    )
    return result


class TabSlotCommand:
    """Modal command session: options reset on start, nothing happens until confirm."""

    def __init__(self, document: DocumentAdapter, config: Optional[TabSlotConfig] = None,
                 observer: Optional[PlacementObserver] = None):
        self.document = document
        self.config = config or TabSlotConfig()
        self.observer = observer
        self.options = TabSlotOptions()
        self.active = False

    def start(self) -> TabSlotOptions:
        self.options = TabSlotOptions()
        self.active = True
        return self.options

    def set_mode(self, mode: TabMode) -> None:
        self.options.mode = TabMode(mode)

    def set_depth_mm(self, depth_mm: float) -> None:
        """Clamp to the allowed range, like the dialog's number box."""
        self.options.tab_depth_mm = min(
            TabSlotOptions.MAX_DEPTH_MM,
            max(TabSlotOptions.MIN_DEPTH_MM, float(depth_mm)),
        )

    def cancel(self) -> None:
        self.active = False

    def confirm(self, selection: Sequence[object]) -> TabSlotRunResult:
        if not self.active:
            raise RuntimeError("Command not started")
        self.active = False
        return run_tab_slot(self.document, selection, self.options, self.config, self.observer)

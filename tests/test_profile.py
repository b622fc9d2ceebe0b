"""Tests for profile.py: tab and slot cross-section sectors."""
import math

import numpy as np
import pytest

from tube_tab_slot.contracts import Frame, TabSlotConfig
from tube_tab_slot.profile import (
    draw_profile,
    generate_profile,
    generate_tab_and_slot,
    profile_base_angle,
    profile_model_points,
    profile_polygon,
)

# Plane perpendicular to X: local u = +Y, local v = +Z
PLANE = Frame.from_normal((-0.1, 0.0, 0.0), (1.0, 0.0, 0.0))
CENTER = (-0.008, 0.0, 0.0)
SLOT_DIR = (0.0, 1.0, 0.0)


class TestBaseAngle:

    def test_near_side_follows_slot_direction(self):
        assert profile_base_angle(PLANE, SLOT_DIR, far_side=False) == pytest.approx(0.0)

    def test_far_side_adds_half_turn(self):
        assert profile_base_angle(PLANE, SLOT_DIR, far_side=True) == pytest.approx(math.pi)

    def test_out_of_plane_component_ignored(self):
        oblique = (0.6, 0.0, 0.8)
        assert profile_base_angle(PLANE, oblique, far_side=False) == pytest.approx(math.pi / 2)


class TestTabProfile:

    @pytest.fixture
    def tab(self):
        return generate_profile(PLANE, CENTER, 0.010, 0.002, SLOT_DIR, far_side=False)

    def test_center_projected_into_plane(self, tab):
        assert tab.center == pytest.approx((0.0, 0.0))

    def test_radii(self, tab):
        assert tab.outer_arc.radius == pytest.approx(0.010)
        assert tab.inner_arc.radius == pytest.approx(0.008)

    def test_arc_width(self, tab):
        # 5 mm of arc on a 10 mm radius
        assert tab.outer_arc.half_angle == pytest.approx(0.25)
        assert tab.inner_arc.half_angle == pytest.approx(0.25)
        assert tab.outer_arc.start_angle == pytest.approx(-0.25)

    def test_lines_join_arc_endpoints(self, tab):
        c = tab.center
        first, second = tab.lines
        assert first.start == pytest.approx(tab.outer_arc.start_point(c))
        assert first.end == pytest.approx(tab.inner_arc.start_point(c))
        assert second.start == pytest.approx(tab.outer_arc.end_point(c))
        assert second.end == pytest.approx(tab.inner_arc.end_point(c))

    def test_model_points_on_plane(self, tab):
        points = profile_model_points(tab, PLANE)
        np.testing.assert_allclose(points["center"], (-0.1, 0.0, 0.0), atol=1e-12)
        outer_mid = PLANE.to_model((0.010, 0.0, 0.0))
        np.testing.assert_allclose(outer_mid, (-0.1, 0.010, 0.0), atol=1e-12)
        for value in points.values():
            assert value[0] == pytest.approx(-0.1)

    def test_far_side_opposite(self):
        far = generate_profile(PLANE, CENTER, 0.010, 0.002, SLOT_DIR, far_side=True)
        mid = far.outer_arc.point_at(far.center, far.outer_arc.start_angle + 0.25)
        assert mid == pytest.approx((-0.010, 0.0))
        assert far.far_side


class TestSlotProfile:

    @pytest.mark.parametrize("radius,wall", [(0.010, 0.002), (0.0125, 0.0015), (0.02, 0.003)])
    def test_slot_encloses_tab(self, radius, wall):
        tab, slot = generate_tab_and_slot(PLANE, CENTER, radius, wall, SLOT_DIR, far_side=False)
        assert slot.outer_arc.radius == pytest.approx(tab.outer_arc.radius + 0.0005)
        assert slot.inner_arc.radius == pytest.approx(tab.inner_arc.radius - 0.0005)
        assert slot.outer_arc.half_angle >= tab.outer_arc.half_angle
        assert slot.clearance == pytest.approx(0.0005)
        assert profile_polygon(slot).contains(profile_polygon(tab))

    def test_slot_half_angle_grows_with_clearance(self):
        _, slot = generate_tab_and_slot(PLANE, CENTER, 0.010, 0.002, SLOT_DIR, far_side=False)
        assert slot.outer_arc.half_angle == pytest.approx(0.003 / 0.0105)

    def test_small_tube_keeps_tab_half_angle(self):
        config = TabSlotConfig(slot_clearance_m=1e-6)
        tab, slot = generate_tab_and_slot(PLANE, CENTER, 0.010, 0.002, SLOT_DIR,
                                          far_side=False, config=config)
        assert slot.outer_arc.half_angle >= tab.outer_arc.half_angle


class TestDrawProfile:

    def test_command_order(self, cross_document):
        doc, tab_body, _ = cross_document
        member = doc.member_for_body(tab_body)
        plane = member.sub_features[-1]
        tab = generate_profile(plane.plane_frame, CENTER, 0.010, 0.002, SLOT_DIR, False)
        name = draw_profile(doc, plane, tab)
        assert name == "Sketch1"
        assert doc.command_log == [
            "begin_sketch", "add_arc", "add_arc", "add_line", "add_line", "end_sketch",
        ]
        recorded = doc.sketches[name]
        assert recorded.plane_name == "Tab-Plane"
        assert len(recorded.arcs) == 2
        assert len(recorded.lines) == 2

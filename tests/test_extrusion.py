"""Tests for extrusion.py."""
import pytest

from tube_tab_slot.contracts import StartCondition
from tube_tab_slot.extrusion import build_extrusion, slot_cut, tab_boss


class TestStartCondition:

    def test_zero_offset_starts_on_sketch_plane(self):
        spec = tab_boss(0.0, 0.01, "Tab-Body")
        assert spec.start_condition == StartCondition.SKETCH_PLANE
        assert spec.start_offset == 0.0
        assert not spec.flip_start_offset

    def test_tiny_offset_treated_as_zero(self):
        spec = tab_boss(5e-9, 0.01, "Tab-Body")
        assert spec.start_condition == StartCondition.SKETCH_PLANE

    def test_positive_offset(self):
        spec = tab_boss(0.087, 0.01, "Tab-Body")
        assert spec.start_condition == StartCondition.OFFSET
        assert spec.start_offset == pytest.approx(0.087)
        assert not spec.flip_start_offset

    def test_negative_offset_flips(self):
        spec = slot_cut(-0.03, 0.01, "Slot-Body")
        assert spec.start_condition == StartCondition.OFFSET
        assert spec.start_offset == pytest.approx(0.03)
        assert spec.flip_start_offset


class TestBossAndCut:

    def test_boss_merges_into_tab(self):
        spec = tab_boss(0.02, 0.01, "Tab-Body")
        assert spec.merge and not spec.is_cut
        assert not spec.reverse_direction
        assert spec.target_body == "Tab-Body"

    def test_cut_reversed_on_slot(self):
        spec = slot_cut(0.02, 0.01, "Slot-Body")
        assert spec.is_cut and not spec.merge
        assert spec.reverse_direction
        assert spec.target_body == "Slot-Body"

    def test_scoped_single_direction(self):
        for spec in (tab_boss(0.02, 0.01, "A"), slot_cut(0.02, 0.01, "B")):
            assert spec.single_direction
            assert spec.use_feature_scope
            assert not spec.auto_select_bodies
            assert spec.depth == pytest.approx(0.01)

    @pytest.mark.parametrize("depth", [0.0, -0.005])
    def test_non_positive_depth_rejected(self, depth):
        with pytest.raises(ValueError):
            build_extrusion(0.02, depth, "Tab-Body", is_cut=False)

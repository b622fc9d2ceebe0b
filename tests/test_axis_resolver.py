"""Tests for axis_resolver.py: matching tube bodies to construction lines."""
import numpy as np
import pytest

from tube_tab_slot.axis_resolver import (
    find_matching_line,
    line_matches_axis,
    resolve_axis_line,
    sketch_axis_lines,
)
from tube_tab_slot.contracts import (
    AxisLine,
    BodyRecord,
    FaceRecord,
    FeatureKind,
    FeatureRecord,
    Frame,
)
from tube_tab_slot.errors import AxisMatchNotFound
from tube_tab_slot.mesh_document import MeshDocument


X_AXIS = np.array([1.0, 0.0, 0.0])
ORIGIN = np.array([0.0, 0.0, 0.0])


def _line(start, end, name="Layout", seg=1):
    return AxisLine(sketch_name=name, segment_id=seg, start=tuple(start), end=tuple(end))


class TestLineMatchesAxis:

    def test_parallel_through_origin_matches(self):
        line = _line((-1, 0, 0), (1, 0, 0))
        direction_ok, proximity_ok, dot, distance = line_matches_axis(line, X_AXIS, ORIGIN)
        assert direction_ok and proximity_ok
        assert dot == pytest.approx(1.0)
        assert distance == pytest.approx(0.0)

    def test_opposite_direction_matches(self):
        line = _line((1, 0, 0), (-1, 0, 0))
        direction_ok, proximity_ok, _, _ = line_matches_axis(line, X_AXIS, ORIGIN)
        assert direction_ok and proximity_ok

    def test_parallel_offset_5mm_rejected_on_proximity(self):
        line = _line((-1, 0.005, 0), (1, 0.005, 0))
        direction_ok, proximity_ok, _, distance = line_matches_axis(line, X_AXIS, ORIGIN)
        assert direction_ok
        assert not proximity_ok
        assert distance == pytest.approx(0.005)

    def test_tilted_line_rejected_on_direction(self):
        line = _line((0, 0, 0), (1, 0.2, 0))
        direction_ok, proximity_ok, dot, _ = line_matches_axis(line, X_AXIS, ORIGIN)
        assert not direction_ok and not proximity_ok
        assert dot < 0.99

    def test_unknown_origin_never_passes_proximity(self):
        line = _line((-1, 0, 0), (1, 0, 0))
        direction_ok, proximity_ok, _, distance = line_matches_axis(line, X_AXIS, None)
        assert direction_ok and not proximity_ok
        assert distance is None


class TestFindMatchingLine:

    def test_first_dual_match_wins(self):
        offset = _line((-1, 0.005, 0), (1, 0.005, 0), seg=1)
        exact = _line((-1, 0, 0), (1, 0, 0), seg=2)
        also_exact = _line((-2, 0, 0), (2, 0, 0), seg=3)
        match, fallback = find_matching_line([offset, exact, also_exact], X_AXIS, ORIGIN)
        assert match is exact
        assert fallback is offset

    def test_direction_only_kept_as_fallback(self):
        offset = _line((-1, 0.005, 0), (1, 0.005, 0))
        match, fallback = find_matching_line([offset], X_AXIS, ORIGIN)
        assert match is None
        assert fallback is offset

    def test_nothing_parallel(self):
        match, fallback = find_matching_line([_line((0, 0, 0), (0, 1, 0))], X_AXIS, ORIGIN)
        assert match is None and fallback is None


class TestResolveAxisLine:

    def test_member_subtree_path(self, cross_document):
        doc, tab, slot = cross_document
        line = resolve_axis_line(tab, doc.member_for_body(tab), doc)
        assert line.sketch_name == "Tab-Path"
        np.testing.assert_allclose(line.start, (-0.1, 0.0, 0.0), atol=1e-12)
        np.testing.assert_allclose(line.end, (0.1, 0.0, 0.0), atol=1e-12)

    def test_shared_layout_picks_each_tube_segment(self, layout_document):
        doc, tab, slot = layout_document
        tab_line = resolve_axis_line(tab, doc.member_for_body(tab), doc)
        slot_line = resolve_axis_line(slot, doc.member_for_body(slot), doc)
        assert tab_line.identity == ("Layout", 1)
        assert slot_line.identity == ("Layout", 2)

    def test_parallel_tubes_told_apart_by_proximity(self):
        doc = MeshDocument()
        doc.add_layout([
            ((-0.1, 0.0, 0.0), (0.1, 0.0, 0.0)),
            ((-0.1, 0.05, 0.0), (0.1, 0.05, 0.0)),
        ], name="Rails")
        first = doc.add_tube((-0.1, 0.0, 0.0), (0.1, 0.0, 0.0), 0.01, 0.002,
                             path_in_subtree=False)
        second = doc.add_tube((-0.1, 0.05, 0.0), (0.1, 0.05, 0.0), 0.01, 0.002,
                              path_in_subtree=False)
        assert resolve_axis_line(first, doc.member_for_body(first), doc).segment_id == 1
        assert resolve_axis_line(second, doc.member_for_body(second), doc).segment_id == 2

    def test_most_recent_sketch_searched_first(self):
        doc = MeshDocument()
        doc.add_layout([((-0.1, 0.0, 0.0), (0.1, 0.0, 0.0))], name="Old")
        doc.add_layout([((-0.2, 0.0, 0.0), (0.2, 0.0, 0.0))], name="New")
        body = doc.add_tube((-0.1, 0.0, 0.0), (0.1, 0.0, 0.0), 0.01, 0.002,
                            path_in_subtree=False)
        line = resolve_axis_line(body, doc.member_for_body(body), doc)
        assert line.sketch_name == "New"

    def test_sketches_after_member_ignored(self):
        doc = MeshDocument()
        doc.add_layout([((-0.1, 0.003, 0.0), (0.1, 0.003, 0.0))], name="Before")
        body = doc.add_tube((-0.1, 0.0, 0.0), (0.1, 0.0, 0.0), 0.01, 0.002,
                            path_in_subtree=False)
        doc.add_layout([((-0.1, 0.0, 0.0), (0.1, 0.0, 0.0))], name="After")
        line = resolve_axis_line(body, doc.member_for_body(body), doc)
        # Only the offset line precedes the member: direction-only fallback
        assert line.sketch_name == "Before"

    def test_no_parallel_line_raises(self):
        doc = MeshDocument()
        doc.add_layout([((0.0, -0.1, 0.0), (0.0, 0.1, 0.0))], name="Cross")
        body = doc.add_tube((-0.1, 0.0, 0.0), (0.1, 0.0, 0.0), 0.01, 0.002,
                            path_in_subtree=False)
        with pytest.raises(AxisMatchNotFound):
            resolve_axis_line(body, doc.member_for_body(body), doc)

    def test_body_without_cylinder_takes_first_subtree_line(self):
        doc = MeshDocument()
        sketch = doc.layout_sketch([((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))], name="Path")
        member = doc.add_feature(FeatureRecord(
            "Member", FeatureKind.STRUCTURAL_MEMBER,
            sub_features=(FeatureRecord("Path", FeatureKind.PROFILE, sketch=sketch),),
            body_names=frozenset(["Box"]),
        ))
        box = BodyRecord("Box", (FaceRecord(1.0), FaceRecord(1.0)))
        line = resolve_axis_line(box, member, doc)
        assert line.identity == ("Path", 1)


class TestSketchAxisLines:

    def test_lines_converted_to_model_space(self):
        frame = Frame.from_normal((0.0, 0.0, 0.5), (0.0, 0.0, 1.0))
        doc = MeshDocument()
        sketch = doc.layout_sketch([((1.0, 2.0, 0.5), (3.0, 2.0, 0.5))], frame=frame)
        assert sketch.lines[0].start[2] == pytest.approx(0.0)
        (line,) = sketch_axis_lines(sketch)
        np.testing.assert_allclose(line.start, (1.0, 2.0, 0.5), atol=1e-12)
        np.testing.assert_allclose(line.end, (3.0, 2.0, 0.5), atol=1e-12)

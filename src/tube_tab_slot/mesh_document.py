"""
In-memory document adapter backed by trimesh.

Holds default planes, construction sketches, tube members with their bodies
and sub-features, and realises boss/cut extrusions as trimesh solids placed
on their sketch plane. Used for tests and for running the pipeline outside a
CAD host.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np
import trimesh
from shapely.geometry import Polygon
from shapely.ops import triangulate

from tube_tab_slot.contracts import (
    BodyRecord,
    CylinderSurface,
    ExtrusionSpec,
    FaceRecord,
    FeatureKind,
    FeatureRecord,
    Frame,
    SketchData,
    SketchLine,
    StartCondition,
    Vec2,
    to_vec3,
)
from tube_tab_slot.document import DocumentAdapter
from tube_tab_slot.profile import sector_polygon
from tube_tab_slot.vectors import unit_vector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FaceRef:
    """A selected face, identified by its body and face index."""
    body_name: str
    face_index: int


@dataclass
class RecordedSketch:
    name: str
    plane_name: str
    frame: Frame
    arcs: List[Tuple[Vec2, Vec2, Vec2]] = field(default_factory=list)
    lines: List[Tuple[Vec2, Vec2]] = field(default_factory=list)


@dataclass
class SolidFeature:
    name: str
    sketch_name: str
    spec: ExtrusionSpec
    mesh: trimesh.Trimesh


class MeshDocument(DocumentAdapter):
    """Document adapter holding everything in memory."""

    def __init__(self, with_default_planes: bool = True):
        self._features: List[FeatureRecord] = []
        self._bodies: Dict[str, BodyRecord] = {}
        self.body_meshes: Dict[str, trimesh.Trimesh] = {}
        self.sketches: Dict[str, RecordedSketch] = {}
        self.solids: List[SolidFeature] = []
        self.command_log: List[str] = []
        self.rebuild_count = 0
        self._open_sketch: Optional[RecordedSketch] = None
        self._counters: Dict[str, int] = {}
        if with_default_planes:
            self.add_default_planes()

    # ─── Construction helpers ────────────────────────────────────────────

    def _next_name(self, prefix: str) -> str:
        self._counters[prefix] = self._counters.get(prefix, 0) + 1
        return f"{prefix}{self._counters[prefix]}"

    def add_feature(self, feature: FeatureRecord) -> FeatureRecord:
        self._features.append(feature)
        return feature

    def add_default_planes(self) -> None:
        """Front (XY), Top (XZ) and Right (YZ) planes, then the origin marker."""
        self.add_feature(FeatureRecord("Front Plane", FeatureKind.REFERENCE_PLANE,
                                       plane_frame=Frame.identity()))
        self.add_feature(FeatureRecord("Top Plane", FeatureKind.REFERENCE_PLANE,
                                       plane_frame=Frame((0.0, 0.0, 0.0), (1.0, 0.0, 0.0),
                                                         (0.0, 0.0, -1.0), (0.0, 1.0, 0.0))))
        self.add_feature(FeatureRecord("Right Plane", FeatureKind.REFERENCE_PLANE,
                                       plane_frame=Frame((0.0, 0.0, 0.0), (0.0, 0.0, -1.0),
                                                         (0.0, 1.0, 0.0), (1.0, 0.0, 0.0))))
        self.add_feature(FeatureRecord("Origin", FeatureKind.ORIGIN))

    def layout_sketch(
        self,
        segments: Sequence[Tuple[Sequence[float], Sequence[float]]],
        name: Optional[str] = None,
        frame: Optional[Frame] = None,
    ) -> SketchData:
        """Sketch of model-space line segments, stored in ``frame`` coordinates."""
        if frame is None:
            frame = Frame.identity()
        name = name or self._next_name("Layout")
        lines = tuple(
            SketchLine(
                segment_id=i + 1,
                start=to_vec3(frame.to_local(start)),
                end=to_vec3(frame.to_local(end)),
            )
            for i, (start, end) in enumerate(segments)
        )
        return SketchData(name=name, frame=frame, lines=lines)

    def add_layout(
        self,
        segments: Sequence[Tuple[Sequence[float], Sequence[float]]],
        name: Optional[str] = None,
        frame: Optional[Frame] = None,
    ) -> FeatureRecord:
        """Top-level construction sketch (e.g. a frame layout)."""
        sketch = self.layout_sketch(segments, name, frame)
        return self.add_feature(FeatureRecord(sketch.name, FeatureKind.PROFILE, sketch=sketch))

    def add_tube(
        self,
        start: Sequence[float],
        end: Sequence[float],
        outer_radius: float,
        wall_thickness: float,
        name: Optional[str] = None,
        path_in_subtree: bool = True,
        with_plane: bool = True,
        sections: int = 32,
    ) -> BodyRecord:
        """Add a tube member following ``start -> end`` and return its body.

        With ``path_in_subtree`` the path line lives in a sketch under the
        member; otherwise the member relies on an earlier layout sketch.
        """
        start = np.asarray(start, dtype=float)
        end = np.asarray(end, dtype=float)
        axis = end - start
        length = float(np.linalg.norm(axis))
        if length <= 0:
            raise ValueError("Tube start and end coincide")
        direction = axis / length
        inner_radius = outer_radius - wall_thickness

        name = name or self._next_name("Tube")
        body_name = f"{name}-Body"

        cylinder = CylinderSurface(to_vec3(start), to_vec3(direction), outer_radius)
        faces = [FaceRecord(2.0 * math.pi * outer_radius * length, cylinder)]
        if 0 < inner_radius < outer_radius:
            faces.append(FaceRecord(
                2.0 * math.pi * inner_radius * length,
                CylinderSurface(to_vec3(start), to_vec3(direction), inner_radius),
            ))
        cap_area = math.pi * (outer_radius ** 2 - max(inner_radius, 0.0) ** 2)
        faces.extend([FaceRecord(cap_area), FaceRecord(cap_area)])
        body = BodyRecord(body_name, tuple(faces))
        self._bodies[body_name] = body
        self.body_meshes[body_name] = _tube_mesh(
            start, direction, length, outer_radius, inner_radius, sections,
        )

        sub_features = []
        if path_in_subtree:
            path_frame = Frame.from_normal(start, _perpendicular(direction))
            path = self.layout_sketch([(start, end)], name=f"{name}-Path", frame=path_frame)
            sub_features.append(FeatureRecord(path.name, FeatureKind.PROFILE, sketch=path))
        if with_plane:
            sub_features.append(FeatureRecord(
                f"{name}-Plane", FeatureKind.REFERENCE_PLANE,
                plane_frame=Frame.from_normal(start, direction),
            ))

        self.add_feature(FeatureRecord(
            name,
            FeatureKind.STRUCTURAL_MEMBER,
            sub_features=tuple(sub_features),
            body_names=frozenset([body_name]),
        ))
        logger.debug("Added tube %s (r=%.4f, wall=%.4f, L=%.4f)",
                     name, outer_radius, wall_thickness, length)
        return body

    def body(self, name: str) -> BodyRecord:
        return self._bodies[name]

    def face(self, body: BodyRecord, index: int = 0) -> FaceRef:
        return FaceRef(body.name, index)

    # ─── DocumentAdapter ─────────────────────────────────────────────────

    def features(self) -> Iterator[FeatureRecord]:
        return iter(list(self._features))

    def body_for_selection(self, entity) -> Optional[BodyRecord]:
        if isinstance(entity, BodyRecord):
            return self._bodies.get(entity.name)
        if isinstance(entity, FaceRef):
            body = self._bodies.get(entity.body_name)
            if body is not None and 0 <= entity.face_index < len(body.faces):
                return body
        return None

    def begin_sketch(self, plane: FeatureRecord) -> None:
        if self._open_sketch is not None:
            raise RuntimeError(f"Sketch '{self._open_sketch.name}' is still open")
        if plane.plane_frame is None:
            raise ValueError(f"Plane '{plane.name}' has no frame")
        self.command_log.append("begin_sketch")
        self._open_sketch = RecordedSketch(
            name=self._next_name("Sketch"),
            plane_name=plane.name,
            frame=plane.plane_frame,
        )

    def add_arc(self, center: Vec2, start: Vec2, end: Vec2) -> None:
        self._require_open_sketch().arcs.append((tuple(center), tuple(start), tuple(end)))
        self.command_log.append("add_arc")

    def add_line(self, start: Vec2, end: Vec2) -> None:
        self._require_open_sketch().lines.append((tuple(start), tuple(end)))
        self.command_log.append("add_line")

    def end_sketch(self) -> str:
        sketch = self._require_open_sketch()
        self._open_sketch = None
        self.sketches[sketch.name] = sketch
        data = SketchData(
            name=sketch.name,
            frame=sketch.frame,
            lines=tuple(
                SketchLine(i + 1, (s[0], s[1], 0.0), (e[0], e[1], 0.0))
                for i, (s, e) in enumerate(sketch.lines)
            ),
        )
        self.add_feature(FeatureRecord(sketch.name, FeatureKind.PROFILE, sketch=data))
        self.command_log.append("end_sketch")
        return sketch.name

    def boss_extrude(self, sketch_name: str, spec: ExtrusionSpec) -> str:
        return self._extrude("Boss-Extrude", sketch_name, spec)

    def cut_extrude(self, sketch_name: str, spec: ExtrusionSpec) -> str:
        return self._extrude("Cut-Extrude", sketch_name, spec)

    def rebuild(self) -> None:
        self.command_log.append("rebuild")
        self.rebuild_count += 1

    # ─── Internals ───────────────────────────────────────────────────────

    def _require_open_sketch(self) -> RecordedSketch:
        if self._open_sketch is None:
            raise RuntimeError("No open sketch")
        return self._open_sketch

    def _extrude(self, prefix: str, sketch_name: str, spec: ExtrusionSpec) -> str:
        if spec.target_body not in self._bodies:
            raise KeyError(f"Unknown target body: {spec.target_body}")
        sketch = self.sketches[sketch_name]
        polygon = sketch_polygon(sketch)

        start = 0.0
        if spec.start_condition == StartCondition.OFFSET:
            start = -spec.start_offset if spec.flip_start_offset else spec.start_offset
        end = start - spec.depth if spec.reverse_direction else start + spec.depth

        mesh = extrude_polygon_mesh(polygon, min(start, end), max(start, end))
        mesh.apply_transform(sketch.frame.matrix)

        name = self._next_name(prefix)
        self.solids.append(SolidFeature(name, sketch_name, spec, mesh))
        self.add_feature(FeatureRecord(
            name, FeatureKind.OTHER, body_names=frozenset([spec.target_body]),
        ))
        self.command_log.append("cut_extrude" if spec.is_cut else "boss_extrude")
        return name


def sketch_polygon(sketch: RecordedSketch) -> Polygon:
    """Annular sector spanned by a sketch's two concentric arcs."""
    if len(sketch.arcs) != 2:
        raise ValueError(f"Sketch '{sketch.name}' needs two arcs, has {len(sketch.arcs)}")
    spans = []
    for center, start, end in sketch.arcs:
        radius = math.hypot(start[0] - center[0], start[1] - center[1])
        a0 = math.atan2(start[1] - center[1], start[0] - center[0])
        a1 = math.atan2(end[1] - center[1], end[0] - center[0])
        while a1 <= a0:
            a1 += 2.0 * math.pi
        spans.append((radius, a0, a1, center))
    spans.sort(key=lambda s: s[0], reverse=True)
    (outer, a0, a1, center), (inner, _, _, _) = spans
    return sector_polygon(center, outer, inner, a0, a1)


def extrude_polygon_mesh(polygon: Polygon, z0: float, z1: float) -> trimesh.Trimesh:
    """Prism over ``polygon`` between heights ``z0`` and ``z1`` (local frame)."""
    vertices: List[List[float]] = []
    faces: List[List[int]] = []
    for tri in triangulate(polygon):
        if tri.is_empty or tri.area <= 1e-15:
            continue
        if not polygon.covers(tri.representative_point()):
            continue
        coords = np.asarray(list(tri.exterior.coords)[:3], dtype=float)
        for z, flip in ((z0, True), (z1, False)):
            base = len(vertices)
            vertices.extend([[x, y, z] for x, y in coords])
            tri_idx = [base, base + 1, base + 2]
            faces.append(tri_idx[::-1] if flip else tri_idx)

    ring = np.asarray(polygon.exterior.coords[:-1], dtype=float)
    n = len(ring)
    base = len(vertices)
    vertices.extend([[x, y, z0] for x, y in ring])
    vertices.extend([[x, y, z1] for x, y in ring])
    for k in range(n):
        k_next = (k + 1) % n
        b0, b1 = base + k, base + k_next
        t0, t1 = base + n + k, base + n + k_next
        faces.append([b0, b1, t0])
        faces.append([t0, b1, t1])

    return trimesh.Trimesh(
        vertices=np.asarray(vertices, dtype=float),
        faces=np.asarray(faces, dtype=int),
        process=True,
    )


def _perpendicular(direction) -> np.ndarray:
    d = unit_vector(direction)
    ref = np.array([0.0, 0.0, 1.0]) if abs(d[2]) < 0.9 else np.array([1.0, 0.0, 0.0])
    return unit_vector(np.cross(d, ref))


def _tube_mesh(
    start: np.ndarray,
    direction: np.ndarray,
    length: float,
    outer_radius: float,
    inner_radius: float,
    sections: int,
) -> trimesh.Trimesh:
    transform = trimesh.geometry.align_vectors([0.0, 0.0, 1.0], direction)
    transform[:3, 3] = start + direction * (length / 2.0)
    if inner_radius > 0:
        return trimesh.creation.annulus(
            r_min=inner_radius, r_max=outer_radius, height=length,
            transform=transform, sections=sections,
        )
    return trimesh.creation.cylinder(
        radius=outer_radius, height=length, transform=transform, sections=sections,
    )

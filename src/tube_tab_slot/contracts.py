"""Contracts for the tube tab & slot pipeline.

All model-space lengths are metres. The only millimetre value is the
user-facing tab depth in ``TabSlotOptions``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional, Tuple

import numpy as np

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]


def to_vec3(values) -> Vec3:
    arr = np.asarray(values, dtype=float).reshape(3)
    return (float(arr[0]), float(arr[1]), float(arr[2]))


# ─── Configuration ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TabSlotConfig:
    """Fixed geometric constants. Not exposed to the user."""

    tab_arc_width_m: float = 0.005
    slot_clearance_m: float = 0.0005
    plane_offset_correction_m: float = -0.005
    axis_proximity_tol_m: float = 0.001
    direction_cos_threshold: float = 0.99
    default_wall_thickness_m: float = 0.002
    min_sin_angle: float = 1e-10
    start_offset_epsilon_m: float = 1e-8


class TabMode(Enum):
    """Which side(s) of the intersection receive a tab."""
    BOTH = "both"
    NEAR_ONLY = "near_only"
    FAR_ONLY = "far_only"

    @property
    def includes_near(self) -> bool:
        return self in (TabMode.BOTH, TabMode.NEAR_ONLY)

    @property
    def includes_far(self) -> bool:
        return self in (TabMode.BOTH, TabMode.FAR_ONLY)


@dataclass
class TabSlotOptions:
    """User-chosen options, reset to defaults each time the command starts."""

    MIN_DEPTH_MM = 1.0
    MAX_DEPTH_MM = 50.0
    DEFAULT_DEPTH_MM = 10.0

    mode: TabMode = TabMode.BOTH
    tab_depth_mm: float = DEFAULT_DEPTH_MM

    @property
    def tab_depth_m(self) -> float:
        return self.tab_depth_mm / 1000.0

    def validate(self) -> None:
        if not isinstance(self.mode, TabMode):
            raise ValueError(f"Unknown tab mode: {self.mode!r}")
        if not (self.MIN_DEPTH_MM <= self.tab_depth_mm <= self.MAX_DEPTH_MM):
            raise ValueError(
                f"Tab depth {self.tab_depth_mm} mm outside "
                f"[{self.MIN_DEPTH_MM}, {self.MAX_DEPTH_MM}] mm"
            )


# ─── Document records ────────────────────────────────────────────────────────

class FeatureKind(Enum):
    """The feature kinds the pipeline distinguishes."""
    PROFILE = "profile"                  # sketch carrying construction lines
    REFERENCE_PLANE = "reference_plane"
    STRUCTURAL_MEMBER = "structural_member"
    ORIGIN = "origin"                    # marks the end of the default planes
    OTHER = "other"


@dataclass(frozen=True)
class Frame:
    """Rigid placement: orthonormal axes plus an origin, all in model space."""

    origin: Vec3
    x_axis: Vec3
    y_axis: Vec3
    z_axis: Vec3

    @classmethod
    def identity(cls) -> "Frame":
        return cls((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0))

    @classmethod
    def from_normal(cls, origin, normal) -> "Frame":
        """Frame whose Z axis is ``normal``; X/Y completed deterministically."""
        n = np.asarray(normal, dtype=float)
        n = n / np.linalg.norm(n)
        ref = np.array([0.0, 0.0, 1.0]) if abs(n[2]) < 0.9 else np.array([1.0, 0.0, 0.0])
        u = np.cross(ref, n)
        u /= np.linalg.norm(u)
        v = np.cross(n, u)
        return cls(to_vec3(origin), to_vec3(u), to_vec3(v), to_vec3(n))

    @property
    def rotation(self) -> np.ndarray:
        """3x3 matrix with the local axes as columns (local -> model)."""
        return np.column_stack([self.x_axis, self.y_axis, self.z_axis])

    @property
    def matrix(self) -> np.ndarray:
        """4x4 homogeneous local -> model transform."""
        m = np.eye(4)
        m[:3, :3] = self.rotation
        m[:3, 3] = self.origin
        return m

    def to_local(self, point) -> np.ndarray:
        return self.rotation.T @ (np.asarray(point, dtype=float) - np.asarray(self.origin))

    def to_local_direction(self, vector) -> np.ndarray:
        return self.rotation.T @ np.asarray(vector, dtype=float)

    def to_model(self, local) -> np.ndarray:
        return np.asarray(self.origin) + self.rotation @ np.asarray(local, dtype=float)


@dataclass(frozen=True)
class SketchLine:
    """A straight sketch segment; endpoints are in its sketch's local frame."""

    segment_id: int
    start: Vec3
    end: Vec3


@dataclass(frozen=True)
class SketchData:
    name: str
    frame: Frame
    lines: Tuple[SketchLine, ...] = ()


@dataclass(frozen=True)
class FeatureRecord:
    """Immutable snapshot of one document feature."""

    name: str
    kind: FeatureKind
    sub_features: Tuple["FeatureRecord", ...] = ()
    sketch: Optional[SketchData] = None
    plane_frame: Optional[Frame] = None
    body_names: FrozenSet[str] = frozenset()

    def owns_body(self, body_name: str) -> bool:
        return body_name in self.body_names


@dataclass(frozen=True)
class CylinderSurface:
    origin: Vec3
    direction: Vec3
    radius: float


@dataclass(frozen=True)
class FaceRecord:
    """A body face; ``cylinder`` is None for non-cylindrical surfaces."""

    area: float
    cylinder: Optional[CylinderSurface] = None


@dataclass(frozen=True)
class BodyRecord:
    name: str
    faces: Tuple[FaceRecord, ...] = ()

    @property
    def cylinders(self) -> Tuple[FaceRecord, ...]:
        return tuple(f for f in self.faces if f.cylinder is not None)


# ─── Pipeline values ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AxisLine:
    """Construction line a tube follows, in model space."""

    sketch_name: str
    segment_id: int
    start: Vec3
    end: Vec3

    @property
    def identity(self) -> Tuple[str, int]:
        return (self.sketch_name, self.segment_id)

    @property
    def direction(self) -> np.ndarray:
        d = np.asarray(self.end) - np.asarray(self.start)
        length = float(np.linalg.norm(d))
        if length < 1e-15:
            return np.zeros(3)
        return d / length

    def project(self, point) -> np.ndarray:
        """Closest point on the infinite line to ``point``."""
        start = np.asarray(self.start, dtype=float)
        d = self.direction
        return start + d * float(np.dot(np.asarray(point, dtype=float) - start, d))


@dataclass(frozen=True)
class TubeDescriptor:
    axis_origin: Vec3
    axis_direction: Vec3
    outer_radius: float
    wall_thickness: float

    def __post_init__(self):
        if self.outer_radius <= 0:
            raise ValueError(f"outer_radius must be positive, got {self.outer_radius}")
        if not (0 <= self.wall_thickness < self.outer_radius):
            raise ValueError(
                f"wall_thickness {self.wall_thickness} outside [0, {self.outer_radius})"
            )


@dataclass(frozen=True)
class ResolvedTube:
    """Everything the pipeline learned about one selected tube."""

    body: BodyRecord
    member: FeatureRecord
    axis_line: AxisLine
    descriptor: TubeDescriptor


@dataclass(frozen=True)
class PlacementResult:
    point1: Vec3
    point2: Vec3
    slot_axis_point1: Vec3
    slot_axis_point2: Vec3
    slot_direction: Vec3
    sin_angle: float
    half_length: float
    tab_shift: float
    plane_normal: Optional[Vec3] = None
    plane_origin: Optional[Vec3] = None
    offset1: Optional[float] = None
    offset2: Optional[float] = None

    @property
    def crossing_midpoint(self) -> np.ndarray:
        return (np.asarray(self.slot_axis_point1) + np.asarray(self.slot_axis_point2)) * 0.5


@dataclass(frozen=True)
class SidePlacement:
    """One side of the intersection after near/far classification."""

    far_side: bool
    point: Vec3
    start_offset: float


@dataclass(frozen=True)
class Arc2D:
    radius: float
    start_angle: float
    end_angle: float

    def point_at(self, center: Vec2, angle: float) -> Vec2:
        return (
            center[0] + self.radius * math.cos(angle),
            center[1] + self.radius * math.sin(angle),
        )

    def start_point(self, center: Vec2) -> Vec2:
        return self.point_at(center, self.start_angle)

    def end_point(self, center: Vec2) -> Vec2:
        return self.point_at(center, self.end_angle)

    @property
    def half_angle(self) -> float:
        return (self.end_angle - self.start_angle) / 2.0


@dataclass(frozen=True)
class Segment2D:
    start: Vec2
    end: Vec2


@dataclass(frozen=True)
class ProfileGeometry:
    """Closed arc+line cross-section on a plane, in the plane's 2D frame."""

    center: Vec2
    outer_arc: Arc2D
    inner_arc: Arc2D
    lines: Tuple[Segment2D, Segment2D]
    far_side: bool = False
    clearance: float = 0.0


class StartCondition(Enum):
    SKETCH_PLANE = "sketch_plane"
    OFFSET = "offset"


@dataclass(frozen=True)
class ExtrusionSpec:
    start_condition: StartCondition
    start_offset: float
    flip_start_offset: bool
    depth: float
    target_body: str
    is_cut: bool
    merge: bool
    reverse_direction: bool = False
    single_direction: bool = True
    use_feature_scope: bool = True
    auto_select_bodies: bool = False


@dataclass(frozen=True)
class CreatedFeature:
    role: str            # "tab" or "slot"
    far_side: bool
    sketch_name: str
    feature_name: str


@dataclass
class TabSlotRunResult:
    """What one confirmed run produced, in creation order."""

    tab: ResolvedTube
    slot: ResolvedTube
    placement: PlacementResult
    plane_name: str
    sides: Tuple[SidePlacement, ...] = ()
    created_features: List[CreatedFeature] = field(default_factory=list)

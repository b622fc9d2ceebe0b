"""
Abstract document adapter used by the tab & slot pipeline.

The pipeline never holds a global "active document": every operation takes
an adapter instance. Implementations must provide:
- an ordered, finite enumeration of feature snapshots
- body lookup from a selected entity
- sketch creation (arcs and lines on a reference plane)
- boss extrude, cut extrude and rebuild commands
"""
from abc import ABC, abstractmethod
from typing import Iterable, Iterator, List, Optional

from tube_tab_slot.contracts import (
    BodyRecord,
    ExtrusionSpec,
    FeatureKind,
    FeatureRecord,
    Vec2,
)


class DocumentAdapter(ABC):
    """Capability interface over a host CAD document."""

    @abstractmethod
    def features(self) -> Iterator[FeatureRecord]:
        """Top-level features in creation order."""

    @abstractmethod
    def body_for_selection(self, entity) -> Optional[BodyRecord]:
        """Body owning a selected entity (a body or one of its faces)."""

    @abstractmethod
    def begin_sketch(self, plane: FeatureRecord) -> None:
        """Open a new sketch on ``plane``; sketch frame equals the plane frame."""

    @abstractmethod
    def add_arc(self, center: Vec2, start: Vec2, end: Vec2) -> None:
        """Counter-clockwise arc from ``start`` to ``end`` about ``center``."""

    @abstractmethod
    def add_line(self, start: Vec2, end: Vec2) -> None:
        """Straight segment in the open sketch."""

    @abstractmethod
    def end_sketch(self) -> str:
        """Close the open sketch and return its feature name."""

    @abstractmethod
    def boss_extrude(self, sketch_name: str, spec: ExtrusionSpec) -> str:
        """Create a boss extrude; returns the feature name."""

    @abstractmethod
    def cut_extrude(self, sketch_name: str, spec: ExtrusionSpec) -> str:
        """Create a cut extrude; returns the feature name."""

    @abstractmethod
    def rebuild(self) -> None:
        """Request a full rebuild of the document."""

    # ─── Traversal helpers ───────────────────────────────────────────────

    def features_before(self, feature_name: str) -> List[FeatureRecord]:
        """Top-level features created before ``feature_name``."""
        preceding = []
        for feat in self.features():
            if feat.name == feature_name:
                break
            preceding.append(feat)
        return preceding

    def default_planes(self) -> List[FeatureRecord]:
        """Reference planes ahead of the origin marker."""
        planes = []
        for feat in self.features():
            if feat.kind == FeatureKind.REFERENCE_PLANE:
                planes.append(feat)
            if feat.kind == FeatureKind.ORIGIN:
                break
        return planes

    def member_for_body(self, body: BodyRecord) -> Optional[FeatureRecord]:
        """First structural-member feature owning ``body``."""
        for feat in self.features():
            if feat.kind == FeatureKind.STRUCTURAL_MEMBER and feat.owns_body(body.name):
                return feat
        return None


def iter_kind(features: Iterable[FeatureRecord], kind: FeatureKind) -> Iterator[FeatureRecord]:
    return (f for f in features if f.kind == kind)

"""Optional observers of intermediate placement geometry.

Observers never influence control flow; the runner only notifies them.
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from tube_tab_slot.contracts import PlacementResult, SidePlacement


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def _canonical_json(payload: Dict[str, object]) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def sha256_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class PlacementObserver:
    """No-op base; override the hooks of interest."""

    def on_placement(self, placement: PlacementResult) -> None:
        pass

    def on_sides(self, near: SidePlacement, far: SidePlacement) -> None:
        pass

    def on_profile(self, role: str, side: SidePlacement, points: Dict[str, tuple]) -> None:
        pass


class TraceRecorder(PlacementObserver):
    """Append-only JSONL trace with per-entry hash chaining."""

    def __init__(self, run_id: str, trace_path: Path):
        self.run_id = run_id
        self.trace_path = Path(trace_path)
        self.trace_path.parent.mkdir(parents=True, exist_ok=True)
        self._sequence = 0
        self._prev_hash = "0" * 64
        self._entries: List[Dict[str, object]] = []

    @property
    def entries(self) -> List[Dict[str, object]]:
        return list(self._entries)

    @property
    def final_hash(self) -> str:
        return self._prev_hash

    def _append(self, event: str, data: Dict[str, object]) -> Dict[str, object]:
        self._sequence += 1
        payload: Dict[str, object] = {
            "schema_version": "tube_tab_slot.trace.v1",
            "run_id": self.run_id,
            "seq": self._sequence,
            "timestamp_utc": _utc_now_iso(),
            "event": event,
            "data": data,
            "previous_hash": self._prev_hash,
        }
        digest = sha256_text(_canonical_json(payload))
        payload["hash"] = digest

        with self.trace_path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(payload, sort_keys=True) + "\n")

        self._entries.append(payload)
        self._prev_hash = digest
        return payload

    def on_placement(self, placement: PlacementResult) -> None:
        self._append("placement", {
            "point1": list(placement.point1),
            "point2": list(placement.point2),
            "slot_axis_point1": list(placement.slot_axis_point1),
            "slot_axis_point2": list(placement.slot_axis_point2),
            "plane_normal": _maybe_list(placement.plane_normal),
            "plane_origin": _maybe_list(placement.plane_origin),
            "offset1": placement.offset1,
            "offset2": placement.offset2,
            "sin_angle": placement.sin_angle,
        })

    def on_sides(self, near: SidePlacement, far: SidePlacement) -> None:
        self._append("sides", {
            "near": {"point": list(near.point), "start_offset": near.start_offset},
            "far": {"point": list(far.point), "start_offset": far.start_offset},
        })

    def on_profile(self, role: str, side: SidePlacement, points: Dict[str, tuple]) -> None:
        self._append("profile", {
            "role": role,
            "far_side": side.far_side,
            "points": {k: list(v) for k, v in points.items()},
        })


def _maybe_list(value: Optional[tuple]) -> Optional[list]:
    return None if value is None else list(value)

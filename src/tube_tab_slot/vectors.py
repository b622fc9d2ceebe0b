"""Small numpy helpers for lines in 3D."""

from __future__ import annotations

from typing import Tuple

import numpy as np


def unit_vector(vector) -> np.ndarray:
    """Normalised copy of ``vector``; zero vector for degenerate input."""
    v = np.asarray(vector, dtype=float)
    length = float(np.linalg.norm(v))
    if length < 1e-15:
        return np.zeros(3)
    return v / length


def closest_points_between_lines(
    p1, d1, p2, d2,
) -> Tuple[np.ndarray, np.ndarray]:
    """Closest points of the infinite lines ``p1 + t*d1`` and ``p2 + s*d2``.

    Exactly parallel lines have no unique solution; the first line's
    reference point is paired with its projection onto the second line.
    """
    p1 = np.asarray(p1, dtype=float)
    p2 = np.asarray(p2, dtype=float)
    d1 = np.asarray(d1, dtype=float)
    d2 = np.asarray(d2, dtype=float)

    w0 = p1 - p2
    a = float(d1 @ d1)
    b = float(d1 @ d2)
    c = float(d2 @ d2)
    d = float(d1 @ w0)
    e = float(d2 @ w0)

    denom = a * c - b * b
    if abs(denom) < 1e-15:
        t = 0.0
        s = e / c
    else:
        t = (b * e - c * d) / denom
        s = (a * e - b * d) / denom

    return p1 + d1 * t, p2 + d2 * s


def closest_approach_midpoint(p1, d1, p2, d2) -> np.ndarray:
    pt1, pt2 = closest_points_between_lines(p1, d1, p2, d2)
    return (pt1 + pt2) * 0.5


def point_line_distance(point, line_point, line_dir) -> float:
    """Distance from ``point`` to the infinite line through ``line_point``.

    ``line_dir`` must be a unit vector.
    """
    w = np.asarray(point, dtype=float) - np.asarray(line_point, dtype=float)
    return float(np.linalg.norm(np.cross(w, np.asarray(line_dir, dtype=float))))

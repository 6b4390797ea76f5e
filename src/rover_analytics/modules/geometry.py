"""Geometry primitives for traverse analysis.

All functions are pure and work in the vehicle's local Cartesian frame
(meters, +x east, +y north, +z up).

This module provides:
- distance_3d: Euclidean distance between two points
- bearing_2d: Compass bearing between two points projected onto x-y
- perpendicular_distance: Distance from a point to a chord in 3-space
- simplify: Douglas-Peucker polyline simplification over 3D points
"""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

Point3D = tuple[float, float, float]

# Squared chord length below which a chord is treated as a single point
_DEGENERATE_CHORD_SQ = 1e-20


def distance_3d(a: Sequence[float], b: Sequence[float]) -> float:
    """Compute Euclidean distance between two 3D points."""
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    dz = b[2] - a[2]
    return math.sqrt(dx * dx + dy * dy + dz * dz)


def bearing_2d(a: Sequence[float], b: Sequence[float]) -> float:
    """Compute the compass bearing from a to b in degrees.

    Uses x-y only. 0 = +y (north), 90 = +x (east). The result is
    normalized to [0, 360); coincident points give 0.
    """
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    bearing = math.degrees(math.atan2(dx, dy)) % 360.0
    # -1e-17 % 360.0 rounds up to 360.0
    return 0.0 if bearing >= 360.0 else bearing


def _chord_distances(points: np.ndarray, a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Distances from each row of ``points`` to the chord a-b."""
    ab = b - a
    ap = points - a
    ab_len_sq = float(ab @ ab)

    if ab_len_sq < _DEGENERATE_CHORD_SQ:
        return np.linalg.norm(ap, axis=1)

    t = np.clip((ap @ ab) / ab_len_sq, 0.0, 1.0)
    closest = a + t[:, np.newaxis] * ab
    return np.linalg.norm(points - closest, axis=1)


def perpendicular_distance(
    p: Sequence[float],
    a: Sequence[float],
    b: Sequence[float],
) -> float:
    """Distance from p to the chord a-b, measured in 3-space.

    The foot of the perpendicular is clamped to the chord, so points beyond
    either end measure to the nearer endpoint. A degenerate chord (a == b)
    measures to a.
    """
    point = np.asarray(p, dtype=np.float64).reshape(1, 3)
    return float(_chord_distances(point, np.asarray(a, dtype=np.float64), np.asarray(b, dtype=np.float64))[0])


def simplify(points: Sequence[Sequence[float]] | np.ndarray, tolerance_m: float) -> list[int]:
    """Douglas-Peucker simplification of an ordered 3D polyline.

    Always keeps the first and last point. For each section, the interior
    point farthest from the section's chord is kept if its distance exceeds
    ``tolerance_m`` and both halves are processed in turn; otherwise every
    interior point of the section is discarded.

    Sections are processed from an explicit stack rather than by recursion
    so very long paths cannot exhaust the interpreter's recursion limit.

    Args:
        points: Ordered (x, y, z) points.
        tolerance_m: Maximum allowed deviation in meters.

    Returns:
        Indices of the kept points, ascending.
    """
    coords = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    n = len(coords)
    if n < 3:
        return list(range(n))

    keep = np.zeros(n, dtype=bool)
    keep[0] = True
    keep[n - 1] = True

    sections = [(0, n - 1)]
    while sections:
        start, end = sections.pop()
        if end - start < 2:
            continue

        distances = _chord_distances(coords[start + 1:end], coords[start], coords[end])
        # argmax returns the first of equal maxima
        offset = int(np.argmax(distances))
        if distances[offset] > tolerance_m:
            split = start + 1 + offset
            keep[split] = True
            sections.append((split, end))
            sections.append((start, split))

    return [int(i) for i in np.flatnonzero(keep)]


__all__ = [
    "Point3D",
    "bearing_2d",
    "distance_3d",
    "perpendicular_distance",
    "simplify",
]

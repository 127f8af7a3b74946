"""Shared geometric predicates for the layout stages."""

from __future__ import annotations

import math
from collections.abc import Iterator, Sequence

from metro_schematic.layout.constants import AXIS_TOLERANCE, OVERLAP_TOLERANCE
from metro_schematic.parser.model import Point


def same_point(a: Point, b: Point, tol: float = 1e-9) -> bool:
    return abs(a[0] - b[0]) <= tol and abs(a[1] - b[1]) <= tol


def distance(a: Point, b: Point) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def cross(o: Point, a: Point, b: Point) -> float:
    """Z component of (a - o) x (b - o)."""
    return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])


def unit(a: Point, b: Point) -> tuple[float, float]:
    """Unit direction from a to b, or (0, 0) for a zero-length edge."""
    length = distance(a, b)
    if length == 0:
        return (0.0, 0.0)
    return ((b[0] - a[0]) / length, (b[1] - a[1]) / length)


def is_axis_aligned(a: Point, b: Point, tol: float = AXIS_TOLERANCE) -> bool:
    return abs(a[0] - b[0]) <= tol or abs(a[1] - b[1]) <= tol


def edges(points: Sequence[Point]) -> Iterator[tuple[Point, Point]]:
    """Consecutive point pairs, skipping zero-length edges."""
    for a, b in zip(points, points[1:]):
        if a != b:
            yield a, b


def polyline_length(points: Sequence[Point]) -> float:
    return sum(distance(a, b) for a, b in zip(points, points[1:]))


def cumulative_lengths(points: Sequence[Point]) -> list[float]:
    """Arc length from the first point to each point."""
    out = [0.0]
    for a, b in zip(points, points[1:]):
        out.append(out[-1] + distance(a, b))
    return out


def point_at_distance(points: Sequence[Point], cum: Sequence[float], d: float) -> Point:
    """Linearly interpolate the point at arc length ``d``.

    ``d`` is clamped to the polyline; a zero-length polyline returns its
    first point.
    """
    if d <= 0 or cum[-1] == 0:
        return points[0]
    if d >= cum[-1]:
        return points[-1]
    for i in range(len(points) - 1):
        if cum[i + 1] >= d:
            span = cum[i + 1] - cum[i]
            t = 0.0 if span == 0 else (d - cum[i]) / span
            a, b = points[i], points[i + 1]
            return (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)
    return points[-1]


def interpolate(a: Point, b: Point, n: int) -> list[Point]:
    """``n`` equally spaced points from a to b inclusive."""
    if n <= 1:
        return [a]
    return [
        (a[0] + (b[0] - a[0]) * i / (n - 1), a[1] + (b[1] - a[1]) * i / (n - 1))
        for i in range(n)
    ]


def bbox_disjoint(a1: Point, a2: Point, b1: Point, b2: Point) -> bool:
    return (
        max(a1[0], a2[0]) < min(b1[0], b2[0])
        or max(b1[0], b2[0]) < min(a1[0], a2[0])
        or max(a1[1], a2[1]) < min(b1[1], b2[1])
        or max(b1[1], b2[1]) < min(a1[1], a2[1])
    )


def segments_cross(a1: Point, a2: Point, b1: Point, b2: Point, tol: float = 0.0) -> bool:
    """True if the two segments properly cross.

    Segments sharing an endpoint never count, and neither do touching or
    collinear contacts: both orientation pairs must have strictly
    opposite signs.
    """
    if a1 == b1 or a1 == b2 or a2 == b1 or a2 == b2:
        return False
    if bbox_disjoint(a1, a2, b1, b2):
        return False
    d1 = cross(b1, b2, a1)
    d2 = cross(b1, b2, a2)
    d3 = cross(a1, a2, b1)
    d4 = cross(a1, a2, b2)
    return d1 * d2 < -tol and d3 * d4 < -tol


def line_intersection(a1: Point, a2: Point, b1: Point, b2: Point) -> tuple[float, float, Point] | None:
    """Intersection of the supporting lines as ``(t, u, point)``.

    ``t`` and ``u`` are the parameters along a and b. Parallel lines
    return None.
    """
    dxa, dya = a2[0] - a1[0], a2[1] - a1[1]
    dxb, dyb = b2[0] - b1[0], b2[1] - b1[1]
    denom = dxa * dyb - dya * dxb
    if abs(denom) < 1e-12:
        return None
    t = ((b1[0] - a1[0]) * dyb - (b1[1] - a1[1]) * dxb) / denom
    u = ((b1[0] - a1[0]) * dya - (b1[1] - a1[1]) * dxa) / denom
    return t, u, (a1[0] + t * dxa, a1[1] + t * dya)


def overlap_length(
    a1: Point, a2: Point, b1: Point, b2: Point, tol: float = AXIS_TOLERANCE
) -> float:
    """Shared length of two axis-aligned segments lying on the same line."""
    a_h = abs(a1[1] - a2[1]) <= tol
    b_h = abs(b1[1] - b2[1]) <= tol
    a_v = abs(a1[0] - a2[0]) <= tol
    b_v = abs(b1[0] - b2[0]) <= tol
    if a_h and b_h and not (a_v or b_v) and abs(a1[1] - b1[1]) <= tol:
        lo = max(min(a1[0], a2[0]), min(b1[0], b2[0]))
        hi = min(max(a1[0], a2[0]), max(b1[0], b2[0]))
        return max(0.0, hi - lo)
    if a_v and b_v and not (a_h or b_h) and abs(a1[0] - b1[0]) <= tol:
        lo = max(min(a1[1], a2[1]), min(b1[1], b2[1]))
        hi = min(max(a1[1], a2[1]), max(b1[1], b2[1]))
        return max(0.0, hi - lo)
    return 0.0


def collinear_overlap(
    a1: Point,
    a2: Point,
    b1: Point,
    b2: Point,
    tol: float = AXIS_TOLERANCE,
    min_overlap: float = OVERLAP_TOLERANCE,
) -> bool:
    return overlap_length(a1, a2, b1, b2, tol) > min_overlap


def point_in_polygon(pt: Point, polygon: Sequence[Point]) -> bool:
    """Ray-casting containment test; the polygon closes implicitly."""
    x, y = pt
    inside = False
    n = len(polygon)
    j = n - 1
    for i in range(n):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if (yi > y) != (yj > y):
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < x_cross:
                inside = not inside
        j = i
    return inside


def distance_to_segment(pt: Point, a: Point, b: Point) -> float:
    dx, dy = b[0] - a[0], b[1] - a[1]
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return distance(pt, a)
    t = ((pt[0] - a[0]) * dx + (pt[1] - a[1]) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return distance(pt, (a[0] + t * dx, a[1] + t * dy))


def point_on_segment(pt: Point, a: Point, b: Point, tol: float) -> bool:
    return distance_to_segment(pt, a, b) <= tol


def corner_indices(points: Sequence[Point], tol: float = AXIS_TOLERANCE) -> list[int]:
    """Indices of the endpoints and direction changes of a polyline.

    Repeated points are skipped; a 180 degree reversal counts as a corner.
    """
    idx = [i for i in range(len(points)) if i == 0 or points[i] != points[i - 1]]
    if len(idx) <= 2:
        return idx
    out = [idx[0]]
    for k in range(1, len(idx) - 1):
        a, b, c = points[idx[k - 1]], points[idx[k]], points[idx[k + 1]]
        backtrack = (b[0] - a[0]) * (c[0] - b[0]) + (b[1] - a[1]) * (c[1] - b[1]) < 0
        if abs(cross(a, b, c)) > tol or backtrack:
            out.append(idx[k])
    out.append(idx[-1])
    return out


def corners(points: Sequence[Point], tol: float = AXIS_TOLERANCE) -> list[Point]:
    """Reduce a polyline to its endpoints and direction changes."""
    return [points[i] for i in corner_indices(points, tol)]

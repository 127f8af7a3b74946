"""Crossing counts and global intersection scans."""

from __future__ import annotations

from collections.abc import Sequence

from metro_schematic.layout.constants import ENDPOINT_CLEARANCE, INTERSECT_MARGIN
from metro_schematic.layout.geometry import (
    bbox_disjoint,
    distance,
    edges,
    line_intersection,
    segments_cross,
)
from metro_schematic.parser.model import Point, PointKey

Edge = tuple[Point, Point]


def count_crossings(path: Sequence[Point], placed: Sequence[Edge]) -> int:
    """Proper crossings between ``path`` and already-placed edges."""
    total = 0
    for a1, a2 in edges(path):
        for b1, b2 in placed:
            if segments_cross(a1, a2, b1, b2):
                total += 1
    return total


def find_illegal_intersections(
    paths: Sequence[Sequence[Point]],
    margin: float = INTERSECT_MARGIN,
    clearance: float = ENDPOINT_CLEARANCE,
) -> list[Point]:
    """Distinct interior intersection points across all paths.

    An intersection counts only when it lies strictly inside both edges
    (parameter in ``(margin, 1 - margin)``) and is farther than
    ``clearance`` from all four edge endpoints.
    """
    all_edges = [e for path in paths for e in edges(path)]
    found: dict[PointKey, Point] = {}
    for i in range(len(all_edges)):
        a1, a2 = all_edges[i]
        for j in range(i + 1, len(all_edges)):
            b1, b2 = all_edges[j]
            if bbox_disjoint(a1, a2, b1, b2):
                continue
            hit = line_intersection(a1, a2, b1, b2)
            if hit is None:
                continue
            t, u, p = hit
            if not (margin < t < 1 - margin and margin < u < 1 - margin):
                continue
            if min(distance(p, q) for q in (a1, a2, b1, b2)) < clearance:
                continue
            found.setdefault(PointKey.of(p), p)
    return list(found.values())

"""Hard constraints on link path candidates."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from metro_schematic.errors import ConstraintUnsatisfiable
from metro_schematic.layout.constants import (
    AXIS_TOLERANCE,
    KEY_EPSILON,
    OVERLAP_TOLERANCE,
)
from metro_schematic.layout.geometry import collinear_overlap, edges, point_in_polygon
from metro_schematic.parser.model import Point, PointKey

Edge = tuple[Point, Point]


def has_collinear_overlap(
    path: Sequence[Point],
    placed: Iterable[Edge],
    tol: float = AXIS_TOLERANCE,
    min_overlap: float = OVERLAP_TOLERANCE,
) -> bool:
    """True if any leg of ``path`` runs along an already-placed edge."""
    placed = list(placed)
    for a1, a2 in edges(path):
        for b1, b2 in placed:
            if collinear_overlap(a1, a2, b1, b2, tol, min_overlap):
                return True
    return False


def has_enclosure_violation(
    path: Sequence[Point],
    stations: Iterable[Point],
    exclude: set[PointKey],
    eps: float = KEY_EPSILON,
) -> bool:
    """True if ``path``, closed into a polygon, contains a foreign station.

    Two-point paths enclose nothing. Stations whose key is in ``exclude``
    (the link's own endpoints and carried stations) are ignored.
    """
    if len(path) <= 2:
        return False
    xs = [p[0] for p in path]
    ys = [p[1] for p in path]
    min_x, max_x, min_y, max_y = min(xs), max(xs), min(ys), max(ys)
    for st in stations:
        if not (min_x <= st[0] <= max_x and min_y <= st[1] <= max_y):
            continue
        if PointKey.of(st, eps) in exclude:
            continue
        if point_in_polygon(st, path):
            return True
    return False


def filter_candidates(
    pool: list[list[Point]],
    placed: list[Edge],
    stations: list[Point],
    exclude: set[PointKey],
    link_index: int = -1,
    eps: float = KEY_EPSILON,
) -> list[list[Point]]:
    """Candidates that pass both hard constraints.

    Raises ConstraintUnsatisfiable when none does.
    """
    survivors = [
        path
        for path in pool
        if not has_collinear_overlap(path, placed)
        and not has_enclosure_violation(path, stations, exclude, eps)
    ]
    if not survivors:
        raise ConstraintUnsatisfiable(link_index, len(pool))
    return survivors

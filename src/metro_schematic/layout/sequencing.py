"""Route sequencing and centre shrinking.

Each route's segments are first put in travel order. The walk starts at a
route terminal and repeatedly takes the unvisited segment sharing the
current end, reversing it when it is attached by its far end.

Stations then slide toward the map centre one grid cell per round, along
the straight leg they sit on::

    x        0  1  2  3  4  5  6      centre x = 3
    before   A--s-----------------B
    after    A--------s-----------B

A station never leaves the open stretch between its two neighbours on the
segment, so line geometry and station order are untouched. Points where
a route turns, segment ends, transfers and points shared by more than one
segment are locked. Grid lines emptied by the moves are collapsed by a
final normalization.
"""

from __future__ import annotations

__all__ = [
    "detect_turns",
    "locked_keys",
    "reorder_route",
    "reorder_segments",
    "sequence_routes",
    "shrink_toward_center",
]

import logging
from collections import Counter

from metro_schematic.layout.config import PipelineConfig
from metro_schematic.layout.constants import KEY_EPSILON, ORTHO_TOLERANCE
from metro_schematic.layout.correction import stitch_route
from metro_schematic.layout.normalize import normalize
from metro_schematic.layout.topology import build_adjacency
from metro_schematic.parser.model import Network, Point, PointKey, Segment

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


def reorder_route(segments: list[Segment], eps: float = KEY_EPSILON) -> list[Segment]:
    """Put one route's segments in travel order, flipping reversed ones.

    Each connected piece is walked from a terminal (an end used by a
    single segment) when it has one. Segments are reversed copies where
    needed; the rest are returned as given.
    """
    ends = [(PointKey.of(s.start, eps), PointKey.of(s.end, eps)) for s in segments]
    degree: Counter[PointKey] = Counter(k for pair in ends for k in pair)
    attached: dict[PointKey, list[int]] = {}
    for i, (a, b) in enumerate(ends):
        attached.setdefault(a, []).append(i)
        attached.setdefault(b, []).append(i)

    visited = [False] * len(segments)
    ordered: list[Segment] = []
    while not all(visited):
        remaining = [i for i, seen in enumerate(visited) if not seen]
        first = next(
            (i for i in remaining if degree[ends[i][0]] == 1 or degree[ends[i][1]] == 1),
            remaining[0],
        )
        visited[first] = True
        a, b = ends[first]
        flip = degree[b] == 1 and degree[a] != 1
        ordered.append(segments[first].reversed() if flip else segments[first])
        current = a if flip else b
        while True:
            nxt = next((i for i in attached[current] if not visited[i]), None)
            if nxt is None:
                break
            visited[nxt] = True
            a, b = ends[nxt]
            if a == current:
                ordered.append(segments[nxt])
                current = b
            else:
                ordered.append(segments[nxt].reversed())
                current = a
    return ordered


def reorder_segments(network: Network, eps: float = KEY_EPSILON) -> Network:
    """Every route's segments contiguous and in travel order."""
    out = network.copy()
    segments: list[Segment] = []
    for route in out.routes():
        segments.extend(reorder_route(route.segments, eps))
    out.segments = segments
    return out


# ---------------------------------------------------------------------------
# Locking
# ---------------------------------------------------------------------------


def _direction(a: Point, b: Point, tol: float) -> str | None:
    dx, dy = b[0] - a[0], b[1] - a[1]
    if abs(dy) < tol and abs(dx) > tol:
        return "h"
    if abs(dx) < tol and abs(dy) > tol:
        return "v"
    return None


def detect_turns(
    polyline: list[Point], eps: float = KEY_EPSILON, tol: float = ORTHO_TOLERANCE
) -> set[PointKey]:
    """Keys of the points where a polyline switches between horizontal and vertical."""
    pts: list[Point] = []
    for p in polyline:
        if not pts or abs(p[0] - pts[-1][0]) > tol or abs(p[1] - pts[-1][1]) > tol:
            pts.append(p)
    turns = set()
    for prev, cur, nxt in zip(pts, pts[1:], pts[2:]):
        before, after = _direction(prev, cur, tol), _direction(cur, nxt, tol)
        if before and after and before != after:
            turns.add(PointKey.of(cur, eps))
    return turns


def locked_keys(network: Network, eps: float = KEY_EPSILON) -> set[PointKey]:
    """Positions no station may leave or be moved through."""
    uses: Counter[PointKey] = Counter()
    locked: set[PointKey] = set()
    for seg in network.segments:
        for p, node in zip(seg.points, seg.nodes):
            key = PointKey.of(p, eps)
            uses[key] += 1
            if node.is_transfer:
                locked.add(key)
        locked.add(PointKey.of(seg.start, eps))
        locked.add(PointKey.of(seg.end, eps))
    locked.update(k for k, n in uses.items() if n > 1)

    G = build_adjacency(network, eps)
    locked.update(k for k in G.nodes if G.degree(k) > 2)
    for route in network.routes():
        for line in stitch_route(route.segments):
            locked |= detect_turns(line, eps)
    return locked


# ---------------------------------------------------------------------------
# Shrinking
# ---------------------------------------------------------------------------


def _toward(value: float, target: float) -> float:
    if value < target:
        return 1.0
    if value > target:
        return -1.0
    return 0.0


def _shrink_target(
    prev: Point, p: Point, nxt: Point, center: tuple[float, float], tol: float = ORTHO_TOLERANCE
) -> Point | None:
    """One cell toward the centre along the leg ``prev - p - nxt``, if it stays inside."""
    axis = _direction(prev, p, tol)
    if axis is None or axis != _direction(p, nxt, tol):
        return None
    i = 0 if axis == "h" else 1
    step = _toward(p[i], center[i])
    if step == 0:
        return None
    lo, hi = sorted((prev[i], nxt[i]))
    moved = p[i] + step
    if not lo < moved < hi:
        return None
    return (moved, p[1]) if i == 0 else (p[0], moved)


def shrink_toward_center(network: Network, config: PipelineConfig | None = None) -> Network:
    """Slide unlocked stations toward the centre until none can move."""
    config = config or PipelineConfig()
    eps = config.key_eps
    out = network.copy()
    points = out.all_points()
    if not points:
        return out
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    center = (round((min(xs) + max(xs)) / 2), round((min(ys) + max(ys)) / 2))
    locked = locked_keys(out, eps)
    occupied = {PointKey.of(p, eps) for p in points}

    total = 0
    rounds = 0
    for _ in range(config.shrink_rounds):
        rounds += 1
        moved = 0
        for seg in out.segments:
            for i in range(1, len(seg.points) - 1):
                p = seg.points[i]
                key = PointKey.of(p, eps)
                if not seg.nodes[i].is_real_station or key in locked:
                    continue
                target = _shrink_target(seg.points[i - 1], p, seg.points[i + 1], center)
                if target is None:
                    continue
                target_key = PointKey.of(target, eps)
                if target_key in occupied:
                    continue
                occupied.discard(key)
                occupied.add(target_key)
                seg.points[i] = target
                moved += 1
        total += moved
        if moved == 0:
            break
    logger.info("Shrank stations toward %s: %d moves in %d rounds", center, total, rounds)
    return out


def sequence_routes(network: Network, config: PipelineConfig | None = None) -> Network:
    """Reorder every route, shrink stations toward the centre, re-normalize."""
    config = config or PipelineConfig()
    ordered = reorder_segments(network, config.key_eps)
    return normalize(shrink_toward_center(ordered, config))

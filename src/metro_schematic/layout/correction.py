"""Topology correction: U-shape collapse and dead-end straightening.

A U-shape is three consecutive straight legs where the outer two point in
opposite directions and the bridge between them is short::

    A           D            A, D'
    |           |            |
    |           |     ->     |
    p2 ------- p3            p2 = p3'

The bridge is collapsed by moving one of its ends onto the other. The
outer leg attached to the moving end is translated along with it so the
result stays orthogonal, and a global scan rejects any move that would
still leave a diagonal edge anywhere in the network.
"""

from __future__ import annotations

__all__ = [
    "UShape",
    "collapse_u_shapes",
    "find_u_shapes",
    "stitch_route",
    "straighten_dead_ends",
]

import logging
from collections import Counter
from dataclasses import dataclass

from metro_schematic.layout.config import PipelineConfig
from metro_schematic.layout.constants import (
    ANTIPARALLEL_DOT,
    COLLINEAR_TOLERANCE,
    ORTHO_TOLERANCE,
    STITCH_TOLERANCE,
    U_SHAPE_CAP,
)
from metro_schematic.layout.geometry import (
    corner_indices,
    cross,
    distance,
    is_axis_aligned,
    same_point,
    unit,
)
from metro_schematic.layout.injection import spread_stations
from metro_schematic.parser.model import Network, Point, PointKey, Segment

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Stitching
# ---------------------------------------------------------------------------


def stitch_route(segments: list[Segment], tol: float = STITCH_TOLERANCE) -> list[list[Point]]:
    """Join a route's segments into continuous polylines.

    Segments are attached at either end of the growing polyline, reversed
    when needed (start-start, start-end, end-start, end-end).
    """
    remaining = [list(seg.points) for seg in segments if len(seg.points) >= 2]
    lines: list[list[Point]] = []
    while remaining:
        line = remaining.pop(0)
        grown = True
        while grown:
            grown = False
            for i, pts in enumerate(remaining):
                if same_point(line[-1], pts[0], tol):
                    line = line + pts[1:]
                elif same_point(line[-1], pts[-1], tol):
                    line = line + pts[-2::-1]
                elif same_point(line[0], pts[-1], tol):
                    line = pts[:-1] + line
                elif same_point(line[0], pts[0], tol):
                    line = pts[:0:-1] + line
                else:
                    continue
                remaining.pop(i)
                grown = True
                break
        lines.append(line)
    return lines


# ---------------------------------------------------------------------------
# U-shape detection
# ---------------------------------------------------------------------------


@dataclass
class UShape:
    """Corner indices into a stitched polyline: legs i0-i1, i1-i2, i2-i3."""

    polyline: list[Point]
    i0: int
    i1: int
    i2: int
    i3: int

    @property
    def p2(self) -> Point:
        return self.polyline[self.i1]

    @property
    def p3(self) -> Point:
        return self.polyline[self.i2]

    @property
    def bridge_length(self) -> float:
        return distance(self.p2, self.p3)


def find_u_shapes(polyline: list[Point], cap: float = U_SHAPE_CAP) -> list[UShape]:
    """All U-shapes along a polyline, in order."""
    c = corner_indices(polyline)
    found = []
    for k in range(len(c) - 3):
        a, b, d, e = (polyline[c[k + j]] for j in range(4))
        l1, l2, l3 = distance(a, b), distance(b, d), distance(d, e)
        if l2 == 0 or l2 > cap or not (l2 < l1 and l2 < l3):
            continue
        u1, u3 = unit(a, b), unit(d, e)
        if u1[0] * u3[0] + u1[1] * u3[1] < ANTIPARALLEL_DOT:
            found.append(UShape(polyline, c[k], c[k + 1], c[k + 2], c[k + 3]))
    return found


# ---------------------------------------------------------------------------
# Global move + validation
# ---------------------------------------------------------------------------


def diagonal_edges(network: Network, tol: float) -> set[frozenset[PointKey]]:
    out = set()
    for seg in network.segments:
        for a, b in zip(seg.points, seg.points[1:]):
            if a != b and not is_axis_aligned(a, b, tol):
                out.add(frozenset((PointKey.of(a), PointKey.of(b))))
    return out


def station_clashes(network: Network) -> int:
    """Positions holding more than one distinct real-station identity."""
    seen: dict[PointKey, set[tuple]] = {}
    for seg in network.segments:
        for p, node in zip(seg.points, seg.nodes):
            if node.is_real_station:
                seen.setdefault(PointKey.of(p), set()).add(node.identity())
    return sum(1 for ids in seen.values() if len(ids) > 1)


def station_identities(network: Network) -> set[tuple]:
    """Identities of every real station still carried by some segment."""
    return {
        node.identity() for seg in network.segments for node in seg.nodes if node.is_real_station
    }


def drop_repeats(seg: Segment) -> None:
    """Remove consecutive duplicate points, keeping the more significant node."""
    points = [seg.points[0]]
    nodes = [seg.nodes[0]]
    for p, node in zip(seg.points[1:], seg.nodes[1:]):
        if p == points[-1]:
            if node.is_real_station and not nodes[-1].is_real_station:
                nodes[-1] = node
            elif node.is_real_station and nodes[-1].is_real_station:
                points.append(p)
                nodes.append(node)
            continue
        points.append(p)
        nodes.append(node)
    if len(points) != len(seg.points):
        seg.station_weights = []
    seg.points, seg.nodes = points, nodes


def move_points(network: Network, moved: set[PointKey], delta: tuple[float, float]) -> Network:
    """Copy of ``network`` with every point whose key is in ``moved`` shifted."""
    out = network.copy()
    for seg in out.segments:
        seg.points = [
            (p[0] + delta[0], p[1] + delta[1]) if PointKey.of(p) in moved else p
            for p in seg.points
        ]
        drop_repeats(seg)
    out.segments = [seg for seg in out.segments if len(seg.points) >= 2]
    return out


def is_valid_move(before: Network, after: Network, tol: float = ORTHO_TOLERANCE) -> bool:
    """No new diagonal edge, no new station clash and no station lost."""
    if not diagonal_edges(after, tol) <= diagonal_edges(before, tol):
        return False
    if station_identities(after) != station_identities(before):
        return False
    return station_clashes(after) <= station_clashes(before)


def _collapse_move(
    u: UShape, protected: set[PointKey]
) -> tuple[set[PointKey], tuple[float, float]] | None:
    p2_protected = PointKey.of(u.p2) in protected
    p3_protected = PointKey.of(u.p3) in protected
    if p2_protected and p3_protected:
        return None
    pts = u.polyline
    if p3_protected:
        # Move p2 (and leg A-p2) onto p3
        leg = pts[u.i0 : u.i1 + 1]
        delta = (u.p3[0] - u.p2[0], u.p3[1] - u.p2[1])
    else:
        # Move p3 (and leg p3-D) onto p2
        leg = pts[u.i2 : u.i3 + 1]
        delta = (u.p2[0] - u.p3[0], u.p2[1] - u.p3[1])
    return {PointKey.of(p) for p in leg}, delta


def _first_valid_collapse(
    network: Network, protected: set[PointKey], cap: float
) -> Network | None:
    for route in network.routes():
        for line in stitch_route(route.segments):
            for u in find_u_shapes(line, cap):
                move = _collapse_move(u, protected)
                if move is None:
                    continue
                candidate = move_points(network, *move)
                if is_valid_move(network, candidate):
                    return candidate
                logger.debug("Rejected U collapse at %s-%s", u.p2, u.p3)
    return None


def collapse_u_shapes(network: Network, config: PipelineConfig | None = None) -> Network:
    """Collapse short U-shaped detours, one per pass, up to a fixpoint."""
    config = config or PipelineConfig()
    current = network.copy()
    fixed = 0
    for _ in range(config.u_shape_passes):
        protected = set(current.real_stations())
        collapsed = _first_valid_collapse(current, protected, config.u_shape_cap)
        if collapsed is None:
            break
        current = collapsed
        fixed += 1
    logger.info("Collapsed %d U-shapes", fixed)
    return current


# ---------------------------------------------------------------------------
# Dead ends
# ---------------------------------------------------------------------------


def _straight_run(points: list[Point], tol: float = COLLINEAR_TOLERANCE) -> int:
    """Index of the last point collinear with the first leg."""
    i = 1
    while i < len(points) and points[i] == points[0]:
        i += 1
    if i >= len(points):
        return len(points) - 1
    a, b = points[0], points[i]
    end = i
    for j in range(i + 1, len(points)):
        d = (b[0] - a[0]) * (points[j][0] - points[end][0]) + (b[1] - a[1]) * (
            points[j][1] - points[end][1]
        )
        if abs(cross(a, b, points[j])) > tol or d < 0:
            break
        end = j
    return end


def straighten_dead_ends(network: Network) -> Network:
    """Cut dangling branches back to their first straight leg.

    A segment with one end shared with other segments (the hub) and the
    other end free (the tail) keeps only the straight run leaving the hub;
    its stations are spaced evenly along that run.
    """
    out = network.copy()
    usage: Counter[PointKey] = Counter()
    for seg in out.segments:
        usage[PointKey.of(seg.start)] += 1
        usage[PointKey.of(seg.end)] += 1

    changed = 0
    for idx, seg in enumerate(out.segments):
        start_hub = usage[PointKey.of(seg.start)] > 1
        end_hub = usage[PointKey.of(seg.end)] > 1
        if start_hub == end_hub:
            continue
        work = seg if start_hub else seg.reversed()
        stop = _straight_run(work.points)
        if stop >= len(work.points) - 1:
            continue
        stations = [n for n in work.nodes[1:-1] if n.is_real_station]
        points, nodes = spread_stations(
            [work.points[0], work.points[stop]], stations, work.nodes[0], work.nodes[-1]
        )
        work.points, work.nodes = points, nodes
        work.station_weights = []
        out.segments[idx] = work if start_hub else work.reversed()
        changed += 1
    logger.info("Straightened %d dead-end branches", changed)
    return out

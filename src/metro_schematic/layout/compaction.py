"""Layout compaction by ghost moves.

For every straight leg ``c[i] -> c[i+1]`` of a stitched route the optimizer
considers two perpendicular shifts, each of which absorbs a neighbouring
leg::

    c[i-1]                         c[i-1] ====== c[i+1]'
      |                 shift up            |
    c[i] ======= c[i+1]   ---->             |
                   |                      c[i+2]
                 c[i+2]

The shifted leg is a "ghost" until it passes every legality check:

1. its endpoints do not land on or cut through another point
2. it does not overlap existing geometry
3. no point lies in the rectangle swept by the shift
4. no edge anywhere in the network becomes diagonal
5. no real station is lost to a collapsed segment

The smallest legal shift is applied, then everything is recomputed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from metro_schematic.layout.config import PipelineConfig
from metro_schematic.layout.constants import (
    MIN_MOVE,
    NODE_CLEARANCE,
    ORTHO_TOLERANCE,
    ROUND_DIGITS,
)
from metro_schematic.layout.correction import (
    diagonal_edges,
    drop_repeats,
    station_clashes,
    station_identities,
    stitch_route,
)
from metro_schematic.layout.geometry import (
    collinear_overlap,
    corners,
    distance,
    edges,
    point_on_segment,
)
from metro_schematic.parser.model import Network, Point

logger = logging.getLogger(__name__)


@dataclass
class GhostMove:
    """A candidate shift of the leg ``p1 -> p2`` by ``shift``."""

    p1: Point
    p2: Point
    shift: tuple[float, float]
    # Neighbouring corners the ghost may legitimately land on
    exempt: tuple[Point, ...]

    @property
    def magnitude(self) -> float:
        return distance((0.0, 0.0), self.shift)

    @property
    def ghost(self) -> tuple[Point, Point]:
        dx, dy = self.shift
        return (self.p1[0] + dx, self.p1[1] + dy), (self.p2[0] + dx, self.p2[1] + dy)


def _sub(a: Point, b: Point) -> tuple[float, float]:
    return (a[0] - b[0], a[1] - b[1])


def _dot(u: tuple[float, float], v: tuple[float, float]) -> float:
    return u[0] * v[0] + u[1] * v[1]


def candidate_moves(network: Network) -> list[GhostMove]:
    """Ghost moves for every leg of every stitched route, smallest first."""
    moves: list[GhostMove] = []
    for route in network.routes():
        for line in stitch_route(route.segments):
            c = corners(line)
            for i in range(len(c) - 1):
                p1, p2 = c[i], c[i + 1]
                exempt = tuple(c[j] for j in (i - 1, i + 2) if 0 <= j < len(c))
                if i >= 1:
                    shift = _sub(c[i - 1], c[i])
                    # The next leg may shrink to nothing but must not invert
                    if i + 2 < len(c):
                        after = _sub(c[i + 2], (p2[0] + shift[0], p2[1] + shift[1]))
                        if _dot(after, _sub(c[i + 2], p2)) < 0:
                            shift = None
                    if shift is not None:
                        moves.append(GhostMove(p1, p2, shift, exempt))
                if i + 2 < len(c):
                    shift = _sub(c[i + 2], c[i + 1])
                    if i >= 1:
                        before = _sub((p1[0] + shift[0], p1[1] + shift[1]), c[i - 1])
                        if _dot(before, _sub(p1, c[i - 1])) < 0:
                            continue
                    moves.append(GhostMove(p1, p2, shift, exempt))
    moves = [m for m in moves if m.magnitude > MIN_MOVE]
    moves.sort(key=lambda m: m.magnitude)
    return moves


def _on_leg(p: Point, move: GhostMove, tol: float = ORTHO_TOLERANCE) -> bool:
    return point_on_segment(p, move.p1, move.p2, tol)


def node_collision(move: GhostMove, points: list[Point], tol: float = ORTHO_TOLERANCE) -> bool:
    """Ghost endpoint too close to a point, or ghost leg cutting through one."""
    g1, g2 = move.ghost
    for p in points:
        if _on_leg(p, move) or any(distance(p, q) <= tol for q in move.exempt):
            continue
        if distance(p, g1) < NODE_CLEARANCE or distance(p, g2) < NODE_CLEARANCE:
            return True
        if point_on_segment(p, g1, g2, tol):
            return True
    return False


def ghost_overlap(move: GhostMove, network: Network) -> bool:
    g1, g2 = move.ghost
    for seg in network.segments:
        for a, b in edges(seg.points):
            if _on_leg(a, move) and _on_leg(b, move):
                continue
            if collinear_overlap(g1, g2, a, b, ORTHO_TOLERANCE):
                return True
    return False


def area_interference(move: GhostMove, points: list[Point], eps: float = ORTHO_TOLERANCE) -> bool:
    """Some point lies in the rectangle swept by the shift."""
    g1, g2 = move.ghost
    xs = [move.p1[0], move.p2[0], g1[0], g2[0]]
    ys = [move.p1[1], move.p2[1], g1[1], g2[1]]
    min_x, max_x, min_y, max_y = min(xs), max(xs), min(ys), max(ys)
    for p in points:
        if not (min_x - eps <= p[0] <= max_x + eps and min_y - eps <= p[1] <= max_y + eps):
            continue
        if _on_leg(p, move):
            continue
        if distance(p, g1) <= eps or distance(p, g2) <= eps:
            continue
        return True
    return False


def apply_move(network: Network, move: GhostMove) -> Network:
    """Shift every point on the leg, round, and drop collapsed segments."""
    out = network.copy()
    dx, dy = move.shift
    for seg in out.segments:
        seg.points = [
            (round(p[0] + dx, ROUND_DIGITS), round(p[1] + dy, ROUND_DIGITS))
            if _on_leg(p, move)
            else p
            for p in seg.points
        ]
        drop_repeats(seg)
    out.segments = [seg for seg in out.segments if len(seg.points) >= 2]
    return out


def is_legal(move: GhostMove, network: Network, points: list[Point]) -> Network | None:
    """The network after ``move`` if it passes every check, else None."""
    if node_collision(move, points):
        return None
    if ghost_overlap(move, network):
        return None
    if area_interference(move, points):
        return None
    after = apply_move(network, move)
    if not diagonal_edges(after, ORTHO_TOLERANCE) <= diagonal_edges(network, ORTHO_TOLERANCE):
        return None
    if station_clashes(after) > station_clashes(network):
        return None
    if station_identities(after) != station_identities(network):
        return None
    return after


def compact(network: Network, config: PipelineConfig | None = None) -> Network:
    """Apply the smallest legal ghost move until none is left or the cap is hit."""
    config = config or PipelineConfig()
    current = network.copy()
    applied = 0
    for _ in range(config.compaction_iterations):
        points = list(dict.fromkeys(current.all_points()))
        for move in candidate_moves(current):
            after = is_legal(move, current, points)
            if after is not None:
                logger.debug("Ghost move %s-%s by %s", move.p1, move.p2, move.shift)
                current = after
                applied += 1
                break
        else:
            break
    logger.info("Compaction applied %d ghost moves", applied)
    return current

"""Station re-injection onto re-synthesized link skeletons.

A link's carried stations are described by their normalized arc-length
position (``ratio``) on the original chain. After the synthesizer picks a
new corner skeleton, each station is put back at the same normalized
position along the new skeleton.

Geometry::

    original   A ----- s1 -------- s2 --- B       ratios 0.3, 0.8
    skeleton   A ---------+
                          |
                          +------- B
    result     A ---s1----+
                          |
                          +--s2--- B              s1 at 0.3 L, s2 at 0.8 L
"""

from __future__ import annotations

__all__ = ["CarriedStation", "arc_ratios", "inject_stations", "spread_stations"]

from dataclasses import dataclass

from metro_schematic.layout.geometry import (
    cumulative_lengths,
    point_at_distance,
    same_point,
)
from metro_schematic.parser.model import Node, Point


@dataclass
class CarriedStation:
    """A real station riding on a link, with its arc position in [0, 1]."""

    node: Node
    ratio: float
    point: Point


def arc_ratios(points: list[Point]) -> list[float]:
    """Normalized arc position of each point.

    Zero-length chains fall back to index spacing so carried stations stay
    in order instead of piling up at 0.
    """
    cum = cumulative_lengths(points)
    total = cum[-1]
    if total == 0:
        last = max(len(points) - 1, 1)
        return [i / last for i in range(len(points))]
    return [c / total for c in cum]


def _merge(
    skeleton: list[Point],
    placed: list[tuple[Point, Node, float]],
    start_node: Node,
    end_node: Node,
) -> tuple[list[Point], list[Node]]:
    cum = cumulative_lengths(skeleton)
    # (distance, order, point, node); corners sort before stations on ties
    items: list[tuple[float, int, Point, Node]] = []
    for i in range(1, len(skeleton) - 1):
        items.append((cum[i], 0, skeleton[i], Node.geometry()))
    for p, node, d in placed:
        items.append((d, 1, p, node))
    items.sort(key=lambda t: (t[0], t[1]))

    points = [skeleton[0]]
    nodes = [start_node.copy()]
    for _, order, p, node in items:
        if same_point(p, points[-1]):
            if order == 1 and not nodes[-1].is_real_station and len(points) > 1:
                # A station sitting exactly on a corner replaces it
                nodes[-1] = node.copy()
                continue
            if order == 0:
                continue
        points.append(p)
        nodes.append(node.copy())
    if len(points) > 1 and same_point(points[-1], skeleton[-1]) and not nodes[-1].is_real_station:
        points.pop()
        nodes.pop()
    points.append(skeleton[-1])
    nodes.append(end_node.copy())
    return points, nodes


def inject_stations(
    skeleton: list[Point],
    stations: list[CarriedStation],
    start_node: Node,
    end_node: Node,
) -> tuple[list[Point], list[Node]]:
    """Place carried stations on ``skeleton`` by arc-length ratio.

    Returns parallel ``(points, nodes)``: the skeleton's endpoints carry
    ``start_node``/``end_node``, its interior corners become geometry
    nodes, and every carried station appears exactly once, in order.
    """
    cum = cumulative_lengths(skeleton)
    total = cum[-1]
    placed = []
    for st in sorted(stations, key=lambda s: s.ratio):
        d = min(max(st.ratio, 0.0), 1.0) * total
        placed.append((point_at_distance(skeleton, cum, d), st.node, d))
    return _merge(skeleton, placed, start_node, end_node)


def spread_stations(
    skeleton: list[Point],
    stations: list[Node],
    start_node: Node,
    end_node: Node,
) -> tuple[list[Point], list[Node]]:
    """Place stations at even spacing ``L / (n + 1)`` along ``skeleton``."""
    cum = cumulative_lengths(skeleton)
    total = cum[-1]
    step = total / (len(stations) + 1)
    placed = []
    for k, node in enumerate(stations, start=1):
        d = step * k
        placed.append((point_at_distance(skeleton, cum, d), node, d))
    return _merge(skeleton, placed, start_node, end_node)

"""Decomposition of a network into links between key nodes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from metro_schematic.layout.constants import KEY_EPSILON
from metro_schematic.layout.injection import CarriedStation, arc_ratios
from metro_schematic.layout.topology import key_nodes
from metro_schematic.parser.model import Network, Node, Point, PointKey


@dataclass
class Link:
    """The chain between two consecutive key nodes, reduced to its endpoints.

    Interior geometry is discarded; interior real stations are kept as
    :class:`CarriedStation` entries with their arc position on the chain.
    """

    index: int
    start: Point
    end: Point
    start_node: Node
    end_node: Node
    stations: list[CarriedStation] = field(default_factory=list)
    route_name: str = "unknown"
    tags: dict[str, Any] = field(default_factory=dict)
    original_count: int | None = None
    # The chain as it was before decomposition
    points: list[Point] = field(default_factory=list)
    nodes: list[Node] = field(default_factory=list)

    def exclusion_keys(self, eps: float = KEY_EPSILON) -> set[PointKey]:
        """Points a candidate for this link may legitimately enclose."""
        keys = {PointKey.of(self.start, eps), PointKey.of(self.end, eps)}
        keys.update(PointKey.of(st.point, eps) for st in self.stations)
        return keys


def enclosure_anchors(
    network: Network, links: list[Link], eps: float = KEY_EPSILON
) -> list[Point]:
    """Positions no candidate path may enclose: link ends and all real stations.

    Carried stations are listed at their pre-synthesis positions, so a link's
    own carried stations have to be excluded per link (see
    :meth:`Link.exclusion_keys`).
    """
    points = [p for link in links for p in (link.start, link.end)]
    points.extend(p for p, _ in network.real_stations(eps).values())
    return list(dict.fromkeys(points))


def decompose_links(network: Network, eps: float = KEY_EPSILON) -> list[Link]:
    """Split every segment at key nodes into links."""
    keys = key_nodes(network, eps)
    links: list[Link] = []
    for seg in network.segments:
        if len(seg.points) < 2:
            continue
        cuts = [
            i
            for i, p in enumerate(seg.points)
            if i in (0, len(seg.points) - 1) or PointKey.of(p, eps) in keys
        ]
        for i0, i1 in zip(cuts, cuts[1:]):
            pts = seg.points[i0 : i1 + 1]
            nodes = seg.nodes[i0 : i1 + 1]
            ratios = arc_ratios(pts)
            carried = [
                CarriedStation(nodes[k].copy(), ratios[k], pts[k])
                for k in range(1, len(pts) - 1)
                if nodes[k].is_real_station
            ]
            links.append(
                Link(
                    index=len(links),
                    start=pts[0],
                    end=pts[-1],
                    start_node=nodes[0].copy(),
                    end_node=nodes[-1].copy(),
                    stations=carried,
                    route_name=seg.route_name,
                    tags=dict(seg.tags),
                    original_count=seg.original_count,
                    points=list(pts),
                    nodes=[n.copy() for n in nodes],
                )
            )
    return links

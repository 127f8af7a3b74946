"""Topology extraction: point adjacency, degrees, topological and key nodes.

The adjacency graph is an undirected ``networkx.Graph`` keyed by
:class:`PointKey`. Each graph node remembers a representative coordinate
(``point``) and each edge the set of route names that use it (``routes``).
The graph is derived on demand and never stored on the network.
"""

from __future__ import annotations

__all__ = [
    "Chain",
    "build_adjacency",
    "extract_chains",
    "is_topological",
    "key_nodes",
    "node_lookup",
    "topological_nodes",
    "walk_to_terminal",
]

import logging
from dataclasses import dataclass, field
from typing import Any

import networkx as nx

from metro_schematic.layout.constants import KEY_EPSILON, STRUCTURE_WALK_LIMIT
from metro_schematic.parser.model import Network, Node, NodeKind, Point, PointKey

logger = logging.getLogger(__name__)

_KIND_RANK = {NodeKind.TRANSFER: 2, NodeKind.STATION: 1, NodeKind.GEOMETRY: 0}


@dataclass
class Chain:
    """A maximal run between two topological nodes."""

    keys: list[PointKey]
    points: list[Point]
    nodes: list[Node]
    route_name: str
    tags: dict[str, Any] = field(default_factory=dict)

    @property
    def endpoint_pair(self) -> tuple[PointKey, PointKey]:
        a, b = self.keys[0], self.keys[-1]
        return (a, b) if a <= b else (b, a)


def build_adjacency(network: Network, eps: float = KEY_EPSILON) -> nx.Graph:
    """Link consecutive points of every segment into an undirected graph."""
    G = nx.Graph()
    for seg in network.segments:
        keys = [PointKey.of(p, eps) for p in seg.points]
        for key, p in zip(keys, seg.points):
            if key not in G:
                G.add_node(key, point=p)
        for ka, kb in zip(keys, keys[1:]):
            if ka == kb:
                continue
            if G.has_edge(ka, kb):
                G.edges[ka, kb]["routes"].add(seg.route_name)
            else:
                G.add_edge(ka, kb, routes={seg.route_name})
    return G


def is_topological(G: nx.Graph, key: PointKey) -> bool:
    """Degree other than 2, or degree 2 where the route changes."""
    if G.degree(key) != 2:
        return True
    (_, _, r1), (_, _, r2) = G.edges(key, data="routes")
    return r1 != r2


def topological_nodes(network: Network, eps: float = KEY_EPSILON) -> list[PointKey]:
    """Sorted topological nodes; the first point stands in for a pure cycle."""
    G = build_adjacency(network, eps)
    found = sorted(k for k in G.nodes if is_topological(G, k))
    if not found and network.segments and network.segments[0].points:
        found = [PointKey.of(network.segments[0].points[0], eps)]
    return found


def node_lookup(network: Network, eps: float = KEY_EPSILON) -> dict[PointKey, Node]:
    """Most significant node seen at each point (transfer > station > geometry)."""
    lookup: dict[PointKey, Node] = {}
    for seg in network.segments:
        for p, node in zip(seg.points, seg.nodes):
            key = PointKey.of(p, eps)
            prev = lookup.get(key)
            if prev is None or _KIND_RANK[node.kind] > _KIND_RANK[prev.kind]:
                lookup[key] = node
    return lookup


def extract_chains(network: Network, eps: float = KEY_EPSILON) -> tuple[list[Chain], dict[PointKey, int]]:
    """Walk degree-2 runs between topological nodes.

    Returns the chains and the connect number (1..n, in sorted key order)
    assigned to each topological node. Every graph edge is traversed once,
    so the reverse walk of a chain is never emitted a second time.
    """
    G = build_adjacency(network, eps)
    topo = topological_nodes(network, eps)
    topo_set = set(topo)
    connect_ids = {key: i + 1 for i, key in enumerate(topo)}
    lookup = node_lookup(network, eps)
    route_tags: dict[str, dict[str, Any]] = {}
    for seg in network.segments:
        route_tags.setdefault(seg.route_name, seg.tags)

    visited: set[frozenset[PointKey]] = set()
    chains: list[Chain] = []
    for start in topo:
        for first in sorted(G.neighbors(start)):
            if frozenset((start, first)) in visited:
                continue
            keys = [start, first]
            visited.add(frozenset((start, first)))
            routes = set(G.edges[start, first]["routes"])
            while keys[-1] not in topo_set:
                cur, prev = keys[-1], keys[-2]
                nxt = next((n for n in G.neighbors(cur) if n != prev), None)
                if nxt is None or frozenset((cur, nxt)) in visited:
                    break
                visited.add(frozenset((cur, nxt)))
                routes |= G.edges[cur, nxt]["routes"]
                keys.append(nxt)
            route_name = sorted(routes)[0]
            tags = dict(route_tags.get(route_name, {}))
            if len(routes) > 1:
                tags["shared_routes"] = sorted(routes)
            chains.append(
                Chain(
                    keys=keys,
                    points=[G.nodes[k]["point"] for k in keys],
                    nodes=[lookup[k].copy() for k in keys],
                    route_name=route_name,
                    tags=tags,
                )
            )

    logger.debug("Extracted %d chains between %d topological nodes", len(chains), len(topo))
    return chains, connect_ids


def key_nodes(network: Network, eps: float = KEY_EPSILON) -> set[PointKey]:
    """Layout anchors: every segment endpoint plus every transfer-marked point."""
    keys: set[PointKey] = set()
    for seg in network.segments:
        if not seg.points:
            continue
        keys.add(PointKey.of(seg.start, eps))
        keys.add(PointKey.of(seg.end, eps))
        for p, node in zip(seg.points, seg.nodes):
            if node.is_transfer:
                keys.add(PointKey.of(p, eps))
    return keys


def walk_to_terminal(
    G: nx.Graph,
    start: PointKey,
    toward: PointKey,
    limit: int = STRUCTURE_WALK_LIMIT,
) -> PointKey:
    """Follow degree-2 points from ``start`` through ``toward`` until the degree changes."""
    prev, cur = start, toward
    for _ in range(limit):
        if G.degree(cur) != 2:
            return cur
        nxt = next(n for n in G.neighbors(cur) if n != prev)
        if nxt == start:
            return cur
        prev, cur = cur, nxt
    return cur

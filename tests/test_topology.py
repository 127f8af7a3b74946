"""Tests for adjacency, topological nodes and chain extraction."""

from __future__ import annotations

from networks import seg

from metro_schematic.layout.topology import (
    build_adjacency,
    extract_chains,
    is_topological,
    key_nodes,
    node_lookup,
    topological_nodes,
    walk_to_terminal,
)
from metro_schematic.parser.model import Network, NodeKind, PointKey


def K(x, y):
    return PointKey.of((x, y))


def t_junction() -> Network:
    return Network([
        seg([(0, 0), (1, 0), (2, 0)], stations={0: "A", 2: "B"}),
        seg([(1, 0), (1, 1)], "Blue", stations={1: "C"}),
    ])


class TestAdjacency:
    def test_degrees(self):
        G = build_adjacency(t_junction())
        assert G.degree(K(1, 0)) == 3
        assert G.degree(K(0, 0)) == 1

    def test_edges_record_routes(self):
        net = Network([
            seg([(0, 0), (1, 0)], "Red"),
            seg([(1, 0), (0, 0)], "Blue"),
        ])
        G = build_adjacency(net)
        assert G.edges[K(0, 0), K(1, 0)]["routes"] == {"Red", "Blue"}

    def test_repeated_points_make_no_self_loop(self):
        G = build_adjacency(Network([seg([(0, 0), (0, 0), (1, 0)])]))
        assert G.number_of_edges() == 1


class TestTopologicalNodes:
    def test_route_change_is_topological(self):
        net = Network([
            seg([(0, 0), (1, 0)], "Red"),
            seg([(1, 0), (2, 0)], "Blue"),
        ])
        G = build_adjacency(net)
        assert G.degree(K(1, 0)) == 2
        assert is_topological(G, K(1, 0))

    def test_plain_interior_point_is_not(self):
        G = build_adjacency(Network([seg([(0, 0), (1, 0), (2, 0)])]))
        assert not is_topological(G, K(1, 0))

    def test_sorted(self):
        assert topological_nodes(t_junction()) == sorted(
            [K(0, 0), K(1, 0), K(2, 0), K(1, 1)]
        )

    def test_cycle_falls_back_to_first_point(self):
        square = Network([seg([(0, 0), (1, 0), (1, 1), (0, 1), (0, 0)])])
        assert topological_nodes(square) == [K(0, 0)]


class TestChains:
    def test_t_junction_has_three_chains(self):
        chains, connect_ids = extract_chains(t_junction())
        assert len(chains) == 3
        assert sorted(connect_ids.values()) == [1, 2, 3, 4]
        assert {c.endpoint_pair for c in chains} == {
            tuple(sorted((K(0, 0), K(1, 0)))),
            tuple(sorted((K(1, 0), K(2, 0)))),
            tuple(sorted((K(1, 0), K(1, 1)))),
        }

    def test_interior_points_are_kept(self):
        net = Network([seg([(0, 0), (1, 0), (2, 0), (3, 0)], stations={0: "A", 2: "S", 3: "B"})])
        chains, _ = extract_chains(net)
        assert len(chains) == 1
        chain = chains[0]
        assert len(chain.points) == 4
        assert [n.name for n in chain.nodes] == ["A", None, "S", "B"]

    def test_shared_chain_records_routes(self):
        net = Network([
            seg([(0, 0), (1, 0)], "Red", color="#f00"),
            seg([(0, 0), (1, 0)], "Blue", color="#00f"),
        ])
        chains, _ = extract_chains(net)
        assert len(chains) == 1
        assert chains[0].route_name == "Blue"
        assert chains[0].tags["shared_routes"] == ["Blue", "Red"]
        assert chains[0].tags["colour"] == "#00f"

    def test_cycle_is_walked_once(self):
        square = Network([seg([(0, 0), (1, 0), (1, 1), (0, 1), (0, 0)])])
        chains, _ = extract_chains(square)
        assert len(chains) == 1
        assert chains[0].keys[0] == chains[0].keys[-1] == K(0, 0)
        assert len(chains[0].keys) == 5


class TestLookups:
    def test_node_lookup_prefers_transfer(self):
        net = Network([
            seg([(0, 0), (1, 0)], stations={1: "S"}),
            seg([(1, 0), (2, 0)], "Blue", transfers={0: "S"}),
        ])
        assert node_lookup(net)[K(1, 0)].kind is NodeKind.TRANSFER

    def test_key_nodes_include_transfers(self):
        net = Network([seg([(0, 0), (1, 0), (2, 0), (3, 0)], transfers={2: "X"})])
        assert key_nodes(net) == {K(0, 0), K(2, 0), K(3, 0)}

    def test_walk_to_terminal(self):
        net = Network([
            seg([(0, 0), (1, 0), (2, 0), (3, 0)]),
            seg([(3, 0), (3, 1)], "Blue"),
            seg([(3, 0), (4, 0)], "Green"),
        ])
        G = build_adjacency(net)
        assert walk_to_terminal(G, K(0, 0), K(1, 0)) == K(3, 0)
        assert walk_to_terminal(G, K(1, 0), K(0, 0)) == K(0, 0)

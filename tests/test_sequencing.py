"""Tests for route sequencing and centre shrinking."""

from __future__ import annotations

from networks import seg, station_names

from metro_schematic.layout.config import PipelineConfig
from metro_schematic.layout.sequencing import (
    detect_turns,
    locked_keys,
    reorder_route,
    reorder_segments,
    sequence_routes,
    shrink_toward_center,
)
from metro_schematic.parser.model import Network, PointKey


def keys(*points):
    return {PointKey.of(p) for p in points}


class TestReorderRoute:
    def test_walks_from_terminal_and_flips(self):
        segments = [
            seg([(2, 0), (3, 0)]),
            seg([(1, 0), (0, 0)]),
            seg([(1, 0), (2, 0)]),
        ]
        ordered = reorder_route(segments)
        assert [s.points for s in ordered] == [
            [(3, 0), (2, 0)],
            [(2, 0), (1, 0)],
            [(1, 0), (0, 0)],
        ]

    def test_nodes_follow_reversal(self):
        segments = [
            seg([(0, 0), (1, 0)], stations={0: "A"}),
            seg([(2, 0), (1, 0)], stations={0: "B", 1: "M"}),
        ]
        ordered = reorder_route(segments)
        assert [n.name for n in ordered[1].nodes] == ["M", "B"]
        assert ordered[0].end == ordered[1].start

    def test_cycle_is_continuous(self):
        segments = [
            seg([(0, 0), (1, 0)]),
            seg([(1, 1), (0, 1)]),
            seg([(1, 0), (1, 1)]),
            seg([(0, 1), (0, 0)]),
        ]
        ordered = reorder_route(segments)
        assert len(ordered) == 4
        for a, b in zip(ordered, ordered[1:]):
            assert a.end == b.start

    def test_disjoint_pieces_all_kept(self):
        segments = [seg([(0, 0), (1, 0)]), seg([(5, 5), (6, 5)])]
        assert len(reorder_route(segments)) == 2

    def test_routes_made_contiguous(self):
        net = Network([
            seg([(0, 0), (1, 0)], "Red"),
            seg([(0, 3), (1, 3)], "Blue"),
            seg([(1, 0), (2, 0)], "Red"),
        ])
        out = reorder_segments(net)
        assert [s.route_name for s in out.segments] == ["Red", "Red", "Blue"]


class TestLocking:
    def test_turns(self):
        assert detect_turns([(0, 0), (2, 0), (2, 2), (4, 2)]) == keys((2, 0), (2, 2))

    def test_repeated_junction_point_still_a_turn(self):
        assert detect_turns([(0, 0), (1, 0), (1, 0), (1, 2)]) == keys((1, 0))

    def test_straight_line_has_no_turns(self):
        assert detect_turns([(0, 0), (1, 0), (3, 0)]) == set()

    def test_locked_positions(self):
        net = Network([
            seg([(0, 0), (1, 0), (2, 0), (2, 2)], stations={1: "S"}, transfers={2: "X"}),
            seg([(2, 2), (2, 3), (4, 3)], stations={1: "T"}),
        ])
        locked = locked_keys(net)
        assert keys((0, 0), (2, 0), (2, 2), (2, 3), (4, 3)) <= locked
        assert PointKey.of((1, 0)) not in locked


class TestShrink:
    def test_station_slides_to_center(self):
        net = Network([seg([(0, 0), (1, 0), (6, 0)], stations={0: "A", 1: "S", 2: "B"})])
        out = shrink_toward_center(net)
        assert out.segments[0].points == [(0, 0), (3, 0), (6, 0)]

    def test_vertical_leg(self):
        net = Network([seg([(0, 0), (0, 1), (0, 6)], stations={1: "S"})])
        out = shrink_toward_center(net)
        assert out.segments[0].points[1] == (0, 3)

    def test_neighbours_bound_the_move(self):
        net = Network([seg([(0, 0), (1, 0), (2, 0), (6, 0)], stations={0: "A", 1: "S", 3: "B"})])
        out = shrink_toward_center(net)
        assert out.segments[0].points == net.segments[0].points

    def test_order_kept_when_stations_queue(self):
        net = Network([
            seg([(0, 0), (1, 0), (2, 0), (8, 0)], stations={0: "A", 1: "S", 2: "T", 3: "B"})
        ])
        out = shrink_toward_center(net)
        assert out.segments[0].points == [(0, 0), (3, 0), (4, 0), (8, 0)]
        assert [n.name for n in out.segments[0].nodes] == ["A", "S", "T", "B"]

    def test_transfer_does_not_move(self):
        net = Network([
            seg([(0, 0), (1, 0), (6, 0)], stations={0: "A", 2: "B"}, transfers={1: "X"})
        ])
        out = shrink_toward_center(net)
        assert out.segments[0].points == net.segments[0].points

    def test_geometry_does_not_move(self):
        net = Network([seg([(0, 0), (1, 0), (6, 0)], stations={0: "A", 2: "B"})])
        out = shrink_toward_center(net)
        assert out.segments[0].points == net.segments[0].points

    def test_zero_rounds(self):
        net = Network([seg([(0, 0), (1, 0), (6, 0)], stations={1: "S"})])
        out = shrink_toward_center(net, PipelineConfig(shrink_rounds=0))
        assert out.segments[0].points == net.segments[0].points

    def test_input_untouched(self):
        net = Network([seg([(0, 0), (1, 0), (6, 0)], stations={1: "S"})])
        shrink_toward_center(net)
        assert net.segments[0].points[1] == (1, 0)

    def test_empty_network(self):
        assert shrink_toward_center(Network([])).segments == []


class TestSequenceRoutes:
    def test_result_is_normalized(self):
        net = Network([seg([(0, 0), (1, 0), (6, 0)], stations={0: "A", 1: "S", 2: "B"})])
        out = sequence_routes(net)
        assert out.segments[0].points == [(0, 0), (1, 0), (2, 0)]
        assert station_names(out) == {"A", "S", "B"}

    def test_routes_stay_orthogonal(self):
        net = Network([
            seg([(0, 0), (1, 0), (4, 0), (4, 4)], "Red", stations={0: "A", 1: "R", 3: "B"}),
            seg([(4, 4), (4, 6), (0, 6)], "Red", stations={2: "C"}),
            seg([(2, 0), (2, 6)], "Blue", stations={0: "D", 1: "E"}),
        ])
        out = sequence_routes(net)
        for s in out.segments:
            for a, b in zip(s.points, s.points[1:]):
                assert a[0] == b[0] or a[1] == b[1]
        assert station_names(out) == station_names(net)

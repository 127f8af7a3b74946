"""Tests for ghost-move compaction."""

from __future__ import annotations

from networks import seg, station_names

from metro_schematic.layout.compaction import (
    GhostMove,
    apply_move,
    area_interference,
    candidate_moves,
    compact,
    is_legal,
    node_collision,
)
from metro_schematic.layout.config import PipelineConfig
from metro_schematic.parser.model import Network


def hook() -> Network:
    return Network([seg([(0, 0), (0, 3), (3, 3), (3, 0)])])


def elbow() -> Network:
    """Two one-leg segments meeting at a bend, each carrying one station."""
    return Network([
        seg([(0, 0), (0, 3)], stations={0: "A"}),
        seg([(0, 3), (3, 3)], stations={1: "B"}),
    ])


class TestCandidateMoves:
    def test_smallest_first(self):
        net = Network([seg([(0, 0), (0, 1), (5, 1), (5, 4)])])
        mags = [m.magnitude for m in candidate_moves(net)]
        assert mags == sorted(mags)
        assert mags[0] == 1.0

    def test_straight_line_has_none(self):
        assert candidate_moves(Network([seg([(0, 0), (4, 0)])])) == []

    def test_ghost_position(self):
        move = GhostMove((0, 3), (3, 3), (0, -3), ((0, 0), (3, 0)))
        assert move.ghost == ((0, 0), (3, 0))
        assert move.magnitude == 3.0


class TestLegality:
    def test_landing_on_foreign_point(self):
        move = GhostMove((0, 0), (0, 3), (3, 0), ((3, 3),))
        points = [(0, 0), (0, 3), (3, 3), (3, 0)]
        assert node_collision(move, points)

    def test_exempt_corners_allowed(self):
        move = GhostMove((0, 3), (3, 3), (0, -3), ((0, 0), (3, 0)))
        points = [(0, 0), (0, 3), (3, 3), (3, 0)]
        assert not node_collision(move, points)
        assert not area_interference(move, points)

    def test_point_in_swept_area(self):
        move = GhostMove((0, 3), (3, 3), (0, -3), ((0, 0), (3, 0)))
        assert area_interference(move, [(1, 1)])

    def test_apply_move_merges_points(self):
        move = GhostMove((0, 3), (3, 3), (0, -3), ((0, 0), (3, 0)))
        out = apply_move(hook(), move)
        assert out.segments[0].points == [(0, 0), (3, 0)]

    def test_move_dropping_a_station_is_illegal(self):
        net = elbow()
        move = GhostMove((0, 0), (0, 3), (3, 0), ((3, 3),))
        assert len(apply_move(net, move).segments) == 1
        assert is_legal(move, net, net.all_points()) is None


class TestCompact:
    def test_hook_collapses(self):
        out = compact(hook())
        assert out.segments[0].points == [(0, 0), (3, 0)]
        assert len(out.segments[0].nodes) == 2

    def test_station_blocks_the_move(self):
        net = hook()
        net.segments.append(seg([(1, 1), (2, 1)], "Blue", stations={0: "S", 1: "T"}))
        out = compact(net)
        assert [s.points for s in out.segments] == [s.points for s in net.segments]

    def test_iteration_cap(self):
        out = compact(hook(), PipelineConfig(compaction_iterations=0))
        assert out.segments[0].points == hook().segments[0].points

    def test_input_untouched(self):
        net = hook()
        compact(net)
        assert len(net.segments[0].points) == 4

    def test_stations_survive(self):
        net = elbow()
        out = compact(net)
        assert station_names(out) == {"A", "B"}
        assert [s.points for s in out.segments] == [s.points for s in net.segments]

"""Tests for the network data model."""

from __future__ import annotations

import pytest
from networks import seg

from metro_schematic.errors import InputShapeError
from metro_schematic.parser.model import (
    Network,
    Node,
    NodeKind,
    PointKey,
    Segment,
    WeightInterval,
)


class TestPointKey:
    def test_nearby_points_share_a_key(self):
        assert PointKey.of((1.00001, 2.0)) == PointKey.of((1.0, 2.0))

    def test_distinct_points_differ(self):
        assert PointKey.of((1.0, 2.0)) != PointKey.of((1.001, 2.0))

    def test_keys_are_ordered(self):
        assert PointKey.of((0.0, 5.0)) < PointKey.of((1.0, 0.0))


class TestNode:
    def test_kinds(self):
        assert not Node.geometry().is_real_station
        assert Node.station("s1").is_real_station
        assert not Node.station("s1").is_transfer
        assert Node.transfer(3).is_transfer

    def test_as_transfer_keeps_identity(self):
        node = Node.station("s1", "Main St", {"level": 2})
        promoted = node.as_transfer(7)
        assert promoted.kind is NodeKind.TRANSFER
        assert promoted.station_id == "s1"
        assert promoted.name == "Main St"
        assert promoted.connect_id == 7
        assert promoted.tags == {"level": 2}

    def test_copy_is_independent(self):
        node = Node.station("s1", tags={"a": 1})
        clone = node.copy()
        clone.tags["a"] = 2
        assert node.tags["a"] == 1
        assert clone.identity() == node.identity()


class TestSegment:
    def test_length_mismatch_raises(self):
        with pytest.raises(InputShapeError, match="2 points but 1 nodes"):
            Segment([(0, 0), (1, 0)], [Node.geometry()])

    def test_points_become_float_tuples(self):
        s = Segment([[0, 1], [2, 3]], [Node.geometry(), Node.geometry()])
        assert s.points == [(0.0, 1.0), (2.0, 3.0)]

    def test_color_prefers_colour(self):
        s = seg([(0, 0), (1, 0)])
        s.tags = {"color": "#111111", "colour": "#222222"}
        assert s.color == "#222222"

    def test_station_indices(self):
        s = seg([(0, 0), (1, 0), (2, 0)], stations={0: "A"}, transfers={2: "X"})
        assert s.station_indices() == [0, 2]

    def test_reversed_remaps_weights(self):
        s = seg([(0, 0), (1, 0), (2, 0), (3, 0), (4, 0)], stations={0: "A", 2: "B", 4: "C"})
        s.station_weights = [WeightInterval(0, 2, 3), WeightInterval(2, 4, 5)]
        r = s.reversed()
        assert r.points[0] == (4.0, 0.0)
        assert r.nodes[0].name == "C"
        assert [(w.start_idx, w.end_idx, w.weight) for w in r.station_weights] == [
            (0, 2, 5),
            (2, 4, 3),
        ]
        # The original is untouched
        assert s.points[0] == (0.0, 0.0)


class TestNetwork:
    def test_routes_group_in_first_appearance_order(self):
        net = Network([
            seg([(0, 0), (1, 0)], "Blue"),
            seg([(0, 1), (1, 1)], "Red", color="#ff0000"),
            seg([(1, 0), (2, 0)], "Blue"),
        ])
        routes = net.routes()
        assert [r.name for r in routes] == ["Blue", "Red"]
        assert len(routes[0].segments) == 2
        assert routes[1].color == "#ff0000"

    def test_copy_is_structural(self):
        net = Network([seg([(0, 0), (1, 0)], stations={0: "A"})])
        clone = net.copy()
        clone.segments[0].points[0] = (9.0, 9.0)
        clone.segments[0].nodes[0].name = "Z"
        assert net.segments[0].points[0] == (0.0, 0.0)
        assert net.segments[0].nodes[0].name == "A"

    def test_real_stations_dedupe_by_position(self):
        net = Network([
            seg([(0, 0), (1, 0)], transfers={1: "X"}),
            seg([(1, 0), (1, 1)], "Blue", transfers={0: "X"}),
        ])
        stations = net.real_stations()
        assert len(stations) == 1
        point, node = stations[PointKey.of((1.0, 0.0))]
        assert point == (1.0, 0.0)
        assert node.name == "X"

    def test_validate_rejects_bad_weight_interval(self):
        s = seg([(0, 0), (1, 0)])
        s.station_weights = [WeightInterval(0, 5, 1)]
        with pytest.raises(InputShapeError, match="outside"):
            Network([s]).validate()

    def test_validate_catches_mutated_arrays(self):
        s = seg([(0, 0), (1, 0)])
        s.points.append((2.0, 0.0))
        with pytest.raises(InputShapeError):
            Network([s]).validate()

"""Tests for proportional station re-injection."""

from __future__ import annotations

from collections import Counter

import pytest

from metro_schematic.layout.geometry import is_axis_aligned
from metro_schematic.layout.injection import (
    CarriedStation,
    arc_ratios,
    inject_stations,
    spread_stations,
)
from metro_schematic.parser.model import Node


def carried(name, ratio):
    return CarriedStation(Node.station(name, name), ratio, (0.0, 0.0))


START = Node.transfer(1, "A", "A")
END = Node.transfer(2, "B", "B")


class TestArcRatios:
    def test_proportional(self):
        assert arc_ratios([(0, 0), (1, 0), (4, 0)]) == pytest.approx([0, 0.25, 1])

    def test_zero_length_uses_index_spacing(self):
        assert arc_ratios([(1, 1), (1, 1), (1, 1)]) == pytest.approx([0, 0.5, 1])


class TestInjectStations:
    def test_station_at_half_the_arc_length(self):
        skeleton = [(0, 0), (4, 0), (4, 2)]
        points, nodes = inject_stations(skeleton, [carried("S", 0.5)], START, END)
        assert points == [(0, 0), (3.0, 0.0), (4, 0), (4, 2)]
        assert [n.name for n in nodes] == ["A", "S", None, "B"]
        assert not nodes[2].is_real_station

    def test_station_on_corner_replaces_it(self):
        skeleton = [(0, 0), (2, 0), (2, 2)]
        points, nodes = inject_stations(skeleton, [carried("S", 0.5)], START, END)
        assert points == [(0, 0), (2, 0), (2, 2)]
        assert nodes[1].name == "S"

    def test_identity_multiset_preserved(self):
        skeleton = [(0, 0), (0, 3), (5, 3), (5, 6)]
        stations = [carried(f"s{i}", r) for i, r in enumerate([0.1, 0.3, 0.3, 0.55, 0.9])]
        points, nodes = inject_stations(skeleton, stations, START, END)
        assert len(points) == len(nodes)
        assert Counter(n.name for n in nodes if n.is_real_station) == Counter(
            ["A", "B", "s0", "s1", "s2", "s3", "s4"]
        )

    def test_result_stays_orthogonal(self):
        skeleton = [(0, 0), (0, 3), (5, 3), (5, 6)]
        stations = [carried(f"s{i}", r) for i, r in enumerate([0.2, 0.5, 0.8])]
        points, _ = inject_stations(skeleton, stations, START, END)
        assert all(is_axis_aligned(a, b) for a, b in zip(points, points[1:]))

    def test_stations_in_ratio_order(self):
        skeleton = [(0, 0), (10, 0)]
        stations = [carried("late", 0.8), carried("early", 0.2)]
        points, nodes = inject_stations(skeleton, stations, START, END)
        assert [n.name for n in nodes] == ["A", "early", "late", "B"]
        assert points[1] == pytest.approx((2.0, 0.0))
        assert points[2] == pytest.approx((8.0, 0.0))

    def test_endpoint_nodes_are_copies(self):
        _, nodes = inject_stations([(0, 0), (1, 0)], [], START, END)
        assert nodes[0] is not START
        assert nodes[0].identity() == START.identity()


def test_spread_stations_even_spacing():
    stations = [Node.station("s1", "s1"), Node.station("s2", "s2")]
    points, nodes = spread_stations([(0, 0), (3, 0)], stations, START, END)
    assert points == [(0, 0), (1.0, 0.0), (2.0, 0.0), (3, 0)]
    assert [n.name for n in nodes] == ["A", "s1", "s2", "B"]

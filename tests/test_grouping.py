"""Tests for route grouping and color unification."""

from __future__ import annotations

from networks import seg

from metro_schematic.layout.constants import DEFAULT_ROUTE_COLOR, PLACEHOLDER_COLOR
from metro_schematic.layout.grouping import group_routes, pick_color, route_key
from metro_schematic.parser.model import Network, Node, Segment


class TestRouteKey:
    def test_branch_suffix_is_dropped(self):
        assert route_key(seg([(0, 0), (1, 0)], "Red (Tamsui)")) == "Red"

    def test_unknown_falls_back_to_tags(self):
        s = Segment([(0, 0), (1, 0)], [Node.geometry(), Node.geometry()], "unknown",
                    {"name": "Circle (inner)"})
        assert route_key(s) == "Circle"

    def test_unknown_without_tags(self):
        assert route_key(seg([(0, 0), (1, 0)], "unknown")) == "unknown"


class TestPickColor:
    def test_most_common(self):
        assert pick_color(["#f00", "#0f0", "#f00"]) == "#f00"

    def test_placeholder_loses(self):
        assert pick_color([PLACEHOLDER_COLOR, PLACEHOLDER_COLOR, "#f00"]) == "#f00"

    def test_placeholder_alone(self):
        assert pick_color([PLACEHOLDER_COLOR]) == PLACEHOLDER_COLOR

    def test_empty(self):
        assert pick_color([]) == DEFAULT_ROUTE_COLOR


class TestGroupRoutes:
    def network(self):
        return Network([
            seg([(0, 0), (1, 0)], "Red (Tamsui)", color="#f00"),
            seg([(5, 5), (6, 5)], "Blue", color="#00f"),
            seg([(1, 0), (2, 0)], "Red", color=PLACEHOLDER_COLOR),
        ])

    def test_names_and_order(self):
        out = group_routes(self.network())
        assert [s.route_name for s in out.segments] == ["Blue", "Red", "Red"]
        red = [s for s in out.segments if s.route_name == "Red"]
        assert [s.start for s in red] == [(0, 0), (1, 0)]

    def test_colors_unified(self):
        out = group_routes(self.network())
        assert {s.color for s in out.segments if s.route_name == "Red"} == {"#f00"}

    def test_color_tag_normalized(self):
        net = Network([
            Segment([(0, 0), (1, 0)], [Node.geometry(), Node.geometry()], "Red",
                    {"color": "#abc"}),
        ])
        tags = group_routes(net).segments[0].tags
        assert tags == {"colour": "#abc"}

    def test_input_untouched(self):
        net = self.network()
        group_routes(net)
        assert net.segments[0].route_name == "Red (Tamsui)"
